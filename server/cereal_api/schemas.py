# ─────────────────────────────────────────────────────────────────────────────
# Pydantic v2 Request / Response Schemas
# ─────────────────────────────────────────────────────────────────────────────
# JSON bodies are camelCase (imagePath); query parameters follow the
# documented PascalCase names (Name, CaloriesMin, ...) plus sortBy /
# sortDescending.
# ─────────────────────────────────────────────────────────────────────────────


from pathlib import PureWindowsPath

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CerealFields(_CamelModel):
    """Every mutable attribute of a cereal record."""

    name: str = Field(..., min_length=1, max_length=200)
    mfr: str = Field("", max_length=50, description="Manufacturer code, e.g. 'K'")
    type: str = Field("", max_length=50, description="'H' (hot) or 'C' (cold)")
    calories: int = 0
    protein: int = 0
    fat: int = 0
    sodium: int = 0
    fiber: float = 0.0
    carbohydrates: float = 0.0
    sugars: int = 0
    potassium: int = 0
    vitamins: int = 0
    shelf: int = 0
    weight: float = 0.0
    cups: float = 0.0
    rating: float = 0.0
    image_path: str | None = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name must not be blank")
        return v


class CerealPayload(CerealFields):
    """Body of POST /api/cereal and PUT /api/cereal/{id}. id=0 means 'create'."""

    id: int = Field(0, ge=0)

    @field_validator("image_path")
    @classmethod
    def image_path_must_stay_relative(cls, v: str | None) -> str | None:
        if not v:
            return v
        # The Windows flavour splits on both separators and knows drive letters.
        path = PureWindowsPath(v)
        if path.anchor:
            raise ValueError("Image path must be relative to the content root")
        if ".." in path.parts:
            raise ValueError("Image path must not contain '..'")
        return v


class CerealResponse(CerealFields):
    id: int


class CerealQuery(BaseModel):
    """Optional filters for GET /api/cereal. Blank strings impose no constraint."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(None, alias="Name", description="Case-insensitive substring")
    mfr: str | None = Field(None, alias="Mfr", description="Case-insensitive exact match")
    type: str | None = Field(None, alias="Type", description="Case-insensitive exact match")

    calories_min: int | None = Field(None, alias="CaloriesMin")
    calories_max: int | None = Field(None, alias="CaloriesMax")
    protein_min: int | None = Field(None, alias="ProteinMin")
    protein_max: int | None = Field(None, alias="ProteinMax")
    fat_min: int | None = Field(None, alias="FatMin")
    fat_max: int | None = Field(None, alias="FatMax")
    sodium_min: int | None = Field(None, alias="SodiumMin")
    sodium_max: int | None = Field(None, alias="SodiumMax")
    fiber_min: float | None = Field(None, alias="FiberMin")
    fiber_max: float | None = Field(None, alias="FiberMax")
    # Carbo/Potass are the short names used by the CSV header and sortBy.
    carbohydrates_min: float | None = Field(
        None, alias="CarbohydratesMin", validation_alias=AliasChoices("CarbohydratesMin", "CarboMin")
    )
    carbohydrates_max: float | None = Field(
        None, alias="CarbohydratesMax", validation_alias=AliasChoices("CarbohydratesMax", "CarboMax")
    )
    sugars_min: int | None = Field(None, alias="SugarsMin")
    sugars_max: int | None = Field(None, alias="SugarsMax")
    potassium_min: int | None = Field(
        None, alias="PotassiumMin", validation_alias=AliasChoices("PotassiumMin", "PotassMin")
    )
    potassium_max: int | None = Field(
        None, alias="PotassiumMax", validation_alias=AliasChoices("PotassiumMax", "PotassMax")
    )
    vitamins_min: int | None = Field(None, alias="VitaminsMin")
    vitamins_max: int | None = Field(None, alias="VitaminsMax")
    shelf_min: int | None = Field(None, alias="ShelfMin")
    shelf_max: int | None = Field(None, alias="ShelfMax")
    weight_min: float | None = Field(None, alias="WeightMin")
    weight_max: float | None = Field(None, alias="WeightMax")
    cups_min: float | None = Field(None, alias="CupsMin")
    cups_max: float | None = Field(None, alias="CupsMax")
    rating_min: float | None = Field(None, alias="RatingMin")
    rating_max: float | None = Field(None, alias="RatingMax")

    sort_by: str | None = Field(None, alias="sortBy")
    sort_descending: bool = Field(False, alias="sortDescending")


# ── Auth ─────────────────────────────────────────────────────────────────────


class Credentials(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def username_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username must not be blank")
        return v.strip()


class RegisterRequest(Credentials):
    pass


class LoginRequest(Credentials):
    pass


class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str


# ── Health ───────────────────────────────────────────────────────────────────


class LivenessResponse(BaseModel):
    """Liveness probe: minimal, near-zero cost."""

    status: str = "ok"


class ReadinessResponse(BaseModel):
    """Readiness probe: can the instance serve traffic?"""

    status: str  # "ready" or "not_ready"
    database_connected: bool
