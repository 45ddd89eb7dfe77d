# ─────────────────────────────────────────────────────────────────────────────
# Settings — Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server configuration sourced from environment variables.

    Uses pydantic-settings v2 (separate package from pydantic).
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ── Persistence ──────────────────────────────────────────────────────────
    database_url: str = "sqlite:///cereal.db"

    # ── Seed data + images ───────────────────────────────────────────────────
    # Relative paths below are resolved against content_root.
    content_root: str = "."
    seed_csv_path: str = "data/cereal.csv"
    images_dir: str = "data/images"
    placeholder_image: str = "data/images/placeholder"  # extension probed
    import_on_startup: bool = True

    # ── Security ─────────────────────────────────────────────────────────────
    # SecretStr keeps the signing key out of logs and repr().
    jwt_secret_key: SecretStr = SecretStr("dev-only-cereal-api-signing-key-change-me")
    jwt_issuer: str = "cereal-api"
    jwt_audience: str = "cereal-api-clients"
    access_token_expire_minutes: int = 180

    # Reject plain-HTTP requests with 403 (TLS terminated upstream sets X-Forwarded-Proto).
    require_https: bool = False

    # Comma-separated origins for CORS. Empty string = deny all cross-origin requests.
    allowed_origins: str = ""

    # Global per-IP limit (slowapi / limits notation, fixed window).
    rate_limit: str = "100/15 minutes"
    rate_limit_enabled: bool = True

    # ── Feature flags ────────────────────────────────────────────────────────
    enable_docs: bool = True  # /docs + /openapi.json; disable in production

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True

    def resolve_path(self, raw: str) -> Path:
        """Resolve a configured path against content_root unless absolute."""
        path = Path(raw)
        if path.is_absolute():
            return path
        return Path(self.content_root) / path


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
