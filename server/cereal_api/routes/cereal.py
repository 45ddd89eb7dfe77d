# ─────────────────────────────────────────────────────────────────────────────
# /api/cereal — CRUD + image routes (THIN)
# ─────────────────────────────────────────────────────────────────────────────
# Handlers are sync: SQLAlchemy sessions are blocking, so FastAPI runs them
# in its threadpool. Logic lives in CerealService; errors are exceptions.
# ─────────────────────────────────────────────────────────────────────────────

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import FileResponse

from cereal_api.auth import Principal
from cereal_api.dependencies import get_cereal_service, require_principal
from cereal_api.schemas import CerealPayload, CerealQuery, CerealResponse
from cereal_api.services.cereals import CerealService
from cereal_api.services.images import mime_type_for

router = APIRouter(prefix="/api/cereal")

Authenticated = Annotated[Principal, Depends(require_principal)]
Service = Annotated[CerealService, Depends(get_cereal_service)]


@router.get("", response_model=list[CerealResponse])
def list_cereals(
    query: Annotated[CerealQuery, Query()],
    service: Service,
) -> list[CerealResponse]:
    """All cereals matching the optional filters.

    Examples: ``?Name=bran``, ``?Mfr=K&CaloriesMin=70&CaloriesMax=120``,
    ``?sortBy=rating&sortDescending=true``.
    """
    return [CerealResponse.model_validate(c) for c in service.search(query)]


@router.post(
    "",
    response_model=CerealResponse,
    responses={201: {"description": "Created"}, 400: {}, 401: {}},
)
def create_or_update_cereal(
    _: Authenticated,
    payload: CerealPayload,
    request: Request,
    response: Response,
    service: Service,
) -> CerealResponse:
    """Create a cereal (id 0) or overwrite an existing one (non-zero id)."""
    cereal, created = service.save(payload)
    if created:
        response.status_code = status.HTTP_201_CREATED
        response.headers["Location"] = str(request.url_for("get_cereal", cereal_id=cereal.id))
    return CerealResponse.model_validate(cereal)


# Declared before /{cereal_id} so "all" is not parsed as an id.
@router.delete("/all", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_all_cereals(_: Authenticated, service: Service) -> Response:
    service.delete_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{cereal_id}", response_model=CerealResponse, name="get_cereal")
def get_cereal(cereal_id: int, service: Service) -> CerealResponse:
    return CerealResponse.model_validate(service.get(cereal_id))


@router.put("/{cereal_id}", response_model=CerealResponse)
def update_cereal(
    cereal_id: int,
    _: Authenticated,
    payload: CerealPayload,
    service: Service,
) -> CerealResponse:
    """Overwrite every mutable field. Body id must equal the path id."""
    return CerealResponse.model_validate(service.update(cereal_id, payload))


@router.delete("/{cereal_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_cereal(cereal_id: int, _: Authenticated, service: Service) -> Response:
    service.delete(cereal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{cereal_id}/image", response_class=FileResponse)
def get_cereal_image(cereal_id: int, service: Service) -> FileResponse:
    """The cereal's image, or the shared placeholder when it has none."""
    path = service.image(cereal_id)
    return FileResponse(path, media_type=mime_type_for(path))
