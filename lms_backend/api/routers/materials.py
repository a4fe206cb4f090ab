"""
Material API endpoints.

Routes:
- GET /materials/{id}/download - Issue a time-limited download URL
- PATCH /materials/{id} - Update title or description
- DELETE /materials/{id} - Delete file and metadata

Dependencies: lms_backend.application.services, lms_backend.models
System role: Material HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from lms_backend.api.deps.dependencies import get_current_user, get_material_service
from lms_backend.api.routers.router_utils import handle_service_errors
from lms_backend.application.services import MaterialService
from lms_backend.boundary.db.models.user_model import UserModel
from lms_backend.models.material import (
    DownloadGrantResponse,
    MaterialResponse,
    UpdateMaterialRequest,
)

router = APIRouter(prefix="/materials", tags=["materials"])


@router.get("/{material_id}/download", response_model=DownloadGrantResponse)
@handle_service_errors
async def get_download_url(
    material_id: UUID,
    user: UserModel = Depends(get_current_user),
    material_service: MaterialService = Depends(get_material_service),
) -> DownloadGrantResponse:
    """
    Generate a signed download URL for a material.

    Raises:
        HTTPException(403): Caller is neither enrolled nor course staff
        HTTPException(404): Material not found
        HTTPException(502): URL signing failed
    """
    grant = await material_service.get_download_grant(user, material_id)
    return DownloadGrantResponse(**grant)


@router.patch("/{material_id}", response_model=MaterialResponse)
@handle_service_errors
async def update_material(
    material_id: UUID,
    request: UpdateMaterialRequest,
    user: UserModel = Depends(get_current_user),
    material_service: MaterialService = Depends(get_material_service),
) -> MaterialResponse:
    material = await material_service.update_material(
        user,
        material_id,
        title=request.title,
        description=request.description,
    )
    return MaterialResponse.model_validate(material)


@router.delete("/{material_id}", status_code=204)
@handle_service_errors
async def delete_material(
    material_id: UUID,
    user: UserModel = Depends(get_current_user),
    material_service: MaterialService = Depends(get_material_service),
) -> Response:
    await material_service.delete(user, material_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
