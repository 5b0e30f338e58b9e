from fastapi import APIRouter, Depends, status

from webdav_gateway.api.controller.auth.dto.output_dto import HealthCheckResponseDto
from webdav_gateway.core.container import Container
from webdav_gateway.core.dependencies import get_container
from webdav_gateway.infra.config.settings import settings

router = APIRouter(tags=["Health"])


@router.get("/health", status_code=status.HTTP_200_OK, response_model=HealthCheckResponseDto)
async def health_check(container: Container = Depends(get_container)):
    """Liveness probe; needs no authentication"""
    return HealthCheckResponseDto(
        status="healthy",
        uptime=round(container.uptime(), 3),
        version=settings.APP_VERSION
    )
