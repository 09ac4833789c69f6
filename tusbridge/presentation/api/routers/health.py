"""
Health check API endpoints.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ....core.interfaces.uploads import IUploadBroker
from ....infrastructure.config.models import ApplicationConfig
from ..dependencies import get_config, get_upload_broker

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
async def health_check(
    config: ApplicationConfig = Depends(get_config)
) -> Dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": _now(),
        "application": {
            "name": config.name,
            "version": config.version,
            "environment": config.environment
        }
    }


@router.get("/detailed")
async def detailed_health_check(
    config: ApplicationConfig = Depends(get_config),
    broker: IUploadBroker = Depends(get_upload_broker)
) -> Dict[str, Any]:
    """Health check including the tus helper process status."""
    broker_health = await broker.check_health()

    return {
        "status": "healthy" if broker_health.get("healthy") else "degraded",
        "timestamp": _now(),
        "application": {
            "name": config.name,
            "version": config.version,
            "environment": config.environment
        },
        "components": {
            broker.name: broker_health
        }
    }


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Liveness check endpoint."""
    return {
        "alive": True,
        "timestamp": _now()
    }
