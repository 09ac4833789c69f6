"""
FastAPI dependency functions giving routes access to bridge services.
"""

from fastapi import HTTPException, Request, status

from ...core.interfaces.storage import IContentStore
from ...core.interfaces.uploads import IUploadBroker
from ...infrastructure.config.models import ApplicationConfig


def get_config(request: Request) -> ApplicationConfig:
    """
    Get the application configuration from the request.

    Raises:
        HTTPException: If configuration is not available
    """
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application configuration not available"
        )
    return config


def get_upload_broker(request: Request) -> IUploadBroker:
    """
    Get the upload broker from the request.

    Raises:
        HTTPException: If the broker is not available
    """
    broker = getattr(request.app.state, "upload_broker", None)
    if broker is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Upload broker not available"
        )
    return broker


def get_content_store(request: Request) -> IContentStore:
    """
    Get the content store from the request.

    Raises:
        HTTPException: If no content store is configured
    """
    store = getattr(request.app.state, "content_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Content store not configured"
        )
    return store
