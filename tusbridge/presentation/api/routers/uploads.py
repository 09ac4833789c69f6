"""
Upload API endpoints.

Clients ask for a tus upload URL here, send their bytes to that URL, and
then call verify so the finished upload is moved into the content store.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from ....core.exceptions import (
    HelperNotRunningError, SessionCreationError, UnsafeUploadPathError,
    UploadNotFoundError
)
from ....core.interfaces.storage import IContentStore
from ....core.interfaces.uploads import IUploadBroker
from ..dependencies import get_content_store, get_upload_broker

logger = logging.getLogger(__name__)

router = APIRouter()


class UploadRequest(BaseModel):
    """Request body for creating an upload."""
    oid: str = Field(..., min_length=1, description="Object identifier")
    size: int = Field(..., ge=0, description="Object size in bytes")


class UploadResponse(BaseModel):
    """Location the client uploads the object's bytes to."""
    oid: str
    href: str


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=UploadResponse)
async def create_upload(
    body: UploadRequest,
    request: Request,
    broker: IUploadBroker = Depends(get_upload_broker)
) -> UploadResponse:
    """Register a tus upload for an object and return its URL."""
    try:
        href = await broker.create(body.oid, body.size, request.headers)
    except HelperNotRunningError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.to_dict())
    except SessionCreationError as e:
        logger.error(f"Tus session creation failed for {body.oid}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.to_dict())

    return UploadResponse(oid=body.oid, href=href)


@router.post("/{oid}/verify")
async def verify_upload(
    oid: str,
    broker: IUploadBroker = Depends(get_upload_broker),
    store: IContentStore = Depends(get_content_store)
) -> Dict[str, Any]:
    """Move a finished upload into the content store."""
    try:
        await broker.finish(oid, store)
    except UploadNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_dict())
    except UnsafeUploadPathError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_dict())
    except FileNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "UPLOAD_INCOMPLETE", "message": f"No finished upload on disk for {oid}"}
        )
    except Exception as e:
        logger.exception(f"Failed to store upload {oid}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "STORE_ERROR", "message": str(e)}
        )

    return {"oid": oid, "status": "stored"}
