"""
Files router.

Serves uploaded documents by their stored name. A student may only read
their own documents; administrators may read any. Files are read through the
local cache; a miss streams the blob from the configured store first.

Endpoints:
- GET /files/{file_name} - Download a stored file
"""

import logging
import mimetypes

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser, get_current_user
from admission_portal.core.database import get_db
from admission_portal.core.storage import (
    FileCache,
    FileNotFoundInStorage,
    StorageError,
    get_file_cache,
    validate_blob_name,
)
from admission_portal.modules.admissions import service as admissions_service
from admission_portal.modules.admissions.helpers import handle_service_error
from admission_portal.modules.admissions.service import AdmissionServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{file_name}", response_class=FileResponse, summary="Download File")
async def get_file(
    file_name: str,
    cache: FileCache = Depends(get_file_cache),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> FileResponse:
    try:
        validate_blob_name(file_name)
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "INVALID_FILE_NAME", "message": "Invalid file name."},
        ) from e

    try:
        await admissions_service.authorize_file_access(
            db, user.id, file_name, is_admin=user.is_admin
        )
    except AdmissionServiceError as e:
        handle_service_error(e)

    try:
        path = await cache.fetch(file_name)
    except FileNotFoundInStorage as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "FILE_NOT_FOUND", "message": "File not found."},
        ) from e
    except StorageError as e:
        logger.error(f"Failed to fetch {file_name} for user {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "UPSTREAM_ERROR", "message": "File storage is unavailable."},
        ) from e

    media_type, _ = mimetypes.guess_type(file_name)
    return FileResponse(path, media_type=media_type or "application/octet-stream")
