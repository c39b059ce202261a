"""Image upload endpoints.

Uploaded images are stored under ``{user_id}/`` in the recipe image
bucket; a user can only delete objects under their own prefix.
"""

from __future__ import annotations

import time
from typing import Annotated

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)

from recipe_keeper.api.dependencies import get_storage_client
from recipe_keeper.auth.dependencies import CurrentUser, get_current_user
from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.schemas.recipe import UploadResponse
from recipe_keeper.services.storage import (
    EXTENSIONS,
    StorageClient,
    StorageError,
    StorageUnavailableError,
)


logger = get_logger(__name__)

router = APIRouter(tags=["Uploads"])


def _storage_failed(e: StorageError) -> HTTPException:
    if isinstance(e, StorageUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "STORAGE_UNAVAILABLE",
                "message": "Image storage is temporarily unavailable",
            },
        )
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"error": "STORAGE_ERROR", "message": "Failed to store image"},
    )


@router.post(
    "/uploads/images",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a recipe image",
    description="JPEG, PNG, WebP or GIF up to 5 MB. Returns its public URL.",
    responses={
        400: {"description": "Unsupported file type"},
        413: {"description": "File too large"},
        503: {"description": "Storage unavailable"},
    },
)
async def upload_image(
    file: Annotated[UploadFile, File(description="Image file")],
    user: Annotated[CurrentUser, Depends(get_current_user)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> UploadResponse:
    config = get_settings().storage
    content_type = (file.content_type or "").lower()
    if content_type not in config.allowed_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "INVALID_FILE_TYPE",
                "message": "Invalid file type. Please upload a JPEG, PNG, WebP, or GIF image.",
            },
        )

    # Read one byte past the limit so oversized files are rejected without
    # buffering all of them.
    content = await file.read(config.max_file_size + 1)
    if len(content) > config.max_file_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={
                "error": "FILE_TOO_LARGE",
                "message": "File too large. Maximum size is 5MB.",
            },
        )

    path = f"{user.id}/{int(time.time() * 1000)}.{EXTENSIONS[content_type]}"
    try:
        url = await storage.upload(path, content, content_type)
    except StorageError as e:
        logger.warning("Image upload failed", path=path, error=str(e))
        raise _storage_failed(e) from None
    return UploadResponse(url=url, path=path)


@router.delete(
    "/uploads/images",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an uploaded image",
    responses={403: {"description": "The image belongs to another user"}},
)
async def delete_image(
    path: Annotated[str, Query(min_length=1, max_length=500)],
    user: Annotated[CurrentUser, Depends(get_current_user)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> Response:
    if not path.startswith(f"{user.id}/") or ".." in path:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "FORBIDDEN", "message": "You can only delete your own images"},
        )
    try:
        await storage.delete(path)
    except StorageError as e:
        logger.warning("Image delete failed", path=path, error=str(e))
        raise _storage_failed(e) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
