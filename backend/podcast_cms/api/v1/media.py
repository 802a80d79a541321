"""Media uploads to object storage."""
import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from podcast_cms.core.config import settings
from podcast_cms.core.deps import get_storage, require_role
from podcast_cms.schemas.media import MediaUploadResponse
from podcast_cms.services.storage import ALLOWED_CONTENT_TYPES, MediaStorage, object_name_for

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{kind}", response_model=MediaUploadResponse, status_code=status.HTTP_201_CREATED,
             summary="Upload an image, audio file or PDF (admin)")
async def upload_media(
    kind: Literal["images", "audio", "pdfs"],
    storage: Annotated[MediaStorage, Depends(get_storage)],
    current_user: Annotated[object, Depends(require_role("admin"))],
    file: UploadFile = File(...),
):
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_CONTENT_TYPES[kind]:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Content type '{content_type or 'unknown'}' is not allowed for {kind}.",
        )

    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty.")
    if len(data) > settings.MEDIA_MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.MEDIA_MAX_UPLOAD_BYTES} byte limit.",
        )

    object_name = object_name_for(kind, file.filename or "upload")
    try:
        storage.upload(object_name, data, content_type)
        url = storage.presigned_url(object_name)
    except Exception as exc:
        logger.error("Media upload of %s failed: %s", object_name, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Object storage upload failed.")

    return MediaUploadResponse(object_name=object_name, url=url, content_type=content_type, size_bytes=len(data))


@router.delete("/{object_name:path}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a stored object (admin)")
async def delete_media(
    object_name: str,
    storage: Annotated[MediaStorage, Depends(get_storage)],
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    if object_name.split("/", 1)[0] not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    try:
        storage.delete(object_name)
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    except Exception as exc:
        logger.error("Media delete of %s failed: %s", object_name, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Object storage delete failed.")
