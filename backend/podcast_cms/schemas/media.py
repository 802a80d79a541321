from pydantic import BaseModel


class MediaUploadResponse(BaseModel):
    object_name: str
    url: str
    content_type: str
    size_bytes: int
