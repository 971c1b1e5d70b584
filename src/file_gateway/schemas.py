####################################
# --- Request/response schemas --- #
####################################

from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


class UploadImageResponse(BaseModel):
    """Response model for `POST /upload`."""
    url: str = Field(
        description="URL the stored file is served from.",
        json_schema_extra={
            "example": "http://localhost:3000/uploads/baf609b4-cac8-4b48-b663-e149d00edc46/V1StGXR8_Z_cat.png"
        },
    )


class DeleteImageRequest(BaseModel):
    """Request body for `DELETE /delete`."""
    image_url: Optional[str] = Field(
        None,
        alias="imageUrl",
        description="URL previously returned by `POST /upload` or `GET /images`.",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "imageUrl": "http://localhost:3000/uploads/baf609b4-cac8-4b48-b663-e149d00edc46/V1StGXR8_Z_cat.png"
            }
        },
    )


class DeleteImageResponse(BaseModel):
    """Response model for `DELETE /delete`."""
    message: str


class ListImagesResponse(BaseModel):
    """Response model for `GET /images`."""
    images: List[str]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "images": [
                    "http://localhost:3000/uploads/baf609b4-cac8-4b48-b663-e149d00edc46/V1StGXR8_Z_cat.png"
                ]
            }
        }
    )


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str


class HealthResponse(BaseModel):
    """Response model for `GET /health`."""
    status: str
    components: Dict[str, str]
    ready: bool
