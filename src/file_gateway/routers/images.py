from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    UploadFile,
    status
)

from file_gateway.adapters.storage import LocalImageStorage
from file_gateway.dependencies import (
    UPLOAD_FIELD,
    current_user_id,
    delete_request,
    get_storage,
    image_upload,
)
from file_gateway.errors import MissingFieldError
from file_gateway.schemas import (
    DeleteImageRequest,
    DeleteImageResponse,
    ErrorResponse,
    ListImagesResponse,
    UploadImageResponse,
)

router = APIRouter()

UPLOAD_BODY = {
    "requestBody": {
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        UPLOAD_FIELD: {
                            "type": "string",
                            "format": "binary",
                            "description": "The image to store",
                        },
                    },
                    "required": [UPLOAD_FIELD],
                },
            },
        },
    },
}

DELETE_BODY = {
    "requestBody": {
        "content": {
            "application/json": {"schema": DeleteImageRequest.model_json_schema()},
            "application/x-www-form-urlencoded": {"schema": DeleteImageRequest.model_json_schema()},
        },
    },
}


@router.post(
    "/upload",
    response_model=UploadImageResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_413_CONTENT_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    openapi_extra=UPLOAD_BODY,
)
def upload_image(
    image: Optional[UploadFile] = Depends(image_upload),
    user_id: str = Depends(current_user_id),
    storage: LocalImageStorage = Depends(get_storage),
) -> UploadImageResponse:
    """
    Store a single image under the user's directory.

    The stored name is ``{token}_{original filename}``; the returned URL
    serves the file through the static route.
    """
    if image is None:
        raise MissingFieldError("No file uploaded")

    stored = storage.save_upload(user_id, image.filename, image.file)
    return UploadImageResponse(url=storage.build_url(user_id, stored.filename))


@router.delete(
    "/delete",
    response_model=DeleteImageResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    openapi_extra=DELETE_BODY,
)
def delete_image(
    payload: DeleteImageRequest = Depends(delete_request),
    user_id: str = Depends(current_user_id),
    storage: LocalImageStorage = Depends(get_storage),
) -> DeleteImageResponse:
    """
    Delete a stored image by the URL it is served from.

    ``imageUrl`` may arrive as JSON or as a form field. Only the filename
    segment of the URL is used, and it must resolve to a file directly
    inside the user's directory.
    """
    if not payload.image_url:
        raise MissingFieldError("No image URL provided")

    storage.delete_by_url(user_id, payload.image_url)
    return DeleteImageResponse(message="File deleted successfully")


@router.get(
    "/images",
    response_model=ListImagesResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
def list_images(
    user_id: str = Depends(current_user_id),
    storage: LocalImageStorage = Depends(get_storage),
) -> ListImagesResponse:
    """List the URLs of every file in the user's directory."""
    filenames = storage.list_files(user_id)
    return ListImagesResponse(images=[storage.build_url(user_id, name) for name in filenames])
