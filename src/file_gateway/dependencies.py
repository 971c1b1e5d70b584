"""FastAPI dependencies shared by the routers."""

import json
from typing import AsyncIterator, Optional

import pydantic
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette.datastructures import UploadFile

from file_gateway.adapters.storage import LocalImageStorage
from file_gateway.config.settings import Settings
from file_gateway.errors import FileTooLargeError, MissingUserError, UnexpectedFieldError
from file_gateway.schemas import DeleteImageRequest

UPLOAD_FIELD = "image"
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> LocalImageStorage:
    return request.app.state.storage


def current_user_id(request: Request) -> str:
    """
    Resolve the user the request acts on.

    Every request maps to the configured default user; an authenticated
    session would replace this dependency without touching the handlers.
    """
    user_id = get_app_settings(request).default_user_id
    if not user_id:
        raise MissingUserError()
    return user_id


def _media_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";", 1)[0].strip().lower()


async def image_upload(request: Request) -> AsyncIterator[Optional[UploadFile]]:
    """
    Validate the multipart body before the upload handler runs.

    Only a single file under the ``image`` field is accepted, and its
    parsed size must be within the configured limit. A plain text value
    under ``image`` counts as no file at all. The parsed form is closed
    once the request is done.
    """
    form = await request.form()
    try:
        for field, value in form.multi_items():
            if isinstance(value, UploadFile) and field != UPLOAD_FIELD:
                raise UnexpectedFieldError()
        values = form.getlist(UPLOAD_FIELD)
        if len(values) > 1:
            raise UnexpectedFieldError()

        image = values[0] if values and isinstance(values[0], UploadFile) else None
        if image is not None:
            limit = get_app_settings(request).max_upload_bytes
            if image.size is not None and image.size > limit:
                raise FileTooLargeError(limit)
        yield image
    finally:
        await form.close()


async def delete_request(request: Request) -> DeleteImageRequest:
    """
    Read the delete payload from a JSON or form-encoded body.

    Bodies of any other type, and empty bodies, yield an empty payload.
    Malformed JSON and fields of the wrong type are validation errors.
    """
    media_type = _media_type(request)
    if media_type in FORM_CONTENT_TYPES:
        async with request.form() as form:
            data = {key: value for key, value in form.items() if isinstance(value, str)}
    elif media_type == "application/json" or media_type.endswith("+json"):
        body = await request.body()
        if not body.strip():
            return DeleteImageRequest()
        try:
            data = json.loads(body)
        except ValueError as e:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "input": {}}]
            ) from e
    else:
        return DeleteImageRequest()

    try:
        return DeleteImageRequest.model_validate(data)
    except pydantic.ValidationError as e:
        raise RequestValidationError(
            [{**error, "loc": ("body", *error["loc"])} for error in e.errors()]
        ) from e
