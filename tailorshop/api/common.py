# tailorshop/api/common.py

from typing import Annotated, Dict, Iterable, List, Optional, Type, TypeVar

from fastapi import Path, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tailorshop.db.schema import MAX_ROW_ID
from tailorshop.errors import ValidationError
from tailorshop.models.images import ImageUpload
from tailorshop.services.images import ImageAttachmentService
from tailorshop.services.orders import OrderService

ModelT = TypeVar("ModelT", bound=BaseModel)

# Path ids must fit a stored 64-bit key.
RowId = Annotated[int, Path(ge=1, le=MAX_ROW_ID)]

# Images never change in place, a replacement always gets a new id.
IMMUTABLE_CACHE = "public, max-age=31536000, immutable"

_LOCATIONS = {"body", "query", "path", "form", "header"}


def field_errors(errors: Iterable[dict]) -> List[Dict[str, str]]:
    """
    Flatten pydantic error entries into ``{"field": "items.2.price", "message": ...}``.
    """
    details = []
    for err in errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] in _LOCATIONS:
            loc = loc[1:]
        details.append(
            {
                "field": ".".join(str(part) for part in loc) or "body",
                "message": err.get("msg", "Invalid value"),
            }
        )
    return details


def parse_payload(model: Type[ModelT], raw: str) -> ModelT:
    """Decode the JSON ``data`` field of a multipart form into a request model."""
    try:
        return model.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise ValidationError(details=field_errors(exc.errors())) from exc


def read_uploads(files: Optional[List[UploadFile]]) -> List[ImageUpload]:
    uploads = []
    for upload in files or []:
        # Browsers send an empty part when the file input is left blank.
        if not upload.filename and not upload.size:
            continue
        uploads.append(ImageUpload(data=upload.file.read(), content_type=upload.content_type))
    return uploads


def image_response(blob: bytes) -> Response:
    return Response(
        content=blob,
        media_type="image/*",
        headers={"Cache-Control": IMMUTABLE_CACHE},
    )


# --- Dependencies ---------------------------------------------------------------


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_order_images(request: Request) -> ImageAttachmentService:
    return request.app.state.order_images


def get_customer_images(request: Request) -> ImageAttachmentService:
    return request.app.state.customer_images
