# tailorshop/models/images.py

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


@dataclass(frozen=True)
class ImageUpload:
    """Raw bytes of one uploaded file plus the content type the client declared."""

    data: bytes
    content_type: Optional[str] = None


class ImageMeta(BaseModel):
    id: int
    created_at: datetime


class ImageCreated(BaseModel):
    id: int
