# tailorshop/services/images.py
"""
Bounded binary attachments for customers and orders.

Images live inline as blobs in their own table. Every lookup goes through
the (owner id, image id) pair so a guessed image id cannot leak another
owner's picture. Listings return metadata only; bytes are fetched one image
at a time.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence

from sqlalchemy import Table, func, select
from sqlalchemy.engine import Connection, Engine

from tailorshop.db.engine import transaction
from tailorshop.db.schema import customer_images, customers, order_images, orders
from tailorshop.errors import (
    InvalidTypeError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
)
from tailorshop.models.images import ImageMeta, ImageUpload

logger = logging.getLogger(__name__)

STRICT_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})


@dataclass(frozen=True)
class ImagePolicy:
    limit: int
    # None accepts any image/* type.
    allowed_types: Optional[FrozenSet[str]] = None

    def accepts(self, content_type: Optional[str]) -> bool:
        if not content_type:
            return False
        if self.allowed_types is None:
            return content_type.startswith("image/")
        return content_type in self.allowed_types


class ImageAttachmentService:

    def __init__(
        self,
        engine: Engine,
        owners: Table,
        images: Table,
        owner_key: str,
        policy: ImagePolicy,
        owner_label: str,
    ) -> None:
        self._engine = engine
        self._owners = owners
        self._images = images
        self._owner_col = images.c[owner_key]
        self.policy = policy
        self._owner_label = owner_label

    # --- Public operations -----------------------------------------------------

    def list(self, owner_id: int) -> List[ImageMeta]:
        with transaction(self._engine, f"list {self._owner_label} images") as conn:
            self.ensure_owner(conn, owner_id)
            rows = conn.execute(
                select(self._images.c.id, self._images.c.created_at)
                .where(self._owner_col == owner_id)
                .order_by(self._images.c.created_at.desc(), self._images.c.id.desc())
            ).mappings().all()

        return [ImageMeta(id=row["id"], created_at=row["created_at"]) for row in rows]

    def add(self, owner_id: int, upload: ImageUpload) -> int:
        return self.add_many(owner_id, [upload])[0]

    def add_many(self, owner_id: int, uploads: Sequence[ImageUpload]) -> List[int]:
        """
        Attach every upload or none of them. The cap is checked against the
        count inside the same transaction that inserts.
        """
        if not uploads:
            raise ValidationError(
                "No image provided",
                details=[{"field": "images", "message": "At least one image is required"}],
            )
        self.check_uploads(uploads)

        with transaction(self._engine, f"upload {self._owner_label} image") as conn:
            self.ensure_owner(conn, owner_id)
            self.ensure_capacity(conn, owner_id, len(uploads))
            image_ids = self.insert(conn, owner_id, uploads)

        logger.info(
            "Attached %d image(s) to %s %s", len(image_ids), self._owner_label, owner_id
        )
        return image_ids

    def get(self, owner_id: int, image_id: int) -> bytes:
        with transaction(self._engine, f"fetch {self._owner_label} image") as conn:
            blob = conn.execute(
                select(self._images.c.image).where(
                    self._images.c.id == image_id,
                    self._owner_col == owner_id,
                )
            ).scalar_one_or_none()

        if blob is None:
            raise NotFoundError("Image not found")
        return blob

    def delete(self, owner_id: int, image_id: int) -> None:
        with transaction(self._engine, f"delete {self._owner_label} image") as conn:
            result = conn.execute(
                self._images.delete().where(
                    self._images.c.id == image_id,
                    self._owner_col == owner_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("Image not found")

        logger.info("Deleted image %s of %s %s", image_id, self._owner_label, owner_id)

    # --- Building blocks shared with the order aggregate ----------------------

    def check_uploads(self, uploads: Sequence[ImageUpload]) -> None:
        for upload in uploads:
            if not self.policy.accepts(upload.content_type):
                raise InvalidTypeError(
                    f"Invalid file type: {upload.content_type or 'unknown'}"
                )
            if not upload.data:
                raise ValidationError(
                    "Validation failed",
                    details=[{"field": "images", "message": "Image file is empty"}],
                )

    def ensure_owner(self, conn: Connection, owner_id: int) -> None:
        found = conn.execute(
            select(self._owners.c.id).where(self._owners.c.id == owner_id)
        ).first()
        if found is None:
            raise NotFoundError(f"{self._owner_label.capitalize()} not found")

    def count(self, conn: Connection, owner_id: int) -> int:
        return conn.execute(
            select(func.count())
            .select_from(self._images)
            .where(self._owner_col == owner_id)
        ).scalar_one()

    def ensure_capacity(self, conn: Connection, owner_id: int, adding: int) -> None:
        current = self.count(conn, owner_id)
        if current + adding > self.policy.limit:
            raise LimitExceededError(
                f"Maximum limit of {self.policy.limit} images reached"
            )

    def insert(
        self, conn: Connection, owner_id: int, uploads: Sequence[ImageUpload]
    ) -> List[int]:
        image_ids = []
        for upload in uploads:
            result = conn.execute(
                self._images.insert().values(
                    {self._owner_col.name: owner_id, "image": upload.data}
                )
            )
            image_ids.append(result.inserted_primary_key[0])
        return image_ids


def customer_image_service(engine: Engine, limit: int) -> ImageAttachmentService:
    return ImageAttachmentService(
        engine,
        owners=customers,
        images=customer_images,
        owner_key="customer_id",
        policy=ImagePolicy(limit=limit),
        owner_label="customer",
    )


def order_image_service(engine: Engine, limit: int) -> ImageAttachmentService:
    return ImageAttachmentService(
        engine,
        owners=orders,
        images=order_images,
        owner_key="order_id",
        policy=ImagePolicy(limit=limit, allowed_types=STRICT_IMAGE_TYPES),
        owner_label="order",
    )
