# tailorshop/config.py

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///db.sqlite"
    order_image_limit: int = 6
    customer_image_limit: int = 6
    shop_timezone: str = "Asia/Kolkata"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables, falling back to the defaults above.
        """
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            order_image_limit=int(os.getenv("ORDER_IMAGE_LIMIT", cls.order_image_limit)),
            customer_image_limit=int(
                os.getenv("CUSTOMER_IMAGE_LIMIT", cls.customer_image_limit)
            ),
            shop_timezone=os.getenv("SHOP_TIMEZONE", cls.shop_timezone),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
