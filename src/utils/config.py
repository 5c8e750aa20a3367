# runtime settings, read once from the environment
import os
from typing import Optional

DB_PATH: str = os.getenv("STOREFRONT_DB", "data/storefront.sqlite")

# seconds to wait while "processing" a payment at checkout
CHECKOUT_DELAY: float = float(os.getenv("STOREFRONT_CHECKOUT_DELAY", "2.0"))

LOG_FILE: Optional[str] = os.getenv("STOREFRONT_LOG_FILE") or None
DEBUG: bool = bool(os.getenv("DEBUG"))

DEFAULT_PRODUCT_IMAGE = (
    "https://images.unsplash.com/photo-1649972904349-6e44c42644a7"
    "?w=400&h=300&fit=crop"
)
