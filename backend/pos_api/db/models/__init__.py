"""Database models package."""
from pos_api.db.models.category import Category
from pos_api.db.models.history import Purchase, Sale
from pos_api.db.models.product import Product

__all__ = ["Category", "Product", "Purchase", "Sale"]
