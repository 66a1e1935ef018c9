"""Localized response messages for the product endpoints."""

from __future__ import annotations

from pos_api.core.config import get_settings

CATALOGS: dict[str, dict[str, str]] = {
    "id": {
        "product_not_found": "Produk tidak ditemukan",
        "category_not_found": "Kategori tidak ditemukan",
        "product_exists": "Produk sudah ada",
        "required_fields": "Nama, Kategori, Harga, dan Stok diperlukan!",
        "invalid_data": "Data tidak valid",
        "product_deactivated": "Produk dinonaktifkan",
        "product_deleted": "Produk dihapus",
    },
    "en": {
        "product_not_found": "Product not found",
        "category_not_found": "Category not found",
        "product_exists": "Product already exists",
        "required_fields": "Name, category, price and stock are required!",
        "invalid_data": "Invalid data",
        "product_deactivated": "Product deactivated",
        "product_deleted": "Product deleted",
    },
}

DEFAULT_LOCALE = "id"


def message(key: str, locale: str | None = None) -> str:
    """Look up ``key`` in the configured catalog, falling back to the default one."""
    locale = locale or get_settings().locale
    catalog = CATALOGS.get(locale, CATALOGS[DEFAULT_LOCALE])
    return catalog.get(key) or CATALOGS[DEFAULT_LOCALE][key]
