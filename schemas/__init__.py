"""
Pydantic schemas for catalog data.

Modules:
    catalog: Locale, collection and game models decoded from the catalog,
        plus the non-nullable row shapes written to the store

Usage:
    from schemas.catalog import Locale, Game, ImageDescriptor

Example:
    locale = Locale.parse("en-US")
    assert locale.catalog_language == "en-us"
"""

__all__ = [
    "Locale",
    "GameCollection",
    "Game",
    "ImageDescriptor",
    "DescriptionRecord",
    "ImageRecord",
]
