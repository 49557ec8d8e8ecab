"""
Pydantic schemas for catalog entities and the rows derived from them
"""

from pydantic import BaseModel, Field, validator
from typing import Any, List, Optional
import re

_LOCALE_RE = re.compile(r"^([A-Za-z]{2,3})-([A-Za-z]{2})$")


class Locale(BaseModel):
    """
    A (language, market) pair, e.g. Locale(language="en", market="US").

    Frozen so it can key the per-locale dedupe mapping.
    """
    language: str = Field(..., min_length=2, max_length=3)
    market: str = Field(..., min_length=2, max_length=2)

    class Config:
        frozen = True

    @validator("language")
    def lower_language(cls, v):
        return v.lower()

    @validator("market")
    def upper_market(cls, v):
        return v.upper()

    @classmethod
    def parse(cls, code: str) -> "Locale":
        """Build a locale from a code such as "en-US" """
        match = _LOCALE_RE.match(code.strip())
        if not match:
            raise ValueError(f"Invalid locale code: {code!r} (expected e.g. 'en-US')")
        return cls(language=match.group(1), market=match.group(2))

    @property
    def code(self) -> str:
        return f"{self.language}-{self.market}"

    @property
    def catalog_language(self) -> str:
        """Language tag in the form the catalog endpoints expect ("en-us")"""
        return self.code.lower()

    def __str__(self) -> str:
        return self.code


class GameCollection(BaseModel):
    """Members of one collection for one locale"""
    collection_id: str
    locale: Locale
    items: List[str] = Field(default_factory=list)


class ImageDescriptor(BaseModel):
    file_id: Optional[str] = None
    # Raw catalog values ("1080", 1080.5, "auto"); GameNormalizer coerces them
    height: Optional[Any] = None
    width: Optional[Any] = None
    uri: Optional[str] = None
    image_purpose: Optional[str] = None
    image_position_info: Optional[str] = None


class Game(BaseModel):
    """Localized product detail as returned by the catalog"""
    product_id: str = Field(..., min_length=1)
    product_title: str
    product_description: Optional[str] = None
    developer_name: Optional[str] = None
    publisher_name: Optional[str] = None
    short_title: Optional[str] = None
    sort_title: Optional[str] = None
    short_description: Optional[str] = None
    image_descriptors: Optional[List[ImageDescriptor]] = None


class DescriptionRecord(BaseModel):
    """One game_descriptions row; every column is non-null"""
    product_id: str
    product_title: str
    product_description: str
    developer_name: str
    publisher_name: str
    short_title: str
    sort_title: str
    short_description: str


class ImageRecord(BaseModel):
    """One game_images row; every column is non-null"""
    product_id: str
    file_id: str
    height: int
    width: int
    uri: str
    image_purpose: str
    image_position_info: str
