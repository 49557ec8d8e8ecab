from sqlalchemy import Column, String, Text, DateTime, func
from models.base import Base


class GameDescription(Base):
    """
    Localized descriptive fields of a product.

    Keyed by (product_id, language, market); an upsert overwrites every
    descriptive column. Optional catalog fields are stored as "" rather
    than NULL.
    """
    __tablename__ = "game_descriptions"

    product_id = Column(String(32), primary_key=True)
    language = Column(String(8), primary_key=True)
    market = Column(String(8), primary_key=True)

    product_title = Column(Text, nullable=False)
    product_description = Column(Text, nullable=False, default="")
    developer_name = Column(Text, nullable=False, default="")
    publisher_name = Column(Text, nullable=False, default="")
    short_title = Column(Text, nullable=False, default="")
    sort_title = Column(Text, nullable=False, default="")
    short_description = Column(Text, nullable=False, default="")

    updated_at = Column(
        DateTime(timezone=True), nullable=False,
        server_default=func.now(), onupdate=func.now()
    )
