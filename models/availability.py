from sqlalchemy import Column, BigInteger, String, DateTime, Index
from models.base import Base


class GameAvailability(Base):
    """
    One row per (collection, locale, product) per run.

    Design:
    - available_at is the run's wall-clock timestamp, so "still available
      as of" queries compare against the latest run
    - The natural key includes language as well as market; rows are only
      ever added
    """
    __tablename__ = "game_availability"

    id = Column(BigInteger, primary_key=True, autoincrement=True)

    collection_id = Column(String(64), nullable=False)
    language = Column(String(8), nullable=False)
    market = Column(String(8), nullable=False)
    product_id = Column(String(32), nullable=False, index=True)
    available_at = Column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        Index(
            "uq_availability_natural_key",
            "collection_id", "language", "market", "product_id", "available_at",
            unique=True,
        ),
        Index("idx_availability_locale_time", "language", "market", "available_at"),
    )
