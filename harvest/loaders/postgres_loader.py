"""
Load harvested data into PostgreSQL with set-oriented bulk upserts (idempotency)
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Sequence

from sqlalchemy import Integer, String, Text, DateTime, cast, func, literal, bindparam, select
from sqlalchemy.dialects.postgresql import ARRAY, insert
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.exceptions import PreconditionError, UpsertError, DatabaseError
from models.availability import GameAvailability
from models.description import GameDescription
from models.harvest_run import HarvestRun
from models.image import GameImage
from schemas.catalog import DescriptionRecord, ImageRecord, Locale
import logging

logger = logging.getLogger(__name__)

DESCRIPTION_FIELDS = (
    "product_id",
    "product_title",
    "product_description",
    "developer_name",
    "publisher_name",
    "short_title",
    "sort_title",
    "short_description",
)

IMAGE_FIELDS = (
    "product_id",
    "file_id",
    "height",
    "width",
    "uri",
    "image_purpose",
    "image_position_info",
)

AVAILABILITY_KEY = ["collection_id", "language", "market", "product_id", "available_at"]
DESCRIPTION_KEY = ["product_id", "language", "market"]
IMAGE_KEY = ["product_id", "file_id", "language", "market", "image_purpose", "image_position_info"]

_IMAGE_INT_FIELDS = {"height", "width"}


def check_cardinality(columns: Mapping[str, Sequence[Any]], rows: int) -> None:
    """
    Every column array of a bulk statement must hold one value per logical row.

    Raises:
        PreconditionError: If any array length differs from ``rows``
    """
    mismatched = {name: len(values) for name, values in columns.items() if len(values) != rows}
    if mismatched:
        raise PreconditionError(
            "Column arrays differ in length from the row count",
            context={"rows": rows, "mismatched": mismatched}
        )


def build_columns(records: Sequence[Any], fields: Sequence[str]) -> Dict[str, List[Any]]:
    """Pivot row models into one array per column"""
    columns = {name: [getattr(record, name) for record in records] for name in fields}
    check_cardinality(columns, len(records))
    return columns


def _unnest(name: str, values: List[Any], item_type) -> Any:
    array_type = ARRAY(item_type)
    # Column names are reserved for the insert's own parameters
    param = bindparam(f"{name}_values", value=values, type_=array_type)
    return func.unnest(cast(param, array_type)).label(name)


def _scalar(name: str, value: Any, type_) -> Any:
    return cast(literal(value, type_), type_).label(name)


class PostgresLoader:
    """
    Write harvested rows with one INSERT ... SELECT unnest(...) statement per call.

    Ensures:
    - No duplicate rows on repeated runs (conflict keys match the unique indexes)
    - Descriptions and images follow the last write
    - One short-lived session per statement, so concurrent writers never
      share an AsyncSession
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def write_availability(
        self,
        collection_id: str,
        item_ids: Sequence[str],
        locale: Locale,
        timestamp: datetime,
    ) -> int:
        """
        Record that ``item_ids`` were listed in ``collection_id`` at ``timestamp``.

        Returns:
            Number of logical rows written
        """
        # A collection can list a product twice; one row per product is enough
        product_ids = list(dict.fromkeys(item_ids))
        if not product_ids:
            return 0

        check_cardinality({"product_id": product_ids}, len(product_ids))
        rows = select(
            _scalar("collection_id", collection_id, String),
            _scalar("language", locale.language, String),
            _scalar("market", locale.market, String),
            _unnest("product_id", product_ids, Text),
            _scalar("available_at", timestamp, DateTime(timezone=True)),
        )
        stmt = insert(GameAvailability).from_select(
            ["collection_id", "language", "market", "product_id", "available_at"], rows
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=AVAILABILITY_KEY)

        await self._execute(stmt, GameAvailability.__tablename__, len(product_ids), locale)
        logger.info(
            f"Saved {len(product_ids)} availability rows for collection "
            f"{collection_id} ({locale})"
        )
        return len(product_ids)

    async def write_descriptions(self, records: Sequence[DescriptionRecord], locale: Locale) -> int:
        """Upsert descriptions keyed by (product_id, language, market)"""
        if not records:
            return 0

        columns = build_columns(records, DESCRIPTION_FIELDS)
        rows = select(
            _unnest("product_id", columns["product_id"], Text),
            _scalar("language", locale.language, String),
            _scalar("market", locale.market, String),
            *[_unnest(name, columns[name], Text) for name in DESCRIPTION_FIELDS[1:]],
        )
        stmt = insert(GameDescription).from_select(
            ["product_id", "language", "market", *DESCRIPTION_FIELDS[1:]], rows
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=DESCRIPTION_KEY,
            set_={
                **{name: stmt.excluded[name] for name in DESCRIPTION_FIELDS[1:]},
                "updated_at": func.now(),
            }
        )

        await self._execute(stmt, GameDescription.__tablename__, len(records), locale)
        logger.info(f"Upserted {len(records)} descriptions for {locale}")
        return len(records)

    async def write_images(self, records: Sequence[ImageRecord], locale: Locale) -> int:
        """Upsert image descriptors; a conflict overwrites uri, height and width only"""
        if not records:
            return 0

        columns = build_columns(records, IMAGE_FIELDS)
        rows = select(
            _unnest("product_id", columns["product_id"], Text),
            _scalar("language", locale.language, String),
            _scalar("market", locale.market, String),
            *[
                _unnest(name, columns[name], Integer if name in _IMAGE_INT_FIELDS else Text)
                for name in IMAGE_FIELDS[1:]
            ],
        )
        stmt = insert(GameImage).from_select(
            ["product_id", "language", "market", *IMAGE_FIELDS[1:]], rows
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=IMAGE_KEY,
            set_={
                "uri": stmt.excluded.uri,
                "height": stmt.excluded.height,
                "width": stmt.excluded.width,
            }
        )

        await self._execute(stmt, GameImage.__tablename__, len(records), locale)
        logger.info(f"Upserted {len(records)} images for {locale}")
        return len(records)

    async def record_run(self, run: HarvestRun) -> None:
        """Store the audit row of a finished run"""
        async with self.session_factory() as session:
            try:
                session.add(run)
                await session.commit()
            except Exception as e:
                await session.rollback()
                raise DatabaseError(
                    "Failed to record harvest run",
                    context={"operation": "INSERT", "table_name": HarvestRun.__tablename__},
                    original_exception=e
                )

    async def _execute(self, stmt, table_name: str, rows: int, locale: Locale) -> None:
        async with self.session_factory() as session:
            try:
                await session.execute(stmt)
                await session.commit()
            except Exception as e:
                await session.rollback()
                raise UpsertError(
                    f"Bulk upsert into {table_name} failed",
                    context={
                        "operation": "UPSERT",
                        "table_name": table_name,
                        "rows": rows,
                        "language": locale.language,
                        "market": locale.market,
                    },
                    original_exception=e
                )
