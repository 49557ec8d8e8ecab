"""
Integration tests for bulk upserts against a live PostgreSQL database.

Skipped when TEST_DATABASE_URL is not reachable.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from harvest.loaders.postgres_loader import PostgresLoader
from harvest.transformers.normalizer import GameNormalizer
from models.availability import GameAvailability
from models.description import GameDescription
from models.image import GameImage
from schemas.catalog import Game, ImageDescriptor, Locale

EN_US = Locale.parse("en-US")
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


async def count(session_factory, model):
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestPostgresUpserts:

    @pytest.mark.asyncio
    async def test_availability_is_idempotent(self, session_factory):
        loader = PostgresLoader(session_factory)

        await loader.write_availability("A", ["1", "2"], EN_US, NOW)
        await loader.write_availability("A", ["1", "2"], EN_US, NOW)

        assert await count(session_factory, GameAvailability) == 2

    @pytest.mark.asyncio
    async def test_new_timestamp_adds_history(self, session_factory):
        loader = PostgresLoader(session_factory)

        await loader.write_availability("A", ["1"], EN_US, NOW)
        await loader.write_availability("A", ["1"], EN_US, NOW.replace(hour=13))

        assert await count(session_factory, GameAvailability) == 2

    @pytest.mark.asyncio
    async def test_identical_descriptions_twice_leave_one_row(self, session_factory, sample_game):
        loader = PostgresLoader(session_factory)
        batch = GameNormalizer().normalize([sample_game])

        await loader.write_descriptions(batch.descriptions, EN_US)
        await loader.write_descriptions(batch.descriptions, EN_US)
        await loader.write_images(batch.images, EN_US)
        await loader.write_images(batch.images, EN_US)

        assert await count(session_factory, GameDescription) == 1
        assert await count(session_factory, GameImage) == 2
        async with session_factory() as session:
            stored = (await session.execute(select(GameDescription))).scalar_one()

        expected = batch.descriptions[0]
        assert (stored.product_id, stored.language, stored.market) == (expected.product_id, "en", "US")
        assert stored.product_title == expected.product_title
        assert stored.product_description == expected.product_description == ""
        assert stored.developer_name == expected.developer_name

    @pytest.mark.asyncio
    async def test_descriptions_and_images_follow_last_write(self, session_factory, sample_game):
        loader = PostgresLoader(session_factory)
        normalizer = GameNormalizer()

        first = normalizer.normalize([sample_game])
        await loader.write_descriptions(first.descriptions, EN_US)
        await loader.write_images(first.images, EN_US)

        renamed = sample_game.copy(update={
            "product_title": "Renamed",
            "image_descriptors": [
                ImageDescriptor(
                    file_id="file-2",
                    height=720,
                    width=1280,
                    uri="//new",
                ),
            ],
        })
        second = normalizer.normalize([renamed])
        await loader.write_descriptions(second.descriptions, EN_US)
        await loader.write_images(second.images, EN_US)

        async with session_factory() as session:
            description = (await session.execute(select(GameDescription))).scalar_one()
            images = {
                image.file_id: image
                for image in (await session.execute(select(GameImage))).scalars()
            }

        assert description.product_title == "Renamed"
        assert description.publisher_name == ""
        assert set(images) == {"file-1", "file-2"}
        assert images["file-2"].uri == "//new"
        assert images["file-2"].height == 720
        assert images["file-1"].height == 1080

    @pytest.mark.asyncio
    async def test_many_products_in_one_statement(self, session_factory):
        loader = PostgresLoader(session_factory)
        games = [Game(product_id=f"P{i}", product_title=f"Game {i}") for i in range(50)]

        batch = GameNormalizer().normalize(games)
        written = await loader.write_descriptions(batch.descriptions, EN_US)

        assert written == 50
        assert await count(session_factory, GameDescription) == 50
