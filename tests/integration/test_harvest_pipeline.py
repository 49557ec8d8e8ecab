"""
Integration tests for the full harvest run against in-memory catalog and store
"""

import logging
from unittest.mock import MagicMock

import pytest

from core.exceptions import ConnectionSetupError
from harvest.runner import HarvestRunner
from models.base import FailurePolicy, RunStatus
from schemas.catalog import Locale

EN_US = Locale.parse("en-US")
FR_FR = Locale.parse("fr-FR")


def pair_failure_logs(caplog):
    return [
        r for r in caplog.records
        if r.name == "harvest.runner" and r.getMessage().startswith("Availability ")
        and r.levelno == logging.ERROR
    ]


class TestHarvestPipeline:

    @pytest.mark.asyncio
    async def test_end_to_end_deduplicates_and_chunks(self, fast_settings, fake_catalog, fake_loader):
        catalog = fake_catalog(members={("A", "en-US"): ["1", "2"], ("B", "en-US"): ["2", "3"]})
        loader = fake_loader()

        report = await HarvestRunner(fast_settings, catalog=catalog, loader=loader).run()

        assert report.status == RunStatus.COMPLETED
        assert report.exit_code == 0
        assert report.pairs_total == 2
        assert report.availability_rows == 4
        assert report.unique_items == {"en-US": 3}
        assert catalog.detail_calls == [("en-US", ["1", "2"]), ("en-US", ["3"])]
        assert sorted(key[0] for key in loader.descriptions) == ["1", "2", "3"]
        assert report.descriptions_written == 3

    @pytest.mark.asyncio
    async def test_availability_rows_share_the_run_timestamp(self, fast_settings, fake_catalog, fake_loader):
        catalog = fake_catalog(members={("A", "en-US"): ["1"], ("B", "en-US"): ["2"]})
        loader = fake_loader()

        report = await HarvestRunner(fast_settings, catalog=catalog, loader=loader).run()

        timestamps = {row[3] for row in loader.availability}
        assert timestamps == {report.started_at.isoformat()}

    @pytest.mark.asyncio
    async def test_run_is_recorded(self, fast_settings, fake_catalog, fake_loader):
        loader = fake_loader()

        report = await HarvestRunner(
            fast_settings, catalog=fake_catalog(members={("A", "en-US"): ["1"]}), loader=loader
        ).run()

        assert len(loader.runs) == 1
        run = loader.runs[0]
        assert run.run_id == report.run_id
        assert run.status == "completed"
        assert run.unique_items == 1
        assert run.pairs_failed == 0

    @pytest.mark.asyncio
    async def test_failed_pair_does_not_stop_siblings(self, fast_settings, fake_catalog, fake_loader, caplog):
        catalog = fake_catalog(
            members={
                ("A", "en-US"): ["1"],
                ("B", "en-US"): ["2"],
                ("B", "fr-FR"): ["3"],
            },
            failing_members={("A", "fr-FR"): None},
        )
        runner = HarvestRunner(
            fast_settings, catalog=catalog, loader=fake_loader(), locales=[EN_US, FR_FR]
        )

        with caplog.at_level(logging.INFO):
            report = await runner.run()

        assert report.status == RunStatus.COMPLETED
        assert report.exit_code == 0
        assert catalog.member_calls.count(("A", "fr-FR")) == fast_settings.RETRY_ATTEMPTS
        assert [f["collection_id"] for f in report.pair_failures] == ["A"]
        assert report.pair_failures[0]["stage"] == "fetch"

        # Reported once by the runner, not once per attempt
        failures = pair_failure_logs(caplog)
        assert len(failures) == 1
        message = failures[0].getMessage()
        assert "collection A (fr-FR)" in message
        assert "collection A unavailable for fr-FR" in message
        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert errors == failures
        retry_warnings = [
            r for r in caplog.records
            if r.name == "harvest.retry" and r.levelno == logging.WARNING
            and r.retry_context.get("collection_id") == "A" and r.retry_context.get("market") == "FR"
        ]
        assert len(retry_warnings) == fast_settings.RETRY_ATTEMPTS

        assert report.unique_items == {"en-US": 2, "fr-FR": 1}
        assert sorted(locale for locale, _ in catalog.detail_calls) == ["en-US", "fr-FR"]

    @pytest.mark.asyncio
    async def test_abort_policy_skips_detail_phase(self, fast_settings, fake_catalog, fake_loader):
        catalog = fake_catalog(
            members={("B", "en-US"): ["2"]},
            failing_members={("A", "en-US"): None},
        )
        loader = fake_loader()
        runner = HarvestRunner(
            fast_settings, catalog=catalog, loader=loader, failure_policy=FailurePolicy.ABORT
        )

        report = await runner.run()

        assert report.status == RunStatus.ABORTED
        assert report.exit_code == 1
        assert catalog.detail_calls == []
        assert loader.runs[0].status == "aborted"

    @pytest.mark.asyncio
    async def test_write_failure_still_feeds_detail_phase(self, fast_settings, fake_catalog, fake_loader):
        catalog = fake_catalog(members={("A", "en-US"): ["1"], ("B", "en-US"): ["2"]})
        loader = fake_loader(failing_availability=[("A", "en-US")])

        report = await HarvestRunner(fast_settings, catalog=catalog, loader=loader).run()

        assert report.status == RunStatus.COMPLETED
        assert report.pair_failures[0]["stage"] == "write"
        assert report.unique_items == {"en-US": 2}
        assert [item_ids for _, item_ids in catalog.detail_calls] == [["1", "2"]]

    @pytest.mark.asyncio
    async def test_failed_locale_does_not_stop_other_locales(self, fast_settings, fake_catalog, fake_loader):
        catalog = fake_catalog(
            members={("A", "en-US"): ["1"], ("A", "fr-FR"): ["1"]},
            failing_details=["fr-FR"],
        )
        loader = fake_loader()
        runner = HarvestRunner(
            fast_settings, catalog=catalog, loader=loader,
            locales=[EN_US, FR_FR], collection_ids=["A"],
        )

        report = await runner.run()

        assert report.status == RunStatus.COMPLETED
        assert [f["locale"] for f in report.locale_failures] == ["fr-FR"]
        assert list(loader.descriptions) == [("1", "en", "US")]

    @pytest.mark.asyncio
    async def test_empty_collections_skip_detail_phase(self, fast_settings, fake_catalog, fake_loader):
        catalog = fake_catalog()

        report = await HarvestRunner(fast_settings, catalog=catalog, loader=fake_loader()).run()

        assert report.status == RunStatus.COMPLETED
        assert report.locales_total == 0
        assert catalog.detail_calls == []

    @pytest.mark.asyncio
    async def test_unreachable_store_is_fatal(self, fast_settings, fake_catalog, fake_loader):
        session_factory = MagicMock(side_effect=OSError("connection refused"))
        catalog = fake_catalog(members={("A", "en-US"): ["1"]})
        loader = fake_loader()
        runner = HarvestRunner(
            fast_settings, catalog=catalog, loader=loader, session_factory=session_factory
        )

        with pytest.raises(ConnectionSetupError):
            await runner.run()

        assert catalog.member_calls == []
        assert loader.runs == []
