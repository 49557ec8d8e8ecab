# ============================================================================
# File: harvest/runner.py
# Description: Three-phase harvest orchestrator with partial-failure handling
# ============================================================================
"""
Harvest Runner - Orchestrates availability, detail and shutdown phases.

This module provides the pipeline orchestration:
- Setup: store connection check (the only fatal failure point)
- Availability phase: every (collection, locale) pair concurrently
- Detail phase: every locale with at least one product, concurrently
- Shutdown: cancel leftovers, record the run, release resources

Harvest tasks never write to shared state. They return outcomes and the
coordinating coroutine alone merges product ids into the dedupe set.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Set

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from core.config import Settings, settings as default_settings
from core.database import create_engine_and_sessions, verify_connection
from core.exceptions import ConnectionSetupError, SetupError
from harvest.availability import AvailabilityHarvester
from harvest.dedupe import LocaleDedupeSet
from harvest.details import DetailHarvester, DetailResult
from harvest.extractors.base import CatalogSource
from harvest.extractors.gamepass import GamePassCatalog
from harvest.loaders.postgres_loader import PostgresLoader
from harvest.retry import RetryPolicy
from models.base import FailurePolicy, RunStatus
from models.harvest_run import HarvestRun
from schemas.catalog import Locale

logger = logging.getLogger(__name__)


@dataclass
class PairOutcome:
    collection_id: str
    locale: Locale
    items: Optional[List[str]] = None
    rows_written: int = 0
    stage: Optional[str] = None
    error: Optional[BaseException] = None


@dataclass
class LocaleOutcome:
    locale: Locale
    result: Optional[DetailResult] = None
    error: Optional[BaseException] = None


def _describe(error: BaseException) -> Dict[str, Any]:
    detail = {"error_type": type(error).__name__, "error_message": str(error)}
    if hasattr(error, "to_dict"):
        detail["error_context"] = error.to_dict()
    return detail


@dataclass
class RunReport:
    """Counters and failures of one run"""
    run_id: uuid.UUID
    failure_policy: FailurePolicy
    started_at: datetime
    status: RunStatus = RunStatus.RUNNING
    completed_at: Optional[datetime] = None

    pairs_total: int = 0
    availability_rows: int = 0
    unique_items: Dict[str, int] = field(default_factory=dict)
    pair_failures: List[Dict[str, Any]] = field(default_factory=list)

    locales_total: int = 0
    detail_results: List[DetailResult] = field(default_factory=list)
    locale_failures: List[Dict[str, Any]] = field(default_factory=list)

    error_message: Optional[str] = None

    @property
    def descriptions_written(self) -> int:
        return sum(r.descriptions_written for r in self.detail_results)

    @property
    def images_written(self) -> int:
        return sum(r.images_written for r in self.detail_results)

    @property
    def exit_code(self) -> int:
        return 0 if self.status == RunStatus.COMPLETED else 1

    def to_model(self) -> HarvestRun:
        completed_at = self.completed_at or datetime.now(timezone.utc)
        return HarvestRun(
            run_id=self.run_id,
            status=self.status.value,
            failure_policy=self.failure_policy.value,
            started_at=self.started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - self.started_at).total_seconds(),
            pairs_total=self.pairs_total,
            pairs_failed=len(self.pair_failures),
            availability_rows=self.availability_rows,
            unique_items=sum(self.unique_items.values()),
            locales_total=self.locales_total,
            locales_failed=len(self.locale_failures),
            descriptions_written=self.descriptions_written,
            images_written=self.images_written,
            error_message=self.error_message,
            failures={"pairs": self.pair_failures, "locales": self.locale_failures},
        )


class HarvestRunner:
    """
    Harvest orchestrator.

    Responsibilities:
    - Verify the store before any work starts
    - Fan out over collection x locale, then over locales
    - Apply the configured availability failure policy
    - Tear down outstanding tasks and owned resources
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        catalog: Optional[CatalogSource] = None,
        loader: Optional[PostgresLoader] = None,
        session_factory: Optional[async_sessionmaker] = None,
        locales: Optional[Sequence[Locale]] = None,
        collection_ids: Optional[Sequence[str]] = None,
        failure_policy: Optional[FailurePolicy] = None,
    ):
        self.settings = settings or default_settings
        self.locales = list(locales or self.settings.locales)
        self.collection_ids = list(collection_ids or self.settings.collection_ids)
        self.failure_policy = FailurePolicy(
            failure_policy or self.settings.AVAILABILITY_FAILURE_POLICY
        )
        self.policy = RetryPolicy.from_settings(self.settings)

        self.catalog = catalog
        self.loader = loader
        self.session_factory = session_factory

        self._owns_catalog = catalog is None
        self._engine: Optional[AsyncEngine] = None
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._tasks: Set[asyncio.Task] = set()

    async def run(self) -> RunReport:
        """
        Run one full harvest.

        Returns:
            RunReport with status COMPLETED (partial failures allowed) or
            ABORTED (strict policy and at least one pair failed)

        Raises:
            SetupError: If configuration or the store connection is unusable
        """
        report = RunReport(
            run_id=uuid.uuid4(),
            failure_policy=self.failure_policy,
            started_at=datetime.now(timezone.utc),
        )
        logger.info(
            f"Starting harvest {report.run_id}: {len(self.collection_ids)} collections x "
            f"{len(self.locales)} locales (policy: {self.failure_policy.value})"
        )

        try:
            await self._setup()
        except SetupError as e:
            report.status = RunStatus.FATAL
            logger.error(f"Harvest setup failed: {e.message}", extra={"error_context": e.to_dict()})
            await self._release()
            raise

        try:
            # --------------------------------------------------
            # PHASE 1: AVAILABILITY
            # --------------------------------------------------
            dedupe = await self._availability_phase(report)

            if report.pair_failures and self.failure_policy == FailurePolicy.ABORT:
                report.status = RunStatus.ABORTED
                report.error_message = (
                    f"{len(report.pair_failures)} collection/locale pairs failed "
                    f"under the abort policy"
                )
                logger.error(f"Harvest aborted before the detail phase: {report.error_message}")
            else:
                # --------------------------------------------------
                # PHASE 2: DETAILS
                # --------------------------------------------------
                await self._detail_phase(dedupe, report)
                report.status = RunStatus.COMPLETED
        finally:
            # --------------------------------------------------
            # PHASE 3: SHUTDOWN
            # --------------------------------------------------
            await self._shutdown(report)

        logger.info(
            f"Harvest {report.run_id} {report.status.value}: "
            f"{report.availability_rows} availability rows, "
            f"{report.descriptions_written} descriptions, {report.images_written} images, "
            f"{len(report.pair_failures)} failed pairs, {len(report.locale_failures)} failed locales"
        )
        return report

    # ------------------------------------------------------------------
    # Setup / teardown
    # ------------------------------------------------------------------

    async def _setup(self) -> None:
        self._semaphore = asyncio.Semaphore(self.settings.MAX_CONCURRENCY)

        if self.loader is None and self.session_factory is None:
            try:
                self._engine, self.session_factory = create_engine_and_sessions(self.settings)
            except Exception as e:
                raise ConnectionSetupError(
                    "Could not create database engine",
                    original_exception=e
                )

        if self.session_factory is not None:
            await verify_connection(self.session_factory)

        if self.loader is None:
            self.loader = PostgresLoader(self.session_factory)

        if self.catalog is None:
            self.catalog = GamePassCatalog(timeout=self.settings.CATALOG_TIMEOUT)

    async def _shutdown(self, report: RunReport) -> None:
        leftovers = [task for task in self._tasks if not task.done()]
        for task in leftovers:
            task.cancel()
        if leftovers:
            logger.warning(f"Cancelling {len(leftovers)} outstanding tasks")
            await asyncio.gather(*leftovers, return_exceptions=True)
        self._tasks.clear()

        if report.status == RunStatus.RUNNING:
            report.status = RunStatus.ABORTED
            report.error_message = report.error_message or "Run interrupted"
        report.completed_at = datetime.now(timezone.utc)

        try:
            await self.policy.run(
                lambda: self.loader.record_run(report.to_model()),
                description="Record harvest run",
                context={"run_id": str(report.run_id)},
            )
        except Exception as e:
            logger.error(f"Could not record harvest run {report.run_id}: {e}")

        await self._release()

    async def _release(self) -> None:
        if self._owns_catalog and self.catalog is not None:
            await self.catalog.aclose()
            self.catalog = None
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    def _spawn(self, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ------------------------------------------------------------------
    # Availability phase
    # ------------------------------------------------------------------

    async def _availability_phase(self, report: RunReport) -> LocaleDedupeSet:
        harvester = AvailabilityHarvester(self.catalog, self.policy)
        dedupe = LocaleDedupeSet(self.locales)
        timestamp = report.started_at

        tasks = [
            self._spawn(self._harvest_pair(harvester, collection_id, locale, timestamp))
            for collection_id in self.collection_ids
            for locale in self.locales
        ]
        report.pairs_total = len(tasks)
        logger.info(f"Availability phase: {len(tasks)} collection/locale pairs")

        for next_done in asyncio.as_completed(tasks):
            outcome: PairOutcome = await next_done

            if outcome.items is not None:
                dedupe.merge(outcome.locale, outcome.items)
                report.availability_rows += outcome.rows_written

            if outcome.error is not None:
                failure = {
                    "collection_id": outcome.collection_id,
                    "locale": outcome.locale.code,
                    "stage": outcome.stage,
                    **_describe(outcome.error),
                }
                report.pair_failures.append(failure)
                logger.error(
                    f"Availability {outcome.stage} failed for collection "
                    f"{outcome.collection_id} ({outcome.locale}): {outcome.error}",
                    extra={"error_context": failure}
                )

        report.unique_items = dedupe.counts()
        for code, count in report.unique_items.items():
            logger.info(f"Unique games for {code}: {count}")
        logger.info(
            f"Availability phase done: {report.pairs_total - len(report.pair_failures)}/"
            f"{report.pairs_total} pairs succeeded, {dedupe.total()} unique games"
        )
        return dedupe

    async def _harvest_pair(
        self,
        harvester: AvailabilityHarvester,
        collection_id: str,
        locale: Locale,
        timestamp: datetime,
    ) -> PairOutcome:
        async with self._semaphore:
            try:
                collection = await harvester.harvest(collection_id, locale)
            except Exception as e:
                return PairOutcome(collection_id, locale, stage="fetch", error=e)

            try:
                rows = await self.policy.run(
                    lambda: self.loader.write_availability(
                        collection_id, collection.items, locale, timestamp
                    ),
                    description="Save game availability",
                    context={
                        "collection_id": collection_id,
                        "language": locale.language,
                        "market": locale.market,
                    },
                )
            except Exception as e:
                # The ids were still observed; they feed the detail phase
                return PairOutcome(
                    collection_id, locale, items=collection.items, stage="write", error=e
                )

            return PairOutcome(collection_id, locale, items=collection.items, rows_written=rows)

    # ------------------------------------------------------------------
    # Detail phase
    # ------------------------------------------------------------------

    async def _detail_phase(self, dedupe: LocaleDedupeSet, report: RunReport) -> None:
        harvester = DetailHarvester(
            self.catalog,
            self.loader,
            self.policy,
            chunk_size=self.settings.DETAIL_CHUNK_SIZE,
        )
        pending = dedupe.non_empty()
        report.locales_total = len(pending)
        logger.info(f"Detail phase: {len(pending)} locales with games")

        tasks = [
            self._spawn(self._harvest_locale(harvester, locale, item_ids))
            for locale, item_ids in pending
        ]

        for next_done in asyncio.as_completed(tasks):
            outcome: LocaleOutcome = await next_done

            if outcome.error is not None:
                failure = {"locale": outcome.locale.code, **_describe(outcome.error)}
                report.locale_failures.append(failure)
                logger.error(
                    f"Detail harvest failed for {outcome.locale}: {outcome.error}",
                    extra={"error_context": failure}
                )
            else:
                report.detail_results.append(outcome.result)

        logger.info(
            f"Detail phase done: {len(report.detail_results)}/{len(pending)} locales succeeded"
        )

    async def _harvest_locale(
        self,
        harvester: DetailHarvester,
        locale: Locale,
        item_ids,
    ) -> LocaleOutcome:
        async with self._semaphore:
            try:
                result = await harvester.harvest(locale, item_ids)
            except Exception as e:
                return LocaleOutcome(locale, error=e)
            return LocaleOutcome(locale, result=result)
