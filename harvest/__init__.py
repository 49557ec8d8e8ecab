"""
Game Pass catalog harvest pipeline.

Modules:
    retry: Fixed-delay retry combinator used around every network call and write
    chunking: Fixed-size batching of product ids for detail requests
    dedupe: Per-locale set of unique product ids
    availability: Collection members for one (collection, locale) pair
    details: Chunked detail fetch and persistence for one locale
    runner: Three-phase orchestrator (availability, details, shutdown)
    scheduler: APScheduler integration for periodic harvests

Subpackages:
    extractors: Catalog source contract and the Game Pass client
    transformers: Normalization of games into non-nullable rows
    loaders: PostgreSQL bulk upserts

Architecture:
    1. Availability - every (collection, locale) pair runs concurrently; the
       runner merges the returned ids into the per-locale dedupe set
    2. Details - every locale runs concurrently, its chunks in sequence
    3. Shutdown - outstanding tasks are cancelled and resources released

    A failed pair or locale is logged and recorded without stopping its
    siblings. Only a setup failure (configuration, store connection) ends
    the run before the first phase.

Usage:
    from harvest.runner import HarvestRunner

    report = await HarvestRunner(settings).run()
    print(f"Wrote {report.availability_rows} availability rows")
"""

__all__ = [
    "HarvestRunner",
    "HarvestScheduler",
    "AvailabilityHarvester",
    "DetailHarvester",
    "LocaleDedupeSet",
    "RetryPolicy",
    "run_with_retry",
    "chunkify",
]
