"""Seeding pipeline orchestration: Load -> Transform -> Upload -> Verify-count.

SeedPipeline runs the stages against an already-open DocumentStore and reports
every step through a single report(message) callback, the same contract used by
the CLI (print) and the API (queued into an HTTP stream). The first fatal error
is wrapped in PipelineStageError naming the stage it came from; nothing is
retried automatically.

run_seed is the convenience entrypoint for the outer surfaces: it resolves the
seed file, opens the store scope (client construction and guaranteed release)
and runs the pipeline inside it.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional, Union

from cosmos_seeder.config import Settings, settings as default_settings
from cosmos_seeder.errors import ConfigurationError, PipelineStageError, SeederError
from cosmos_seeder.loader import load_source_records, locate_seed_file
from cosmos_seeder.obs import Trace, span
from cosmos_seeder.schemas import UploadSummary
from cosmos_seeder.store import open_store
from cosmos_seeder.transform import transform_records
from cosmos_seeder.uploader import Report, summary_lines, upload_records

logger = logging.getLogger(__name__)


class SeedPipeline:
    """Sequences the seeding stages against one DocumentStore.

    Args:
        store: Object with async create_document(record) and count_documents().
        report: Progress callback; defaults to logging at INFO.
        batch_size: Concurrent writes per batch.
        batch_delay: Pause in seconds between batches.
    """

    def __init__(
        self,
        store,
        report: Optional[Report] = None,
        batch_size: int = 5,
        batch_delay: float = 0.2,
    ):
        self.store = store
        self.report = report or logger.info
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def run(self, path: Union[str, Path], cancel_event: Optional[asyncio.Event] = None) -> UploadSummary:
        """Seed the store from the file at path.

        Raises:
            PipelineStageError: Wrapping InputNotFoundError / InputMalformedError
                (stage "load") or AuthorizationError (stage "upload").
        """
        trace = Trace("seed", input={"path": str(path), "batch_size": self.batch_size})

        self.report("Loading sample vector data from local file...")
        with span("seed.load", {"path": str(path)}):
            try:
                sources = load_source_records(path)
            except SeederError as e:
                raise PipelineStageError("load", e) from e
        self.report(f"Loaded {len(sources)} sample documents")

        self.report("Transforming data to match schema...")
        with span("seed.transform", {"count": len(sources)}):
            records = transform_records(sources)
        self.report(f"Transformed {len(records)} documents")

        self.report(f"Uploading to Cosmos DB ({getattr(self.store, 'name', '') or 'container'})...")
        with span("seed.upload", {"count": len(records), "batch_size": self.batch_size}):
            try:
                summary = await upload_records(
                    self.store,
                    records,
                    batch_size=self.batch_size,
                    batch_delay=self.batch_delay,
                    report=self.report,
                    cancel_event=cancel_event,
                    trace=trace,
                )
            except SeederError as e:
                trace.end(output={"failed_stage": "upload", "error": str(e)})
                raise PipelineStageError("upload", e) from e

        for line in summary_lines(summary):
            self.report(line)
        trace.end(output=summary.model_dump(exclude={"failed_ids"}))
        return summary


def seed_search_dirs(cfg: Settings) -> List[Path]:
    """Directories searched for a relative seed file name: cwd, then SEED_DATA_DIR."""
    dirs = [Path.cwd()]
    if cfg.SEED_DATA_DIR:
        dirs.append(Path(cfg.SEED_DATA_DIR))
    return dirs


async def run_seed(
    report: Optional[Callable[[str], None]] = None,
    cfg: Optional[Settings] = None,
    seed_file: Optional[str] = None,
    endpoint: Optional[str] = None,
    database: Optional[str] = None,
    container: Optional[str] = None,
    batch_size: Optional[int] = None,
    batch_delay: Optional[float] = None,
    credential=None,
    store_opener=open_store,
    cancel_event: Optional[asyncio.Event] = None,
) -> UploadSummary:
    """Resolve the seed file, open the store and run the pipeline.

    Explicit arguments override the corresponding settings. The store scope is
    closed on every exit path.

    Raises:
        ConfigurationError: If no Cosmos endpoint is configured or the batch
            size is below 1.
        PipelineStageError: On the first fatal stage error.
    """
    cfg = cfg or default_settings
    batch_size = cfg.SEED_BATCH_SIZE if batch_size is None else batch_size
    if batch_size < 1:
        raise ConfigurationError(f"Batch size must be at least 1, got {batch_size}")
    try:
        path = locate_seed_file(seed_file or cfg.SEED_FILE, seed_search_dirs(cfg))
    except SeederError as e:
        raise PipelineStageError("load", e) from e

    async with store_opener(
        endpoint=endpoint, database=database, container=container, credential=credential, cfg=cfg
    ) as store:
        pipeline = SeedPipeline(
            store,
            report=report,
            batch_size=batch_size,
            batch_delay=cfg.SEED_BATCH_DELAY_SECONDS if batch_delay is None else batch_delay,
        )
        return await pipeline.run(path, cancel_event=cancel_event)
