"""Batched create-if-absent upload of StorageRecords into a DocumentStore.

Writes run concurrently inside a fixed-size batch; batches run one after the
other with a fixed pause in between to keep the request rate against Cosmos DB
bounded. Per-document outcomes are folded into an UploadSummary after each
batch settles:
- created                  -> uploaded
- already exists (409)     -> skipped, the stored document is left untouched
- unauthorized / forbidden -> the run aborts with AuthorizationError
- anything else            -> errors, the run continues (no retry)

Progress messages go through ProgressChannel so the report callback is only
ever invoked from one task, in order. After the last batch the container count
is read back as a sanity check; a mismatch is a warning, never an error.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from cosmos_seeder.errors import (
    AuthorizationError,
    DocumentConflictError,
    TransientWriteError,
    VerificationError,
)
from cosmos_seeder.obs import Trace, span
from cosmos_seeder.schemas import StorageRecord, UploadSummary

logger = logging.getLogger(__name__)

Report = Callable[[str], None]

UPLOADED = "uploaded"
SKIPPED = "skipped"
ERROR = "error"


def _log_report(message: str) -> None:
    logger.info(message)


class ProgressChannel:
    """Serializes report() calls through a single consumer task.

    Messages sent while the channel is open are delivered in send order; leaving
    the context waits until every queued message has been delivered.
    """

    def __init__(self, report: Optional[Report] = None):
        self._report = report or _log_report
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "ProgressChannel":
        self._consumer = asyncio.create_task(self._drain())
        return self

    async def __aexit__(self, *exc_info) -> None:
        self._queue.put_nowait(None)
        await self._consumer

    def send(self, message: str) -> None:
        self._queue.put_nowait(message)

    async def _drain(self) -> None:
        while True:
            message = await self._queue.get()
            if message is None:
                return
            try:
                self._report(message)
            except Exception:
                logger.exception("Progress callback failed for message: %s", message)


async def _write_one(store, record: StorageRecord) -> Tuple[str, str]:
    """Attempt one create and classify the outcome. Only AuthorizationError escapes."""
    try:
        await store.create_document(record)
    except DocumentConflictError:
        logger.info("Skipped (exists): %s - %s", record.id, record.title)
        return record.id, SKIPPED
    except AuthorizationError:
        logger.error("Authorization failed uploading %s", record.id)
        raise
    except TransientWriteError as e:
        logger.warning("%s", e)
        return record.id, ERROR
    logger.info("Uploaded: %s - %s", record.id, record.title)
    return record.id, UPLOADED


def _fold(summary: UploadSummary, outcomes: Sequence[Tuple[str, str]]) -> None:
    for doc_id, outcome in outcomes:
        if outcome == UPLOADED:
            summary.uploaded += 1
        elif outcome == SKIPPED:
            summary.skipped += 1
        else:
            summary.errors += 1
            summary.failed_ids.append(doc_id)


async def _run_batch(store, batch: Sequence[StorageRecord], summary: UploadSummary) -> List[Tuple[str, str]]:
    """Fan out the batch and wait until every write settles.

    On an authorization failure the writes still in flight are cancelled, the
    ones that already finished are folded into summary, and the error is raised.
    """
    if not batch:
        return []
    tasks = [asyncio.create_task(_write_one(store, r)) for r in batch]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    failed = [t for t in done if t.exception() is not None]
    if failed:
        for t in pending:
            t.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        _fold(summary, [t.result() for t in tasks if t in done and t.exception() is None])
        raise failed[0].exception()
    return [t.result() for t in tasks]


def progress_message(processed: int, summary: UploadSummary) -> str:
    total = summary.total
    pct = (processed / total * 100.0) if total else 100.0
    return (
        f"Progress: {processed}/{total} processed ({pct:.0f}%) | "
        f"uploaded={summary.uploaded} skipped={summary.skipped} errors={summary.errors}"
    )


def summary_lines(summary: UploadSummary) -> List[str]:
    """Human-readable final summary; always lists uploaded, skipped and errors."""
    lines = [
        "Summary:",
        f"  - {summary.uploaded} documents uploaded",
        f"  - {summary.skipped} documents skipped (already exist)",
        f"  - {summary.errors} documents failed",
        f"  - {summary.processed}/{summary.total} total documents processed",
    ]
    if summary.failed_ids:
        lines.append(f"  - failed ids: {', '.join(summary.failed_ids)}")
    if summary.cancelled:
        lines.append("  - run was cancelled before all documents were attempted")
    return lines


async def _read_count(store, when: str, summary: UploadSummary, progress: ProgressChannel) -> Optional[int]:
    try:
        return await store.count_documents()
    except VerificationError as e:
        warning = f"Warning: could not read document count {when} upload: {e}"
        logger.warning(warning)
        summary.verification_warning = warning
        progress.send(warning)
        return None


def check_growth(summary: UploadSummary) -> Optional[str]:
    """Compare observed container growth with the number of documents created.

    The count covers every document in the container, including ones written
    by earlier runs or other writers, so the result is only a hint.
    """
    if summary.count_before is None or summary.count_after is None:
        return None
    growth = summary.count_after - summary.count_before
    if growth != summary.uploaded:
        return (
            f"Warning: container grew by {growth} documents but {summary.uploaded} were uploaded "
            f"(count {summary.count_before} -> {summary.count_after})"
        )
    return None


async def upload_records(
    store,
    records: Sequence[StorageRecord],
    batch_size: int = 5,
    batch_delay: float = 0.2,
    report: Optional[Report] = None,
    cancel_event: Optional[asyncio.Event] = None,
    trace: Optional[Trace] = None,
) -> UploadSummary:
    """Upload records in batches and return the final tallies.

    Args:
        store: Object with async create_document(record) and count_documents().
        records: Documents to write, in order.
        batch_size: Number of concurrent writes per batch (>= 1).
        batch_delay: Pause in seconds between two batches.
        report: Callback receiving progress messages (one "Progress:" message per batch).
        cancel_event: When set, no further batch is started.
        trace: Optional run trace receiving one event per batch.

    Returns:
        UploadSummary: Tallies and the result of the count check.

    Raises:
        ValueError: If batch_size < 1.
        AuthorizationError: On the first 401/403. The very first document of the
            run is written alone, so an authorization failure on it stops the run
            before any other document is attempted.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    records = list(records)
    summary = UploadSummary(total=len(records))
    batches = [records[i:i + batch_size] for i in range(0, len(records), batch_size)]

    async with ProgressChannel(report) as progress:
        summary.count_before = await _read_count(store, "before", summary, progress)
        progress.send(f"Uploading {summary.total} documents in {len(batches)} batches of up to {batch_size}...")

        processed = 0
        for n, batch in enumerate(batches):
            if cancel_event is not None and cancel_event.is_set():
                summary.cancelled = True
                progress.send(f"Cancelled after {processed}/{summary.total} documents")
                break

            with span("seed.batch", {"batch": n, "size": len(batch)}):
                try:
                    outcomes: List[Tuple[str, str]] = []
                    if n == 0:
                        # Probe: a fatal auth error must stop the run before anything else is tried
                        outcomes.append(await _write_one(store, batch[0]))
                        _fold(summary, outcomes)
                        rest = await _run_batch(store, batch[1:], summary)
                        _fold(summary, rest)
                    else:
                        _fold(summary, await _run_batch(store, batch, summary))
                except AuthorizationError:
                    for line in summary_lines(summary):
                        progress.send(line)
                    raise

            processed += len(batch)
            summary.batches += 1
            progress.send(progress_message(processed, summary))
            if trace is not None:
                trace.event("batch", {"batch": n, "processed": processed, "uploaded": summary.uploaded,
                                      "skipped": summary.skipped, "errors": summary.errors})

            if batch_delay > 0 and n < len(batches) - 1:
                await asyncio.sleep(batch_delay)

        summary.count_after = await _read_count(store, "after", summary, progress)
        if summary.count_after is not None:
            progress.send(f"Verification: container now holds {summary.count_after} documents")
        warning = check_growth(summary)
        if warning:
            logger.warning(warning)
            summary.verification_warning = warning
            progress.send(warning)

    return summary
