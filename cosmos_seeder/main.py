"""FastAPI application entrypoint and routes.

Exposes health and seeding endpoints and configures CORS for the Streamlit panel.
The seeding endpoints run the same pipeline as the CLI:
- POST /seed: run to completion and return the tallies plus every progress message.
- POST /seed/stream: stream progress messages as plain-text lines while the run
  is in progress; a fatal error is sent as a final "ERROR: ..." line.
"""
import asyncio
import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from cosmos_seeder.errors import (
    AuthorizationError,
    ConfigurationError,
    InputMalformedError,
    InputNotFoundError,
    PipelineStageError,
    SeederError,
)
from cosmos_seeder.pipeline import run_seed
from cosmos_seeder.schemas import SeedRequest, SeedResponse, UploadSummary
from cosmos_seeder.store import build_credential, open_store

logger = logging.getLogger(__name__)

app = FastAPI(title="Cosmos Seeder API", version="0.1.0")

# Allow the Streamlit panel (localhost:8501) and any dev origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # keep simple for demo; tighten for prod
    allow_methods=["*"],
    allow_credentials=True,
    allow_headers=["*"],
)


def get_store_opener():
    """FastAPI dependency returning the async context manager factory for the store."""
    return open_store


def get_credential_factory():
    """FastAPI dependency returning the factory that builds the Azure credential for a run."""
    return build_credential


async def _run_with_credential(make_credential, **kwargs) -> UploadSummary:
    credential = make_credential()
    try:
        return await run_seed(credential=credential, **kwargs)
    finally:
        await credential.close()


def _status_for(error: Exception) -> int:
    if isinstance(error, InputNotFoundError):
        return 404
    if isinstance(error, InputMalformedError):
        return 422
    if isinstance(error, AuthorizationError):
        return 403
    return 500


def _run_kwargs(req: SeedRequest) -> dict:
    return {
        "seed_file": req.seed_file,
        "batch_size": req.batch_size,
        "batch_delay": req.batch_delay_seconds,
    }


@app.get("/health")
def health():
    """Liveness probe endpoint.

    Returns:
        dict: {"status": "ok"} when the service is running.
    """
    return {"status": "ok"}


@app.post("/seed", response_model=SeedResponse)
async def seed(
    req: SeedRequest,
    store_opener=Depends(get_store_opener),
    make_credential=Depends(get_credential_factory),
) -> SeedResponse:
    """Seed the configured container and return the final tallies.

    Raises:
        HTTPException: 404 missing seed file, 422 malformed seed file,
            403 authorization failure, 500 configuration error.
    """
    messages = []
    try:
        summary = await _run_with_credential(
            make_credential, report=messages.append, store_opener=store_opener, **_run_kwargs(req)
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except PipelineStageError as e:
        logger.error("Seeding failed in stage %s: %s", e.stage, e.cause)
        raise HTTPException(status_code=_status_for(e.cause), detail=str(e))
    return SeedResponse(**summary.model_dump(), messages=messages)


@app.post("/seed/stream")
async def seed_stream(
    req: SeedRequest,
    store_opener=Depends(get_store_opener),
    make_credential=Depends(get_credential_factory),
) -> StreamingResponse:
    """Seed the configured container, streaming progress as text lines."""
    queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
    cancel_event = asyncio.Event()

    async def _run() -> None:
        try:
            await _run_with_credential(
                make_credential,
                report=queue.put_nowait,
                store_opener=store_opener,
                cancel_event=cancel_event,
                **_run_kwargs(req),
            )
        except SeederError as e:
            queue.put_nowait(f"ERROR: {e}")
        except Exception as e:
            logger.exception("Unexpected failure while seeding")
            queue.put_nowait(f"ERROR: {e}")
        finally:
            queue.put_nowait(None)

    async def _lines() -> AsyncIterator[str]:
        task = asyncio.create_task(_run())
        try:
            while True:
                message = await queue.get()
                if message is None:
                    break
                yield message + "\n"
        finally:
            # Client went away: stop before the next batch
            cancel_event.set()
            await task

    return StreamingResponse(_lines(), media_type="text/plain")
