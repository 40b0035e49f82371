"""Seed file discovery and parsing.

Provides:
- locate_seed_file: find the seed file in a list of candidate directories.
- load_source_records: parse a JSON array into SourceRecord objects, matching
  field names case-insensitively.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from pydantic import ValidationError

from cosmos_seeder.errors import InputMalformedError, InputNotFoundError
from cosmos_seeder.schemas import SourceRecord

logger = logging.getLogger(__name__)

_FIELD_NAMES = {name.lower(): name for name in SourceRecord.model_fields}


def locate_seed_file(name: Union[str, Path], search_dirs: Sequence[Union[str, Path]]) -> Path:
    """Return the first existing seed file among the candidate locations.

    Args:
        name: File name, relative path or absolute path of the seed file.
        search_dirs: Directories tried in order for a relative name.

    Returns:
        Path: The resolved seed file path.

    Raises:
        InputNotFoundError: If no candidate exists; the message lists every
            location that was checked.
    """
    name = Path(name)
    if name.is_absolute():
        candidates = [name]
    else:
        candidates = [Path(d) / name for d in search_dirs] or [name]

    for candidate in candidates:
        if candidate.is_file():
            return candidate

    looked = "\n".join(f"- {c}" for c in candidates)
    raise InputNotFoundError(f"Sample data file not found. Looked in:\n{looked}")


def _normalize_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    # Unknown keys are dropped; on duplicates differing only in case, last wins
    out: Dict[str, Any] = {}
    for key, value in raw.items():
        canonical = _FIELD_NAMES.get(str(key).lower())
        if canonical is not None:
            out[canonical] = value
    return out


def _reject_constant(token: str):
    raise ValueError(f"non-finite number {token} is not allowed")


def load_source_records(path: Union[str, Path]) -> List[SourceRecord]:
    """Load the seed file as an ordered list of SourceRecord.

    Args:
        path: Path to a JSON file holding an array of documents.

    Returns:
        List[SourceRecord]: One record per array element, in file order. An
            empty array (or a top-level null) yields an empty list.

    Raises:
        InputNotFoundError: If the file does not exist.
        InputMalformedError: If the content is not a JSON array of objects
            matching the document shape.
    """
    path = Path(path)
    if not path.is_file():
        raise InputNotFoundError(f"Sample data file not found at: {path}")

    logger.info("Loading data from: %s", path)
    try:
        # utf-8-sig strips the BOM PowerShell and .NET tools write
        data = json.loads(path.read_text(encoding="utf-8-sig"), parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as e:
        raise InputMalformedError(f"{path} is not valid JSON: {e}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise InputMalformedError(f"{path} must contain a JSON array, got {type(data).__name__}")

    records: List[SourceRecord] = []
    for i, raw in enumerate(data):
        if not isinstance(raw, dict):
            raise InputMalformedError(f"Element {i} in {path} is {type(raw).__name__}, expected an object")
        try:
            records.append(SourceRecord.model_validate(_normalize_keys(raw)))
        except ValidationError as e:
            raise InputMalformedError(f"Element {i} in {path} does not match the document shape: {e}") from e

    logger.debug("Parsed %d records from %s", len(records), path)
    return records
