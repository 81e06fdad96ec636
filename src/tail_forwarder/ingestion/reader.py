"""
Reader for exported tail events.

Accepts the formats produced by `wrangler tail --format json`, Logpush
jobs and hand-made fixtures:
- JSON array of tail events
- Single JSON tail event
- NDJSON (one tail event per line)

Gzip-compressed files are detected by extension or magic bytes.
"""

import gzip
import json
import logging
import zlib
from pathlib import Path
from typing import IO, Any, Iterator, Union

from ..exceptions import ParseError

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def open_tail_export(file_path: Union[str, Path], encoding: str = "utf-8") -> IO[str]:
    """
    Open a tail export for reading text, decompressing gzip transparently.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {file_path}")

    with open(path, "rb") as f:
        compressed = path.suffix.lower() == ".gz" or f.read(2) == GZIP_MAGIC

    if compressed:
        return gzip.open(path, "rt", encoding=encoding)
    return open(path, "r", encoding=encoding)


def _iter_ndjson(lines: list[str], strict: bool) -> Iterator[dict[str, Any]]:
    skipped = 0
    for line_number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            if strict:
                raise ParseError(
                    f"Invalid JSON: {e}", line_number=line_number, line_content=line
                ) from e
            skipped += 1
            logger.debug(f"Skipping invalid JSON at line {line_number}: {e}")
            continue

        if not isinstance(obj, dict):
            if strict:
                raise ParseError(
                    "Tail event must be a JSON object", line_number=line_number
                )
            skipped += 1
            continue
        yield obj

    if skipped:
        logger.warning(f"Skipped {skipped} invalid lines")


def read_tail_events(
    file_path: Union[str, Path], strict: bool = False
) -> list[dict[str, Any]]:
    """
    Read all tail events from a file.

    Args:
        file_path: Path to a JSON, NDJSON or gzip-compressed export
        strict: If True, raise on the first invalid record instead of skipping

    Returns:
        List of tail event dictionaries, in file order

    Raises:
        FileNotFoundError: If file doesn't exist
        ParseError: If the file is not valid UTF-8 or not valid gzip, or if
                    strict and a record is invalid
    """
    try:
        with open_tail_export(file_path) as f:
            content = f.read()
    except UnicodeDecodeError as e:
        raise ParseError(f"File is not valid UTF-8: {file_path}: {e}") from e
    except (gzip.BadGzipFile, EOFError, zlib.error) as e:
        raise ParseError(f"Corrupt gzip file: {file_path}: {e}") from e

    stripped = content.strip()
    if not stripped:
        return []

    # Whole-document JSON first; fall back to NDJSON
    try:
        document = json.loads(stripped)
    except json.JSONDecodeError:
        events = list(_iter_ndjson(stripped.splitlines(), strict))
    else:
        if isinstance(document, dict):
            events = [document]
        elif isinstance(document, list):
            events = [e for e in document if isinstance(e, dict)]
            dropped = len(document) - len(events)
            if dropped and strict:
                raise ParseError(f"{dropped} array entries are not JSON objects")
            if dropped:
                logger.warning(f"Skipped {dropped} array entries that are not objects")
        else:
            raise ParseError(
                f"Expected a JSON object or array, got {type(document).__name__}"
            )

    logger.info(f"Read {len(events)} tail events from {file_path}")
    return events
