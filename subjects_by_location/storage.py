"""
Record source and report sink.

The source reads local files, local or remote zip archives (GDELT exports
are published as `<date>.export.CSV.zip`), and anything smart_open can
stream (http(s), s3, compressed files). The sink writes a report
atomically so a failed run never leaves a partial report behind.
"""

import io
import logging
import os
import tempfile
import zipfile
from typing import Iterable, Iterator

from smart_open import open as smart_open

from .errors import SinkWriteFailureError, SourceUnavailableError

logger = logging.getLogger(__name__)

REPORT_FILENAME = "part-00000.txt"
ENCODING = "utf-8"


def _is_remote(location: str) -> bool:
    return "://" in location and not location.startswith("file://")


def _iter_zip(archive: zipfile.ZipFile) -> Iterator[str]:
    for member in archive.infolist():
        if member.is_dir():
            continue
        with archive.open(member) as raw:
            for line in io.TextIOWrapper(raw, encoding=ENCODING, errors="replace"):
                yield line.rstrip("\r\n")


def _iter_records(location: str) -> Iterator[str]:
    if location.lower().endswith(".zip"):
        if _is_remote(location):
            # Zip needs random access; buffer the download first
            with smart_open(location, "rb") as f:
                payload = io.BytesIO(f.read())
            archive = zipfile.ZipFile(payload)
        else:
            archive = zipfile.ZipFile(location)
        with archive:
            yield from _iter_zip(archive)
        return

    with smart_open(location, "r", encoding=ENCODING, errors="replace") as f:
        for line in f:
            yield line.rstrip("\r\n")


def open_source(location: str) -> Iterator[str]:
    """
    Lazily read the records of a source, one line per record.

    Raises:
        SourceUnavailableError: When the source cannot be opened or read;
            raised on first iteration for lazy sources
    """
    if not _is_remote(location) and not os.path.exists(location):
        raise SourceUnavailableError(f"Input not found: {location}")

    logger.info(f"Reading records from {location}")
    records = _iter_records(location)
    try:
        yield from records
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise SourceUnavailableError(f"Cannot read input {location}: {e}") from e


def write_lines(directory: str, lines: Iterable[str], filename: str = REPORT_FILENAME) -> str:
    """
    Write report lines to `<directory>/<filename>`.

    Lines are written to a temporary file that replaces the target only
    once every line is on disk.

    Returns:
        Path of the written report

    Raises:
        SinkWriteFailureError: If the report cannot be persisted
    """
    target = os.path.join(directory, filename)
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        with tempfile.NamedTemporaryFile("w", encoding=ENCODING, dir=directory,
                                         prefix=f".{filename}.", delete=False) as f:
            tmp_path = f.name
            for line in lines:
                f.write(line + "\n")
        os.replace(tmp_path, target)
    except OSError as e:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise SinkWriteFailureError(f"Cannot write report to {target}: {e}") from e

    logger.info(f"Wrote report to {target}")
    return target
