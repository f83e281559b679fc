"""Calendar file parsing entry points.

A parse either returns the complete batch of normalized events for a file or
raises a single CalendarParseError; partial results are never returned.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from .config import ReaderSettings
from .csv_decoder import CsvDecoder
from .exceptions import (
    CalendarParseError,
    EmptyInputError,
    FileTooLargeError,
    ReadFailureError,
)
from .format_detector import detect_format, get_decoder
from .models import ParseResult, SourceFormat
from .normalizer import EventNormalizer

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


def parse_calendar_text(
    text: str,
    file_name: str,
    settings: Optional[ReaderSettings] = None,
) -> ParseResult:
    """Parse calendar file content into normalized events.

    Args:
        text: Full file content
        file_name: Original file name; its extension selects the decoder
        settings: Engine settings (defaults from environment when omitted)

    Returns:
        ParseResult holding every event in source order

    Raises:
        CalendarParseError: If the file cannot be parsed
    """
    settings = settings or ReaderSettings()
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    if not text or not text.strip():
        raise EmptyInputError()

    source_format = detect_format(file_name)

    decoder = get_decoder(source_format, settings)
    try:
        if isinstance(decoder, CsvDecoder):
            drafts = decoder.decode(text)
        else:
            drafts = decoder.decode(text, legacy=source_format == SourceFormat.VCS)
        events = EventNormalizer(settings).normalize_all(drafts)
    except CalendarParseError:
        raise
    except Exception as e:
        logger.exception("Unexpected failure parsing %s", file_name)
        raise CalendarParseError(f"Parsing failed: {e}") from e

    logger.info("Parsed %d events from %s", len(events), file_name)
    return ParseResult(
        file_name=file_name,
        source_format=source_format,
        events=events,
        warnings=list(decoder.warnings),
    )


def parse_calendar_bytes(
    data: bytes,
    file_name: str,
    settings: Optional[ReaderSettings] = None,
) -> ParseResult:
    """Decode raw bytes as UTF-8 and parse them.

    Undecodable bytes are replaced rather than rejected.
    """
    settings = settings or ReaderSettings()
    if len(data) > settings.max_file_size_bytes:
        raise FileTooLargeError(len(data), settings.max_file_size_bytes)
    return parse_calendar_text(data.decode("utf-8", errors="replace"), file_name, settings)


async def parse_calendar_file(
    path: Union[str, Path],
    settings: Optional[ReaderSettings] = None,
) -> ParseResult:
    """Read a calendar file and parse it.

    The whole file is read before parsing starts; the read is the only
    suspension point.

    Raises:
        ReadFailureError: If the file cannot be read
        FileTooLargeError: If the file exceeds the configured size limit
        CalendarParseError: If the content cannot be parsed
    """
    settings = settings or ReaderSettings()
    file_path = Path(path)

    try:
        size = file_path.stat().st_size
        if size > settings.max_file_size_bytes:
            raise FileTooLargeError(size, settings.max_file_size_bytes)
        data = await asyncio.to_thread(file_path.read_bytes)
    except OSError as e:
        logger.warning("Could not read %s: %s", file_path, e)
        raise ReadFailureError(f"File could not be read: {e}", path=str(file_path)) from e

    return parse_calendar_bytes(data, file_path.name, settings)
