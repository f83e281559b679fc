"""File-format detection from file names."""

from typing import Optional, Union

from .config import ReaderSettings
from .csv_decoder import CsvDecoder
from .exceptions import UnsupportedFormatError
from .ics_decoder import IcsDecoder
from .models import SourceFormat

_EXTENSIONS = {
    "ics": SourceFormat.ICS,
    "vcs": SourceFormat.VCS,
    "csv": SourceFormat.CSV,
}


def file_extension(file_name: str) -> Optional[str]:
    """Return the lower-cased text after the last dot, or None without one."""
    if "." not in file_name:
        return None
    return file_name.rsplit(".", 1)[1].lower()


def detect_format(file_name: str) -> SourceFormat:
    """Map a file name onto its source format.

    Raises:
        UnsupportedFormatError: For any extension other than ics, vcs or csv
    """
    extension = file_extension(file_name)
    if extension not in _EXTENSIONS:
        raise UnsupportedFormatError(extension)
    return _EXTENSIONS[extension]


def get_decoder(source_format: SourceFormat, settings: ReaderSettings) -> Union[IcsDecoder, CsvDecoder]:
    """Return a fresh decoder for the given format."""
    if source_format == SourceFormat.CSV:
        return CsvDecoder(settings)
    return IcsDecoder(settings)
