"""Report format detection and parser dispatch.

Spreadsheet workbooks (by extension or zip signature) are Flipkart P&L
reports; text files are Amazon CSV exports. Binary content that is neither is
rejected with :class:`UnsupportedFileType` instead of being handed to the CSV
parser.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import datetime
from functools import partial
from typing import NamedTuple

from ..errors import NoFileSelected, ReportParseError, UnsupportedFileType
from ..logging_setup import get_logger
from ..models import Platform, ReportData, ReportFile
from .adapters.amazon_csv import AMAZON_PREAMBLE_LINES, parse_amazon_report
from .adapters.flipkart_xlsx import parse_flipkart_report

logger = get_logger("marketplace_recon.ingest.detect")

SPREADSHEET_EXTENSIONS: frozenset[str] = frozenset({".xlsx", ".xlsm"})
_ZIP_SIGNATURE = b"PK\x03\x04"
_SNIFF_BYTES = 4096


class ParserSelection(NamedTuple):
    platform: Platform
    parse: Callable[..., ReportData]


def _looks_like_text(head: bytes) -> bool:
    if b"\x00" in head:
        return False
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte character cut at the sniff boundary is still text.
        return exc.start >= len(head) - 3
    return True


def detect(file: ReportFile | None) -> ParserSelection:
    """Select the parser for ``file``.

    Raises
    ------
    NoFileSelected
        When ``file`` is ``None``.
    UnsupportedFileType
        When the content is neither a workbook nor text.
    """

    if file is None:
        raise NoFileSelected()

    ext = os.path.splitext(file.name)[1].lower()
    head = file.content[:_SNIFF_BYTES]

    if ext in SPREADSHEET_EXTENSIONS or head.startswith(_ZIP_SIGNATURE):
        return ParserSelection(Platform.FLIPKART, parse_flipkart_report)
    if _looks_like_text(head):
        return ParserSelection(Platform.AMAZON, parse_amazon_report)

    logger.warning("Rejected %r: neither a workbook nor a text export", file.name)
    raise UnsupportedFileType()


def _resolve_preamble_lines(override: int | None) -> int:
    """Resolve the Amazon preamble length (argument, env, then default).

    A negative argument is rejected; an unusable env value is ignored.
    """

    if override is not None:
        if override < 0:
            raise ReportParseError(f"Amazon preamble length must be >= 0, got {override}")
        return override
    env_val = os.getenv("MR_AMAZON_PREAMBLE_LINES")
    if env_val:
        try:
            lines = int(env_val)
        except ValueError:
            logger.warning("Ignoring non-integer MR_AMAZON_PREAMBLE_LINES=%r", env_val)
        else:
            if lines >= 0:
                return lines
            logger.warning("Ignoring negative MR_AMAZON_PREAMBLE_LINES=%r", env_val)
    return AMAZON_PREAMBLE_LINES


def extract_report(
    file: ReportFile | None,
    *,
    amazon_preamble_lines: int | None = None,
    now: datetime | None = None,
) -> ReportData:
    """Detect the report format of ``file`` and run the matching parser."""

    if file is None:
        raise NoFileSelected()
    selection = detect(file)
    parse = selection.parse
    if selection.platform is Platform.AMAZON:
        parse = partial(parse, preamble_lines=_resolve_preamble_lines(amazon_preamble_lines))
    logger.info("Detected %s report: %s", selection.platform.value, file.name)
    return parse(file.content, now=now)


__all__ = [
    "SPREADSHEET_EXTENSIONS",
    "ParserSelection",
    "detect",
    "extract_report",
]
