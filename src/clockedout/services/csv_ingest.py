"""CSV ingestion for time-tracking exports."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import (
    ClockedOutError,
    EmptyFile,
    FileReadError,
    InvalidFormat,
    InvalidTime,
    MissingColumns,
    NegativeValue,
)
from ..logging_config import get_logger
from ..models.time_entry import TimeEntry
from .dates import DateParser

logger = get_logger(__name__)

DURATION_COLUMN = "Time Tracked"
START_MS_COLUMN = "Start"
START_TEXT_COLUMN = "Start Text"


@dataclass(slots=True)
class RowError:
    """A data row that could not be turned into a TimeEntry."""

    line: int
    error: ClockedOutError


def _clean(fields: list[str]) -> list[str]:
    return [value.strip() for value in fields]


def _is_blank(fields: list[str]) -> bool:
    return not fields or (len(fields) == 1 and not fields[0].strip())


def _tokenize_lines(text: str) -> list[tuple[int, list[str]]]:
    """Split each physical line on its own so an open quote cannot spill over."""

    rows: list[tuple[int, list[str]]] = []
    for number, line in enumerate(text.splitlines(), start=1):
        try:
            fields = next(csv.reader([line], skipinitialspace=True), [])
        except csv.Error as exc:
            logger.warning("Line %d could not be tokenized (%s); skipping", number, exc)
            continue
        rows.append((number, fields))
    return rows


def missing_columns(headers: list[str]) -> list[str]:
    """Return the required columns absent from ``headers``."""

    missing: list[str] = []
    if START_MS_COLUMN not in headers and START_TEXT_COLUMN not in headers:
        missing.append(f"{START_MS_COLUMN} or {START_TEXT_COLUMN}")
    if DURATION_COLUMN not in headers:
        missing.append(DURATION_COLUMN)
    return missing


def parse_duration_ms(raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise InvalidTime(raw) from exc
    if value < 0:
        raise NegativeValue(DURATION_COLUMN)
    return value


class CSVIngestor:
    """Turn raw export bytes into ordered ``TimeEntry`` records.

    Bad rows are skipped and remembered in ``last_errors``; the parse only
    fails as a whole when no row survives and at least one row errored.
    """

    def __init__(self, date_parser: DateParser | None = None):
        self.date_parser = date_parser or DateParser()
        self.last_errors: list[RowError] = []

    def parse_file(self, path: Path) -> list[TimeEntry]:
        logger.info("Parsing CSV file: %s", Path(path).name)
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise FileReadError(path, str(exc)) from exc
        return self.parse_bytes(data)

    def parse_bytes(self, data: bytes) -> list[TimeEntry]:
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise InvalidFormat(f"file is not UTF-8 text ({exc.reason})") from exc
        return self.parse_text(text)

    def parse_text(self, text: str) -> list[TimeEntry]:
        self.last_errors = []
        if not text.strip():
            raise EmptyFile()

        rows = [(line, row) for line, row in _tokenize_lines(text) if not _is_blank(row)]
        if len(rows) < 2:
            raise EmptyFile()

        _, header_row = rows[0]
        headers = _clean(header_row)
        logger.debug("CSV headers found: %s", headers)

        missing = missing_columns(headers)
        if missing:
            raise MissingColumns(missing)

        entries: list[TimeEntry] = []
        for line, raw in rows[1:]:
            values = _clean(raw)
            if len(values) != len(headers):
                logger.warning(
                    "Row %d has incorrect number of columns (%d, expected %d); skipping",
                    line,
                    len(values),
                    len(headers),
                )
                continue
            record = dict(zip(headers, values))
            try:
                entries.append(self._to_entry(record))
            except ClockedOutError as exc:
                self.last_errors.append(RowError(line=line, error=exc))
                logger.warning("Failed to parse row %d: %s", line, exc)

        if not entries and self.last_errors:
            raise self.last_errors[0].error

        logger.info("Parsed %d time entries from CSV", len(entries))
        if self.last_errors:
            logger.info("Skipped %d invalid rows", len(self.last_errors))
        return entries

    def _to_entry(self, record: dict[str, str]) -> TimeEntry:
        epoch: Optional[str] = record.get(START_MS_COLUMN) or None
        start = self.date_parser.parse(record.get(START_TEXT_COLUMN), epoch_ms=epoch)
        duration_ms = parse_duration_ms(record[DURATION_COLUMN])
        return TimeEntry(start=start, duration_ms=duration_ms)
