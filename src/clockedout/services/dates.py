"""Timestamp normalisation for time-tracking exports.

Exports carry either an epoch-millisecond ``Start`` column, a free-text
``Start Text`` column such as ``12/01/2025, 3:45:57 PM IST``, or both. The
epoch value wins when present. Free text is resolved by an ordered list of
strategies; the first one that produces an instant is used and its name is
logged so odd files can be diagnosed after the fact.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Protocol, Sequence

from ..errors import InvalidDate, TimezoneConversionFailed
from ..logging_config import get_logger

logger = get_logger(__name__)

IST = timezone(timedelta(hours=5, minutes=30), "IST")
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DATETIME_FORMAT = "%m/%d/%Y, %I:%M:%S %p"
DATE_FORMAT = "%m/%d/%Y"

# Fixed offsets for the abbreviations time trackers commonly print. Ambiguous
# abbreviations resolve to the zone these exports actually use (IST = India).
TIMEZONE_ABBREVIATIONS: dict[str, timedelta] = {
    "UTC": timedelta(0),
    "GMT": timedelta(0),
    "Z": timedelta(0),
    "IST": timedelta(hours=5, minutes=30),
    "EST": timedelta(hours=-5),
    "EDT": timedelta(hours=-4),
    "CST": timedelta(hours=-6),
    "CDT": timedelta(hours=-5),
    "MST": timedelta(hours=-7),
    "MDT": timedelta(hours=-6),
    "PST": timedelta(hours=-8),
    "PDT": timedelta(hours=-7),
    "AKST": timedelta(hours=-9),
    "AKDT": timedelta(hours=-8),
    "HST": timedelta(hours=-10),
    "BST": timedelta(hours=1),
    "WET": timedelta(0),
    "WEST": timedelta(hours=1),
    "CET": timedelta(hours=1),
    "CEST": timedelta(hours=2),
    "EET": timedelta(hours=2),
    "EEST": timedelta(hours=3),
    "MSK": timedelta(hours=3),
    "GST": timedelta(hours=4),
    "PKT": timedelta(hours=5),
    "NPT": timedelta(hours=5, minutes=45),
    "ICT": timedelta(hours=7),
    "SGT": timedelta(hours=8),
    "HKT": timedelta(hours=8),
    "JST": timedelta(hours=9),
    "KST": timedelta(hours=9),
    "ACST": timedelta(hours=9, minutes=30),
    "AEST": timedelta(hours=10),
    "AEDT": timedelta(hours=11),
    "NZST": timedelta(hours=12),
    "NZDT": timedelta(hours=13),
}

MAX_TIMEZONE_TOKEN_LENGTH = 5


class DateStrategy(Protocol):
    """One way of turning free text into an aware ``datetime``."""

    name: str

    def parse(self, text: str) -> Optional[datetime]:  # pragma: no cover - interface
        """Return an aware datetime, or None when this strategy does not apply."""
        ...


def _split_trailing_token(text: str) -> tuple[str, str] | None:
    head, sep, token = text.rpartition(" ")
    if not sep or not head or not token:
        return None
    return head.strip(), token


def _strptime(text: str, formats: Sequence[str]) -> Optional[datetime]:
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


@dataclass
class AbbreviationStrategy:
    """``MM/dd/yyyy, h:mm:ss a TZ`` where TZ is a known abbreviation."""

    abbreviations: dict[str, timedelta] = field(default_factory=lambda: dict(TIMEZONE_ABBREVIATIONS))
    name: str = "timezone-abbreviation"

    def parse(self, text: str) -> Optional[datetime]:
        parts = _split_trailing_token(text)
        if parts is None:
            return None
        head, token = parts
        offset = self.abbreviations.get(token.upper())
        if offset is None:
            return None
        naive = _strptime(head, (DATETIME_FORMAT,))
        if naive is None:
            return None
        return naive.replace(tzinfo=timezone(offset, token.upper()))


@dataclass
class NaiveFormatStrategy:
    """Timestamps without a zone, read in a fixed assumed offset."""

    assumed_tz: tzinfo = IST
    formats: tuple[str, ...] = (DATETIME_FORMAT, DATE_FORMAT)
    name: str = "naive-format"

    def parse(self, text: str) -> Optional[datetime]:
        naive = _strptime(text, self.formats)
        if naive is None:
            return None
        return naive.replace(tzinfo=self.assumed_tz)


@dataclass
class FlexibleFallbackStrategy:
    """Drop an unrecognised short trailing token and assume a fixed offset.

    Covers abbreviations missing from the table (``12/01/2025, 3:45:57 PM XYZ``).
    ``strptime`` accepts one- and two-digit months, so ``1/05/2025`` parses too.
    """

    assumed_tz: tzinfo = IST
    max_token_length: int = MAX_TIMEZONE_TOKEN_LENGTH
    name: str = "fixed-offset-fallback"

    def parse(self, text: str) -> Optional[datetime]:
        parts = _split_trailing_token(text)
        if parts is None:
            return None
        head, token = parts
        if len(token) > self.max_token_length:
            return None
        naive = _strptime(head, (DATETIME_FORMAT,))
        if naive is None:
            return None
        return naive.replace(tzinfo=self.assumed_tz)


def default_strategies(fallback_tz: tzinfo = IST) -> list[DateStrategy]:
    """Strategies in resolution order; the fixed-offset fallback is always last."""

    return [
        AbbreviationStrategy(),
        NaiveFormatStrategy(assumed_tz=fallback_tz),
        FlexibleFallbackStrategy(assumed_tz=fallback_tz),
    ]


class DateParser:
    """Resolve export timestamps to UTC instants."""

    def __init__(self, strategies: Sequence[DateStrategy] | None = None, *, fallback_tz: tzinfo = IST):
        self.strategies = list(strategies) if strategies is not None else default_strategies(fallback_tz)

    @staticmethod
    def from_epoch_ms(value: int) -> datetime:
        return EPOCH + timedelta(milliseconds=value)

    def parse(self, text: str | None, epoch_ms: str | int | None = None) -> datetime:
        """Return the UTC instant for a row's start fields.

        Raises:
            InvalidDate: when neither field yields an instant.
        """

        if epoch_ms is not None:
            try:
                millis = int(str(epoch_ms).strip())
            except ValueError:
                millis = None
            if millis is not None:
                try:
                    return self.from_epoch_ms(millis)
                except (OverflowError, OSError, ValueError) as exc:
                    raise InvalidDate(str(epoch_ms), "Epoch milliseconds out of range") from exc

        trimmed = (text or "").strip()
        if not trimmed:
            raise InvalidDate(text or "", "No start time provided")

        for strategy in self.strategies:
            parsed = strategy.parse(trimmed)
            if parsed is not None:
                logger.debug("Parsed %r with %s strategy", trimmed, strategy.name)
                try:
                    return parsed.astimezone(timezone.utc)
                except OverflowError as exc:
                    raise TimezoneConversionFailed(trimmed) from exc

        raise InvalidDate(trimmed, "Could not parse date in any supported format")
