"""Calculation history for calckit.

One history abstraction with a configurable cap, kept most-recent-first,
and an optional persistence sink. ``HistoryFile`` is the file-backed sink:
an append-only log of lines ``timestamp | expression = result | category``
that can be reloaded at startup.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from .errors import CalcResult, ErrorKind

__all__ = [
    "Category",
    "CalculationRecord",
    "CalculationHistory",
    "HistorySink",
    "HistoryFile",
    "HistoryStatistics",
]

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
LIVE_HISTORY_CAP = 10
PERSISTED_HISTORY_CAP = 100


class Category(Enum):
    BASIC = "Basic"
    SCIENTIFIC = "Scientific"
    FINANCIAL = "Financial"
    CONVERSION = "Conversion"


@dataclass(frozen=True)
class CalculationRecord:
    """A single completed calculation."""

    expression_text: str
    result_text: str
    category: Category = Category.BASIC
    timestamp: Optional[datetime] = None

    def __str__(self) -> str:
        return f"{self.expression_text} = {self.result_text}"

    def to_line(self) -> str:
        """Render the persisted form of this record."""
        stamp = (self.timestamp or datetime.now()).strftime(TIMESTAMP_FORMAT)
        return f"{stamp} | {self} | {self.category.value}"

    @classmethod
    def from_line(cls, line: str) -> CalcResult:
        """Parse a persisted line.

        Returns:
            CalcResult holding the record, or a FORMAT error describing why
            the line is malformed.
        """
        parts = [part.strip() for part in line.split("|")]
        if len(parts) != 3:
            return CalcResult.failure(ErrorKind.FORMAT, f"expected 3 fields, got {len(parts)}")

        stamp, calculation, category_name = parts
        try:
            timestamp = datetime.strptime(stamp, TIMESTAMP_FORMAT)
        except ValueError:
            return CalcResult.failure(ErrorKind.FORMAT, f"bad timestamp {stamp!r}")

        expression, sep, result = calculation.rpartition(" = ")
        if not sep or not expression:
            return CalcResult.failure(ErrorKind.FORMAT, "missing ' = ' separator")

        try:
            category = Category(category_name)
        except ValueError:
            return CalcResult.failure(ErrorKind.FORMAT, f"unknown category {category_name!r}")

        return CalcResult.success(
            cls(
                expression_text=expression.strip(),
                result_text=result.strip(),
                category=category,
                timestamp=timestamp,
            )
        )


class HistorySink(Protocol):
    """Anything that wants to be told about each new record."""

    def append(self, record: CalculationRecord) -> None:
        ...


@dataclass
class HistoryStatistics:
    """Counts of records per category."""

    total: int = 0
    basic: int = 0
    scientific: int = 0
    financial: int = 0
    conversion: int = 0

    def count(self, category: Category) -> int:
        return getattr(self, category.name.lower())

    def percentage(self, category: Category) -> float:
        if self.total == 0:
            return 0.0
        return self.count(category) * 100.0 / self.total


class CalculationHistory:
    """Capped, most-recent-first log of calculation records.

    Example:
        >>> history = CalculationHistory(cap=2)
        >>> for n in range(3):
        ...     history.add(CalculationRecord(f"{n} + 0", str(n)))
        >>> [r.result_text for r in history.records]
        ['2', '1']
    """

    def __init__(self, cap: int = LIVE_HISTORY_CAP, sink: Optional[HistorySink] = None):
        if cap <= 0:
            raise ValueError("History cap must be positive")
        self.cap = cap
        self.sink = sink
        self._records: List[CalculationRecord] = []

    def add(self, record: CalculationRecord) -> None:
        """Add a record at the front, drop the oldest beyond the cap, notify the sink."""
        self._records.insert(0, record)
        del self._records[self.cap :]

        if self.sink is not None:
            try:
                self.sink.append(record)
            except OSError as e:
                logger.warning("Could not persist history record: %s", e)

    def restore(self, records: Iterable[CalculationRecord]) -> None:
        """Seed from chronologically ordered records without notifying the sink."""
        for record in records:
            self._records.insert(0, record)
        del self._records[self.cap :]

    @property
    def records(self) -> List[CalculationRecord]:
        return list(self._records)

    @property
    def latest(self) -> Optional[CalculationRecord]:
        return self._records[0] if self._records else None

    @property
    def size(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records.clear()

    def last_result(self) -> Optional[str]:
        return self._records[0].result_text if self._records else None

    def search(self, term: str) -> List[CalculationRecord]:
        """Records whose expression, result or category contains ``term``."""
        return [
            r
            for r in self._records
            if term in r.expression_text or term in r.result_text or term in r.category.value
        ]

    def filter_by_category(self, category: Category) -> List[CalculationRecord]:
        return [r for r in self._records if r.category is category]

    def statistics(self) -> HistoryStatistics:
        stats = HistoryStatistics(total=len(self._records))
        for record in self._records:
            name = record.category.name.lower()
            setattr(stats, name, getattr(stats, name) + 1)
        return stats


class HistoryFile:
    """File-backed history sink.

    Records are appended one per line and the file is compacted back to the
    ``cap`` newest records whenever it grows past them. ``load`` returns the
    most recent ``cap`` well-formed records; malformed lines, including
    lines that are not valid UTF-8, are skipped with a warning.
    """

    def __init__(self, path, cap: int = PERSISTED_HISTORY_CAP):
        self.path = Path(path)
        self.cap = cap

    def append(self, record: CalculationRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(record.to_line() + "\n")
        logger.debug("Persisted history record: %s", record)

        if self._line_count() > self.cap:
            self.compact()

    def _line_count(self) -> int:
        with open(self.path, "rb") as f:
            return sum(1 for _ in f)

    def load(self) -> List[CalculationRecord]:
        """Read records oldest first, keeping at most ``cap`` of the newest."""
        if not self.path.exists():
            return []

        records = []
        with open(self.path, "rb") as f:
            for lineno, raw in enumerate(f, 1):
                try:
                    line = raw.decode("utf-8").strip()
                except UnicodeDecodeError as e:
                    logger.warning(
                        "Skipping malformed history line %d in %s: %s", lineno, self.path, e
                    )
                    continue
                if not line:
                    continue
                parsed = CalculationRecord.from_line(line)
                if not parsed.ok:
                    logger.warning(
                        "Skipping malformed history line %d in %s: %s",
                        lineno,
                        self.path,
                        parsed.error,
                    )
                    continue
                records.append(parsed.value)

        return records[-self.cap :]

    def compact(self) -> None:
        """Rewrite the file keeping only the records ``load`` would return."""
        records = self.load()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            for record in records:
                f.write(record.to_line() + "\n")
        logger.debug("Compacted %s to %d records", self.path, len(records))

    def clear(self) -> None:
        if self.path.exists():
            self.path.write_text("", encoding="utf-8")
