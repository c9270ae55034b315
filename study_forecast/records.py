"""
PURPOSE: Normalise score records coming from the dashboard into plain, typed values.

RESPONSIBILITIES:
- Coerce numeric strings and None into floats without raising
- Derive a score from correct/total when no explicit score is given
- Parse ISO strings, dates and datetimes into comparable datetimes
- Sort histories chronologically and purge a single calendar day
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)

__all__ = [
    "ScoreRecord",
    "coerce_score",
    "safe_score",
    "parse_date",
    "to_record",
    "normalize_history",
    "sort_history",
    "purge_date",
]

DateLike = Union[str, date, datetime]


@dataclass(frozen=True)
class ScoreRecord:
    """One logged quiz or exam result.

    Attributes:
        date (datetime): When the result was logged (naive, UTC for aware inputs).
        score (float): Percentage score (0-100).
        total (int, optional): Number of questions.
        correct (int, optional): Number of correct answers.
    """
    date: datetime
    score: float
    total: Optional[int] = None
    correct: Optional[int] = None

    def __post_init__(self):
        parsed = parse_date(self.date)
        if parsed is None:
            raise ValueError(f"ScoreRecord needs a valid date, got {self.date!r}")
        object.__setattr__(self, "date", parsed)
        object.__setattr__(self, "score", coerce_score(self.score))

    @property
    def day(self) -> date:
        """Calendar day of the record."""
        return self.date.date()

    def to_dict(self):
        """Convert to dictionary for JSON serialization."""
        return {
            "date": self.date.isoformat(),
            "score": self.score,
            "total": self.total,
            "correct": self.correct,
        }


def coerce_score(value: Any, default: float = 0.0) -> float:
    """Convert a number or numeric string to a finite float; anything else gives `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def _coerce_count(value: Any) -> Optional[int]:
    if value is None:
        return None
    number = coerce_score(value, default=float("nan"))
    if math.isnan(number):
        return None
    return int(number)


def safe_score(record: Any) -> float:
    """
    Extract the score of a record.

    An explicit `score` wins; otherwise the score is `correct / total * 100`.
    A missing or zero `total` gives 0.
    """
    if isinstance(record, ScoreRecord):
        return record.score
    if isinstance(record, Mapping):
        score = record.get("score")
        correct = record.get("correct")
        total = record.get("total")
    else:
        score = getattr(record, "score", None)
        correct = getattr(record, "correct", None)
        total = getattr(record, "total", None)

    if score is not None and score != "":
        return coerce_score(score)

    total_value = coerce_score(total)
    if total_value <= 0:
        return 0.0
    return coerce_score(correct) / total_value * 100


def parse_date(value: DateLike) -> Optional[datetime]:
    """
    Parse a date-like value into a naive datetime.

    Aware datetimes are converted to UTC first so that mixed inputs compare.
    Returns None when the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparseable date %r", value)
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_record(item: Any) -> Optional[ScoreRecord]:
    """Build a ScoreRecord from a mapping or object; None if it has no usable date."""
    if isinstance(item, ScoreRecord):
        return item
    if item is None:
        return None
    if isinstance(item, Mapping):
        raw_date = item.get("date")
        total = item.get("total")
        correct = item.get("correct")
    else:
        raw_date = getattr(item, "date", None)
        total = getattr(item, "total", None)
        correct = getattr(item, "correct", None)

    parsed = parse_date(raw_date)
    if parsed is None:
        return None
    return ScoreRecord(
        date=parsed,
        score=safe_score(item),
        total=_coerce_count(total),
        correct=_coerce_count(correct),
    )


def normalize_history(history: Optional[Iterable[Any]]) -> List[ScoreRecord]:
    """Convert raw history items to ScoreRecords, dropping entries without a valid date."""
    if history is None:
        return []
    records = []
    for item in history:
        record = to_record(item)
        if record is None:
            logger.debug("Dropping history entry without a valid date: %r", item)
            continue
        records.append(record)
    return records


def sort_history(history: Optional[Iterable[Any]]) -> List[ScoreRecord]:
    """Return the history as ScoreRecords in chronological order (stable for ties)."""
    return sorted(normalize_history(history), key=lambda r: r.date)


def purge_date(history: Optional[Iterable[Any]], day: DateLike) -> List[ScoreRecord]:
    """Return a new history without the records logged on the calendar day `day`."""
    target = parse_date(day)
    records = normalize_history(history)
    if target is None:
        return records
    return [r for r in records if r.day != target.date()]
