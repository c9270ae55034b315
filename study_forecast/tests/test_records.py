"""
PURPOSE: Unit tests for score record normalisation.

Tests cover:
1. Score derivation from correct/total, including zero totals
2. Numeric string coercion
3. Date parsing for ISO strings, dates and aware datetimes
4. Chronological sorting and per-day purge
"""

from datetime import date, datetime, timezone

import numpy as np
import pytest

from study_forecast.records import (
    ScoreRecord,
    coerce_score,
    normalize_history,
    parse_date,
    purge_date,
    safe_score,
    sort_history,
)


class TestSafeScore:

    def test_explicit_score_wins(self):
        assert safe_score({"score": 72, "correct": 1, "total": 10}) == 72.0

    def test_derived_from_correct_total(self):
        assert safe_score({"correct": 8, "total": 10}) == pytest.approx(80.0)

    def test_zero_total_falls_back_to_zero(self):
        assert safe_score({"correct": 8, "total": 0}) == 0.0

    def test_missing_everything_is_zero(self):
        assert safe_score({}) == 0.0

    def test_numeric_string(self):
        assert safe_score({"score": "64.5"}) == 64.5

    def test_garbage_string(self):
        assert safe_score({"score": "n/a"}) == 0.0


class TestCoerceScore:

    def test_non_finite_uses_default(self):
        assert coerce_score(float("inf"), default=3.0) == 3.0
        assert coerce_score(float("nan")) == 0.0

    def test_bool_is_not_a_score(self):
        assert coerce_score(True) == 0.0


class TestParseDate:

    def test_date_only_string(self):
        assert parse_date("2024-01-10") == datetime(2024, 1, 10)

    def test_zulu_suffix(self):
        assert parse_date("2023-01-05T03:00:00.000Z") == datetime(2023, 1, 5, 3, 0)

    def test_aware_datetime_converted_to_utc(self):
        aware = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert parse_date(aware) == datetime(2024, 1, 1, 12, 0)

    def test_date_object(self):
        assert parse_date(date(2024, 2, 29)) == datetime(2024, 2, 29)

    def test_invalid_returns_none(self):
        assert parse_date("yesterday") is None
        assert parse_date(None) is None


class TestHistory:

    def test_invalid_dates_are_dropped(self):
        history = [{"date": "bad", "score": 50}, {"date": "2024-01-01", "score": 60}]
        records = normalize_history(history)
        assert len(records) == 1
        assert records[0].score == 60.0

    def test_accepts_numpy_object_arrays(self):
        history = np.array([{"date": "2024-01-02", "score": 70}, {"date": "2024-01-01", "score": 60}])
        assert [r.score for r in sort_history(history)] == [60.0, 70.0]
        assert normalize_history(np.array([], dtype=object)) == []

    def test_sort_history(self):
        history = [
            {"date": "2024-01-03", "score": 90},
            {"date": "2024-01-01", "score": 50},
            {"date": "2024-01-02", "score": 70},
        ]
        assert [r.score for r in sort_history(history)] == [50.0, 70.0, 90.0]

    def test_purge_date_removes_whole_day(self):
        history = [
            {"date": "2024-01-01T08:00:00", "score": 50},
            {"date": "2024-01-01T20:00:00", "score": 55},
            {"date": "2024-01-02", "score": 70},
        ]
        remaining = purge_date(history, "2024-01-01")
        assert [r.score for r in remaining] == [70.0]

    def test_record_is_immutable(self):
        record = ScoreRecord(date="2024-01-01", score="75")
        assert record.score == 75.0
        with pytest.raises(Exception):
            record.score = 80

    def test_record_requires_valid_date(self):
        with pytest.raises(ValueError):
            ScoreRecord(date="not a date", score=50)
