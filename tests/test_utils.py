from datetime import datetime, timedelta, timezone

from quiz_engine.utils import time_utils


def test_as_utc_handles_naive_and_aware() -> None:
    naive = datetime(2026, 1, 1, 12, 0)
    assert time_utils.as_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    shifted = datetime(2026, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    converted = time_utils.as_utc(shifted)
    assert converted.hour == 12
    assert converted.tzinfo == timezone.utc

    assert time_utils.as_utc(None) is None


def test_from_epoch_and_now_are_utc() -> None:
    assert time_utils.from_epoch(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert time_utils.utc_now().tzinfo is timezone.utc


def test_format_remaining() -> None:
    assert time_utils.format_remaining(0) == "0:00"
    assert time_utils.format_remaining(65) == "1:05"
    assert time_utils.format_remaining(600) == "10:00"
    assert time_utils.format_remaining(-3) == "0:00"
