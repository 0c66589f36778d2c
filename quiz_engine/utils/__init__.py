"""Utility modules."""
from quiz_engine.utils.time_utils import as_utc, format_remaining, from_epoch, utc_now

__all__ = [
    "as_utc",
    "format_remaining",
    "from_epoch",
    "utc_now",
]
