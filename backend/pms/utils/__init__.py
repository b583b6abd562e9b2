"""Utility functions and helpers."""

from pms.utils.datetime_utils import epoch_millis, utc_now

__all__ = [
    "epoch_millis",
    "utc_now",
]
