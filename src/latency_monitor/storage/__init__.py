"""
Storage backends for probe results and alert thresholds.
"""

from datetime import datetime


def truncate_to_millisecond(timestamp: datetime) -> datetime:
    """
    Truncates a timestamp to millisecond precision.

    Results are keyed by (endpoint, timestamp) at millisecond granularity, so
    two results of the same endpoint reported in the same millisecond share
    a key and the later write overwrites the earlier one.
    """
    return timestamp.replace(microsecond=timestamp.microsecond // 1000 * 1000)
