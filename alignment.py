"""
Date-range alignment for independently sourced series.
"""
from __future__ import annotations

from typing import Tuple

import pandas as pd

from timeseries import AlignmentError, TimeSeries


def common_date_range(*series: TimeSeries) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """Return the closed interval covered by every input series."""
    if not series:
        raise AlignmentError("at least one series is required")
    for s in series:
        if s.empty:
            raise AlignmentError(f"cannot align empty series {s.series_id or '?'}")

    start = max(s.first_date for s in series)
    end = min(s.last_date for s in series)
    if start > end:
        ids = ", ".join(s.series_id or "?" for s in series)
        raise AlignmentError(
            f"no overlapping dates between {ids} (latest start {start.date()}, earliest end {end.date()})"
        )
    return start, end


def align_series(*series: TimeSeries) -> Tuple[TimeSeries, ...]:
    """
    Restrict every series to the common date range.

    Returns new series of the same types, in the input order.
    """
    start, end = common_date_range(*series)
    return tuple(s.between(start, end) for s in series)
