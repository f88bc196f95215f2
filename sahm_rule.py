"""
Sahm Rule Engine
Builds the recession indicator from a base and a relative series and
extracts the contiguous periods of a binary flag series.

indicator = avg_k(base) - min_T(avg_m(relative))
binary    = indicator >= alpha_threshold
"""
from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from typing import List, Optional, Union

import pandas as pd

from config import (
    ACCURACY_TIME_RANGE,
    ALPHA_THRESHOLD,
    COMMITTEE_TIME_RANGE,
    MISSING_DEFAULT,
    ON_MISSING,
    SAHM_K,
    SAHM_M,
    SAHM_SEASONAL,
    SAHM_TIME_PERIOD,
)
from timeseries import (
    AlignmentError,
    BinarySeries,
    IndicatorRecord,
    InsufficientHistoryWarning,
    MissingPolicy,
    MissingSampleWarning,
    Period,
    SeriesField,
    TimeSeries,
    optional_float,
)
from windows import moving_average, rolling_min


def _positive_int(name: str, value) -> int:
    if isinstance(value, bool) or int(value) != value or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class SahmParams:
    k: int = SAHM_K
    m: int = SAHM_M
    time_period: int = SAHM_TIME_PERIOD
    seasonal: bool = SAHM_SEASONAL
    alpha_threshold: float = ALPHA_THRESHOLD
    accuracy_time_range: int = ACCURACY_TIME_RANGE
    committee_time_range: int = COMMITTEE_TIME_RANGE
    on_missing: MissingPolicy = MissingPolicy(ON_MISSING)
    missing_default: float = MISSING_DEFAULT

    def __post_init__(self):
        for name in ("k", "m", "time_period", "accuracy_time_range", "committee_time_range"):
            object.__setattr__(self, name, _positive_int(name, getattr(self, name)))
        alpha = float(self.alpha_threshold)
        if not math.isfinite(alpha):
            raise ValueError(f"alpha_threshold must be finite, got {self.alpha_threshold!r}")
        object.__setattr__(self, "alpha_threshold", alpha)
        object.__setattr__(self, "seasonal", bool(self.seasonal))
        object.__setattr__(self, "on_missing", MissingPolicy(self.on_missing))
        object.__setattr__(self, "missing_default", float(self.missing_default))

    @property
    def field(self) -> SeriesField:
        return SeriesField.from_seasonal(self.seasonal)

    @property
    def warmup(self) -> int:
        """Rows before the first position with full history in both windows."""
        return max(self.k - 1, self.m - 1 + self.time_period - 1)


@dataclass(frozen=True)
class SahmResult:
    frame: pd.DataFrame
    params: SahmParams
    warmup_rows: int
    missing_rows: int

    @property
    def indicator(self) -> pd.Series:
        return self.frame["sahm"]

    @property
    def binary(self) -> pd.Series:
        return self.frame["sahm_binary"]

    def defined(self) -> pd.DataFrame:
        return self.frame[self.frame["sahm"].notna()]

    def records(self) -> List[IndicatorRecord]:
        records = []
        for row in self.frame.itertuples():
            records.append(IndicatorRecord(
                date=row.Index,
                value=optional_float(row.sahm),
                binary=None if pd.isna(row.sahm_binary) else int(row.sahm_binary),
                recession_reference=None if pd.isna(row.recession) else int(row.recession),
            ))
        return records


def _prepare(values: pd.Series, params: SahmParams) -> pd.Series:
    if params.on_missing is MissingPolicy.SUBSTITUTE_DEFAULT:
        return values.fillna(params.missing_default)
    return values


def compute_sahm_rule(
    base: TimeSeries,
    relative: TimeSeries,
    recession: Optional[BinarySeries] = None,
    params: Optional[SahmParams] = None,
) -> SahmResult:
    """
    Compute the indicator for every date of the aligned base/relative pair.

    Args:
        base: Series averaged over k periods (minuend)
        relative: Series averaged over m periods, then minimised over
            time_period periods (subtrahend)
        recession: Optional reference flags, joined by date for display and
            statistics only
        params: Window sizes, threshold, field selection and missing policy

    Returns:
        SahmResult whose frame holds base_avg, relative_min, sahm,
        sahm_binary and recession columns indexed by date.
    """
    params = params or SahmParams()
    if not base.dates.equals(relative.dates):
        raise AlignmentError(
            f"base {base.series_id or '?'} and relative {relative.series_id or '?'} must share identical dates"
        )

    field = params.field
    base_values = _prepare(base.values(field), params)
    relative_values = _prepare(relative.values(field), params)

    base_avg = moving_average(base_values, params.k)
    relative_min = rolling_min(
        moving_average(relative_values, params.m),
        params.time_period,
        propagate_missing=True,
    )
    sahm = base_avg - relative_min

    defined = sahm.notna()
    binary = pd.Series(pd.NA, index=sahm.index, dtype="Int8")
    binary[defined] = (sahm[defined] >= params.alpha_threshold).astype("int8")

    if recession is not None:
        flags = recession.values(SeriesField.VALUE).reindex(base.dates)
        if params.on_missing is MissingPolicy.SUBSTITUTE_DEFAULT:
            flags = flags.fillna(0)
        flags = flags.astype("Int8")
    else:
        flags = pd.Series(pd.NA, index=base.dates, dtype="Int8")

    frame = pd.DataFrame({
        "base_avg": base_avg,
        "relative_min": relative_min,
        "sahm": sahm,
        "sahm_binary": binary,
        "recession": flags,
    })
    frame.index.name = "date"

    n = len(frame)
    warmup_rows = min(n, params.warmup)
    missing_rows = int((~defined.iloc[warmup_rows:]).sum())

    label = base.series_id or "base"
    if missing_rows:
        warnings.warn(
            f"{label}: {missing_rows} rows undefined because of missing samples",
            MissingSampleWarning,
            stacklevel=2,
        )
    if n and warmup_rows >= n:
        warnings.warn(
            f"{label}: {n} observations are not enough history for k={params.k}, "
            f"m={params.m}, time_period={params.time_period}",
            InsufficientHistoryWarning,
            stacklevel=2,
        )

    return SahmResult(frame=frame, params=params, warmup_rows=warmup_rows, missing_rows=missing_rows)


def _as_flags(flags: Union[TimeSeries, pd.Series]) -> pd.Series:
    if isinstance(flags, BinarySeries):
        return flags.flags
    if isinstance(flags, TimeSeries):
        return BinarySeries(flags.frame, series_id=flags.series_id).flags
    return BinarySeries.from_series(pd.Series(flags)).flags


def extract_periods(flags: Union[TimeSeries, pd.Series]) -> List[Period]:
    """
    Return the maximal runs of 1s as Periods, in date order.

    Missing flags cannot start or continue a run. A run still open at the
    end of the series closes on the last date.
    """
    periods = []
    start = None
    last_on = None
    for date, flag in _as_flags(flags).items():
        if not pd.isna(flag) and flag == 1:
            if start is None:
                start = date
            last_on = date
        elif start is not None:
            periods.append(Period(start, last_on))
            start = None

    if start is not None:
        periods.append(Period(start, last_on))
    return periods


def period_starts(periods: List[Period]) -> List[pd.Timestamp]:
    return [p.start for p in periods]


def get_sahm_starts(result: SahmResult) -> List[pd.Timestamp]:
    """Dates on which the indicator switched on."""
    return period_starts(extract_periods(result.binary))
