"""
Time Series Data Model
Validated containers for dated observations, binary flags, periods and
indicator outputs, plus the error/warning taxonomy shared by the engine.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd


class AlignmentError(ValueError):
    """Input series are empty or share no common date range."""


class InsufficientHistoryWarning(UserWarning):
    """No output row accumulated enough history to be defined."""


class MissingSampleWarning(UserWarning):
    """Missing samples inside active windows left rows undefined."""


class SeriesField(str, Enum):
    VALUE = "value"
    DESEASONALIZED = "deseasonalized_value"

    @classmethod
    def from_seasonal(cls, seasonal: bool) -> "SeriesField":
        return cls.DESEASONALIZED if seasonal else cls.VALUE


class MissingPolicy(str, Enum):
    PROPAGATE = "propagate"
    SUBSTITUTE_DEFAULT = "substitute_default"


def _to_dates(values) -> pd.DatetimeIndex:
    dates = pd.DatetimeIndex(pd.to_datetime(values))
    if dates.tz is not None:
        dates = dates.tz_localize(None)
    return dates.normalize().rename("date")


class TimeSeries:
    """
    Ordered (date, value) samples, ascending and unique by date.

    Backed by a DataFrame indexed by ``date`` with a ``value`` column and an
    optional ``deseasonalized_value`` column. Missing values are NaN. The
    frame is copied on construction and never modified afterwards.
    """

    def __init__(self, frame: pd.DataFrame, series_id: str = ""):
        if SeriesField.VALUE.value not in frame.columns:
            raise ValueError(f"{series_id or 'series'}: missing 'value' column")
        columns = [f.value for f in SeriesField if f.value in frame.columns]
        data = frame[columns].apply(pd.to_numeric, errors="coerce").astype(float)
        data.index = _to_dates(frame.index)
        if not data.index.is_unique:
            raise ValueError(f"{series_id or 'series'}: dates must be unique")
        if not data.index.is_monotonic_increasing:
            raise ValueError(f"{series_id or 'series'}: dates must be sorted ascending")
        self._frame = data
        self.series_id = series_id
        self._validate()

    def _validate(self) -> None:
        pass

    @classmethod
    def from_series(cls, series: pd.Series, series_id: str = "", deseasonalized: Optional[pd.Series] = None):
        frame = pd.DataFrame({SeriesField.VALUE.value: series})
        if deseasonalized is not None:
            frame[SeriesField.DESEASONALIZED.value] = deseasonalized.reindex(series.index)
        return cls(frame, series_id=series_id or (series.name or ""))

    @classmethod
    def from_records(cls, records: Iterable[Mapping], series_id: str = ""):
        """Build from dicts carrying ``date``, ``value`` and optionally ``deseasonalized_value``."""
        frame = pd.DataFrame(list(records))
        if frame.empty:
            frame = pd.DataFrame(columns=["date", SeriesField.VALUE.value])
        return cls(frame.set_index("date"), series_id=series_id)

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def dates(self) -> pd.DatetimeIndex:
        return self._frame.index

    @property
    def empty(self) -> bool:
        return self._frame.empty

    @property
    def first_date(self) -> Optional[pd.Timestamp]:
        return None if self.empty else self._frame.index[0]

    @property
    def last_date(self) -> Optional[pd.Timestamp]:
        return None if self.empty else self._frame.index[-1]

    def has_field(self, field: SeriesField) -> bool:
        return field.value in self._frame.columns

    def values(self, field: SeriesField = SeriesField.VALUE) -> pd.Series:
        if not self.has_field(field):
            raise ValueError(f"{self.series_id or 'series'} has no '{field.value}' field")
        return self._frame[field.value].copy()

    def between(self, start, end) -> "TimeSeries":
        start, end = pd.Timestamp(start), pd.Timestamp(end)
        mask = (self._frame.index >= start) & (self._frame.index <= end)
        return type(self)(self._frame.loc[mask], series_id=self.series_id)

    def __len__(self) -> int:
        return len(self._frame)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TimeSeries):
            return NotImplemented
        return self._frame.equals(other._frame)

    def __repr__(self) -> str:
        span = "empty" if self.empty else f"{self.first_date.date()}..{self.last_date.date()}"
        return f"{type(self).__name__}({self.series_id or '?'}, {len(self)} obs, {span})"


class BinarySeries(TimeSeries):
    """TimeSeries whose values are restricted to {0, 1} (NaN allowed as missing)."""

    def _validate(self) -> None:
        flags = self._frame[SeriesField.VALUE.value].dropna()
        if not flags.isin([0.0, 1.0]).all():
            bad = flags[~flags.isin([0.0, 1.0])]
            raise ValueError(
                f"{self.series_id or 'series'}: binary values must be 0 or 1, got {bad.iloc[0]!r} at {bad.index[0].date()}"
            )

    @property
    def flags(self) -> pd.Series:
        return self._frame[SeriesField.VALUE.value].astype("Int8")


@dataclass(frozen=True)
class Period:
    start: pd.Timestamp
    end: pd.Timestamp

    def __post_init__(self):
        object.__setattr__(self, "start", pd.Timestamp(self.start))
        object.__setattr__(self, "end", pd.Timestamp(self.end))
        if self.start > self.end:
            raise ValueError(f"Period start {self.start.date()} is after end {self.end.date()}")

    def to_dict(self) -> dict:
        return {"start": self.start.strftime("%Y-%m-%d"), "end": self.end.strftime("%Y-%m-%d")}


@dataclass(frozen=True)
class IndicatorRecord:
    date: pd.Timestamp
    value: Optional[float]
    binary: Optional[int]
    recession_reference: Optional[int]

    @property
    def defined(self) -> bool:
        return self.value is not None

    def to_dict(self) -> dict:
        return {
            "date": self.date.strftime("%Y-%m-%d"),
            "value": self.value,
            "binary": self.binary,
            "recession": self.recession_reference,
        }


@dataclass(frozen=True)
class LeadLagSummary:
    average_days_leading: Optional[float]
    average_days_lagging: Optional[float]
    overall_average_days: Optional[float]

    def to_dict(self) -> dict:
        return {
            "average_days_leading": self.average_days_leading,
            "average_days_lagging": self.average_days_lagging,
            "overall_average_days": self.overall_average_days,
        }


def optional_float(value) -> Optional[float]:
    if value is None or value is pd.NA:
        return None
    value = float(value)
    return None if np.isnan(value) else value
