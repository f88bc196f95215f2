"""
Sahm Analysis Engine
Runs the full indicator pipeline: align -> compute -> extract -> statistics.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Optional

import pandas as pd

from alignment import align_series
from config import ANALYSIS_CACHE_SIZE, DEFAULT_BASE, DEFAULT_RECESSION, DEFAULT_RELATIVE
from event_stats import IndicatorStats, compute_stats
from sahm_rule import SahmParams, SahmResult, compute_sahm_rule, extract_periods, get_sahm_starts
from timeseries import BinarySeries, Period, TimeSeries


@dataclass(frozen=True)
class SahmReport:
    params: SahmParams
    result: SahmResult
    recession_periods: List[Period]
    sahm_starts: List[pd.Timestamp]
    stats: IndicatorStats

    def to_dict(self) -> dict:
        return {
            "params": {
                "k": self.params.k,
                "m": self.params.m,
                "time_period": self.params.time_period,
                "seasonal": self.params.seasonal,
                "alpha_threshold": self.params.alpha_threshold,
                "accuracy_time_range": self.params.accuracy_time_range,
                "committee_time_range": self.params.committee_time_range,
                "on_missing": self.params.on_missing.value,
            },
            "data": [r.to_dict() for r in self.result.records() if r.defined],
            "warmup_rows": self.result.warmup_rows,
            "missing_rows": self.result.missing_rows,
            "recession_periods": [p.to_dict() for p in self.recession_periods],
            "sahm_starts": [d.strftime("%Y-%m-%d") for d in self.sahm_starts],
            "stats": self.stats.to_dict(),
        }


def analyze_series(
    base: TimeSeries,
    relative: TimeSeries,
    recession: BinarySeries,
    params: Optional[SahmParams] = None,
    committee_dates: Optional[Iterable] = None,
) -> SahmReport:
    """Align the three inputs and compute the indicator with its statistics."""
    params = params or SahmParams()
    base, relative, recession = align_series(base, relative, recession)
    if not base.dates.equals(relative.dates):
        # Same range, different sampling: compute on the shared dates only
        shared = base.dates.intersection(relative.dates)
        base = TimeSeries(base.frame.loc[shared], series_id=base.series_id)
        relative = TimeSeries(relative.frame.loc[shared], series_id=relative.series_id)

    result = compute_sahm_rule(base, relative, recession, params)
    return SahmReport(
        params=params,
        result=result,
        recession_periods=extract_periods(recession),
        sahm_starts=get_sahm_starts(result),
        stats=compute_stats(result, recession, committee_dates, params),
    )


class SahmAnalyzer:
    def __init__(self, engine, max_reports: int = ANALYSIS_CACHE_SIZE):
        self.engine = engine
        self.max_reports = max_reports
        # (base, relative, recession) -> {"versions": ..., "reports": OrderedDict[params, report]}
        self.cache = {}

    def _version(self, series_id: str):
        version = getattr(self.engine, "series_version", None)
        return version(series_id) if version else None

    def cached_reports(self) -> int:
        return sum(len(entry["reports"]) for entry in self.cache.values())

    def analyze(
        self,
        base: str = DEFAULT_BASE,
        relative: str = DEFAULT_RELATIVE,
        recession: str = DEFAULT_RECESSION,
        params: Optional[SahmParams] = None,
    ) -> SahmReport:
        """Main entry point: load series by id and build the report"""
        params = params or SahmParams()
        ids = (base, relative, recession)
        versions = tuple(self._version(s) for s in ids)

        entry = self.cache.get(ids)
        if entry is None or entry["versions"] != versions:
            # A refreshed CSV invalidates every report built from the old data
            entry = {"versions": versions, "reports": OrderedDict()}
            self.cache[ids] = entry
        reports = entry["reports"]
        if params in reports:
            reports.move_to_end(params)
            return reports[params]

        base_series = self.engine.load_time_series(base)
        relative_series = base_series if relative == base else self.engine.load_time_series(relative)
        recession_series = self.engine.load_binary_series(recession)

        report = analyze_series(base_series, relative_series, recession_series, params)
        reports[params] = report
        while len(reports) > self.max_reports:
            reports.popitem(last=False)
        return report
