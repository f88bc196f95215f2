"""
Event Statistics
Compares indicator trigger dates with reference events (recession starts,
committee announcements): detection accuracy and lead/lag in days.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from config import COMMITTEE_STARTS, RECESSION_LOOKBACK_MONTHS
from sahm_rule import SahmParams, SahmResult, extract_periods, get_sahm_starts, period_starts
from timeseries import BinarySeries, LeadLagSummary


def _day_numbers(dates: Iterable) -> np.ndarray:
    index = pd.DatetimeIndex(pd.to_datetime(list(dates)))
    if index.tz is not None:
        index = index.tz_localize(None)
    return index.normalize().values.astype("datetime64[D]").astype(np.int64)


def _check_tolerance(tolerance_days) -> None:
    if tolerance_days < 0:
        raise ValueError(f"tolerance_days must be >= 0, got {tolerance_days!r}")


def days_to_nearest(candidates, references, tolerance_days: int) -> List[Optional[int]]:
    """
    Signed day distance (reference - candidate) from each candidate to its
    nearest reference within +/- tolerance_days.

    Positive means the candidate came first (leading). Candidates with no
    reference in range get None. Equidistant references resolve to the
    earlier one.
    """
    _check_tolerance(tolerance_days)
    refs = np.sort(_day_numbers(references))
    results = []
    for day in _day_numbers(candidates):
        pos = int(np.searchsorted(refs, day))
        best = None
        # refs[pos - 1] is the earlier neighbour, so it wins ties
        for j in (pos - 1, pos):
            if 0 <= j < len(refs):
                diff = int(refs[j] - day)
                if best is None or abs(diff) < abs(best):
                    best = diff
        if best is not None and abs(best) <= tolerance_days:
            results.append(best)
        else:
            results.append(None)
    return results


def accuracy_percent(candidates, references, tolerance_days: int) -> Optional[float]:
    """
    Percentage (0-100) of candidates with a reference within +/- tolerance_days.

    Returns None when there are no candidates.
    """
    matches = days_to_nearest(candidates, references, tolerance_days)
    if not matches:
        return None
    hits = sum(1 for m in matches if m is not None)
    return hits / len(matches) * 100


def _mean(values: List[int]) -> Optional[float]:
    if not values:
        return None
    return float(np.mean(values))


def lead_lag_summary(candidates, references, tolerance_days: int) -> LeadLagSummary:
    """
    Average lead (> 0), lag (< 0) and overall signed distance in days.

    Same-day matches count toward the overall average only. Candidates with
    no reference in range are left out of all three.
    """
    observations = [d for d in days_to_nearest(candidates, references, tolerance_days) if d is not None]
    return LeadLagSummary(
        average_days_leading=_mean([d for d in observations if d > 0]),
        average_days_lagging=_mean([d for d in observations if d < 0]),
        overall_average_days=_mean(observations),
    )


@dataclass(frozen=True)
class IndicatorStats:
    accuracy: Optional[float]
    recession_lead_time: Optional[float]
    committee_lead_time: Optional[float]
    trigger_count: int
    recession_count: int
    recession_summary: LeadLagSummary
    committee_summary: LeadLagSummary

    def to_dict(self) -> dict:
        return {
            "accuracy": self.accuracy,
            "recession_lead_time": self.recession_lead_time,
            "committee_lead_time": self.committee_lead_time,
            "trigger_count": self.trigger_count,
            "recession_count": self.recession_count,
            "recession_summary": self.recession_summary.to_dict(),
            "committee_summary": self.committee_summary.to_dict(),
        }


def recession_starts_near(recession: BinarySeries, first_trigger: Optional[pd.Timestamp]) -> List[pd.Timestamp]:
    """
    Recession start dates from a few months before the first trigger onward.

    With no trigger there is nothing to match against, so no starts.
    """
    if first_trigger is None:
        return []
    if not recession.empty:
        cutoff = first_trigger - pd.DateOffset(months=RECESSION_LOOKBACK_MONTHS)
        recession = recession.between(cutoff, max(cutoff, recession.last_date))
    return period_starts(extract_periods(recession))


def compute_stats(
    result: SahmResult,
    recession: BinarySeries,
    committee_dates: Optional[Iterable] = None,
    params: Optional[SahmParams] = None,
) -> IndicatorStats:
    """Accuracy and lead times of the indicator's trigger starts."""
    params = params or result.params
    if committee_dates is None:
        committee_dates = COMMITTEE_STARTS

    starts = get_sahm_starts(result)
    recessions = recession_starts_near(recession, starts[0] if starts else None)

    recession_summary = lead_lag_summary(starts, recessions, params.accuracy_time_range)
    committee_summary = lead_lag_summary(starts, committee_dates, params.committee_time_range)

    return IndicatorStats(
        accuracy=accuracy_percent(starts, recessions, params.accuracy_time_range),
        recession_lead_time=recession_summary.overall_average_days,
        committee_lead_time=committee_summary.average_days_leading,
        trigger_count=len(starts),
        recession_count=len(recessions),
        recession_summary=recession_summary,
        committee_summary=committee_summary,
    )
