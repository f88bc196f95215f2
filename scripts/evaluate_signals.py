"""
Evaluation harness for the Sahm indicator.
Runs on cached data; no network calls required.
"""
import argparse
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from analysis import SahmAnalyzer
from config import DEFAULT_BASE, DEFAULT_RECESSION, DEFAULT_RELATIVE
from fred_engine import FredDataEngine
from sahm_rule import SahmParams
from timeseries import AlignmentError


def _fmt_days(value) -> str:
    return "n/a" if value is None else f"{value:.0f} days"


def evaluate(base: str, relative: str, recession: str, params: SahmParams) -> None:
    engine = FredDataEngine()
    analyzer = SahmAnalyzer(engine)

    try:
        report = analyzer.analyze(base, relative, recession, params)
    except AlignmentError as e:
        print(f"Cannot evaluate {base}/{relative} against {recession}: {e}")
        return

    stats = report.stats
    defined = report.result.defined()
    if defined.empty:
        print(f"Not enough overlapping history to evaluate {base}/{relative}.")
        return
    print(f"Evaluating {defined.index.min().date()} to {defined.index.max().date()}"
          f" | k={params.k} m={params.m} time_period={params.time_period} alpha={params.alpha_threshold}")
    print(f"  recessions: {len(report.recession_periods)}")
    for period in report.recession_periods:
        print(f"    {period.start.date()} -> {period.end.date()}")
    print(f"  triggers: {stats.trigger_count}")
    for start in report.sahm_starts:
        print(f"    {start.date()}")
    accuracy = "n/a" if stats.accuracy is None else f"{stats.accuracy:.0f}%"
    print(f"  accuracy (+/-{params.accuracy_time_range}d): {accuracy}")
    print(f"  recession lead time: {_fmt_days(stats.recession_lead_time)}")
    print(f"  committee lead time: {_fmt_days(stats.committee_lead_time)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Evaluate Sahm indicator accuracy and lead times.")
    parser.add_argument("--base", default=DEFAULT_BASE)
    parser.add_argument("--relative", default=DEFAULT_RELATIVE)
    parser.add_argument("--recession", default=DEFAULT_RECESSION)
    parser.add_argument("--k", type=int, default=SahmParams.k)
    parser.add_argument("--m", type=int, default=SahmParams.m)
    parser.add_argument("--time-period", type=int, default=SahmParams.time_period)
    parser.add_argument("--alpha", type=float, default=SahmParams.alpha_threshold)
    parser.add_argument("--seasonal", action="store_true", help="Use the seasonally adjusted field")
    args = parser.parse_args()
    evaluate(
        args.base,
        args.relative,
        args.recession,
        SahmParams(k=args.k, m=args.m, time_period=args.time_period,
                   alpha_threshold=args.alpha, seasonal=args.seasonal),
    )
