#!/usr/bin/env python3
"""
Compute the Sahm indicator and its statistics for every county series.
Writes one time-series CSV per county and an aggregated CSV for the map.
"""
import argparse
from pathlib import Path
import sys
import time

import pandas as pd

sys.path.append(str(Path(__file__).resolve().parents[1]))

from analysis import analyze_series
from config import DEFAULT_RECESSION, FRED_REQUEST_DELAY
from fred_engine import FredDataEngine
from sahm_rule import SahmParams

AGGREGATED_COLUMNS = ["county", "series_id", "accuracy", "recession_lead_time", "committee_lead_time"]


def _round(value):
    return None if value is None else round(value)


def load_counties(path: Path, limit=None) -> pd.DataFrame:
    counties = pd.read_csv(path, dtype=str).fillna("")
    counties = counties[counties["SeriesId"].str.strip() != ""]
    if limit:
        counties = counties.head(limit)
    return counties


def compute_county(engine: FredDataEngine, county: str, series_id: str, recession, params: SahmParams, output_dir: Path):
    """Returns the aggregated row for one county."""
    series = engine.load_time_series(series_id)
    report = analyze_series(series, series, recession, params)

    computed = report.result.frame
    rates = series.values().reindex(computed.index)
    time_series = pd.DataFrame({
        "county": county,
        "date": computed.index.strftime("%Y-%m-%d"),
        "unemployment_rate": rates.values,
        "sahm_value": computed["sahm"].values,
    })
    time_series.to_csv(output_dir / f"{series_id}.csv", index=False)

    stats = report.stats
    return {
        "county": county,
        "series_id": series_id,
        "accuracy": _round(stats.accuracy),
        "recession_lead_time": _round(stats.recession_lead_time),
        "committee_lead_time": _round(stats.committee_lead_time),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Batch Sahm indicator for county unemployment series.")
    parser.add_argument("--counties", default="data/counties.csv", help="CSV with County and SeriesId columns")
    parser.add_argument("--output-dir", default="data/computed")
    parser.add_argument("--recession", default=DEFAULT_RECESSION)
    parser.add_argument("--limit", type=int, default=None, help="Process at most this many counties")
    parser.add_argument("--fetch", action="store_true", help="Fetch missing series from FRED first")
    args = parser.parse_args()

    counties_path = Path(args.counties)
    if not counties_path.exists():
        print(f"Missing {counties_path}")
        return
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    engine = FredDataEngine()
    params = SahmParams()
    counties = load_counties(counties_path, args.limit)
    print(f"Processing {len(counties)} counties with valid SeriesId")

    if args.fetch:
        engine.initialize_data([args.recession])
    recession = engine.load_binary_series(args.recession)

    rows = []
    for i, row in enumerate(counties.itertuples(index=False), start=1):
        county = getattr(row, "County", "") or row.SeriesId
        series_id = row.SeriesId.strip()
        print(f"Processing county {i}/{len(counties)}: {county}")
        if args.fetch and engine.series_version(series_id) is None:
            engine.initialize_data([series_id])
            time.sleep(FRED_REQUEST_DELAY)
        try:
            rows.append(compute_county(engine, county, series_id, recession, params, output_dir))
            print(f"✓ Successfully processed {series_id}")
        except ValueError as e:
            print(f"✗ Failed to process {series_id}: {e}")

    aggregated = pd.DataFrame(rows, columns=AGGREGATED_COLUMNS)
    aggregated_file = output_dir / "map-data-aggregated.csv"
    aggregated.to_csv(aggregated_file, index=False)
    print(f"✓ Written aggregated data for {len(aggregated)} counties to {aggregated_file}")


if __name__ == "__main__":
    main()
