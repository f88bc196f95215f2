"""
FRED Data Engine
Handles incremental fetching and CSV persistence of the series the Sahm
indicator is computed from.
"""
import time
from datetime import datetime, timedelta
from pathlib import Path

import pandas as pd
from fredapi import Fred

from config import DATA_DIR, DATASETS, FRED_API_KEY, FRED_REQUEST_DELAY, FRED_START_DATE
from timeseries import BinarySeries, SeriesField, TimeSeries


class FredDataEngine:
    def __init__(self, data_dir: str = DATA_DIR, fred=None, request_delay: float = FRED_REQUEST_DELAY):
        self.fred = fred or (Fred(api_key=FRED_API_KEY) if FRED_API_KEY else None)
        self.can_fetch = self.fred is not None
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.request_delay = request_delay

        # Flatten structure for easy lookup
        self.series_map = {}
        for cat_id, cat in DATASETS.items():
            for series_id, meta in cat['series'].items():
                self.series_map[series_id] = dict(meta, category=cat_id, header=cat['name'])
        if not self.can_fetch:
            print("⚠️ FRED_API_KEY not set. Running in cached-data mode only.")

    def _file_path(self, series_id: str) -> Path:
        return self.data_dir / f"{series_id}.csv"

    def _max_age_days(self, freq: str) -> int:
        freq = (freq or "M").upper()
        return {
            "D": 2,
            "W": 10,
            "M": 45,
            "Q": 140,
        }.get(freq, 30)

    def _is_stale(self, last_date: pd.Timestamp, freq: str) -> bool:
        if last_date is None or pd.isna(last_date):
            return True
        age_days = (datetime.now() - last_date).days
        return age_days > self._max_age_days(freq)

    def get_frame(self, series_id: str) -> pd.DataFrame:
        """Cached observations with value and, when known, deseasonalized_value"""
        file_path = self._file_path(series_id)
        if not file_path.exists():
            return pd.DataFrame(columns=[SeriesField.VALUE.value])
        df = pd.read_csv(file_path, index_col=0, parse_dates=True)
        df.index.name = "date"
        return df.sort_index()

    def get_series(self, series_id: str) -> pd.Series:
        """Get full history for a series from local CSV"""
        df = self.get_frame(series_id)
        return df[SeriesField.VALUE.value].astype(float)

    def series_version(self, series_id: str):
        file_path = self._file_path(series_id)
        return file_path.stat().st_mtime if file_path.exists() else None

    def load_time_series(self, series_id: str) -> TimeSeries:
        return TimeSeries(self.get_frame(series_id), series_id=series_id)

    def load_binary_series(self, series_id: str) -> BinarySeries:
        return BinarySeries(self.get_frame(series_id), series_id=series_id)

    def _fetch(self, series_id: str, start_date: str) -> pd.Series:
        # fredapi maps FRED's "." missing marker to NaN; the row is kept so
        # the gap stays a missing sample rather than a missing date
        data = self.fred.get_series(series_id, observation_start=start_date)
        data = pd.to_numeric(data, errors="coerce")
        data.index = pd.to_datetime(data.index)
        return data

    def _update_series(self, series_id: str, force: bool = False) -> tuple[bool, int]:
        """
        Update a single series and its seasonally adjusted counterpart.
        Returns (updated, requests) where requests counts API calls made.
        """
        if not self.can_fetch:
            return False, 0
        meta = self.series_map.get(series_id, {})
        freq = meta.get("freq", "M")
        adjusted_id = meta.get("adjusted")
        start_date = FRED_START_DATE
        existing = None

        if not force:
            existing = self.get_frame(series_id)
            if not existing.empty:
                # Resume from the last observed value so trailing gaps get refetched
                last_date = existing[SeriesField.VALUE.value].last_valid_index()
                if last_date is None:
                    last_date = existing.index.min() - timedelta(days=1)
                if not self._is_stale(last_date, freq):
                    return False, 0  # Up to date
                start_date = (last_date + timedelta(days=1)).strftime('%Y-%m-%d')

        requests = 0
        try:
            requests += 1
            raw = self._fetch(series_id, start_date)
            if raw.dropna().empty:
                return False, requests

            new_df = pd.DataFrame({SeriesField.VALUE.value: raw})
            if adjusted_id == series_id:
                new_df[SeriesField.DESEASONALIZED.value] = raw
            elif adjusted_id:
                time.sleep(self.request_delay)
                requests += 1
                adjusted = self._fetch(adjusted_id, start_date)
                new_df[SeriesField.DESEASONALIZED.value] = adjusted.reindex(raw.index)
            new_df.index.name = "date"

            if existing is not None and not existing.empty:
                final_df = pd.concat([existing, new_df])
                final_df = final_df[~final_df.index.duplicated(keep='last')]  # Dedup
            else:
                final_df = new_df

            final_df.sort_index().to_csv(self._file_path(series_id))
            return True, requests

        except Exception as e:
            print(f"⚠️ Failed to update {series_id}: {e}")
            return False, requests

    def initialize_data(self, series_ids=None, refresh_existing: bool = False) -> int:
        """Fetch missing series; when refresh_existing is True, refetch everything."""
        series_ids = list(series_ids or self.series_map)
        print(f"🚀 Initializing FRED Data Engine with {len(series_ids)} series...")
        if not self.can_fetch:
            print("✅ Initialization skipped (no API key). Using cached data only.")
            return 0
        updated_count = 0

        for series_id in series_ids:
            if not refresh_existing and self._file_path(series_id).exists():
                continue
            updated, requests = self._update_series(series_id, force=refresh_existing)
            if updated:
                updated_count += 1
            if requests:
                # Respect FRED rate limits (120/min)
                time.sleep(self.request_delay)

        print(f"✅ Initialization complete. Updated {updated_count} series.")
        return updated_count

    def refresh_stale(self, series_ids=None) -> int:
        """Refresh only stale series."""
        print("Refreshing stale FRED series...")
        if not self.can_fetch:
            print("⚠️ Cannot refresh without FRED_API_KEY.")
            return 0
        updated_count = 0
        for series_id in list(series_ids or self.series_map):
            updated, requests = self._update_series(series_id, force=False)
            if updated:
                updated_count += 1
            if requests:
                time.sleep(self.request_delay)
        print(f"✅ Refresh complete. Updated {updated_count} series.")
        return updated_count

    def list_datasets(self) -> list[dict]:
        return [
            {
                "code": series_id,
                "name": meta["name"],
                "header": meta["header"],
                "category": meta["category"],
                "freq": meta.get("freq"),
                "unit": meta.get("unit"),
                "has_data": self._file_path(series_id).exists(),
            }
            for series_id, meta in self.series_map.items()
        ]
