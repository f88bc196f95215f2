import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

import numpy as np
import pandas as pd

from fred_engine import FredDataEngine
from sahm_rule import SahmParams, compute_sahm_rule
from timeseries import BinarySeries, MissingSampleWarning, SeriesField


class StubFred:
    def __init__(self, series):
        self.series = series
        self.calls = []

    def get_series(self, series_id, observation_start=None):
        self.calls.append((series_id, observation_start))
        data = self.series[series_id]
        return data[data.index >= pd.Timestamp(observation_start)]


class TestFredEngine(unittest.TestCase):
    def _write_series(self, root: Path, series_id: str, values, dates):
        df = pd.DataFrame({"value": values}, index=dates)
        df.index.name = "date"
        df.to_csv(root / f"{series_id}.csv")

    def test_load_time_series_from_cache(self):
        with TemporaryDirectory() as tmp:
            root = Path(tmp)
            dates = pd.date_range("2020-01-01", periods=13, freq="MS")
            self._write_series(root, "UNRATE", [3.5 + i * 0.1 for i in range(13)], dates)

            engine = FredDataEngine(data_dir=str(root), fred=StubFred({}), request_delay=0)
            series = engine.load_time_series("UNRATE")

            self.assertEqual(len(series), 13)
            self.assertEqual(series.series_id, "UNRATE")
            self.assertEqual(series.last_date, dates[-1])
            self.assertIsNotNone(engine.series_version("UNRATE"))

    def test_missing_series_is_empty(self):
        with TemporaryDirectory() as tmp:
            engine = FredDataEngine(data_dir=tmp, fred=StubFred({}), request_delay=0)
            self.assertTrue(engine.load_time_series("NOPE").empty)
            self.assertTrue(engine.get_series("NOPE").empty)
            self.assertIsNone(engine.series_version("NOPE"))

    def test_load_binary_series(self):
        with TemporaryDirectory() as tmp:
            root = Path(tmp)
            dates = pd.date_range("2020-01-01", periods=4, freq="MS")
            self._write_series(root, "USREC", [0, 1, 1, 0], dates)

            engine = FredDataEngine(data_dir=str(root), fred=StubFred({}), request_delay=0)
            recession = engine.load_binary_series("USREC")
            self.assertIsInstance(recession, BinarySeries)
            self.assertEqual(recession.flags.tolist(), [0, 1, 1, 0])

    def test_update_fetches_adjusted_counterpart(self):
        with TemporaryDirectory() as tmp:
            dates = pd.date_range("2020-01-01", periods=3, freq="MS")
            fred = StubFred({
                "UNRATENSA": pd.Series([4.0, np.nan, 4.4], index=dates),
                "UNRATE": pd.Series([3.9, 4.1, 4.3], index=dates),
            })
            engine = FredDataEngine(data_dir=tmp, fred=fred, request_delay=0)

            updated, requests = engine._update_series("UNRATENSA", force=True)
            self.assertTrue(updated)
            self.assertEqual(requests, 2)

            series = engine.load_time_series("UNRATENSA")
            self.assertEqual(len(series), 3)
            self.assertTrue(np.isnan(series.values().iloc[1]))
            self.assertEqual(series.values(SeriesField.DESEASONALIZED).tolist(), [3.9, 4.1, 4.3])

    def test_missing_observation_survives_ingest(self):
        with TemporaryDirectory() as tmp:
            dates = pd.date_range("2020-01-01", periods=6, freq="MS")
            fred = StubFred({"UNRATE": pd.Series(["4.0", "4.0", ".", "10.0", "4.0", "4.0"], index=dates)})
            engine = FredDataEngine(data_dir=tmp, fred=fred, request_delay=0)
            engine._update_series("UNRATE", force=True)

            series = engine.load_time_series("UNRATE")
            self.assertTrue(series.dates.equals(pd.DatetimeIndex(dates)))
            self.assertTrue(np.isnan(series.values().iloc[2]))

            params = SahmParams(k=3, m=1, time_period=1)
            with self.assertWarns(MissingSampleWarning):
                result = compute_sahm_rule(series, series, params=params)
            base_avg = result.frame["base_avg"]
            # every 3-month window covering March is undefined
            self.assertTrue(base_avg.iloc[2:5].isna().all())
            self.assertAlmostEqual(base_avg.iloc[5], 6.0)

    def test_trailing_gap_is_refetched(self):
        with TemporaryDirectory() as tmp:
            root = Path(tmp)
            dates = pd.date_range("2020-01-01", periods=3, freq="MS")
            self._write_series(root, "USREC", [0, 1, np.nan], dates)
            fred = StubFred({"USREC": pd.Series([0.0, 1.0, 1.0, 0.0], index=pd.date_range("2020-01-01", periods=4, freq="MS"))})
            engine = FredDataEngine(data_dir=str(root), fred=fred, request_delay=0)

            updated, _ = engine._update_series("USREC")
            self.assertTrue(updated)
            self.assertEqual(fred.calls, [("USREC", "2020-02-02")])
            self.assertEqual(engine.load_binary_series("USREC").flags.tolist(), [0, 1, 1, 0])

    def test_incremental_update_appends(self):
        with TemporaryDirectory() as tmp:
            root = Path(tmp)
            dates = pd.date_range("2020-01-01", periods=3, freq="MS")
            self._write_series(root, "USREC", [0, 0, 1], dates)
            new_dates = pd.date_range("2020-03-01", periods=3, freq="MS")
            fred = StubFred({"USREC": pd.Series([1.0, 1.0, 0.0], index=new_dates)})
            engine = FredDataEngine(data_dir=str(root), fred=fred, request_delay=0)

            updated, _ = engine._update_series("USREC")
            self.assertTrue(updated)
            self.assertEqual(fred.calls, [("USREC", "2020-03-02")])

            recession = engine.load_binary_series("USREC")
            self.assertEqual(len(recession), 5)
            self.assertEqual(recession.flags.tolist(), [0, 0, 1, 1, 0])

    def test_fresh_series_is_not_refetched(self):
        with TemporaryDirectory() as tmp:
            root = Path(tmp)
            today = pd.Timestamp.today().normalize()
            self._write_series(root, "UNRATE", [4.0], [today])
            fred = StubFred({})
            engine = FredDataEngine(data_dir=str(root), fred=fred, request_delay=0)

            self.assertEqual(engine._update_series("UNRATE"), (False, 0))
            self.assertEqual(fred.calls, [])

    def test_list_datasets(self):
        with TemporaryDirectory() as tmp:
            engine = FredDataEngine(data_dir=tmp, fred=StubFred({}), request_delay=0)
            datasets = {d["code"]: d for d in engine.list_datasets()}
            self.assertEqual(datasets["USREC"]["header"], "Recessions")
            self.assertFalse(datasets["UNRATE"]["has_data"])


if __name__ == "__main__":
    unittest.main()
