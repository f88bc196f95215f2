import unittest

import pandas as pd

from analysis import SahmAnalyzer, analyze_series
from sahm_rule import SahmParams
from timeseries import AlignmentError, BinarySeries, TimeSeries


def unemployment(start="2006-01-01", periods=48):
    # flat at 4.5, then +0.2 per month from 2008-01
    dates = pd.date_range(start, periods=periods, freq="MS")
    values = [4.5 + max(0, (d.year - 2008) * 12 + d.month - 1) * 0.2 if d.year >= 2008 else 4.5 for d in dates]
    return TimeSeries.from_series(pd.Series(values, index=dates), series_id="UNRATE")


def usrec(start="2005-01-01", periods=72):
    dates = pd.date_range(start, periods=periods, freq="MS")
    flags = [1.0 if pd.Timestamp("2008-01-01") <= d <= pd.Timestamp("2009-06-01") else 0.0 for d in dates]
    return BinarySeries.from_series(pd.Series(flags, index=dates), series_id="USREC")


class StubEngine:
    def __init__(self, series):
        self.series = series
        self.loads = 0
        self.version = 1

    def load_time_series(self, series_id):
        self.loads += 1
        return self.series[series_id]

    def load_binary_series(self, series_id):
        self.loads += 1
        return self.series[series_id]

    def series_version(self, series_id):
        return self.version


class TestAnalyzeSeries(unittest.TestCase):
    def test_report_aligns_and_computes(self):
        base = unemployment()
        report = analyze_series(base, base, usrec(), SahmParams(k=3, m=3, time_period=12))

        frame = report.result.frame
        self.assertEqual(frame.index[0], pd.Timestamp("2006-01-01"))
        self.assertEqual(frame.index[-1], pd.Timestamp("2009-12-01"))
        self.assertEqual(len(report.recession_periods), 1)
        self.assertEqual(report.recession_periods[0].start, pd.Timestamp("2008-01-01"))
        self.assertEqual(report.recession_periods[0].end, pd.Timestamp("2009-06-01"))

        # 3m avg sits 0.2, 0.4, 0.6 above the 4.5 floor in Mar, Apr, May 2008
        self.assertEqual(report.sahm_starts, [pd.Timestamp("2008-05-01")])
        self.assertEqual(report.stats.accuracy, 100.0)
        # recession flags are read from three months before the trigger (Feb 2008)
        self.assertAlmostEqual(report.stats.recession_lead_time, -90.0)

    def test_disjoint_inputs_raise(self):
        base = unemployment(start="1990-01-01", periods=24)
        with self.assertRaises(AlignmentError):
            analyze_series(base, base, usrec())

    def test_to_dict_only_has_defined_rows(self):
        base = unemployment()
        payload = analyze_series(base, base, usrec(), SahmParams(k=3, m=3, time_period=12)).to_dict()
        self.assertEqual(len(payload["data"]), 48 - 13)
        self.assertEqual(payload["warmup_rows"], 13)
        self.assertEqual(payload["sahm_starts"], ["2008-05-01"])
        self.assertEqual(payload["params"]["on_missing"], "propagate")


class TestSahmAnalyzer(unittest.TestCase):
    def test_analyze_loads_by_id_and_memoizes(self):
        engine = StubEngine({"UNRATE": unemployment(), "USREC": usrec()})
        analyzer = SahmAnalyzer(engine)
        params = SahmParams(k=3, m=3, time_period=12)

        first = analyzer.analyze("UNRATE", "UNRATE", "USREC", params)
        loads = engine.loads
        second = analyzer.analyze("UNRATE", "UNRATE", "USREC", params)

        self.assertIs(first, second)
        self.assertEqual(engine.loads, loads)
        self.assertEqual(loads, 2)  # base reused as relative

    def test_new_params_recompute(self):
        engine = StubEngine({"UNRATE": unemployment(), "USREC": usrec()})
        analyzer = SahmAnalyzer(engine)
        low = analyzer.analyze(params=SahmParams(k=3, m=3, time_period=12, alpha_threshold=0.3))
        high = analyzer.analyze(params=SahmParams(k=3, m=3, time_period=12, alpha_threshold=0.5))
        self.assertEqual(low.sahm_starts, [pd.Timestamp("2008-04-01")])
        self.assertEqual(high.sahm_starts, [pd.Timestamp("2008-05-01")])

    def test_memo_stays_bounded_across_params(self):
        engine = StubEngine({"UNRATE": unemployment(), "USREC": usrec()})
        analyzer = SahmAnalyzer(engine, max_reports=4)
        for i in range(20):
            analyzer.analyze(params=SahmParams(k=3, m=3, time_period=12, alpha_threshold=0.3 + i * 1e-6))
        self.assertEqual(analyzer.cached_reports(), 4)

        # most recently used params survive, older ones are recomputed
        loads = engine.loads
        analyzer.analyze(params=SahmParams(k=3, m=3, time_period=12, alpha_threshold=0.3 + 19e-6))
        self.assertEqual(engine.loads, loads)
        analyzer.analyze(params=SahmParams(k=3, m=3, time_period=12, alpha_threshold=0.3))
        self.assertGreater(engine.loads, loads)
        self.assertEqual(analyzer.cached_reports(), 4)

    def test_new_file_version_replaces_old_reports(self):
        engine = StubEngine({"UNRATE": unemployment(), "USREC": usrec()})
        analyzer = SahmAnalyzer(engine)
        params = SahmParams(k=3, m=3, time_period=12)
        first = analyzer.analyze(params=params)
        analyzer.analyze(params=SahmParams(k=3, m=3, time_period=12, alpha_threshold=0.3))
        self.assertEqual(analyzer.cached_reports(), 2)

        engine.version = 2
        second = analyzer.analyze(params=params)
        self.assertIsNot(first, second)
        self.assertEqual(analyzer.cached_reports(), 1)
        self.assertEqual(len(analyzer.cache), 1)


if __name__ == "__main__":
    unittest.main()
