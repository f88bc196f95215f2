"""
Sahm Monitor Configuration
Indicator defaults, FRED access settings and the dataset catalogue.
"""
import os

# FRED API Key - configure via environment variable for deployment safety
FRED_API_KEY = os.getenv("FRED_API_KEY", "")
FRED_START_DATE = os.getenv("FRED_START_DATE", "1990-01-01")
FRED_REQUEST_DELAY = float(os.getenv("FRED_REQUEST_DELAY", "0.6"))
DATA_DIR = os.getenv("DATA_DIR", "data")

# Indicator defaults (k = base window, m = relative window)
SAHM_K = int(os.getenv("SAHM_K", "3"))
SAHM_M = int(os.getenv("SAHM_M", "3"))
SAHM_TIME_PERIOD = int(os.getenv("SAHM_TIME_PERIOD", "13"))
SAHM_SEASONAL = os.getenv("SAHM_SEASONAL", "false").lower() in ("1", "true", "yes")
ALPHA_THRESHOLD = float(os.getenv("ALPHA_THRESHOLD", "0.5"))

# Tolerance windows in days for event matching
ACCURACY_TIME_RANGE = int(os.getenv("ACCURACY_TIME_RANGE", "200"))
COMMITTEE_TIME_RANGE = int(os.getenv("COMMITTEE_TIME_RANGE", "250"))

# "propagate" or "substitute_default"
ON_MISSING = os.getenv("ON_MISSING", "propagate")
MISSING_DEFAULT = float(os.getenv("MISSING_DEFAULT", "0"))

# Recession starts are matched from this many months before the first trigger
RECESSION_LOOKBACK_MONTHS = int(os.getenv("RECESSION_LOOKBACK_MONTHS", "3"))

# Reports kept per (base, relative, recession) triple by the analyzer memo
ANALYSIS_CACHE_SIZE = int(os.getenv("ANALYSIS_CACHE_SIZE", "32"))

DEFAULT_BASE = os.getenv("DEFAULT_BASE", "UNRATE")
DEFAULT_RELATIVE = os.getenv("DEFAULT_RELATIVE", "UNRATE")
DEFAULT_RECESSION = os.getenv("DEFAULT_RECESSION", "USREC")

# NBER Business Cycle Dating Committee announcement dates
COMMITTEE_STARTS = [
    "2020-06-08",
    "2008-12-01",
    "2001-11-26",
    "1991-04-25",
    "1982-01-06",
    "1980-06-03",
]

# Datasets selectable as base/relative/recession inputs.
# "adjusted" names the seasonally adjusted counterpart of a raw series.
DATASETS = {
    "unemployment": {
        "name": "Unemployment",
        "description": "Headline and demographic unemployment rates",
        "series": {
            "UNRATE": {"name": "Unemployment Rate", "freq": "M", "unit": "%", "adjusted": "UNRATE"},
            "UNRATENSA": {"name": "Unemployment Rate (NSA)", "freq": "M", "unit": "%", "adjusted": "UNRATE"},
            "U6RATE": {"name": "Underemployment (U6)", "freq": "M", "unit": "%", "adjusted": "U6RATE"},
            "LNS14000006": {"name": "Unemployment Rate - Black", "freq": "M", "unit": "%", "adjusted": "LNS14000006"},
            "LNS14000009": {"name": "Unemployment Rate - Hispanic", "freq": "M", "unit": "%", "adjusted": "LNS14000009"},
            "LNS14000024": {"name": "Unemployment Rate - 20 Yrs & Over", "freq": "M", "unit": "%", "adjusted": "LNS14000024"},
            "LNS14000012": {"name": "Unemployment Rate - 16-19 Yrs", "freq": "M", "unit": "%", "adjusted": "LNS14000012"},
        }
    },
    "labor": {
        "name": "Labor Market",
        "description": "Claims and insured unemployment",
        "series": {
            "IURSA": {"name": "Insured Unemployment Rate", "freq": "W", "unit": "%", "adjusted": "IURSA"},
            "CCSA": {"name": "Continued Claims", "freq": "W", "unit": "K", "adjusted": "CCSA"},
        }
    },
    "recessions": {
        "name": "Recessions",
        "description": "Binary recession indicators",
        "series": {
            "USREC": {"name": "NBER Recession Indicator", "freq": "M", "unit": "Binary", "adjusted": None},
            "USRECM": {"name": "NBER Recession Indicator (Midpoint)", "freq": "M", "unit": "Binary", "adjusted": None},
            "JHDUSRGDPBR": {"name": "GDP-Based Recession Indicator", "freq": "Q", "unit": "Binary", "adjusted": None},
        }
    },
}
