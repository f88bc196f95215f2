from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
import numpy as np
import math
import threading

from analysis import SahmAnalyzer
from config import (
    ALPHA_THRESHOLD,
    DEFAULT_BASE,
    DEFAULT_RECESSION,
    DEFAULT_RELATIVE,
    SAHM_K,
    SAHM_M,
    SAHM_SEASONAL,
    SAHM_TIME_PERIOD,
)
from fred_engine import FredDataEngine
from sahm_rule import SahmParams
from timeseries import AlignmentError

# Initialize FastAPI
app = FastAPI(title="Sahm Rule Monitor", description="Recession indicator and lead-time statistics")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize Engines
engine = FredDataEngine()
analyzer = SahmAnalyzer(engine)

# Helpers
def convert_numpy_types(obj):
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        val = float(obj)
        return None if not math.isfinite(val) else val
    if isinstance(obj, dict):
        return {k: convert_numpy_types(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [convert_numpy_types(i) for i in obj]
    return obj

@app.get("/api/status")
async def get_status():
    return {
        "status": "online",
        "datasets": len(engine.series_map),
        "data_mode": "cached" if not engine.can_fetch else "live",
    }

@app.get("/api/datasets")
async def get_datasets():
    return engine.list_datasets()

@app.get("/api/sahm")
async def get_sahm(
    base: str = DEFAULT_BASE,
    relative: str = DEFAULT_RELATIVE,
    recession: str = DEFAULT_RECESSION,
    k: int = Query(SAHM_K, ge=1),
    m: int = Query(SAHM_M, ge=1),
    time_period: int = Query(SAHM_TIME_PERIOD, ge=1),
    seasonal: bool = SAHM_SEASONAL,
    alpha_threshold: float = ALPHA_THRESHOLD,
):
    """Indicator series, recession periods and accuracy/lead-time stats"""
    for series_id in (base, relative, recession):
        if engine.series_version(series_id) is None:
            raise HTTPException(status_code=404, detail=f"Series {series_id} not found or no data")
    try:
        params = SahmParams(k=k, m=m, time_period=time_period, seasonal=seasonal, alpha_threshold=alpha_threshold)
        report = analyzer.analyze(base, relative, recession, params)
    except (AlignmentError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return convert_numpy_types(report.to_dict())

@app.get("/api/series/{series_id}")
async def get_series_data(series_id: str):
    """Get chart data for a specific series"""
    frame = engine.get_frame(series_id)
    if frame.empty:
        raise HTTPException(status_code=404, detail="Series not found or no data")

    payload = {
        "id": series_id,
        "name": engine.series_map.get(series_id, {}).get('name', series_id),
        "data": [
            {"date": d.strftime("%Y-%m-%d"), **{col: row[col] for col in frame.columns}}
            for d, row in frame.iterrows()
        ],
    }
    return convert_numpy_types(payload)

@app.get("/api/admin/refresh")
async def refresh_stale():
    """Refresh stale FRED data in the background"""
    threading.Thread(target=engine.refresh_stale).start()
    return {"message": "Stale refresh started in background"}

if __name__ == "__main__":
    import uvicorn
    print("\n🚀 Starting Sahm Rule Monitor...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
