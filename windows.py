"""
Sliding Window Engine
Trailing moving averages and rolling minimums computed in a single pass.
"""
from collections import deque

import numpy as np
import pandas as pd


def _as_array(values) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise ValueError("window functions expect a one-dimensional sequence")
    return arr


def _wrap(result: np.ndarray, values):
    if isinstance(values, pd.Series):
        return pd.Series(result, index=values.index, name=values.name)
    return result


def _check_window(window: int) -> None:
    if int(window) != window or window < 1:
        raise ValueError(f"window must be a positive integer, got {window!r}")


def moving_average(values, window: int):
    """
    Calculate the trailing N-period mean

    Args:
        values: pd.Series or 1-D array-like of floats (NaN = missing)
        window: Number of samples per window (N >= 1)

    Returns:
        Same shape as the input. Positions before N-1 are NaN, as is any
        position whose window contains a missing sample.
    """
    _check_window(window)
    arr = _as_array(values)
    means = np.full(len(arr), np.nan)

    total = 0.0
    missing = 0
    for i, incoming in enumerate(arr):
        if np.isnan(incoming):
            missing += 1
        else:
            total += incoming

        if i >= window:
            outgoing = arr[i - window]
            if np.isnan(outgoing):
                missing -= 1
            else:
                total -= outgoing

        if i >= window - 1 and missing == 0:
            means[i] = total / window

    return _wrap(means, values)


def rolling_min(values, window: int, propagate_missing: bool = False):
    """
    Calculate the N-period rolling minimum with a monotonic deque

    The deque holds indices whose values strictly increase from front to
    back, so the front is always the minimum of the current window. Missing
    samples never enter the deque.

    Args:
        values: pd.Series or 1-D array-like of floats (NaN = missing)
        window: Number of samples per window (N >= 1)
        propagate_missing: If True, any missing sample in the window makes
            that position NaN; otherwise only an all-missing window does.

    Returns:
        Same shape as the input, NaN before position N-1.
    """
    _check_window(window)
    arr = _as_array(values)
    mins = np.full(len(arr), np.nan)
    candidates = deque()
    missing = 0

    for i, incoming in enumerate(arr):
        oldest = i - window + 1
        if candidates and candidates[0] < oldest:
            candidates.popleft()
        if oldest > 0 and np.isnan(arr[oldest - 1]):
            missing -= 1

        if np.isnan(incoming):
            missing += 1
        else:
            while candidates and arr[candidates[-1]] >= incoming:
                candidates.pop()
            candidates.append(i)

        if i < window - 1 or not candidates:
            continue
        if propagate_missing and missing:
            continue
        mins[i] = arr[candidates[0]]

    return _wrap(mins, values)
