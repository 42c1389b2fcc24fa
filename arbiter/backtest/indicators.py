"""arbiter.backtest.indicators

Indicator helpers over 1D float arrays.

Every function returns an array aligned with its input, NaN-padded where the
lookback is not yet satisfied. Callers check ``np.isfinite`` before acting.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view


def sma(x: np.ndarray, n: int) -> np.ndarray:
    x = x.astype(np.float64)
    out = np.full_like(x, np.nan, dtype=np.float64)
    if n <= 0 or x.size < n:
        return out
    if n == 1:
        return x.copy()

    csum = np.cumsum(x, dtype=np.float64)
    # rolling sum for windows ending at i (inclusive): sum[x[i-n+1:i+1]]
    roll_sum = csum[n - 1 :].copy()
    roll_sum[1:] = roll_sum[1:] - csum[:-n]
    out[n - 1 :] = roll_sum / float(n)
    return out


def ema(x: np.ndarray, n: int) -> np.ndarray:
    """Exponential moving average seeded with the SMA of the first ``n`` values."""

    x = x.astype(np.float64)
    out = np.full_like(x, np.nan, dtype=np.float64)
    if n <= 0 or x.size < n:
        return out

    alpha = 2.0 / (n + 1.0)
    out[n - 1] = float(np.mean(x[:n]))
    for i in range(n, x.size):
        out[i] = alpha * x[i] + (1.0 - alpha) * out[i - 1]
    return out


def rsi(x: np.ndarray, n: int) -> np.ndarray:
    """Wilder RSI. First defined value sits at index ``n``."""

    x = x.astype(np.float64)
    out = np.full_like(x, np.nan, dtype=np.float64)
    if n <= 0 or x.size <= n:
        return out

    diff = np.diff(x)
    up = np.maximum(diff, 0.0)
    down = np.maximum(-diff, 0.0)

    avg_up = float(np.mean(up[:n]))
    avg_down = float(np.mean(down[:n]))
    out[n] = 100.0 if avg_down == 0 else 100.0 - 100.0 / (1.0 + avg_up / avg_down)

    for i in range(n, diff.size):
        avg_up = (avg_up * (n - 1) + up[i]) / n
        avg_down = (avg_down * (n - 1) + down[i]) / n
        out[i + 1] = 100.0 if avg_down == 0 else 100.0 - 100.0 / (1.0 + avg_up / avg_down)

    return out


@dataclass(frozen=True, slots=True)
class Bands:
    middle: np.ndarray
    upper: np.ndarray
    lower: np.ndarray


def bollinger(x: np.ndarray, n: int, k: float) -> Bands:
    x = x.astype(np.float64)
    middle = sma(x, n)
    upper = np.full_like(x, np.nan, dtype=np.float64)
    lower = np.full_like(x, np.nan, dtype=np.float64)
    if n <= 0 or x.size < n:
        return Bands(middle=middle, upper=upper, lower=lower)

    # population standard deviation over each trailing window
    sd = sliding_window_view(x, n).std(axis=1)
    upper[n - 1 :] = middle[n - 1 :] + k * sd
    lower[n - 1 :] = middle[n - 1 :] - k * sd
    return Bands(middle=middle, upper=upper, lower=lower)


@dataclass(frozen=True, slots=True)
class MACD:
    line: np.ndarray
    signal: np.ndarray
    histogram: np.ndarray


def macd(x: np.ndarray, short: int, long: int, signal: int) -> MACD:
    x = x.astype(np.float64)
    line = ema(x, short) - ema(x, long)
    sig = np.full_like(x, np.nan, dtype=np.float64)

    first = int(np.argmax(np.isfinite(line))) if np.any(np.isfinite(line)) else x.size
    if x.size - first >= max(signal, 1):
        sig[first:] = ema(line[first:], signal)
    return MACD(line=line, signal=sig, histogram=line - sig)


def midpoint(high: np.ndarray, low: np.ndarray, n: int, end: int) -> float | None:
    """(highest high + lowest low) / 2 over the ``n`` bars ending at ``end``."""

    if n <= 0 or end < n - 1 or end >= high.size:
        return None
    hh = float(np.max(high[end - n + 1 : end + 1]))
    ll = float(np.min(low[end - n + 1 : end + 1]))
    if not (np.isfinite(hh) and np.isfinite(ll)):
        return None
    return (hh + ll) / 2.0
