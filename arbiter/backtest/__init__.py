"""arbiter.backtest

Backtesting and meta-selection.

- sweep: parameter grids
- simulator: single-position replay of one strategy over one window
- selector: evaluate every candidate, pick one per symbol, execute it
- engine: full cash/shares portfolio backtest
- suggest: per-symbol selection, best symbol overall, capital-aware sizing
"""
