"""arbiter: strategy meta-selection.

Every symbol gets the strategy that earned it over the recent past.
Nothing is chosen on reputation.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "1.0.0"
