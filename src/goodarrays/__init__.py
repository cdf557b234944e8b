from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("goodarrays")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .counter import GoodArrayBreakdown, comb, count_good_arrays, explain_good_arrays, good_array_distribution
from .factorial_table import FactorialTable, default_table
from .modmath import MAX_N, MOD, power_mod
from .runtime import APPLY, CFG
from .utility import ConfigurationError, InvalidArgument, UserInputError

__all__ = [
    "APPLY",
    "CFG",
    "MAX_N",
    "MOD",
    "ConfigurationError",
    "FactorialTable",
    "GoodArrayBreakdown",
    "InvalidArgument",
    "UserInputError",
    "__version__",
    "comb",
    "count_good_arrays",
    "default_table",
    "explain_good_arrays",
    "good_array_distribution",
    "power_mod",
]
