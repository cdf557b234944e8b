# -----------------------------------------------------------------------------
#  counter.py
#  Closed-form count of length-n sequences over m symbols with exactly k
#  positions equal to their predecessor.
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass

from goodarrays.factorial_table import FactorialTable, default_table
from goodarrays.modmath import power_mod
from goodarrays.utility import InvalidArgument, require_int


@dataclass(frozen=True)
class GoodArrayBreakdown:
    n: int
    m: int
    k: int
    separators: int    # C(n-1, k): where the n-1-k value changes sit
    first_run: int     # m: value of the first run
    later_runs: int    # (m-1)^(n-k-1): each later run differs from the previous
    count: int
    modulus: int


def _table(table: FactorialTable | None) -> FactorialTable:
    return default_table() if table is None else table


def _check_query(n: object, m: object, k: object, table: FactorialTable) -> tuple[int, int, int]:
    n = require_int("n", n)
    m = require_int("m", m)
    k = require_int("k", k)
    # n and m share the table bound; only n-1 is looked up in the table
    bound = table.limit
    if not (1 <= n <= bound):
        raise InvalidArgument(f"n must be in [1, {bound}], got {n}.")
    if not (1 <= m <= bound):
        raise InvalidArgument(f"m must be in [1, {bound}], got {m}.")
    if not (0 <= k <= n - 1):
        raise InvalidArgument(f"k must be in [0, {n - 1}] for n={n}, got {k}.")
    return n, m, k


def comb(n: int, r: int, *, table: FactorialTable | None = None) -> int:
    """C(n, r) mod p from the (default) factorial table."""
    n = require_int("n", n)
    r = require_int("r", r)
    return _table(table).comb(n, r)


def count_good_arrays(n: int, m: int, k: int, *, table: FactorialTable | None = None) -> int:
    """
    Number of length-n sequences over an alphabet of size m with exactly k
    adjacent equal pairs, mod p.

    The n-1 gaps hold n-1-k value changes, which cut the sequence into n-k
    runs: C(n-1, k) placements, m values for the first run and m-1 for each
    of the n-k-1 runs after it. For m == 1 this gives 1 when k == n-1
    (0**0 == 1) and 0 otherwise.
    """
    tbl = _table(table)
    n, m, k = _check_query(n, m, k, tbl)
    mod = tbl.modulus
    return tbl.comb(n - 1, k) * m % mod * power_mod(m - 1, n - k - 1, mod) % mod


def explain_good_arrays(n: int, m: int, k: int, *, table: FactorialTable | None = None) -> GoodArrayBreakdown:
    """Same count as count_good_arrays, with the three factors kept apart."""
    tbl = _table(table)
    n, m, k = _check_query(n, m, k, tbl)
    mod = tbl.modulus

    separators = tbl.comb(n - 1, k)
    first_run = m % mod
    later_runs = power_mod(m - 1, n - k - 1, mod)
    return GoodArrayBreakdown(
        n=n, m=m, k=k,
        separators=separators,
        first_run=first_run,
        later_runs=later_runs,
        count=separators * first_run % mod * later_runs % mod,
        modulus=mod,
    )


def good_array_distribution(n: int, m: int, *, table: FactorialTable | None = None) -> list[int]:
    """[count_good_arrays(n, m, k) for k in 0..n-1]; the entries sum to m**n mod p."""
    tbl = _table(table)
    n, m, _ = _check_query(n, m, 0, tbl)
    mod = tbl.modulus

    # walk k downwards so the power of m-1 grows by one factor per step
    out = [0] * n
    pw = 1
    base = (m - 1) % mod
    for k in range(n - 1, -1, -1):
        out[k] = tbl.comb(n - 1, k) * m % mod * pw % mod
        pw = pw * base % mod
    return out
