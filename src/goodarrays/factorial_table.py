# -----------------------------------------------------------------------------
#  factorial_table.py
#  Factorials and inverse factorials mod p, built once and shared read-only.
# -----------------------------------------------------------------------------

from __future__ import annotations

import threading
from time import perf_counter

from goodarrays.modmath import MAX_N, MOD, check_configuration, power_mod
from goodarrays.runtime import debug_trace
from goodarrays.utility import InvalidArgument


class FactorialTable:
    """
    fact[i] = i! mod p and inv_fact[i] = (i!)^-1 mod p for 0 <= i < limit.

    The table starts empty. ensure_initialized() builds it at most once, under
    a lock; the finished sequences are published as tuples before the
    initialized flag is raised, so a reader that sees the flag sees the whole
    table. After that nothing writes to it and no further locking is needed.
    """

    def __init__(self, limit: int = MAX_N, modulus: int = MOD):
        check_configuration(limit, modulus)
        self._limit = limit
        self._mod = modulus
        self._fact: tuple[int, ...] = ()
        self._inv_fact: tuple[int, ...] = ()
        self._initialized = False
        self._lock = threading.Lock()
        self.builds = 0

    def __repr__(self) -> str:
        state = "initialized" if self._initialized else "empty"
        return f"FactorialTable(limit={self._limit}, modulus={self._mod}, {state})"

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def modulus(self) -> int:
        return self._mod

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def fact(self) -> tuple[int, ...]:
        self.ensure_initialized()
        return self._fact

    @property
    def inv_fact(self) -> tuple[int, ...]:
        self.ensure_initialized()
        return self._inv_fact

    def ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            self._build()

    def _build(self) -> None:
        t0 = perf_counter()
        limit, mod = self._limit, self._mod

        fact = [1] * limit
        for i in range(1, limit):
            fact[i] = fact[i - 1] * i % mod

        # one Fermat inverse, then (i-1)!^-1 = i!^-1 * i walking down
        inv_fact = [1] * limit
        inv_fact[limit - 1] = power_mod(fact[limit - 1], mod - 2, mod)
        for i in range(limit - 1, 0, -1):
            inv_fact[i - 1] = inv_fact[i] * i % mod

        self._fact = tuple(fact)
        self._inv_fact = tuple(inv_fact)
        self._initialized = True
        self.builds += 1

        ms = (perf_counter() - t0) * 1000.0
        debug_trace(f"factorial table built: limit={limit}, modulus={mod} in {ms:.2f} ms")

    def comb(self, n: int, r: int) -> int:
        """C(n, r) mod p, for 0 <= r <= n < limit."""
        if not (0 <= r <= n < self._limit):
            raise InvalidArgument(
                f"comb({n}, {r}) needs 0 <= r <= n < {self._limit}."
            )
        self.ensure_initialized()
        mod = self._mod
        return self._fact[n] * self._inv_fact[r] % mod * self._inv_fact[n - r] % mod


# --- shared default table ------------------------------------------------------

_default: FactorialTable | None = None
_default_lock = threading.Lock()


def default_table() -> FactorialTable:
    """The process-wide table for MAX_N / MOD, created on first use."""
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = FactorialTable()
    return _default
