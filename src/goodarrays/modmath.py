# -----------------------------------------------------------------------------
#  modmath.py
#  Modulus, table bound and fast modular exponentiation.
# -----------------------------------------------------------------------------

from __future__ import annotations

from sympy import isprime

from goodarrays.utility import ConfigurationError, InvalidArgument, require_int

MOD = 1_000_000_007
MAX_N = 100_000


def power_mod(base: int, exponent: int, modulus: int = MOD) -> int:
    """
    Return base**exponent % modulus by square-and-multiply.

    The base may be any integer (it is reduced first); exponent must be >= 0.
    exponent == 0 gives 1 for every base, 0 included.
    """
    base = require_int("base", base)
    exponent = require_int("exponent", exponent)
    if exponent < 0:
        raise InvalidArgument(f"exponent must be >= 0, got {exponent}.")

    result = 1 % modulus
    b = base % modulus
    e = exponent
    while e > 0:
        if e & 1:
            result = result * b % modulus
        b = b * b % modulus
        e >>= 1
    return result


def check_configuration(limit: int, modulus: int) -> None:
    """
    The inverse-factorial recurrence needs a prime modulus larger than every
    table index; anything else silently corrupts the table.
    """
    if limit < 1:
        raise ConfigurationError(f"table limit must be >= 1, got {limit}.")
    if not isprime(modulus):
        raise ConfigurationError(f"modulus {modulus} is not prime.")
    if limit >= modulus:
        raise ConfigurationError(f"table limit {limit} must be smaller than the modulus {modulus}.")
