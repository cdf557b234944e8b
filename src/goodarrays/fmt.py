# src/goodarrays/fmt.py
from __future__ import annotations

import re

from colorama import Fore, Style

from goodarrays.counter import GoodArrayBreakdown

ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def strip_ansi(s: str | None) -> str:
    """Return s with ANSI escape sequences removed."""
    return "" if s is None else ANSI_RE.sub("", s)


def query_key(n: int, m: int, k: int | None = None) -> str:
    """Filesystem-safe tag for a query, e.g. 'n=5_m=2_k=0' or 'n=5_m=2'."""
    key = f"n={n}_m={m}"
    return key if k is None else f"{key}_k={k}"


def format_count(n: int, m: int, k: int, count: int) -> str:
    return f"{Fore.CYAN}good arrays(n={n}, m={m}, k={k}){Style.RESET_ALL} = {Style.BRIGHT}{count}{Style.RESET_ALL}"


def format_breakdown(b: GoodArrayBreakdown) -> list[str]:
    runs = b.n - b.k
    return [
        f"  runs of equal values .......... {runs}",
        f"  C(n-1, k) = C({b.n - 1}, {b.k}) ....... {b.separators}",
        f"  first run (m) ................. {b.first_run}",
        f"  later runs (m-1)^{runs - 1} ......... {b.later_runs}",
        f"  {Fore.YELLOW}all values mod {b.modulus}{Style.RESET_ALL}",
    ]


def format_distribution(n: int, m: int, counts: list[int], modulus: int) -> list[str]:
    width = len(str(n - 1))
    lines = [f"{Fore.CYAN}good arrays(n={n}, m={m}, k) for k = 0..{n - 1}{Style.RESET_ALL}"]
    for k, c in enumerate(counts):
        lines.append(f"  k={k:<{width}}  {c}")
    lines.append(f"  total = {sum(counts) % modulus} (= {m}^{n} mod {modulus})")
    return lines
