# runtime.py
from __future__ import annotations

import sys
from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import TYPE_CHECKING, Any

from colorama import Fore, Style

if TYPE_CHECKING:
    from goodarrays.config import Settings


@dataclass
class Runtime:
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False  # controls [debug] traces / tracebacks
    eager_init: bool = False  # build the factorial table at startup

    def apply(self, settings: Settings | dict[str, Any]) -> None:
        """Install a loaded profile (or a plain settings dict) and sync the flags."""
        if isinstance(settings, dict):
            self.profile_name = "default"
            self.settings = dict(settings)
        else:
            self.profile_name = settings.name
            self.settings = dict(settings.as_dict())

        # sync runtime flags from profile
        ei = self.get("BEHAVIOUR.EAGER_INIT", None)
        if isinstance(ei, bool):
            self.eager_init = ei

        dbg = self.get("BEHAVIOUR.DEBUG", None)
        if isinstance(dbg, bool):
            self.debug = dbg

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup into the profile, e.g. 'OUTPUT.SHOW_DETAILS'."""
        if not key:
            return default
        cur: Any = self.settings
        for part in key.split("."):
            if not isinstance(cur, dict) or part not in cur:
                return default
            cur = cur[part]
        return cur


# --- Context management ---

_current_runtime: ContextVar[Runtime | None] = ContextVar("goodarrays_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = Runtime()
        _current_runtime.set(rt)
    return rt


def reset() -> None:
    """Drop the runtime of the current context (a fresh default is made on next use)."""
    _current_runtime.set(None)


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


def debug_trace(msg: str) -> None:
    """Write a [debug] line to stderr when the runtime debug flag is on."""
    if current().debug:
        print(f"[debug] {msg}", file=sys.stderr)


# ---- Dependency check --------------------------------------------------------

def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    Verify core runtime deps are available without importing them here.
    If strict=True, prints a friendly error and returns False when missing.
    """
    required = ("sympy",)
    missing = [name for name in required if find_spec(name) is None]

    if not missing:
        return True

    msg = (
        f"{Fore.RED}{Style.BRIGHT}\nMissing dependencies:{Style.RESET_ALL} "
        + ", ".join(missing)
        + "\nInstall with: "
        + f"{Fore.YELLOW}pip install " + " ".join(missing) + f"{Style.RESET_ALL}"
    )
    print(msg)
    return not strict
