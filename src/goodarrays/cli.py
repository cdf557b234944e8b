# src/goodarrays/cli.py

"""
Good Arrays - count sequences with exactly k equal neighbours

Description:
    Counts, modulo 1_000_000_007, the length-n sequences over an alphabet of
    m symbols in which exactly k positions repeat their predecessor.

usage: see goodarrays -h
"""

from __future__ import annotations

import argparse
import faulthandler
import sys
import textwrap
import threading
import time
import traceback
from collections import deque
from importlib.resources import files as pkg_files
from typing import NamedTuple

from colorama import Fore, Style
from colorama import init as colorama_init

import goodarrays.config as CONFIG
from goodarrays import __version__ as _ver
from goodarrays.counter import explain_good_arrays, good_array_distribution
from goodarrays.factorial_table import default_table
from goodarrays.fmt import format_breakdown, format_count, format_distribution, query_key
from goodarrays.output_manager import OutputManager
from goodarrays.runtime import APPLY, CFG, ensure_runtime_deps
from goodarrays.runtime import current as _rt_current
from goodarrays.utility import (
    UserInputError,
    clear_screen,
    flatten_dotted,
    parse_int,
    typename,
    validate_output_setting,
)
from goodarrays.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir

COMMANDS = ("init", "where", "active", "profiles")


# In memory session history
class HistoryItem(NamedTuple):
    query: tuple[int, ...]
    profile: str | None
    timestamp: float


HISTORY_SIZE = 200
_HISTORY: deque[HistoryItem] = deque(maxlen=HISTORY_SIZE)


def add_to_history(query: tuple[int, ...], profile: str | None = None) -> None:
    _HISTORY.append(HistoryItem(query=query, profile=profile, timestamp=time.time()))


def get_history() -> list[HistoryItem]:
    return list(_HISTORY)


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    try:
        faulthandler.enable()
    except ValueError:
        # stderr has no file descriptor (captured or redirected)
        pass

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook

    def _thread_excepthook(args):
        sys.stderr.write("\n[UNCAUGHT THREAD EXCEPTION]\n")
        traceback.print_exception(args.exc_type, args.exc_value, args.exc_traceback, file=sys.stderr)
        sys.stderr.flush()
    threading.excepthook = _thread_excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if not (msg.startswith("Invalid input:") or msg.startswith("Error:")):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _parse_numbers(tokens: list[str]) -> tuple[int, ...]:
    nums = []
    for tok in tokens:
        v = parse_int(tok)
        if v is None:
            raise UserInputError(f"Invalid input: '{tok}' is not an integer.")
        nums.append(v)
    if len(nums) not in (2, 3):
        raise UserInputError("Invalid input: expected N M [K].")
    return tuple(nums)


def _resolve_inputs(items: list[str]) -> tuple[str | None, tuple[int, ...]]:
    """Return (profile, numbers) from the positionals.

    Rules:
      - first item non-numeric -> profile name, the rest are numbers
      - otherwise all items are numbers
      - numbers: none, N M (distribution) or N M K (single count)
    """
    if not items:
        return None, ()

    profile = None
    rest = items
    if parse_int(items[0]) is None:
        profile, rest = items[0], items[1:]
    if not rest:
        return profile, ()
    return profile, _parse_numbers(rest)


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      init
          Create the workspace folder and copy packaged sample profiles if missing.

      init overwrite
          Copy the packaged profiles again, replacing your edited copies.

      where
          Show the workspace and package paths.

      active
          Show the profile remembered from the last interactive session.

      profiles
          List the available profiles.
    """)

    p = argparse.ArgumentParser(
        prog="goodarrays",
        description="Good Arrays — count length-n sequences over m symbols with k equal neighbours (mod 1e9+7)",
        usage=(
            "goodarrays [profile] [N M [K]] [--output OUTPUT] [--quiet] [--no-details] [--debug]\n"
            "       goodarrays -h | --help\n"
            "       goodarrays init [overwrite] | where | active | profiles\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="[profile] N M [K]",
                   help="optional profile name, then N M for all k or N M K for one count")
    p.add_argument("--output", default=None, help="Write results to a file (also prints unless --quiet)")
    p.add_argument("--quiet", action="store_true", help="Suppress screen output")
    p.add_argument("--no-details", action="store_true", help="Omit the factor breakdown")
    p.add_argument("--debug", action="store_true", help="Show [debug] traces and full tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")
    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = "--debug" in (argv if argv is not None else sys.argv)
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


def _run_command(cmd: str, items: list[str]) -> int:
    if cmd == "init":
        overwrite = len(items) == 2 and items[1] == "overwrite"
        ws, copied = seed_workspace(overwrite=overwrite)
        note = " (overwrote existing files)" if overwrite else ""
        print(f"Workspace ready at: {ws}{note}")
        print(f"Copied -> profiles: {copied.get('profiles', 0)}")
        return 0
    if cmd == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('goodarrays')}")
        return 0
    if cmd == "active":
        print(f"Active profile: {CONFIG.read_current_profile() or 'default'}")
        return 0
    print_profiles_with_descriptions()
    return 0


def print_profiles_with_descriptions() -> None:
    items = CONFIG.list_profiles_with_descriptions()
    if not items:
        print("No profiles found.")
        return
    width = max(len(name) for name, _ in items)
    for name, desc in items:
        print(f"  {Fore.GREEN}{name:<{width}}{Style.RESET_ALL}  {desc}")


def _debug_dump_profile(selected: CONFIG.Settings) -> None:
    print(f"[debug] active profile: {selected.name}", file=sys.stderr)
    if selected._source:
        print(f"[debug] profile file: {selected._source}", file=sys.stderr)
    print("[debug] profile keys (runtime value/type):", file=sys.stderr)
    flat = flatten_dotted(selected.as_dict())
    for k in sorted(flat.keys(), key=str.lower):
        v = CFG(k, None)
        print(f"        {k:.<40} {v!r} ({typename(v)})", file=sys.stderr)
    print(file=sys.stderr)


def _apply_profile(name: str, *, force_debug: bool = False) -> None:
    selected = CONFIG.load_settings(name)
    APPLY(selected)
    rt = _rt_current()
    if force_debug:
        rt.debug = True
    if rt.debug:
        _debug_dump_profile(selected)
    if rt.eager_init:
        default_table().ensure_initialized()


def run_query(nums: tuple[int, ...], om: OutputManager, *, show_details: bool) -> None:
    """Print one count (N M K) or the whole distribution over k (N M)."""
    if len(nums) == 3:
        n, m, k = nums
        b = explain_good_arrays(n, m, k)
        om.write(format_count(n, m, k, b.count))
        if show_details:
            om.write_lines(format_breakdown(b))
        return

    n, m = nums
    counts = good_array_distribution(n, m)
    om.write_lines(format_distribution(n, m, counts, default_table().modulus))


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_current()
    rt.debug = bool(args.debug)

    _install_loud_error_handlers(args.debug)

    if not ensure_runtime_deps(strict=True):
        return 1

    ensure_workspace_seeded()

    if args.items and args.items[0] in COMMANDS:
        return _run_command(args.items[0], args.items)

    profile, nums = _resolve_inputs(args.items)

    if profile and not CONFIG.has_profile(profile):
        print(f"Unknown profile: '{profile}'", file=sys.stderr)
        print("Available profiles:", ", ".join(CONFIG.list_all_profiles()), file=sys.stderr)
        return 2

    # explicit → last used → default
    profile_name = profile or CONFIG.read_current_profile() or "default"
    if not CONFIG.has_profile(profile_name):
        profile_name = "default"
    if CONFIG.has_profile(profile_name):
        _apply_profile(profile_name, force_debug=args.debug)

    try:
        cli_output = validate_output_setting(args.output)
    except ValueError as e:
        raise UserInputError(f"--output: {e}") from None

    def show_details() -> bool:
        return not args.no_details and bool(CFG("OUTPUT.SHOW_DETAILS", True))

    def make_output_manager(key: str | None) -> OutputManager:
        # re-read OUTPUT_FILE each time so profile switches take effect
        target = cli_output if cli_output is not None else CFG("OUTPUT.OUTPUT_FILE", None)
        return OutputManager(output_file=validate_output_setting(target), quiet=args.quiet, key=key)

    # --- one-shot path ---
    if nums:
        with make_output_manager(query_key(*nums)) as om:
            run_query(nums, om, show_details=show_details())
        return 0

    # --- REPL ---
    if not rt.debug:
        clear_screen()
    print(f"{Fore.YELLOW}{Style.BRIGHT}Good Arrays v{_ver}{Style.RESET_ALL}")

    current_profile = profile_name
    while True:
        try:
            prompt = f"\nProfile: {current_profile} — Enter N M [K], a command or a profile (h=Help, q=Quit): "
            user_input = input(prompt).strip()
            low = user_input.lower()

            if low in {"", "q", "quit"}:
                break

            if low in {"h", "help"}:
                _print_repl_help()
                continue

            if low in {"p", "profiles"}:
                print_profiles_with_descriptions()
                continue

            if low in {"hist", "history"}:
                hist = get_history()
                if not hist:
                    print("History is empty.")
                for item in hist:
                    ts = time.strftime("%H:%M:%S", time.localtime(item.timestamp))
                    q = " ".join(str(v) for v in item.query)
                    print(f"{ts}  {q:<24}  profile={item.profile or '-'}")
                continue

            if low.startswith("debug"):
                parts = low.split()
                rt = _rt_current()
                if len(parts) == 1 or parts[1] == "status":
                    print(f"Debug is currently {'ON' if rt.debug else 'OFF'}.")
                elif parts[1] in {"on", "off"}:
                    rt.debug = parts[1] == "on"
                    print(f"Debug mode {'enabled' if rt.debug else 'disabled'} for this session.")
                else:
                    print("Usage: DEBUG [on|off|status]")
                continue

            if CONFIG.has_profile(user_input):
                _apply_profile(user_input, force_debug=args.debug)
                CONFIG.write_current_profile(user_input)
                current_profile = user_input
                print(f"Applied profile: {current_profile}")
                continue

            try:
                nums = _parse_numbers(user_input.split())
                with make_output_manager(query_key(*nums)) as om:
                    run_query(nums, om, show_details=show_details())
                add_to_history(nums, current_profile)
            except UserInputError as e:
                msg = str(e)
                prefix = f"{Fore.RED}Invalid input:{Style.RESET_ALL}"
                msg = msg.replace("Invalid input:", prefix, 1) if msg.startswith("Invalid input:") else f"{prefix} {msg}"
                print(msg, file=sys.stderr)

        except (EOFError, KeyboardInterrupt):
            print()
            break
        except Exception as e:
            if _rt_current().debug:
                traceback.print_exc()
            else:
                _print_user_error(f"{e.__class__.__name__}: {e}")
    return 0


def _print_repl_help() -> None:
    print(textwrap.dedent("""\
      N M K          count sequences of length N over M symbols with K equal neighbours
      N M            the same count for every K in 0..N-1
      <profile>      switch to that profile (remembered for next time)
      p              list profiles
      hist           show this session's queries
      debug on|off   toggle [debug] traces
      q              quit
    """))


if __name__ == "__main__":
    raise SystemExit(main())
