# tests/test_cli.py
"""
CLI, profile and workspace tests. Every test runs against a throw-away
workspace (GOODARRAYS_HOME) and a fresh runtime.

Run: pytest -v
"""

from __future__ import annotations

import builtins

import pytest

from goodarrays import config as CONFIG
from goodarrays import runtime
from goodarrays.cli import HISTORY_SIZE, _resolve_inputs, add_to_history, get_history, main
from goodarrays.fmt import strip_ansi
from goodarrays.output_manager import OutputManager
from goodarrays.utility import UserInputError, parse_int, validate_output_setting
from goodarrays.workspace import ensure_workspace_seeded, workspace_dir


@pytest.fixture(autouse=True)
def workspace(tmp_path, monkeypatch):
    monkeypatch.setenv("GOODARRAYS_HOME", str(tmp_path / "ws"))
    runtime.reset()
    yield workspace_dir()
    runtime.reset()


def _run(capsys, argv):
    rc = main(argv)
    out, err = capsys.readouterr()
    return rc, strip_ansi(out), strip_ansi(err)


# ---------- one-shot queries --------------------------------------------------

def test_single_count_with_breakdown(capsys):
    rc, out, _ = _run(capsys, ["3", "2", "1"])
    assert rc == 0
    assert "good arrays(n=3, m=2, k=1) = 4" in out
    assert "C(n-1, k) = C(2, 1)" in out


def test_single_count_without_details(capsys):
    rc, out, _ = _run(capsys, ["--no-details", "4", "2", "2"])
    assert rc == 0
    assert "= 6" in out
    assert "C(n-1, k)" not in out


def test_distribution(capsys):
    rc, out, _ = _run(capsys, ["5", "2"])
    assert rc == 0
    assert "k=0  2" in out
    assert "total = 32" in out


def test_power_syntax_for_n(capsys):
    rc, out, _ = _run(capsys, ["10**5", "2", "0"])
    assert rc == 0
    assert "good arrays(n=100000, m=2, k=0) = 2" in out


@pytest.mark.parametrize("argv", [["3", "2", "5"], ["0", "2", "0"], ["3", "2", "x"], ["3"], ["1", "2", "3", "4"]])
def test_bad_numbers_exit_2(capsys, argv):
    rc, _, err = _run(capsys, argv)
    assert rc == 2
    assert "Error:" in err or "Invalid input:" in err


def test_unknown_profile_exit_2(capsys):
    rc, _, err = _run(capsys, ["nosuch", "3", "2", "1"])
    assert rc == 2
    assert "Unknown profile: 'nosuch'" in err


def test_forbidden_output_file(capsys):
    rc, _, err = _run(capsys, ["--output", "notes.md", "3", "2", "1"])
    assert rc == 2
    assert "--output" in err


def test_output_directory_mode(capsys, workspace):
    rc, out, _ = _run(capsys, ["--quiet", "--output", "out/", "3", "2", "1"])
    assert rc == 0
    assert out.strip() == ""
    path = workspace / "out" / "n=3_m=2_k=1.txt"
    text = path.read_text(encoding="utf-8")
    assert "= 4" in text
    assert "\x1b[" not in text


def test_batch_profile_appends_to_file(capsys, workspace):
    assert _run(capsys, ["batch", "4", "2", "2"])[0] == 0
    assert _run(capsys, ["batch", "5", "2", "0"])[0] == 0
    text = (workspace / "results" / "goodarrays.txt").read_text(encoding="utf-8")
    assert "good arrays(n=4, m=2, k=2) = 6" in text
    assert "good arrays(n=5, m=2, k=0) = 2" in text
    assert "C(n-1, k)" not in text


def test_debug_prints_profile_keys(capsys):
    rc, _, err = _run(capsys, ["--debug", "3", "2", "1"])
    assert rc == 0
    assert "[debug] active profile: default" in err
    assert "OUTPUT.SHOW_DETAILS" in err


# ---------- commands ----------------------------------------------------------

def test_init_seeds_profiles(capsys, workspace):
    rc, out, _ = _run(capsys, ["init"])
    assert rc == 0
    assert "Workspace ready at:" in out
    assert (workspace / "profiles" / "default.toml").exists()
    assert (workspace / "profiles" / "batch.toml").exists()


def test_profiles_command(capsys):
    rc, out, _ = _run(capsys, ["profiles"])
    assert rc == 0
    assert "default" in out
    assert "batch" in out


def test_where_command(capsys, workspace):
    rc, out, _ = _run(capsys, ["where"])
    assert rc == 0
    assert str(workspace) in out


# ---------- interactive loop --------------------------------------------------

def test_repl_query_profile_switch_and_history(capsys, monkeypatch):
    answers = iter(["3 2 1", "batch", "5 2", "3 2 9", "hist", "q"])
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(answers))
    rc, out, err = _run(capsys, [])
    assert rc == 0
    assert "good arrays(n=3, m=2, k=1) = 4" in out
    assert "Applied profile: batch" in out
    assert "total = 32" in out
    assert "k must be in" in err
    assert CONFIG.read_current_profile() == "batch"
    assert get_history()[-1].query == (5, 2)


# ---------- input parsing / settings ------------------------------------------

@pytest.mark.parametrize("text,expected", [
    ("42", 42),
    ("100_000", 100_000),
    ("10**5", 100_000),
    ("10^5", 100_000),
    ("2**3-1", 7),
    ("-4", -4),
    ("default", None),
    ("", None),
])
def test_parse_int(text, expected):
    assert parse_int(text) == expected


@pytest.mark.parametrize("text", [
    "1e5",
    "12x",
    "2**1000",
    "3/2",
    "2**-1",
    "(((2**64)**64)**64)**64",
    "(2**40)*(2**40)",
    "((((((2**8)**8)**8)**8)**8)**8)",
])
def test_parse_int_rejects_malformed(text):
    with pytest.raises(UserInputError):
        parse_int(text)


def test_resolve_inputs():
    assert _resolve_inputs([]) == (None, ())
    assert _resolve_inputs(["batch"]) == ("batch", ())
    assert _resolve_inputs(["3", "2", "1"]) == (None, (3, 2, 1))
    assert _resolve_inputs(["batch", "5", "2"]) == ("batch", (5, 2))


def test_validate_output_setting():
    assert validate_output_setting(None) is None
    assert validate_output_setting("out/") == "out/"
    assert validate_output_setting("runs.txt") == "runs.txt"
    for bad in ("x.py", "README.md", "nul", "LICENSE"):
        with pytest.raises(ValueError):
            validate_output_setting(bad)


def test_load_default_profile():
    ensure_workspace_seeded()
    s = CONFIG.load_settings(None)
    assert s.name == "default"
    assert "_PROFILE_" not in s.as_dict()
    runtime.APPLY(s)
    assert runtime.CFG("OUTPUT.SHOW_DETAILS") is True
    assert runtime.CFG("BEHAVIOUR.MISSING", "x") == "x"
    assert runtime.current().eager_init is False


def test_eager_profile_flag():
    ensure_workspace_seeded()
    runtime.APPLY(CONFIG.load_settings("batch"))
    assert runtime.current().eager_init is True


def test_broken_profile_reports_location(workspace):
    ensure_workspace_seeded()
    (workspace / "profiles" / "broken.toml").write_text("[BEHAVIOUR\nDEBUG = true\n", encoding="utf-8")
    with pytest.raises(UserInputError, match="broken.toml"):
        CONFIG.load_settings("broken")
    assert ("broken", "(unreadable)") in CONFIG.list_profiles_with_descriptions()


def test_profile_type_check(workspace):
    ensure_workspace_seeded()
    (workspace / "profiles" / "typo.toml").write_text('[BEHAVIOUR]\nDEBUG = "yes"\n', encoding="utf-8")
    with pytest.raises(UserInputError, match="BEHAVIOUR.DEBUG"):
        CONFIG.load_settings("typo")


def test_missing_profile():
    with pytest.raises(UserInputError):
        CONFIG.load_settings("does-not-exist")


def test_output_manager_single_file(workspace):
    om = OutputManager(output_file="log/all.txt")
    om.write("first")
    om.close()
    om = OutputManager(output_file="log/all.txt", quiet=True)
    om.write("second")
    om.close()
    assert (workspace / "log" / "all.txt").read_text(encoding="utf-8") == "first\n\nsecond\n\n"


def test_output_manager_split_needs_key():
    with pytest.raises(ValueError):
        OutputManager(output_file="out/")


def test_nested_power_argument_exit_2(capsys):
    rc, _, err = _run(capsys, ["((((((2**64)**64)**64)**64)**64)**64)", "2", "1"])
    assert rc == 2
    assert "exceeds 64 bits" in err


def test_parse_int_allows_values_up_to_the_bit_limit():
    assert parse_int("2**63") == 2**63
    assert parse_int("(2**32)*(2**31)") == 2**63


def test_history_is_bounded():
    for i in range(HISTORY_SIZE + 25):
        add_to_history((i, 2, 0), "default")
    hist = get_history()
    assert len(hist) == HISTORY_SIZE
    assert hist[-1].query == (HISTORY_SIZE + 24, 2, 0)
    assert hist[0].query == (25, 2, 0)


def test_apply_settings_and_plain_dict():
    ensure_workspace_seeded()
    runtime.APPLY(CONFIG.load_settings("batch"))
    rt = runtime.current()
    assert rt.profile_name == "batch"
    assert rt.eager_init is True

    runtime.APPLY({"BEHAVIOUR": {"DEBUG": True, "EAGER_INIT": False}})
    rt = runtime.current()
    assert rt.profile_name == "default"
    assert rt.debug is True
    assert rt.eager_init is False
    assert runtime.CFG("BEHAVIOUR") == {"DEBUG": True, "EAGER_INIT": False}
    assert runtime.CFG("") is None
