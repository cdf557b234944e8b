# src/goodarrays/utility.py

from __future__ import annotations

import ast
import operator as op
import os
import re
import sys


class UserInputError(Exception):
    pass


class InvalidArgument(UserInputError, ValueError):
    """An argument lies outside the documented domain of an operation."""


class ConfigurationError(Exception):
    """The table bound and modulus do not fit together."""


# ---- integer parsing --------------------------------------------------------

_ALLOWED_BINOPS = {
    ast.Add:  op.add,
    ast.Sub:  op.sub,
    ast.Mult: op.mul,
    ast.Pow:  op.pow,
}
_ALLOWED_UNARYOPS = {
    ast.UAdd: op.pos,
    ast.USub: op.neg,
}
_MAX_NODES = 32
_MAX_BITS = 64
_INT_RE = re.compile(r"^[+-]?\d+(?:_\d+)*$")


def _would_exceed_bit_limit(oper: ast.operator, left: int, right: int) -> bool:
    """
    Lower bound on the bit length of left**right or left*right, checked
    before the operation runs. Nested powers otherwise grow without bound.
    """
    a = abs(left).bit_length()
    if isinstance(oper, ast.Pow):
        # |left| >= 2 gives |left|**right >= 2**((a-1)*right)
        return a > 1 and (a - 1) * right >= _MAX_BITS
    if isinstance(oper, ast.Mult):
        b = abs(right).bit_length()
        return a > 0 and b > 0 and a + b - 1 > _MAX_BITS
    return False


def _eval_node(node: ast.AST) -> int:
    if isinstance(node, ast.Constant) and type(node.value) is int:
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _ALLOWED_BINOPS:
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow) and right < 0:
            raise UserInputError(f"Invalid input: negative exponent {right}.")
        if _would_exceed_bit_limit(node.op, left, right):
            raise UserInputError(f"Invalid input: intermediate value exceeds {_MAX_BITS} bits.")
        return _ALLOWED_BINOPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _ALLOWED_UNARYOPS:
        return _ALLOWED_UNARYOPS[type(node.op)](_eval_node(node.operand))
    raise UserInputError("Invalid input: only integers and + - * ** ^ are allowed.")


def parse_int(text: str) -> int | None:
    """
    Parse an integer token such as '42', '100_000', '10**5' or '10^5'.
    Returns None when the token does not look numeric at all (e.g. a profile
    name); raises UserInputError when it looks numeric but is malformed.
    """
    s = (text or "").strip()
    if not s:
        return None
    if _INT_RE.match(s):
        return int(s)
    if not s[0].isdigit() and s[0] not in "+-(":
        return None

    s = s.replace("^", "**")
    try:
        tree = ast.parse(s, mode="eval")
    except SyntaxError:
        raise UserInputError(f"Invalid input: cannot parse '{text}'.") from None
    if sum(1 for _ in ast.walk(tree)) > _MAX_NODES:
        raise UserInputError("Invalid input: expression too long.")
    return _eval_node(tree.body)


def require_int(name: str, value: object) -> int:
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, got {type(value).__name__}.")
    return value


# ---- output / settings helpers ---------------------------------------------

def validate_output_setting(output_file: str | None) -> str | None:
    """
    Validate output setting.
    - None / "" => ok (screen only)
    - "." / "./" / trailing "/" => ok (per-query directory mode)
    - path/to/file => must not be in forbidden base names or extensions
    Returns the output_file unchanged, or raises ValueError.
    """
    FORBIDDEN_FILENAMES = {
        ".gitignore",
        "license",
        "pyproject.toml",
        # Windows reserved device names (case-insensitive on Windows)
        "con", "prn", "aux", "nul",
        "com1", "com2", "com3", "com4", "com5", "com6", "com7", "com8", "com9",
        "lpt1", "lpt2", "lpt3", "lpt4", "lpt5", "lpt6", "lpt7", "lpt8", "lpt9",
    }

    FORBIDDEN_EXTENSIONS = {".py", ".md", ".toml"}

    if not output_file:
        return output_file

    if output_file in (".", "./") or output_file.endswith("/"):
        return output_file

    basename = os.path.basename(output_file)
    name_no_ext, ext = os.path.splitext(basename)
    ext = ext.lower()

    if basename.lower() in FORBIDDEN_FILENAMES or name_no_ext.lower() in FORBIDDEN_FILENAMES:
        raise ValueError(f"Forbidden output filename: {basename}")

    if ext in FORBIDDEN_EXTENSIONS:
        raise ValueError(f"Forbidden output file extension: {ext}")

    return output_file


def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    out: dict[str, object] = {}
    for k, v in (d or {}).items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out


def clear_screen() -> None:
    if os.name == "nt":
        os.system("cls")
    else:
        sys.stdout.write("\033[H\033[2J")
        sys.stdout.flush()

