# output_manager.py

import os

from goodarrays.fmt import strip_ansi
from goodarrays.workspace import workspace_dir


def resolve_output_path(path: str, workspace_root: str) -> str:
    """
    Resolve user-provided output path.

    Rules:
    - '~' expanded to user home
    - Absolute paths unchanged
    - Relative paths are relative to workspace_root
    """
    if not path:
        raise ValueError("Output path is empty")

    path = os.path.expanduser(path)
    if os.path.isabs(path):
        return os.path.normpath(path)
    return os.path.normpath(os.path.join(workspace_root, path))


def _next_available_path(path: str) -> str:
    """
    If `path` does not exist, return it.
    Otherwise return path with _2, _3, ... inserted before the extension.
    """
    if not os.path.exists(path):
        return path

    base, ext = os.path.splitext(path)
    i = 2
    while True:
        candidate = f"{base}_{i}{ext}"
        if not os.path.exists(candidate):
            return candidate
        i += 1


class OutputManager:
    """
    Handles all printing/output, including to screen and/or file.

    Usage:
        # Split mode (one file per query):
        om = OutputManager(output_file="results/", key="n=5_m=2_k=0")
        om.write("Hello")   # prints and buffers; file written on close()
        om.close()

        # Single file (append all runs to one file):
        om = OutputManager(output_file="results/all.txt")
        om.write("Hello")   # prints and appends
        om.close()
    """

    def __init__(self, output_file: str | None = None, quiet: bool = False, key: str | None = None):
        """
        Parameters:
            output_file:
                None or ""       => screen only
                "." or "./"      => per-query files in the workspace
                endswith "/"     => per-query files in specified dir
                path/to/file.txt => append all runs to this file
            quiet: if True, no output to screen (only to file)
            key: query tag, used for the filename in per-query mode
        """
        self.quiet = quiet
        self.output_file = output_file or ""
        self.key = key
        self._buffer: list[str] = []

        self._mode: str = "none"     # "none" | "split" | "single"
        self._split_path: str | None = None
        self._single_path: str | None = None

        workspace = str(workspace_dir())
        if self.output_file in (".", "./") or self.output_file.endswith("/"):
            if key is None:
                raise ValueError("A query key must be provided when outputting to a directory.")
            directory = resolve_output_path(self.output_file, workspace)
            os.makedirs(directory, exist_ok=True)
            self._mode = "split"
            self._split_path = _next_available_path(os.path.join(directory, f"{key}.txt"))

        elif self.output_file:
            path = resolve_output_path(self.output_file, workspace)
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self._mode = "single"
            self._single_path = path

    def write(self, *args, sep: str = " ", end: str = "\n") -> None:
        """Write to screen and file (if configured)."""
        text = sep.join(str(a) for a in args) + end
        self._buffer.append(text)

        if not self.quiet:
            print(text, end="")

        if self._mode == "single" and self._single_path:
            with open(self._single_path, "a", encoding="utf-8") as fh:
                fh.write(strip_ansi(text))
        # split mode writes once, on close()

    def write_lines(self, lines: list[str]) -> None:
        for line in lines:
            self.write(line)

    def close(self) -> None:
        """Flush the buffer to the per-query file, or add a separator in single-file mode."""
        if not self._buffer:
            return

        if self._mode == "split" and self._split_path:
            with open(self._split_path, "w", encoding="utf-8") as fh:
                fh.write(strip_ansi("".join(self._buffer)))

        elif self._mode == "single" and self._single_path:
            with open(self._single_path, "a", encoding="utf-8") as fh:
                fh.write("\n")  # one empty line between runs

        self._buffer.clear()

    def __enter__(self) -> "OutputManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
