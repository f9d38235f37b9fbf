# output_manager.py
from __future__ import annotations

import logging
import os

from sharedfactor.fmt import strip_ansi
from sharedfactor.workspace import workspace_dir

logger = logging.getLogger(__name__)


def resolve_output_path(path: str, workspace_root: str | os.PathLike) -> str:
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


class OutputManager:
    """
    Handles all report printing, to screen and/or file.

    Usage:
        om = OutputManager(output_file="reports/run.txt")
        om.write("Hello")   # prints and appends (ANSI stripped) to the file
        om.close()          # blank separator line between runs
    """

    def __init__(self, output_file: str | None = None, quiet: bool = False):
        """
        Parameters:
            output_file:
                None or ""       => screen only
                path/to/file.txt => append all runs to this file
                                    (relative paths live in the workspace)
            quiet: if True, no output to screen (only to file)
        """
        self.quiet = quiet
        self.output_file = output_file or ""
        self._buffer: list[str] = []
        self.path: str | None = None

        if self.output_file:
            path = resolve_output_path(self.output_file, workspace_dir())
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self.path = path

    def write(self, *args, sep: str = " ", end: str = "\n") -> None:
        """Write to screen and file (if configured)."""
        text = sep.join(str(a) for a in args) + end
        self._buffer.append(text)

        if not self.quiet:
            print(text, end="")

        if self.path:
            try:
                with open(self.path, "a", encoding="utf-8") as fh:
                    fh.write(strip_ansi(text))
            except OSError as e:
                logger.warning("could not append to %s: %s", self.path, e)

    def getvalue(self) -> str:
        """Returns everything written (with color codes)."""
        return "".join(self._buffer)

    def close(self) -> None:
        """Add a separator line between runs in the report file."""
        if self.path and self._buffer:
            try:
                with open(self.path, "a", encoding="utf-8") as fh:
                    fh.write("\n")
            except OSError as e:
                logger.warning("could not append to %s: %s", self.path, e)
