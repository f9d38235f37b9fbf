from __future__ import annotations

import os
import sys

import gmpy2

# --- Errors -----------------------------------------------------------------


class UserInputError(Exception):
    pass


class EngineError(Exception):
    """
    Fatal failure inside one analysis phase.

    Carries the phase name ("load", "batch", "pairwise", "factor", ...) and the
    corpus index (or 1-based input line for MalformedInput) that triggered it.
    There is no recovery: the run stops and no partial report is produced.
    """

    where_label = "index"

    def __init__(self, message: str, *, phase: str, index: int | None = None):
        super().__init__(message)
        self.message = message
        self.phase = phase
        self.index = index

    def __str__(self) -> str:
        where = f" at {self.where_label} {self.index}" if self.index is not None else ""
        return f"{self.phase} failed{where}: {self.message}"


class AllocationFailure(EngineError):
    pass


class MalformedInput(EngineError):
    where_label = "line"


class ArithmeticInvariantViolation(EngineError):
    pass


class WorkerFailure(EngineError):
    pass


# --- Numbers ----------------------------------------------------------------

def dec_digits(n: int) -> int:
    """Exact decimal digit count without str(); handles n >= 0."""
    n = abs(n)
    if n == 0:
        return 1
    bl = n.bit_length()
    # 0.30102999566 ~ log10(2)
    est = int((bl * 30103) // 100000)
    p10 = 10 ** est
    if n < p10:
        while n < p10:
            est -= 1
            p10 //= 10
    else:
        p10 *= 10
        while n >= p10:
            est += 1
            p10 *= 10
    return est + 1


def parse_decimal(text: str) -> int:
    """
    Parse an unsigned decimal integer. Signs, separators and non-ASCII digits
    are rejected (int() alone would accept '+7', '1_000' and '٣').
    """
    s = text.strip()
    if not s or not s.isascii() or not s.isdigit():
        raise ValueError(f"not an unsigned decimal integer: {text.strip()!r}")
    # gmpy2 parses without the int<->str digit guard
    return int(gmpy2.mpz(s))


def dec_str(n: int) -> str:
    """Decimal text of any width; str(int) is capped by the digit guard."""
    return str(gmpy2.mpz(n))


def raise_int_str_limit(limit: int) -> None:
    """Lift Python's int<->str digit guard unless the user pinned it."""
    if os.environ.get("PYTHONINTMAXSTRDIGITS"):
        return
    try:
        sys.set_int_max_str_digits(max(0, int(limit)))
    except (AttributeError, ValueError):
        pass


# --- Output / misc ------------------------------------------------------------

def validate_output_setting(output_file: str | None) -> str | None:
    """
    Validate output setting.
    - None / "" => ok (screen only)
    - path/to/file => must not be a directory or a source/doc file
    Returns the output_file unchanged, or raises ValueError.
    """
    FORBIDDEN_EXTENSIONS = {".py", ".md", ".toml"}

    if not output_file:
        return output_file

    if output_file.endswith(("/", "\\")) or os.path.isdir(os.path.expanduser(output_file)):
        raise ValueError(f"'{output_file}' is a directory; give a file name")

    _, ext = os.path.splitext(output_file)
    if ext.lower() in FORBIDDEN_EXTENSIONS:
        raise ValueError(f"refusing to write report into a '{ext}' file")

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
