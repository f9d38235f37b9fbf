# runtime.py
from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import Any

from colorama import Fore, Style


def _lookup(tree: dict[str, Any], key: str, default: Any) -> Any:
    cur: Any = tree
    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


@dataclass
class Runtime:
    """Settings of the active profile plus the flags the CLI may flip."""
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False  # debug logging and tracebacks
    progress: bool = True  # progress bar during the pairwise phase

    def apply(self, settings: Any) -> None:
        """Install a Settings object (or a plain nested dict) as the active profile."""
        if isinstance(settings, dict):
            self.profile_name = "default"
            self.settings = dict(settings)
        else:
            self.profile_name = getattr(settings, "name", None) or "default"
            self.settings = dict(settings.as_dict())

        for flag in ("debug", "progress"):
            value = self.get(f"BEHAVIOUR.{flag.upper()}")
            if isinstance(value, bool):
                setattr(self, flag, value)

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup, e.g. 'ENGINE.STRATEGY'; a missing key gives `default`."""
        if not key:
            return default
        return _lookup(self.settings, key, default)


# --- Context management ---

_current_runtime: ContextVar[Runtime | None] = ContextVar("sharedfactor_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = reset()
    return rt


def reset() -> Runtime:
    """Install a fresh Runtime (used between CLI invocations and in tests)."""
    rt = Runtime()
    _current_runtime.set(rt)
    return rt


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


# ---- Dependency check --------------------------------------------------------

# import name -> what breaks without it
RUNTIME_DEPS = {
    "gmpy2": "big-integer products and gcds",
    "sympy": "prime pools for the corpus generators",
}


def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    Check the compiled/numeric dependencies with find_spec() (nothing is imported).
    If strict=True, prints what is missing and returns False.
    """
    missing = [name for name in RUNTIME_DEPS if find_spec(name) is None]
    if not missing:
        return True

    lines = [f"{Fore.RED}{Style.BRIGHT}Missing dependencies:{Style.RESET_ALL}"]
    lines += [f"  {name:<6} needed for {RUNTIME_DEPS[name]}" for name in missing]
    lines.append(f"Install with: {Fore.YELLOW}pip install {' '.join(missing)}{Style.RESET_ALL}")
    print("\n".join(lines))
    return not strict
