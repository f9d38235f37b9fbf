"""
Analysis profiles: TOML files in <workspace>/profiles.

A profile may carry a [PROFILE] table (name, description) and the sections
ENGINE, FACTORING, INPUT, OUTPUT and BEHAVIOUR. Keys are optional; the engine
falls back to its defaults for anything a profile leaves out. Known keys are
type-checked on load so a typo in a profile fails before a long run starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib as toml
except ImportError:
    import tomli as toml  # type: ignore

from sharedfactor.utility import UserInputError, typename
from sharedfactor.workspace import ensure_workspace_seeded, workspace_dir

KNOWN_SECTIONS = ("ENGINE", "FACTORING", "INPUT", "OUTPUT", "BEHAVIOUR")

# "SECTION.KEY" -> accepted TOML value type
KEY_TYPES: dict[str, type] = {
    "ENGINE.STRATEGY": str,
    "ENGINE.WORKERS": int,
    "FACTORING.MODE": str,
    "FACTORING.WORD_BITS": int,
    "FACTORING.CANDIDATE_CEILING": int,
    "INPUT.MAX_COUNT": int,
    "INPUT.ON_MALFORMED": str,
    "OUTPUT.OUTPUT_FILE": str,
    "OUTPUT.DETAILS": bool,
    "BEHAVIOUR.DEBUG": bool,
    "BEHAVIOUR.PROGRESS": bool,
    "BEHAVIOUR.MAX_DIGITS": int,
}

CURRENT_MARKER = ".current"


@dataclass
class Settings:
    """
    One loaded profile. `data` holds the sections (never [PROFILE]) and is
    what runtime.APPLY() installs.
    """
    data: dict[str, Any]
    name: str
    description: str
    _source: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.data


def _profiles_dir() -> Path:
    return workspace_dir() / "profiles"


def _profile_path(name: str) -> Path:
    return _profiles_dir() / f"{_strip_suffix(name)}.toml"


def _strip_suffix(name: str) -> str:
    nm = (name or "").strip()
    return nm[:-5] if nm.lower().endswith(".toml") else nm


def _read_profile_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return toml.load(fh)
    except toml.TOMLDecodeError as e:
        where = [f"{label} {v}" for label, v in (("line", getattr(e, "lineno", None)),
                                                 ("column", getattr(e, "colno", None))) if v is not None]
        loc = f" (at {', '.join(where)})" if where else ""
        raise UserInputError(f"reading {path.name}: {getattr(e, 'msg', e)}{loc}.") from None


def _meta(raw: dict[str, Any], fallback_name: str) -> tuple[str, str]:
    meta = raw.get("PROFILE")
    if not isinstance(meta, dict):
        meta = {}
    name = str(meta.get("name") or fallback_name)
    description = " ".join(str(meta.get("description") or "").split()) or "(no description)"
    return name, description


def _check_sections(data: dict[str, Any], filename: str) -> None:
    for section in KNOWN_SECTIONS:
        value = data.setdefault(section, {})
        if not isinstance(value, dict):
            raise UserInputError(f"reading {filename}: [{section}] must be a table.")

    for dotted, expected in KEY_TYPES.items():
        section, key = dotted.split(".")
        if key not in data[section]:
            continue
        value = data[section][key]
        # TOML booleans are ints to Python; keep them apart
        ok = isinstance(value, expected) and (expected is bool or not isinstance(value, bool))
        if not ok:
            raise UserInputError(
                f"reading {filename}: {dotted} must be {expected.__name__}, got {typename(value)} {value!r}."
            )


# --- Public API ------------------------------------------------------------


def list_all_profiles() -> list[str]:
    """Profile names (file stems) in the workspace, seeding it first if needed."""
    ensure_workspace_seeded()
    return sorted(p.stem for p in _profiles_dir().glob("*.toml"))


def list_profiles_with_descriptions() -> list[tuple[str, str]]:
    """[(name, description), ...]; unreadable files are listed as such."""
    items: list[tuple[str, str]] = []
    for p in _profiles_dir().glob("*.toml"):
        try:
            items.append(_meta(_read_profile_file(p), p.stem))
        except UserInputError:
            items.append((p.stem, "(unreadable)"))
    return sorted(items, key=lambda t: t[0].lower())


def has_profile(name: str) -> bool:
    return bool(_strip_suffix(name)) and _profile_path(name).is_file()


def load_settings(name: str | None) -> Settings:
    """Load and check a profile by name ('default' when empty)."""
    path = _profile_path(name or "default")
    if not path.is_file():
        raise UserInputError(f"Profile '{name or 'default'}' not found at {path}")

    raw = _read_profile_file(path)
    resolved_name, description = _meta(raw, path.stem)
    data = {k: v for k, v in raw.items() if k != "PROFILE"}
    _check_sections(data, path.name)
    return Settings(data=data, name=resolved_name, description=description, _source=path)


# --- Last used profile -------------------------------------------------------


def read_current_profile() -> str | None:
    try:
        text = (_profiles_dir() / CURRENT_MARKER).read_text(encoding="utf-8")
    except OSError:
        return None
    return _strip_suffix(text) or None


def write_current_profile(name: str) -> None:
    pdir = _profiles_dir()
    pdir.mkdir(parents=True, exist_ok=True)
    (pdir / CURRENT_MARKER).write_text(_strip_suffix(name), encoding="utf-8")
