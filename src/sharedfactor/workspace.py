from __future__ import annotations

import os
import shutil
from importlib.resources import as_file
from importlib.resources import files as pkg_files
from pathlib import Path

# Workspace subfolder -> file suffixes seeded into it from the package
SEEDS: dict[str, tuple[str, ...]] = {
    "profiles": (".toml",),
    "corpora": (".txt",),
}
SUBDIRS = tuple(SEEDS)


def workspace_dir() -> Path:
    env = os.environ.get("SHAREDFACTOR_HOME")
    base = Path(env).expanduser() if env else Path.home() / "Documents" / "Sharedfactor"
    return base.resolve()


def corpora_dir() -> Path:
    return workspace_dir() / "corpora"


def _seed_files(src: Path, suffixes: tuple[str, ...]):
    """Packaged files worth copying: no hidden, backup or bytecode files."""
    for p in sorted(src.rglob("*")):
        if not p.is_file() or p.name.startswith(".") or p.name.endswith("~"):
            continue
        if "__pycache__" in p.parts:
            continue
        if p.suffix.lower() in suffixes:
            yield p


def _seed_one(sub: str, dst: Path, *, overwrite: bool) -> int:
    ref = pkg_files("sharedfactor") / sub
    copied = 0
    with as_file(ref) as real:
        src = Path(real)
        if not src.is_dir():
            return 0
        for p in _seed_files(src, SEEDS[sub]):
            target = dst / p.relative_to(src)
            if target.exists() and not overwrite:
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(p, target)
            copied += 1
    return copied


def seed_workspace(*, overwrite: bool = False) -> tuple[Path, dict[str, int]]:
    """
    Create the workspace folders and copy the packaged profiles and sample
    corpora into them.

    overwrite=False → only files the user does not have yet
    overwrite=True  → replace the user's copies (guarded in the CLI)

    Returns: (workspace_path, {subfolder: files_copied})
    """
    root = workspace_dir()
    copied: dict[str, int] = {}
    for sub in SUBDIRS:
        dst = root / sub
        dst.mkdir(parents=True, exist_ok=True)
        copied[sub] = _seed_one(sub, dst, overwrite=overwrite)
    return root, copied


def ensure_workspace_seeded() -> tuple[Path, bool, dict[str, int]]:
    root, copied = seed_workspace(overwrite=False)
    return root, any(copied.values()), copied
