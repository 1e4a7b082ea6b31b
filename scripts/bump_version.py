#!/usr/bin/env python3
"""Bump the yip version in one command.

Usage:
  python scripts/bump_version.py 0.3.1
  python scripts/bump_version.py v0.3.1
"""

from __future__ import annotations

import re
import sys
from pathlib import Path


_VERSION_PATTERN = re.compile(r"^[0-9]+\.[0-9]+\.[0-9]+(?:[0-9A-Za-z.+-]+)?$")


def main(argv: list[str]) -> int:
    if len(argv) != 2 or argv[1] in {"-h", "--help"}:
        print(__doc__.strip())
        return 2

    version = normalize_version(argv[1])
    package_init = _run(version=version, repo_root=Path(__file__).resolve().parents[1])
    print(f"Updated version to {version}")
    print(f"- {package_init}")
    return 0


def normalize_version(raw: str) -> str:
    value = raw.strip()
    if value.startswith("v"):
        value = value[1:]
    if not value or not _VERSION_PATTERN.fullmatch(value):
        raise SystemExit(f"Invalid version '{raw}'. Expected like 0.3.1")
    return value


def _run(*, version: str, repo_root: Path) -> Path:
    package_init = repo_root / "yip" / "__init__.py"
    _set_python_version(package_init, version)
    return package_init


def _set_python_version(path: Path, version: str) -> None:
    content = path.read_text(encoding="utf-8")
    updated, count = re.subn(
        r'(?m)^__version__\s*=\s*"[^"]+"$',
        f'__version__ = "{version}"',
        content,
        count=1,
    )
    if count != 1:
        raise RuntimeError(f"Expected exactly one __version__ assignment in {path}")
    path.write_text(updated, encoding="utf-8")


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
