"""Environment and dependency preflight checks.

Set SPATIALNOTE_SKIP_PREFLIGHT=1 to bypass (useful for development).
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Optional

MIN_PYTHON = (3, 11)


@dataclass(frozen=True)
class PreflightResult:
    ok: bool
    message: str


def _check_python_version() -> Optional[str]:
    if sys.version_info < MIN_PYTHON:
        found = ".".join(str(part) for part in sys.version_info[:3])
        return f"spatialnote needs Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]}+ (found {found})."
    return None


def _check_python_deps() -> Optional[str]:
    """Return an error message if required deps are missing."""
    try:
        from gi.repository import GLib  # type: ignore[import-not-found]  # noqa: F401
    except Exception as exc:  # pylint: disable=broad-except
        return (
            "Missing GLib bindings. Install PyGObject (pip install PyGObject) "
            "and the glib2 / gobject-introspection system packages. "
            f"Underlying error: {exc}"
        )

    try:
        import requests  # noqa: F401
    except Exception as exc:  # pylint: disable=broad-except
        return f"Missing Python dependency 'requests'. Underlying error: {exc}"

    return None


def run_preflight(*, check_deps: bool = True) -> PreflightResult:
    """Run checks and return a structured result."""
    if os.environ.get("SPATIALNOTE_SKIP_PREFLIGHT") == "1":
        return PreflightResult(True, "Preflight skipped via SPATIALNOTE_SKIP_PREFLIGHT=1")

    version_error = _check_python_version()
    if version_error:
        return PreflightResult(False, version_error)

    if check_deps:
        dep_error = _check_python_deps()
        if dep_error:
            return PreflightResult(False, dep_error)

    return PreflightResult(True, "Preflight OK")


def run_preflight_or_die(*, check_deps: bool = True) -> None:
    result = run_preflight(check_deps=check_deps)
    if result.ok:
        return

    sys.stderr.write("\nspatialnote preflight check failed:\n")
    sys.stderr.write(result.message)
    sys.stderr.write("\n\n")
    sys.stderr.write(
        "Suggested setup:\n"
        "  sudo dnf install glib2 gobject-introspection  (or your distro's equivalent)\n"
        "  pip install -e .\n\n"
    )
    raise SystemExit(1)
