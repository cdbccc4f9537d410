"""spatialnote launcher.

Provides a stable entry point that runs preflight checks before importing
GLib-backed modules, which gives clearer error messages on new systems.
"""

from __future__ import annotations

import sys


def main(argv: list[str] | None = None) -> int:
    from spatialnote.preflight import run_preflight_or_die

    run_preflight_or_die(check_deps=True)

    from spatialnote.cli import main as cli_main

    return int(cli_main(argv))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
