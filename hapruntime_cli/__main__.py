"""Entry point for ``python -m hapruntime_cli``."""

from __future__ import annotations

from hapruntime_cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
