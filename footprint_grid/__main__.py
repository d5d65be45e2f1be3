"""Module entry point: python -m footprint_grid ..."""

from __future__ import annotations

from footprint_grid.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
