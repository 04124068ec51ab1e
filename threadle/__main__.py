"""Module entrypoint for running Threadle as ``python -m threadle``."""

from __future__ import annotations

from threadle.cli import main


if __name__ == "__main__":
    main()
