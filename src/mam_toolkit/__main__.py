"""
`python -m mam_toolkit` entrypoint.

This is mainly for convenience; the installed console script `mam-toolkit` calls
the same `mam_toolkit.cli:main`.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
