"""Module entry point for `python -m sdk_test_matrix`."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
