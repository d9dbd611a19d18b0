"""Run the auth-store diagnostics CLI via ``python -m lib_auth_stores``."""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":  # pragma: no cover - exercised via python -m
    raise SystemExit(main())
