"""REST layer over the ledger services."""

from nasiya.api.app import create_app

__all__ = ["create_app"]
