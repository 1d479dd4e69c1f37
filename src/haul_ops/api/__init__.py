"""HTTP API."""

from haul_ops.api.app import create_app

__all__ = ["create_app"]
