"""Site status checks: probe HTTP endpoints and notify on status changes."""

__version__ = "0.1.0"
