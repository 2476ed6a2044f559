"""Profile synchronization client for the marketplace REST API."""

__version__ = "0.1.0"
