"""HTTP client for the reps web API."""

from .api_client import RepsApiClient

__all__ = ["RepsApiClient"]
