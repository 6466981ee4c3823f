"""HTTP API for the Financial Aggregator service."""
from aggregator.api.routes import router

__all__ = ["router"]
