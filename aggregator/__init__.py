"""Financial Aggregator API: mock accounts and transactions over HTTP."""

__version__ = "0.1.0"
