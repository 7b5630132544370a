"""Market data provider implementations."""
from .http_provider import HttpMarketDataProvider

__all__ = ["HttpMarketDataProvider"]
