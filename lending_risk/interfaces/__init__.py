"""Protocol interfaces for the lending position risk engine."""
from .clock import Clock, SystemClock
from .market_data import MarketDataProvider

__all__ = ["Clock", "MarketDataProvider", "SystemClock"]
