"""External adapters - Binance data, event bus, clock."""
from regimepulse.infrastructure.external.binance_adapter import BinanceMarketDataProvider
from regimepulse.infrastructure.external.event_bus_adapter import EventBus
from regimepulse.infrastructure.external.system_clock import SystemClock
from regimepulse.infrastructure.external.trade_feed import TradeFeed

__all__ = [
    "BinanceMarketDataProvider",
    "EventBus",
    "SystemClock",
    "TradeFeed",
]
