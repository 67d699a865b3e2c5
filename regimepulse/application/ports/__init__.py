"""Application ports - Interfaces to infrastructure."""
from regimepulse.application.ports.clock import IClock
from regimepulse.application.ports.event_publisher import IEventPublisher
from regimepulse.application.ports.market_data_provider import IMarketDataProvider

__all__ = [
    "IClock",
    "IEventPublisher",
    "IMarketDataProvider",
]
