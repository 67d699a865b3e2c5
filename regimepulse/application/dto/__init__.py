"""Application DTOs - Data Transfer Objects for use cases."""
from regimepulse.application.dto.snapshot_dto import DetectorStatus, EngineSnapshot, SignalReport

__all__ = [
    "DetectorStatus",
    "EngineSnapshot",
    "SignalReport",
]
