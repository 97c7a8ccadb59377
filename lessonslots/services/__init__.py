"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .scheduling_service import ScheduleStoreProtocol, SchedulingService

__all__ = ["ScheduleStoreProtocol", "SchedulingService"]
