"""
Tick scheduling for Swipe Nexus.
"""

from swipe_nexus.tick_engine.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    Scheduler,
    TimerHandle,
)

__all__ = ["AsyncioScheduler", "ManualScheduler", "Scheduler", "TimerHandle"]
