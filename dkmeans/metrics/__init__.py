from .timers import RunContext, Timer
from .metrics import speedup, efficiency, throughput

__all__ = [
    "RunContext",
    "Timer",
    "speedup",
    "efficiency",
    "throughput",
]
