"""
Execution Engine.

Usage fee gating and throttled batch scheduling.
"""

from relayer.engine.fee_gate import UsageFeeGate
from relayer.engine.scheduler import BatchScheduler, split_groups

__all__ = [
    "UsageFeeGate",
    "BatchScheduler",
    "split_groups",
]
