"""Candidate traces and their point accumulators."""

from .arena import (
    ArenaState,
    TraceAccumulators,
    TraceArena,
    trace_accepts,
)

__all__ = [
    'ArenaState',
    'TraceAccumulators',
    'TraceArena',
    'trace_accepts',
]
