"""Trace expansion: sweep, materialization and job control.

This module re-scans a full ion-mobility acquisition and recovers every data
point belonging to coarsely detected candidate traces.

Key Features
------------
- Two-pointer sweep over m/z-sorted traces and points (numba, GIL released)
- Greedy resolution of overlapping trace windows
- Cooperative cancellation at frame granularity
- Polled progress and status, no exceptions across the job boundary
- Parallel sub-jobs over m/z slices sharing one output list

Examples
--------
>>> from alphaimsfast.expansion import ImsExpanderJob, JobStatus
>>>
>>> job = ImsExpanderJob(acquisition, arena, flist, params)
>>> job.run()
>>> if job.status == JobStatus.ERROR:
...     print(job.error_message)
"""

from .sweep import (
    sweep_mobility_scan,
    SweepEngine,
    SweepResult,
)

from .materialize import (
    calculate_feature,
    materialize_trace,
    materialize_traces,
)

from .job import (
    JobStatus,
    TERMINAL_STATES,
    ImsExpanderJob,
)

from .task import ImsExpanderTask

__all__ = [
    # Sweep
    "sweep_mobility_scan",
    "SweepEngine",
    "SweepResult",
    # Materialization
    "calculate_feature",
    "materialize_trace",
    "materialize_traces",
    # Job control
    "JobStatus",
    "TERMINAL_STATES",
    "ImsExpanderJob",
    "ImsExpanderTask",
]
