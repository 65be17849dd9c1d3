"""Two-pointer sweep that distributes raw data points across candidate traces.

Algorithm
---------
Traces are sorted by their lower m/z bound and the points of every mobility
scan are sorted by m/z. For each mobility scan a single trace cursor starts
at the first trace and only ever moves forward:

1. Advance the cursor while the cursor trace ends below the point m/z.
2. If the cursor trace starts above the point m/z, the point belongs to no
   trace. Skip it and keep the cursor.
3. While the point lies inside the cursor trace and the trace rejects it
   (it already holds a point for this scan, or RT / mobility are outside its
   window), advance the cursor and retry.

Overlapping windows are resolved greedily: a point goes to the lowest-indexed
trace that takes it, and a second point for the same trace in the same scan
falls through to the next overlapping trace.

Performance
-----------
O(n_points + n_scans * cursor advances). The cursor is monotone within a
scan, so this is near-linear as long as windows overlap only locally. With
arbitrarily wide overlaps step 3 can walk long stretches of traces per point
and the worst case becomes quadratic.
"""

import logging
from enum import Enum
from typing import Callable, Optional

import numpy as np
from numba import njit

from ..data.access import EndOfDataError, MissingPeakListError, MobilityScanDataAccess
from ..data.acquisition import Frame
from ..traces.arena import TraceArena, trace_accepts

logger = logging.getLogger(__name__)


@njit(nogil=True)
def sweep_mobility_scan(
    mz_values: np.ndarray,
    scan_index: int,
    rt: float,
    mobility: float,
    mz_lo: np.ndarray,
    mz_hi: np.ndarray,
    rt_lo: np.ndarray,
    rt_hi: np.ndarray,
    mobility_lo: np.ndarray,
    mobility_hi: np.ndarray,
    last_scan: np.ndarray,
) -> np.ndarray:
    """Assign the points of one mobility scan to traces.

    Parameters
    ----------
    mz_values : np.ndarray (float64)
        m/z values of the scan, sorted ascending
    scan_index : int
        Global index of the mobility scan
    rt : float
        Retention time of the owning frame
    mobility : float
        Mobility value of the scan
    mz_lo, mz_hi : np.ndarray (float64)
        Trace m/z windows, sorted by ``mz_lo``
    rt_lo, rt_hi, mobility_lo, mobility_hi : np.ndarray (float64)
        Trace RT and mobility windows
    last_scan : np.ndarray (int64)
        Last filled scan per trace, updated in place on acceptance

    Returns
    -------
    assigned : np.ndarray (int64)
        Trace index per point, -1 for points no trace took

    Examples
    --------
    >>> mz_lo = np.array([100.0, 100.04])
    >>> mz_hi = np.array([100.05, 100.1])
    >>> assigned = sweep_mobility_scan(
    ...     np.array([100.045, 100.046]), 0, 0.0, 0.0, mz_lo, mz_hi,
    ...     rt_lo, rt_hi, mob_lo, mob_hi, last_scan)
    >>> assigned
    array([0, 1])
    """
    n_points = len(mz_values)
    n_traces = len(mz_lo)
    assigned = np.full(n_points, -1, dtype=np.int64)

    if n_traces == 0:
        return assigned

    last_trace = n_traces - 1
    trace_index = 0

    for i in range(n_points):
        mz = mz_values[i]

        while trace_index < last_trace and mz_hi[trace_index] < mz:
            trace_index += 1

        # Past the last trace, nothing further up can match
        if trace_index == last_trace and mz_hi[last_trace] < mz:
            break

        if mz_lo[trace_index] > mz:
            continue

        while mz_lo[trace_index] <= mz and mz <= mz_hi[trace_index]:
            if trace_accepts(
                trace_index, scan_index, rt, mobility,
                rt_lo, rt_hi, mobility_lo, mobility_hi, last_scan,
            ):
                last_scan[trace_index] = scan_index
                assigned[i] = trace_index
                break
            if trace_index >= last_trace:
                break
            trace_index += 1

    return assigned


class SweepResult(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SweepEngine:
    """Drive the sweep over all frames of a data access.

    Parameters
    ----------
    arena : TraceArena
        Open arena; mutated in place

    Examples
    --------
    >>> engine = SweepEngine(arena)
    >>> result = engine.run(access, is_cancelled=job.is_canceled)
    >>> if result == SweepResult.COMPLETED:
    ...     accumulators = arena.take_accumulators()
    """

    def __init__(self, arena: TraceArena):
        self.arena = arena
        self.n_frames_processed = 0
        self.n_points_assigned = 0

    def run(
        self,
        access: MobilityScanDataAccess,
        is_cancelled: Optional[Callable[[], bool]] = None,
        on_frame: Optional[Callable[[Frame], None]] = None,
    ) -> SweepResult:
        """Sweep every frame of ``access`` and finalize the arena.

        Cancellation is checked once per frame. On cancellation the arena is
        discarded and nothing is kept.

        Raises
        ------
        MissingPeakListError
            If a mobility scan lacks the selected data. The arena is
            discarded before the error propagates.
        """
        arena = self.arena
        mz_lo, mz_hi = arena.mz_lo, arena.mz_hi
        rt_lo, rt_hi = arena.rt_lo, arena.rt_hi
        mobility_lo, mobility_hi = arena.mobility_lo, arena.mobility_hi
        last_scan = arena.last_scan
        has_traces = len(arena) > 0

        try:
            while True:
                if is_cancelled is not None and is_cancelled():
                    arena.discard()
                    return SweepResult.CANCELLED

                try:
                    frame = access.next_frame()
                except EndOfDataError:
                    break

                while access.has_next_mobility_scan():
                    scan = access.next_mobility_scan()
                    if not has_traces or access.get_number_of_data_points() == 0:
                        continue

                    assigned = sweep_mobility_scan(
                        access.mz_values, scan.index, frame.rt, scan.mobility,
                        mz_lo, mz_hi, rt_lo, rt_hi, mobility_lo, mobility_hi,
                        last_scan,
                    )
                    hits = assigned >= 0
                    if hits.any():
                        arena.record(
                            assigned[hits], scan.index,
                            access.mz_values[hits], access.intensity_values[hits],
                        )
                        self.n_points_assigned += int(hits.sum())

                self.n_frames_processed += 1
                if on_frame is not None:
                    on_frame(frame)

        except MissingPeakListError:
            arena.discard()
            raise

        arena.finalize()
        return SweepResult.COMPLETED
