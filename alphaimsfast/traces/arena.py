"""Candidate traces and their point accumulators.

Candidate traces come from an upstream trace detection step: each one is an
m/z window, optionally bounded in retention time and mobility. All traces of
one expansion job live in a TraceArena, a set of contiguous numpy arrays
indexed by trace position and sorted by the lower m/z bound. Windows may
overlap.

Accepted points are appended to the arena in chunks (one chunk per mobility
scan) while the sweep runs. ``finalize()`` turns the chunks into one
contiguous block per trace; ``take_accumulators()`` hands that block to the
series materializer exactly once.

Lifecycle
---------
OPEN -> FINALIZED -> CONSUMED
OPEN -> DISCARDED              (cancellation or fatal error)
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
from numba import njit

from ..constants import UNBOUNDED_HIGH, UNBOUNDED_LOW, UNFILLED_SCAN


@njit(nogil=True)
def trace_accepts(
    trace_idx: int,
    scan_index: int,
    rt: float,
    mobility: float,
    rt_lo: np.ndarray,
    rt_hi: np.ndarray,
    mobility_lo: np.ndarray,
    mobility_hi: np.ndarray,
    last_scan: np.ndarray,
) -> bool:
    """Acceptance predicate of a trace for a point inside its m/z window.

    A trace holds at most one point per mobility scan. Mobility scans are
    visited in ascending order, so a scan index not above the last filled one
    means the trace already has its point for this scan.

    Parameters
    ----------
    trace_idx : int
        Trace position in the arena
    scan_index : int
        Global index of the current mobility scan
    rt : float
        Retention time of the current frame
    mobility : float
        Mobility of the current scan
    rt_lo, rt_hi, mobility_lo, mobility_hi : np.ndarray (float64)
        Per-trace RT and mobility windows (closed)
    last_scan : np.ndarray (int64)
        Last filled mobility scan per trace

    Returns
    -------
    bool
        True if the trace takes the point
    """
    if scan_index <= last_scan[trace_idx]:
        return False
    if rt < rt_lo[trace_idx] or rt > rt_hi[trace_idx]:
        return False
    if mobility < mobility_lo[trace_idx] or mobility > mobility_hi[trace_idx]:
        return False
    return True


class ArenaState(Enum):
    OPEN = "open"
    FINALIZED = "finalized"
    CONSUMED = "consumed"
    DISCARDED = "discarded"


@dataclass
class TraceAccumulators:
    """Accepted points of all traces after the sweep.

    Points of trace i are ``offsets[i]:offsets[i + 1]`` in the flat arrays,
    ordered by mobility scan index.
    """

    row_ids: np.ndarray
    mz_lo: np.ndarray
    mz_hi: np.ndarray
    offsets: np.ndarray
    scan_index: np.ndarray
    mz: np.ndarray
    intensity: np.ndarray

    def __len__(self) -> int:
        return len(self.row_ids)

    def n_scans(self, trace_idx: int) -> int:
        return int(self.offsets[trace_idx + 1] - self.offsets[trace_idx])

    def points(self, trace_idx: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        start, stop = self.offsets[trace_idx], self.offsets[trace_idx + 1]
        return self.scan_index[start:stop], self.mz[start:stop], self.intensity[start:stop]


def _bounds(values, n, default) -> np.ndarray:
    if values is None:
        return np.full(n, default, dtype=np.float64)
    values = np.asarray(values, dtype=np.float64)
    if len(values) != n:
        raise ValueError(f"Expected {n} window bounds, got {len(values)}")
    return values


class TraceArena:
    """Sorted candidate traces plus their accumulated points.

    Parameters
    ----------
    mz_lo, mz_hi : np.ndarray (float64)
        Closed m/z window per trace; ``mz_lo < mz_hi`` is required
    rt_lo, rt_hi : np.ndarray, optional
        RT window per trace (seconds). Default: unbounded.
    mobility_lo, mobility_hi : np.ndarray, optional
        Mobility window per trace. Default: unbounded.
    row_ids : np.ndarray (int64), optional
        Id of the upstream feature row per trace. Default: input position.

    Notes
    -----
    Traces are stably sorted by ``mz_lo`` on construction; ties keep the
    input order. All positional accessors refer to the sorted order.

    Examples
    --------
    >>> arena = TraceArena(np.array([100.04, 100.0]), np.array([100.1, 100.05]))
    >>> arena.mz_range(0)
    (100.0, 100.05)
    >>> arena.row_id(0)
    1
    """

    def __init__(
        self,
        mz_lo: np.ndarray,
        mz_hi: np.ndarray,
        rt_lo: Optional[np.ndarray] = None,
        rt_hi: Optional[np.ndarray] = None,
        mobility_lo: Optional[np.ndarray] = None,
        mobility_hi: Optional[np.ndarray] = None,
        row_ids: Optional[np.ndarray] = None,
    ):
        mz_lo = np.asarray(mz_lo, dtype=np.float64)
        mz_hi = np.asarray(mz_hi, dtype=np.float64)
        n = len(mz_lo)

        if len(mz_hi) != n:
            raise ValueError("mz_lo and mz_hi must have the same length")
        if np.any(~(mz_lo < mz_hi)):
            bad = int(np.flatnonzero(~(mz_lo < mz_hi))[0])
            raise ValueError(
                f"Trace {bad} has a degenerate m/z window [{mz_lo[bad]}, {mz_hi[bad]}]"
            )

        if row_ids is None:
            row_ids = np.arange(n, dtype=np.int64)
        else:
            row_ids = np.asarray(row_ids, dtype=np.int64)
            if len(row_ids) != n:
                raise ValueError(f"Expected {n} row ids, got {len(row_ids)}")

        order = np.argsort(mz_lo, kind="stable")

        self.mz_lo = mz_lo[order]
        self.mz_hi = mz_hi[order]
        self.rt_lo = _bounds(rt_lo, n, UNBOUNDED_LOW)[order]
        self.rt_hi = _bounds(rt_hi, n, UNBOUNDED_HIGH)[order]
        self.mobility_lo = _bounds(mobility_lo, n, UNBOUNDED_LOW)[order]
        self.mobility_hi = _bounds(mobility_hi, n, UNBOUNDED_HIGH)[order]
        self.row_ids = row_ids[order]

        self.last_scan = np.full(n, UNFILLED_SCAN, dtype=np.int64)
        self.state = ArenaState.OPEN
        self._chunks: Optional[List[tuple]] = []
        self._accumulators: Optional[TraceAccumulators] = None

    @classmethod
    def from_features(
        cls,
        mz: np.ndarray,
        mz_tolerance_ppm: float,
        rt_lo: Optional[np.ndarray] = None,
        rt_hi: Optional[np.ndarray] = None,
        mobility_lo: Optional[np.ndarray] = None,
        mobility_hi: Optional[np.ndarray] = None,
        row_ids: Optional[np.ndarray] = None,
    ) -> "TraceArena":
        """Build traces from feature m/z values and a ppm tolerance.

        Parameters
        ----------
        mz : np.ndarray
            Representative m/z per upstream feature
        mz_tolerance_ppm : float
            Half-width of the m/z window in ppm
        rt_lo, rt_hi, mobility_lo, mobility_hi, row_ids
            Passed through to the constructor

        Returns
        -------
        TraceArena
        """
        if mz_tolerance_ppm <= 0:
            raise ValueError(f"mz_tolerance_ppm must be positive, got {mz_tolerance_ppm}")

        mz = np.asarray(mz, dtype=np.float64)
        delta = mz * mz_tolerance_ppm / 1e6
        return cls(
            mz - delta, mz + delta,
            rt_lo=rt_lo, rt_hi=rt_hi,
            mobility_lo=mobility_lo, mobility_hi=mobility_hi,
            row_ids=row_ids,
        )

    # -------------------------------------------------------------------------
    # Trace properties
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.mz_lo)

    def mz_range(self, trace_idx: int) -> Tuple[float, float]:
        return float(self.mz_lo[trace_idx]), float(self.mz_hi[trace_idx])

    def row_id(self, trace_idx: int) -> int:
        return int(self.row_ids[trace_idx])

    def overall_mz_range(self) -> Tuple[float, float]:
        """m/z range covered by all traces, (0.0, 0.0) if empty."""
        if len(self) == 0:
            return 0.0, 0.0
        return float(self.mz_lo[0]), float(np.max(self.mz_hi))

    def split(self, max_traces: int) -> List["TraceArena"]:
        """Split into arenas of at most ``max_traces`` consecutive traces.

        Only an untouched arena can be split. Each part covers a contiguous
        stretch of the m/z-sorted trace list.
        """
        if max_traces < 1:
            raise ValueError(f"max_traces must be >= 1, got {max_traces}")
        self._check_open()
        if np.any(self.last_scan != UNFILLED_SCAN):
            raise RuntimeError("Cannot split traces that already hold points")

        parts = []
        for start in range(0, len(self), max_traces):
            stop = min(start + max_traces, len(self))
            parts.append(TraceArena(
                self.mz_lo[start:stop], self.mz_hi[start:stop],
                rt_lo=self.rt_lo[start:stop], rt_hi=self.rt_hi[start:stop],
                mobility_lo=self.mobility_lo[start:stop],
                mobility_hi=self.mobility_hi[start:stop],
                row_ids=self.row_ids[start:stop],
            ))
        return parts

    # -------------------------------------------------------------------------
    # Accumulation
    # -------------------------------------------------------------------------

    def _check_open(self):
        if self.state != ArenaState.OPEN:
            raise RuntimeError(f"Trace arena is {self.state.value}, accumulators are read-only")

    def try_accept(
        self,
        trace_idx: int,
        scan_index: int,
        mz: float,
        intensity: float,
        rt: float = 0.0,
        mobility: float = 0.0,
    ) -> bool:
        """Offer a single point to one trace.

        The caller is responsible for the m/z window check; this applies the
        acceptance predicate and records the point on success. Mobility
        scans must be offered in ascending order per trace; offering the
        last filled scan again is a normal rejection.

        Returns
        -------
        bool
            True if the point was recorded

        Raises
        ------
        ValueError
            If ``scan_index`` is below the last scan the trace holds a point for
        """
        self._check_open()
        if scan_index < self.last_scan[trace_idx]:
            raise ValueError(
                f"Mobility scan {scan_index} offered to trace {trace_idx} after scan "
                f"{self.last_scan[trace_idx]}; scans must arrive in ascending order"
            )
        if not trace_accepts(
            trace_idx, scan_index, rt, mobility,
            self.rt_lo, self.rt_hi, self.mobility_lo, self.mobility_hi,
            self.last_scan,
        ):
            return False

        self.last_scan[trace_idx] = scan_index
        self._chunks.append((
            np.array([trace_idx], dtype=np.int64),
            scan_index,
            np.array([mz], dtype=np.float64),
            np.array([intensity], dtype=np.float64),
        ))
        return True

    def record(
        self,
        trace_indices: np.ndarray,
        scan_index: int,
        mz: np.ndarray,
        intensity: np.ndarray,
    ):
        """Append the points one mobility scan contributed to the traces.

        ``last_scan`` must already reflect the acceptance (the sweep kernel
        updates it in place).
        """
        self._check_open()
        if len(trace_indices) == 0:
            return
        self._chunks.append((
            np.asarray(trace_indices, dtype=np.int64),
            scan_index,
            np.asarray(mz, dtype=np.float64),
            np.asarray(intensity, dtype=np.float64),
        ))

    def n_accepted_scans(self) -> np.ndarray:
        """Number of mobility scans each trace holds a point for."""
        if self.state == ArenaState.FINALIZED:
            return np.diff(self._accumulators.offsets)
        self._check_open()
        counts = np.zeros(len(self), dtype=np.int64)
        for trace_indices, _, _, _ in self._chunks:
            np.add.at(counts, trace_indices, 1)
        return counts

    def finalize(self):
        """Freeze the accumulators into one contiguous block per trace."""
        self._check_open()

        if self._chunks:
            trace_idx = np.concatenate([c[0] for c in self._chunks])
            scan_index = np.concatenate(
                [np.full(len(c[0]), c[1], dtype=np.int64) for c in self._chunks]
            )
            mz = np.concatenate([c[2] for c in self._chunks])
            intensity = np.concatenate([c[3] for c in self._chunks])
        else:
            trace_idx = np.zeros(0, dtype=np.int64)
            scan_index = np.zeros(0, dtype=np.int64)
            mz = np.zeros(0, dtype=np.float64)
            intensity = np.zeros(0, dtype=np.float64)

        # Chunks arrive in scan order, a stable sort keeps it per trace
        order = np.argsort(trace_idx, kind="stable")
        counts = np.bincount(trace_idx, minlength=len(self))
        offsets = np.zeros(len(self) + 1, dtype=np.int64)
        offsets[1:] = np.cumsum(counts)

        self._accumulators = TraceAccumulators(
            row_ids=self.row_ids,
            mz_lo=self.mz_lo,
            mz_hi=self.mz_hi,
            offsets=offsets,
            scan_index=scan_index[order],
            mz=mz[order],
            intensity=intensity[order],
        )
        self._chunks = None
        self.state = ArenaState.FINALIZED

    def take_accumulators(self) -> TraceAccumulators:
        """Hand the finalized accumulators over. Can only be called once."""
        if self.state != ArenaState.FINALIZED:
            raise RuntimeError(f"Trace arena is {self.state.value}, expected finalized")
        accumulators = self._accumulators
        self._accumulators = None
        self.state = ArenaState.CONSUMED
        return accumulators

    def discard(self):
        """Drop all accumulated points (cancellation or error)."""
        self._chunks = None
        self._accumulators = None
        self.state = ArenaState.DISCARDED

    def __repr__(self) -> str:
        lo, hi = self.overall_mz_range()
        return (
            f"TraceArena(n_traces={len(self)}, mz_range=({lo:.4f}, {hi:.4f}), "
            f"state={self.state.value})"
        )
