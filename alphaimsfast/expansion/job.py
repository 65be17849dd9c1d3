"""Expansion job: sweep, materialize and publish one slice of traces.

A job owns one TraceArena and runs single-threaded. Callers poll ``status``,
``progress`` and ``description`` from other threads and may call
``cancel()`` at any time. ``run()`` never raises; failures end in
``JobStatus.ERROR`` with ``error_message`` set.

State machine
-------------
WAITING -> PROCESSING -> FINISHED | ERROR | CANCELED
WAITING -> CANCELED                (cancelled before start)

Rows are handed to the output FeatureList only on success, in one
``add_rows`` call. A cancelled or failed job publishes nothing.
"""

import logging
import threading
import time
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from ..constants import MZ_DECIMALS, SWEEP_PROGRESS_WEIGHT
from ..data.access import MobilityScanDataAccess
from ..data.acquisition import Frame, IMSAcquisition
from ..features.feature_list import FeatureList, FeatureListRow
from ..params import ImsExpanderParams
from ..traces.arena import TraceArena
from .materialize import materialize_trace
from .sweep import SweepEngine, SweepResult

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    WAITING = "waiting"
    PROCESSING = "processing"
    FINISHED = "finished"
    ERROR = "error"
    CANCELED = "canceled"


TERMINAL_STATES = frozenset({JobStatus.FINISHED, JobStatus.ERROR, JobStatus.CANCELED})

_TRANSITIONS = {
    JobStatus.WAITING: frozenset({JobStatus.PROCESSING, JobStatus.CANCELED}),
    JobStatus.PROCESSING: frozenset(TERMINAL_STATES),
}


class ImsExpanderJob:
    """Expand one set of traces against one acquisition.

    Parameters
    ----------
    acquisition : IMSAcquisition
        Raw data file to re-scan
    traces : TraceArena
        Open arena with the candidate traces; owned by the job from now on
    output : FeatureList
        Shared output list, may be written by sibling jobs concurrently
    params : ImsExpanderParams, optional
        Expansion parameters (default: ImsExpanderParams())
    frames : sequence of int, optional
        Frame indices to sweep (default: all frames)
    name : str, optional
        Name used in descriptions (default: output list name)

    Examples
    --------
    >>> job = ImsExpanderJob(acquisition, arena, flist, ImsExpanderParams(use_raw_data=True))
    >>> threading.Thread(target=job.run).start()
    >>> job.progress, job.description
    >>> job.cancel()
    """

    def __init__(
        self,
        acquisition: IMSAcquisition,
        traces: TraceArena,
        output: FeatureList,
        params: Optional[ImsExpanderParams] = None,
        frames: Optional[Sequence[int]] = None,
        name: Optional[str] = None,
    ):
        self.acquisition = acquisition
        self.arena = traces
        self.output = output
        self.params = params if params is not None else ImsExpanderParams()
        self.frames = frames
        self.name = name if name is not None else output.name

        self._status = JobStatus.WAITING
        self._cancel_event = threading.Event()
        self.error_message: Optional[str] = None

        if frames is None:
            self.total_frames = acquisition.n_frames
        else:
            self.total_frames = len(np.unique(np.asarray(frames, dtype=np.int64)))
        self.n_frames_processed = 0
        self.total_traces = len(traces)
        self.n_traces_materialized = 0
        self.n_rows_created = 0

        self._mz_range_text = self._format_mz_range(traces)
        self.description = self._sweep_description()

    @staticmethod
    def _format_mz_range(traces: TraceArena) -> str:
        lo, hi = traces.overall_mz_range()
        return f"{lo:.{MZ_DECIMALS}f} - {hi:.{MZ_DECIMALS}f}"

    def _sweep_description(self) -> str:
        return (
            f"{self.name}: expanding traces for frame {self.n_frames_processed}/"
            f"{self.total_frames} m/z range: {self._mz_range_text}"
        )

    # -------------------------------------------------------------------------
    # Polling surface
    # -------------------------------------------------------------------------

    @property
    def status(self) -> JobStatus:
        return self._status

    @property
    def is_done(self) -> bool:
        return self._status in TERMINAL_STATES

    @property
    def progress(self) -> float:
        """Fraction of work done in [0, 1], non-decreasing while processing."""
        if self._status == JobStatus.FINISHED:
            return 1.0
        frames_fraction = self.n_frames_processed / max(self.total_frames, 1)
        if self.total_traces > 0:
            traces_fraction = self.n_traces_materialized / self.total_traces
        else:
            traces_fraction = 0.0
        progress = (
            SWEEP_PROGRESS_WEIGHT * frames_fraction
            + (1.0 - SWEEP_PROGRESS_WEIGHT) * traces_fraction
        )
        return min(1.0, max(0.0, progress))

    def cancel(self):
        """Request cooperative cancellation."""
        self._cancel_event.set()

    def is_canceled(self) -> bool:
        return self._cancel_event.is_set()

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _set_status(self, status: JobStatus):
        allowed = _TRANSITIONS.get(self._status, frozenset())
        if status not in allowed:
            raise RuntimeError(f"Invalid job transition {self._status.value} -> {status.value}")
        self._status = status

    def run(self):
        """Run the job to a terminal state. Never raises."""
        if self._status != JobStatus.WAITING:
            logger.warning(f"Job '{self.name}' was already started ({self._status.value})")
            return

        if self.is_canceled():
            self.arena.discard()
            self._set_status(JobStatus.CANCELED)
            return

        self._set_status(JobStatus.PROCESSING)
        start = time.perf_counter()

        try:
            published = self._expand()
        except Exception as e:
            self.arena.discard()
            logger.warning(f"Trace expansion failed for {self.acquisition.name}: {e}", exc_info=True)
            self.error_message = str(e)
            self._set_status(JobStatus.ERROR)
            return

        if not published:
            logger.info(f"Trace expansion cancelled: {self.description}")
            self._set_status(JobStatus.CANCELED)
            return

        elapsed = time.perf_counter() - start
        logger.info(
            f"✓ Expanded {self.n_rows_created:,} of {self.total_traces:,} traces "
            f"({self._mz_range_text}) from {self.acquisition.name} in {elapsed:.2f}s"
        )
        self._set_status(JobStatus.FINISHED)

    def _on_frame(self, frame: Frame):
        self.n_frames_processed += 1
        self.description = self._sweep_description()

    def _expand(self) -> bool:
        """Sweep and materialize. Returns False if cancelled."""
        params = self.params
        access = MobilityScanDataAccess(
            self.acquisition,
            params.data_type,
            frames=self.frames,
            noise_level=params.effective_noise_level,
        )
        self.total_frames = access.get_number_of_scans()

        engine = SweepEngine(self.arena)
        result = engine.run(access, is_cancelled=self.is_canceled, on_frame=self._on_frame)
        if result == SweepResult.CANCELLED:
            return False

        accumulators = self.arena.take_accumulators()
        rows: List[FeatureListRow] = []

        for trace_idx in range(len(accumulators)):
            self.description = (
                f"Creating new features {self.n_traces_materialized}/{self.total_traces}"
            )
            row = materialize_trace(
                accumulators, trace_idx, self.acquisition,
                min_mobility_scans=params.min_mobility_scans,
                mobilogram_bin_width=params.mobilogram_bin_width,
            )
            if row is not None:
                rows.append(row)
            self.n_traces_materialized += 1

            if self.is_canceled():
                return False

        # Release the accumulated points before publishing
        del accumulators

        if self.is_canceled():
            return False

        self.output.add_rows(rows)
        self.n_rows_created = len(rows)
        return True
