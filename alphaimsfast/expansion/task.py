"""Parallel trace expansion over m/z slices.

The trace list is cut into consecutive m/z slices of at most
``max_traces_per_job`` traces. Each slice becomes an ImsExpanderJob that
sweeps the whole acquisition on its own. Jobs run on a thread pool; the sweep
kernels release the GIL.

All jobs publish into a private staging list. Its rows reach the output list
in one ``add_rows`` call, and only if every sub-job finished. A cancelled or
failed task leaves the output list untouched.
"""

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

from ..data.acquisition import IMSAcquisition
from ..features.feature_list import FeatureList
from ..params import ImsExpanderParams
from ..traces.arena import TraceArena
from .job import TERMINAL_STATES, ImsExpanderJob, JobStatus

logger = logging.getLogger(__name__)


class ImsExpanderTask:
    """Split traces into sub-jobs and run them concurrently.

    Parameters
    ----------
    acquisition : IMSAcquisition
        Raw data file to re-scan
    traces : TraceArena
        All candidate traces (untouched arena)
    params : ImsExpanderParams, optional
        Expansion parameters
    output : FeatureList, optional
        Output list; a new one named "<file> expanded" is created if omitted.
        Receives rows only when the whole task finishes.
    frames : sequence of int, optional
        Frame indices to sweep (default: all frames)

    Examples
    --------
    >>> params = ImsExpanderParams(use_raw_data=True, noise_level=200.0, n_workers=4)
    >>> task = ImsExpanderTask(acquisition, arena, params)
    >>> status = task.run()
    >>> len(task.output)
    """

    def __init__(
        self,
        acquisition: IMSAcquisition,
        traces: TraceArena,
        params: Optional[ImsExpanderParams] = None,
        output: Optional[FeatureList] = None,
        frames: Optional[Sequence[int]] = None,
    ):
        self.acquisition = acquisition
        self.params = params if params is not None else ImsExpanderParams()
        self.output = output if output is not None else FeatureList(
            f"{acquisition.name} expanded", raw_files=[acquisition.name]
        )
        self._staging = FeatureList(self.output.name, raw_files=self.output.raw_files)

        parts = traces.split(self.params.max_traces_per_job) if len(traces) else []
        self.jobs: List[ImsExpanderJob] = [
            ImsExpanderJob(acquisition, part, self._staging, self.params, frames=frames)
            for part in parts
        ]

    @property
    def status(self) -> JobStatus:
        """Aggregated status: ERROR beats CANCELED beats FINISHED."""
        states = [j.status for j in self.jobs]
        if any(s not in TERMINAL_STATES for s in states):
            if all(s == JobStatus.WAITING for s in states):
                return JobStatus.WAITING
            return JobStatus.PROCESSING
        if JobStatus.ERROR in states:
            return JobStatus.ERROR
        if JobStatus.CANCELED in states:
            return JobStatus.CANCELED
        return JobStatus.FINISHED

    @property
    def progress(self) -> float:
        if not self.jobs:
            return 1.0 if self.status == JobStatus.FINISHED else 0.0
        return sum(j.progress for j in self.jobs) / len(self.jobs)

    @property
    def description(self) -> str:
        done = sum(1 for j in self.jobs if j.is_done)
        return f"{self.output.name}: expanding traces, {done}/{len(self.jobs)} sub-jobs done"

    @property
    def error_message(self) -> Optional[str]:
        for job in self.jobs:
            if job.error_message:
                return job.error_message
        return None

    def cancel(self):
        for job in self.jobs:
            job.cancel()

    def run(self) -> JobStatus:
        """Run all sub-jobs and return the aggregated status.

        The first failing sub-job cancels the ones still waiting or running.
        """
        if not self.jobs:
            warnings.warn(f"No traces to expand for {self.acquisition.name}.")
            return self.status

        logger.info(
            f"Expanding {sum(j.total_traces for j in self.jobs):,} traces of "
            f"{self.acquisition.name} in {len(self.jobs)} sub-jobs "
            f"({self.params.n_workers} workers)"
        )

        with ThreadPoolExecutor(max_workers=self.params.n_workers) as pool:
            futures = {pool.submit(job.run): job for job in self.jobs}
            for future in as_completed(futures):
                job = futures[future]
                future.result()
                if job.status == JobStatus.ERROR:
                    for other in self.jobs:
                        other.cancel()

        status = self.status
        if status == JobStatus.FINISHED:
            self.output.add_rows(self._staging.rows)
        # Hand staged rows over at most once
        self._staging = FeatureList(self.output.name, raw_files=self.output.raw_files)

        logger.info(
            f"✓ Trace expansion {status.value}: {len(self.output):,} rows "
            f"in '{self.output.name}'"
        )
        return status
