"""Convenience wrapper functions for easy-to-use API.

Use these when you want to go from arrays to an expanded feature list in one
call, without building arenas, jobs and feature lists yourself.

Examples
--------
>>> flist = expand_traces(acquisition, mz=np.array([500.25, 622.03]))
>>> for row in flist.sorted_by_mz():
...     print(row.row_id, row.feature.mz, len(row.series))

>>> # Raw data with a noise floor, 4 threads
>>> params = ImsExpanderParams(use_raw_data=True, noise_level=200.0, n_workers=4)
>>> flist = expand_traces(acquisition, mz=feature_mz, params=params)
"""

from typing import Optional

import numpy as np

from .data.acquisition import IMSAcquisition
from .expansion.job import JobStatus
from .expansion.task import ImsExpanderTask
from .features.feature_list import FeatureList
from .params import ImsExpanderParams
from .traces.arena import TraceArena


def expand_traces(
    acquisition: IMSAcquisition,
    mz: Optional[np.ndarray] = None,
    traces: Optional[TraceArena] = None,
    params: Optional[ImsExpanderParams] = None,
    rt_lo: Optional[np.ndarray] = None,
    rt_hi: Optional[np.ndarray] = None,
    mobility_lo: Optional[np.ndarray] = None,
    mobility_hi: Optional[np.ndarray] = None,
) -> FeatureList:
    """Expand traces and return the resulting feature list.

    Parameters
    ----------
    acquisition : IMSAcquisition
        Raw data file
    mz : np.ndarray, optional
        Feature m/z values; windows use ``params.mz_tolerance_ppm``
    traces : TraceArena, optional
        Prebuilt traces (instead of ``mz``)
    params : ImsExpanderParams, optional
        Expansion parameters
    rt_lo, rt_hi, mobility_lo, mobility_hi : np.ndarray, optional
        Per-feature RT and mobility windows (only with ``mz``)

    Returns
    -------
    FeatureList

    Raises
    ------
    RuntimeError
        If the expansion ends in an error state
    """
    params = params if params is not None else ImsExpanderParams()

    if (mz is None) == (traces is None):
        raise ValueError("Pass exactly one of 'mz' or 'traces'")
    if traces is None:
        traces = TraceArena.from_features(
            mz, params.mz_tolerance_ppm,
            rt_lo=rt_lo, rt_hi=rt_hi,
            mobility_lo=mobility_lo, mobility_hi=mobility_hi,
        )

    task = ImsExpanderTask(acquisition, traces, params)
    status = task.run()
    if status == JobStatus.ERROR:
        raise RuntimeError(f"Trace expansion failed: {task.error_message}")
    return task.output
