"""Turn swept trace accumulators into feature list rows.

Every trace with points in at least ``min_mobility_scans`` mobility scans
becomes one FeatureListRow; traces with less data are not features and are
dropped without notice. Traces are independent after the sweep, so the order
in which they are materialized does not matter.
"""

from typing import List, Optional

import numpy as np

from ..constants import MIN_MOBILITY_SCANS, TIMS_MOBILITY_BIN_WIDTH
from ..data.acquisition import IMSAcquisition
from ..features.feature_list import ExpandedFeature, FeatureListRow
from ..traces.arena import TraceAccumulators
from ..series.mobilogram import IonMobilogramTimeSeries, calculate_fwhm, integrate_trapezoid


def calculate_feature(series: IonMobilogramTimeSeries) -> ExpandedFeature:
    """Recompute the representative values of a series.

    Parameters
    ----------
    series : IonMobilogramTimeSeries
        Non-empty expanded series

    Returns
    -------
    ExpandedFeature
    """
    intensity = series.intensity
    total = float(np.sum(intensity))
    if total > 0:
        mz = float(np.sum(series.mz * intensity) / total)
    else:
        mz = float(np.mean(series.mz))

    chrom_rt, chrom_intensity = series.chromatogram()
    apex = int(np.argmax(chrom_intensity))
    most_intense = int(np.argmax(intensity))

    return ExpandedFeature(
        mz=mz,
        rt=float(chrom_rt[apex]),
        mobility=float(series.mobility[most_intense]),
        height=float(chrom_intensity[apex]),
        area=float(integrate_trapezoid(chrom_rt, chrom_intensity)),
        fwhm=float(calculate_fwhm(chrom_rt, chrom_intensity)),
        mz_min=float(np.min(series.mz)),
        mz_max=float(np.max(series.mz)),
        rt_min=float(chrom_rt[0]),
        rt_max=float(chrom_rt[-1]),
        mobility_min=float(np.min(series.mobility)),
        mobility_max=float(np.max(series.mobility)),
        n_scans=len(series),
        n_frames=len(chrom_rt),
    )


def materialize_trace(
    accumulators: TraceAccumulators,
    trace_idx: int,
    acquisition: IMSAcquisition,
    min_mobility_scans: int = MIN_MOBILITY_SCANS,
    mobilogram_bin_width: float = TIMS_MOBILITY_BIN_WIDTH,
) -> Optional[FeatureListRow]:
    """Build the output row of one trace.

    Parameters
    ----------
    accumulators : TraceAccumulators
        Finalized sweep output
    trace_idx : int
        Trace position
    acquisition : IMSAcquisition
        Acquisition the points were taken from
    min_mobility_scans : int
        Minimum number of mobility scans for a row (default: 2)
    mobilogram_bin_width : float
        Bin width of the summed mobilogram

    Returns
    -------
    FeatureListRow or None
        None if the trace has too few mobility scans
    """
    if accumulators.n_scans(trace_idx) < min_mobility_scans:
        return None

    scan_index, mz, intensity = accumulators.points(trace_idx)
    series = IonMobilogramTimeSeries.from_points(scan_index, mz, intensity, acquisition)
    mobilogram_mobility, mobilogram_intensity = series.summed_mobilogram(mobilogram_bin_width)

    return FeatureListRow(
        row_id=int(accumulators.row_ids[trace_idx]),
        raw_file=acquisition.name,
        feature=calculate_feature(series),
        series=series,
        mobilogram_mobility=mobilogram_mobility,
        mobilogram_intensity=mobilogram_intensity,
    )


def materialize_traces(
    accumulators: TraceAccumulators,
    acquisition: IMSAcquisition,
    min_mobility_scans: int = MIN_MOBILITY_SCANS,
    mobilogram_bin_width: float = TIMS_MOBILITY_BIN_WIDTH,
) -> List[FeatureListRow]:
    """Build rows for all traces with enough data.

    Examples
    --------
    >>> rows = materialize_traces(arena.take_accumulators(), acquisition)
    >>> [len(r.series) for r in rows]
    """
    rows = []
    for trace_idx in range(len(accumulators)):
        row = materialize_trace(
            accumulators, trace_idx, acquisition,
            min_mobility_scans, mobilogram_bin_width,
        )
        if row is not None:
            rows.append(row)
    return rows
