"""Ion mobilogram time series and summary statistics.

An expanded trace becomes an IonMobilogramTimeSeries: one entry per mobility
scan the trace holds a point for, ordered by scan index. Per-frame sums give
the extracted ion chromatogram, per-mobility-bin sums give the summed
mobilogram.

High-performance helpers (numba-optimized):
- Per-frame intensity sums (chromatogram)
- Mobility binning (summed mobilogram)
- Trapezoid integration
- FWHM with linear interpolation
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numba import njit

from ..data.acquisition import IMSAcquisition


@njit
def sum_intensity_by_frame(
    frame_index: np.ndarray,
    intensity: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Sum intensities of consecutive entries sharing a frame.

    Args:
        frame_index: Frame per entry, sorted ascending
        intensity: Intensity per entry

    Returns:
        (frames, summed_intensity), one entry per distinct frame
    """
    n = len(frame_index)
    if n == 0:
        return np.zeros(0, dtype=np.int64), np.zeros(0, dtype=np.float64)

    n_frames = 1
    for i in range(1, n):
        if frame_index[i] != frame_index[i - 1]:
            n_frames += 1

    frames = np.empty(n_frames, dtype=np.int64)
    sums = np.zeros(n_frames, dtype=np.float64)

    j = 0
    frames[0] = frame_index[0]
    for i in range(n):
        if i > 0 and frame_index[i] != frame_index[i - 1]:
            j += 1
            frames[j] = frame_index[i]
        sums[j] += intensity[i]

    return frames, sums


@njit
def bin_mobilogram(
    mobility: np.ndarray,
    intensity: np.ndarray,
    bin_width: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """Sum intensities into equally wide mobility bins.

    Bins start at the lowest mobility. The result is dense: empty bins
    between filled ones are kept with zero intensity.

    Args:
        mobility: Mobility per entry (any order)
        intensity: Intensity per entry
        bin_width: Bin width in mobility units (> 0)

    Returns:
        (bin_centers, summed_intensity)
    """
    n = len(mobility)
    if n == 0:
        return np.zeros(0, dtype=np.float64), np.zeros(0, dtype=np.float64)

    mob_min = np.min(mobility)
    mob_max = np.max(mobility)
    n_bins = int((mob_max - mob_min) / bin_width) + 1

    sums = np.zeros(n_bins, dtype=np.float64)
    for i in range(n):
        b = int((mobility[i] - mob_min) / bin_width)
        if b >= n_bins:
            b = n_bins - 1
        sums[b] += intensity[i]

    centers = mob_min + (np.arange(n_bins) + 0.5) * bin_width
    return centers, sums


@njit
def integrate_trapezoid(x: np.ndarray, y: np.ndarray) -> float:
    """Area under y(x) with the trapezoid rule. 0.0 for fewer than 2 points."""
    area = 0.0
    for i in range(1, len(x)):
        area += 0.5 * (y[i] + y[i - 1]) * (x[i] - x[i - 1])
    return area


@njit
def calculate_fwhm(x: np.ndarray, y: np.ndarray) -> float:
    """Full width at half maximum with linear interpolation.

    Args:
        x: Positions (e.g. retention times), ascending
        y: Intensities

    Returns:
        FWHM in units of x, -1.0 if fewer than 3 points or no half-max crossing.
        If only one side crosses half max, the peak is assumed symmetric.
    """
    n = len(x)
    if n < 3:
        return -1.0

    apex = np.argmax(y)
    half_max = y[apex] / 2.0
    apex_x = x[apex]

    left_x = x[0]
    left_found = False
    for i in range(apex - 1, -1, -1):
        if y[i] <= half_max:
            denom = y[i + 1] - y[i]
            if abs(denom) > 1e-10:
                left_x = x[i] + (half_max - y[i]) / denom * (x[i + 1] - x[i])
            else:
                left_x = x[i]
            left_found = True
            break

    right_x = x[n - 1]
    right_found = False
    for i in range(apex + 1, n):
        if y[i] <= half_max:
            denom = y[i] - y[i - 1]
            if abs(denom) > 1e-10:
                right_x = x[i - 1] + (half_max - y[i - 1]) / denom * (x[i] - x[i - 1])
            else:
                right_x = x[i]
            right_found = True
            break

    if left_found and right_found:
        return right_x - left_x
    if left_found:
        return 2.0 * (apex_x - left_x)
    if right_found:
        return 2.0 * (right_x - apex_x)
    return -1.0


@dataclass
class IonMobilogramTimeSeries:
    """Dense series of one expanded trace, one entry per mobility scan.

    All arrays have the same length and are ordered by ``scan_index``.
    """

    scan_index: np.ndarray
    frame_index: np.ndarray
    rt: np.ndarray
    mobility: np.ndarray
    mz: np.ndarray
    intensity: np.ndarray

    @classmethod
    def from_points(
        cls,
        scan_index: np.ndarray,
        mz: np.ndarray,
        intensity: np.ndarray,
        acquisition: IMSAcquisition,
    ) -> "IonMobilogramTimeSeries":
        """Build a series from accepted points and their acquisition.

        Args:
            scan_index: Global mobility scan per point (unique)
            mz: Point m/z values
            intensity: Point intensities
            acquisition: Source of frame, RT and mobility per scan

        Returns:
            IonMobilogramTimeSeries ordered by scan index
        """
        scan_index = np.asarray(scan_index, dtype=np.int64)
        order = np.argsort(scan_index, kind="stable")
        scan_index = scan_index[order]
        frame_index = acquisition.scan_frame_index[scan_index]
        return cls(
            scan_index=scan_index,
            frame_index=frame_index,
            rt=acquisition.frame_rt[frame_index],
            mobility=acquisition.scan_mobility[scan_index],
            mz=np.asarray(mz, dtype=np.float64)[order],
            intensity=np.asarray(intensity, dtype=np.float64)[order],
        )

    def __len__(self) -> int:
        return len(self.scan_index)

    @property
    def n_frames(self) -> int:
        return len(np.unique(self.frame_index))

    def chromatogram(self) -> Tuple[np.ndarray, np.ndarray]:
        """Summed intensity per frame: (rt, intensity)."""
        frames, sums = sum_intensity_by_frame(self.frame_index, self.intensity)
        # rt of the first entry of each frame
        first = np.searchsorted(self.frame_index, frames)
        return self.rt[first], sums

    def summed_mobilogram(self, bin_width: float) -> Tuple[np.ndarray, np.ndarray]:
        """Summed intensity per mobility bin over all frames."""
        return bin_mobilogram(self.mobility, self.intensity, bin_width)
