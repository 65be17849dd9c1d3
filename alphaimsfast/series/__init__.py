"""Ion mobilogram time series of expanded traces.

Key Features
------------
- Dense per-trace series ordered by mobility scan
- Summed chromatogram (per frame) and summed, binned mobilogram
- Numba-optimized integration and FWHM
"""

from .mobilogram import (
    IonMobilogramTimeSeries,
    sum_intensity_by_frame,
    bin_mobilogram,
    integrate_trapezoid,
    calculate_fwhm,
)

__all__ = [
    "IonMobilogramTimeSeries",
    "sum_intensity_by_frame",
    "bin_mobilogram",
    "integrate_trapezoid",
    "calculate_fwhm",
]
