"""Ion-mobility acquisition storage and sequential scan access.

This module provides:
- Flat-array acquisition storage (frames, mobility scans, raw and centroided points)
- Frame / mobility-scan iteration with RAW or CENTROID data selection
- Noise-floor filtering of raw data
"""

from .acquisition import (
    Frame,
    MobilityScan,
    IMSAcquisition,
)

from .access import (
    MobilityScanDataType,
    MobilityScanDataAccess,
    MissingPeakListError,
    EndOfDataError,
)

__all__ = [
    # Storage
    'Frame',
    'MobilityScan',
    'IMSAcquisition',

    # Access
    'MobilityScanDataType',
    'MobilityScanDataAccess',
    'MissingPeakListError',
    'EndOfDataError',
]
