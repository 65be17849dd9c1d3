"""Sequential frame / mobility-scan access for trace expansion.

MobilityScanDataAccess walks a selection of frames in order and, inside each
frame, its mobility scans in order. For the current scan it exposes the
m/z-sorted point arrays of the selected data type. The data type and the
noise level are fixed at construction, so the sweep never sees points that
the configuration excludes.
"""

import logging
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from .acquisition import Frame, IMSAcquisition, MobilityScan

logger = logging.getLogger(__name__)


class MobilityScanDataType(Enum):
    """Which point arrays of a mobility scan are exposed."""
    RAW = "raw"            # profile data, optionally noise filtered
    CENTROID = "centroid"  # peak list from mass detection


class MissingPeakListError(RuntimeError):
    """The selected data type is not available for a mobility scan."""

    def __init__(self, file_name: str, scan_index: int, data_type: MobilityScanDataType):
        self.file_name = file_name
        self.scan_index = scan_index
        self.data_type = data_type
        if data_type == MobilityScanDataType.CENTROID:
            hint = "Run mass detection on all mobility scans first."
        else:
            hint = "The file does not contain raw data for all mobility scans."
        super().__init__(
            f"Mobility scan {scan_index} of {file_name} has no {data_type.value} data. {hint}"
        )


class EndOfDataError(LookupError):
    """No more frames or mobility scans in the current selection."""


class MobilityScanDataAccess:
    """Iterate frames and their mobility scans of one acquisition.

    Parameters
    ----------
    acquisition : IMSAcquisition
        The raw data file
    data_type : MobilityScanDataType
        RAW or CENTROID points (default: CENTROID)
    frames : sequence of int, optional
        Frame indices to visit. Visited in ascending order, duplicates
        removed. Default: all frames.
    noise_level : float, optional
        Points with intensity strictly below this value are hidden.
        Only applied to RAW data.

    Examples
    --------
    >>> access = MobilityScanDataAccess(acq, MobilityScanDataType.RAW, noise_level=100.0)
    >>> while access.has_next_frame():
    ...     frame = access.next_frame()
    ...     while access.has_next_mobility_scan():
    ...         scan = access.next_mobility_scan()
    ...         mz = access.mz_values
    """

    def __init__(
        self,
        acquisition: IMSAcquisition,
        data_type: MobilityScanDataType = MobilityScanDataType.CENTROID,
        frames: Optional[Sequence[int]] = None,
        noise_level: Optional[float] = None,
    ):
        self.acquisition = acquisition
        self.data_type = data_type
        self.noise_level = noise_level if data_type == MobilityScanDataType.RAW else None

        if frames is None:
            self.frame_indices = np.arange(acquisition.n_frames, dtype=np.int64)
        else:
            self.frame_indices = np.unique(np.asarray(frames, dtype=np.int64))
            if len(self.frame_indices) and (
                self.frame_indices[0] < 0 or self.frame_indices[-1] >= acquisition.n_frames
            ):
                raise ValueError(
                    f"Frame indices out of range for {acquisition.name} "
                    f"({acquisition.n_frames} frames)"
                )

        self._frame_cursor = -1
        self._next_scan = 0
        self.current_frame: Optional[Frame] = None
        self.current_mobility_scan: Optional[MobilityScan] = None
        self.mz_values = np.zeros(0, dtype=np.float64)
        self.intensity_values = np.zeros(0, dtype=np.float64)

        logger.debug(
            f"Initialised {data_type.value} data access for {acquisition.name}: "
            f"{len(self.frame_indices)} frames"
        )

    def get_number_of_scans(self) -> int:
        """Number of frames in the selection."""
        return len(self.frame_indices)

    def has_next_frame(self) -> bool:
        return self._frame_cursor + 1 < len(self.frame_indices)

    def next_frame(self) -> Frame:
        """Advance to the next frame.

        Raises
        ------
        EndOfDataError
            If all selected frames were visited
        """
        if not self.has_next_frame():
            raise EndOfDataError(f"No more frames in {self.acquisition.name}")

        self._frame_cursor += 1
        frame = self.acquisition.frame(self.frame_indices[self._frame_cursor])
        self.current_frame = frame
        self.current_mobility_scan = None
        self._next_scan = frame.scan_start
        self.mz_values = self.mz_values[:0]
        self.intensity_values = self.intensity_values[:0]
        return frame

    def has_next_mobility_scan(self) -> bool:
        return self.current_frame is not None and self._next_scan < self.current_frame.scan_stop

    def next_mobility_scan(self) -> MobilityScan:
        """Advance to the next mobility scan of the current frame.

        Raises
        ------
        EndOfDataError
            If the current frame has no more mobility scans
        MissingPeakListError
            If the scan lacks the points of the selected data type
        """
        if not self.has_next_mobility_scan():
            raise EndOfDataError("No more mobility scans in the current frame")

        scan_index = self._next_scan
        self._next_scan += 1

        points = self.acquisition.scan_points(
            scan_index, centroid=self.data_type == MobilityScanDataType.CENTROID
        )
        if points is None:
            raise MissingPeakListError(self.acquisition.name, scan_index, self.data_type)

        mz, intensity = points
        if self.noise_level is not None:
            keep = intensity >= float(self.noise_level)
            if not np.all(keep):
                mz = mz[keep]
                intensity = intensity[keep]

        self.mz_values = mz
        self.intensity_values = intensity
        self.current_mobility_scan = self.acquisition.mobility_scan(scan_index)
        return self.current_mobility_scan

    def get_number_of_data_points(self) -> int:
        return len(self.mz_values)

    def get_mz_value(self, index: int) -> float:
        return float(self.mz_values[index])

    def get_intensity_value(self, index: int) -> float:
        return float(self.intensity_values[index])
