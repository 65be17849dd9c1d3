"""Expanded features, result rows and the shared output feature list.

A FeatureList may be written by many expansion jobs at once. Jobs never touch
its storage directly: each job hands over all of its rows with a single
``add_rows`` call, which is the only place the list's lock is taken.
"""

import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..series.mobilogram import IonMobilogramTimeSeries


@dataclass
class ExpandedFeature:
    """Summary statistics derived from an expanded series."""

    mz: float            # intensity-weighted mean m/z
    rt: float            # apex retention time (seconds)
    mobility: float      # mobility of the most intense point
    height: float        # apex of the summed chromatogram
    area: float          # trapezoid area of the summed chromatogram
    fwhm: float          # chromatographic FWHM (seconds), -1.0 if undefined

    mz_min: float
    mz_max: float
    rt_min: float
    rt_max: float
    mobility_min: float
    mobility_max: float

    n_scans: int
    n_frames: int


@dataclass
class FeatureListRow:
    """One expanded trace in the output feature list."""

    row_id: int                      # id of the originating upstream row
    raw_file: str                    # name of the acquisition it came from
    feature: ExpandedFeature
    series: IonMobilogramTimeSeries
    mobilogram_mobility: np.ndarray  # summed mobilogram bin centers
    mobilogram_intensity: np.ndarray  # summed mobilogram intensities

    @property
    def mz(self) -> float:
        return self.feature.mz

    @property
    def rt(self) -> float:
        return self.feature.rt


class FeatureList:
    """Thread-safe collection of expanded feature rows.

    Parameters
    ----------
    name : str
        Feature list name, used in job descriptions
    raw_files : sequence of str
        Names of the acquisitions the rows may come from

    Examples
    --------
    >>> flist = FeatureList("run01 expanded", raw_files=["run01"])
    >>> flist.add_rows(rows)  # from any thread
    >>> len(flist)
    """

    def __init__(self, name: str, raw_files: Sequence[str] = ()):
        self.name = name
        self.raw_files = list(raw_files)
        self._rows: List[FeatureListRow] = []
        self._lock = threading.Lock()

    def add_rows(self, rows: Sequence[FeatureListRow]):
        """Append rows in one exclusive step."""
        rows = list(rows)
        for row in rows:
            if self.raw_files and row.raw_file not in self.raw_files:
                raise ValueError(
                    f"Row {row.row_id} comes from '{row.raw_file}', "
                    f"which is not a raw file of feature list '{self.name}'"
                )
        with self._lock:
            self._rows.extend(rows)

    @property
    def rows(self) -> Tuple[FeatureListRow, ...]:
        """Snapshot of all rows."""
        with self._lock:
            return tuple(self._rows)

    def get_row(self, row_id: int) -> Optional[FeatureListRow]:
        for row in self.rows:
            if row.row_id == row_id:
                return row
        return None

    def sorted_by_mz(self) -> List[FeatureListRow]:
        return sorted(self.rows, key=lambda r: (r.mz, r.row_id))

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def __iter__(self) -> Iterator[FeatureListRow]:
        return iter(self.rows)

    def __repr__(self) -> str:
        return f"FeatureList(name='{self.name}', n_rows={len(self)})"
