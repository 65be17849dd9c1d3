"""Flat-array storage of an ion-mobility acquisition.

An acquisition is a sequence of frames (one per retention time), each frame
holds a contiguous block of mobility scans, and each mobility scan holds a
contiguous block of (m/z, intensity) points. Everything is stored in a few
flat numpy arrays with offset arrays, so Numba kernels can index the data
directly without Python objects in the way.

Layout
------
- frame_rt[f]                         retention time of frame f (seconds)
- frame_scan_offsets[f:f+2]           mobility scans of frame f
- scan_mobility[s]                    mobility value of scan s
- raw_offsets[s:s+2]                  raw (profile) points of scan s
- centroid_offsets[s:s+2]             centroided points (peak list) of scan s
- raw_present[s] / centroid_present[s]
                                      False when the scan has no such data

Within every scan, m/z values must be sorted ascending. This is the contract
the trace sweep relies on and it is not re-checked per scan.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Frame:
    """One acquisition cycle: retention time plus a block of mobility scans."""

    index: int
    rt: float
    scan_start: int
    scan_stop: int

    @property
    def n_mobility_scans(self) -> int:
        return self.scan_stop - self.scan_start


@dataclass(frozen=True)
class MobilityScan:
    """A single mobility-resolved slice of a frame."""

    index: int
    frame_index: int
    mobility: float


def _offsets_from_lengths(lengths: Sequence[int]) -> np.ndarray:
    offsets = np.zeros(len(lengths) + 1, dtype=np.int64)
    if len(lengths):
        offsets[1:] = np.cumsum(lengths)
    return offsets


def _concat(arrays, dtype) -> np.ndarray:
    if not arrays:
        return np.zeros(0, dtype=dtype)
    return np.concatenate([np.asarray(a, dtype=dtype) for a in arrays])


class IMSAcquisition:
    """Ion-mobility acquisition backed by flat numpy arrays.

    Parameters
    ----------
    name : str
        Name of the raw data file (used as the raw-file reference of results)
    frame_rt : np.ndarray (float64)
        Retention time per frame in seconds
    frame_scan_offsets : np.ndarray (int64)
        Shape (n_frames + 1,); scans of frame f are
        ``frame_scan_offsets[f]:frame_scan_offsets[f + 1]``
    scan_mobility : np.ndarray (float64)
        Mobility value per scan
    raw_offsets, raw_mz, raw_intensity : np.ndarray, optional
        Raw points per scan; omitted when the file only has centroids
    centroid_offsets, centroid_mz, centroid_intensity : np.ndarray, optional
        Centroided points per scan; omitted when mass detection was not run
    raw_present, centroid_present : np.ndarray (bool), optional
        Per-scan availability flags. Default: all True when the arrays are
        given, all False otherwise.

    Examples
    --------
    >>> acq = IMSAcquisition.from_frames("run01", [
    ...     (10.0, [(1.20, ([100.0, 200.0], [1e3, 2e3]), None)]),
    ... ])
    >>> acq.n_frames, acq.n_scans
    (1, 1)
    """

    def __init__(
        self,
        name: str,
        frame_rt: np.ndarray,
        frame_scan_offsets: np.ndarray,
        scan_mobility: np.ndarray,
        raw_offsets: Optional[np.ndarray] = None,
        raw_mz: Optional[np.ndarray] = None,
        raw_intensity: Optional[np.ndarray] = None,
        centroid_offsets: Optional[np.ndarray] = None,
        centroid_mz: Optional[np.ndarray] = None,
        centroid_intensity: Optional[np.ndarray] = None,
        raw_present: Optional[np.ndarray] = None,
        centroid_present: Optional[np.ndarray] = None,
    ):
        self.name = name
        self.frame_rt = np.asarray(frame_rt, dtype=np.float64)
        self.frame_scan_offsets = np.asarray(frame_scan_offsets, dtype=np.int64)
        self.scan_mobility = np.asarray(scan_mobility, dtype=np.float64)

        n_frames = len(self.frame_rt)
        n_scans = len(self.scan_mobility)

        if len(self.frame_scan_offsets) != n_frames + 1:
            raise ValueError(
                f"frame_scan_offsets must have {n_frames + 1} entries, "
                f"got {len(self.frame_scan_offsets)}"
            )
        if self.frame_scan_offsets[0] != 0 or self.frame_scan_offsets[-1] != n_scans:
            raise ValueError("frame_scan_offsets must span all mobility scans")
        if np.any(np.diff(self.frame_scan_offsets) < 0):
            raise ValueError("frame_scan_offsets must be non-decreasing")

        self.raw_offsets, self.raw_mz, self.raw_intensity, self.raw_present = (
            self._check_points("raw", n_scans, raw_offsets, raw_mz, raw_intensity, raw_present)
        )
        (
            self.centroid_offsets,
            self.centroid_mz,
            self.centroid_intensity,
            self.centroid_present,
        ) = self._check_points(
            "centroid", n_scans, centroid_offsets, centroid_mz,
            centroid_intensity, centroid_present,
        )

        # Owning frame of every scan, for series materialization
        self.scan_frame_index = np.repeat(
            np.arange(n_frames, dtype=np.int64), np.diff(self.frame_scan_offsets)
        )

    @staticmethod
    def _check_points(kind, n_scans, offsets, mz, intensity, present):
        if offsets is None:
            empty_offsets = np.zeros(n_scans + 1, dtype=np.int64)
            return (
                empty_offsets,
                np.zeros(0, dtype=np.float64),
                np.zeros(0, dtype=np.float64),
                np.zeros(n_scans, dtype=np.bool_),
            )

        offsets = np.asarray(offsets, dtype=np.int64)
        mz = np.asarray(mz, dtype=np.float64)
        intensity = np.asarray(intensity, dtype=np.float64)

        if len(offsets) != n_scans + 1:
            raise ValueError(f"{kind}_offsets must have {n_scans + 1} entries, got {len(offsets)}")
        if len(mz) != len(intensity):
            raise ValueError(f"{kind} m/z and intensity arrays differ in length")
        if offsets[0] != 0 or offsets[-1] != len(mz):
            raise ValueError(f"{kind}_offsets must span all {kind} points")

        if present is None:
            present = np.ones(n_scans, dtype=np.bool_)
        else:
            present = np.asarray(present, dtype=np.bool_)
            if len(present) != n_scans:
                raise ValueError(f"{kind}_present must have {n_scans} entries")

        return offsets, mz, intensity, present

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    @classmethod
    def from_frames(
        cls,
        name: str,
        frames: Iterable[Tuple[float, Iterable[Tuple[float, Optional[tuple], Optional[tuple]]]]],
    ) -> "IMSAcquisition":
        """Build an acquisition from nested Python data.

        Parameters
        ----------
        name : str
            Raw file name
        frames : iterable of (rt, scans)
            Each scan is ``(mobility, raw, centroid)`` where ``raw`` and
            ``centroid`` are ``(mz_values, intensities)`` pairs or None when
            that kind of data is missing for the scan.

        Returns
        -------
        IMSAcquisition
        """
        frame_rt = []
        scans_per_frame = []
        mobility = []
        raw_mz, raw_int, raw_len, raw_present = [], [], [], []
        cen_mz, cen_int, cen_len, cen_present = [], [], [], []

        for rt, scans in frames:
            frame_rt.append(rt)
            n = 0
            for scan_mobility, raw, centroid in scans:
                mobility.append(scan_mobility)
                for points, mzs, ints, lens, flags in (
                    (raw, raw_mz, raw_int, raw_len, raw_present),
                    (centroid, cen_mz, cen_int, cen_len, cen_present),
                ):
                    if points is None:
                        lens.append(0)
                        flags.append(False)
                    else:
                        mzs.append(points[0])
                        ints.append(points[1])
                        lens.append(len(points[0]))
                        flags.append(True)
                n += 1
            scans_per_frame.append(n)

        return cls(
            name=name,
            frame_rt=np.asarray(frame_rt, dtype=np.float64),
            frame_scan_offsets=_offsets_from_lengths(scans_per_frame),
            scan_mobility=np.asarray(mobility, dtype=np.float64),
            raw_offsets=_offsets_from_lengths(raw_len),
            raw_mz=_concat(raw_mz, np.float64),
            raw_intensity=_concat(raw_int, np.float64),
            centroid_offsets=_offsets_from_lengths(cen_len),
            centroid_mz=_concat(cen_mz, np.float64),
            centroid_intensity=_concat(cen_int, np.float64),
            raw_present=np.asarray(raw_present, dtype=np.bool_),
            centroid_present=np.asarray(cen_present, dtype=np.bool_),
        )

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    @property
    def n_frames(self) -> int:
        return len(self.frame_rt)

    @property
    def n_scans(self) -> int:
        return len(self.scan_mobility)

    def frame(self, index: int) -> Frame:
        return Frame(
            index=int(index),
            rt=float(self.frame_rt[index]),
            scan_start=int(self.frame_scan_offsets[index]),
            scan_stop=int(self.frame_scan_offsets[index + 1]),
        )

    def mobility_scan(self, index: int) -> MobilityScan:
        return MobilityScan(
            index=int(index),
            frame_index=int(self.scan_frame_index[index]),
            mobility=float(self.scan_mobility[index]),
        )

    def scan_points(
        self, index: int, centroid: bool
    ) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """Return (mz, intensity) views for one scan, or None if absent."""
        if centroid:
            if not self.centroid_present[index]:
                return None
            start, stop = self.centroid_offsets[index], self.centroid_offsets[index + 1]
            return self.centroid_mz[start:stop], self.centroid_intensity[start:stop]

        if not self.raw_present[index]:
            return None
        start, stop = self.raw_offsets[index], self.raw_offsets[index + 1]
        return self.raw_mz[start:stop], self.raw_intensity[start:stop]

    def __len__(self) -> int:
        return self.n_frames

    def __repr__(self) -> str:
        return (
            f"IMSAcquisition(name='{self.name}', n_frames={self.n_frames}, "
            f"n_scans={self.n_scans}, n_raw_points={len(self.raw_mz)}, "
            f"n_centroid_points={len(self.centroid_mz)})"
        )
