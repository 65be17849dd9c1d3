"""HDF5 storage of ion-mobility acquisitions.

File layout (group ``acquisition``)::

    attrs: name, format_version
    frame_rt               float64 (n_frames,)
    frame_scan_offsets     int64   (n_frames + 1,)
    scan_mobility          float64 (n_scans,)
    raw/offsets            int64   (n_scans + 1,)
    raw/mz                 float64 (n_raw_points,)
    raw/intensity          float64 (n_raw_points,)
    raw/present            bool    (n_scans,)
    centroid/...           same as raw/

The flat arrays map one-to-one onto IMSAcquisition, so loading is a handful
of dataset reads.
"""

import logging
from pathlib import Path
from typing import Union

import h5py
import numpy as np

from ..data.acquisition import IMSAcquisition

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def save_acquisition(acquisition: IMSAcquisition, path: Union[str, Path]) -> Path:
    """Write an acquisition to an HDF5 file (overwrites).

    Parameters
    ----------
    acquisition : IMSAcquisition
        Acquisition to store
    path : str or Path
        Output file

    Returns
    -------
    Path
        The written file
    """
    path = Path(path)

    with h5py.File(path, 'w') as hdf:
        grp = hdf.create_group('acquisition')
        grp.attrs['name'] = acquisition.name
        grp.attrs['format_version'] = FORMAT_VERSION
        grp.create_dataset('frame_rt', data=acquisition.frame_rt)
        grp.create_dataset('frame_scan_offsets', data=acquisition.frame_scan_offsets)
        grp.create_dataset('scan_mobility', data=acquisition.scan_mobility)

        for kind in ('raw', 'centroid'):
            sub = grp.create_group(kind)
            sub.create_dataset('offsets', data=getattr(acquisition, f'{kind}_offsets'))
            sub.create_dataset('mz', data=getattr(acquisition, f'{kind}_mz'))
            sub.create_dataset('intensity', data=getattr(acquisition, f'{kind}_intensity'))
            sub.create_dataset('present', data=getattr(acquisition, f'{kind}_present'))

    logger.info(f"✓ Saved {acquisition.n_frames:,} frames of {acquisition.name} to {path.name}")
    return path


def load_acquisition(path: Union[str, Path]) -> IMSAcquisition:
    """Read an acquisition written by :func:`save_acquisition`.

    Parameters
    ----------
    path : str or Path
        HDF5 file

    Returns
    -------
    IMSAcquisition

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    KeyError
        If the file has no ``acquisition`` group
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Acquisition file not found: {path}")

    logger.info(f"Reading acquisition file: {path.name}")

    with h5py.File(path, 'r') as hdf:
        if 'acquisition' not in hdf:
            raise KeyError(f"No 'acquisition' group in {path}")
        grp = hdf['acquisition']

        name = grp.attrs['name']
        if isinstance(name, bytes):
            name = name.decode()

        arrays = {}
        for kind in ('raw', 'centroid'):
            sub = grp[kind]
            arrays[f'{kind}_offsets'] = sub['offsets'][:]
            arrays[f'{kind}_mz'] = sub['mz'][:]
            arrays[f'{kind}_intensity'] = sub['intensity'][:]
            arrays[f'{kind}_present'] = np.asarray(sub['present'][:], dtype=np.bool_)

        acquisition = IMSAcquisition(
            name=str(name),
            frame_rt=grp['frame_rt'][:],
            frame_scan_offsets=grp['frame_scan_offsets'][:],
            scan_mobility=grp['scan_mobility'][:],
            **arrays,
        )

    logger.info(
        f"✓ Read {acquisition.n_frames:,} frames / {acquisition.n_scans:,} mobility scans "
        f"from {path.name}"
    )
    return acquisition
