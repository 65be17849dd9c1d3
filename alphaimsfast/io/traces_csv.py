"""CSV exchange of candidate traces and expanded rows.

Trace files are tab- or comma-separated with a header. Recognized columns:

- ``row_id`` (optional, default: line number starting at 0)
- either ``mz_min`` and ``mz_max``, or ``mz`` (window from a ppm tolerance)
- ``rt_min``, ``rt_max`` (optional, seconds)
- ``mobility_min``, ``mobility_max`` (optional)

Empty cells in optional columns mean "unbounded".
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

import numpy as np

from ..constants import DEFAULT_MZ_TOLERANCE_PPM, UNBOUNDED_HIGH, UNBOUNDED_LOW
from ..features.feature_list import FeatureListRow
from ..traces.arena import TraceArena

logger = logging.getLogger(__name__)

ROW_COLUMNS = [
    'row_id', 'raw_file', 'mz', 'rt', 'mobility', 'height', 'area', 'fwhm',
    'mz_min', 'mz_max', 'rt_min', 'rt_max', 'mobility_min', 'mobility_max',
    'n_scans', 'n_frames',
]


def _delimiter(path: Path) -> str:
    return '\t' if path.suffix.lower() in ('.tsv', '.txt') else ','


def _column(rows: List[dict], key: str, default: float) -> Optional[np.ndarray]:
    if not rows or key not in rows[0]:
        return None
    values = np.empty(len(rows), dtype=np.float64)
    for i, row in enumerate(rows):
        cell = (row.get(key) or '').strip()
        values[i] = float(cell) if cell else default
    return values


def read_traces_csv(
    path: Union[str, Path],
    mz_tolerance_ppm: float = DEFAULT_MZ_TOLERANCE_PPM,
) -> TraceArena:
    """Read candidate traces from a CSV/TSV file.

    Parameters
    ----------
    path : str or Path
        Trace file
    mz_tolerance_ppm : float
        Window half-width used when the file only has an ``mz`` column

    Returns
    -------
    TraceArena
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Trace file not found: {path}")

    with open(path, newline='') as f:
        rows = list(csv.DictReader(f, delimiter=_delimiter(path)))

    if rows and 'row_id' in rows[0]:
        row_ids = np.array([int(r['row_id']) for r in rows], dtype=np.int64)
    else:
        row_ids = np.arange(len(rows), dtype=np.int64)

    windows = dict(
        rt_lo=_column(rows, 'rt_min', UNBOUNDED_LOW),
        rt_hi=_column(rows, 'rt_max', UNBOUNDED_HIGH),
        mobility_lo=_column(rows, 'mobility_min', UNBOUNDED_LOW),
        mobility_hi=_column(rows, 'mobility_max', UNBOUNDED_HIGH),
        row_ids=row_ids,
    )

    if rows and 'mz_min' in rows[0] and 'mz_max' in rows[0]:
        arena = TraceArena(
            np.array([float(r['mz_min']) for r in rows], dtype=np.float64),
            np.array([float(r['mz_max']) for r in rows], dtype=np.float64),
            **windows,
        )
    elif rows and 'mz' in rows[0]:
        arena = TraceArena.from_features(
            np.array([float(r['mz']) for r in rows], dtype=np.float64),
            mz_tolerance_ppm,
            **windows,
        )
    elif not rows:
        arena = TraceArena(np.zeros(0), np.zeros(0))
    else:
        raise ValueError(f"{path.name} needs 'mz_min' and 'mz_max' or 'mz' columns")

    logger.info(f"✓ Read {len(arena):,} traces from {path.name}")
    return arena


def write_rows_csv(rows: Iterable[FeatureListRow], path: Union[str, Path]) -> Path:
    """Write one summary line per expanded row."""
    path = Path(path)
    n = 0

    with open(path, 'w', newline='') as f:
        writer = csv.writer(f, delimiter=_delimiter(path))
        writer.writerow(ROW_COLUMNS)
        for row in rows:
            feat = row.feature
            writer.writerow([
                row.row_id, row.raw_file,
                f"{feat.mz:.6f}", f"{feat.rt:.3f}", f"{feat.mobility:.5f}",
                f"{feat.height:.1f}", f"{feat.area:.1f}", f"{feat.fwhm:.3f}",
                f"{feat.mz_min:.6f}", f"{feat.mz_max:.6f}",
                f"{feat.rt_min:.3f}", f"{feat.rt_max:.3f}",
                f"{feat.mobility_min:.5f}", f"{feat.mobility_max:.5f}",
                feat.n_scans, feat.n_frames,
            ])
            n += 1

    logger.info(f"✓ Wrote {n:,} rows to {path.name}")
    return path
