"""Tests for the thread-safe output feature list."""

import threading

import numpy as np
import pytest

from alphaimsfast.features.feature_list import ExpandedFeature, FeatureList, FeatureListRow
from alphaimsfast.series.mobilogram import IonMobilogramTimeSeries


def make_row(row_id, mz, raw_file="run01"):
    """Minimal row with a two-entry series."""
    series = IonMobilogramTimeSeries(
        scan_index=np.array([0, 1]),
        frame_index=np.array([0, 0]),
        rt=np.array([10.0, 10.0]),
        mobility=np.array([1.0, 0.99]),
        mz=np.array([mz, mz]),
        intensity=np.array([1.0, 1.0]),
    )
    feature = ExpandedFeature(
        mz=mz, rt=10.0, mobility=1.0, height=2.0, area=0.0, fwhm=-1.0,
        mz_min=mz, mz_max=mz, rt_min=10.0, rt_max=10.0,
        mobility_min=0.99, mobility_max=1.0, n_scans=2, n_frames=1,
    )
    return FeatureListRow(
        row_id=row_id, raw_file=raw_file, feature=feature, series=series,
        mobilogram_mobility=np.array([0.995]), mobilogram_intensity=np.array([2.0]),
    )


class TestFeatureList:
    """Test row handling."""

    def test_add_rows(self):
        """Test appending and lookup."""
        flist = FeatureList("run01 expanded", raw_files=["run01"])

        flist.add_rows([make_row(1, 500.0), make_row(2, 300.0)])

        assert len(flist) == 2
        assert flist.get_row(2).mz == 300.0
        assert flist.get_row(3) is None
        assert [r.row_id for r in flist.sorted_by_mz()] == [2, 1]
        assert "n_rows=2" in repr(flist)

    def test_rows_snapshot(self):
        """Test that the rows snapshot does not change with later additions."""
        flist = FeatureList("x")
        flist.add_rows([make_row(1, 500.0)])
        snapshot = flist.rows

        flist.add_rows([make_row(2, 600.0)])

        assert len(snapshot) == 1
        assert len(flist.rows) == 2

    def test_foreign_raw_file_rejected(self):
        """Test that rows of another raw file are rejected as a whole."""
        flist = FeatureList("run01 expanded", raw_files=["run01"])

        with pytest.raises(ValueError, match="run02"):
            flist.add_rows([make_row(1, 500.0), make_row(2, 600.0, raw_file="run02")])

        assert len(flist) == 0

    def test_no_raw_files_accepts_any(self):
        """Test a list without raw file restriction."""
        flist = FeatureList("merged")

        flist.add_rows([make_row(1, 500.0, raw_file="a"), make_row(2, 500.0, raw_file="b")])

        assert len(flist) == 2

    def test_concurrent_add_rows(self):
        """Test that concurrent writers lose no rows."""
        flist = FeatureList("shared")
        batches = [
            [make_row(w * 100 + i, float(np.random.uniform(100, 1000))) for i in range(50)]
            for w in range(8)
        ]
        threads = [threading.Thread(target=flist.add_rows, args=(b,)) for b in batches]

        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(flist) == 400
        assert len({r.row_id for r in flist}) == 400

    def test_batch_is_contiguous(self):
        """Test that each add_rows call lands as one block."""
        flist = FeatureList("shared")
        batches = [[make_row(w * 10 + i, 500.0) for i in range(10)] for w in range(4)]
        threads = [threading.Thread(target=flist.add_rows, args=(b,)) for b in batches]

        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ids = [r.row_id for r in flist]
        for start in range(0, 40, 10):
            block = ids[start:start + 10]
            assert block == list(range(block[0], block[0] + 10))
