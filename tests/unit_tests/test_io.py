"""Tests for HDF5 acquisitions and CSV trace / row exchange."""

import csv
import importlib.util
from pathlib import Path

import h5py
import numpy as np
import pytest

from alphaimsfast.io import load_acquisition, read_traces_csv, save_acquisition, write_rows_csv
from alphaimsfast.io.traces_csv import ROW_COLUMNS

SCRIPT = Path(__file__).parent.parent.parent / "scripts" / "expand_traces.py"


class TestHdf:
    """Test HDF5 storage of acquisitions."""

    def test_save_and_load(self, three_frame_acquisition, tmp_path):
        """Test that the stored arrays come back unchanged."""
        path = save_acquisition(three_frame_acquisition, tmp_path / "run01.hdf")

        loaded = load_acquisition(path)

        assert loaded.name == "run01"
        assert loaded.n_frames == 3
        np.testing.assert_array_equal(loaded.centroid_offsets, three_frame_acquisition.centroid_offsets)
        np.testing.assert_array_equal(loaded.raw_mz, three_frame_acquisition.raw_mz)
        np.testing.assert_array_equal(loaded.scan_frame_index, [0, 0, 1, 1, 2, 2])

    def test_missing_peak_lists_survive(self, no_centroid_acquisition, tmp_path):
        """Test that per-scan availability flags are stored."""
        path = save_acquisition(no_centroid_acquisition, tmp_path / "no_peaks.hdf")

        loaded = load_acquisition(path)

        np.testing.assert_array_equal(loaded.centroid_present, [True, False])

    def test_missing_file(self, tmp_path):
        """Test loading a file that does not exist."""
        with pytest.raises(FileNotFoundError):
            load_acquisition(tmp_path / "missing.hdf")

    def test_missing_group(self, tmp_path):
        """Test loading an HDF5 file without an acquisition."""
        path = tmp_path / "other.hdf"
        with h5py.File(path, 'w') as hdf:
            hdf.create_dataset('x', data=np.zeros(3))

        with pytest.raises(KeyError, match="acquisition"):
            load_acquisition(path)


class TestTracesCsv:
    """Test reading candidate traces."""

    def test_explicit_windows(self, tmp_path):
        """Test m/z, RT and mobility windows from a TSV file."""
        path = tmp_path / "traces.tsv"
        path.write_text(
            "row_id\tmz_min\tmz_max\trt_min\trt_max\tmobility_min\tmobility_max\n"
            "7\t500.0\t500.1\t10.0\t20.0\t\t\n"
            "3\t300.0\t300.1\t\t\t0.9\t1.1\n"
        )

        arena = read_traces_csv(path)

        assert len(arena) == 2
        assert arena.row_id(0) == 3
        assert arena.mz_range(1) == (500.0, 500.1)
        assert arena.rt_lo[1] == 10.0
        assert arena.rt_hi[0] == np.inf
        assert arena.mobility_lo[0] == 0.9
        assert arena.mobility_hi[1] == np.inf

    def test_mz_with_tolerance(self, tmp_path):
        """Test ppm windows from an mz column without row ids."""
        path = tmp_path / "traces.csv"
        path.write_text("mz\n500.0\n250.0\n")

        arena = read_traces_csv(path, mz_tolerance_ppm=10.0)

        assert arena.row_id(0) == 1
        lo, hi = arena.mz_range(1)
        assert lo == pytest.approx(499.995)
        assert hi == pytest.approx(500.005)

    def test_header_only(self, tmp_path):
        """Test a file without traces."""
        path = tmp_path / "traces.csv"
        path.write_text("mz_min,mz_max\n")

        assert len(read_traces_csv(path)) == 0

    def test_missing_mz_columns(self, tmp_path):
        """Test a file without m/z information."""
        path = tmp_path / "traces.csv"
        path.write_text("rt_min,rt_max\n1.0,2.0\n")

        with pytest.raises(ValueError, match="mz"):
            read_traces_csv(path)

    def test_missing_file(self, tmp_path):
        """Test reading a file that does not exist."""
        with pytest.raises(FileNotFoundError):
            read_traces_csv(tmp_path / "missing.csv")


class TestRowsCsv:
    """Test writing expanded rows."""

    def test_write_rows(self, three_frame_acquisition, run01_traces, tmp_path):
        """Test one line per row with the documented columns."""
        from alphaimsfast.expansion import ImsExpanderTask

        task = ImsExpanderTask(three_frame_acquisition, run01_traces)
        task.run()

        path = write_rows_csv(task.output.rows, tmp_path / "rows.csv")

        with open(path, newline='') as f:
            lines = list(csv.DictReader(f))
        assert list(lines[0].keys()) == ROW_COLUMNS
        assert len(lines) == 1
        assert lines[0]['row_id'] == '11'
        assert lines[0]['raw_file'] == 'run01'
        assert lines[0]['n_scans'] == '4'


class TestCommandLine:
    """Test the expand_traces script end to end."""

    @pytest.fixture
    def cli(self):
        spec = importlib.util.spec_from_file_location("expand_traces", SCRIPT)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    def test_expand(self, cli, three_frame_acquisition, tmp_path):
        """Test expansion from files to a result table."""
        acq_path = save_acquisition(three_frame_acquisition, tmp_path / "run01.hdf")
        traces_path = tmp_path / "traces.tsv"
        traces_path.write_text("row_id\tmz\n1\t500.0\n2\t700.0\n")
        out_path = tmp_path / "expanded.tsv"

        exit_code = cli.main([
            str(acq_path), str(traces_path), str(out_path), "--ppm", "10", "--workers", "2",
        ])

        assert exit_code == 0
        with open(out_path, newline='') as f:
            lines = list(csv.DictReader(f, delimiter='\t'))
        assert [line['row_id'] for line in lines] == ['1']

    def test_missing_peak_lists(self, cli, no_centroid_acquisition, tmp_path):
        """Test non-zero exit status when the expansion fails."""
        acq_path = save_acquisition(no_centroid_acquisition, tmp_path / "no_peaks.hdf")
        traces_path = tmp_path / "traces.csv"
        traces_path.write_text("mz\n500.0\n")
        out_path = tmp_path / "expanded.csv"

        exit_code = cli.main([str(acq_path), str(traces_path), str(out_path)])

        assert exit_code == 1
        assert not out_path.exists()
