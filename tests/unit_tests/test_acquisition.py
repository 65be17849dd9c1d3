"""Tests for flat-array acquisition storage.

Tests:
- Construction from nested frames
- Frame / mobility-scan lookup
- Missing raw or centroid data per scan
- Input validation
"""

import numpy as np
import pytest

from alphaimsfast.data.acquisition import Frame, IMSAcquisition, MobilityScan


class TestFromFrames:
    """Test building acquisitions from nested Python data."""

    def test_shapes(self, three_frame_acquisition):
        """Test frame, scan and point counts."""
        acq = three_frame_acquisition

        assert acq.n_frames == 3
        assert acq.n_scans == 6
        assert len(acq) == 3
        assert len(acq.centroid_mz) == 7
        assert len(acq.raw_mz) == 8

    def test_offsets(self, three_frame_acquisition):
        """Test frame and point offsets."""
        acq = three_frame_acquisition

        np.testing.assert_array_equal(acq.frame_scan_offsets, [0, 2, 4, 6])
        np.testing.assert_array_equal(acq.centroid_offsets, [0, 2, 3, 4, 6, 7, 7])

    def test_scan_frame_index(self, three_frame_acquisition):
        """Test owning frame of every scan."""
        np.testing.assert_array_equal(
            three_frame_acquisition.scan_frame_index, [0, 0, 1, 1, 2, 2]
        )

    def test_storage_dtypes(self, three_frame_acquisition):
        """Test m/z and intensities stored in float64."""
        acq = three_frame_acquisition

        assert acq.centroid_mz.dtype == np.float64
        assert acq.centroid_intensity.dtype == np.float64
        assert acq.frame_scan_offsets.dtype == np.int64

    def test_empty_acquisition(self):
        """Test acquisition without frames."""
        acq = IMSAcquisition.from_frames("empty", [])

        assert acq.n_frames == 0
        assert acq.n_scans == 0
        np.testing.assert_array_equal(acq.frame_scan_offsets, [0])


class TestLookup:
    """Test frame and mobility scan access."""

    def test_frame(self, three_frame_acquisition):
        """Test frame dataclass."""
        frame = three_frame_acquisition.frame(1)

        assert frame == Frame(index=1, rt=11.0, scan_start=2, scan_stop=4)
        assert frame.n_mobility_scans == 2

    def test_mobility_scan(self, three_frame_acquisition):
        """Test mobility scan dataclass."""
        scan = three_frame_acquisition.mobility_scan(3)

        assert scan == MobilityScan(index=3, frame_index=1, mobility=0.99)

    def test_scan_points(self, three_frame_acquisition):
        """Test centroid and raw points of one scan."""
        acq = three_frame_acquisition

        mz, intensity = acq.scan_points(0, centroid=True)
        np.testing.assert_array_equal(mz, [300.0, 500.001])
        np.testing.assert_array_equal(intensity, [1000, 5000])

        mz, intensity = acq.scan_points(0, centroid=False)
        np.testing.assert_array_equal(mz, [300.0, 500.0005, 500.001])

    def test_empty_scan_is_present(self, three_frame_acquisition):
        """Test that an empty peak list is not a missing peak list."""
        mz, intensity = three_frame_acquisition.scan_points(5, centroid=True)

        assert len(mz) == 0
        assert len(intensity) == 0

    def test_missing_points(self, no_centroid_acquisition):
        """Test that absent data returns None."""
        acq = no_centroid_acquisition

        assert acq.scan_points(1, centroid=True) is None
        assert acq.scan_points(1, centroid=False) is not None

    def test_repr(self, three_frame_acquisition):
        """Test repr mentions name and sizes."""
        text = repr(three_frame_acquisition)

        assert "run01" in text
        assert "n_scans=6" in text


class TestValidation:
    """Test rejection of inconsistent arrays."""

    def test_frame_offsets_length(self):
        """Test frame offsets with wrong length."""
        with pytest.raises(ValueError, match="frame_scan_offsets"):
            IMSAcquisition("x", np.array([1.0]), np.array([0]), np.array([]))

    def test_frame_offsets_span(self):
        """Test frame offsets not covering all scans."""
        with pytest.raises(ValueError, match="span"):
            IMSAcquisition("x", np.array([1.0]), np.array([0, 1]), np.array([1.0, 0.9]))

    def test_point_arrays_differ(self):
        """Test m/z and intensity arrays of different length."""
        with pytest.raises(ValueError, match="differ"):
            IMSAcquisition(
                "x", np.array([1.0]), np.array([0, 1]), np.array([1.0]),
                centroid_offsets=np.array([0, 2]),
                centroid_mz=np.array([100.0, 200.0]),
                centroid_intensity=np.array([1.0]),
            )

    def test_missing_arrays_flag_absent(self):
        """Test that omitted raw arrays mark every scan as absent."""
        acq = IMSAcquisition(
            "x", np.array([1.0]), np.array([0, 1]), np.array([1.0]),
            centroid_offsets=np.array([0, 1]),
            centroid_mz=np.array([100.0]),
            centroid_intensity=np.array([1.0]),
        )

        assert not acq.raw_present.any()
        assert acq.centroid_present.all()
        assert acq.scan_points(0, centroid=False) is None
