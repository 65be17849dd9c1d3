"""Tests for expansion parameters and mobility-type presets."""

import unittest

from alphaimsfast.constants import (
    DEFAULT_NOISE_LEVEL,
    DRIFT_TUBE_MOBILITY_BIN_WIDTH,
    TIMS_MOBILITY_BIN_WIDTH,
    TWIMS_MOBILITY_BIN_WIDTH,
)
from alphaimsfast.data.access import MobilityScanDataType
from alphaimsfast.params import ImsExpanderParams, MobilityType


class TestImsExpanderParams(unittest.TestCase):
    """Test defaults and validation."""

    def test_defaults(self):
        """Test default parameters use centroided data."""
        params = ImsExpanderParams()

        self.assertFalse(params.use_raw_data)
        self.assertEqual(params.noise_level, DEFAULT_NOISE_LEVEL)
        self.assertEqual(params.min_mobility_scans, 2)
        self.assertEqual(params.n_workers, 1)
        self.assertEqual(params.data_type, MobilityScanDataType.CENTROID)

    def test_noise_level_only_for_raw(self):
        """Test that the noise level is ignored for centroided data."""
        self.assertIsNone(ImsExpanderParams(noise_level=200.0).effective_noise_level)

        params = ImsExpanderParams(use_raw_data=True, noise_level=200.0)
        self.assertEqual(params.effective_noise_level, 200.0)
        self.assertEqual(params.data_type, MobilityScanDataType.RAW)

    def test_invalid_values(self):
        """Test rejection of out-of-range values."""
        invalid = [
            dict(noise_level=-1.0),
            dict(mz_tolerance_ppm=0.0),
            dict(mobilogram_bin_width=0.0),
            dict(min_mobility_scans=1),
            dict(max_traces_per_job=0),
            dict(n_workers=0),
        ]
        for kwargs in invalid:
            with self.subTest(**kwargs):
                with self.assertRaises(ValueError):
                    ImsExpanderParams(**kwargs)


class TestMobilityTypePresets(unittest.TestCase):
    """Test instrument-specific bin widths."""

    def test_tims_preset(self):
        """Test timsTOF mobilogram binning."""
        params = ImsExpanderParams.for_mobility_type(MobilityType.TIMS)

        self.assertEqual(params.mobilogram_bin_width, TIMS_MOBILITY_BIN_WIDTH)

    def test_drift_tube_preset(self):
        """Test drift tube mobilogram binning."""
        params = ImsExpanderParams.for_mobility_type(MobilityType.DRIFT_TUBE)

        self.assertEqual(params.mobilogram_bin_width, DRIFT_TUBE_MOBILITY_BIN_WIDTH)

    def test_traveling_wave_preset(self):
        """Test TWIMS mobilogram binning."""
        params = ImsExpanderParams.for_mobility_type(MobilityType.TRAVELING_WAVE)

        self.assertEqual(params.mobilogram_bin_width, TWIMS_MOBILITY_BIN_WIDTH)

    def test_overrides(self):
        """Test that keyword overrides win over the preset."""
        params = ImsExpanderParams.for_mobility_type(
            MobilityType.TIMS, use_raw_data=True, mobilogram_bin_width=0.01
        )

        self.assertTrue(params.use_raw_data)
        self.assertEqual(params.mobilogram_bin_width, 0.01)


if __name__ == '__main__':
    unittest.main()
