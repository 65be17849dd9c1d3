"""Pytest configuration for AlphaIMSFast tests.

This module provides small synthetic ion-mobility acquisitions with known
content, so expected traces and series can be written down by hand.
"""

import numpy as np
import pytest

from alphaimsfast.data.acquisition import IMSAcquisition
from alphaimsfast.traces.arena import TraceArena


def points(mz, intensity):
    """(mz, intensity) pair with the storage dtypes."""
    return np.asarray(mz, dtype=np.float64), np.asarray(intensity, dtype=np.float64)


@pytest.fixture
def three_frame_acquisition():
    """Three frames with two mobility scans each (global scans 0..5).

    A species at m/z ~500.0 is present in frames 0 and 1 only; frame 2
    holds an unrelated peak and an empty scan. Raw data additionally carries
    a low-intensity point at 500.0005 in scan 0.

    scan  frame  rt    mobility  centroid points
    0     0      10.0  1.00      300.0 (1000), 500.001 (5000)
    1     0      10.0  0.99      500.002 (6000)
    2     1      11.0  1.00      500.0 (8000)
    3     1      11.0  0.99      499.999 (4000), 650.0 (100)
    4     2      12.0  1.00      700.0 (3000)
    5     2      12.0  0.99      -
    """
    frames = [
        (10.0, [
            (1.00,
             points([300.0, 500.0005, 500.001], [1000, 50, 5000]),
             points([300.0, 500.001], [1000, 5000])),
            (0.99,
             points([500.002], [6000]),
             points([500.002], [6000])),
        ]),
        (11.0, [
            (1.00,
             points([500.0], [8000]),
             points([500.0], [8000])),
            (0.99,
             points([499.999, 650.0], [4000, 100]),
             points([499.999, 650.0], [4000, 100])),
        ]),
        (12.0, [
            (1.00, points([700.0], [3000]), points([700.0], [3000])),
            (0.99, points([], []), points([], [])),
        ]),
    ]
    return IMSAcquisition.from_frames("run01", frames)


@pytest.fixture
def overlap_acquisition():
    """One frame, one mobility scan with two points inside two overlapping windows."""
    return IMSAcquisition.from_frames("overlap", [
        (5.0, [(1.1, points([100.045, 100.046], [10, 20]), points([100.045, 100.046], [10, 20]))]),
    ])


@pytest.fixture
def no_centroid_acquisition():
    """Two frames where the second frame's scan lacks a peak list."""
    return IMSAcquisition.from_frames("no_peaks", [
        (1.0, [(1.0, points([500.0], [100]), points([500.0], [100]))]),
        (2.0, [(1.0, points([500.0], [100]), None)]),
    ])


@pytest.fixture
def overlapping_traces():
    """Traces [100.00, 100.05] and [100.04, 100.10]."""
    return TraceArena(np.array([100.0, 100.04]), np.array([100.05, 100.1]))


@pytest.fixture
def run01_traces():
    """Traces around 300, 500, 650 and 700 m/z (10 ppm), row ids 10..13."""
    return TraceArena.from_features(
        np.array([300.0, 500.0, 650.0, 700.0]),
        10.0,
        row_ids=np.array([10, 11, 12, 13]),
    )


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
