"""Constants and default settings for ion-mobility trace expansion.

Default values mirror what works for timsTOF and drift-tube data with
typical mobility resolutions. All tolerances are in ppm, all retention times
in seconds.
"""

import numpy as np

# =============================================================================
# Trace Acceptance
# =============================================================================

# A trace needs points in at least this many mobility scans to form a mobilogram
MIN_MOBILITY_SCANS = 2

# Marker for "no mobility scan filled yet" in the per-trace scan array
UNFILLED_SCAN = -1

# Unbounded RT / mobility window for traces without a restriction
UNBOUNDED_LOW = -np.inf
UNBOUNDED_HIGH = np.inf

# =============================================================================
# Default Parameters
# =============================================================================

# Intensity floor for raw (profile) data, ignored for centroided data
DEFAULT_NOISE_LEVEL = 500.0

# m/z window half-width when traces are built from feature m/z values
DEFAULT_MZ_TOLERANCE_PPM = 15.0

# Mobility bin widths for summed mobilograms
TIMS_MOBILITY_BIN_WIDTH = 0.0008      # 1/K0 (Vs/cm^2)
DRIFT_TUBE_MOBILITY_BIN_WIDTH = 0.02  # ms
TWIMS_MOBILITY_BIN_WIDTH = 0.05       # ms

# Traces per sub-job when a task is split for parallel execution
DEFAULT_MAX_TRACES_PER_JOB = 10000

# =============================================================================
# Progress Reporting
# =============================================================================

# Share of job progress assigned to the frame sweep; the rest is materialization
SWEEP_PROGRESS_WEIGHT = 0.5

# Number of decimals for m/z values in status descriptions
MZ_DECIMALS = 4
