"""Parameters for ion-mobility trace expansion.

Mobility-type presets set a sensible mobilogram bin width for the
instrument family; everything else has instrument-independent defaults.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .constants import (
    DEFAULT_MAX_TRACES_PER_JOB,
    DEFAULT_MZ_TOLERANCE_PPM,
    DEFAULT_NOISE_LEVEL,
    DRIFT_TUBE_MOBILITY_BIN_WIDTH,
    MIN_MOBILITY_SCANS,
    TIMS_MOBILITY_BIN_WIDTH,
    TWIMS_MOBILITY_BIN_WIDTH,
)
from .data.access import MobilityScanDataType


class MobilityType(Enum):
    """Ion mobility separation techniques."""
    TIMS = "tims"                      # 1/K0 in Vs/cm^2
    DRIFT_TUBE = "drift_tube"          # drift time in ms
    TRAVELING_WAVE = "traveling_wave"  # drift time in ms


@dataclass
class ImsExpanderParams:
    """Parameters for trace expansion.

    ``noise_level`` only takes effect with ``use_raw_data``; centroided data
    was already noise filtered by mass detection.
    """

    # Data selection
    use_raw_data: bool = False
    noise_level: float = DEFAULT_NOISE_LEVEL

    # Trace windows built from feature m/z values
    mz_tolerance_ppm: float = DEFAULT_MZ_TOLERANCE_PPM

    # Series output
    mobilogram_bin_width: float = TIMS_MOBILITY_BIN_WIDTH
    min_mobility_scans: int = MIN_MOBILITY_SCANS

    # Parallel execution
    max_traces_per_job: int = DEFAULT_MAX_TRACES_PER_JOB
    n_workers: int = 1

    def __post_init__(self):
        if self.noise_level < 0:
            raise ValueError(f"noise_level must be >= 0, got {self.noise_level}")
        if self.mz_tolerance_ppm <= 0:
            raise ValueError(f"mz_tolerance_ppm must be positive, got {self.mz_tolerance_ppm}")
        if self.mobilogram_bin_width <= 0:
            raise ValueError(
                f"mobilogram_bin_width must be positive, got {self.mobilogram_bin_width}"
            )
        if self.min_mobility_scans < MIN_MOBILITY_SCANS:
            raise ValueError(
                f"min_mobility_scans must be >= {MIN_MOBILITY_SCANS}, "
                f"got {self.min_mobility_scans}"
            )
        if self.max_traces_per_job < 1:
            raise ValueError(f"max_traces_per_job must be >= 1, got {self.max_traces_per_job}")
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")

    @property
    def data_type(self) -> MobilityScanDataType:
        return MobilityScanDataType.RAW if self.use_raw_data else MobilityScanDataType.CENTROID

    @property
    def effective_noise_level(self) -> Optional[float]:
        return self.noise_level if self.use_raw_data else None

    @classmethod
    def for_mobility_type(cls, mobility_type: MobilityType, **kwargs) -> 'ImsExpanderParams':
        """Create parameters with the mobilogram binning of a mobility type.

        Args:
            mobility_type: Mobility separation technique
            **kwargs: Overrides for any other field

        Returns:
            ImsExpanderParams with instrument-specific bin width
        """
        if mobility_type == MobilityType.TIMS:
            bin_width = TIMS_MOBILITY_BIN_WIDTH
        elif mobility_type == MobilityType.DRIFT_TUBE:
            bin_width = DRIFT_TUBE_MOBILITY_BIN_WIDTH
        elif mobility_type == MobilityType.TRAVELING_WAVE:
            bin_width = TWIMS_MOBILITY_BIN_WIDTH
        else:
            raise ValueError(f"Unknown mobility type: {mobility_type}")

        kwargs.setdefault("mobilogram_bin_width", bin_width)
        return cls(**kwargs)
