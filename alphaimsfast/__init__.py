"""AlphaIMSFast - ion-mobility trace expansion for mass spectrometry data.

Re-scans full ion-mobility acquisitions (retention time x m/z x mobility x
intensity) to expand coarsely detected traces into dense mobilogram time
series for quantitation. Hot loops are Numba-compiled and operate on flat
numpy arrays.
"""

__version__ = "0.1.0"

# Import main submodules for convenient access
from alphaimsfast import data
from alphaimsfast import traces
from alphaimsfast import series
from alphaimsfast import features
from alphaimsfast import expansion
from alphaimsfast import io

from alphaimsfast.params import ImsExpanderParams, MobilityType
from alphaimsfast.convenience import expand_traces

__all__ = [
    "data",
    "traces",
    "series",
    "features",
    "expansion",
    "io",
    "ImsExpanderParams",
    "MobilityType",
    "expand_traces",
]
