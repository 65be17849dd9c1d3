"""File I/O: HDF5 acquisitions, CSV traces and expanded rows."""

from .hdf import load_acquisition, save_acquisition
from .traces_csv import read_traces_csv, write_rows_csv

__all__ = [
    "load_acquisition",
    "save_acquisition",
    "read_traces_csv",
    "write_rows_csv",
]
