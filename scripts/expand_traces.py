#!/usr/bin/env python
"""Expand candidate traces against an ion-mobility acquisition.

This script:
1. Loads an acquisition from HDF5 (see alphaimsfast.io.hdf for the layout)
2. Reads candidate traces from a CSV/TSV file
3. Sweeps the acquisition and materializes mobilogram time series
4. Writes one summary line per expanded trace

Usage:
    python scripts/expand_traces.py run01.hdf traces.tsv expanded.tsv \
        --raw --noise-level 200 --workers 4
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging

from alphaimsfast.expansion import ImsExpanderTask, JobStatus
from alphaimsfast.io import load_acquisition, read_traces_csv, write_rows_csv
from alphaimsfast.params import ImsExpanderParams, MobilityType


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.split("\n")[0])
    parser.add_argument("acquisition", type=Path, help="HDF5 acquisition file")
    parser.add_argument("traces", type=Path, help="CSV/TSV file with candidate traces")
    parser.add_argument("output", type=Path, help="CSV/TSV file for expanded rows")
    parser.add_argument("--raw", action="store_true", help="Use raw instead of centroided data")
    parser.add_argument("--noise-level", type=float, default=None,
                        help="Noise floor for raw data")
    parser.add_argument("--ppm", type=float, default=None,
                        help="m/z tolerance when traces only have an 'mz' column")
    parser.add_argument("--mobility-type", choices=[m.value for m in MobilityType],
                        default=MobilityType.TIMS.value)
    parser.add_argument("--max-traces-per-job", type=int, default=None)
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {"use_raw_data": args.raw, "n_workers": args.workers}
    if args.noise_level is not None:
        overrides["noise_level"] = args.noise_level
    if args.ppm is not None:
        overrides["mz_tolerance_ppm"] = args.ppm
    if args.max_traces_per_job is not None:
        overrides["max_traces_per_job"] = args.max_traces_per_job
    params = ImsExpanderParams.for_mobility_type(MobilityType(args.mobility_type), **overrides)

    acquisition = load_acquisition(args.acquisition)
    traces = read_traces_csv(args.traces, mz_tolerance_ppm=params.mz_tolerance_ppm)

    task = ImsExpanderTask(acquisition, traces, params)
    status = task.run()

    if status == JobStatus.ERROR:
        print(f"Error: {task.error_message}", file=sys.stderr)
        return 1

    write_rows_csv(task.output.sorted_by_mz(), args.output)
    print(f"{len(task.output)} of {len(traces)} traces expanded -> {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
