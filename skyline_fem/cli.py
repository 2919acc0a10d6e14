# skyline_fem/cli.py
"""
Command-line driver: read a STAP90 deck, assemble, report system totals.

Run with:
    python -m skyline_fem truss.dat
    python -m skyline_fem truss.dat --load-case 2 --log-level DEBUG
"""

import argparse
import logging
import sys

import numpy as np

from .config import AssemblyConfig, configure_logging
from .errors import SkylineFemError
from .reader import read_input

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='skyline-fem',
        description='Assemble the skyline stiffness matrix and load vectors of a STAP90 model',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  skyline-fem truss.dat
  skyline-fem truss.dat --load-case 1 --log-level DEBUG --dump-layout
        """
    )
    parser.add_argument('input', help='STAP90 input file')
    parser.add_argument(
        '--load-case',
        type=int,
        default=None,
        help='Assemble only this load case (1-based; default: all)'
    )
    parser.add_argument(
        '--allow-constrained-loads',
        action='store_true',
        help='Ignore loads on constrained DOFs instead of rejecting the model'
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--dump-layout',
        action='store_true',
        help='Log column heights and diagonal addresses'
    )
    return parser


def print_header(text: str):
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def run(args) -> int:
    config = AssemblyConfig(
        constrained_load_policy='ignore' if args.allow_constrained_loads else 'reject',
        log_level=args.log_level,
        log_layout=args.dump_layout,
    )

    domain = read_input(args.input, config=config)
    print_header(domain.title or args.input)

    neq = domain.number_equations()
    print(f"  Nodes:            {len(domain.nodes)}")
    print(f"  Element groups:   {len(domain.element_groups)}")
    print(f"  Load cases:       {len(domain.load_cases)}")
    print(f"  Equations (NEQ):  {neq}")

    if domain.modex == 0:
        print("\n  Data check completed (MODEX = 0)")
        return 0

    domain.allocate_matrices()
    domain.assemble_stiffness()
    print(f"  Stored (NWK):     {domain.nwk}")
    print(f"  Half band (MK):   {domain.mk}")

    if args.load_case is not None:
        cases = [args.load_case]
    else:
        cases = range(1, len(domain.load_cases) + 1)

    with np.printoptions(precision=6, suppress=False):
        for case in cases:
            F = domain.assemble_force(case)
            print_header(f"Load case {case}")
            print(f"  F = {F}")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return run(args)
    except (SkylineFemError, OSError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == '__main__':
    sys.exit(main())
