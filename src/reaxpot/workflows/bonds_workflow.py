"""
Bond-order workflow for ReaxPot.

Computes corrected bond orders for one snapshot and reports:
- the bond list above a threshold with single/double/triple kinds
- optionally, the per-atom coordination status (under / coord / over)

Examples:
  reaxpot bonds --ffield ffield --preset ozone
  reaxpot bonds --ffield ffield --xyz water.xyz --threshold 0.5 --export bonds.csv
"""


from __future__ import annotations
import argparse

from tabulate import tabulate

from reaxpot.analysis.bond_analyzer import bond_table, coordination_table
from reaxpot.engine.bond_order import compute_bond_orders
from reaxpot.utils.path import resolve_output_path
from reaxpot.workflows.common import add_input_args, load_inputs


def _run_bonds(args: argparse.Namespace) -> int:
    system, params, cfg = load_inputs(args)
    bo = compute_bond_orders(system, params, cfg)
    df = bond_table(bo, threshold=args.threshold, symbols=system.symbols)

    if df.empty:
        print(f"No bonds above bond order {args.threshold}.")
    else:
        print(tabulate(df, headers="keys", tablefmt="github", showindex=False, floatfmt=".4f"))

    coord = None
    if args.coordination:
        coord = coordination_table(system, params, bo, threshold=args.threshold)
        print()
        print(tabulate(coord, headers="keys", tablefmt="github", showindex=False, floatfmt=".4f"))

    if args.export:
        out = resolve_output_path(args.export, args.kind)
        df.to_csv(out, index=False)
        print(f"Successfully exported bonds to {out}.")
        if coord is not None:
            coord_out = out.with_name(f"{out.stem}_coordination{out.suffix or '.csv'}")
            coord.to_csv(coord_out, index=False)
            print(f"Successfully exported coordination to {coord_out}.")
    return 0


def register_tasks(subparsers: argparse._SubParsersAction) -> None:
    """
    CLI registration for:
        reaxpot bonds ...
    """
    p = subparsers.add_parser(
        "bonds",
        help="List bonds (with single/double/triple kind) for one snapshot.",
        description=(
            "Examples:\n"
            "  reaxpot bonds --ffield ffield --preset ozone\n"
            "  reaxpot bonds --ffield ffield --xyz water.xyz --coordination --export bonds.csv\n"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    add_input_args(p)
    p.add_argument("--threshold", type=float, default=0.3, help="Minimum corrected bond order")
    p.add_argument("--coordination", action="store_true", help="Also print per-atom coordination status")
    p.add_argument("--export", default=None, help="CSV path for the bond table")
    p.set_defaults(_run=_run_bonds)
