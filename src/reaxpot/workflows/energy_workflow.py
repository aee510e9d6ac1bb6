"""
Potential-energy workflow for ReaxPot.

Evaluates every energy term for one snapshot and prints the named totals
in kcal/mol. ``--terms`` adds the per-interaction breakdown and
``--export`` writes it to CSV.

Examples:
  reaxpot energy --ffield ffield --preset water --charges -0.8,0.4,0.4
"""


from __future__ import annotations
import argparse

from tabulate import tabulate

from reaxpot.engine.evaluator import evaluate
from reaxpot.utils.path import resolve_output_path
from reaxpot.workflows.common import add_input_args, load_inputs


def _run_energy(args: argparse.Namespace) -> int:
    system, params, cfg = load_inputs(args)
    report = evaluate(system, params, cfg)

    print(tabulate(report.summary(), headers="keys", tablefmt="github", showindex=False, floatfmt=".6f"))
    if args.terms and not report.terms.empty:
        print()
        print(tabulate(report.terms, headers="keys", tablefmt="github", showindex=False, floatfmt=".6f"))

    if args.export:
        out = resolve_output_path(args.export, args.kind)
        report.terms.to_csv(out, index=False)
        print(f"Successfully exported {len(report.terms)} interaction energies to {out}.")
    return 0


def register_tasks(subparsers: argparse._SubParsersAction) -> None:
    """
    CLI registration for:
        reaxpot energy ...
    """
    p = subparsers.add_parser(
        "energy",
        help="Evaluate the ReaxFF energy terms for one snapshot.",
        description=(
            "Examples:\n"
            "  reaxpot energy --ffield ffield --preset ozone\n"
            "  reaxpot energy --ffield ffield --xyz water.xyz --charges -0.8,0.4,0.4 --terms\n"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    add_input_args(p)
    p.add_argument("--terms", action="store_true", help="Print every non-zero interaction")
    p.add_argument("--export", default=None, help="CSV path for the per-interaction table")
    p.set_defaults(_run=_run_energy)
