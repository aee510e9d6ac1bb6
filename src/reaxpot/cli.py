"""Command-line interface entry point for the ReaxPot workflows."""
import argparse
import sys

from reaxpot.workflows import bonds_workflow, energy_workflow
from reaxpot.utils.exceptions import DegenerateGeometryError, NumericalError, ParseError
from reaxpot.utils.log import get_logger

logger = get_logger("reaxpot.cli")

WORKFLOW_MODULES = {
    "bonds": bonds_workflow,
    "energy": energy_workflow,
}

# errors reported as a one-line message and exit status 1
USER_ERRORS = (
    ParseError, DegenerateGeometryError, NumericalError,
    FileNotFoundError, KeyError, IndexError, ValueError,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("reaxpot", description="ReaxFF bond orders and energies")
    parser.add_argument(
        "--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (defaults to the engine config)",
    )
    sub = parser.add_subparsers(dest="kind", required=True)
    for module in WORKFLOW_MODULES.values():
        module.register_tasks(sub)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    try:
        return args._run(args)
    except USER_ERRORS as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
