"""utility module keeping ReaxPot outputs organised

Analysis results written by the CLI land in

    reaxpot_outputs/<workflow>/<filename>

unless the user provides an absolute path or a path containing directories.
"""

from pathlib import Path

DEFAULT_OUTROOT = Path("reaxpot_outputs")


def resolve_output_path(user_value: str, workflow: str) -> Path:
    """
    Put outputs under reaxpot_outputs/<workflow> by default,
    unless the user explicitly gave a directory.
    """
    p = Path(user_value)

    if p.is_absolute() or p.parent != Path("."):
        p.parent.mkdir(parents=True, exist_ok=True)
        return p

    outdir = DEFAULT_OUTROOT / workflow
    outdir.mkdir(parents=True, exist_ok=True)
    return outdir / p.name
