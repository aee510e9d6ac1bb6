"""
Tests for the command-line interface (reaxpot.cli).

These tests validate that:
- top-level and workflow-level -h/--help work
- `reaxpot bonds` and `reaxpot energy` run end to end on a preset or .xyz file
- exports land where resolve_output_path puts them
- input errors become a non-zero exit code instead of a traceback
"""

from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd
import pytest

import reaxpot.cli as cli

from ffield_samples import write_text


def test_top_level_help_prints_usage(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
    monkeypatch.setattr(sys, "argv", ["reaxpot", "-h"])
    with pytest.raises(SystemExit) as e:
        cli.main()
    assert e.value.code == 0

    out = capsys.readouterr().out
    assert "bonds" in out and "energy" in out


@pytest.mark.parametrize("kind", ["bonds", "energy"])
def test_workflow_help(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], kind: str):
    monkeypatch.setattr(sys, "argv", ["reaxpot", kind, "-h"])
    with pytest.raises(SystemExit) as e:
        cli.main()
    assert e.value.code == 0
    out = capsys.readouterr().out
    assert "--ffield" in out and "--preset" in out


def test_snapshot_source_is_required(ffield_path: Path):
    with pytest.raises(SystemExit) as e:
        cli.main(["bonds", "--ffield", str(ffield_path)])
    assert e.value.code == 2


def test_bonds_preset_prints_table(ffield_path: Path, capsys: pytest.CaptureFixture[str]):
    rc = cli.main(["bonds", "--ffield", str(ffield_path), "--preset", "carbon_dioxide", "--coordination"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "multiplicity" in out
    assert "double" in out or "triple" in out or "single" in out
    assert "label" in out


def test_bonds_export_from_xyz(tmp_path: Path, ffield_path: Path, capsys: pytest.CaptureFixture[str]):
    xyz = write_text(tmp_path / "water.xyz", "3\nwater\nO 0 0 0\nH 0.96 0 0\nH -0.24 0.93 0\n")
    out_csv = tmp_path / "out" / "bonds.csv"
    rc = cli.main(["bonds", "--ffield", str(ffield_path), "--xyz", str(xyz), "--export", str(out_csv)])
    assert rc == 0
    df = pd.read_csv(out_csv)
    assert df[["i", "j"]].values.tolist() == [[0, 1], [0, 2]]
    assert "Successfully exported" in capsys.readouterr().out


def test_energy_with_charges_and_default_output_dir(
    tmp_path: Path, ffield_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str],
):
    monkeypatch.chdir(tmp_path)
    rc = cli.main([
        "energy", "--ffield", str(ffield_path), "--preset", "water",
        "--charges", "-0.8,0.4,0.4", "--terms", "--export", "terms.csv",
    ])
    assert rc == 0
    out = capsys.readouterr().out
    assert "coulomb" in out and "total" in out

    exported = tmp_path / "reaxpot_outputs" / "energy" / "terms.csv"
    df = pd.read_csv(exported)
    assert set(df.columns) == {"term", "i", "j", "k", "energy"}
    assert "coulomb" in set(df["term"])


def test_wrong_charge_count_exits_nonzero(ffield_path: Path):
    rc = cli.main(["energy", "--ffield", str(ffield_path), "--preset", "ozone", "--charges", "0.1,0.2"])
    assert rc == 1


def test_missing_ffield_exits_nonzero(tmp_path: Path):
    rc = cli.main(["energy", "--ffield", str(tmp_path / "missing"), "--preset", "ozone"])
    assert rc == 1


def test_degenerate_geometry_exits_nonzero(tmp_path: Path, ffield_path: Path):
    xyz = write_text(tmp_path / "bad.xyz", "2\n\nO 0 0 0\nO 0 0 0\n")
    rc = cli.main(["bonds", "--ffield", str(ffield_path), "--xyz", str(xyz)])
    assert rc == 1
