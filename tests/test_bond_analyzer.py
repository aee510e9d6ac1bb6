"""
Tests for bond listing and coordination classification.
"""

from __future__ import annotations

import numpy as np
import pytest

from reaxpot.analysis.bond_analyzer import bond_table, coordination_table, status_label
from reaxpot.core.atom_system import AtomSystem
from reaxpot.engine.bond_order import compute_bond_orders


def test_bond_table_carbon_dioxide(params):
    system = AtomSystem.from_preset("carbon_dioxide", params)
    bo = compute_bond_orders(system, params)
    df = bond_table(bo, threshold=0.3, symbols=system.symbols)

    assert list(df.columns) == [
        "i", "j", "symbol_i", "symbol_j", "bo", "bo_sigma", "bo_pi", "bo_pi2", "multiplicity", "kind",
    ]
    assert df[["i", "j"]].values.tolist() == [[0, 1], [0, 2]]
    assert df["symbol_i"].tolist() == ["C", "C"]
    assert np.allclose(df["bo"], df["bo_sigma"] + df["bo_pi"] + df["bo_pi2"])
    expected = int(np.clip(np.rint(bo.total[0, 1]), 1, 3))
    assert df["multiplicity"].tolist() == [expected, expected]
    assert df["kind"].iloc[0] == {1: "single", 2: "double", 3: "triple"}[expected]


def test_bond_table_threshold_filters(params):
    bo = compute_bond_orders(AtomSystem.from_preset("carbon_dioxide", params), params)
    assert bond_table(bo, threshold=10.0).empty
    assert "symbol_i" not in bond_table(bo).columns


def test_bond_table_symbol_length_mismatch(params):
    bo = compute_bond_orders(AtomSystem.from_preset("ozone", params), params)
    with pytest.raises(ValueError):
        bond_table(bo, symbols=["O"])


def test_coordination_table(params):
    system = AtomSystem.from_preset("water", params)
    bo = compute_bond_orders(system, params)
    df = coordination_table(system, params, bo, threshold=0.3)

    assert list(df.columns) == ["atom", "symbol", "total_bo", "valency", "delta", "status", "label"]
    assert df["symbol"].tolist() == ["O", "H", "H"]
    assert df["valency"].tolist() == [2.0, 1.0, 1.0]
    assert np.allclose(df["delta"], df["total_bo"] - df["valency"])
    for delta, status in zip(df["delta"], df["status"]):
        assert status == (-1 if delta < -0.3 else (1 if delta > 0.3 else 0))
    assert df["label"].tolist() == status_label(df["status"])


def test_coordination_table_rejects_bad_threshold(params):
    system = AtomSystem.from_preset("water", params)
    bo = compute_bond_orders(system, params)
    with pytest.raises(ValueError):
        coordination_table(system, params, bo, threshold=-1.0)


def test_status_label_mapping():
    assert status_label([-1, 0, 1, float("nan")]) == ["under", "coord", "over", None]
