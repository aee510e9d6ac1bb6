"""
Tests for the individual potential-energy terms.

These tests validate that:
- the taper window hits its boundary values with a consistent derivative
- two-body terms follow their closed forms and vanish without parameters
- one-body terms read the helper arrays of the bond-order pass
- three-body terms are zero without a triple row (ozone) and finite otherwise
- bad atom indices fail fast
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from reaxpot.core.atom_system import AtomSystem
from reaxpot.core.parameters import PairParameters
from reaxpot.engine import energies
from reaxpot.engine.bond_order import compute_bond_orders
from reaxpot.engine.energies import Taper, taper
from reaxpot.utils.config import EngineConfig

from ffield_samples import single_type_params


def _evaluated(params, preset: str, **kwargs):
    system = AtomSystem.from_preset(preset, params, **kwargs)
    return system, compute_bond_orders(system, params)


# ---- taper -----------------------------------------------------------------

def test_taper_boundaries():
    assert taper(0.0, 10.0) == Taper(1.0, 0.0)
    assert taper(10.0, 10.0) == Taper(0.0, 0.0)
    assert taper(12.5, 10.0) == Taper(0.0, 0.0)
    near = taper(10.0 - 1e-6, 10.0)
    assert near.tap == pytest.approx(0.0, abs=1e-12)
    assert near.dtap == pytest.approx(0.0, abs=1e-9)


def test_taper_is_monotone_and_derivative_matches():
    rs = np.linspace(0.0, 9.99, 50)
    taps = [taper(r, 10.0).tap for r in rs]
    assert all(a >= b for a, b in zip(taps, taps[1:]))

    h = 1e-6
    for r in (1.0, 4.2, 7.5):
        numeric = (taper(r + h, 10.0).tap - taper(r - h, 10.0).tap) / (2 * h)
        assert taper(r, 10.0).dtap == pytest.approx(numeric, rel=1e-5)


def test_taper_rejects_bad_cutoff():
    with pytest.raises(ValueError):
        taper(1.0, 0.0)


# ---- two-body terms ----------------------------------------------------------

def test_van_der_waals_closed_form(params):
    system, bo = _evaluated(params, "ozone")
    pair = params.pair(2, 2)
    r = float(bo.distances[0, 2])
    p = params.general.pvdw1
    fn13 = (r ** p + pair.gamma_w ** -p) ** (1 / p)
    x = 1 - fn13 / pair.rvdw
    expected = taper(r, 10.0).tap * pair.epsilon * (math.exp(pair.alpha * x) - 2 * math.exp(0.5 * pair.alpha * x))
    assert energies.van_der_waals(system, params, bo, 0, 2) == pytest.approx(expected)
    assert energies.van_der_waals(system, params, bo, 2, 0) == pytest.approx(expected)


def test_van_der_waals_beyond_cutoff_is_zero(params):
    system = AtomSystem.from_symbols(["O", "O"], np.array([[0, 0, 0], [11.0, 0, 0]]), params)
    bo = compute_bond_orders(system, params)
    assert energies.van_der_waals(system, params, bo, 0, 1) == 0.0


def test_coulomb_uses_charges(params):
    system, bo = _evaluated(params, "water")
    assert energies.coulomb(system, params, bo, 0, 1) == 0.0

    charged, bo = _evaluated(params, "water", charges=[-0.8, 0.4, 0.4])
    pair = params.pair(2, 1)
    r = float(bo.distances[0, 1])
    expected = 332.06371 * -0.32 * taper(r, 10.0).tap / (r ** 3 + pair.gamma) ** (1 / 3)
    e01 = energies.coulomb(charged, params, bo, 0, 1)
    assert e01 == pytest.approx(expected)
    assert e01 < 0.0
    assert energies.coulomb(charged, params, bo, 1, 2) > 0.0

    doubled = energies.coulomb(charged, params, bo, 0, 1, EngineConfig(coulomb_constant=2 * 332.06371))
    assert doubled == pytest.approx(2 * e01)


def test_coulomb_zero_without_pair_row():
    params = single_type_params(None)
    system = AtomSystem(positions=[[0, 0, 0], [0.01, 0, 0]], types=[0, 0], charges=[1.0, 1.0])
    bo = compute_bond_orders(system, params)
    assert energies.coulomb(system, params, bo, 0, 1) == 0.0


def test_bond_energy_is_negative_for_bonded_pair(params):
    system, bo = _evaluated(params, "carbon_dioxide")
    pair = params.pair(0, 2)
    bo_s = bo.sigma[0, 1]
    expected = (
        -pair.de_sigma * bo_s * math.exp(pair.pbe1 * (1 - bo_s ** pair.pbe2))
        - pair.de_pi * bo.pi[0, 1] - pair.de_pipi * bo.pi2[0, 1]
    )
    e = energies.bond_energy(system, params, bo, 0, 1)
    assert e == pytest.approx(expected)
    assert e < 0.0


def test_bond_energy_zero_without_bond_order():
    params = single_type_params(PairParameters(ro_sigma=1.3817, pbo1=-0.1, pbo2=6.0, de_sigma=100.0))
    system = AtomSystem(positions=[[0, 0, 0], [6.0, 0, 0]], types=[0, 0])
    bo = compute_bond_orders(system, params)
    assert bo.total[0, 1] == 0.0
    assert energies.bond_energy(system, params, bo, 0, 1) == 0.0


def test_pair_terms_need_distinct_atoms(params):
    system, bo = _evaluated(params, "ozone")
    with pytest.raises(ValueError):
        energies.van_der_waals(system, params, bo, 1, 1)


# ---- one-body terms ----------------------------------------------------------

def test_lone_pair_energy_closed_form(params):
    system, bo = _evaluated(params, "water")
    plp2 = params.atom(2).plp2
    dlp = bo.deltap_lp[0]
    expected = plp2 * dlp / (1 + math.exp(-75 * dlp))
    assert energies.lone_pair_energy(system, params, bo, 0) == pytest.approx(expected)


def test_lone_pair_energy_zero_without_plp2(params):
    system, bo = _evaluated(params, "water")
    # hydrogen has plp2 = 0
    assert energies.lone_pair_energy(system, params, bo, 1) == 0.0


def test_coordination_terms_closed_form(params):
    system, bo = _evaluated(params, "carbon_dioxide")
    g = params.general
    s, dlp_corr = energies.coordination_terms(system, params, bo, 0)
    # carbon is lighter than 21 amu: the lone-pair correction applies
    dlp = bo.deltap_lp[0]
    expected_s = float(np.sum((bo.delta_i - dlp) * (bo.pi[0] + bo.pi2[0])))
    assert s == pytest.approx(expected_s)
    assert dlp_corr == pytest.approx(bo.delta_i[0] - dlp / (1 + g.povun3 * math.exp(g.povun4 * s)))


def _sulfur_like_dimer(mass: float):
    pair = PairParameters(ro_sigma=1.3817, ro_pi=1.2, pbo1=-0.1, pbo2=6.0, pbo3=-0.2, pbo4=6.0)
    params = single_type_params(pair, atom_overrides={
        "mass": mass, "ro_pi": 1.2, "valency": 2.0, "valency_e": 6.0, "valency_boc": 2.0,
        "nlp_opt": 2.0,
    })
    system = AtomSystem(positions=[[0, 0, 0], [1.4, 0, 0]], types=[0, 0])
    return system, params, compute_bond_orders(system, params)


def test_coordination_terms_skip_lone_pair_for_heavy_atoms():
    system, params, bo = _sulfur_like_dimer(32.06)
    assert bo.pi[0, 1] > 0.0
    assert bo.deltap_lp[0] != 0.0

    s, dlp_corr = energies.coordination_terms(system, params, bo, 0)
    assert dlp_corr == bo.delta_i[0]
    assert s == pytest.approx(float(np.sum(bo.delta_i * (bo.pi[0] + bo.pi2[0]))))

    # the same atom below 21 amu keeps the lone-pair correction
    light_system, light_params, light_bo = _sulfur_like_dimer(12.0)
    s_light, dlp_corr_light = energies.coordination_terms(light_system, light_params, light_bo, 0)
    dlp = light_bo.deltap_lp[0]
    assert s_light == pytest.approx(float(np.sum((light_bo.delta_i - dlp) * (light_bo.pi[0] + light_bo.pi2[0]))))
    assert s_light != pytest.approx(s)
    assert dlp_corr_light != pytest.approx(dlp_corr)


def test_over_and_under_coordination_are_finite(params):
    system, bo = _evaluated(params, "carbon_dioxide")
    for i in range(3):
        e_over = energies.over_coordination(system, params, bo, i)
        e_under = energies.under_coordination(system, params, bo, i)
        assert math.isfinite(e_over) and math.isfinite(e_under)


def test_over_coordination_closed_form(params):
    system, bo = _evaluated(params, "carbon_dioxide")
    _, dlp_corr = energies.coordination_terms(system, params, bo, 0)
    c = params.atom(0)
    co = params.pair(0, 2)
    sum_ovun1 = co.povun1 * co.de_sigma * (bo.total[0, 1] + bo.total[0, 2])
    expected = sum_ovun1 * dlp_corr / (dlp_corr + c.valency + 1e-8) / (1 + math.exp(c.povun2 * dlp_corr))
    assert energies.over_coordination(system, params, bo, 0) == pytest.approx(expected)


def test_under_coordination_closed_form(params):
    system, bo = _evaluated(params, "water")
    g = params.general
    s, dlp_corr = energies.coordination_terms(system, params, bo, 0)
    o = params.atom(2)
    expected = (
        -o.povun5 * (1 - math.exp(g.povun6 * dlp_corr)) / (1 + math.exp(-o.povun2 * dlp_corr))
        / (1 + g.povun7 * math.exp(g.povun8 * s))
    )
    assert energies.under_coordination(system, params, bo, 0) == pytest.approx(expected)


# ---- three-body terms --------------------------------------------------------

def test_ozone_three_body_terms_zero_without_triple_row(params):
    system, bo = _evaluated(params, "ozone")
    assert params.triple(2, 2, 2) is None
    penalty = energies.penalty_energy(system, params, bo, 0, 1, 2)
    coalition = energies.coalition_energy(system, params, bo, 0, 1, 2)
    assert math.isfinite(penalty) and math.isfinite(coalition)
    assert penalty == 0.0
    assert coalition == 0.0


def test_penalty_closed_form_for_carbon_dioxide(params):
    system, bo = _evaluated(params, "carbon_dioxide")
    g = params.general
    triple = params.triple(2, 0, 2)
    boa_ij = bo.total[1, 0] - 0.001
    boa_jk = bo.total[0, 2] - 0.001
    dboc = bo.deltap_boc[0]
    f9 = (2 + math.exp(-g.ppen3 * dboc)) / (1 + math.exp(-g.ppen3 * dboc) + math.exp(g.ppen4 * dboc))
    expected = (
        triple.ppen1 * f9 * math.exp(-g.ppen2 * (boa_ij - 2) ** 2) * math.exp(-g.ppen2 * (boa_jk - 2) ** 2)
    )
    e = energies.penalty_energy(system, params, bo, 1, 0, 2)
    assert e == pytest.approx(expected)
    assert e > 0.0
    assert energies.penalty_energy(system, params, bo, 2, 0, 1) == pytest.approx(e)


def test_coalition_closed_form_for_carbon_dioxide(params):
    system, bo = _evaluated(params, "carbon_dioxide")
    g = params.general
    triple = params.triple(2, 0, 2)
    tbo = bo.total_bond_order
    boa_ij = bo.total[1, 0] - 0.001
    boa_jk = bo.total[0, 2] - 0.001
    expected = (
        triple.pcoa1 / (1 + math.exp(g.pcoa2 * bo.deltap_boc[0]))
        * math.exp(-g.pcoa3 * (tbo[1] - boa_ij) ** 2)
        * math.exp(-g.pcoa3 * (tbo[2] - boa_jk) ** 2)
        * math.exp(-g.pcoa4 * (boa_ij - 1.5) ** 2)
        * math.exp(-g.pcoa4 * (boa_jk - 1.5) ** 2)
    )
    assert energies.coalition_energy(system, params, bo, 1, 0, 2) == pytest.approx(expected, abs=1e-300)


@pytest.mark.parametrize(
    "call",
    [
        lambda s, p, b: energies.lone_pair_energy(s, p, b, 3),
        lambda s, p, b: energies.over_coordination(s, p, b, -1),
        lambda s, p, b: energies.coulomb(s, p, b, 0, 7),
        lambda s, p, b: energies.penalty_energy(s, p, b, 0, 1, 3),
        lambda s, p, b: energies.coalition_energy(s, p, b, 5, 1, 2),
    ],
)
def test_out_of_range_atom_index_raises(params, call):
    system, bo = _evaluated(params, "ozone")
    with pytest.raises(IndexError):
        call(system, params, bo)
