# Hydraulics unit tests - ASCII only
import math
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from hydraulics import (
    ValidationError, InvalidGeometry, UnknownMaterial, UnknownFitting,
    NumericalNonConvergence, HazenWilliamsModel, DarcyWeisbachModel,
    FittingLossModel, get_loss_model, hazen_williams_loss, friction_factor,
    swamee_jain, colebrook_friction_factor, kinematic_viscosity,
    velocity_from_flow, reynolds_number, flow_regime, minor_loss,
    head_to_psi, psi_to_head, resolve_fitting_k,
)
from pipe_network import PipeSegment, Fitting
from constants import get_inner_diameter_in


# -- Test 1: zero flow gives zero loss --

def test_zero_flow_zero_loss_both_models():
    seg = PipeSegment(4.0, 100.0, "pvc", 0.0, fittings=[Fitting("elbow")])
    assert HazenWilliamsModel().segment_loss(seg) == 0.0
    assert DarcyWeisbachModel().segment_loss(seg) == 0.0
    assert DarcyWeisbachModel(friction_method="colebrook").segment_loss(seg) == 0.0
    assert FittingLossModel().total_loss(seg.fittings, seg.velocity_fps) == 0.0


# -- Test 2: Hazen-Williams monotonicity --

def test_hazen_williams_increasing_in_flow():
    losses = [hazen_williams_loss(q, 100.0, 4.0, 150.0) for q in (10, 50, 100, 200, 400)]
    assert all(b > a for a, b in zip(losses, losses[1:]))


def test_hazen_williams_increasing_in_length():
    losses = [hazen_williams_loss(50.0, L, 4.0, 150.0) for L in (10, 100, 500, 1000)]
    assert all(b > a for a, b in zip(losses, losses[1:]))


def test_hazen_williams_decreasing_in_diameter():
    losses = [hazen_williams_loss(50.0, 100.0, d, 150.0) for d in (1.0, 2.0, 4.0, 8.0)]
    assert all(b < a for a, b in zip(losses, losses[1:]))


def test_hazen_williams_formula_value():
    expected = 10.44 * 50.0 ** 1.852 * 100.0 / (150.0 ** 1.852 * 4.0 ** 4.8655)
    assert hazen_williams_loss(50.0, 100.0, 4.0, 150.0) == pytest.approx(expected, rel=1e-12)
    psi = hazen_williams_loss(50.0, 100.0, 4.0, 150.0, unit_constant=4.52)
    assert psi == pytest.approx(expected * 4.52 / 10.44, rel=1e-12)


def test_model_uses_material_c():
    smooth = PipeSegment(2.0, 100.0, "pvc", 60.0)
    rough = PipeSegment(2.0, 100.0, "cast_iron", 60.0)
    model = HazenWilliamsModel()
    assert model.segment_loss(rough) > model.segment_loss(smooth)


# -- Test 3: Reynolds classification --

@pytest.mark.parametrize("Re", [1.0, 100.0, 1500.0, 1999.9])
def test_laminar_branch_below_2000(Re):
    assert friction_factor(Re, 1.5e-4, 0.5) == pytest.approx(64.0 / Re)


@pytest.mark.parametrize("Re", [4000.0, 1e4, 1e5, 1e6])
def test_turbulent_branch_at_or_above_4000(Re):
    f = friction_factor(Re, 1.5e-4, 0.5)
    assert f == pytest.approx(swamee_jain(Re, 1.5e-4 / 0.5))
    assert f != pytest.approx(64.0 / Re)


def test_flow_regime_labels():
    assert flow_regime(0.0) == "stagnant"
    assert flow_regime(1500.0) == "laminar"
    assert flow_regime(3000.0) == "transitional"
    assert flow_regime(4000.0) == "turbulent"


def test_darcy_model_reports_turbulent_state():
    seg = PipeSegment(4.0, 100.0, "steel", 200.0)
    state = DarcyWeisbachModel().flow_state(seg)
    assert state["regime"] == "turbulent"
    assert state["reynolds"] > 4000
    expected = state["friction_factor"] * (100.0 / (4.0 / 12.0)) * state["velocity_fps"] ** 2 / (2 * 32.174)
    assert DarcyWeisbachModel().segment_loss(seg) == pytest.approx(expected)


# -- Test 4: Colebrook iteration --

def test_colebrook_close_to_swamee_jain():
    f_cw = colebrook_friction_factor(1e5, 1e-4)
    f_sj = swamee_jain(1e5, 1e-4)
    assert f_cw == pytest.approx(f_sj, rel=0.03)


def test_colebrook_iteration_cap_raises():
    with pytest.raises(NumericalNonConvergence):
        colebrook_friction_factor(1e5, 1e-4, max_iterations=1)


def test_darcy_model_colebrook_option():
    seg = PipeSegment(4.0, 100.0, "steel", 200.0)
    sj = DarcyWeisbachModel().segment_loss(seg)
    cw = DarcyWeisbachModel(friction_method="colebrook").segment_loss(seg)
    assert cw == pytest.approx(sj, rel=0.03)
    with pytest.raises(ValidationError):
        DarcyWeisbachModel(friction_method="churchill")


# -- Test 5: viscosity / velocity / conversions --

def test_viscosity_lookup():
    assert kinematic_viscosity() == pytest.approx(1.083e-5)
    assert kinematic_viscosity(60.0) == pytest.approx(1.217e-5)
    mid = kinematic_viscosity(65.0)
    assert 1.083e-5 < mid < 1.217e-5
    # clamped to table ends
    assert kinematic_viscosity(-10.0) == pytest.approx(1.664e-5)
    assert kinematic_viscosity(300.0) == pytest.approx(0.341e-5)


def test_velocity_from_flow():
    V = velocity_from_flow(50.0, 4.0)
    area = math.pi * (4.0 / 12.0) ** 2 / 4.0
    assert V == pytest.approx(50.0 * 0.00222800926 / area, rel=1e-6)
    assert V == pytest.approx(1.2766, rel=1e-3)


def test_reynolds_number():
    Re = reynolds_number(5.0, 6.0, 1.0e-5)
    assert Re == pytest.approx(5.0 * 0.5 / 1.0e-5)


def test_head_psi_conversion():
    assert head_to_psi(23.1) == pytest.approx(10.0)
    assert psi_to_head(10.0) == pytest.approx(23.1)


# -- Test 6: fitting K resolution --

def test_fitting_default_and_override():
    model = FittingLossModel()
    assert model.coefficient(Fitting("elbow")) == 1.5
    assert model.coefficient(Fitting("Elbow", subtype="90_long_radius")) == 0.7
    assert model.coefficient(Fitting("elbow", k_factor=0.9)) == 0.9
    assert model.coefficient(Fitting("custom_strainer", k_factor=1.2)) == 1.2


def test_fitting_loss_uses_quantity():
    V = 4.0
    single = FittingLossModel().fitting_loss(Fitting("tee"), V)
    double = FittingLossModel().fitting_loss(Fitting("tee", quantity=2), V)
    assert single == pytest.approx(minor_loss(2.0, V))
    assert double == pytest.approx(2 * single)


def test_unknown_fitting_fails_at_construction():
    with pytest.raises(UnknownFitting):
        Fitting("widget")
    with pytest.raises(UnknownFitting):
        Fitting("elbow", subtype="square")
    with pytest.raises(ValidationError):
        Fitting("elbow", quantity=0)
    with pytest.raises(ValidationError):
        resolve_fitting_k("elbow", k_factor=-1.0)


# -- Test 7: construction-time validation --

def test_invalid_geometry():
    with pytest.raises(InvalidGeometry):
        PipeSegment(0.0, 100.0, "pvc", 10.0)
    with pytest.raises(InvalidGeometry):
        PipeSegment(-2.0, 100.0, "pvc", 10.0)
    with pytest.raises(InvalidGeometry):
        PipeSegment(2.0, -1.0, "pvc", 10.0)
    with pytest.raises(InvalidGeometry):
        PipeSegment(2.0, 10.0, "pvc", -5.0)
    for bad in (float("nan"), float("inf")):
        with pytest.raises(InvalidGeometry):
            PipeSegment(4.0, bad, "pvc", 50.0)
        with pytest.raises(InvalidGeometry):
            PipeSegment(4.0, 100.0, "pvc", bad)
        with pytest.raises(InvalidGeometry):
            PipeSegment(bad, 100.0, "pvc", 50.0)


def test_zero_length_segment_allowed():
    seg = PipeSegment(2.0, 0.0, "pvc", 10.0)
    assert HazenWilliamsModel().segment_loss(seg) == 0.0


def test_unknown_material():
    with pytest.raises(UnknownMaterial):
        PipeSegment(2.0, 10.0, "unobtainium", 10.0)
    assert PipeSegment(2.0, 10.0, "PVC", 10.0).material == "PVC"
    assert PipeSegment(2.0, 10.0, "Galvanized Steel", 10.0)


def test_get_loss_model():
    assert isinstance(get_loss_model("Hazen-Williams"), HazenWilliamsModel)
    dw = get_loss_model("darcy_weisbach", temperature_f=100.0)
    assert isinstance(dw, DarcyWeisbachModel)
    assert dw.nu == pytest.approx(0.739e-5)
    with pytest.raises(ValidationError):
        get_loss_model("manning")


def test_inner_diameter_table():
    assert get_inner_diameter_in("pvc", 4) == pytest.approx(3.826)
    assert get_inner_diameter_in("steel", 2.0) == pytest.approx(2.067)
    with pytest.raises(KeyError):
        get_inner_diameter_in("pvc", 5.0)
