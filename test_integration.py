# Integration test - ASCII only
import math
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from hydraulics import ValidationError, InvalidGeometry, HazenWilliamsModel
from pipe_network import PipeSegment, Fitting, system_head
from pump import load_pump, NoOperatingPoint, OperatingPoint
from suction import (
    npsh_available, analyze_suction, atmospheric_pressure_psia, vapor_pressure_psia,
)
from surge import water_hammer, wave_speed, critical_closure_time, path_surge, surge_risk_level
from simulation import run_pump_analysis, compare_loss_models, sweep_flows


# -- Test 1: end-to-end hand calculation --

def test_three_segment_path_matches_hand_calc():
    elbow = Fitting("elbow", nominal_size_in=4.0)
    segments = [
        PipeSegment(4.0, 100.0, "pvc", 50.0, fittings=[elbow]),
        PipeSegment(4.0, 100.0, "pvc", 50.0, fittings=[elbow]),
        PipeSegment(4.0, 100.0, "pvc", 50.0),
    ]
    pt = system_head(segments, HazenWilliamsModel())

    # hand calculation
    seg_loss = 10.44 * 50.0 ** 1.852 * 100.0 / (150.0 ** 1.852 * 4.0 ** 4.8655)
    area = math.pi * (4.0 / 12.0) ** 2 / 4.0
    V = 50.0 * (231.0 / 1728.0 / 60.0) / area
    vh = V ** 2 / (2 * 32.174)
    expected = 3 * seg_loss + 2 * 1.5 * vh + 0.0 + vh

    assert pt.head_ft == pytest.approx(expected, rel=0.01)
    assert pt.static_head_ft == 0.0
    assert pt.friction_head_ft == pytest.approx(3 * seg_loss, rel=1e-9)
    assert pt.minor_head_ft == pytest.approx(2 * 1.5 * vh, rel=1e-9)


# -- Test 2: NPSH --

def test_npsh_available_example():
    npsha = npsh_available(14.7, 0.36, 5.0, 2.0)
    assert npsha == pytest.approx(14.7 * 2.31 - 0.36 * 2.31 + 5.0 - 2.0)
    assert npsha == pytest.approx(36.125, abs=0.01)


def test_analyze_suction_margin_and_risk():
    pump = load_pump("Model A - End Suction 2x3")
    ok = analyze_suction(pump, 150.0, atmospheric_pressure=14.7, vapor_pressure=0.36)
    assert ok.npsh_required_ft == pytest.approx(8.5)
    assert ok.margin_ft == pytest.approx(ok.npsh_available_ft - 8.5)
    assert not ok.cavitation_risk
    assert ok.adequate_margin

    # high suction lift: cavitation flagged, not raised
    bad = analyze_suction(pump, 250.0, vapor_pressure=0.36, suction_head_ft=-15.0, suction_losses_ft=5.0)
    assert bad.npsh_available_ft < bad.npsh_required_ft
    assert bad.cavitation_risk
    assert bad.margin_ft < 0


def test_analyze_suction_rejects_missing_duty_point():
    pump = load_pump("Model A - End Suction 2x3")
    with pytest.raises(ValidationError):
        analyze_suction(pump, NoOperatingPoint("none", -1.0, -1.0))


def test_atmosphere_and_vapor_lookup():
    assert atmospheric_pressure_psia(0.0) == pytest.approx(14.7)
    assert atmospheric_pressure_psia(5000.0) == pytest.approx(12.2, abs=0.1)
    assert vapor_pressure_psia(70.0) == pytest.approx(0.363)
    assert vapor_pressure_psia(212.0) == pytest.approx(14.696)


# -- Test 3: water hammer --

def test_instantaneous_closure_joukowsky():
    res = water_hammer(5.0, 1000.0, 0.0)
    a = math.sqrt(300000.0 * 144.0 / 1.94)
    assert res.wave_speed_fps == pytest.approx(a)
    assert res.critical_time_s == pytest.approx(2000.0 / a)
    assert res.rapid_closure
    assert res.surge_psi == pytest.approx(1.94 * a * 5.0 / 144.0)
    assert res.surge_head_ft == pytest.approx(res.surge_psi * 2.31)
    assert res.risk_level == "high"


def test_slow_closure_scales_by_tc_over_t():
    fast = water_hammer(5.0, 1000.0, 0.0)
    tc = fast.critical_time_s
    for factor in (1.0, 2.0, 10.0):
        slow = water_hammer(5.0, 1000.0, tc * factor)
        assert not slow.rapid_closure
        assert slow.surge_psi == pytest.approx(fast.surge_psi / factor)


def test_elastic_modulus_accepted_but_unused():
    base = water_hammer(5.0, 1000.0, 0.1)
    with_e = water_hammer(5.0, 1000.0, 0.1, pipe_elastic_modulus_psi=29e6)
    assert with_e.wave_speed_fps == base.wave_speed_fps
    assert with_e.surge_psi == base.surge_psi


def test_surge_validation_and_helpers():
    with pytest.raises(InvalidGeometry):
        water_hammer(5.0, 0.0, 1.0)
    with pytest.raises(ValidationError):
        water_hammer(5.0, 100.0, -1.0)
    with pytest.raises(ValidationError):
        water_hammer(5.0, 100.0, float("nan"))
    with pytest.raises(ValidationError):
        water_hammer(float("nan"), 100.0, 1.0)
    with pytest.raises(InvalidGeometry):
        water_hammer(5.0, float("nan"), 1.0)
    assert wave_speed() == pytest.approx(4718.9, abs=1.0)
    assert critical_closure_time(1000.0, 5000.0) == pytest.approx(0.4)
    assert surge_risk_level(10.0) == "low"
    assert surge_risk_level(75.0) == "moderate"
    assert surge_risk_level(150.0) == "high"
    res = water_hammer(1.0, 100.0, 10.0, operating_pressure_psi=60.0)
    assert res.max_pressure_psi == pytest.approx(60.0 + res.surge_psi)


def test_path_surge_uses_total_length_and_exit_velocity():
    segs = [PipeSegment(4.0, 400.0, "pvc", 100.0), PipeSegment(2.0, 600.0, "pvc", 100.0)]
    res = path_surge(segs, 0.0)
    direct = water_hammer(segs[-1].velocity_fps, 1000.0, 0.0)
    assert res.surge_psi == pytest.approx(direct.surge_psi)


# -- Test 4: full analysis --

def small_bore_path():
    return [
        PipeSegment(2.0, 100.0, "pvc", 100.0, elevation_change_ft=20.0, fittings=[Fitting("elbow", quantity=2)]),
        PipeSegment(2.0, 100.0, "pvc", 100.0, elevation_change_ft=20.0, fittings=[Fitting("check_valve")]),
        PipeSegment(2.0, 100.0, "pvc", 100.0),
    ]


def test_run_pump_analysis():
    pump = load_pump("Model A - End Suction 2x3")
    result = run_pump_analysis(small_bore_path(), pump, closure_time_s=0.1)
    op = result["operating_point"]
    assert isinstance(op, OperatingPoint)
    assert 50.0 < op.flow_gpm < 150.0
    assert not op.extrapolated
    assert len(result["system_curve"]) == len(sweep_flows(pump))
    assert result["suction"] is not None
    assert not result["suction"].cavitation_risk
    assert result["surge"].rapid_closure
    assert result["efficiency"]["efficiency_status"] in ("excellent", "good", "fair", "poor")
    assert result["operating_cost"]["power_kw"] > 0
    assert len(result["segment_details"]) == 3
    # 2 in pipe at 100 gpm runs above 7 ft/s
    assert result["velocity_violations"]
    assert any("velocity" in w for w in result["warnings"])


def test_run_pump_analysis_without_duty_point():
    pump = load_pump("Model B - Close Coupled 1.5x2")
    segs = [PipeSegment(2.0, 100.0, "pvc", 50.0, elevation_change_ft=200.0)]
    result = run_pump_analysis(segs, pump, closure_time_s=1.0)
    assert not result["operating_point"].found
    assert result["suction"] is None
    assert result["surge"] is None
    assert any("no operating point" in w for w in result["warnings"])


def test_compare_loss_models_keeps_curves_separate():
    pump = load_pump("Model A - End Suction 2x3")
    cmp = compare_loss_models(small_bore_path(), pump)
    assert set(cmp["results"]) == {"hazen_williams", "darcy_weisbach"}
    for name, res in cmp["results"].items():
        assert {p.loss_model for p in res["system_curve"]} == {name}
        assert cmp["summary"][name]["found"]
    assert cmp["flow_spread_gpm"] is not None
    assert cmp["flow_spread_gpm"] < 30.0


def test_loss_model_alias_uses_fluid_temperature():
    pump = load_pump("Model A - End Suction 2x3")
    canonical = run_pump_analysis(small_bore_path(), pump, loss_model="darcy_weisbach", temperature_f=180.0)
    alias = run_pump_analysis(small_bore_path(), pump, loss_model="Darcy-Weisbach", temperature_f=180.0)
    assert alias["operating_point"].flow_gpm == pytest.approx(canonical["operating_point"].flow_gpm)
    assert alias["loss_model"] == "darcy_weisbach"
    cold = run_pump_analysis(small_bore_path(), pump, loss_model="darcy_weisbach")
    assert alias["operating_point"].flow_gpm != pytest.approx(cold["operating_point"].flow_gpm, abs=0.5)
