# ! 펌프 배관 해석 — 통합 해석 (시스템 곡선 → 운전점 → NPSH → 수격)
# * 손실 모델별 비교 해석 (곡선마다 하나의 모델만 사용)

import logging
from typing import Sequence

import numpy as np

from constants import (
    DEFAULT_SWEEP_POINTS, SWEEP_FLOW_FACTOR, MAX_VELOCITY_FPS,
    STANDARD_ATMOSPHERE_PSIA, DEFAULT_SUCTION_HEAD_FT, DEFAULT_SUCTION_LOSSES_FT,
    DEFAULT_TEMPERATURE_F, WATER_BULK_MODULUS_PSI,
)
from hydraulics import DarcyWeisbachModel, get_loss_model, normalize_key
from pipe_network import (
    PipeSegment, system_head, build_system_curve, segment_details,
    check_velocity_limits, segments_at_flow,
)
from pump import (
    PumpCurve, find_operating_point, find_all_operating_points,
    efficiency_analysis, calculate_operating_cost,
)
from suction import analyze_suction
from surge import path_surge

logger = logging.getLogger(__name__)


def sweep_flows(
    pump: PumpCurve,
    n_points: int = DEFAULT_SWEEP_POINTS,
    flow_factor: float = SWEEP_FLOW_FACTOR,
) -> np.ndarray:
    """0 → 펌프 최대 유량 × flow_factor 균등 스윕"""
    return np.linspace(0.0, pump.max_flow * flow_factor, n_points)


def run_pump_analysis(
    segments: Sequence[PipeSegment],
    pump: PumpCurve,
    loss_model="hazen_williams",
    flows=None,
    n_points: int = DEFAULT_SWEEP_POINTS,
    atmospheric_pressure: float = STANDARD_ATMOSPHERE_PSIA,
    vapor_pressure: float = None,
    suction_head_ft: float = DEFAULT_SUCTION_HEAD_FT,
    suction_losses_ft: float = DEFAULT_SUCTION_LOSSES_FT,
    temperature_f: float = DEFAULT_TEMPERATURE_F,
    closure_time_s: float = None,
    bulk_modulus_psi: float = WATER_BULK_MODULUS_PSI,
    operating_pressure_psi: float = None,
    max_velocity_fps: float = MAX_VELOCITY_FPS,
) -> dict:
    """
    ! 단일 유로 통합 해석

    알고리즘:
    1. 설계 유량에서 시스템 수두 + 구간 상세
    2. 유량 스윕 → 시스템 곡선
    3. 펌프 곡선과 교점 → 운전점 (없으면 NoOperatingPoint)
    4. 운전점에서 NPSH 점검, 효율/운전비
    5. closure_time_s 지정 시 운전점 유량 기준 수격 서지

    반환:
        design_point      : 구간 유량 그대로의 SystemPoint
        system_curve      : 스윕 SystemPoint 리스트
        operating_point   : OperatingPoint 또는 NoOperatingPoint
        all_crossings     : 모든 교점 리스트
        suction / surge   : SuctionResult / SurgeResult (해당 없으면 None)
        warnings          : 권고 수준 경고 문자열 목록
    """
    if isinstance(loss_model, str):
        if normalize_key(loss_model) == DarcyWeisbachModel.name:
            model = get_loss_model(loss_model, temperature_f=temperature_f)
        else:
            model = get_loss_model(loss_model)
    else:
        model = loss_model

    if flows is None:
        flows = sweep_flows(pump, n_points)

    warnings = []
    design_point = system_head(segments, model)
    curve = build_system_curve(segments, flows, model)
    op = find_operating_point(pump, curve)
    crossings = find_all_operating_points(pump, curve)

    velocity_violations = check_velocity_limits(segments, max_velocity_fps)
    for v in velocity_violations:
        warnings.append(
            f"segment {v['segment']} velocity {v['velocity_fps']} ft/s exceeds {v['limit_fps']} ft/s"
        )

    suction = None
    surge = None
    efficiency = None
    cost = None

    if not op.found:
        warnings.append(f"no operating point: {op.reason}")
    else:
        if op.extrapolated:
            warnings.append("operating point lies outside the tabulated pump curve (extrapolated)")
        if len(crossings) > 1:
            warnings.append(f"{len(crossings)} curve crossings found; the lowest-flow one is reported")

        suction = analyze_suction(
            pump, op,
            atmospheric_pressure=atmospheric_pressure,
            vapor_pressure=vapor_pressure,
            suction_head_ft=suction_head_ft,
            suction_losses_ft=suction_losses_ft,
            temperature_f=temperature_f,
        )
        if suction.cavitation_risk:
            warnings.append(
                f"cavitation risk: NPSHa {suction.npsh_available_ft:.2f} ft < NPSHr {suction.npsh_required_ft:.2f} ft"
            )
        elif not suction.adequate_margin:
            warnings.append(f"thin NPSH margin: {suction.margin_ft:.2f} ft")

        efficiency = efficiency_analysis(pump, op)
        cost = calculate_operating_cost(op)

        if closure_time_s is not None:
            surge = path_surge(
                segments_at_flow(segments, op.flow_gpm), closure_time_s,
                bulk_modulus_psi=bulk_modulus_psi,
                operating_pressure_psi=operating_pressure_psi,
            )
            if surge.risk_level == "high":
                warnings.append(f"high surge risk: {surge.surge_psi:.1f} psi")

    for w in warnings:
        logger.info("%s: %s", pump.name, w)

    return {
        "loss_model": model.name,
        "design_point": design_point,
        "segment_details": segment_details(segments, model),
        "system_curve": curve,
        "operating_point": op,
        "all_crossings": crossings,
        "suction": suction,
        "surge": surge,
        "efficiency": efficiency,
        "operating_cost": cost,
        "velocity_violations": velocity_violations,
        "warnings": warnings,
    }


def compare_loss_models(
    segments: Sequence[PipeSegment],
    pump: PumpCurve,
    models=("hazen_williams", "darcy_weisbach"),
    **kwargs,
) -> dict:
    """
    ! 손실 모델별 독립 해석 후 운전점 비교

    * 각 모델은 자기 시스템 곡선만 사용 (곡선 간 혼합 없음)
    """
    results = {name: run_pump_analysis(segments, pump, loss_model=name, **kwargs) for name in models}

    ops = {name: r["operating_point"] for name, r in results.items()}
    found = [op for op in ops.values() if op.found]
    summary = {
        name: {
            "found": op.found,
            "flow_gpm": round(op.flow_gpm, 2) if op.found else None,
            "head_ft": round(op.head_ft, 2) if op.found else None,
        }
        for name, op in ops.items()
    }
    spread = None
    if len(found) == len(ops) and found:
        flows = [op.flow_gpm for op in found]
        spread = round(max(flows) - min(flows), 3)

    return {
        "results": results,
        "summary": summary,
        "flow_spread_gpm": spread,
    }
