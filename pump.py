# ! 펌프 배관 해석 — 펌프 곡선 보간, 운전점 계산, 효율/운전비 분석
# * scipy interp1d(linear, extrapolate) 구간 선형 보간
# * 시스템 곡선 샘플을 오름차순으로 순회하며 부호 변화로 교점 탐색

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import numpy as np
from scipy.interpolate import interp1d

from constants import (
    PUMP_DATABASE, HP_TO_KW, EFFICIENCY_STATUS_LEVELS,
    DEFAULT_OPERATING_HOURS_PER_DAY, DEFAULT_ELECTRICITY_RATE_USD,
)
from hydraulics import ValidationError

logger = logging.getLogger(__name__)


class UnsortedPumpCurve(ValidationError):
    """펌프 곡선 유량 브레이크포인트가 엄격히 증가하지 않음"""
    pass


# ──────────────────────────────────────────────
# ? 결과 데이터 구조
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class PumpPoint:
    """특정 유량에서의 펌프 성능 (보간값)"""
    flow_gpm: float
    head_ft: float
    efficiency: float
    power_hp: float
    npsh_required_ft: float
    extrapolated: bool = False


@dataclass(frozen=True)
class OperatingPoint:
    """펌프 곡선과 시스템 곡선의 교점 (운전점)"""
    flow_gpm: float
    head_ft: float
    efficiency: float
    power_hp: float
    npsh_required_ft: float
    system_head_ft: float
    extrapolated: bool = False
    found = True


@dataclass(frozen=True)
class NoOperatingPoint:
    """
    스윕 범위 안에서 교점이 없음 — 예외가 아닌 정상 결과

    * 펌프 양정 부족 또는 스윕 범위가 좁은 경우
    """
    reason: str
    min_margin_ft: float
    max_margin_ft: float
    found = False


# ──────────────────────────────────────────────
# ? 펌프 성능 곡선 클래스
# ──────────────────────────────────────────────

class PumpCurve:
    """
    ! 펌프 성능 곡선 — 유량별 양정, 효율, 축동력, NPSHr 을 구간 선형 보간합니다.

    points : [(유량 gpm, 양정 ft, 효율, NPSHr ft, 축동력 hp), ...]
    * 유량은 엄격히 증가해야 함 (UnsortedPumpCurve)
    * 범위 밖은 가장 가까운 구간의 기울기로 선형 외삽 (제조사 시험 범위 밖에서는 근사)
    """

    def __init__(self, name: str, points: Sequence[Sequence[float]], description: str = ""):
        self.name = name
        self.description = description

        rows = [tuple(float(v) for v in p) for p in points]
        if len(rows) < 2:
            raise ValidationError(f"펌프 곡선은 2개 이상의 점이 필요합니다. (입력: {len(rows)}개)")
        if any(len(r) != 5 for r in rows):
            raise ValidationError("펌프 곡선 각 점은 (flow, head, efficiency, npshr, power) 5개 값이어야 합니다.")

        table = np.array(rows, dtype=float)
        flows = table[:, 0]
        # * NaN 은 비교가 항상 False 이므로 유한성부터 확인
        if not (np.all(np.isfinite(flows)) and np.all(np.diff(flows) > 0)):
            raise UnsortedPumpCurve(
                f"펌프 곡선 유량이 엄격히 증가하지 않습니다: {flows.tolist()}"
            )
        if not np.all(np.isfinite(table)):
            raise ValidationError("펌프 곡선에 유한하지 않은 값(NaN/inf)이 있습니다.")

        self.points = rows
        self.flows = flows
        self.heads = table[:, 1]
        self.efficiencies = table[:, 2]
        self.npsh_required = table[:, 3]
        self.powers = table[:, 4]

        self.min_flow = float(flows[0])
        self.max_flow = float(flows[-1])

        # * 열 순서: head, efficiency, power, npshr
        self._values = np.column_stack([self.heads, self.efficiencies, self.powers, self.npsh_required])
        self.interp = interp1d(
            flows, self._values, kind="linear", axis=0,
            fill_value="extrapolate", assume_sorted=True,
        )

    @classmethod
    def from_arrays(cls, name, flows, heads, efficiencies, npsh_required, powers, description=""):
        """열 단위 배열로부터 생성 — 배열 길이가 모두 같아야 함"""
        lengths = {len(flows), len(heads), len(efficiencies), len(npsh_required), len(powers)}
        if len(lengths) != 1:
            raise ValidationError(f"펌프 곡선 배열 길이가 서로 다릅니다: {sorted(lengths)}")
        return cls(name, list(zip(flows, heads, efficiencies, npsh_required, powers)), description)

    def is_extrapolated(self, Q_gpm: float) -> bool:
        return Q_gpm < self.min_flow or Q_gpm > self.max_flow

    def interpolate(self, Q_gpm: float) -> PumpPoint:
        """유량 Q에서의 양정/효율/동력/NPSHr (브레이크포인트에서는 표 값 그대로)"""
        Q = float(Q_gpm)
        idx = int(np.searchsorted(self.flows, Q))
        if idx < len(self.flows) and self.flows[idx] == Q:
            head, eff, power, npshr = self._values[idx]
        else:
            head, eff, power, npshr = self.interp(Q)
        return PumpPoint(
            flow_gpm=Q,
            head_ft=float(head),
            efficiency=float(eff),
            power_hp=float(power),
            npsh_required_ft=float(npshr),
            extrapolated=self.is_extrapolated(Q),
        )

    def head_at_flow(self, Q_gpm: float) -> float:
        return self.interpolate(Q_gpm).head_ft

    def best_efficiency_point(self) -> PumpPoint:
        """최고 효율점 (BEP) — 표의 브레이크포인트 중 효율 최대"""
        i = int(np.argmax(self.efficiencies))
        return self.interpolate(self.flows[i])

    def get_curve_points(self, n_points: int = 100) -> Tuple[np.ndarray, np.ndarray]:
        Q = np.linspace(self.min_flow, self.max_flow, n_points)
        H = self.interp(Q)[:, 0]
        return Q, H

    def __repr__(self):
        return f"PumpCurve({self.name!r}, {len(self.points)} points, {self.min_flow:g}-{self.max_flow:g} gpm)"


def load_pump(model_name: str) -> PumpCurve:
    data = PUMP_DATABASE[model_name]
    return PumpCurve(
        name=model_name,
        points=data["points"],
        description=data["description"],
    )


# ──────────────────────────────────────────────
# ? 운전점 탐색 (펌프 곡선 ∩ 시스템 곡선)
# ──────────────────────────────────────────────

def _check_system_points(system_points) -> None:
    if len(system_points) < 2:
        raise ValidationError("시스템 곡선은 2개 이상의 점이 필요합니다.")
    flows = np.array([p.flow_gpm for p in system_points], dtype=float)
    heads = np.array([p.head_ft for p in system_points], dtype=float)
    if not (np.all(np.isfinite(flows)) and np.all(np.isfinite(heads))):
        raise ValidationError("시스템 곡선에 유한하지 않은 값(NaN/inf)이 있습니다.")
    if not np.all(np.diff(flows) > 0):
        raise ValidationError("시스템 곡선 유량이 엄격히 증가하지 않습니다.")
    models = {p.loss_model for p in system_points}
    if len(models) > 1:
        raise ValidationError(
            f"서로 다른 손실 모델의 결과를 하나의 시스템 곡선에 섞을 수 없습니다: {sorted(models)}"
        )


def _build_operating_point(pump: PumpCurve, Q: float, system_head_ft: float) -> OperatingPoint:
    pp = pump.interpolate(Q)
    return OperatingPoint(
        flow_gpm=pp.flow_gpm,
        head_ft=pp.head_ft,
        efficiency=pp.efficiency,
        power_hp=pp.power_hp,
        npsh_required_ft=pp.npsh_required_ft,
        system_head_ft=system_head_ft,
        extrapolated=pp.extrapolated,
    )


def _scan_crossings(pump: PumpCurve, system_points, first_only: bool) -> List[OperatingPoint]:
    """
    ! 인접 샘플 쌍마다 (펌프 양정 − 시스템 수두) 부호 변화 탐지

    flow* = flowA + (pumpA − systemA) / (slopeSystem − slopePump)

    * 구간 안에 펌프 브레이크포인트가 있으면 선형 조각마다 같은 식을 적용
      (두 곡선 모두 구간 선형이므로 교점이 정확함)
    """
    found = []
    n = len(system_points)
    for k in range(n - 1):
        a, b = system_points[k], system_points[k + 1]
        qa, qb = a.flow_gpm, b.flow_gpm
        slope_sys = (b.head_ft - a.head_ft) / (qb - qa)

        inner = pump.flows[(pump.flows > qa) & (pump.flows < qb)]
        grid = [qa] + [float(q) for q in inner] + [qb]
        sys_heads = [a.head_ft + slope_sys * (q - qa) for q in grid]
        diffs = [pump.head_at_flow(q) - h for q, h in zip(grid, sys_heads)]

        for j in range(len(grid) - 1):
            q0, q1 = grid[j], grid[j + 1]
            d0, d1 = diffs[j], diffs[j + 1]
            if d0 == 0.0:
                Q = q0
            elif d0 * d1 < 0:
                slope_pump = (pump.head_at_flow(q1) - pump.head_at_flow(q0)) / (q1 - q0)
                Q = q0 + d0 / (slope_sys - slope_pump)
            else:
                continue
            op = _build_operating_point(pump, Q, a.head_ft + slope_sys * (Q - qa))
            logger.debug("crossing in [%.3f, %.3f] gpm: Q*=%.4f, H=%.4f ft", qa, qb, Q, op.head_ft)
            found.append(op)
            if first_only:
                return found

    # 마지막 샘플에서 정확히 만나는 경우
    last = system_points[-1]
    if pump.head_at_flow(last.flow_gpm) - last.head_ft == 0.0:
        found.append(_build_operating_point(pump, last.flow_gpm, last.head_ft))
    return found


def find_all_operating_points(pump: PumpCurve, system_points) -> List[OperatingPoint]:
    """스윕 범위 안의 모든 교점 (유량 오름차순)"""
    _check_system_points(system_points)
    return _scan_crossings(pump, system_points, first_only=False)


def find_operating_point(
    pump: PumpCurve, system_points
) -> Union[OperatingPoint, NoOperatingPoint]:
    """
    ! 펌프 곡선과 시스템 곡선의 교점 (운전점)

    * 교점이 여러 개면 유량 오름차순으로 첫 번째 교점 반환 (기본 tie-break)
    * 교점이 없으면 NoOperatingPoint 반환 (예외 아님)
    """
    _check_system_points(system_points)
    crossings = _scan_crossings(pump, system_points, first_only=True)
    if crossings:
        return crossings[0]

    margins = [pump.head_at_flow(p.flow_gpm) - p.head_ft for p in system_points]
    lo, hi = float(min(margins)), float(max(margins))
    if hi < 0:
        reason = "pump head is below the system head over the whole swept range"
    else:
        reason = "pump head stays above the system head; widen the swept flow range"
    logger.warning("no operating point for %s: %s", pump.name, reason)
    return NoOperatingPoint(reason=reason, min_margin_ft=lo, max_margin_ft=hi)


# ──────────────────────────────────────────────
# ? 효율 분석 / 운전비 계산
# ──────────────────────────────────────────────

def efficiency_analysis(pump: PumpCurve, op: OperatingPoint) -> dict:
    """! 운전점 효율을 최고 효율점(BEP)과 비교"""
    bep = pump.best_efficiency_point()
    ratio = op.efficiency / bep.efficiency if bep.efficiency > 0 else 0.0

    status = "poor"
    for threshold, label in EFFICIENCY_STATUS_LEVELS:
        if ratio > threshold:
            status = label
            break

    # BEP 효율로 같은 일을 할 때 대비 낭비 동력
    if op.efficiency > 0 and bep.efficiency > 0:
        ideal_hp = op.power_hp * op.efficiency / bep.efficiency
        waste_hp = op.power_hp - ideal_hp
    else:
        waste_hp = 0.0

    return {
        "current_efficiency": round(op.efficiency, 4),
        "peak_efficiency": round(bep.efficiency, 4),
        "bep_flow_gpm": round(bep.flow_gpm, 2),
        "efficiency_ratio": round(ratio, 4),
        "efficiency_status": status,
        "power_waste_hp": round(waste_hp, 3),
    }


def calculate_operating_cost(
    op: OperatingPoint,
    operating_hours_per_day: float = DEFAULT_OPERATING_HOURS_PER_DAY,
    electricity_rate_usd: float = DEFAULT_ELECTRICITY_RATE_USD,
) -> dict:
    """! 운전점 축동력 기준 일/월/연 전력량 및 전기요금"""
    power_kw = op.power_hp * HP_TO_KW
    daily_kwh = power_kw * operating_hours_per_day
    daily_cost = daily_kwh * electricity_rate_usd

    return {
        "power_kw": round(power_kw, 3),
        "daily_energy_kwh": round(daily_kwh, 2),
        "daily_cost_usd": round(daily_cost, 2),
        "monthly_cost_usd": round(daily_cost * 30, 2),
        "annual_cost_usd": round(daily_cost * 365, 2),
    }
