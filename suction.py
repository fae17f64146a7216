# ! 펌프 배관 해석 — 흡입측 NPSH 및 캐비테이션 점검
# * NPSHa = 대기압 수두 − 증기압 수두 + 흡입 수두 − 흡입 손실
# * 캐비테이션 위험은 예외가 아닌 결과 필드로 보고

import logging
from dataclasses import dataclass
from typing import Union

import numpy as np

from constants import (
    FT_PER_PSI, STANDARD_ATMOSPHERE_PSIA, WATER_VAPOR_PRESSURE_BY_TEMP_F,
    DEFAULT_TEMPERATURE_F, DEFAULT_SUCTION_HEAD_FT, DEFAULT_SUCTION_LOSSES_FT,
    MIN_NPSH_MARGIN_FT,
)
from hydraulics import ValidationError
from pump import PumpCurve, OperatingPoint, NoOperatingPoint

logger = logging.getLogger(__name__)

_VP_TEMPS = np.array(sorted(WATER_VAPOR_PRESSURE_BY_TEMP_F), dtype=float)
_VP_VALUES = np.array([WATER_VAPOR_PRESSURE_BY_TEMP_F[t] for t in _VP_TEMPS], dtype=float)


@dataclass(frozen=True)
class SuctionResult:
    flow_gpm: float
    npsh_available_ft: float
    npsh_required_ft: float
    margin_ft: float
    cavitation_risk: bool
    adequate_margin: bool


def atmospheric_pressure_psia(altitude_ft: float = 0.0) -> float:
    """표준 대기 모델: p = 14.7 × (1 − 6.8754e-6 × h)^5.2559"""
    return STANDARD_ATMOSPHERE_PSIA * (1.0 - 6.8754e-6 * altitude_ft) ** 5.2559


def vapor_pressure_psia(temperature_f: float = DEFAULT_TEMPERATURE_F) -> float:
    """물의 포화 증기압 (psia), 테이블 선형 보간"""
    return float(np.interp(temperature_f, _VP_TEMPS, _VP_VALUES))


def npsh_available(
    atmospheric_pressure_psia: float,
    vapor_pressure_psia: float,
    suction_head_ft: float,
    suction_losses_ft: float,
) -> float:
    """
    NPSHa = P_atm × 2.31 − P_vap × 2.31 + 흡입 수두 − 흡입 손실   (ft)

    suction_head_ft   : 수면이 펌프 중심보다 높으면 +, 낮으면 (lift) −
    suction_losses_ft : 흡입 배관 마찰/이음쇠 손실
    """
    return (
        atmospheric_pressure_psia * FT_PER_PSI
        - vapor_pressure_psia * FT_PER_PSI
        + suction_head_ft
        - suction_losses_ft
    )


def analyze_suction(
    pump: PumpCurve,
    operating_point: Union[OperatingPoint, float],
    atmospheric_pressure: float = STANDARD_ATMOSPHERE_PSIA,
    vapor_pressure: float = None,
    suction_head_ft: float = DEFAULT_SUCTION_HEAD_FT,
    suction_losses_ft: float = DEFAULT_SUCTION_LOSSES_FT,
    temperature_f: float = DEFAULT_TEMPERATURE_F,
    min_margin_ft: float = MIN_NPSH_MARGIN_FT,
) -> SuctionResult:
    """
    ! 운전점 유량에서 NPSHa 와 NPSHr 비교

    * operating_point: OperatingPoint 또는 유량(gpm)
    * vapor_pressure 미지정 시 temperature_f 로 증기압 조회
    * cavitation_risk = NPSHa < NPSHr, adequate_margin = 여유 ≥ min_margin_ft
    """
    if isinstance(operating_point, NoOperatingPoint):
        raise ValidationError("운전점이 없으므로 NPSH를 평가할 수 없습니다.")
    if isinstance(operating_point, OperatingPoint):
        Q = operating_point.flow_gpm
    else:
        Q = float(operating_point)

    if vapor_pressure is None:
        vapor_pressure = vapor_pressure_psia(temperature_f)

    npsha = npsh_available(atmospheric_pressure, vapor_pressure, suction_head_ft, suction_losses_ft)
    npshr = pump.interpolate(Q).npsh_required_ft
    margin = npsha - npshr
    risk = npsha < npshr

    if risk:
        logger.warning("cavitation risk at %.1f gpm: NPSHa=%.2f ft < NPSHr=%.2f ft", Q, npsha, npshr)

    return SuctionResult(
        flow_gpm=Q,
        npsh_available_ft=npsha,
        npsh_required_ft=npshr,
        margin_ft=margin,
        cavitation_risk=risk,
        adequate_margin=margin >= min_margin_ft,
    )
