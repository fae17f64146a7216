# ! 펌프 배관 해석 — 밸브 폐쇄 수격(Water Hammer) 서지 압력 추정
# * Joukowsky 순간 스파이크 근사 (시간영역 MOC 해석 아님)

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from constants import (
    WATER_BULK_MODULUS_PSI, WATER_DENSITY_SLUG_FT3, PSI_TO_PSF, FT_PER_PSI,
    SURGE_RISK_MODERATE_PSI, SURGE_RISK_HIGH_PSI,
)
from hydraulics import ValidationError, InvalidGeometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SurgeResult:
    wave_speed_fps: float
    critical_time_s: float
    closure_time_s: float
    rapid_closure: bool
    surge_psi: float
    surge_head_ft: float
    risk_level: str
    max_pressure_psi: Optional[float] = None


def wave_speed(
    bulk_modulus_psi: float = WATER_BULK_MODULUS_PSI,
    density_slug_ft3: float = WATER_DENSITY_SLUG_FT3,
) -> float:
    """a = √(K / ρ)  (ft/s), K 는 psi → lbf/ft² 환산"""
    return math.sqrt(bulk_modulus_psi * PSI_TO_PSF / density_slug_ft3)


def critical_closure_time(length_ft: float, a_fps: float) -> float:
    """tc = 2L / a  (s) — 압력파 왕복 시간"""
    return 2.0 * length_ft / a_fps


def surge_risk_level(surge_psi: float) -> str:
    if surge_psi >= SURGE_RISK_HIGH_PSI:
        return "high"
    if surge_psi >= SURGE_RISK_MODERATE_PSI:
        return "moderate"
    return "low"


def water_hammer(
    velocity_fps: float,
    length_ft: float,
    closure_time_s: float,
    bulk_modulus_psi: float = WATER_BULK_MODULUS_PSI,
    density_slug_ft3: float = WATER_DENSITY_SLUG_FT3,
    pipe_elastic_modulus_psi: float = None,
    operating_pressure_psi: float = None,
) -> SurgeResult:
    """
    ! 밸브 폐쇄 시 서지 압력 (psi)

    * 급폐쇄 (t < tc): ΔP = ρ × a × V / 144
    * 완폐쇄 (t ≥ tc): ΔP = ρ × a × V × (tc / t) / 144

    pipe_elastic_modulus_psi 는 입력으로만 받고 파속 계산에는 쓰지 않음
    (관벽 탄성을 반영한 Korteweg 파속은 적용 범위 밖, 알려진 단순화)
    """
    if length_ft is None or not (math.isfinite(length_ft) and length_ft > 0):
        raise InvalidGeometry(f"배관 길이는 양수여야 합니다. (입력값: {length_ft} ft)")
    if closure_time_s is None or not closure_time_s >= 0:
        raise ValidationError(f"폐쇄 시간은 0 이상이어야 합니다. (입력값: {closure_time_s} s)")
    if velocity_fps is None or not (math.isfinite(velocity_fps) and velocity_fps >= 0):
        raise ValidationError(f"유속은 0 이상이어야 합니다. (입력값: {velocity_fps} ft/s)")
    if not (bulk_modulus_psi > 0 and density_slug_ft3 > 0):
        raise ValidationError("체적탄성계수와 밀도는 양수여야 합니다.")

    a = wave_speed(bulk_modulus_psi, density_slug_ft3)
    tc = critical_closure_time(length_ft, a)
    joukowsky = density_slug_ft3 * a * velocity_fps / PSI_TO_PSF

    rapid = closure_time_s < tc
    if rapid:
        surge = joukowsky
    else:
        surge = joukowsky * (tc / closure_time_s)

    max_p = None if operating_pressure_psi is None else operating_pressure_psi + surge
    logger.debug("surge: a=%.1f ft/s, tc=%.3f s, t=%.3f s, dP=%.2f psi", a, tc, closure_time_s, surge)

    return SurgeResult(
        wave_speed_fps=a,
        critical_time_s=tc,
        closure_time_s=closure_time_s,
        rapid_closure=rapid,
        surge_psi=surge,
        surge_head_ft=surge * FT_PER_PSI,
        risk_level=surge_risk_level(surge),
        max_pressure_psi=max_p,
    )


def path_surge(segments: Sequence, closure_time_s: float, **kwargs) -> SurgeResult:
    """
    유로 끝단 밸브 폐쇄 서지
    * 길이 = 전체 구간 길이 합, 유속 = 마지막 구간 유속
    """
    if not segments:
        raise ValidationError("유로에 배관 구간이 하나 이상 있어야 합니다.")
    length = sum(seg.length_ft for seg in segments)
    return water_hammer(segments[-1].velocity_fps, length, closure_time_s, **kwargs)
