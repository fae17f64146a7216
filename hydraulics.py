# ! 펌프 배관 해석 — 수리계산 엔진
# * Hazen-Williams / Darcy-Weisbach 주손실, Swamee-Jain · Colebrook-White 마찰계수, K-factor 부차손실
# * Units: Q gpm, d in, L ft, V ft/s, head ft

import logging
import math
from abc import ABC, abstractmethod

import numpy as np

from constants import (
    G_FT, FT_PER_PSI, GPM_TO_CFS, IN_PER_FT,
    MATERIALS, FITTING_K_FACTORS, WATER_VISCOSITY_BY_TEMP_F,
    DEFAULT_TEMPERATURE_F, HW_FLOW_EXPONENT, HW_DIAMETER_EXPONENT,
    HW_UNIT_CONSTANTS, LAMINAR_RE_LIMIT, TURBULENT_RE_LIMIT,
    COLEBROOK_MAX_ITERATIONS, COLEBROOK_TOLERANCE,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════
#  PART 1: 예외 정의
# ══════════════════════════════════════════════

class ValidationError(Exception):
    """사용자 입력 검증 실패 시 발생하는 예외"""
    pass


class InvalidGeometry(ValidationError):
    """관경 ≤ 0, 길이 < 0 등 물리적으로 불가능한 형상"""
    pass


class UnknownMaterial(ValidationError):
    """재질 테이블에 없는 재질 선택자"""
    pass


class UnknownFitting(ValidationError):
    """K-factor 테이블에 없는 이음쇠 타입 (명시적 K 미지정)"""
    pass


class NumericalNonConvergence(RuntimeError):
    """반복 마찰계수 계산이 최대 반복 횟수 내에 수렴하지 않음"""
    pass


# ══════════════════════════════════════════════
#  PART 2: 입력 검증 / 테이블 조회
# ══════════════════════════════════════════════

def normalize_key(name: str) -> str:
    """'Galvanized Steel' → 'galvanized_steel'"""
    return str(name).strip().lower().replace(" ", "_").replace("-", "_")


def resolve_material(material: str) -> dict:
    """
    재질 선택자 → {"hw_c", "roughness_ft"}
    없으면 UnknownMaterial
    """
    key = normalize_key(material)
    if key not in MATERIALS:
        raise UnknownMaterial(
            f"알 수 없는 배관 재질입니다: {material!r} (지원: {', '.join(MATERIALS)})"
        )
    return MATERIALS[key]


def validate_geometry(diameter_in: float, length_ft: float, flow_gpm: float = 0.0) -> None:
    """
    ! 배관 구간 형상/유량 검증 — 계산 전에 즉시 실패

    * 관경 > 0, 길이 ≥ 0, 유량 ≥ 0
    """
    if diameter_in is None or not (math.isfinite(diameter_in) and diameter_in > 0):
        raise InvalidGeometry(f"관 내경은 양수여야 합니다. (입력값: {diameter_in} in)")
    if length_ft is None or not (math.isfinite(length_ft) and length_ft >= 0):
        raise InvalidGeometry(f"배관 길이는 0 이상이어야 합니다. (입력값: {length_ft} ft)")
    if flow_gpm is None or not (math.isfinite(flow_gpm) and flow_gpm >= 0):
        raise InvalidGeometry(f"유량은 0 이상이어야 합니다. (입력값: {flow_gpm} gpm)")


# ──────────────────────────────────────────────
# ? 운동점성계수 (온도 룩업)
# ──────────────────────────────────────────────
_VISC_TEMPS = np.array(sorted(WATER_VISCOSITY_BY_TEMP_F), dtype=float)
_VISC_VALUES = np.array([WATER_VISCOSITY_BY_TEMP_F[t] for t in _VISC_TEMPS], dtype=float)


def kinematic_viscosity(temperature_f: float = DEFAULT_TEMPERATURE_F) -> float:
    """
    물의 운동점성계수 ν (ft²/s)
    * 테이블 사이 값은 선형 보간, 범위 밖은 양 끝 값으로 고정
    """
    return float(np.interp(temperature_f, _VISC_TEMPS, _VISC_VALUES))


# ══════════════════════════════════════════════
#  PART 3: 기본 수리 공식
# ══════════════════════════════════════════════

def velocity_from_flow(Q_gpm: float, d_in: float) -> float:
    """
    원형 배관 내 유속 계산
    Q_gpm : 유량 (gpm)
    d_in  : 내경 (in)
    반환  : 유속 (ft/s)
    """
    D_ft = d_in / IN_PER_FT
    A = math.pi * (D_ft / 2.0) ** 2
    if A <= 0:
        return 0.0
    return Q_gpm * GPM_TO_CFS / A


def velocity_head(V: float) -> float:
    """속도 수두 V² / 2g (ft)"""
    return V ** 2 / (2.0 * G_FT)


def reynolds_number(velocity: float, d_in: float, nu: float = None) -> float:
    """
    Re = V × D / ν
    velocity : 유속 (ft/s)
    d_in     : 내경 (in)
    nu       : 운동점성계수 (ft²/s), None이면 기본 온도값
    """
    if nu is None:
        nu = kinematic_viscosity()
    if d_in <= 0 or nu <= 0:
        return 0.0
    return velocity * (d_in / IN_PER_FT) / nu


def flow_regime(Re: float) -> str:
    """
    유동 상태 분류
    * 2000 ≤ Re < 4000 은 'transitional'로 표기만 하며, 마찰계수는 난류식을 그대로 사용
    """
    if Re <= 0:
        return "stagnant"
    if Re < LAMINAR_RE_LIMIT:
        return "laminar"
    if Re < TURBULENT_RE_LIMIT:
        return "transitional"
    return "turbulent"


# ──────────────────────────────────────────────
# ? 마찰계수 (Friction Factor)
# ──────────────────────────────────────────────
def swamee_jain(Re: float, relative_roughness: float) -> float:
    """
    Colebrook-White 양해 근사식
    f = 0.25 / [log₁₀( (ε/D)/3.7 + 5.74/Re^0.9 )]²
    """
    log_arg = relative_roughness / 3.7 + 5.74 / Re ** 0.9
    return 0.25 / math.log10(log_arg) ** 2


def colebrook_friction_factor(
    Re: float,
    relative_roughness: float,
    max_iterations: int = COLEBROOK_MAX_ITERATIONS,
    tolerance: float = COLEBROOK_TOLERANCE,
) -> float:
    """
    ! Colebrook-White 방정식을 고정점 반복으로 풀어 Darcy 마찰계수를 구합니다.

    1/√f = -2.0 × log₁₀( (ε/D)/3.7 + 2.51/(Re×√f) )

    * Swamee-Jain 값으로 초기화 → 최대 max_iterations 회 반복
    * 수렴 실패 시 NumericalNonConvergence
    """
    A = relative_roughness / 3.7
    B = 2.51 / Re
    f = swamee_jain(Re, relative_roughness)

    for _ in range(max_iterations):
        rhs = -2.0 * math.log10(A + B / math.sqrt(f))
        f_new = 1.0 / rhs ** 2
        if abs(f_new - f) / f < tolerance:
            return f_new
        f = f_new

    logger.warning("Colebrook-White did not converge: Re=%.1f, eps/D=%.3g", Re, relative_roughness)
    raise NumericalNonConvergence(
        f"Colebrook-White 반복이 {max_iterations}회 내에 수렴하지 않았습니다. (Re={Re:.1f})"
    )


def friction_factor(
    Re: float,
    epsilon_ft: float,
    D_ft: float,
    method: str = "swamee_jain",
    max_iterations: int = COLEBROOK_MAX_ITERATIONS,
) -> float:
    """
    Darcy 마찰계수

    * 층류(Re < 2000): f = 64/Re
    * 그 외: Swamee-Jain (method="swamee_jain") 또는 Colebrook 반복 (method="colebrook")
    """
    if Re <= 0:
        return 0.0
    if Re < LAMINAR_RE_LIMIT:
        return 64.0 / Re

    rel_rough = epsilon_ft / D_ft
    if method == "colebrook":
        return colebrook_friction_factor(Re, rel_rough, max_iterations=max_iterations)
    return swamee_jain(Re, rel_rough)


# ──────────────────────────────────────────────
# ? 주손실 / 부차손실
# ──────────────────────────────────────────────
def major_loss(f: float, L: float, D_ft: float, V: float) -> float:
    """
    h_f = f × (L/D) × (V² / 2g)

    f    : Darcy 마찰계수
    L    : 배관 길이 (ft)
    D_ft : 내경 (ft)
    V    : 유속 (ft/s)
    반환 : 손실 수두 (ft)
    """
    if D_ft <= 0:
        return 0.0
    return f * (L / D_ft) * velocity_head(V)


def hazen_williams_loss(
    Q_gpm: float,
    L_ft: float,
    d_in: float,
    C: float,
    unit_constant: float = HW_UNIT_CONSTANTS["head_ft"],
) -> float:
    """
    h = K × Q^1.852 × L / (C^1.852 × d^4.8655)
    K = 10.44 → ft 수두, 4.52 → psi
    """
    if Q_gpm <= 0:
        return 0.0
    return (
        unit_constant * Q_gpm ** HW_FLOW_EXPONENT * L_ft
        / (C ** HW_FLOW_EXPONENT * d_in ** HW_DIAMETER_EXPONENT)
    )


def minor_loss(K: float, V: float) -> float:
    """
    h_m = K × (V² / 2g)

    K : 손실 계수 (무차원)
    V : 유속 (ft/s)
    반환 : 손실 수두 (ft)
    """
    return K * velocity_head(V)


# ──────────────────────────────────────────────
# ? 압력-수두 변환 유틸리티
# ──────────────────────────────────────────────
def head_to_psi(h_ft: float) -> float:
    """수두(ft) → 압력(psi): 2.31 ft/psi"""
    return h_ft / FT_PER_PSI


def psi_to_head(p_psi: float) -> float:
    """압력(psi) → 수두(ft)"""
    return p_psi * FT_PER_PSI


# ══════════════════════════════════════════════
#  PART 4: 주손실 모델 (교체 가능한 전략)
#  * 하나의 시스템 곡선 안에서 두 모델의 결과를 섞으면 안 됨
# ══════════════════════════════════════════════

class HeadLossModel(ABC):
    """배관 구간 1개의 마찰 손실 수두(ft)를 계산하는 전략 인터페이스"""

    name = "base"

    def check_segment(self, segment) -> dict:
        validate_geometry(segment.diameter_in, segment.length_ft, segment.flow_gpm)
        return resolve_material(segment.material)

    @abstractmethod
    def segment_loss(self, segment) -> float:
        ...

    def __repr__(self):
        return f"{type(self).__name__}()"


class HazenWilliamsModel(HeadLossModel):
    """
    ! 경험식 (Hazen-Williams)
    * 상온의 물에만 유효, 재질의 C 계수 사용
    """

    name = "hazen_williams"

    def __init__(self, unit_constant: float = HW_UNIT_CONSTANTS["head_ft"]):
        self.unit_constant = unit_constant

    def segment_loss(self, segment) -> float:
        mat = self.check_segment(segment)
        return hazen_williams_loss(
            segment.flow_gpm, segment.length_ft, segment.diameter_in,
            mat["hw_c"], self.unit_constant,
        )


class DarcyWeisbachModel(HeadLossModel):
    """
    ! 역학식 (Darcy-Weisbach)

    * ν(T) 룩업 → Re → f (층류 64/Re, 난류 Swamee-Jain 또는 Colebrook 반복)
    * 천이 구간 2000 ≤ Re < 4000 은 별도 모델 없이 난류식 적용
    """

    name = "darcy_weisbach"

    def __init__(
        self,
        temperature_f: float = DEFAULT_TEMPERATURE_F,
        friction_method: str = "swamee_jain",
        max_iterations: int = COLEBROOK_MAX_ITERATIONS,
    ):
        if friction_method not in ("swamee_jain", "colebrook"):
            raise ValidationError(f"지원하지 않는 마찰계수 방법입니다: {friction_method!r}")
        self.temperature_f = temperature_f
        self.friction_method = friction_method
        self.max_iterations = max_iterations
        self.nu = kinematic_viscosity(temperature_f)

    def flow_state(self, segment) -> dict:
        """구간의 유속, Re, 마찰계수, 유동 상태"""
        mat = self.check_segment(segment)
        V = velocity_from_flow(segment.flow_gpm, segment.diameter_in)
        Re = reynolds_number(V, segment.diameter_in, self.nu)
        f = friction_factor(
            Re, mat["roughness_ft"], segment.diameter_in / IN_PER_FT,
            method=self.friction_method, max_iterations=self.max_iterations,
        )
        return {"velocity_fps": V, "reynolds": Re, "friction_factor": f, "regime": flow_regime(Re)}

    def segment_loss(self, segment) -> float:
        state = self.flow_state(segment)
        return major_loss(
            state["friction_factor"], segment.length_ft,
            segment.diameter_in / IN_PER_FT, state["velocity_fps"],
        )

    def __repr__(self):
        return f"DarcyWeisbachModel(temperature_f={self.temperature_f}, friction_method={self.friction_method!r})"


LOSS_MODELS = {
    HazenWilliamsModel.name: HazenWilliamsModel,
    DarcyWeisbachModel.name: DarcyWeisbachModel,
}


def get_loss_model(name: str = "hazen_williams", **kwargs) -> HeadLossModel:
    """이름으로 손실 모델 생성 ('hazen_williams' | 'darcy_weisbach')"""
    key = normalize_key(name)
    if key not in LOSS_MODELS:
        raise ValidationError(f"알 수 없는 손실 모델입니다: {name!r}")
    return LOSS_MODELS[key](**kwargs)


# ══════════════════════════════════════════════
#  PART 5: 이음쇠 부차손실 (K-factor)
# ══════════════════════════════════════════════

def resolve_fitting_k(fitting_type: str, subtype: str = None, k_factor: float = None) -> float:
    """
    ! 이음쇠 K값 결정

    * 명시적 k_factor가 있으면 그대로 사용
    * 없으면 타입의 대표 서브타입 K (예: elbow → 90° 나사식 엘보)
      세분류 없이 타입당 기본값 하나만 쓰는 단순화
    """
    if k_factor is not None:
        if k_factor < 0:
            raise ValidationError(f"K값은 0 이상이어야 합니다. (입력값: {k_factor})")
        return float(k_factor)

    key = normalize_key(fitting_type)
    if key not in FITTING_K_FACTORS:
        raise UnknownFitting(
            f"알 수 없는 이음쇠 타입입니다: {fitting_type!r} (지원: {', '.join(FITTING_K_FACTORS)})"
        )
    entry = FITTING_K_FACTORS[key]
    sub = normalize_key(subtype) if subtype else entry["default"]
    if sub not in entry["subtypes"]:
        raise UnknownFitting(f"{key} 이음쇠에 {subtype!r} 서브타입이 없습니다.")
    return entry["subtypes"][sub]


class FittingLossModel:
    """이음쇠 부차손실: h = K × V²/2g × 수량"""

    def coefficient(self, fitting) -> float:
        return resolve_fitting_k(fitting.fitting_type, fitting.subtype, fitting.k_factor)

    def fitting_loss(self, fitting, velocity: float) -> float:
        return minor_loss(self.coefficient(fitting), velocity) * fitting.quantity

    def total_loss(self, fittings, velocity: float) -> float:
        return sum(self.fitting_loss(ft, velocity) for ft in fittings)
