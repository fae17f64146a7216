# ! 펌프 배관 해석 — 단일 직렬 유로(flow path) 데이터 구조 및 시스템 곡선
# * 구간 마찰손실 + 이음쇠 부차손실 + 고저차 + 출구 속도수두 → 시스템 수두
# * 분기/루프 배관망은 다루지 않음 (구간 순서대로 하나의 유로)

import logging
from dataclasses import dataclass, field, replace, asdict
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from constants import MAX_VELOCITY_FPS
from hydraulics import (
    ValidationError, HeadLossModel, HazenWilliamsModel, DarcyWeisbachModel,
    FittingLossModel, get_loss_model, validate_geometry, resolve_material,
    resolve_fitting_k, velocity_from_flow, velocity_head, reynolds_number,
    kinematic_viscosity, flow_regime, head_to_psi,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════
#  PART 1: 공통 데이터 구조
# ══════════════════════════════════════════════

@dataclass(frozen=True)
class Fitting:
    """
    ! 배관 구간에 부착된 이음쇠

    * k_factor 지정 시 테이블 기본값 대신 사용
    * subtype 미지정 시 타입의 대표 서브타입 K 사용
    """
    fitting_type: str
    nominal_size_in: Optional[float] = None
    k_factor: Optional[float] = None
    subtype: Optional[str] = None
    quantity: int = 1

    def __post_init__(self):
        if not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValidationError(f"이음쇠 수량은 1 이상의 정수여야 합니다. (입력값: {self.quantity})")
        # 알 수 없는 타입/서브타입은 생성 시점에 실패
        resolve_fitting_k(self.fitting_type, self.subtype, self.k_factor)


@dataclass(frozen=True)
class PipeSegment:
    """
    ! 하나의 직관 구간

    diameter_in         : 내경 (in), > 0
    length_ft           : 길이 (ft), ≥ 0
    material            : 재질 선택자 (constants.MATERIALS)
    flow_gpm            : 유량 (gpm), ≥ 0
    elevation_change_ft : 이전 구간 대비 고저차 (ft, 상승 +)
    fittings            : 부착 이음쇠 목록
    """
    diameter_in: float
    length_ft: float
    material: str
    flow_gpm: float = 0.0
    elevation_change_ft: float = 0.0
    fittings: Tuple[Fitting, ...] = field(default_factory=tuple)
    label: str = ""

    def __post_init__(self):
        validate_geometry(self.diameter_in, self.length_ft, self.flow_gpm)
        resolve_material(self.material)
        object.__setattr__(self, "fittings", tuple(self.fittings))

    @property
    def velocity_fps(self) -> float:
        return velocity_from_flow(self.flow_gpm, self.diameter_in)


@dataclass(frozen=True)
class SystemPoint:
    """주어진 유량에서 계산된 시스템 곡선의 한 점"""
    flow_gpm: float
    head_ft: float
    velocity_fps: float
    pressure_psi: float
    static_head_ft: float = 0.0
    friction_head_ft: float = 0.0
    minor_head_ft: float = 0.0
    velocity_head_ft: float = 0.0
    loss_model: str = ""


# ══════════════════════════════════════════════
#  PART 2: 시스템 수두 계산
# ══════════════════════════════════════════════

def _as_model(model) -> HeadLossModel:
    if model is None:
        return HazenWilliamsModel()
    if isinstance(model, str):
        return get_loss_model(model)
    return model


def _check_path(segments: Sequence[PipeSegment]) -> None:
    if not segments:
        raise ValidationError("유로에 배관 구간이 하나 이상 있어야 합니다.")


def system_head(
    segments: Sequence[PipeSegment],
    model=None,
    fitting_model: FittingLossModel = None,
) -> SystemPoint:
    """
    ! 구간 순서대로 시스템 총 수두(ft) 계산

    H = Σ 고저차 + Σ 구간 마찰손실 + Σ 이음쇠 손실(구간 자체 유속 기준) + 출구 속도수두

    * 유량은 구간마다 명시된 값을 그대로 사용 (분기 유량 분배 없음)
    * model: HeadLossModel 인스턴스 또는 'hazen_williams' / 'darcy_weisbach'
    """
    _check_path(segments)
    model = _as_model(model)
    fitting_model = fitting_model or FittingLossModel()

    static = 0.0
    friction = 0.0
    minor = 0.0
    for seg in segments:
        V = seg.velocity_fps
        static += seg.elevation_change_ft
        friction += model.segment_loss(seg)
        minor += fitting_model.total_loss(seg.fittings, V)

    V_exit = segments[-1].velocity_fps
    exit_head = velocity_head(V_exit)
    total = static + friction + minor + exit_head

    return SystemPoint(
        flow_gpm=segments[0].flow_gpm,
        head_ft=total,
        velocity_fps=V_exit,
        pressure_psi=head_to_psi(total),
        static_head_ft=static,
        friction_head_ft=friction,
        minor_head_ft=minor,
        velocity_head_ft=exit_head,
        loss_model=model.name,
    )


def segments_at_flow(segments: Sequence[PipeSegment], Q_gpm: float) -> List[PipeSegment]:
    """
    유로 입구 유량을 Q_gpm으로 바꾼 구간 목록
    * 구간별 유량 비율은 유지, 기준 유량이 0이면 모든 구간을 Q_gpm으로 설정
    """
    ref = segments[0].flow_gpm
    if ref > 0:
        return [replace(seg, flow_gpm=seg.flow_gpm * Q_gpm / ref) for seg in segments]
    return [replace(seg, flow_gpm=Q_gpm) for seg in segments]


def build_system_curve(
    segments: Sequence[PipeSegment],
    flows,
    model=None,
    fitting_model: FittingLossModel = None,
) -> List[SystemPoint]:
    """
    ! 유량 스윕 → 시스템 곡선 (SystemPoint 오름차순 리스트)

    * flows 는 엄격히 증가해야 함
    * 하나의 곡선은 하나의 손실 모델로만 계산
    """
    _check_path(segments)
    flows = np.asarray(flows, dtype=float)
    if flows.ndim != 1 or len(flows) < 2:
        raise ValidationError("스윕 유량은 2개 이상의 1차원 배열이어야 합니다.")
    if not np.all(np.isfinite(flows)):
        raise ValidationError("스윕 유량에 유한하지 않은 값(NaN/inf)이 있습니다.")
    if not np.all(np.diff(flows) > 0):
        raise ValidationError("스윕 유량은 엄격히 증가해야 합니다.")

    model = _as_model(model)
    fitting_model = fitting_model or FittingLossModel()
    curve = [
        system_head(segments_at_flow(segments, float(q)), model, fitting_model)
        for q in flows
    ]
    logger.debug("system curve: %d points, %s, %.1f-%.1f gpm",
                 len(curve), model.name, flows[0], flows[-1])
    return curve


# ══════════════════════════════════════════════
#  PART 3: 구간 상세 / 설계 점검
# ══════════════════════════════════════════════

def segment_details(
    segments: Sequence[PipeSegment],
    model=None,
    fitting_model: FittingLossModel = None,
) -> List[dict]:
    """구간별 유속, Re, 마찰/부차 손실 상세"""
    _check_path(segments)
    model = _as_model(model)
    fitting_model = fitting_model or FittingLossModel()
    if isinstance(model, DarcyWeisbachModel):
        nu = model.nu
    else:
        nu = kinematic_viscosity()

    details = []
    cumulative = 0.0
    for i, seg in enumerate(segments):
        V = seg.velocity_fps
        Re = reynolds_number(V, seg.diameter_in, nu)
        h_f = model.segment_loss(seg)
        h_m = fitting_model.total_loss(seg.fittings, V)
        seg_total = seg.elevation_change_ft + h_f + h_m
        cumulative += seg_total
        details.append({
            "segment": i + 1,
            "label": seg.label,
            "material": seg.material,
            "diameter_in": seg.diameter_in,
            "length_ft": seg.length_ft,
            "flow_gpm": round(seg.flow_gpm, 3),
            "velocity_fps": round(V, 4),
            "reynolds": round(Re, 0),
            "regime": flow_regime(Re),
            "friction_loss_ft": round(h_f, 6),
            "fitting_count": sum(ft.quantity for ft in seg.fittings),
            "fitting_loss_ft": round(h_m, 6),
            "elevation_change_ft": seg.elevation_change_ft,
            "total_seg_head_ft": round(seg_total, 6),
            "cumulative_head_ft": round(cumulative, 6),
        })
    return details


def check_velocity_limits(
    segments: Sequence[PipeSegment],
    max_velocity_fps: float = MAX_VELOCITY_FPS,
) -> List[dict]:
    """권장 최대 유속 초과 구간 목록"""
    violations = []
    for i, seg in enumerate(segments):
        V = seg.velocity_fps
        if V > max_velocity_fps:
            violations.append({
                "segment": i + 1,
                "label": seg.label,
                "velocity_fps": round(V, 3),
                "limit_fps": max_velocity_fps,
            })
    return violations


def system_curve_frame(points: Sequence[SystemPoint], pump=None) -> pd.DataFrame:
    """시스템 곡선 → DataFrame (pump 지정 시 pump_head_ft 열 추가)"""
    df = pd.DataFrame([asdict(p) for p in points])
    if pump is not None and not df.empty:
        df["pump_head_ft"] = [pump.head_at_flow(q) for q in df["flow_gpm"]]
        df["margin_ft"] = df["pump_head_ft"] - df["head_ft"]
    return df
