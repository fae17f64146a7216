# ! 펌프 배관 해석 — 전역 상수 및 기준 테이블 (US customary units)
# * 모든 모듈이 이 파일을 참조합니다.
# * Units: length ft, diameter in, flow gpm, head ft, pressure psi, temperature °F

from types import MappingProxyType


def _frozen(table):
    """중첩 dict를 읽기 전용 매핑으로 감쌉니다 (런타임 중 변경 불가)."""
    if isinstance(table, dict):
        return MappingProxyType({k: _frozen(v) for k, v in table.items()})
    return table


# ──────────────────────────────────────────────
# ? 물리 상수 / 단위 환산
# ──────────────────────────────────────────────
G_FT = 32.174                 # 중력가속도 (ft/s²)
FT_PER_PSI = 2.31             # 수두 환산 (ft of water per psi)
PSI_TO_PSF = 144.0            # psi → lbf/ft²
GPM_TO_CFS = 231.0 / 1728.0 / 60.0   # US gpm → ft³/s ≈ 0.002228
IN_PER_FT = 12.0
HP_TO_KW = 0.7457

# ──────────────────────────────────────────────
# ? 유체 물성치 (물)
# ──────────────────────────────────────────────
WATER_DENSITY_SLUG_FT3 = 1.94        # 밀도 (slug/ft³), 60~70°F
WATER_BULK_MODULUS_PSI = 300000.0    # 체적탄성계수 (psi)
DEFAULT_TEMPERATURE_F = 68.0         # 표준 실온

# * 운동점성계수 ν (ft²/s) — 온도(°F) 기준 룩업, 사이 값은 선형 보간
WATER_VISCOSITY_BY_TEMP_F = _frozen({
    40.0: 1.664e-5,
    50.0: 1.410e-5,
    60.0: 1.217e-5,
    68.0: 1.083e-5,
    70.0: 1.059e-5,
    80.0: 0.930e-5,
    100.0: 0.739e-5,
    120.0: 0.609e-5,
    140.0: 0.514e-5,
    160.0: 0.442e-5,
    180.0: 0.385e-5,
    200.0: 0.341e-5,
})

# * 포화 증기압 (psia) — 온도(°F) 기준 룩업
WATER_VAPOR_PRESSURE_BY_TEMP_F = _frozen({
    40.0: 0.122,
    50.0: 0.178,
    60.0: 0.256,
    68.0: 0.339,
    70.0: 0.363,
    80.0: 0.507,
    100.0: 0.949,
    120.0: 1.695,
    140.0: 2.889,
    160.0: 4.741,
    180.0: 7.511,
    200.0: 11.526,
    212.0: 14.696,
})

# ──────────────────────────────────────────────
# ? 배관 재질 테이블
#   key = 재질 선택자
#   value = {"hw_c": Hazen-Williams C, "roughness_ft": 절대 조도 ε (ft)}
# ──────────────────────────────────────────────
MATERIALS = _frozen({
    "pvc":              {"hw_c": 150.0, "roughness_ft": 5.0e-6},
    "cpvc":             {"hw_c": 150.0, "roughness_ft": 5.0e-6},
    "hdpe":             {"hw_c": 150.0, "roughness_ft": 5.0e-6},
    "copper":           {"hw_c": 140.0, "roughness_ft": 5.0e-6},
    "steel":            {"hw_c": 120.0, "roughness_ft": 1.5e-4},
    "galvanized_steel": {"hw_c": 120.0, "roughness_ft": 5.0e-4},
    "ductile_iron":     {"hw_c": 130.0, "roughness_ft": 4.0e-4},
    "cast_iron":        {"hw_c": 100.0, "roughness_ft": 8.5e-4},
})

# ──────────────────────────────────────────────
# ? 관 내경 테이블 (in) — 재질별 호칭 구경 → 내경
# ──────────────────────────────────────────────
PIPE_INNER_DIAMETERS_IN = _frozen({
    "pvc":   {2.0: 1.939, 3.0: 2.864, 4.0: 3.826, 6.0: 5.761, 8.0: 7.625},
    "hdpe":  {2.0: 1.860, 3.0: 2.760, 4.0: 3.640, 6.0: 5.500, 8.0: 7.280},
    "steel": {2.0: 2.067, 3.0: 3.068, 4.0: 4.026, 6.0: 6.065, 8.0: 7.981},
})


def get_inner_diameter_in(material: str, nominal_size_in: float) -> float:
    """재질과 호칭 구경(in)으로부터 내경(in)을 반환합니다."""
    return PIPE_INNER_DIAMETERS_IN[material][float(nominal_size_in)]


# ──────────────────────────────────────────────
# ? 이음쇠 K-factor 테이블
#   타입마다 대표 서브타입 하나를 기본값으로 사용 (세분류가 없을 때)
# ──────────────────────────────────────────────
FITTING_K_FACTORS = _frozen({
    "elbow": {
        "default": "90_threaded",
        "subtypes": {"90_threaded": 1.5, "90_long_radius": 0.7, "90_flanged": 0.3},
    },
    "elbow_45": {
        "default": "45_threaded",
        "subtypes": {"45_threaded": 0.4, "45_flanged": 0.2},
    },
    "tee": {
        "default": "branch_threaded",
        "subtypes": {
            "branch_threaded": 2.0, "line_threaded": 0.9,
            "branch_flanged": 1.0, "line_flanged": 0.2,
        },
    },
    "valve": {
        "default": "gate_open",
        "subtypes": {
            "gate_open": 0.15, "ball_open": 0.05,
            "butterfly_open": 0.8, "globe_open": 10.0,
        },
    },
    "check_valve": {
        "default": "swing",
        "subtypes": {"swing": 2.0, "lift": 12.0},
    },
    "reducer": {
        "default": "sudden",
        "subtypes": {"sudden": 0.5, "gradual": 0.15},
    },
    "coupling": {
        "default": "threaded",
        "subtypes": {"threaded": 0.08, "union": 0.08},
    },
})

# ──────────────────────────────────────────────
# ? Hazen-Williams 파라미터
#   h = K × Q^1.852 × L / (C^1.852 × d^4.8655)   (Q gpm, L ft, d in)
# ──────────────────────────────────────────────
HW_FLOW_EXPONENT = 1.852
HW_DIAMETER_EXPONENT = 4.8655
HW_UNIT_CONSTANTS = _frozen({
    "head_ft": 10.44,    # 손실을 ft 수두로
    "psi": 4.52,         # 손실을 psi로
})

# ──────────────────────────────────────────────
# ? Darcy-Weisbach / 마찰계수 파라미터
# ──────────────────────────────────────────────
LAMINAR_RE_LIMIT = 2000.0
TURBULENT_RE_LIMIT = 4000.0
COLEBROOK_MAX_ITERATIONS = 50
COLEBROOK_TOLERANCE = 1e-8

# ──────────────────────────────────────────────
# ? 설계 기준값
# ──────────────────────────────────────────────
MAX_VELOCITY_FPS = 7.0               # 권장 최대 유속 (ft/s)
MIN_NPSH_MARGIN_FT = 3.0             # NPSHa - NPSHr 권장 여유 (ft)
STANDARD_ATMOSPHERE_PSIA = 14.7      # 해수면 대기압
DEFAULT_SUCTION_HEAD_FT = 5.0
DEFAULT_SUCTION_LOSSES_FT = 2.0

# * 수격 위험도 구분 (psi)
SURGE_RISK_MODERATE_PSI = 50.0
SURGE_RISK_HIGH_PSI = 150.0

# ──────────────────────────────────────────────
# ? 시스템 곡선 스윕 기본값
# ──────────────────────────────────────────────
DEFAULT_SWEEP_POINTS = 61
SWEEP_FLOW_FACTOR = 1.2              # 펌프 최대 유량 대비 스윕 상한

# ──────────────────────────────────────────────
# ? 효율 / 운전비 분석 기본값
# ──────────────────────────────────────────────
EFFICIENCY_STATUS_LEVELS = (
    (0.9, "excellent"),
    (0.8, "good"),
    (0.7, "fair"),
)
DEFAULT_OPERATING_HOURS_PER_DAY = 8.0
DEFAULT_ELECTRICITY_RATE_USD = 0.12  # USD/kWh

# ──────────────────────────────────────────────
# ? 펌프 성능 데이터베이스
#   points: (유량 gpm, 양정 ft, 효율, NPSHr ft, 축동력 hp)
# ──────────────────────────────────────────────
PUMP_DATABASE = _frozen({
    "Model A - End Suction 2x3": {
        "description": "General purpose end-suction",
        "points": (
            (0.0,   120.0, 0.00,  4.0, 2.00),
            (50.0,  118.0, 0.45,  4.5, 3.31),
            (100.0, 112.0, 0.65,  6.0, 4.35),
            (150.0, 100.0, 0.74,  8.5, 5.12),
            (200.0,  82.0, 0.72, 12.0, 5.75),
            (250.0,  58.0, 0.62, 17.0, 5.91),
        ),
    },
    "Model B - Close Coupled 1.5x2": {
        "description": "Small close-coupled",
        "points": (
            (0.0,   90.0, 0.00,  3.0, 1.00),
            (25.0,  88.0, 0.40,  3.5, 1.39),
            (50.0,  83.0, 0.58,  4.5, 1.81),
            (75.0,  74.0, 0.66,  6.0, 2.12),
            (100.0, 61.0, 0.63,  8.0, 2.45),
            (125.0, 44.0, 0.52, 11.0, 2.67),
        ),
    },
    "Model C - Vertical Multistage": {
        "description": "High head vertical multistage",
        "points": (
            (0.0,  260.0, 0.00,  5.0, 1.80),
            (20.0, 255.0, 0.48,  5.5, 2.68),
            (40.0, 240.0, 0.64,  6.5, 3.79),
            (60.0, 212.0, 0.70,  8.5, 4.59),
            (80.0, 170.0, 0.66, 11.5, 5.20),
        ),
    },
})
