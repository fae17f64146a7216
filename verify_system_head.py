"""
FlowPathSim 검증 스크립트: 시스템 수두 시뮬레이션 vs Hazen-Williams 수계산 직접 비교

목적: 엔진의 system_head 가 Hazen-Williams + K-factor 이론 해석값과
      구간별로 일치하는지 검증합니다.

조건: PVC 4 in × 100 ft 구간 3개, 50 gpm, 90° 엘보 2개, 고저차 0
      + Darcy-Weisbach 모델 동일 조건 교차 확인
"""

import math
import sys, os
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# ════════════════════════════════════════════
#  Part 1: 이론 수계산 (순수 수학, 엔진 코드 미사용)
# ════════════════════════════════════════════

# --- 상수 ---
G = 32.174                       # ft/s²
GPM_TO_CFS = 231.0 / 1728.0 / 60.0
C_PVC = 150.0
K_ELBOW = 1.5                    # 90° 나사식 엘보
NU_68F = 1.083e-5                # ft²/s
EPS_PVC = 5.0e-6                 # ft

# --- 조건 ---
N_SEGMENTS = 3
LENGTH_FT = 100.0
D_IN = 4.0
FLOW_GPM = 50.0
N_ELBOWS = 2


def calc_velocity(Q, d_in):
    A = math.pi * (d_in / 12.0) ** 2 / 4.0
    return Q * GPM_TO_CFS / A


def calc_hw_loss(Q, L, d_in, C):
    return 10.44 * Q ** 1.852 * L / (C ** 1.852 * d_in ** 4.8655)


def calc_friction(Re, D_ft):
    if Re < 2000:
        return 64.0 / Re
    return 0.25 / math.log10(EPS_PVC / D_ft / 3.7 + 5.74 / Re ** 0.9) ** 2


def run_hand_calc():
    """순수 수계산으로 총 수두 산출"""
    V = calc_velocity(FLOW_GPM, D_IN)
    vh = V ** 2 / (2.0 * G)
    h_seg = calc_hw_loss(FLOW_GPM, LENGTH_FT, D_IN, C_PVC)
    h_fit = N_ELBOWS * K_ELBOW * vh

    D_ft = D_IN / 12.0
    Re = V * D_ft / NU_68F
    f = calc_friction(Re, D_ft)
    h_seg_dw = f * (LENGTH_FT / D_ft) * vh

    print("=" * 70)
    print("  PART 1: 이론 수계산 (PVC 4in, 3 x 100 ft, 50 gpm)")
    print("=" * 70)
    print(f"  유속 V = {V:.4f} ft/s | 속도수두 = {vh:.6f} ft")
    print(f"  Re = {Re:.0f} | f = {f:.6f}")
    print(f"  HW 구간 손실 = {h_seg:.6f} ft  x {N_SEGMENTS}")
    print(f"  DW 구간 손실 = {h_seg_dw:.6f} ft  x {N_SEGMENTS}")
    print(f"  엘보 손실     = {h_fit:.6f} ft  ({N_ELBOWS} x K={K_ELBOW})")

    total_hw = N_SEGMENTS * h_seg + h_fit + vh
    total_dw = N_SEGMENTS * h_seg_dw + h_fit + vh
    print(f"  >> HW 총 수두: {total_hw:.6f} ft")
    print(f"  >> DW 총 수두: {total_dw:.6f} ft")
    return total_hw, total_dw


# ════════════════════════════════════════════
#  Part 2: 엔진 계산
# ════════════════════════════════════════════

def run_engine():
    from pipe_network import PipeSegment, Fitting, system_head, segment_details
    from hydraulics import HazenWilliamsModel, DarcyWeisbachModel

    elbow = Fitting("elbow", nominal_size_in=D_IN)
    segments = [
        PipeSegment(D_IN, LENGTH_FT, "pvc", FLOW_GPM, fittings=[elbow], label="S1"),
        PipeSegment(D_IN, LENGTH_FT, "pvc", FLOW_GPM, fittings=[elbow], label="S2"),
        PipeSegment(D_IN, LENGTH_FT, "pvc", FLOW_GPM, label="S3"),
    ]
    hw = system_head(segments, HazenWilliamsModel())
    dw = system_head(segments, DarcyWeisbachModel())

    print("=" * 70)
    print("  PART 2: 엔진 계산 결과")
    print("=" * 70)
    print(f"  {'구간':>4} {'유속':>10} {'Re':>10} {'마찰손실':>12} {'이음쇠손실':>12} {'누적수두':>12}")
    print("  " + "-" * 66)
    for s in segment_details(segments, HazenWilliamsModel()):
        print(f"  {s['segment']:>4} {s['velocity_fps']:>10.4f} {s['reynolds']:>10.0f} "
              f"{s['friction_loss_ft']:>12.6f} {s['fitting_loss_ft']:>12.6f} "
              f"{s['cumulative_head_ft']:>12.6f}")
    print(f"  >> HW 총 수두: {hw.head_ft:.6f} ft ({hw.pressure_psi:.4f} psi)")
    print(f"  >> DW 총 수두: {dw.head_ft:.6f} ft ({dw.pressure_psi:.4f} psi)")
    return hw.head_ft, dw.head_ft


# ════════════════════════════════════════════
#  Part 3: 비교 검증
# ════════════════════════════════════════════

if __name__ == "__main__":
    print()
    hand_hw, hand_dw = run_hand_calc()
    print()
    sim_hw, sim_dw = run_engine()
    print()

    print("=" * 70)
    print("  PART 3: 비교 검증 결과")
    print("=" * 70)
    all_match = True
    for name, hand, sim in (("Hazen-Williams", hand_hw, sim_hw), ("Darcy-Weisbach", hand_dw, sim_dw)):
        rel = abs(hand - sim) / hand
        match = rel < 0.01
        all_match = all_match and match
        print(f"  {name:<16} 이론={hand:.6f} ft  엔진={sim:.6f} ft  "
              f"상대오차={rel*100:.6f} %  {'OK' if match else 'FAIL'}")
    print()

    if all_match:
        print("  ============================================")
        print("  RESULT: PASS — 이론 해석값과 1% 이내 일치")
        print("  ============================================")
    else:
        print("  ============================================")
        print("  RESULT: FAIL — 불일치 발견")
        print("  ============================================")
    print()
