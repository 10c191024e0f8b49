"""
Poseidon 스타일 해시 (네이티브 구현)
=====================================

회로가 사용하는 충돌 저항 해시 H(x_1, ..., x_k) → FR 의 회로 밖 구현.

**순열(permutation) 구조**:
  상태 폭 t = k + 1, 상태 = [0, x_1, ..., x_k]
  각 라운드:
    1. 라운드 상수 덧셈   s_i ← s_i + c_{r,i}
    2. S-box (x ↦ x⁵)    전체 라운드: 모든 원소 / 부분 라운드: s_0만
    3. MDS 행렬 곱        s ← M · s
  라운드 배치: 전체 4 → 부분 R_P → 전체 4
  출력: 순열 후 s_0

**파라미터**:
  - MDS: 코시(Cauchy) 행렬 M[i][j] = 1 / (i + t + j)
  - 라운드 상수: SHA-256(도메인 레이블 ‖ t ‖ 라운드 ‖ 위치) mod p
    (Fiat-Shamir 트랜스크립트의 챌린지 생성과 같은 방식)

회로 버전은 giftcard.gadgets.poseidon 이며, 같은 파라미터 객체를 공유하므로
두 구현의 출력은 항상 일치한다.

사용 예시:
    >>> h = poseidon([FR(1), FR(2)])
    >>> h == poseidon([1, 2])   # True
"""

import hashlib

from giftcard.field import FR, ZERO, ONE, CURVE_ORDER, to_fr


SEED = b"giftcard.poseidon"

# 전체 라운드 수
N_ROUNDS_F = 8

# 부분 라운드 수 (t = 2, 3, ..., 17)
N_ROUNDS_P = [56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68]

MAX_INPUTS = len(N_ROUNDS_P)


class PoseidonParams:
    """상태 폭 t에 대한 순열 파라미터.

    속성:
        t: 상태 폭
        rounds_f: 전체 라운드 수
        rounds_p: 부분 라운드 수
        round_constants: [라운드][위치] FR 상수
        mds: t×t MDS 행렬
    """

    def __init__(self, t):
        if not 2 <= t <= MAX_INPUTS + 1:
            raise ValueError(f"지원하지 않는 상태 폭입니다: {t}")
        self.t = t
        self.rounds_f = N_ROUNDS_F
        self.rounds_p = N_ROUNDS_P[t - 2]
        self.round_constants = _round_constants(t, self.rounds_f + self.rounds_p)
        self.mds = _cauchy_mds(t)

    @property
    def num_rounds(self):
        return self.rounds_f + self.rounds_p

    def is_full_round(self, r):
        half = self.rounds_f // 2
        return r < half or r >= half + self.rounds_p


def _round_constants(t, num_rounds):
    constants = []
    for r in range(num_rounds):
        row = []
        for i in range(t):
            data = SEED + t.to_bytes(1, "big") + r.to_bytes(2, "big") + i.to_bytes(1, "big")
            digest = hashlib.sha256(data).digest()
            row.append(FR(int.from_bytes(digest, "big") % CURVE_ORDER))
        constants.append(row)
    return constants


def _cauchy_mds(t):
    return [[ONE / FR(i + t + j) for j in range(t)] for i in range(t)]


_PARAMS = {}


def get_params(t):
    """상태 폭 t의 파라미터 (모듈 수준 캐시)."""
    if t not in _PARAMS:
        _PARAMS[t] = PoseidonParams(t)
    return _PARAMS[t]


def sbox(x):
    return x ** 5


def mix(state, mds):
    """MDS 행렬 곱."""
    out = []
    for row in mds:
        acc = ZERO
        for m, s in zip(row, state):
            acc = acc + m * s
        out.append(acc)
    return out


def permute(state, params):
    """Poseidon 순열 한 번."""
    state = list(state)
    for r in range(params.num_rounds):
        state = [s + c for s, c in zip(state, params.round_constants[r])]
        if params.is_full_round(r):
            state = [sbox(s) for s in state]
        else:
            state[0] = sbox(state[0])
        state = mix(state, params.mds)
    return state


def poseidon(inputs):
    """입력 개수 1~16의 해시. 출력은 FR 원소 하나.

    Raises:
        ValueError: 입력 개수가 범위를 벗어날 때
    """
    if not 1 <= len(inputs) <= MAX_INPUTS:
        raise ValueError(f"입력 개수는 1~{MAX_INPUTS}이어야 합니다: {len(inputs)}")
    params = get_params(len(inputs) + 1)
    state = [ZERO] + [to_fr(x) for x in inputs]
    return permute(state, params)[0]
