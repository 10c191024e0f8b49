"""
재사용 가능한 서브 회로 (Gadgets)
==================================

회로가 조합하는 블랙박스 프리미티브. 각 가젯은 입력/출력 개수와
필드 수준의 보장만을 계약으로 노출한다.

  | 가젯            | 입력            | 출력        | 보장                                   |
  |-----------------|-----------------|-------------|----------------------------------------|
  | poseidon        | k (1..16)       | 1           | 네이티브 poseidon()과 같은 값          |
  | num2bits        | 1, 폭 n         | n 비트      | x < 2^n 이 아니면 불만족               |
  | less_than       | 2, 폭 n         | 1 (불리언)  | 두 피연산자 < 2^n 일 때만 건전(sound)  |
  | is_zero         | 1               | 1 (불리언)  | x == 0 이면 1, 아니면 0                |
  | select          | 비트 + 후보 2개 | 1           | 비트가 0/1일 때 해당 후보              |
  | fixed_base_mul  | 1 스칼라        | 2 (x, y)    | scalar · base (scalar < 2^n_bits)      |

모든 조건 분기는 곱셈 기반 선택으로 컴파일되며, 생성되는 제약 집합은
입력 값과 무관하다.
"""

from giftcard import babyjub
from giftcard.field import FR, ZERO, ONE, fr_inverse
from giftcard.poseidon import get_params, MAX_INPUTS
from giftcard.r1cs import LinearCombination, as_lc


# ─────────────────────────────────────────────────────────────────────
# 해시
# ─────────────────────────────────────────────────────────────────────

def _sbox(cs, x):
    x2 = cs.mul(x, x)
    x4 = cs.mul(x2, x2)
    return cs.mul(x4, x)


def poseidon(cs, inputs):
    """회로 내 해시. 네이티브 giftcard.poseidon.poseidon과 같은 순열을 따른다.

    선형 단계(라운드 상수, MDS)는 선형결합으로 처리되고
    S-box 하나마다 곱셈 제약 3개가 생긴다.

    Returns:
        LinearCombination: 해시 출력 배선
    """
    if not 1 <= len(inputs) <= MAX_INPUTS:
        raise ValueError(f"입력 개수는 1~{MAX_INPUTS}이어야 합니다: {len(inputs)}")
    params = get_params(len(inputs) + 1)
    state = [as_lc(ZERO)] + [as_lc(x) for x in inputs]

    for r in range(params.num_rounds):
        state = [s + c for s, c in zip(state, params.round_constants[r])]
        if params.is_full_round(r):
            state = [_sbox(cs, s) for s in state]
        else:
            state[0] = _sbox(cs, state[0])
        state = [
            LinearCombination.combine(zip(row, state))
            for row in params.mds
        ]

    return cs.materialize(state[0])


# ─────────────────────────────────────────────────────────────────────
# 비트 분해 / 비교
# ─────────────────────────────────────────────────────────────────────

def assert_bool(cs, b):
    """b · (1 − b) = 0  →  b ∈ {0, 1}."""
    cs.enforce(b, 1 - as_lc(b), ZERO)


def num2bits(cs, x, n):
    """x를 n비트로 분해한다 (리틀 엔디언).

    x가 n비트로 표현되지 않으면 재조합 제약이 깨져 불만족이 된다.

    Returns:
        list[LinearCombination]: 비트 배선 n개
    """
    x = as_lc(x)
    bits = []
    for i in range(n):
        bit = cs.alloc(lambda v, i=i: FR((int(x.evaluate(v)) >> i) & 1))
        assert_bool(cs, bit)
        bits.append(bit)
    recomposed = LinearCombination.combine((1 << i, bit) for i, bit in enumerate(bits))
    cs.enforce_equal(recomposed, x)
    return bits


def less_than(cs, a, b, n):
    """a < b 이면 1, 아니면 0.

    x = a + 2^n − b 를 n+1 비트로 분해하고 최상위 비트를 본다.
    a, b 가 모두 2^n 미만일 때만 결과가 정확하다.
    """
    if n > 252:
        raise ValueError(f"비교기 비트 폭은 252 이하여야 합니다: {n}")
    bits = num2bits(cs, as_lc(a) + (1 << n) - as_lc(b), n + 1)
    return 1 - bits[n]


def is_zero(cs, x):
    """x == 0 이면 1, 아니면 0.

    제약:
        x · inv = 1 − out
        x · out = 0
    """
    x = as_lc(x)
    inv = cs.alloc(lambda v: fr_inverse(x.evaluate(v)))
    out = cs.alloc(lambda v: ONE if x.evaluate(v) == ZERO else ZERO)
    cs.enforce(x, inv, 1 - out)
    cs.enforce(x, out, ZERO)
    return out


def select(cs, bit, when_zero, when_one):
    """out = (1 − bit)·when_zero + bit·when_one.

    두 후보를 모두 미리 계산해 둔 뒤 대수적 마스크로 고른다.
    제약: bit · (when_one − when_zero) = out − when_zero

    bit 자체의 불리언 여부는 호출자가 강제해야 한다.
    """
    bit, when_zero, when_one = as_lc(bit), as_lc(when_zero), as_lc(when_one)
    out = cs.alloc(
        lambda v: when_zero.evaluate(v)
        + bit.evaluate(v) * (when_one.evaluate(v) - when_zero.evaluate(v))
    )
    cs.enforce(bit, when_one - when_zero, out - when_zero)
    return out


# ─────────────────────────────────────────────────────────────────────
# Baby Jubjub 고정 기저 스칼라 곱
# ─────────────────────────────────────────────────────────────────────

def _add_constant_point(cs, point, constant):
    """가변 점 + 상수 점. 제약 3개."""
    x1, y1 = point
    px, py = constant
    k = babyjub.D * px * py
    t = cs.mul(x1, y1)
    x_num = x1 * py + y1 * px
    y_num = y1 * py - x1 * (babyjub.A * px)
    x_den = t * k + 1
    y_den = 1 - t * k
    x3 = cs.alloc(lambda v: x_num.evaluate(v) / x_den.evaluate(v))
    y3 = cs.alloc(lambda v: y_num.evaluate(v) / y_den.evaluate(v))
    cs.enforce(x3, x_den, x_num)
    cs.enforce(y3, y_den, y_num)
    return x3, y3


def fixed_base_mul(cs, scalar, base, n_bits):
    """scalar · base 를 계산한다 (base는 회로 상수).

    scalar를 n_bits 비트로 분해하고, 각 비트마다 2^i·base 를 더한 값과
    더하지 않은 값 중 하나를 select로 고른다. 반복 횟수는 n_bits로 고정.

    Returns:
        tuple: (x, y) LinearCombination
    """
    bits = num2bits(cs, scalar, n_bits)
    acc = (as_lc(ZERO), as_lc(ONE))
    for bit, power in zip(bits, babyjub.doublings(base, n_bits)):
        added = _add_constant_point(cs, acc, power)
        acc = (
            select(cs, bit, acc[0], added[0]),
            select(cs, bit, acc[1], added[1]),
        )
    return acc
