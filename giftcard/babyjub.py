"""
Baby Jubjub 타원곡선 (네이티브 구현)
=====================================

bn128 스칼라 필드 FR 위에 정의된 뒤틀린 에드워즈(twisted Edwards) 곡선.
회로 안에서 일회용 공개키(ephemeral public key)를 유도하는 데 사용된다.

**곡선 방정식**:
    a·x² + y² = 1 + d·x²·y²      (a = 168700, d = 168696)

**덧셈 공식** (a가 제곱수, d가 비제곱수이므로 완전(complete)하다):
    x₃ = (x₁y₂ + y₁x₂) / (1 + d·x₁x₂y₁y₂)
    y₃ = (y₁y₂ − a·x₁x₂) / (1 − d·x₁x₂y₁y₂)

항등원은 (0, 1), BASE8은 소수 위수 부분군의 생성자이다.

사용 예시:
    >>> pk = mul(BASE8, 1234)
    >>> is_on_curve(pk)   # True
"""

from giftcard.field import FR, ZERO, ONE


A = FR(168700)
D = FR(168696)

IDENTITY = (ZERO, ONE)

BASE8 = (
    FR(5299619240641551281634865583518297030282874472190772894086521144482721001553),
    FR(16950150798460657717958625567821834550301663161624707787222815936182638968203),
)

# 곡선 위수 = 8 · SUBGROUP_ORDER
CURVE_ORDER = 21888242871839275222246405745257275088614511777268538073601725287587578984328
SUBGROUP_ORDER = CURVE_ORDER >> 3


def is_on_curve(point):
    x, y = point
    x2 = x * x
    y2 = y * y
    return A * x2 + y2 == ONE + D * x2 * y2


def add(p1, p2):
    """점 덧셈 p1 + p2."""
    x1, y1 = p1
    x2, y2 = p2
    k = D * x1 * x2 * y1 * y2
    x3 = (x1 * y2 + y1 * x2) / (ONE + k)
    y3 = (y1 * y2 - A * x1 * x2) / (ONE - k)
    return (x3, y3)


def double(point):
    return add(point, point)


def neg(point):
    x, y = point
    return (-x, y)


def mul(point, scalar):
    """스칼라 곱 scalar · point (LSB부터 double-and-add).

    Args:
        point: 곡선 위의 점
        scalar: 음이 아닌 정수 또는 FR

    Returns:
        곡선 위의 점
    """
    scalar = int(scalar)
    if scalar < 0:
        raise ValueError(f"스칼라는 음수일 수 없습니다: {scalar}")
    result = IDENTITY
    addend = point
    while scalar:
        if scalar & 1:
            result = add(result, addend)
        addend = double(addend)
        scalar >>= 1
    return result


def doublings(point, n):
    """[point, 2·point, 4·point, ..., 2^(n-1)·point]."""
    powers = []
    current = point
    for _ in range(n):
        powers.append(current)
        current = double(current)
    return powers
