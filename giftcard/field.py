"""
기반 모듈: 유한체(Finite Field)
================================

회로 전체에서 사용되는 기본 산술 단위를 정의한다.

**유한체 FR**:
  bn128 타원곡선의 스칼라 필드 (scalar field).
  모든 제약(constraint), 위트니스(witness), 해시 연산이 이 체 위에서 이루어진다.
  - 위수(order) p ≈ 2^254, 소수체(prime field)
  - Baby Jubjub 곡선의 기저체(base field)이기도 하다

사용 예시:
    >>> from giftcard.field import FR, to_fr
    >>> FR(3) * FR(7)          # FR(21)
    >>> to_fr("0x10")           # FR(16)
    >>> FR(0) - FR(1) == FR(CURVE_ORDER - 1)
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import bn128


class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    py_ecc의 FQ 클래스를 상속하여 +, -, *, /, ** 등의 필드 연산을 제공한다.
    """
    field_modulus = bn128.curve_order


# 곡선 위수 (필드 크기)
CURVE_ORDER = bn128.curve_order

ZERO = FR(0)
ONE = FR(1)


def to_fr(value):
    """정수, 문자열(10진/16진), FR 값을 FR 원소로 변환한다.

    음수는 모듈러 축약된다: to_fr(-1) == FR(CURVE_ORDER - 1).

    Raises:
        TypeError: 지원하지 않는 타입
        ValueError: 숫자로 해석할 수 없는 문자열
    """
    if isinstance(value, FR):
        return value
    if isinstance(value, bool):
        return FR(int(value))
    if isinstance(value, int):
        return FR(value % CURVE_ORDER)
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith(("0x", "-0x")):
            return FR(int(text, 16) % CURVE_ORDER)
        return FR(int(text, 10) % CURVE_ORDER)
    if isinstance(value, FQ):
        return FR(int(value) % CURVE_ORDER)
    raise TypeError(f"FR로 변환할 수 없는 타입입니다: {type(value).__name__}")


def fr_inverse(value):
    """역원. 0의 역원은 0으로 정의한다 (IsZero 힌트에서 사용)."""
    if value == ZERO:
        return ZERO
    return ONE / value
