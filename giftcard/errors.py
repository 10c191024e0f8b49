"""
예외 계층
=========

회로 내부에는 "만족 / 불만족" 두 가지 결과만 존재한다.
불만족 위트니스는 어떤 제약이 실패했는지 구분하지 않고 UnsatisfiableWitness 하나로 보고한다.
"""


class GiftCardError(Exception):
    """모든 기프트카드 예외의 기반 클래스."""


class UnsatisfiableWitness(GiftCardError):
    """주어진 위트니스를 만족하는 할당이 존재하지 않는다."""

    def __init__(self):
        super().__init__("no satisfying witness exists")


class WitnessLayoutError(GiftCardError, ValueError):
    """위트니스 벡터의 형태(길이, 키)가 회로 레이아웃과 맞지 않는다."""


class LedgerError(GiftCardError):
    """검증자 측 원장이 공개 신호를 거부했다."""


class UnknownRoot(LedgerError):
    """공개된 root가 원장이 추적하는 루트 이력에 없다."""


class NullifierAlreadySpent(LedgerError):
    """널리파이어가 이미 사용되었다 (재사용 시도)."""


class AccumulatorFull(LedgerError):
    """머클 누적기에 새 잎을 넣을 자리가 없다."""
