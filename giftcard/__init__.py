"""
기프트카드 지출 회로 (Gift-card spend circuit)
==============================================

머클 누적기(accumulator)에 숨겨진 가치 커밋먼트의 일부를 인출하고,
이중 지출을 막는 널리파이어(nullifier)와 잔액(change) 커밋먼트를 공개하는
R1CS 제약 시스템과 그 주변 도구.
"""
