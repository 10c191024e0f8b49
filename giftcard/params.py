"""
회로 파라미터 상수
===================

회로 구조를 결정하는 컴파일 타임 상수. 위트니스와 무관하게 고정된다.
"""

# 머클 누적기 깊이 (경로 길이)
TREE_DEPTH = 32

# 금액 비교기/범위 검사 비트 폭
AMOUNT_BITS = 128

# Baby Jubjub 스칼라 분해 비트 폭
SCALAR_BITS = 253

# 검증자 측에서 유효하다고 인정하는 최근 루트 개수
ROOT_HISTORY_SIZE = 30

# 공개 신호 순서
PUBLIC_SIGNALS = (
    "root",
    "nullifier",
    "withdrawAmount",
    "newCommitment",
    "ephemeralPublicKeyX",
    "ephemeralPublicKeyY",
)

# 비공개 스칼라 입력 순서 (그 뒤에 pathElements[depth], pathIndices[depth])
PRIVATE_SCALARS = (
    "oldSecret",
    "oldSalt",
    "oldAmount",
    "withdrawAmount",
    "newSecret",
    "newSalt",
    "ephemeralPrivateScalar",
)
