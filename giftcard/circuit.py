"""
기프트카드 지출 회로 (Gift-card Spend Circuit)
================================================

비공개 위트니스를 여섯 개의 공개 출력으로 사상하는 R1CS 제약 시스템.
인출이 정당할 때만 제약을 만족하는 위트니스가 존재한다.

**데이터 흐름**:

  위트니스 ──┬─▶ 일회용 키 유도        ──▶ ephemeralPublicKey (x, y)
             ├─▶ 커밋먼트 재구성        ──▶ 머클 경로 검증 ──▶ root
             ├─▶ 널리파이어             ──▶ nullifier
             ├─▶ 지출 제약 (w ≤ old)
             └─▶ 잔액 커밋먼트 선택     ──▶ newCommitment
  withdrawAmount 는 그대로 공개 출력으로 반향(echo)된다.

**공개 출력 순서**:
  root, nullifier, withdrawAmount, newCommitment,
  ephemeralPublicKeyX, ephemeralPublicKeyY

**비공개 입력 순서**:
  oldSecret, oldSalt, oldAmount, withdrawAmount, newSecret, newSalt,
  ephemeralPrivateScalar, pathElements[depth], pathIndices[depth]

**분기 없는 회로**:
  모든 조건("잔액이 0인가?", "이 비트는 왼쪽/오른쪽 중 무엇인가?")은 곱셈 기반 선택으로
  표현된다. 머클 루프는 depth 만큼 펼쳐지며(unrolled), 제약 집합은 위트니스와 무관하다.

**실패 의미론**:
  어떤 제약이든 깨지면 synthesize()는 UnsatisfiableWitness 하나만 발생시키고
  공개 출력을 전혀 내보내지 않는다. 어떤 제약이 실패했는지는 알려주지 않는다.

사용 예시:
    >>> circuit = GiftCardCircuit(depth=32)
    >>> signals = circuit.synthesize(witness)
    >>> signals.as_list()
"""

import logging

from giftcard import babyjub, gadgets
from giftcard.errors import UnsatisfiableWitness, WitnessLayoutError
from giftcard.field import ONE
from giftcard.note import PublicSignals
from giftcard.params import (
    TREE_DEPTH, AMOUNT_BITS, SCALAR_BITS, PUBLIC_SIGNALS, PRIVATE_SCALARS,
)
from giftcard.r1cs import ConstraintSystem

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# 구성 요소 (components)
# ─────────────────────────────────────────────────────────────────────

def ephemeral_public_key(cs, scalar):
    """일회용 공개키 = scalar · BASE8.

    스칼라의 범위나 클램핑은 이 구성 요소가 따로 제약하지 않는다.
    스칼라 곱 가젯의 SCALAR_BITS 비트 분해가 허용하는 범위가 전부이다.
    """
    return gadgets.fixed_base_mul(cs, scalar, babyjub.BASE8, SCALAR_BITS)


def commitment(cs, secret, salt, amount):
    return gadgets.poseidon(cs, [secret, salt, amount])


def nullifier(cs, secret, salt):
    """금액을 입력으로 받지 않는다."""
    return gadgets.poseidon(cs, [secret, salt])


def spending_constraint(cs, withdraw_amount, old_amount, n_bits=AMOUNT_BITS):
    """withdrawAmount ≤ oldAmount 를 withdrawAmount < oldAmount + 1 로 강제한다."""
    ok = gadgets.less_than(cs, withdraw_amount, old_amount + 1, n_bits)
    cs.enforce_equal(ok, ONE)


def change_commitment(cs, new_secret, new_salt, change_amount):
    """newCommitment = H(newSecret, newSalt, change) · (1 − IsZero(change)).

    해시는 잔액과 무관하게 항상 계산된다.
    """
    h = gadgets.poseidon(cs, [new_secret, new_salt, change_amount])
    zero = gadgets.is_zero(cs, change_amount)
    return cs.mul(h, 1 - zero)


def merkle_root(cs, leaf, path_elements, path_indices):
    """잎과 고정 길이 경로에서 루트를 재계산한다.

    레벨마다 (누적값 H, 형제 S, 비트 b):
        b · (1 − b) = 0
        left  = (1 − b)·H + b·S
        right = (1 − b)·S + b·H
        H'    = hash(left, right)

    계산된 루트를 외부의 기대값과 비교하지 않는다.
    """
    if len(path_elements) != len(path_indices):
        raise ValueError("pathElements와 pathIndices의 길이가 다릅니다")
    node = leaf
    for sibling, bit in zip(path_elements, path_indices):
        gadgets.assert_bool(cs, bit)
        left = gadgets.select(cs, bit, node, sibling)
        right = gadgets.select(cs, bit, sibling, node)
        node = gadgets.poseidon(cs, [left, right])
    return node


# ─────────────────────────────────────────────────────────────────────
# 회로 조립 (assembler)
# ─────────────────────────────────────────────────────────────────────

class GiftCardCircuit:
    """구성 요소를 하나의 제약 그래프로 배선한다.

    속성:
        depth: 머클 경로 길이
        amount_bits: 비교기 비트 폭
        range_check_amounts: oldAmount, withdrawAmount 를 amount_bits 비트로 제한할지 여부
        cs: 구성된 ConstraintSystem
        outputs: 공개 신호 이름 → 배선 인덱스
    """

    def __init__(self, depth=TREE_DEPTH, amount_bits=AMOUNT_BITS, range_check_amounts=True):
        if depth < 1:
            raise ValueError(f"트리 깊이는 1 이상이어야 합니다: {depth}")
        # 비교기가 amount_bits + 1 비트를 쓰므로 필드 크기(254비트) 안에 들어가야 한다
        if not 1 <= amount_bits <= 252:
            raise ValueError(f"금액 비트 폭은 1~252 이어야 합니다: {amount_bits}")
        self.depth = depth
        self.amount_bits = amount_bits
        self.range_check_amounts = range_check_amounts
        self.cs = ConstraintSystem()
        self.outputs = {}
        self._build()
        logger.info("gift-card circuit built: depth=%d wires=%d constraints=%d",
                    depth, self.cs.num_wires, self.cs.num_constraints)

    def _build(self):
        cs = self.cs
        for name in PUBLIC_SIGNALS:
            self.outputs[name] = cs.public_output(name)

        inputs = {name: cs.private_input(name) for name in PRIVATE_SCALARS}
        path_elements = [cs.private_input(f"pathElements[{i}]") for i in range(self.depth)]
        path_indices = [cs.private_input(f"pathIndices[{i}]") for i in range(self.depth)]

        old_amount = inputs["oldAmount"]
        withdraw_amount = inputs["withdrawAmount"]

        if self.range_check_amounts:
            gadgets.num2bits(cs, old_amount, self.amount_bits)
            gadgets.num2bits(cs, withdraw_amount, self.amount_bits)
        spending_constraint(cs, withdraw_amount, old_amount, self.amount_bits)

        leaf = commitment(cs, inputs["oldSecret"], inputs["oldSalt"], old_amount)
        root = merkle_root(cs, leaf, path_elements, path_indices)
        spent = nullifier(cs, inputs["oldSecret"], inputs["oldSalt"])
        change = old_amount - withdraw_amount
        new_commitment = change_commitment(cs, inputs["newSecret"], inputs["newSalt"], change)
        epk_x, epk_y = ephemeral_public_key(cs, inputs["ephemeralPrivateScalar"])

        cs.bind_output(self.outputs["root"], root)
        cs.bind_output(self.outputs["nullifier"], spent)
        cs.bind_output(self.outputs["withdrawAmount"], withdraw_amount)
        cs.bind_output(self.outputs["newCommitment"], new_commitment)
        cs.bind_output(self.outputs["ephemeralPublicKeyX"], epk_x)
        cs.bind_output(self.outputs["ephemeralPublicKeyY"], epk_y)

    @property
    def num_constraints(self):
        return self.cs.num_constraints

    def private_layout(self):
        """비공개 입력 배선 이름 (순서대로)."""
        return [self.cs.labels[w] for w in self.cs.private_inputs]

    def solve(self, witness):
        """위트니스에서 전체 배선 값을 계산한다. 만족 여부는 판정하지 않는다.

        Raises:
            WitnessLayoutError: 경로 길이가 depth와 다를 때
        """
        return self.cs.solve(witness.to_vector(self.depth))

    def satisfies(self, witness):
        return self.cs.is_satisfied(self.solve(witness))

    def synthesize(self, witness):
        """위트니스를 풀고 모든 제약을 검사한 뒤 공개 신호를 반환한다.

        Raises:
            WitnessLayoutError: 위트니스 형태가 회로와 맞지 않을 때
            UnsatisfiableWitness: 만족하는 할당이 없을 때 (세부 정보 없음)
        """
        values = self.solve(witness)
        if not self.cs.is_satisfied(values):
            logger.info("witness rejected")
            raise UnsatisfiableWitness()
        return PublicSignals.from_list(self.cs.public_values(values))

    def check_assignment(self, values):
        """외부에서 주어진 전체 배선 값이 제약을 만족하는지 확인한다.

        조작된 증명(tampered proof)을 흉내 낼 때 사용한다.
        """
        if len(values) != self.cs.num_wires:
            raise WitnessLayoutError(
                f"배선 값 개수가 맞지 않습니다: {len(values)} != {self.cs.num_wires}"
            )
        return self.cs.is_satisfied(values)
