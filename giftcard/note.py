"""
데이터 모델: 노트, 위트니스, 공개 신호
========================================

**커밋먼트 (Commitment)**:
  H(secret, salt, amount). 예치 또는 잔액 출력마다 한 번 생성되고 변하지 않는다.

**널리파이어 (Nullifier)**:
  H(secret, salt). 금액과 무관하므로 같은 커밋먼트를 얼마를 인출하든
  항상 같은 널리파이어가 나온다 → 검증자가 재사용을 거부할 수 있다.

**잔액 (change)**:
  change = oldAmount − withdrawAmount
  newCommitment = 0                               (change == 0)
                = H(newSecret, newSalt, change)    (그 외)

expected_public_signals()는 회로 밖에서 같은 관계를 계산하는 참조 구현이다.
"""

from giftcard import babyjub
from giftcard.errors import WitnessLayoutError
from giftcard.field import ZERO, to_fr
from giftcard.merkle import MerkleProof, compute_root
from giftcard.params import PUBLIC_SIGNALS, PRIVATE_SCALARS
from giftcard.poseidon import poseidon


def commitment_hash(secret, salt, amount):
    return poseidon([secret, salt, amount])


def nullifier_hash(secret, salt):
    return poseidon([secret, salt])


class Note:
    """(secret, salt, amount) 로 표현되는 가치 보유 기록."""

    def __init__(self, secret, salt, amount):
        self.secret = to_fr(secret)
        self.salt = to_fr(salt)
        self.amount = to_fr(amount)

    def commitment(self):
        return commitment_hash(self.secret, self.salt, self.amount)

    def nullifier(self):
        return nullifier_hash(self.secret, self.salt)

    def __repr__(self):
        return f"Note(amount={int(self.amount)})"


class Witness:
    """회로의 전체 비공개 입력.

    속성:
        old_secret, old_salt, old_amount: 지출할 노트
        withdraw_amount: 인출 금액
        new_secret, new_salt: 잔액 노트의 비밀값
        ephemeral_scalar: 일회용 키 스칼라
        merkle_proof: 지출할 커밋먼트의 MerkleProof
    """

    def __init__(self, old_secret, old_salt, old_amount, withdraw_amount,
                 new_secret, new_salt, ephemeral_scalar, merkle_proof):
        self.old_secret = to_fr(old_secret)
        self.old_salt = to_fr(old_salt)
        self.old_amount = to_fr(old_amount)
        self.withdraw_amount = to_fr(withdraw_amount)
        self.new_secret = to_fr(new_secret)
        self.new_salt = to_fr(new_salt)
        self.ephemeral_scalar = to_fr(ephemeral_scalar)
        self.merkle_proof = merkle_proof

    @classmethod
    def spend(cls, old_note, withdraw_amount, new_secret, new_salt,
              ephemeral_scalar, merkle_proof):
        """노트 객체에서 위트니스를 만든다."""
        return cls(old_note.secret, old_note.salt, old_note.amount, withdraw_amount,
                   new_secret, new_salt, ephemeral_scalar, merkle_proof)

    @property
    def depth(self):
        return self.merkle_proof.depth

    @property
    def change_amount(self):
        return self.old_amount - self.withdraw_amount

    def scalars(self):
        """PRIVATE_SCALARS 순서의 스칼라 입력."""
        return [
            self.old_secret,
            self.old_salt,
            self.old_amount,
            self.withdraw_amount,
            self.new_secret,
            self.new_salt,
            self.ephemeral_scalar,
        ]

    def to_vector(self, depth):
        """회로의 비공개 입력 벡터: 스칼라 7개 + pathElements + pathIndices.

        Raises:
            WitnessLayoutError: 경로 길이가 회로 깊이와 다를 때
        """
        if self.merkle_proof.depth != depth:
            raise WitnessLayoutError(
                f"경로 길이 {self.merkle_proof.depth}가 회로 깊이 {depth}와 다릅니다"
            )
        return (self.scalars()
                + list(self.merkle_proof.path_elements)
                + list(self.merkle_proof.path_indices))

    def to_input_dict(self):
        """circom input.json 형식의 딕셔너리 (값은 10진 문자열)."""
        data = {
            name: str(int(value))
            for name, value in zip(PRIVATE_SCALARS, self.scalars())
        }
        data["pathElements"] = [str(int(e)) for e in self.merkle_proof.path_elements]
        data["pathIndices"] = [str(int(b)) for b in self.merkle_proof.path_indices]
        return data

    @classmethod
    def from_input_dict(cls, data):
        """to_input_dict()의 역변환.

        Raises:
            WitnessLayoutError: 키가 빠졌거나 경로가 리스트가 아닐 때
        """
        missing = [k for k in PRIVATE_SCALARS + ("pathElements", "pathIndices") if k not in data]
        if missing:
            raise WitnessLayoutError(f"위트니스 키가 없습니다: {missing}")
        if not isinstance(data["pathElements"], list) or not isinstance(data["pathIndices"], list):
            raise WitnessLayoutError("pathElements, pathIndices는 리스트여야 합니다")
        try:
            proof = MerkleProof(data["pathElements"], data["pathIndices"])
            return cls(*(data[name] for name in PRIVATE_SCALARS), merkle_proof=proof)
        except (TypeError, ValueError) as exc:
            raise WitnessLayoutError(str(exc)) from exc


class PublicSignals:
    """회로의 여섯 공개 출력 (PUBLIC_SIGNALS 순서)."""

    def __init__(self, root, nullifier, withdraw_amount, new_commitment,
                 ephemeral_public_key):
        self.root = to_fr(root)
        self.nullifier = to_fr(nullifier)
        self.withdraw_amount = to_fr(withdraw_amount)
        self.new_commitment = to_fr(new_commitment)
        self.ephemeral_public_key = (
            to_fr(ephemeral_public_key[0]),
            to_fr(ephemeral_public_key[1]),
        )

    def as_list(self):
        return [
            self.root,
            self.nullifier,
            self.withdraw_amount,
            self.new_commitment,
            self.ephemeral_public_key[0],
            self.ephemeral_public_key[1],
        ]

    @classmethod
    def from_list(cls, values):
        if len(values) != len(PUBLIC_SIGNALS):
            raise WitnessLayoutError(
                f"공개 신호는 {len(PUBLIC_SIGNALS)}개여야 합니다: {len(values)}"
            )
        root, nullifier, withdraw_amount, new_commitment, epk_x, epk_y = values
        return cls(root, nullifier, withdraw_amount, new_commitment, (epk_x, epk_y))

    def as_dict(self):
        return {name: str(int(v)) for name, v in zip(PUBLIC_SIGNALS, self.as_list())}

    def __eq__(self, other):
        if not isinstance(other, PublicSignals):
            return NotImplemented
        return self.as_list() == other.as_list()

    def __repr__(self):
        return f"PublicSignals(nullifier={int(self.nullifier)}, withdraw={int(self.withdraw_amount)})"


def change_commitment(new_secret, new_salt, change_amount):
    """잔액 커밋먼트. 잔액이 0이면 필드 0."""
    if to_fr(change_amount) == ZERO:
        return ZERO
    return commitment_hash(new_secret, new_salt, change_amount)


def expected_public_signals(witness):
    """회로 밖에서 계산한 공개 신호 (정직한 위트니스 기준의 참조값)."""
    leaf = commitment_hash(witness.old_secret, witness.old_salt, witness.old_amount)
    return PublicSignals(
        root=compute_root(leaf, witness.merkle_proof),
        nullifier=nullifier_hash(witness.old_secret, witness.old_salt),
        withdraw_amount=witness.withdraw_amount,
        new_commitment=change_commitment(
            witness.new_secret, witness.new_salt, witness.change_amount
        ),
        ephemeral_public_key=babyjub.mul(babyjub.BASE8, witness.ephemeral_scalar),
    )
