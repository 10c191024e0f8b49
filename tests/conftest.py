import sys
import os
import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from giftcard.circuit import GiftCardCircuit
from giftcard.merkle import MerkleTree
from giftcard.note import Note, Witness


# ── 테스트 상수 ──
SMALL_DEPTH = 4

OLD_SECRET = 0x1234567890ABCDEF
OLD_SALT = 0xFEEDFACE
NEW_SECRET = 0x0DDBA11
NEW_SALT = 0xC0FFEE
EPHEMERAL_SCALAR = 0x2A2A2A2A

# 트리에 먼저 들어가 있는 다른 예치 (익명 집합)
OTHER_COMMITMENTS = [1111, 2222, 3333]


@pytest.fixture(scope="session")
def small_circuit():
    """깊이 4 회로 (범위 검사 포함)."""
    return GiftCardCircuit(depth=SMALL_DEPTH)


@pytest.fixture(scope="session")
def unchecked_circuit():
    """금액 범위 검사를 끈 깊이 2 회로."""
    return GiftCardCircuit(depth=2, range_check_amounts=False)


@pytest.fixture
def make_spend():
    """(old_amount, withdraw) → (tree, note, witness) 를 만드는 팩토리.

    지출할 노트는 다른 예치들 사이(인덱스 2)에 들어간다.
    """
    def _make(old_amount, withdraw_amount, depth=SMALL_DEPTH,
              new_secret=NEW_SECRET, new_salt=NEW_SALT):
        note = Note(OLD_SECRET, OLD_SALT, old_amount)
        tree = MerkleTree(depth)
        tree.insert(OTHER_COMMITMENTS[0])
        tree.insert(OTHER_COMMITMENTS[1])
        index = tree.insert(note.commitment())
        tree.insert(OTHER_COMMITMENTS[2])
        witness = Witness.spend(note, withdraw_amount, new_secret, new_salt,
                                EPHEMERAL_SCALAR, tree.proof(index))
        return tree, note, witness

    return _make
