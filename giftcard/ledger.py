"""
검증자 측 원장 (Verifier-side Ledger)
======================================

회로 밖에서 권위 있는(authoritative) 누적기 상태와 사용된 널리파이어 집합을 관리한다.
회로는 루트를 재계산만 하므로, "루트가 실제 트리 상태와 같은가"와
"널리파이어가 처음 쓰이는가"는 오직 이 계층이 판정한다.

**수락 규칙** (accept):
  1. root 가 최근 ROOT_HISTORY_SIZE 개의 루트 중 하나가 아니면 → UnknownRoot
  2. nullifier 가 이미 사용되었으면                       → NullifierAlreadySpent
  3. newCommitment 가 0이 아닌데 트리가 가득 찼으면        → AccumulatorFull
  4. 통과하면 잔액 커밋먼트를 먼저 잎으로 추가하고, 마지막에 nullifier 를 사용 처리한다.
  거부된 요청은 원장 상태를 전혀 바꾸지 않는다.

검사와 갱신은 하나의 잠금 안에서 수행되므로, 같은 nullifier 로 동시에 들어온
요청 중 하나만 수락된다.

페어링 기반 증명 검증은 수행하지 않는다. accept()는 이미 합성(synthesize)에
성공한 공개 신호를 받는다고 가정한다.

**저장소**:
  TinyDB 테이블 세 개: leaves, nullifiers, roots.
  시작 시 leaves 테이블에서 머클 트리를 다시 구성한다.

사용 예시:
    >>> ledger = Ledger(TinyDB(storage=MemoryStorage), depth=4)
    >>> index, root = ledger.deposit(note.commitment())
    >>> ledger.accept(signals)
"""

import logging
import threading

from tinydb import TinyDB, Query
from tinydb.storages import MemoryStorage

from giftcard.errors import AccumulatorFull, UnknownRoot, NullifierAlreadySpent
from giftcard.field import ZERO, to_fr
from giftcard.merkle import MerkleTree
from giftcard.params import TREE_DEPTH, ROOT_HISTORY_SIZE
from giftcard.serializers import serialize_fr, fr_short

logger = logging.getLogger(__name__)

DATA = Query()


class Ledger:
    """머클 누적기 + 널리파이어 집합.

    속성:
        db: TinyDB 인스턴스
        tree: MerkleTree (leaves 테이블과 동기화)
        root_history: 유효한 최근 루트 개수
    """

    def __init__(self, db=None, depth=TREE_DEPTH, root_history=ROOT_HISTORY_SIZE):
        if root_history < 1:
            raise ValueError(f"루트 이력 크기는 1 이상이어야 합니다: {root_history}")
        self.db = db if db is not None else TinyDB(storage=MemoryStorage)
        self.leaves_table = self.db.table("leaves")
        self.nullifiers_table = self.db.table("nullifiers")
        self.roots_table = self.db.table("roots")
        self.root_history = root_history
        self._lock = threading.RLock()

        stored = sorted(self.leaves_table.all(), key=lambda row: row["index"])
        self.tree = MerkleTree(depth, [to_fr(row["commitment"]) for row in stored])
        if not self.roots_table.all():
            self._record_root()
        logger.info("ledger loaded: depth=%d leaves=%d", depth, len(self.tree))

    @property
    def depth(self):
        return self.tree.depth

    @property
    def root(self):
        return self.tree.root

    def is_full(self):
        return len(self.tree) >= self.tree.capacity

    def known_roots(self):
        rows = sorted(self.roots_table.all(), key=lambda row: row["seq"])
        return [to_fr(row["root"]) for row in rows]

    def is_known_root(self, root):
        return self.roots_table.contains(DATA.root == serialize_fr(root))

    def _record_root(self):
        rows = self.roots_table.all()
        seq = max((row["seq"] for row in rows), default=-1) + 1
        self.roots_table.insert({"seq": seq, "root": serialize_fr(self.tree.root)})
        self.roots_table.remove(DATA.seq <= seq - self.root_history)

    # ─── 누적기 ───

    def deposit(self, commitment):
        """커밋먼트를 잎으로 추가한다.

        Returns:
            tuple: (잎 인덱스, 새 루트)

        Raises:
            AccumulatorFull: 트리에 빈 자리가 없을 때
        """
        commitment = to_fr(commitment)
        with self._lock:
            if self.is_full():
                raise AccumulatorFull(f"accumulator full (capacity={self.tree.capacity})")
            index = self.tree.insert(commitment)
            self.leaves_table.insert({"index": index, "commitment": serialize_fr(commitment)})
            self._record_root()
            root = self.tree.root
        logger.info("deposit: index=%d root=%s", index, fr_short(root))
        return index, root

    def proof(self, index):
        with self._lock:
            return self.tree.proof(index)

    # ─── 널리파이어 ───

    def is_spent(self, nullifier):
        return self.nullifiers_table.contains(DATA.nullifier == serialize_fr(nullifier))

    def accept(self, signals):
        """합성된 공개 신호를 수락하고 상태를 갱신한다.

        Returns:
            dict: {"changeIndex": int 또는 None, "root": FR}

        Raises:
            UnknownRoot: root 가 추적 중인 루트가 아닐 때
            NullifierAlreadySpent: nullifier 가 이미 사용되었을 때
            AccumulatorFull: 잔액 커밋먼트를 넣을 자리가 없을 때
        """
        with self._lock:
            if not self.is_known_root(signals.root):
                logger.warning("rejected spend: unknown root %s", fr_short(signals.root))
                raise UnknownRoot(f"unknown root: {serialize_fr(signals.root)}")
            if self.is_spent(signals.nullifier):
                logger.warning("rejected spend: nullifier %s already spent",
                               fr_short(signals.nullifier))
                raise NullifierAlreadySpent(
                    f"nullifier already spent: {serialize_fr(signals.nullifier)}"
                )
            has_change = signals.new_commitment != ZERO
            if has_change and self.is_full():
                logger.warning("rejected spend: accumulator full")
                raise AccumulatorFull(f"accumulator full (capacity={self.tree.capacity})")

            change_index = None
            if has_change:
                change_index, _ = self.deposit(signals.new_commitment)
            self.nullifiers_table.insert({"nullifier": serialize_fr(signals.nullifier)})
            root = self.tree.root
        logger.info("accepted spend: nullifier=%s withdraw=%d",
                    fr_short(signals.nullifier), int(signals.withdraw_amount))
        return {"changeIndex": change_index, "root": root}
