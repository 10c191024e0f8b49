"""
고정 깊이 머클 누적기 (회로 밖)
================================

커밋먼트를 잎(leaf)으로 저장하는 추가 전용(append-only) 이진 머클 트리.
검증자 측 원장과 위트니스 작성에 사용된다.

**빈 노드**:
  zeros[0] = 0
  zeros[i+1] = H(zeros[i], zeros[i])
  아직 채워지지 않은 위치는 해당 레벨의 zeros 값으로 간주한다.

**경로 (MerkleProof)**:
  레벨 i마다 (형제 해시, 경로 비트) 한 쌍.
  경로 비트 0 → 현재 노드가 왼쪽, 1 → 오른쪽.

사용 예시:
    >>> tree = MerkleTree(depth=4)
    >>> index = tree.insert(commitment)
    >>> proof = tree.proof(index)
    >>> compute_root(commitment, proof) == tree.root   # True
"""

from giftcard.field import ZERO, ONE, to_fr
from giftcard.params import TREE_DEPTH
from giftcard.poseidon import poseidon


class MerkleProof:
    """고정 길이 머클 경로.

    속성:
        path_elements: 레벨별 형제 해시 (FR 리스트)
        path_indices: 레벨별 경로 비트 (FR 리스트, 정상 경로에서는 0 또는 1)
    """

    def __init__(self, path_elements, path_indices):
        if len(path_elements) != len(path_indices):
            raise ValueError(
                f"경로 길이가 다릅니다: elements={len(path_elements)}, indices={len(path_indices)}"
            )
        self.path_elements = [to_fr(e) for e in path_elements]
        self.path_indices = [to_fr(b) for b in path_indices]

    @property
    def depth(self):
        return len(self.path_elements)

    def leaf_index(self):
        """경로 비트에서 잎 인덱스를 복원한다 (비트가 모두 0/1일 때만 의미가 있다)."""
        return sum(int(b) << i for i, b in enumerate(self.path_indices))

    def __eq__(self, other):
        if not isinstance(other, MerkleProof):
            return NotImplemented
        return (self.path_elements == other.path_elements
                and self.path_indices == other.path_indices)

    def __repr__(self):
        return f"MerkleProof(depth={self.depth})"


def hash_pair(left, right):
    return poseidon([left, right])


def zero_hashes(depth):
    """레벨 0..depth 의 빈 노드 해시 리스트."""
    zeros = [ZERO]
    for _ in range(depth):
        zeros.append(hash_pair(zeros[-1], zeros[-1]))
    return zeros


def compute_root(leaf, proof):
    """잎과 경로에서 루트를 다시 계산한다.

    경로 비트 b에 대해 회로와 같은 선택식을 사용한다:
        left  = (1 − b)·H + b·S
        right = (1 − b)·S + b·H
    """
    node = to_fr(leaf)
    for sibling, bit in zip(proof.path_elements, proof.path_indices):
        left = (ONE - bit) * node + bit * sibling
        right = (ONE - bit) * sibling + bit * node
        node = hash_pair(left, right)
    return node


class MerkleTree:
    """추가 전용 고정 깊이 머클 트리.

    속성:
        depth: 트리 깊이
        zeros: 레벨별 빈 노드 해시
        layers: layers[level] = 해당 레벨의 채워진 노드 리스트
    """

    def __init__(self, depth=TREE_DEPTH, leaves=None):
        if depth < 1:
            raise ValueError(f"트리 깊이는 1 이상이어야 합니다: {depth}")
        self.depth = depth
        self.zeros = zero_hashes(depth)
        self.layers = [[] for _ in range(depth + 1)]
        for leaf in leaves or []:
            self.insert(leaf)

    @property
    def capacity(self):
        return 1 << self.depth

    def __len__(self):
        return len(self.layers[0])

    @property
    def root(self):
        if not self.layers[self.depth]:
            return self.zeros[self.depth]
        return self.layers[self.depth][0]

    @property
    def leaves(self):
        return list(self.layers[0])

    def insert(self, leaf):
        """잎을 추가하고 인덱스를 반환한다. 경로 위의 노드만 갱신한다."""
        if len(self) >= self.capacity:
            raise ValueError(f"트리가 가득 찼습니다 (capacity={self.capacity})")
        index = len(self)
        self.layers[0].append(to_fr(leaf))

        node_index = index
        for level in range(self.depth):
            parent_index = node_index // 2
            layer = self.layers[level]
            left = layer[2 * parent_index]
            right_index = 2 * parent_index + 1
            right = layer[right_index] if right_index < len(layer) else self.zeros[level]
            parent = hash_pair(left, right)
            upper = self.layers[level + 1]
            if parent_index < len(upper):
                upper[parent_index] = parent
            else:
                upper.append(parent)
            node_index = parent_index
        return index

    def proof(self, index):
        """index 번째 잎의 머클 경로."""
        if not 0 <= index < len(self):
            raise IndexError(f"잎 인덱스 범위 밖입니다: {index}")
        elements = []
        indices = []
        node_index = index
        for level in range(self.depth):
            sibling_index = node_index ^ 1
            layer = self.layers[level]
            if sibling_index < len(layer):
                elements.append(layer[sibling_index])
            else:
                elements.append(self.zeros[level])
            indices.append(node_index & 1)
            node_index >>= 1
        return MerkleProof(elements, indices)
