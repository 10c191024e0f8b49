"""
데이터 직렬화/역직렬화 헬퍼
============================

TinyDB와 JSON 응답에 저장 가능한 형태로 회로 객체를 변환한다.
FR 원소는 10진 문자열로 표현한다.
"""

from giftcard.field import to_fr
from giftcard.merkle import MerkleProof
from giftcard.note import PublicSignals, Witness


# ─── FR ───

def serialize_fr(val):
    """FR → str(int)"""
    return str(int(val))


def deserialize_fr(s):
    """str(int) / int → FR"""
    return to_fr(s)


# ─── FR list ───

def serialize_fr_list(lst):
    """list[FR] → list[str]"""
    return [serialize_fr(v) for v in lst]


def deserialize_fr_list(data):
    """list[str] → list[FR]"""
    return [deserialize_fr(s) for s in data]


# ─── Baby Jubjub point ───

def serialize_point(point):
    """(x, y) → [str, str]"""
    return [serialize_fr(point[0]), serialize_fr(point[1])]


def deserialize_point(data):
    """[str, str] → (FR, FR)"""
    return (deserialize_fr(data[0]), deserialize_fr(data[1]))


# ─── MerkleProof ───

def serialize_merkle_proof(proof):
    """MerkleProof → {"pathElements": [...], "pathIndices": [...]}"""
    return {
        "pathElements": serialize_fr_list(proof.path_elements),
        "pathIndices": [int(b) for b in proof.path_indices],
    }


def deserialize_merkle_proof(data):
    return MerkleProof(data["pathElements"], data["pathIndices"])


# ─── Witness / PublicSignals ───

def serialize_witness(witness):
    """Witness → circom input.json 형식 dict"""
    return witness.to_input_dict()


def deserialize_witness(data):
    return Witness.from_input_dict(data)


def serialize_public_signals(signals):
    """PublicSignals → list[str] (snarkjs public.json 형식)"""
    return serialize_fr_list(signals.as_list())


def deserialize_public_signals(data):
    return PublicSignals.from_list(deserialize_fr_list(data))


# ─── 표시용 ───

def fr_short(val):
    """FR → 짧은 표시 문자열"""
    s = str(int(val))
    if len(s) > 20:
        return s[:8] + "..." + s[-8:]
    return s
