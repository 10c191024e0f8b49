"""
기프트카드 Flask Blueprint: JSON 엔드포인트
=============================================

회로 정보, 누적기(트리), 예치, 경로 조회, 지출, 널리파이어 조회.
총 6개 엔드포인트 (GET 4 + POST 2)
"""

from flask import Blueprint, jsonify, request, current_app

from giftcard.errors import (
    AccumulatorFull, LedgerError, NullifierAlreadySpent, UnknownRoot,
    UnsatisfiableWitness, WitnessLayoutError,
)
from giftcard.params import PUBLIC_SIGNALS
from giftcard.serializers import (
    serialize_fr, deserialize_fr,
    serialize_merkle_proof,
    serialize_public_signals,
    deserialize_witness,
)

giftcard_bp = Blueprint('giftcard', __name__, url_prefix='/giftcard')

# 원장과 회로는 app.py에서 주입
LEDGER = None
CIRCUIT = None


def init_giftcard_bp(ledger, circuit):
    """app.py에서 원장과 회로를 주입받는다."""
    global LEDGER, CIRCUIT
    if ledger.depth != circuit.depth:
        raise ValueError(
            f"원장 깊이 {ledger.depth}와 회로 깊이 {circuit.depth}가 다릅니다"
        )
    LEDGER = ledger
    CIRCUIT = circuit


# ─── 오류 응답 ───

@giftcard_bp.errorhandler(UnsatisfiableWitness)
def handle_unsatisfiable(exc):
    return jsonify({"error": "unsatisfiable"}), 400


@giftcard_bp.errorhandler(WitnessLayoutError)
def handle_layout(exc):
    return jsonify({"error": "invalid witness", "detail": str(exc)}), 400


@giftcard_bp.errorhandler(LedgerError)
def handle_ledger(exc):
    if isinstance(exc, NullifierAlreadySpent):
        kind = "nullifier already spent"
    elif isinstance(exc, UnknownRoot):
        kind = "unknown root"
    elif isinstance(exc, AccumulatorFull):
        kind = "accumulator full"
    else:
        kind = "rejected"
    return jsonify({"error": kind}), 409


def _bad_request(message):
    return jsonify({"error": message}), 400


# ──────────────────────────────────────────────────────────────
# 회로 / 트리
# ──────────────────────────────────────────────────────────────

@giftcard_bp.route("/circuit")
def circuit_info():
    """회로 구조 정보."""
    return jsonify({
        "depth": CIRCUIT.depth,
        "amountBits": CIRCUIT.amount_bits,
        "rangeCheckAmounts": CIRCUIT.range_check_amounts,
        "publicSignals": list(PUBLIC_SIGNALS),
        "numPrivateInputs": len(CIRCUIT.cs.private_inputs),
        "numWires": CIRCUIT.cs.num_wires,
        "numConstraints": CIRCUIT.num_constraints,
    })


@giftcard_bp.route("/tree")
def tree_info():
    """현재 루트와 잎 개수."""
    return jsonify({
        "root": serialize_fr(LEDGER.root),
        "leaves": len(LEDGER.tree),
        "depth": LEDGER.depth,
    })


@giftcard_bp.route("/deposit", methods=["POST"])
def deposit():
    """커밋먼트를 누적기에 추가한다."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "commitment" not in data:
        return _bad_request("commitment is required")
    try:
        commitment = deserialize_fr(data["commitment"])
    except (TypeError, ValueError):
        return _bad_request("commitment must be a field element")

    index, root = LEDGER.deposit(commitment)
    return jsonify({"index": index, "root": serialize_fr(root)}), 201


@giftcard_bp.route("/path/<int:index>")
def merkle_path(index):
    """index 번째 잎의 머클 경로."""
    if index >= len(LEDGER.tree):
        return jsonify({"error": "unknown leaf"}), 404
    proof = LEDGER.proof(index)
    body = serialize_merkle_proof(proof)
    body["root"] = serialize_fr(LEDGER.root)
    return jsonify(body)


# ──────────────────────────────────────────────────────────────
# 지출
# ──────────────────────────────────────────────────────────────

@giftcard_bp.route("/spend", methods=["POST"])
def spend():
    """위트니스를 합성하고, 성공하면 원장에 반영한다.

    부분적인 결과는 내보내지 않는다: 합성이 실패하면 공개 신호 없이 400을 반환한다.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _bad_request("witness object is required")

    witness = deserialize_witness(data)
    signals = CIRCUIT.synthesize(witness)
    result = LEDGER.accept(signals)
    current_app.logger.info("spend accepted, change index %s", result["changeIndex"])

    return jsonify({
        "publicSignals": serialize_public_signals(signals),
        "changeIndex": result["changeIndex"],
        "root": serialize_fr(result["root"]),
    })


@giftcard_bp.route("/nullifier/<value>")
def nullifier_status(value):
    """널리파이어 사용 여부."""
    try:
        nullifier = deserialize_fr(value)
    except ValueError:
        return _bad_request("nullifier must be a field element")
    return jsonify({"nullifier": serialize_fr(nullifier), "spent": LEDGER.is_spent(nullifier)})
