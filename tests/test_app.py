"""
Flask 앱 / Blueprint 테스트.

MemoryStorage 원장과 깊이 4 회로로 앱을 만들고 test client로 엔드포인트를 호출한다.
"""

import pytest

from app import create_app
from giftcard.note import Note, Witness
from giftcard.poseidon import poseidon
from giftcard.serializers import deserialize_merkle_proof, serialize_fr

from conftest import (
    SMALL_DEPTH, OLD_SECRET, OLD_SALT, NEW_SECRET, NEW_SALT, EPHEMERAL_SCALAR,
)


@pytest.fixture
def client():
    app = create_app({"DB_PATH": ":memory:", "TREE_DEPTH": SMALL_DEPTH, "TESTING": True})
    return app.test_client()


def _deposit(client, note):
    resp = client.post("/giftcard/deposit", json={"commitment": serialize_fr(note.commitment())})
    assert resp.status_code == 201
    return resp.get_json()["index"]


def _witness_body(client, note, index, withdraw):
    path = client.get(f"/giftcard/path/{index}").get_json()
    witness = Witness.spend(note, withdraw, NEW_SECRET, NEW_SALT, EPHEMERAL_SCALAR,
                            deserialize_merkle_proof(path))
    return witness.to_input_dict()


# ─────────────────────────────────────────────────────────────────────
# 조회
# ─────────────────────────────────────────────────────────────────────

class TestInfo:
    """회로 / 트리 정보."""

    def test_index(self, client):
        data = client.get("/").get_json()
        assert data["service"] == "giftcard"
        assert data["depth"] == SMALL_DEPTH

    def test_circuit_info(self, client):
        data = client.get("/giftcard/circuit").get_json()
        assert data["depth"] == SMALL_DEPTH
        assert data["publicSignals"] == [
            "root", "nullifier", "withdrawAmount", "newCommitment",
            "ephemeralPublicKeyX", "ephemeralPublicKeyY",
        ]
        assert data["numPrivateInputs"] == 7 + 2 * SMALL_DEPTH
        assert data["rangeCheckAmounts"] is True

    def test_empty_tree(self, client):
        data = client.get("/giftcard/tree").get_json()
        assert data["leaves"] == 0
        assert data["depth"] == SMALL_DEPTH


# ─────────────────────────────────────────────────────────────────────
# 예치 / 경로
# ─────────────────────────────────────────────────────────────────────

class TestDeposit:
    """예치 엔드포인트."""

    def test_deposit(self, client):
        resp = client.post("/giftcard/deposit", json={"commitment": "1111"})
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["index"] == 0
        assert client.get("/giftcard/tree").get_json()["root"] == body["root"]

    def test_deposit_hex(self, client):
        resp = client.post("/giftcard/deposit", json={"commitment": "0x457"})
        assert resp.status_code == 201

    def test_deposit_missing_commitment(self, client):
        resp = client.post("/giftcard/deposit", json={})
        assert resp.status_code == 400

    def test_deposit_garbage(self, client):
        resp = client.post("/giftcard/deposit", json={"commitment": "abc"})
        assert resp.status_code == 400

    def test_path(self, client):
        client.post("/giftcard/deposit", json={"commitment": "1111"})
        client.post("/giftcard/deposit", json={"commitment": "2222"})
        data = client.get("/giftcard/path/1").get_json()
        assert data["pathIndices"] == [1, 0, 0, 0]
        assert len(data["pathElements"]) == SMALL_DEPTH
        assert data["pathElements"][0] == "1111"

    def test_path_unknown_leaf(self, client):
        resp = client.get("/giftcard/path/5")
        assert resp.status_code == 404


# ─────────────────────────────────────────────────────────────────────
# 지출
# ─────────────────────────────────────────────────────────────────────

class TestSpend:
    """지출 엔드포인트."""

    def test_spend_then_replay(self, client):
        note = Note(OLD_SECRET, OLD_SALT, 100)
        index = _deposit(client, note)
        body = _witness_body(client, note, index, 30)

        resp = client.post("/giftcard/spend", json=body)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["publicSignals"][1] == serialize_fr(poseidon([OLD_SECRET, OLD_SALT]))
        assert data["publicSignals"][2] == "30"
        assert data["publicSignals"][3] == serialize_fr(poseidon([NEW_SECRET, NEW_SALT, 70]))
        assert data["changeIndex"] == 1

        resp = client.post("/giftcard/spend", json=body)
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "nullifier already spent"

    def test_full_withdrawal_has_no_change(self, client):
        note = Note(OLD_SECRET, OLD_SALT, 50)
        index = _deposit(client, note)
        resp = client.post("/giftcard/spend", json=_witness_body(client, note, index, 50))
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["publicSignals"][3] == "0"
        assert data["changeIndex"] is None

    def test_overdraw(self, client):
        note = Note(OLD_SECRET, OLD_SALT, 10)
        index = _deposit(client, note)
        resp = client.post("/giftcard/spend", json=_witness_body(client, note, index, 11))
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "unsatisfiable"}

    def test_unknown_root(self, client):
        """루트 계산에 쓰인 트리가 원장 트리와 다르면 409."""
        note = Note(OLD_SECRET, OLD_SALT, 100)
        index = _deposit(client, note)
        body = _witness_body(client, note, index, 30)
        body["pathElements"][0] = "424242"
        resp = client.post("/giftcard/spend", json=body)
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "unknown root"

    def test_not_json(self, client):
        resp = client.post("/giftcard/spend", data="hello", content_type="text/plain")
        assert resp.status_code == 400

    def test_missing_witness_key(self, client):
        note = Note(OLD_SECRET, OLD_SALT, 100)
        index = _deposit(client, note)
        body = _witness_body(client, note, index, 30)
        del body["newSalt"]
        resp = client.post("/giftcard/spend", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid witness"

    def test_wrong_path_length(self, client):
        note = Note(OLD_SECRET, OLD_SALT, 100)
        index = _deposit(client, note)
        body = _witness_body(client, note, index, 30)
        body["pathElements"].append("0")
        body["pathIndices"].append("0")
        resp = client.post("/giftcard/spend", json=body)
        assert resp.status_code == 400


class TestNullifier:
    """널리파이어 조회."""

    def test_status(self, client):
        nullifier = serialize_fr(poseidon([OLD_SECRET, OLD_SALT]))
        assert client.get(f"/giftcard/nullifier/{nullifier}").get_json()["spent"] is False

        note = Note(OLD_SECRET, OLD_SALT, 100)
        index = _deposit(client, note)
        client.post("/giftcard/spend", json=_witness_body(client, note, index, 30))

        data = client.get(f"/giftcard/nullifier/{nullifier}").get_json()
        assert data["spent"] is True
        assert data["nullifier"] == nullifier

    def test_garbage(self, client):
        resp = client.get("/giftcard/nullifier/xyz")
        assert resp.status_code == 400


# ─────────────────────────────────────────────────────────────────────
# 가득 찬 누적기 / 설정 검증
# ─────────────────────────────────────────────────────────────────────

class TestFullAccumulator:
    """깊이 1 (잎 2개) 원장."""

    @pytest.fixture
    def full_client(self):
        app = create_app({"DB_PATH": ":memory:", "TREE_DEPTH": 1, "TESTING": True})
        return app.test_client()

    def test_deposit_conflict(self, full_client):
        full_client.post("/giftcard/deposit", json={"commitment": "1111"})
        full_client.post("/giftcard/deposit", json={"commitment": "2222"})
        resp = full_client.post("/giftcard/deposit", json={"commitment": "3333"})
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "accumulator full"

    def test_spend_with_change_keeps_nullifier_unspent(self, full_client):
        note = Note(OLD_SECRET, OLD_SALT, 100)
        index = _deposit(full_client, note)
        full_client.post("/giftcard/deposit", json={"commitment": "2222"})

        resp = full_client.post("/giftcard/spend",
                                json=_witness_body(full_client, note, index, 30))
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "accumulator full"

        nullifier = serialize_fr(note.nullifier())
        assert full_client.get(f"/giftcard/nullifier/{nullifier}").get_json()["spent"] is False


class TestConfig:
    """잘못된 설정은 앱 생성 시점에 거부된다."""

    @pytest.mark.parametrize("override", [
        {"ROOT_HISTORY_SIZE": 0},
        {"AMOUNT_BITS": 253},
    ])
    def test_invalid_values(self, override):
        config = {"DB_PATH": ":memory:", "TREE_DEPTH": 2}
        config.update(override)
        with pytest.raises(ValueError):
            create_app(config)

    def test_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("GIFTCARD_TREE_DEPTH", "2")
        app = create_app({"DB_PATH": ":memory:"})
        assert app.config["TREE_DEPTH"] == 2
