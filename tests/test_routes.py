"""
Flask 엔드포인트 테스트: 라운드 조회, 포함 증명 캐시, 커밋먼트 제출, 머클 증명 검증.
"""

import pytest

from app import build_round_from_csv, create_app
from round_routes import db_get, register_round
from solvency.errors import ProofSelfCheckError
from solvency.field import CURVE_ORDER
from solvency.round import Round
from solvency.serializers import (
    deserialize_bytes,
    deserialize_entry,
    deserialize_fr,
    deserialize_inclusion_proof,
    deserialize_merkle_proof,
    parse_uint,
    serialize_merkle_proof,
)

TIMESTAMP = 1700000000


@pytest.fixture
def app():
    """In-memory TinyDB app."""
    return create_app({"DB_PATH": None, "TESTING": True})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def registered_round(app, recording_signer, column_polys4, entries4, setup_k2):
    round_ = Round(recording_signer, column_polys4, entries4, setup_k2, TIMESTAMP)
    register_round(round_)
    return round_


# ─────────────────────────────────────────────────────────────────────
# 설정
# ─────────────────────────────────────────────────────────────────────

class TestConfig:
    """create_app 설정 우선순위 테스트."""

    def test_defaults(self, app):
        """Defaults apply and the DB is exposed on the app."""
        assert app.config["DISPATCH_TIMEOUT"] == 30.0
        assert "solvency_db" in app.extensions

    def test_prefixed_env(self, monkeypatch):
        """SOLVENCY_* environment variables override defaults."""
        monkeypatch.setenv("SOLVENCY_DISPATCH_TIMEOUT", "0.05")
        app = create_app({"DB_PATH": None})
        assert app.config["DISPATCH_TIMEOUT"] == 0.05

    def test_explicit_config_wins(self, monkeypatch):
        """The config argument overrides the environment."""
        monkeypatch.setenv("SOLVENCY_DISPATCH_TIMEOUT", "0.05")
        app = create_app({"DB_PATH": None, "DISPATCH_TIMEOUT": 2.0})
        assert app.config["DISPATCH_TIMEOUT"] == 2.0


# ─────────────────────────────────────────────────────────────────────
# /rounds
# ─────────────────────────────────────────────────────────────────────

class TestRoundRoutes:
    """라운드 목록 / 요약 테스트."""

    def test_list_empty(self, client):
        """No rounds registered yet."""
        assert client.get("/rounds").get_json() == {"rounds": []}

    def test_list_registered(self, client, registered_round):
        """Registered timestamps are listed."""
        assert client.get("/rounds").get_json() == {"rounds": [TIMESTAMP]}

    def test_summary(self, client, registered_round):
        """Summary carries sizes and the commitment hex."""
        res = client.get(f"/rounds/{TIMESTAMP}")
        assert res.status_code == 200
        data = res.get_json()
        assert data["n_users"] == 4
        assert data["n_currencies"] == 1
        assert deserialize_bytes(data["commitment"]) == registered_round.snapshot.commitment()

    def test_unknown_round(self, client, registered_round):
        """Unknown timestamps are 404."""
        assert client.get("/rounds/1").status_code == 404
        assert client.get("/rounds/1/proofs/0").status_code == 404


class TestProofRoute:
    """포함 증명 엔드포인트 테스트."""

    def test_proof(self, client, registered_round):
        """JSON proof decodes to the round's proof."""
        res = client.get(f"/rounds/{TIMESTAMP}/proofs/2")
        assert res.status_code == 200
        proof = deserialize_inclusion_proof(res.get_json())
        assert proof == registered_round.get_proof_of_inclusion(2)
        assert proof.public_inputs == ()

    def test_proof_is_cached(self, client, registered_round, monkeypatch):
        """A second request is served from TinyDB."""
        first = client.get(f"/rounds/{TIMESTAMP}/proofs/1").get_json()
        assert db_get(f"proof.{TIMESTAMP}.1") == first

        def fail(*args, **kwargs):
            raise AssertionError("proof regenerated")

        monkeypatch.setattr(registered_round, "get_proof_of_inclusion", fail)
        assert client.get(f"/rounds/{TIMESTAMP}/proofs/1").get_json() == first

    def test_reregister_drops_cached_proofs(self, client, registered_round,
                                            recording_signer, column_polys4, entries4, setup_k2):
        """Registering the same timestamp again clears its proof cache."""
        client.get(f"/rounds/{TIMESTAMP}/proofs/1")
        register_round(Round(recording_signer, column_polys4, entries4, setup_k2, TIMESTAMP))
        assert db_get(f"proof.{TIMESTAMP}.1") is None

    def test_out_of_range(self, client, registered_round):
        """Index past the last user is 404 with an error body."""
        res = client.get(f"/rounds/{TIMESTAMP}/proofs/4")
        assert res.status_code == 404
        assert "error" in res.get_json()

    def test_self_check_failure(self, client, registered_round, monkeypatch):
        """A failed self-check is a 500, not a crash."""
        def fail(user_index):
            raise ProofSelfCheckError(user_index, 1)

        monkeypatch.setattr(registered_round, "get_proof_of_inclusion", fail)
        res = client.get(f"/rounds/{TIMESTAMP}/proofs/0")
        assert res.status_code == 500


class TestDispatchRoute:
    """커밋먼트 제출 엔드포인트 테스트."""

    def test_dispatch(self, client, registered_round, recording_signer):
        """The signer receives (commitment, timestamp)."""
        res = client.post(f"/rounds/{TIMESTAMP}/dispatch")
        assert res.status_code == 200
        assert res.get_json() == {"timestamp": TIMESTAMP, "dispatched": True}
        assert recording_signer.submissions == [(registered_round.snapshot.commitment(), TIMESTAMP)]

    def test_signer_failure(self, client, failing_signer, column_polys4, entries4, setup_k2):
        """Signer errors map to 502."""
        register_round(Round(failing_signer, column_polys4, entries4, setup_k2, TIMESTAMP))
        assert client.post(f"/rounds/{TIMESTAMP}/dispatch").status_code == 502

    def test_timeout_from_config(self, slow_signer, column_polys4, entries4, setup_k2):
        """DISPATCH_TIMEOUT bounds the signer call."""
        app = create_app({"DB_PATH": None, "DISPATCH_TIMEOUT": 0.05})
        register_round(Round(slow_signer, column_polys4, entries4, setup_k2, TIMESTAMP))
        assert app.test_client().post(f"/rounds/{TIMESTAMP}/dispatch").status_code == 502

    def test_unknown_round(self, client):
        """Unknown timestamps are 404."""
        assert client.post("/rounds/1/dispatch").status_code == 404


# ─────────────────────────────────────────────────────────────────────
# /merkle
# ─────────────────────────────────────────────────────────────────────

class TestMerkleVerifyRoute:
    """머클 증명 검증 엔드포인트 테스트."""

    def test_valid(self, client, merkle_proofs):
        """An honest proof is valid."""
        res = client.post("/merkle/verify", json=serialize_merkle_proof(merkle_proofs[4]))
        assert res.status_code == 200
        assert res.get_json() == {"valid": True}

    def test_tampered(self, client, merkle_proofs):
        """A changed sibling sum is invalid."""
        body = serialize_merkle_proof(merkle_proofs[4])
        body["sibling_sums"][1] = str(int(body["sibling_sums"][1]) + 1)
        assert client.post("/merkle/verify", json=body).get_json() == {"valid": False}

    def test_bad_path_indicator_is_invalid_not_error(self, client, merkle_proofs):
        """A well-typed but wrong path indicator is just invalid."""
        body = serialize_merkle_proof(merkle_proofs[4])
        body["path_indices"][0] = 7
        assert client.post("/merkle/verify", json=body).get_json() == {"valid": False}

    def test_fractional_balance(self, client, merkle_proofs):
        """11888.9 is not truncated to the committed 11888."""
        body = serialize_merkle_proof(merkle_proofs[0])
        body["entry"] = {"username": body["entry"]["username"], "balance": 11888.9}
        res = client.post("/merkle/verify", json=body)
        assert res.status_code == 400

    def test_fractional_path_indices(self, client, merkle_proofs):
        """Path indicators 0.4 / 1.4 are not truncated to 0 / 1."""
        body = serialize_merkle_proof(merkle_proofs[0])
        body["path_indices"] = [i + 0.4 for i in body["path_indices"]]
        assert client.post("/merkle/verify", json=body).status_code == 400

    @pytest.mark.parametrize("field, value", [
        ("balance", True),
        ("balance", "11888.0"),
        ("balance", -11888),
        ("username", 42),
    ])
    def test_bad_entry_values(self, client, merkle_proofs, field, value):
        """Booleans, decimal strings, negatives and non-string names are 400."""
        body = serialize_merkle_proof(merkle_proofs[0])
        entry = {"username": body["entry"]["username"], "balance": 11888}
        entry[field] = value
        body["entry"] = entry
        assert client.post("/merkle/verify", json=body).status_code == 400

    def test_root_at_field_order(self, client, merkle_proofs):
        """root + p as a decimal string is rejected, not reduced."""
        body = serialize_merkle_proof(merkle_proofs[0])
        body["root_hash"] = str(int(body["root_hash"]) + CURVE_ORDER)
        assert client.post("/merkle/verify", json=body).status_code == 400

    @pytest.mark.parametrize("body", [
        [1, 2, 3],
        {"entry": {"username": "alice"}},
        {"entry": {"username": "alice", "balance": "x"}, "root_hash": "1",
         "sibling_hashes": [], "sibling_sums": [], "path_indices": []},
    ])
    def test_malformed(self, client, body):
        """Wrong shapes and missing fields are 400."""
        assert client.post("/merkle/verify", json=body).status_code == 400

    def test_not_json(self, client):
        """A non-JSON body is 400."""
        res = client.post("/merkle/verify", data="nope", content_type="text/plain")
        assert res.status_code == 400


class TestStrictDeserialization:
    """외부 JSON 값 파싱 테스트."""

    @pytest.mark.parametrize("value, expected", [(0, 0), (42, 42), ("42", 42), ("007", 7)])
    def test_parse_uint_accepts(self, value, expected):
        """Non-negative ints and decimal digit strings."""
        assert parse_uint(value) == expected

    @pytest.mark.parametrize("value", [1.5, 1.0, True, False, "-1", "1.0", " 7", "", "0x10", None])
    def test_parse_uint_rejects(self, value):
        """Everything else raises ValueError."""
        with pytest.raises(ValueError):
            parse_uint(value)

    def test_deserialize_fr_range(self):
        """Field elements must be below p."""
        assert int(deserialize_fr(str(CURVE_ORDER - 1))) == CURVE_ORDER - 1
        with pytest.raises(ValueError):
            deserialize_fr(str(CURVE_ORDER))

    def test_deserialize_entry_balances(self):
        """Multi-currency form is parsed strictly as well."""
        assert deserialize_entry({"username": "a", "balances": ["1", 2]}).balances == (1, 2)
        with pytest.raises(ValueError):
            deserialize_entry({"username": "a", "balances": ["1", 2.5]})

    def test_merkle_proof_roundtrip(self, merkle_proofs):
        """Serialized proofs deserialize to a verifying proof."""
        proof = deserialize_merkle_proof(serialize_merkle_proof(merkle_proofs[7]))
        assert proof.path_indices == merkle_proofs[7].path_indices
        assert proof.root_hash == merkle_proofs[7].root_hash


class TestBuildRoundFromCsv:
    """CSV 원장 → Round 테스트."""

    def test_build(self, tmp_path, srs_k2, recording_signer):
        """A 3-user ledger on a k=2 setup yields 128-byte proofs."""
        csv_path = tmp_path / "entry_3.csv"
        csv_path.write_text("username,balance_ETH_ETH\nalice,10\nbob,20\ncarol,30\n")
        params_path = str(tmp_path / "hermez-raw-2")
        srs_k2.save(params_path)

        round_ = build_round_from_csv(csv_path, params_path, recording_signer, timestamp=42)
        assert round_.get_timestamp() == 42
        assert round_.snapshot.n_columns == 2
        assert len(round_.get_proof_of_inclusion(2).proof_calldata) == 128
