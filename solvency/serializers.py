"""
직렬화/역직렬화 헬퍼
=====================

TinyDB와 JSON 응답에 담을 수 있는 형태로 객체를 변환한다.
FR, G1, G2, SRS, Entry, KZGInclusionProof, 머클 증명 등.

필드 원소와 좌표는 10진 문자열로, 바이트열은 0x 접두 16진 문자열로 표현한다.
"""

from py_ecc import bn128
from py_ecc.fields import bn128_FQ as FQ

from solvency.entry import Entry
from solvency.field import canonical_fr
from solvency.merkle_sum_tree import MerkleProof


# ─── 정수 파싱 ───

def parse_uint(value):
    """JSON 정수 또는 10진 숫자 문자열 → int.

    float(11888.9 등), bool, "1.5"·"-1"·" 7" 같은 문자열은 잘라내지 않고 ValueError.
    """
    if isinstance(value, bool):
        raise ValueError(f"정수가 아닙니다: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"음수는 허용하지 않습니다: {value}")
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    raise ValueError(f"정수가 아닙니다: {value!r}")


# ─── FR ───

def serialize_fr(val):
    """FR → str(int)"""
    return str(int(val))


def deserialize_fr(s):
    """str(int) → FR"""
    return canonical_fr(parse_uint(s))


# ─── G1 point ───

def serialize_g1(point):
    """G1 point → [str, str] or None"""
    if point is None:
        return None
    return [str(int(point[0])), str(int(point[1]))]


def deserialize_g1(data):
    """[str, str] or None → G1 point"""
    if data is None:
        return None
    return (FQ(parse_uint(data[0])), FQ(parse_uint(data[1])))


# ─── G2 point ───

def serialize_g2(point):
    """G2 point → [[str,str],[str,str]] or None"""
    if point is None:
        return None
    return [
        [str(int(point[0].coeffs[0])), str(int(point[0].coeffs[1]))],
        [str(int(point[1].coeffs[0])), str(int(point[1].coeffs[1]))]
    ]


def deserialize_g2(data):
    """[[str,str],[str,str]] or None → G2 point"""
    if data is None:
        return None
    return (
        bn128.FQ2([parse_uint(data[0][0]), parse_uint(data[0][1])]),
        bn128.FQ2([parse_uint(data[1][0]), parse_uint(data[1][1])])
    )


# ─── bytes / uint256 ───

def serialize_bytes(data):
    return "0x" + bytes(data).hex()


def deserialize_bytes(s):
    return bytes.fromhex(s.removeprefix("0x"))


def serialize_uint256(val):
    return "0x" + int(val).to_bytes(32, "big").hex()


def deserialize_uint256(s):
    return int(s, 16)


# ─── SRS ───

def serialize_srs(srs):
    """SRS → dict"""
    return {
        "g1_powers": [serialize_g1(p) for p in srs.g1_powers],
        "g2_powers": [serialize_g2(p) for p in srs.g2_powers],
        "max_degree": srs.max_degree,
    }


def deserialize_srs(data):
    """dict → SRS"""
    from solvency.kzg.srs import SRS
    return SRS(
        [deserialize_g1(p) for p in data["g1_powers"]],
        [deserialize_g2(p) for p in data["g2_powers"]],
        data["max_degree"],
    )


# ─── Entry ───

def serialize_entry(entry):
    return {
        "username": entry.username,
        "balances": [str(b) for b in entry.balances],
    }


def deserialize_entry(data):
    """dict → Entry. 단일 통화 형식 {"username", "balance"}도 허용한다."""
    if "balances" in data:
        balances = [parse_uint(b) for b in data["balances"]]
    else:
        balances = [parse_uint(data["balance"])]
    if not isinstance(data["username"], str):
        raise ValueError(f"username은 문자열이어야 합니다: {data['username']!r}")
    return Entry(data["username"], balances)


# ─── KZGInclusionProof ───

def serialize_inclusion_proof(proof):
    """KZGInclusionProof → {"public_inputs": [hex], "proof_calldata": hex}"""
    return {
        "public_inputs": [serialize_uint256(v) for v in proof.public_inputs],
        "proof_calldata": serialize_bytes(proof.proof_calldata),
    }


def deserialize_inclusion_proof(data):
    from solvency.round import KZGInclusionProof
    return KZGInclusionProof(
        proof_calldata=deserialize_bytes(data["proof_calldata"]),
        public_inputs=[deserialize_uint256(v) for v in data["public_inputs"]],
    )


# ─── MerkleProof ───

def serialize_merkle_proof(proof):
    return {
        "entry": serialize_entry(proof.entry),
        "root_hash": serialize_fr(proof.root_hash),
        "sibling_hashes": [serialize_fr(h) for h in proof.sibling_hashes],
        "sibling_sums": [serialize_fr(s) for s in proof.sibling_sums],
        "path_indices": [int(i) for i in proof.path_indices],
    }


def deserialize_merkle_proof(data):
    """dict → MerkleProof.

    Raises:
        KeyError, TypeError, ValueError: 필드가 없거나 형식이 잘못됐을 때
    """
    return MerkleProof(
        entry=deserialize_entry(data["entry"]),
        root_hash=deserialize_fr(data["root_hash"]),
        sibling_hashes=[deserialize_fr(h) for h in data["sibling_hashes"]],
        sibling_sums=[deserialize_fr(s) for s in data["sibling_sums"]],
        path_indices=[parse_uint(i) for i in data["path_indices"]],
    )
