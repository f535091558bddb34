"""
머클 합 트리 노드
==================

각 노드는 (hash, balance) 쌍이다.

  리프 : hash = H(identity, balance),            balance = 엔트리 잔고
  중간 : hash = H(left.hash, right.hash, Σ),     balance = Σ = left.balance + right.balance

H는 각 입력을 32바이트 빅엔디안으로 이어 붙인 SHA-256 값을 스칼라 필드로 축소한 것이다.
모든 값은 FR 원소이므로 잔고 합산도 필드 위에서 이루어진다.
"""

import hashlib

from solvency.field import CURVE_ORDER, FIELD_BYTES, FR, big_uint_to_fp, canonical_fr


def hash_to_field(*values):
    """FR/정수 값들을 SHA-256으로 해싱하여 FR 원소로 보낸다."""
    h = hashlib.sha256()
    for v in values:
        h.update((int(v) % CURVE_ORDER).to_bytes(FIELD_BYTES, "big"))
    return FR(int.from_bytes(h.digest(), "big") % CURVE_ORDER)


class Node:
    """머클 합 트리 노드. hash와 balance 모두 FR 원소."""

    __slots__ = ("_hash", "_balance")

    def __init__(self, hash, balance):
        self._hash = canonical_fr(hash)
        self._balance = canonical_fr(balance)

    @property
    def hash(self):
        return self._hash

    @property
    def balance(self):
        return self._balance

    def __eq__(self, other):
        if not isinstance(other, Node):
            return NotImplemented
        return self._hash == other._hash and self._balance == other._balance

    def __repr__(self):
        return f"Node(hash={int(self._hash)}, balance={int(self._balance)})"


def create_leaf_node(entry):
    """엔트리에서 리프 노드를 만든다 (단일 통화 엔트리)."""
    balance = big_uint_to_fp(entry.balance)
    identity = big_uint_to_fp(entry.username_as_big_uint())
    return Node(hash_to_field(identity, balance), balance)


def create_middle_node(left, right):
    balance = left.balance + right.balance
    return Node(hash_to_field(left.hash, right.hash, balance), balance)
