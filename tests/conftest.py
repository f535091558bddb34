"""
공유 fixture: 작은 SRS/신뢰 설정, 4명 엔트리 스냅샷, 머클 합 트리 생성기, 테스트용 서명자.
"""

import asyncio

import pytest

from solvency.entry import Entry
from solvency.kzg import SRS, bind_setup, build_column_polynomials
from solvency.merkle_sum_tree import MerkleProof, create_leaf_node, create_middle_node
from solvency.round import Snapshot


# ─────────────────────────────────────────────────────────────────────
# KZG
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def srs_k2():
    """도메인 크기 4 (k=2)용 SRS (max_degree=3)."""
    return SRS.generate(max_degree=3, seed=42)


@pytest.fixture(scope="session")
def setup_k2(srs_k2):
    """k=2, 통화 1개 (열 2개) 신뢰 설정."""
    return bind_setup(srs_k2, 2, 1, provenance="dev-2")


@pytest.fixture(scope="session")
def entries4():
    """잔고 [10, 20, 30, 40], 통화 1개."""
    return [
        Entry("alice", [10]),
        Entry("bob", [20]),
        Entry("carol", [30]),
        Entry("dave", [40]),
    ]


@pytest.fixture(scope="session")
def column_polys4(entries4, setup_k2):
    return build_column_polynomials(entries4, 1, setup_k2.domain)


@pytest.fixture(scope="session")
def snapshot4(column_polys4, entries4, setup_k2):
    return Snapshot(column_polys4, entries4, setup_k2)


# ─────────────────────────────────────────────────────────────────────
# 서명자
# ─────────────────────────────────────────────────────────────────────

class RecordingSigner:
    """제출된 (commitment, timestamp)를 기록한다."""

    def __init__(self):
        self.submissions = []

    async def submit_commitment(self, commitment, timestamp):
        self.submissions.append((commitment, timestamp))
        return "0xtxhash"


class FailingSigner:
    async def submit_commitment(self, commitment, timestamp):
        raise RuntimeError("nonce too low")


class SlowSigner:
    async def submit_commitment(self, commitment, timestamp):
        await asyncio.sleep(5)


@pytest.fixture
def recording_signer():
    return RecordingSigner()


@pytest.fixture
def failing_signer():
    return FailingSigner()


@pytest.fixture
def slow_signer():
    return SlowSigner()


# ─────────────────────────────────────────────────────────────────────
# 머클 합 트리 (외부 트리 생성기 역할)
# ─────────────────────────────────────────────────────────────────────

def build_merkle_sum_tree(entries):
    """리프 수가 2의 거듭제곱인 균형 트리를 만든다. levels[0] = 리프, levels[-1] = [루트]."""
    assert len(entries) & (len(entries) - 1) == 0
    level = [create_leaf_node(e) for e in entries]
    levels = [level]
    while len(level) > 1:
        level = [create_middle_node(level[i], level[i + 1]) for i in range(0, len(level), 2)]
        levels.append(level)
    return levels


def make_merkle_proof(levels, entries, index):
    entry = entries[index]
    sibling_hashes, sibling_sums, path_indices = [], [], []
    for level in levels[:-1]:
        sibling = level[index ^ 1]
        sibling_hashes.append(sibling.hash)
        sibling_sums.append(sibling.balance)
        path_indices.append(index & 1)
        index //= 2
    return MerkleProof(
        entry=entry,
        root_hash=levels[-1][0].hash,
        sibling_hashes=sibling_hashes,
        sibling_sums=sibling_sums,
        path_indices=path_indices,
    )


@pytest.fixture(scope="session")
def merkle_entries():
    names = ["dxGaEAii", "MBlfbBGI", "lAhWlEWZ", "nuZweYtO",
             "gbdSwiuY", "RZNneNuP", "YsscHXkp", "RkLzkDun"]
    balances = [11888, 67823, 18651, 2087, 97870, 83324, 60246, 79731]
    return [Entry(n, [b]) for n, b in zip(names, balances)]


@pytest.fixture(scope="session")
def merkle_tree(merkle_entries):
    return build_merkle_sum_tree(merkle_entries)


@pytest.fixture(scope="session")
def merkle_proofs(merkle_tree, merkle_entries):
    """리프마다 하나씩 포함 증명."""
    return [make_merkle_proof(merkle_tree, merkle_entries, i) for i in range(len(merkle_entries))]

