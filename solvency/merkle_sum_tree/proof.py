"""
머클 합 트리 포함 증명 검증
============================

증명에 담긴 경로를 리프부터 루트까지 다시 계산하면서
해시와 잔고가 모두 일관적인지 확인한다.

**경로 표기**:
  path_indices[i] == 0 → 증명 대상 노드가 i 레벨에서 왼쪽 자식
  path_indices[i] == 1 → 증명 대상 노드가 오른쪽 자식
  (형제(sibling)의 위치가 아니라 증명 대상 노드의 위치를 나타낸다)

**종료 조건**:
  최종 노드의 해시 == root_hash  그리고  누적 잔고 == 최종 노드의 잔고.
  결합 함수가 잔고를 해시에 강하게 묶지 못하는 경우에도 두 조건을 모두 요구한다.

verify_proof는 외부(신뢰할 수 없는) 입력을 받으므로 예외를 던지지 않는다.
세 시퀀스의 길이가 다르거나 경로 표기가 정수 0/1이 아니거나 값이 잘못되면 False이다.
해시와 합은 [0, p) 범위의 정규 표현만 받는다. p 이상의 값을 조용히 축소하지 않는다.
"""

import logging

from solvency.errors import SolvencyError
from solvency.field import big_uint_to_fp, canonical_fr
from solvency.merkle_sum_tree.node import Node, create_leaf_node, create_middle_node

logger = logging.getLogger(__name__)

LEFT = 0
RIGHT = 1


class MerkleProof:
    """머클 합 트리 포함 증명. 외부 트리 생성기가 만들고 여기서는 검증만 한다."""

    __slots__ = ("_entry", "_root_hash", "_sibling_hashes", "_sibling_sums", "_path_indices")

    def __init__(self, entry, root_hash, sibling_hashes, sibling_sums, path_indices):
        self._entry = entry
        self._root_hash = root_hash
        self._sibling_hashes = tuple(sibling_hashes)
        self._sibling_sums = tuple(sibling_sums)
        self._path_indices = tuple(path_indices)

    @property
    def entry(self):
        return self._entry

    @property
    def root_hash(self):
        return self._root_hash

    @property
    def sibling_hashes(self):
        return self._sibling_hashes

    @property
    def sibling_sums(self):
        return self._sibling_sums

    @property
    def path_indices(self):
        return self._path_indices

    @property
    def depth(self):
        return len(self._sibling_hashes)


def _is_well_formed(proof):
    depth = len(proof.sibling_hashes)
    if len(proof.sibling_sums) != depth or len(proof.path_indices) != depth:
        return False
    return all(
        isinstance(i, int) and not isinstance(i, bool) and i in (LEFT, RIGHT)
        for i in proof.path_indices
    )


def verify_proof(proof):
    """머클 합 트리 포함 증명을 검증한다.

    Args:
        proof: MerkleProof

    Returns:
        bool: 해시와 잔고가 모두 루트와 일치하면 True
    """
    try:
        if not _is_well_formed(proof):
            logger.debug("Malformed merkle proof: mismatched lengths or path indices")
            return False

        node = create_leaf_node(proof.entry)
        balance = big_uint_to_fp(proof.entry.balance)

        for sibling_hash, sibling_sum, index in zip(
            proof.sibling_hashes, proof.sibling_sums, proof.path_indices
        ):
            sibling = Node(sibling_hash, sibling_sum)
            if index == LEFT:
                node = create_middle_node(node, sibling)
            else:
                node = create_middle_node(sibling, node)
            balance = balance + sibling.balance

        root_hash = canonical_fr(proof.root_hash)
        return root_hash == node.hash and balance == node.balance
    except (SolvencyError, TypeError, ValueError, AttributeError) as e:
        logger.debug("Merkle proof rejected: %s", e)
        return False
