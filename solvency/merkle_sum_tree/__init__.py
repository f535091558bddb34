"""
머클 합 트리: 노드 결합 규칙과 포함 증명 검증.

트리 생성은 외부 구성요소의 몫이고, 이 패키지는 검증만 제공한다.
"""

from solvency.merkle_sum_tree.node import (
    Node,
    create_leaf_node,
    create_middle_node,
    hash_to_field,
)
from solvency.merkle_sum_tree.proof import LEFT, RIGHT, MerkleProof, verify_proof
