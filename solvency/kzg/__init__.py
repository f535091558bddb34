"""
KZG 다항식 커밋먼트 계층: SRS, 커밋/열기/검증, 신뢰 설정, 열 다항식.
"""

from solvency.kzg.commitment import commit, create_opening_proof, verify_opening
from solvency.kzg.setup import (
    EvaluationDomain,
    ProvingKey,
    TrustedSetup,
    VerifyingKey,
    bind_setup,
    generate_setup_artifacts,
    parse_domain_exponent,
)
from solvency.kzg.srs import SRS
from solvency.kzg.witness import build_column_polynomials, column_evaluations
