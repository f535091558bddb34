"""
KZG 다항식 커밋먼트 스킴
=========================

Kate-Zaverucha-Goldberg (KZG) 커밋먼트. 스냅샷의 각 열 다항식에 커밋하고,
사용자 행(row)의 도메인 점에서 그 값을 선택적으로 연다.

**커밋먼트**:
  C = p(τ)·G1 = Σᵢ cᵢ · [τⁱ]₁

**열기 증명 (Opening Proof)**:
  "p(z) = y" 임을 증명:
  1. 몫 다항식 q(x) = (p(x) - y) / (x - z)
  2. 증명 π = q(τ)·G1
  3. 검증: e(C - y·G1, G2) == e(π, τ·G2 - z·G2)

  create_opening_proof는 주장값 y를 그대로 받아 나머지를 버리는
  나이브(naive) 방식으로 몫을 계산한다. y가 p(z)와 다르면 π는
  검증을 통과하지 못한다. 생성 직후의 자체 검증이 이를 잡아낸다.

사용 예시:
    >>> C = commit(poly, srs)
    >>> pi = create_opening_proof(poly, omega ** 2, FR(30), srs)
    >>> verify_opening(C, pi, omega ** 2, FR(30), srs)  # True
"""

from solvency.field import FR, G1, ec_mul, ec_add, ec_neg, ec_pairing
from solvency.polynomial import Polynomial, kate_div


def commit(poly, srs):
    """다항식을 KZG 커밋한다.

    Args:
        poly: 커밋할 다항식 (Polynomial)
        srs: SRS

    Returns:
        G1 점: 커밋먼트 C (영 다항식이면 무한원점 None)

    Raises:
        ValueError: 다항식 차수가 SRS 최대 차수를 초과할 때
    """
    if poly.degree > srs.max_degree:
        raise ValueError(
            f"다항식 차수 {poly.degree}가 SRS 최대 차수 {srs.max_degree}를 초과합니다"
        )

    result = None  # 무한원점 (항등원)
    for i, coeff in enumerate(poly.coeffs):
        if coeff == FR(0):
            continue
        term = ec_mul(srs.g1_powers[i], coeff)
        result = ec_add(result, term)

    return result


def create_opening_proof(poly, point, evaluation, srs):
    """p(point) = evaluation 에 대한 열기 증명을 만든다.

    Args:
        poly: 열어볼 다항식 p(x)
        point: 평가 점 z
        evaluation: 주장하는 평가값 y
        srs: SRS

    Returns:
        G1 점: π = commit((p(x) - y) / (x - z))
    """
    if not isinstance(evaluation, FR):
        evaluation = FR(evaluation)
    quotient = kate_div(poly - Polynomial([evaluation]), point)
    return commit(quotient, srs)


def verify_opening(commitment, proof, point, evaluation, srs):
    """KZG 열기 증명을 검증한다.

    검증 방정식 (페어링):
        e(C - y·G1, G2) == e(π, τ·G2 - z·G2)

    Args:
        commitment: 다항식 커밋먼트 C (G1 점)
        proof: 열기 증명 π (G1 점)
        point: 평가 점 z (FR 원소)
        evaluation: 주장하는 평가값 y = p(z) (FR 원소)
        srs: SRS (g2_powers만 사용)

    Returns:
        bool: 검증 성공 여부
    """
    if not isinstance(point, FR):
        point = FR(point)
    if not isinstance(evaluation, FR):
        evaluation = FR(evaluation)

    # [τ-z]₂
    tau_g2 = srs.g2_powers[1]
    z_g2 = ec_mul(srs.g2_powers[0], point)
    tau_minus_z_g2 = ec_add(tau_g2, ec_neg(z_g2))

    # C - y·G1
    y_g1 = ec_mul(G1, evaluation)
    c_minus_y = ec_add(commitment, ec_neg(y_g1))

    lhs = ec_pairing(srs.g2_powers[0], c_minus_y)
    rhs = ec_pairing(tau_minus_z_g2, proof)

    return lhs == rhs
