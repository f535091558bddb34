"""
기반 모듈: 유한체(Finite Field), 타원곡선 연산, 필드 인코딩
============================================================

이 모듈은 KZG 커밋먼트와 머클 합 트리 전체에서 사용되는 기본 대수적 도구를 정의한다.

**유한체 FR**:
  bn128(BN254) 타원곡선의 스칼라 필드. 사용자 식별자와 잔고는 모두
  이 필드의 원소로 인코딩되어 다항식 계수/평가값, 머클 노드 값이 된다.
  - 위수(order) p ≈ 2^254, 소수체(prime field)
  - p - 1 = 2^28 × m (m은 홀수) → 최대 2^28차 단위근(root of unity)을 지원

**필드 인코딩 (FieldEncoding)**:
  임의 정밀도의 음이 아닌 정수(사용자 이름을 빅엔디안으로 읽은 값, 잔고)를
  p로 나눈 나머지와 합동인 유일한 FR 원소로 보낸다. 전사적(total)이며
  실패하지 않는다. p 이상의 값은 조용히 축소되므로, 잔고 상한이 필드
  용량보다 작다는 것은 호출자가 보장해야 하는 전제 조건이다.

**타원곡선 연산**:
  KZG 커밋먼트와 검증을 위한 G1, G2 그룹 연산 및 페어링.

사용 예시:
    >>> from solvency.field import big_uint_to_fp, get_root_of_unity
    >>> big_uint_to_fp(30)       # FR(30)
    >>> omega = get_root_of_unity(4)
    >>> omega ** 4 == FR(1)      # True
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import bn128


# ─────────────────────────────────────────────────────────────────────
# 유한체(Finite Field) FR
# ─────────────────────────────────────────────────────────────────────

class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    py_ecc의 FQ 클래스를 상속하여 +, -, *, /, ** 등의 필드 연산을 제공한다.

    예시:
        >>> x = FR(3)
        >>> x * x          # FR(9)
        >>> FR(1) / FR(3)   # 3의 모듈러 역원
    """
    field_modulus = bn128.curve_order


# 곡선 위수 (필드 크기)
CURVE_ORDER = bn128.curve_order

# 필드 원소 / 좌표 하나의 직렬화 폭 (바이트)
FIELD_BYTES = 32


def big_uint_to_fp(value):
    """음이 아닌 임의 정밀도 정수를 FR 원소로 인코딩한다.

    value ≡ FR(value) (mod p). 같은 입력에 대해 항상 같은 원소를 돌려준다.

    Args:
        value: 음이 아닌 정수 (사용자 식별자 또는 잔고)

    Returns:
        FR: value mod p
    """
    return FR(int(value) % CURVE_ORDER)


def fits_in_field(value):
    """value가 축소 없이 FR에 들어가는지 확인한다 (0 ≤ value < p)."""
    return 0 <= value < CURVE_ORDER


def canonical_fr(value):
    """외부에서 받은 값을 축소 없이 FR 원소로 받아들인다.

    FR 원소는 그대로, 정수는 0 ≤ value < p 일 때만 받는다.
    bool, float, 문자열, p 이상의 정수는 ValueError.
    """
    if isinstance(value, FR):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"필드 원소는 정수여야 합니다: {value!r}")
    if not fits_in_field(value):
        raise ValueError(f"필드 원소 범위 [0, p)를 벗어났습니다: {value}")
    return FR(value)


# ─────────────────────────────────────────────────────────────────────
# 타원곡선 상수 및 연산
# ─────────────────────────────────────────────────────────────────────

# G1 그룹 생성자 (generator)
G1 = bn128.G1

# G2 그룹 생성자 (generator)
G2 = bn128.G2


def ec_mul(point, scalar):
    """타원곡선 스칼라 곱셈: scalar · point.

    Args:
        point: G1 또는 G2 위의 점
        scalar: 정수 또는 FR 원소

    Returns:
        scalar · point (같은 그룹의 점)
    """
    if isinstance(scalar, FR):
        scalar = int(scalar)
    return bn128.multiply(point, scalar % CURVE_ORDER)


def ec_add(p1, p2):
    """타원곡선 점 덧셈: p1 + p2."""
    return bn128.add(p1, p2)


def ec_neg(point):
    """타원곡선 점의 역원 (negation): -point."""
    return bn128.neg(point)


def ec_pairing(g2_point, g1_point):
    """쌍선형 페어링 e(G1, G2) → GT.

    주의:
        py_ecc.bn128.pairing의 인자 순서는 (G2, G1)이다.
        한쪽이 무한원점(None)이면 GT의 항등원을 돌려준다.
    """
    if g2_point is None or g1_point is None:
        return bn128.FQ12.one()
    return bn128.pairing(g2_point, g1_point)


def g1_to_bytes(point):
    """G1 점을 x ‖ y (각 32바이트 빅엔디안) 64바이트로 직렬화한다.

    온체인 검증기는 빅엔디안 좌표를 기대한다. 무한원점은 64바이트의 0이다.
    """
    if point is None:
        return b"\x00" * (2 * FIELD_BYTES)
    x, y = point
    return int(x).to_bytes(FIELD_BYTES, "big") + int(y).to_bytes(FIELD_BYTES, "big")


def g1_from_bytes(data):
    """g1_to_bytes의 역변환. 길이가 64가 아니면 ValueError."""
    if len(data) != 2 * FIELD_BYTES:
        raise ValueError(f"G1 점은 {2 * FIELD_BYTES}바이트여야 합니다: {len(data)}")
    if data == b"\x00" * (2 * FIELD_BYTES):
        return None
    x = int.from_bytes(data[:FIELD_BYTES], "big")
    y = int.from_bytes(data[FIELD_BYTES:], "big")
    return (FQ(x), FQ(y))


# ─────────────────────────────────────────────────────────────────────
# 단위근 (Roots of Unity)
# ─────────────────────────────────────────────────────────────────────

# 2-adicity: p - 1 = 2^28 × m
MAX_DOMAIN_EXPONENT = 28


def get_root_of_unity(n):
    """n차 원시 단위근(primitive n-th root of unity) ω를 반환한다.

    생성자 g = FR(5)를 사용하여 ω = g^((p-1)/n)으로 계산한다.
    도메인의 i번째 행(사용자 i)은 점 ω^i에 대응한다.

    Args:
        n: 단위근의 차수 (2의 거듭제곱이어야 하며, ≤ 2^28)

    Returns:
        FR: n차 원시 단위근

    Raises:
        ValueError: n이 2의 거듭제곱이 아니거나 2^28을 초과할 때
    """
    if n < 1 or (n & (n - 1)) != 0:
        raise ValueError(f"n은 2의 거듭제곱이어야 합니다: {n}")
    if n > (1 << MAX_DOMAIN_EXPONENT):
        raise ValueError(f"n은 2^{MAX_DOMAIN_EXPONENT} 이하여야 합니다: {n}")
    if n == 1:
        return FR(1)

    # ω^n = g^(p-1) = 1 (페르마 소정리)
    g = FR(5)
    exponent = (CURVE_ORDER - 1) // n
    return g ** exponent
