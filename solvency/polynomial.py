"""
열 다항식과 KZG 몫 계산
========================

스냅샷의 열(column) 다항식은 계수 표현으로 들고 다닌다.
f_j(x) = c₀ + c₁·x + ... + c_{n-1}·x^{n-1},  f_j(ω^i) = 사용자 i의 j번째 열 값.

**보간 (from_evaluations)**:
  도메인 {1, ω, ..., ω^(n-1)} 위의 평가값을 역 NTT로 계수로 바꾼다.
  NTT는 비트 반전 순서로 재배열한 뒤 제자리(in-place)에서 버터플라이를 돈다.

**kate_div**:
  (x - z)로의 합성 나눗셈. 나머지는 버린다.
  f(z) = y일 때 (f(x) - y) / (x - z)는 나누어 떨어지므로,
  잘못된 y를 넣으면 몫이 틀려지고 그 결과는 KZG 검증에서 드러난다.

사용 예시:
    >>> omega = get_root_of_unity(4)
    >>> f = Polynomial.from_evaluations([FR(10), FR(20), FR(30), FR(40)], omega)
    >>> f.evaluate(omega ** 2)  # FR(30)
"""

from solvency.field import FR


class Polynomial:
    """유한체 FR 위의 다항식. coeffs[i]는 x^i의 계수."""

    def __init__(self, coeffs=None):
        self.coeffs = [c if isinstance(c, FR) else FR(c) for c in coeffs or ()]
        if not self.coeffs:
            self.coeffs = [FR(0)]
        self._trim()

    def _trim(self):
        while len(self.coeffs) > 1 and self.coeffs[-1] == FR(0):
            self.coeffs.pop()

    @property
    def degree(self):
        """차수. 영 다항식은 0으로 둔다."""
        return len(self.coeffs) - 1

    def is_zero(self):
        return self.degree == 0 and self.coeffs[0] == FR(0)

    def evaluate(self, point):
        """Horner 방식으로 p(point)를 계산한다."""
        if not isinstance(point, FR):
            point = FR(point)
        result = FR(0)
        for coeff in reversed(self.coeffs):
            result = result * point + coeff
        return result

    def __sub__(self, other):
        if isinstance(other, (int, FR)):
            other = Polynomial([other])
        width = max(len(self.coeffs), len(other.coeffs))
        padded_a = self.coeffs + [FR(0)] * (width - len(self.coeffs))
        padded_b = other.coeffs + [FR(0)] * (width - len(other.coeffs))
        return Polynomial([a - b for a, b in zip(padded_a, padded_b)])

    def __eq__(self, other):
        if isinstance(other, (int, FR)):
            other = Polynomial([other])
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self.coeffs == other.coeffs

    @classmethod
    def zero(cls):
        return cls([FR(0)])

    @classmethod
    def from_evaluations(cls, evals, omega):
        """도메인 위의 평가값 [p(1), p(ω), ..., p(ω^(n-1))]을 보간한다.

        Args:
            evals: 길이 n (2의 거듭제곱)의 평가값
            omega: n차 원시 단위근

        Returns:
            Polynomial: 차수 n-1 이하
        """
        return cls(ifft(evals, omega))


# ─────────────────────────────────────────────────────────────────────
# NTT
# ─────────────────────────────────────────────────────────────────────

def _bit_reversed(values):
    n = len(values)
    bits = n.bit_length() - 1
    return [values[int(format(i, f"0{bits}b")[::-1], 2) if bits else 0] for i in range(n)]


def fft(coeffs, omega):
    """계수 → 도메인 평가값. 길이는 2의 거듭제곱이어야 한다.

    비트 반전 순서로 놓은 뒤 길이 2, 4, ..., n 블록 단위로 버터플라이를 적용한다.
    """
    n = len(coeffs)
    if n & (n - 1):
        raise ValueError(f"NTT 길이는 2의 거듭제곱이어야 합니다: {n}")
    values = [c if isinstance(c, FR) else FR(c) for c in _bit_reversed(list(coeffs))]

    size = 2
    while size <= n:
        # 이 단계의 size차 단위근
        step = omega ** (n // size)
        half = size // 2
        for start in range(0, n, size):
            twiddle = FR(1)
            for k in range(start, start + half):
                t = twiddle * values[k + half]
                values[k], values[k + half] = values[k] + t, values[k] - t
                twiddle = twiddle * step
        size *= 2
    return values


def ifft(evals, omega):
    """도메인 평가값 → 계수. ω⁻¹로 NTT를 돌리고 n⁻¹을 곱한다."""
    n_inv = FR(1) / FR(len(evals))
    return [v * n_inv for v in fft(evals, FR(1) / omega)]


# ─────────────────────────────────────────────────────────────────────
# 몫 다항식
# ─────────────────────────────────────────────────────────────────────

def kate_div(poly, point):
    """poly(x)를 (x - point)로 합성 나눗셈한 몫. 나머지는 버린다.

    최고차부터 q_{i-1} = c_i + point · q_i.
    poly(point) = 0 이면 정확한 몫이다.
    """
    if not isinstance(point, FR):
        point = FR(point)
    coeffs = poly.coeffs
    if len(coeffs) == 1:
        return Polynomial.zero()

    quotient = [FR(0)] * (len(coeffs) - 1)
    carry = FR(0)
    for i in range(len(coeffs) - 1, 0, -1):
        carry = coeffs[i] + carry * point
        quotient[i - 1] = carry
    return Polynomial(quotient)
