"""
신뢰 설정 바인딩 (Trusted Setup Binding)
==========================================

고정된 회로 형태(열 N_CURRENCIES + 1개, 행 2^k개)에 대해 외부에서 만든
공개 파라미터를 묶어 (params, proving_key, verifying_key) 세 벌을 만든다.

  - params: SRS (powers of tau)
  - proving_key: 도메인 정보 + 커밋용 G1 powers (증명자용)
  - verifying_key: 도메인 정보 + [1]₂, [τ]₂ (검증자용)

**도메인 지수 k**:
  파라미터 출처 식별자(보통 파일 경로)의 마지막 '-' 구간을 부호 없는
  정수로 읽는다. 예: "ptau/hermez-raw-11" → k = 11, 도메인 크기 n = 2048.
  사용자 i의 행은 도메인 점 ω^i에 대응한다.

생성된 TrustedSetup은 읽기 전용이며 여러 Round가 참조로 공유할 수 있다.

사용 예시:
    >>> setup = generate_setup_artifacts("ptau/hermez-raw-4", n_currencies=2)
    >>> setup.verifying_key.n        # 16
    >>> setup.n_columns              # 3
"""

import logging

from solvency.errors import ConfigurationError
from solvency.field import MAX_DOMAIN_EXPONENT, get_root_of_unity
from solvency.kzg.srs import SRS

logger = logging.getLogger(__name__)


class EvaluationDomain:
    """크기 n = 2^k 인 곱셈 부분군 H = {1, ω, ..., ω^(n-1)}."""

    __slots__ = ("_k", "_n", "_omega")

    def __init__(self, k):
        self._k = k
        self._n = 1 << k
        self._omega = get_root_of_unity(self._n)

    @property
    def k(self):
        return self._k

    @property
    def n(self):
        return self._n

    def get_omega(self):
        return self._omega

    def point(self, row):
        """행 row에 대응하는 도메인 점 ω^row."""
        return self._omega ** row


class ProvingKey:
    """증명자가 쓰는 키: 도메인과 G1 powers."""

    __slots__ = ("_domain", "_g1_powers", "_n_columns")

    def __init__(self, domain, g1_powers, n_columns):
        self._domain = domain
        self._g1_powers = tuple(g1_powers)
        self._n_columns = n_columns

    def get_domain(self):
        return self._domain

    @property
    def g1_powers(self):
        return self._g1_powers

    @property
    def max_degree(self):
        return len(self._g1_powers) - 1

    @property
    def n_columns(self):
        return self._n_columns


class VerifyingKey:
    """검증자가 쓰는 키: 도메인과 G2 powers ([1]₂, [τ]₂)."""

    __slots__ = ("_domain", "_g2_powers", "_n_columns")

    def __init__(self, domain, g2_powers, n_columns):
        self._domain = domain
        self._g2_powers = tuple(g2_powers)
        self._n_columns = n_columns

    def get_domain(self):
        return self._domain

    @property
    def g2_powers(self):
        return self._g2_powers

    @property
    def n_columns(self):
        return self._n_columns

    @property
    def n(self):
        return self._domain.n


class TrustedSetup:
    """(params, proving_key, verifying_key) 세 벌. 생성 후 변경 API가 없다."""

    __slots__ = ("_params", "_proving_key", "_verifying_key", "_provenance")

    def __init__(self, params, proving_key, verifying_key, provenance=None):
        self._params = params
        self._proving_key = proving_key
        self._verifying_key = verifying_key
        self._provenance = provenance

    @property
    def params(self):
        return self._params

    @property
    def proving_key(self):
        return self._proving_key

    @property
    def verifying_key(self):
        return self._verifying_key

    @property
    def provenance(self):
        return self._provenance

    @property
    def domain(self):
        return self._verifying_key.get_domain()

    @property
    def n_columns(self):
        return self._verifying_key.n_columns

    @property
    def n_currencies(self):
        return self.n_columns - 1

    def __iter__(self):
        # params, pk, vk = setup
        return iter((self._params, self._proving_key, self._verifying_key))


def parse_domain_exponent(provenance):
    """출처 식별자의 마지막 '-' 구간을 도메인 지수 k로 읽는다.

    Raises:
        ConfigurationError: 마지막 구간이 부호 없는 정수가 아니거나 k가 범위를 벗어날 때
    """
    last_part = str(provenance).split("-")[-1]
    if not (last_part.isascii() and last_part.isdigit()):
        raise ConfigurationError(
            f"신뢰 설정 식별자에서 k를 읽을 수 없습니다: {provenance!r}"
        )
    k = int(last_part)
    if k > MAX_DOMAIN_EXPONENT:
        raise ConfigurationError(f"k는 {MAX_DOMAIN_EXPONENT} 이하여야 합니다: {k}")
    return k


def bind_setup(srs, k, n_currencies, provenance=None):
    """이미 읽어 둔 SRS를 (k, 열 수) 회로 형태에 묶는다.

    Raises:
        ConfigurationError: SRS가 도메인 크기를 지원하지 못하거나 통화 수가 잘못됐을 때
    """
    if n_currencies < 1:
        raise ConfigurationError(f"통화 수는 1 이상이어야 합니다: {n_currencies}")

    domain = EvaluationDomain(k)
    if srs.max_degree < domain.n - 1:
        raise ConfigurationError(
            f"SRS 최대 차수 {srs.max_degree}가 도메인 크기 {domain.n}을 지원하지 못합니다"
        )
    if len(srs.g2_powers) < 2:
        raise ConfigurationError("SRS에 [τ]₂가 없습니다")

    n_columns = n_currencies + 1
    pk = ProvingKey(domain, srs.g1_powers, n_columns)
    vk = VerifyingKey(domain, srs.g2_powers[:2], n_columns)
    return TrustedSetup(srs, pk, vk, provenance)


def generate_setup_artifacts(params_path, n_currencies):
    """출처 식별자(파라미터 파일 경로)로부터 TrustedSetup을 만든다.

    Args:
        params_path: TinyDB JSON SRS 파일 경로. 마지막 '-' 구간이 k.
        n_currencies: 통화 수 (열 수 = n_currencies + 1)

    Returns:
        TrustedSetup

    Raises:
        ConfigurationError: 식별자 형식 오류, 파일 없음, 크기 부족
    """
    k = parse_domain_exponent(params_path)
    try:
        srs = SRS.load(params_path)
    except (OSError, ValueError, KeyError) as e:
        raise ConfigurationError(
            f"신뢰 설정 파라미터를 읽지 못했습니다: {params_path}: {e}"
        ) from e

    setup = bind_setup(srs, k, n_currencies, provenance=params_path)
    logger.info(
        "Trusted setup bound: %s (k=%d, columns=%d)",
        params_path, k, setup.n_columns,
    )
    return setup
