"""
KZG Structured Reference String (SRS)
======================================

KZG 커밋먼트에 필요한 공개 파라미터 (powers of tau).

  SRS = {
      G1 powers: [G1, τ·G1, τ²·G1, ..., τ^d·G1]
      G2 powers: [G2, τ·G2]
  }

**보안**:
  τ를 아는 사람은 임의의 거짓 열기 증명을 만들 수 있다.
  운영 환경에서는 MPC 세리머니 결과물(ptau)을 파일로 받아 load()한다.
  generate(seed=...)는 개발/테스트용 결정론적 생성이다.

**파일 형식**:
  TinyDB JSON 문서. "srs" 테이블에 {"type": "srs", "data": serialize_srs(srs)}
  한 건을 저장한다. 파일 이름의 마지막 '-' 구간이 도메인 지수 k이다
  (예: ptau/hermez-raw-11 → k = 11).

사용 예시:
    >>> srs = SRS.generate(max_degree=16, seed=42)
    >>> srs.save("ptau/dev-4")
    >>> SRS.load("ptau/dev-4").max_degree  # 16
"""

import hashlib
import logging
import secrets

from tinydb import TinyDB, Query

from solvency.field import FR, G1, G2, ec_mul, CURVE_ORDER
from solvency.serializers import serialize_srs, deserialize_srs

logger = logging.getLogger(__name__)

DATA = Query()


class SRS:
    """Structured Reference String: KZG 커밋먼트용 공개 파라미터.

    속성:
        g1_powers: [G1, τ·G1, τ²·G1, ..., τ^d·G1]
        g2_powers: [G2, τ·G2]
        max_degree: 지원하는 최대 다항식 차수 d
    """

    def __init__(self, g1_powers, g2_powers, max_degree):
        self.g1_powers = tuple(g1_powers)
        self.g2_powers = tuple(g2_powers)
        self.max_degree = max_degree

    @classmethod
    def generate(cls, max_degree, seed=None):
        """SRS를 생성한다.

        Args:
            max_degree: 지원할 최대 다항식 차수. 도메인 크기 n = 2^k이면 n - 1 이상.
            seed: 결정론적 생성을 위한 시드. None이면 무작위 τ.

        Returns:
            SRS
        """
        if seed is not None:
            h = hashlib.sha256(str(seed).encode()).digest()
            tau_int = int.from_bytes(h, "big") % CURVE_ORDER
        else:
            tau_int = secrets.randbelow(CURVE_ORDER - 1) + 1
        tau = FR(tau_int)

        g1_powers = []
        tau_power = FR(1)
        for _ in range(max_degree + 1):
            g1_powers.append(ec_mul(G1, tau_power))
            tau_power = tau_power * tau

        g2_powers = [G2, ec_mul(G2, tau)]

        return cls(g1_powers, g2_powers, max_degree)

    def save(self, path):
        """SRS를 TinyDB JSON 파일에 저장한다 (기존 값은 덮어쓴다)."""
        db = TinyDB(path)
        try:
            table = db.table("srs")
            table.upsert({"type": "srs", "data": serialize_srs(self)}, DATA.type == "srs")
        finally:
            db.close()
        logger.info("SRS saved to %s (max_degree=%d)", path, self.max_degree)

    @classmethod
    def load(cls, path):
        """TinyDB JSON 파일에서 SRS를 읽는다.

        Raises:
            FileNotFoundError: 파일이 없을 때 (파일을 새로 만들지 않는다)
            ValueError: 파일에 SRS 레코드가 없을 때
        """
        db = TinyDB(path, access_mode="r")
        try:
            rows = db.table("srs").search(DATA.type == "srs")
        finally:
            db.close()
        if not rows:
            raise ValueError(f"SRS 레코드가 없습니다: {path}")
        srs = deserialize_srs(rows[0]["data"])
        logger.info("SRS loaded from %s (max_degree=%d)", path, srs.max_degree)
        return srs
