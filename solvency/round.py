"""
Round / Snapshot — 에포크 단위 KZG 포함 증명
=============================================

**Snapshot**:
  한 에포크의 열 다항식(식별자 열 + 통화별 잔고 열)과 전체 엔트리를
  신뢰 설정에 묶는다. 사용자 인덱스 i에 대한 포함 증명 요청이 오면
  모든 열을 도메인 점 ω^i에서 연다.

  ┌─────────────────────────────────────────────────────┐
  │  열 j = 0 .. N_CURRENCIES (고정된 왼쪽→오른쪽 순서)   │
  │  1. C_j = commit(f_j)                  (params)     │
  │  2. 챌린지 z = ω^i                     (도메인 점)   │
  │  3. 주장값 y = 식별자(j=0) / 잔고[j-1]               │
  │  4. π_j = open(f_j, z, y)              (proving key)│
  │  5. verify(C_j, π_j, z, y)             (verifying key)│
  │  6. π_j → x ‖ y (각 32바이트 빅엔디안)               │
  └─────────────────────────────────────────────────────┘
  증명 바이트열 = π_0 ‖ π_1 ‖ ... ‖ π_N

  평가 점은 무작위/해시 챌린지가 아니라 사용자의 행 위치 ω^i 그 자체이다.
  열기 증명이 특정 행에 묶이는 것이 이 방식의 건전성(soundness)의 근거이다.

**Round**:
  타임스탬프 하나와 Snapshot 하나, 서명자 참조를 가진 에포크 컨트롤러.

사용 예시:
    >>> setup = generate_setup_artifacts("ptau/hermez-raw-4", n_currencies=2)
    >>> polys = build_column_polynomials(entries, 2, setup.domain)
    >>> rnd = Round(signer, polys, entries, setup, timestamp=1700000000)
    >>> proof = rnd.get_proof_of_inclusion(3)
    >>> len(proof.proof_calldata)  # 3열 × 64바이트 = 192
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from solvency.errors import (
    CommitmentDispatchError,
    ConfigurationError,
    OutOfRangeError,
    ProofSelfCheckError,
)
from solvency.field import big_uint_to_fp, g1_to_bytes
from solvency.kzg.commitment import commit, create_opening_proof, verify_opening
from solvency.kzg.setup import TrustedSetup, generate_setup_artifacts

logger = logging.getLogger(__name__)


class KZGInclusionProof:
    """KZG 포함 증명.

    속성:
        public_inputs: 256비트 정수 튜플. 현재는 항상 비어 있다.
            (루트 커밋먼트, 에포크 타임스탬프)를 온체인 검증 키에 묶기 위한
            확장 지점으로 남겨 둔다.
        proof_calldata: 열 순서대로 이어 붙인 열기 증명 점의 (x ‖ y) 바이트열
    """

    __slots__ = ("_public_inputs", "_proof_calldata")

    def __init__(self, proof_calldata, public_inputs=()):
        self._proof_calldata = bytes(proof_calldata)
        self._public_inputs = tuple(int(v) for v in public_inputs)

    @property
    def public_inputs(self):
        return self._public_inputs

    @property
    def proof_calldata(self):
        return self._proof_calldata

    def get_public_inputs(self):
        return self._public_inputs

    def get_proof(self):
        return self._proof_calldata

    def __eq__(self, other):
        if not isinstance(other, KZGInclusionProof):
            return NotImplemented
        return (self._proof_calldata == other._proof_calldata
                and self._public_inputs == other._public_inputs)

    def __repr__(self):
        return (f"KZGInclusionProof(public_inputs={list(self._public_inputs)}, "
                f"proof_calldata=0x{self._proof_calldata.hex()})")


class Snapshot:
    """특정 시점의 수탁 잔고 상태를 신뢰 설정에 묶은 것.

    속성:
        column_polynomials: 열 다항식 튜플 [f_0 (식별자), f_1, ..., f_N]
        entries: 엔트리 튜플 (행 i = 사용자 i)
        trusted_setup: TrustedSetup (참조로 공유)
    """

    def __init__(self, column_polynomials, entries, trusted_setup, max_workers=None):
        self._column_polynomials = tuple(column_polynomials)
        self._entries = tuple(entries)
        self._trusted_setup = trusted_setup
        self._max_workers = max_workers
        self._validate_shape()
        logger.info(
            "Snapshot bound: %d users, %d columns, domain size %d",
            len(self._entries), len(self._column_polynomials), trusted_setup.domain.n,
        )

    def _validate_shape(self):
        setup = self._trusted_setup
        n = setup.domain.n
        if len(self._column_polynomials) != setup.n_columns:
            raise ConfigurationError(
                f"열 다항식 수 {len(self._column_polynomials)} != "
                f"회로 열 수 {setup.n_columns}"
            )
        if len(self._entries) > n:
            raise ConfigurationError(f"사용자 수 {len(self._entries)}가 도메인 크기 {n}을 초과합니다")
        for entry in self._entries:
            if len(entry.balances) != setup.n_currencies:
                raise ConfigurationError(
                    f"{entry.username}: 잔고 수 {len(entry.balances)} != "
                    f"통화 수 {setup.n_currencies}"
                )
        for j, poly in enumerate(self._column_polynomials):
            if poly.degree >= n:
                raise ConfigurationError(f"열 {j} 다항식 차수 {poly.degree}가 도메인 크기 {n} 이상입니다")

    @property
    def entries(self):
        return self._entries

    @property
    def column_polynomials(self):
        return self._column_polynomials

    @property
    def trusted_setup(self):
        return self._trusted_setup

    @property
    def n_columns(self):
        return len(self._column_polynomials)

    def column_commitments(self):
        """열마다 KZG 커밋먼트 (G1 점) 튜플."""
        params = self._trusted_setup.params
        return tuple(commit(poly, params) for poly in self._column_polynomials)

    def commitment(self):
        """서명자에게 넘기는 값: 열 커밋먼트를 (x ‖ y)로 이어 붙인 바이트열."""
        return b"".join(g1_to_bytes(c) for c in self.column_commitments())

    def challenge(self, user_index):
        """사용자 행에 대응하는 평가 점 ω^user_index."""
        _, _, vk = self._trusted_setup
        return vk.get_domain().get_omega() ** user_index

    def claimed_value(self, entry, column_index):
        if column_index == 0:
            return big_uint_to_fp(entry.username_as_big_uint())
        return big_uint_to_fp(entry.balances[column_index - 1])

    def _open_column(self, user_index, entry, column_index):
        if not 0 <= column_index < self.n_columns:
            raise ConfigurationError(
                f"열 인덱스 {column_index}가 회로 폭 {self.n_columns}을 벗어났습니다"
            )
        params, pk, vk = self._trusted_setup
        f_poly = self._column_polynomials[column_index]

        kzg_commitment = commit(f_poly, params)
        challenge = self.challenge(user_index)
        z = self.claimed_value(entry, column_index)
        kzg_proof = create_opening_proof(f_poly, challenge, z, pk)

        if not verify_opening(kzg_commitment, kzg_proof, challenge, z, vk):
            logger.error(
                "KZG proof verification failed for user %d (column %d)",
                user_index, column_index,
            )
            raise ProofSelfCheckError(user_index, column_index)

        logger.debug("Opened column %d for user %d", column_index, user_index)
        return g1_to_bytes(kzg_proof)

    def generate_proof_of_inclusion(self, user_index, entries=None):
        """사용자 인덱스에 대한 KZG 포함 증명을 만든다.

        Args:
            user_index: 0 ≤ user_index < 엔트리 수
            entries: 주장값을 읽을 엔트리 목록. 기본값은 스냅샷 자신의 엔트리.

        Returns:
            KZGInclusionProof

        Raises:
            OutOfRangeError: user_index가 범위를 벗어났을 때
            ConfigurationError: 열 인덱스가 회로 폭을 벗어났을 때 (불변식 위반)
            ProofSelfCheckError: 열기 증명이 자체 검증에 실패했을 때
        """
        if entries is None:
            entries = self._entries
        if isinstance(user_index, bool) or not isinstance(user_index, int):
            raise OutOfRangeError(f"사용자 인덱스는 정수여야 합니다: {user_index!r}")
        if not 0 <= user_index < len(entries):
            raise OutOfRangeError(
                f"사용자 인덱스 {user_index}가 범위 [0, {len(entries)})를 벗어났습니다"
            )
        entry = entries[user_index]
        if len(entry.balances) != self.n_columns - 1:
            raise ConfigurationError(
                f"{entry.username}: 잔고 수 {len(entry.balances)} != 통화 수 {self.n_columns - 1}"
            )

        column_range = range(self.n_columns)
        if self._max_workers and self._max_workers > 1:
            # map은 완료 순서와 무관하게 열 순서를 보존한다
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                opening_proofs = list(executor.map(
                    lambda j: self._open_column(user_index, entry, j), column_range
                ))
        else:
            opening_proofs = [self._open_column(user_index, entry, j) for j in column_range]

        return KZGInclusionProof(proof_calldata=b"".join(opening_proofs), public_inputs=())


class Round:
    """프로토콜의 한 운영 주기(에포크).

    속성:
        timestamp: 에포크를 식별하는 Unix 타임스탬프
        snapshot: 이 에포크의 Snapshot (Round가 단독 소유)
        signer: 커밋먼트를 온체인에 제출하는 서명자 (참조)
    """

    def __init__(self, signer, column_polynomials, entries, params, timestamp,
                 n_currencies=None, max_workers=None):
        """
        Args:
            params: 신뢰 설정 출처 식별자(파일 경로) 또는 이미 만든 TrustedSetup
            n_currencies: 회로의 통화 수. 생략하면 첫 엔트리의 잔고 수를 쓴다.
        """
        if isinstance(params, TrustedSetup):
            trusted_setup = params
        else:
            if n_currencies is None:
                n_currencies = (len(entries[0].balances) if entries
                                else len(column_polynomials) - 1)
            trusted_setup = generate_setup_artifacts(params, n_currencies)

        self._timestamp = timestamp
        self._snapshot = Snapshot(column_polynomials, entries, trusted_setup, max_workers)
        self._signer = signer

    @property
    def snapshot(self):
        return self._snapshot

    @property
    def signer(self):
        return self._signer

    def get_timestamp(self):
        return self._timestamp

    def get_proof_of_inclusion(self, user_index):
        return self._snapshot.generate_proof_of_inclusion(user_index, self._snapshot.entries)

    async def dispatch_commitment(self, timeout=None):
        """스냅샷 커밋먼트와 타임스탬프를 서명자에게 넘긴다.

        스냅샷은 읽기만 하므로 취소/시간 초과가 나도 상태가 변하지 않는다.

        Args:
            timeout: 초 단위 제한. None이면 제한 없음.

        Raises:
            CommitmentDispatchError: 서명자 실패 또는 시간 초과
        """
        commitment = self._snapshot.commitment()
        logger.info("Dispatching commitment for round %s", self._timestamp)
        try:
            result = await asyncio.wait_for(
                self._signer.submit_commitment(commitment, self._timestamp), timeout
            )
        except asyncio.TimeoutError as e:
            logger.error("Commitment dispatch timed out for round %s", self._timestamp)
            raise CommitmentDispatchError(
                f"커밋먼트 제출 시간 초과 (round {self._timestamp}, {timeout}s)"
            ) from e
        except CommitmentDispatchError:
            raise
        except Exception as e:
            logger.error("Commitment dispatch failed for round %s: %s", self._timestamp, e)
            raise CommitmentDispatchError(
                f"커밋먼트 제출 실패 (round {self._timestamp}): {e}"
            ) from e
        logger.info("Commitment dispatched for round %s", self._timestamp)
        return result
