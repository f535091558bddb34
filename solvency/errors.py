"""
지급능력 증명 예외 계층
========================

입력 오류는 ValueError 계열로, 범위 오류는 IndexError 계열로 둔다.
호출자는 SolvencyError 하나로 모든 도메인 오류를 잡을 수 있다.
"""


class SolvencyError(Exception):
    """모든 도메인 오류의 기반 클래스."""


class ConfigurationError(SolvencyError, ValueError):
    """신뢰 설정 식별자 오류, 회로 형태 불일치 등 구성 단계 오류."""


class OutOfRangeError(SolvencyError, IndexError):
    """사용자 인덱스 또는 열 인덱스가 허용 범위를 벗어났을 때."""


class ProofSelfCheckError(SolvencyError):
    """방금 생성한 열기 증명이 자체 검증에 실패했을 때.

    스냅샷의 커밋먼트와 주장된 값이 서로 맞지 않는다는 뜻이다.
    프로세스를 종료하지 않고 호출자(운영자/재시도 경로)에게 넘긴다.
    """

    def __init__(self, user_index, column_index):
        super().__init__(
            f"KZG proof verification failed for user {user_index} "
            f"(column {column_index})"
        )
        self.user_index = user_index
        self.column_index = column_index


class CommitmentDispatchError(SolvencyError):
    """서명자(signer)에게 커밋먼트를 넘기는 과정이 실패했거나 시간 초과됐을 때."""
