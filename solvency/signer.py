"""
커밋먼트 서명자(Signer) 경계
=============================

온체인 제출과 트랜잭션 서명은 이 패키지 밖의 일이다. Round는 아래 계약만 안다:

    await signer.submit_commitment(commitment: bytes, timestamp: int)

제출 실패는 예외로 알린다. Round.dispatch_commitment가 이를
CommitmentDispatchError로 감싸 호출자에게 전달한다.
"""


class Signer:
    """서명자 인터페이스. 실제 구현은 체인 클라이언트 쪽에서 제공한다."""

    async def submit_commitment(self, commitment, timestamp):
        raise NotImplementedError("서명자 구현에서 submit_commitment를 제공해야 합니다")
