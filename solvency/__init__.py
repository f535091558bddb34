"""
지급능력 증명(Proof of Solvency) 암호 코어
===========================================

수탁기관(custodian)이 특정 시점의 고객 잔고 스냅샷에 커밋하고,
이후 개별 고객에게 "당신의 잔고가 스냅샷에 포함되어 있다"는 것을
다른 고객의 정보를 노출하지 않고 증명하기 위한 패키지이다.

두 가지 증명 방식:
  - KZG 다항식 커밋먼트 (solvency.kzg, solvency.round)
  - 머클 합 트리 (solvency.merkle_sum_tree)
"""
