"""
열(column) 다항식 생성
=======================

회로 위트니스 생성기 역할: 엔트리 목록을 N_CURRENCIES + 1 개의 열로 펼치고
각 열을 도메인 H = {1, ω, ..., ω^(n-1)} 위에서 보간한다.

  열 0      : 사용자 식별자 (username → 빅엔디안 정수)
  열 1..N   : 통화별 잔고 (헤더 순서)

사용자 i의 값은 f_j(ω^i)이다. 사용자 수가 n보다 적으면 나머지 행은 0으로 채운다.
"""

from solvency.errors import ConfigurationError
from solvency.field import FR, big_uint_to_fp
from solvency.polynomial import Polynomial


def column_evaluations(entries, n_currencies, n):
    """엔트리를 열별 평가값 리스트로 펼친다.

    Returns:
        list[list[FR]]: 길이 n_currencies + 1, 각 원소는 길이 n
    """
    if len(entries) > n:
        raise ConfigurationError(f"사용자 수 {len(entries)}가 도메인 크기 {n}을 초과합니다")

    columns = [[FR(0)] * n for _ in range(n_currencies + 1)]
    for row, entry in enumerate(entries):
        if len(entry.balances) != n_currencies:
            raise ConfigurationError(
                f"{entry.username}: 잔고 수 {len(entry.balances)} != 통화 수 {n_currencies}"
            )
        columns[0][row] = big_uint_to_fp(entry.username_as_big_uint())
        for j, balance in enumerate(entry.balances):
            columns[j + 1][row] = big_uint_to_fp(balance)
    return columns


def build_column_polynomials(entries, n_currencies, domain):
    """엔트리로부터 계수 표현의 열 다항식들을 만든다.

    Args:
        entries: list[Entry]
        n_currencies: 통화 수
        domain: EvaluationDomain (도메인 크기 n, 단위근 ω)

    Returns:
        list[Polynomial]: [f_0, f_1, ..., f_N]
    """
    omega = domain.get_omega()
    return [
        Polynomial.from_evaluations(evals, omega)
        for evals in column_evaluations(entries, n_currencies, domain.n)
    ]
