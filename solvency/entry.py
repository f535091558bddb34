"""
고객 엔트리(Entry)
===================

한 에포크(epoch)에서 한 고객의 기록: 사용자 이름 + 통화별 잔고.

사용자 이름은 UTF-8 바이트열을 빅엔디안 부호 없는 정수로 읽어
식별자(identity)로 쓴다. 이 값이 식별자 열(column 0)과 머클 리프에 들어간다.

CSV 형식 (원장 덤프):
    username,balance_ETH_ETH,balance_USDT_ETH
    dxGaEAii,11888,41163
    MBlfbBGI,67823,18651
"""

import csv

from solvency.errors import ConfigurationError


class Entry:
    """한 고객의 (사용자 이름, 잔고들) 레코드. 생성 후 변경하지 않는다."""

    __slots__ = ("_username", "_balances")

    def __init__(self, username, balances):
        balances = tuple(balances)
        for b in balances:
            # float 잘림이나 bool → 0/1 변환을 허용하지 않는다
            if isinstance(b, bool) or not isinstance(b, int):
                raise ValueError(f"잔고는 정수여야 합니다: {username}={b!r}")
            if b < 0:
                raise ValueError(f"잔고는 음수일 수 없습니다: {username}={b}")
        self._username = username
        self._balances = balances

    @property
    def username(self):
        return self._username

    @property
    def balances(self):
        return self._balances

    @property
    def balance(self):
        """단일 통화 엔트리의 잔고 (머클 합 트리용)."""
        if len(self._balances) != 1:
            raise ConfigurationError(
                f"단일 통화 엔트리가 아닙니다: 통화 수 {len(self._balances)}"
            )
        return self._balances[0]

    def username_as_big_uint(self):
        return int.from_bytes(self._username.encode("utf-8"), "big")

    def __eq__(self, other):
        if not isinstance(other, Entry):
            return NotImplemented
        return self._username == other._username and self._balances == other._balances

    def __hash__(self):
        return hash((self._username, self._balances))

    def __repr__(self):
        return f"Entry({self._username!r}, {list(self._balances)})"


def parse_entries_csv(path):
    """CSV 파일에서 엔트리와 통화 이름을 읽는다.

    헤더의 첫 열은 username, 나머지 열 이름은 ``balance_<통화>`` 형식이다.

    Returns:
        tuple: (list[Entry], list[str] 통화 이름)

    Raises:
        ConfigurationError: 헤더가 없거나, 행의 열 수가 헤더와 다르거나, 잔고가 음이 아닌 정수가 아닐 때
    """
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if not header or len(header) < 2:
            raise ConfigurationError(f"CSV 헤더가 올바르지 않습니다: {path}")
        currencies = [name.removeprefix("balance_") for name in header[1:]]

        entries = []
        for line_no, row in enumerate(reader, start=2):
            if not row:
                continue
            if len(row) != len(header):
                raise ConfigurationError(
                    f"{path}:{line_no}: 열 수 {len(row)} != 헤더 {len(header)}"
                )
            try:
                entries.append(Entry(row[0], [int(v) for v in row[1:]]))
            except ValueError as e:
                raise ConfigurationError(f"{path}:{line_no}: {e}") from e

    return entries, currencies
