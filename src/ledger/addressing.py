"""
Детерминированная адресация.

Адрес = hex(sha256(namespace || len-prefixed seeds))[:ADDRESS_HEX_LEN].
Целые seed'ы кодируются как 8 байт big-endian (как unlock_date и amount
при вычислении адреса locker'а).
"""

import hashlib
from typing import Final

ADDRESS_HEX_LEN: Final[int] = 44


def encode_seed(seed: bytes | str | int) -> bytes:
    """
    Кодирование seed'а в байты.

    Raises:
        ValueError: Если целый seed вне диапазона i64/u64
        TypeError: Если тип seed'а не поддерживается
    """
    if isinstance(seed, bool):
        raise TypeError("bool seeds are not supported")
    if isinstance(seed, bytes):
        return seed
    if isinstance(seed, str):
        return seed.encode("utf-8")
    if isinstance(seed, int):
        if seed < 0:
            return seed.to_bytes(8, "big", signed=True)
        return seed.to_bytes(8, "big")
    raise TypeError(f"unsupported seed type {type(seed).__name__}")


class Sha256AddressDeriver:
    """AddressDeriver на sha256 с пространством имён программы."""

    def __init__(self, namespace: str = "locker"):
        self.namespace = namespace

    def derive(self, *seeds: bytes | str | int) -> str:
        h = hashlib.sha256(self.namespace.encode("utf-8"))
        for seed in seeds:
            raw = encode_seed(seed)
            h.update(len(raw).to_bytes(2, "big"))
            h.update(raw)
        return h.hexdigest()[:ADDRESS_HEX_LEN]

    def associated_account(self, owner: str, asset: str) -> str:
        return self.derive("associated", owner, asset)
