"""
Country — коды стран и ban-list

Код страны хранится как 2 ASCII-символа в верхнем регистре ("US", "DE").
Проверка по ban-list выполняется только при создании locker'а.

CountryBanList:
- строится из CSV со списком стран (код в третьей колонке, пустой код → "UN")
- коды отсортированы и дедуплицированы
- admin переключает флаг ban для отдельной страны (flip_ban)
- неизвестные коды разрешены, забаненные — запрещены
"""

import csv
import logging
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, Field

from src.core.domain.errors import InvalidCountry, Unauthorized

logger = logging.getLogger(__name__)

# Код для записей без кода страны
UNKNOWN_COUNTRY_CODE = "UN"

# Индекс колонки с кодом страны в CSV
CSV_CODE_COLUMN = 2


def normalize_country_code(code: str) -> str:
    """
    Нормализация кода страны.

    Args:
        code: Код в произвольном регистре, возможно с пробелами

    Returns:
        Код из 2 ASCII-букв в верхнем регистре

    Raises:
        InvalidCountry: Если код не состоит ровно из 2 латинских букв
    """
    if not isinstance(code, str):
        raise InvalidCountry(f"country code must be a string, got {code!r}")

    normalized = code.strip().upper()
    if len(normalized) != 2 or not normalized.isascii() or not normalized.isalpha():
        raise InvalidCountry(f"country code must be 2 letters, got {code!r}")

    return normalized


class Country(BaseModel):
    """Запись ban-list'а."""

    code: str = Field(..., pattern=r"^[A-Z]{2}$")
    banned: bool = False

    model_config = {"frozen": True}


class CountryBanList:
    """
    Ban-list стран.

    Реализует контракт CountryOracle: is_country_allowed(code) -> bool.
    """

    def __init__(self, admin: str, address: str, codes: Iterable[str] = ()):
        self.admin = admin
        self.address = address
        unique = sorted({normalize_country_code(c) for c in codes})
        self._countries: dict[str, Country] = {c: Country(code=c) for c in unique}

    @classmethod
    def from_csv(cls, path: str | Path, admin: str, address: str) -> "CountryBanList":
        """
        Загрузка списка стран из CSV.

        Первая строка — заголовок. Код страны берётся из третьей колонки,
        пустой код заменяется на "UN".
        """
        codes = []
        with open(path, "r", encoding="utf-8", newline="") as f:
            reader = csv.reader(f)
            next(reader, None)
            for row in reader:
                if not row:
                    continue
                code = row[CSV_CODE_COLUMN].strip() if len(row) > CSV_CODE_COLUMN else ""
                codes.append(code or UNKNOWN_COUNTRY_CODE)

        banlist = cls(admin=admin, address=address, codes=codes)
        logger.info("Loaded %d countries from %s", len(banlist), path)
        return banlist

    def __len__(self) -> int:
        return len(self._countries)

    def __contains__(self, code: str) -> bool:
        return normalize_country_code(code) in self._countries

    @property
    def countries(self) -> list[Country]:
        return [self._countries[c] for c in sorted(self._countries)]

    def show(self, code: str | None = None) -> Country | list[Country] | None:
        """
        Данные одной страны или всего списка.

        Returns:
            Country для указанного кода (None если код неизвестен)
            или список всех стран если code не задан
        """
        if code is None:
            return self.countries
        return self._countries.get(normalize_country_code(code))

    def flip_ban(self, caller: str, code: str, ban: bool) -> Country:
        """
        Установка флага ban для страны.

        Raises:
            Unauthorized: Если caller не admin списка
            InvalidCountry: Если код некорректен или отсутствует в списке
        """
        if caller != self.admin:
            raise Unauthorized(f"{caller} is not the ban-list admin")

        normalized = normalize_country_code(code)
        if normalized not in self._countries:
            raise InvalidCountry(f"unknown country {normalized}")

        country = Country(code=normalized, banned=ban)
        self._countries[normalized] = country
        logger.info("Country %s ban flag set to %s", normalized, ban)
        return country

    def is_country_allowed(self, code: str) -> bool:
        country = self._countries.get(normalize_country_code(code))
        return country is None or not country.banned
