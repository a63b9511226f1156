"""
Лексические типы.

Определяет типы токенов и сам токен. Набор операторов, распознаваемых
лексером, берется из реестра расширений.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenType(enum.Enum):
    """Типы токенов в шаблоне."""

    # Текстовый контент вне разделителей
    TEXT = "TEXT"

    # Разделители
    PRINT_START = "PRINT_START"      # {{
    PRINT_END = "PRINT_END"          # }}
    EXECUTE_START = "EXECUTE_START"  # {%
    EXECUTE_END = "EXECUTE_END"      # %}

    # Содержимое разделителей
    NAME = "NAME"
    NUMBER = "NUMBER"
    STRING = "STRING"
    OPERATOR = "OPERATOR"
    PUNCTUATION = "PUNCTUATION"

    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """
    Токен с позиционной информацией для точной диагностики ошибок.
    """
    type: TokenType
    value: str
    position: int        # Позиция в исходном тексте
    line: int           # Номер строки (начиная с 1)
    column: int         # Номер колонки (начиная с 1)

    def test(self, token_type: TokenType, value: str | None = None) -> bool:
        """Проверяет тип токена и (опционально) его значение."""
        if self.type != token_type:
            return False
        return value is None or self.value == value

    def describe(self) -> str:
        """Человекочитаемое описание для сообщений об ошибках."""
        if self.type == TokenType.EOF:
            return "end of template"
        return f"{self.type.name.lower()} '{self.value}'"

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


__all__ = ["TokenType", "Token"]
