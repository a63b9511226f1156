"""
Лексический анализатор шаблонов.

Переключается между двумя режимами: обычный текст вне разделителей и
содержимое тегов {{ ... }} / {% ... %}. Комментарии {# ... #} отбрасываются
целиком. Набор операторов берется из реестра расширений, поэтому
зарегистрированные расширениями операторы распознаются без правок лексера.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Pattern, TYPE_CHECKING

from .tokens import Token, TokenType
from ..errors import LexError

if TYPE_CHECKING:
    from ..config import EngineConfig
    from .registry import ExtensionRegistry

logger = logging.getLogger(__name__)


_WHITESPACE = re.compile(r'\s+')
_NAME = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')
_NUMBER = re.compile(r'\d+(?:\.\d+)?')
_STRING = re.compile(r'"([^"\\]*(?:\\.[^"\\]*)*)"|\'([^\'\\]*(?:\\.[^\'\\]*)*)\'', re.DOTALL)
_PUNCTUATION = re.compile(r'[()\[\]{},.:|=]')
_ESCAPE = re.compile(r'\\(.)', re.DOTALL)

_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '\\': '\\',
    '"': '"',
    "'": "'",
}

_OPENING_BRACKETS = {'(': ')', '[': ']', '{': '}'}


def build_operator_pattern(symbols: Iterable[str]) -> Optional[Pattern[str]]:
    """
    Строит регулярное выражение для операторов.

    Длинные операторы проверяются раньше коротких ("**" раньше "*",
    "is not" раньше "is"). Словесные операторы требуют границы слова,
    а составные ("not in") допускают любой пробел между словами.
    """
    alternatives = []
    for symbol in sorted(set(symbols), key=len, reverse=True):
        words = symbol.split()
        if symbol[0].isalpha() or symbol[0] == '_':
            body = r'\s+'.join(re.escape(word) for word in words)
            alternatives.append(rf'{body}(?![A-Za-z0-9_])')
        else:
            alternatives.append(re.escape(symbol))
    if not alternatives:
        return None
    return re.compile('|'.join(alternatives))


class TemplateLexer:
    """
    Лексический анализатор шаблонов.

    Разбивает исходный текст на токены, учитывая контекст:
    - обычный текст вне разделителей
    - содержимое тегов печати и тегов-инструкций
    - комментарии (пропускаются)
    """

    def __init__(self, registry: "ExtensionRegistry", config: "EngineConfig"):
        """
        Args:
            registry: Реестр, из которого берутся символы операторов
            config: Конфигурация с разделителями и маркером обрезки пробелов
        """
        self.config = config
        self._operators = build_operator_pattern(registry.operator_symbols())

        self._print_start, self._print_end = config.print_delimiters
        self._execute_start, self._execute_end = config.execute_delimiters
        self._comment_start, self._comment_end = config.comment_delimiters

        trim = re.escape(config.trim_marker) if config.trim_marker else None
        opening = sorted(
            (self._print_start, self._execute_start, self._comment_start),
            key=len,
            reverse=True,
        )
        open_alt = '|'.join(re.escape(d) for d in opening)
        self._open_pattern = re.compile(
            rf'(?P<delim>{open_alt})(?P<trim>{trim})?' if trim else rf'(?P<delim>{open_alt})(?P<trim>(?!))?'
        )
        self._close_patterns = {
            end: re.compile(rf'(?P<trim>{trim})?{re.escape(end)}' if trim else rf'(?P<trim>(?!))?{re.escape(end)}')
            for end in (self._print_end, self._execute_end, self._comment_end)
        }

        # Состояние текущей токенизации
        self.template_name = ""
        self.text = ""
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = 0
        self._lstrip_next = False

    def tokenize(self, text: str, template_name: str = "") -> List[Token]:
        """
        Токенизирует весь исходный текст и возвращает список токенов.

        Лексер не возобновляемый: каждый вызов начинает разбор заново.

        Raises:
            LexError: Незакрытая строка, тег или комментарий, неизвестный символ
        """
        self.template_name = template_name
        self.text = text
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = len(text)
        self._lstrip_next = False

        tokens: List[Token] = []

        while self.position < self.length:
            match = self._open_pattern.search(self.text, self.position)
            if match is None:
                self._emit_text(tokens, self.length, trim_right=False)
                break

            self._emit_text(
                tokens,
                match.start(),
                trim_right=bool(match.group('trim')),
                before_comment=match.group('delim') == self._comment_start,
            )
            delimiter = match.group('delim')
            opening = self._make_token(
                TokenType.PRINT_START if delimiter == self._print_start else TokenType.EXECUTE_START,
                delimiter,
            )
            self._advance(match.end() - self.position)

            if delimiter == self._comment_start:
                self._skip_comment(opening)
            elif delimiter == self._print_start:
                tokens.append(opening)
                self._tokenize_inside(tokens, opening, self._print_end, TokenType.PRINT_END)
            else:
                tokens.append(opening)
                self._tokenize_inside(tokens, opening, self._execute_end, TokenType.EXECUTE_END)

        tokens.append(self._make_token(TokenType.EOF, ""))
        logger.debug(f"Tokenized '{template_name}' into {len(tokens)} tokens")
        return tokens

    def _emit_text(self, tokens: List[Token], end: int, trim_right: bool, before_comment: bool = False) -> None:
        """
        Добавляет TEXT токен для участка [position, end) с учетом обрезки пробелов.

        Комментарий прозрачен для обрезки: если участок перед ним пуст после
        обрезки слева, обрезка переносится на текст за комментарием.
        """
        start_token = self._make_token(TokenType.TEXT, "")
        value = self.text[self.position:end]
        self._advance(end - self.position)

        if self._lstrip_next:
            value = value.lstrip()
            if value or not before_comment:
                self._lstrip_next = False
        if trim_right:
            value = value.rstrip()

        if value:
            tokens.append(Token(TokenType.TEXT, value, start_token.position, start_token.line, start_token.column))

    def _skip_comment(self, opening: Token) -> None:
        """Пропускает комментарий до закрывающего разделителя."""
        match = self._close_patterns[self._comment_end].search(self.text, self.position)
        if match is None:
            raise LexError("Unclosed comment", self.template_name, opening.line)
        self._advance(match.end() - self.position)
        if match.group('trim'):
            self._lstrip_next = True

    def _tokenize_inside(self, tokens: List[Token], opening: Token, end: str, end_type: TokenType) -> None:
        """Токенизирует содержимое тега до закрывающего разделителя."""
        close_pattern = self._close_patterns[end]
        brackets: List[str] = []

        while True:
            whitespace = _WHITESPACE.match(self.text, self.position)
            if whitespace:
                self._advance(len(whitespace.group(0)))

            if self.position >= self.length:
                raise LexError(f"Unclosed '{opening.value}', expected '{end}'", self.template_name, opening.line)

            # Закрывающий разделитель распознается только вне фигурных скобок литералов
            if '{' not in brackets:
                close = close_pattern.match(self.text, self.position)
                if close:
                    closing = self._make_token(end_type, end)
                    self._advance(close.end() - self.position)
                    tokens.append(closing)
                    if close.group('trim'):
                        self._lstrip_next = True
                    return

            tokens.append(self._next_inner_token(brackets))

    def _next_inner_token(self, brackets: List[str]) -> Token:
        """Извлекает один токен внутри тега."""
        char = self.text[self.position]

        if char in '"\'':
            match = _STRING.match(self.text, self.position)
            if match is None:
                raise LexError("Unterminated string literal", self.template_name, self.line)
            raw = match.group(1) if match.group(1) is not None else match.group(2)
            token = self._make_token(TokenType.STRING, _unescape(raw))
            self._advance(len(match.group(0)))
            return token

        match = _NUMBER.match(self.text, self.position)
        if match:
            return self._take(TokenType.NUMBER, match.group(0))

        if self._operators is not None:
            match = self._operators.match(self.text, self.position)
            if match:
                token = self._make_token(TokenType.OPERATOR, ' '.join(match.group(0).split()))
                self._advance(len(match.group(0)))
                return token

        match = _NAME.match(self.text, self.position)
        if match:
            return self._take(TokenType.NAME, match.group(0))

        match = _PUNCTUATION.match(self.text, self.position)
        if match:
            value = match.group(0)
            if value in _OPENING_BRACKETS:
                brackets.append(value)
            elif value in _OPENING_BRACKETS.values() and brackets and _OPENING_BRACKETS[brackets[-1]] == value:
                brackets.pop()
            return self._take(TokenType.PUNCTUATION, value)

        raise LexError(f"Unexpected character {char!r}", self.template_name, self.line)

    def _take(self, token_type: TokenType, value: str) -> Token:
        token = self._make_token(token_type, value)
        self._advance(len(value))
        return token

    def _make_token(self, token_type: TokenType, value: str) -> Token:
        return Token(token_type, value, self.position, self.line, self.column)

    def _advance(self, count: int) -> None:
        """
        Перемещает позицию на указанное количество символов,
        обновляя номера строк и колонок.
        """
        for _ in range(count):
            if self.position >= self.length:
                break
            if self.text[self.position] == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.position += 1


def _unescape(raw: str) -> str:
    return _ESCAPE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), raw)


__all__ = ["TemplateLexer", "build_operator_pattern"]
