# Syntax highlighting of text inside code spans
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from typing import Optional

from lru import LRU
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.token import (
    Comment,
    Keyword,
    Number,
    Operator,
    Punctuation,
    String,
    _TokenType,
)
from pygments.util import ClassNotFound

from .logging_utils import logger

# Token categories that get a class; everything else is plain text.
# Order matters: the first matching category wins.
TOKEN_CLASSES: tuple[tuple[_TokenType, str], ...] = (
    (Comment, "syntax-comment"),
    (String, "syntax-string"),
    (Keyword, "syntax-keyword"),
    (Number, "syntax-number"),
    (Operator, "syntax-operator"),
    (Punctuation, "syntax-punctuation"),
)

HighlightedText = list[tuple[Optional[str], str]]


def token_class(ttype: _TokenType) -> Optional[str]:
    for category, cls in TOKEN_CLASSES:
        if ttype in category:
            return cls
    return None


class SyntaxHighlighter:
    """Splits code into (class, text) runs.  A live-edited post re-renders
    the same code fragments on every keystroke, so results are kept in an
    LRU cache."""

    __slots__ = ("language", "lexer", "cache")

    def __init__(self, language: str = "c", cache_size: int = 1024) -> None:
        self.language = language
        self.lexer: Lexer
        try:
            self.lexer = get_lexer_by_name(language)
        except ClassNotFound:
            logger.warning(
                "no lexer for %r, code will not be highlighted", language
            )
            self.lexer = TextLexer()
        self.cache = LRU(cache_size)

    def tokens(self, text: str) -> HighlightedText:
        """Returns ``text`` split into runs of (class or None, text)."""
        cached = self.cache.get(text)
        if cached is not None:
            return cached
        parts: HighlightedText = []
        # get_tokens() would normalize newlines and drop a leading BOM
        for _, ttype, value in self.lexer.get_tokens_unprocessed(text):
            if not value:
                continue
            cls = token_class(ttype)
            if parts and parts[-1][0] == cls:
                parts[-1] = (cls, parts[-1][1] + value)
            else:
                parts.append((cls, value))
        self.cache[text] = parts
        return parts
