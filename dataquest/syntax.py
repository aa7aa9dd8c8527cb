"""Keyword-matching tokenizer for the code walkthrough pane."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from dataquest import config
from dataquest.model import Step

KEYWORDS = {
    "func", "def", "let", "var", "class", "struct", "enum", "if", "else", "elif",
    "for", "while", "return", "in", "not", "and", "or", "None", "nil", "null",
    "true", "false", "True", "False", "new", "self", "this",
}
PUNCTUATION = {"{", "}", "(", ")", "[", "]", ".", "=", ",", ";", ":", "->", "==", "!="}


class TokenKind(Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"
    PUNCTUATION = "punctuation"
    COMMENT = "comment"


TOKEN_COLORS = {
    TokenKind.KEYWORD: config.ACCENT,
    TokenKind.IDENTIFIER: config.DARK,
    TokenKind.STRING: config.GOOD,
    TokenKind.NUMBER: (220, 140, 40),
    TokenKind.PUNCTUATION: config.GRAY,
    TokenKind.COMMENT: config.GRAY,
}


@dataclass(frozen=True)
class SyntaxToken:
    text: str
    kind: TokenKind

    @property
    def color(self):
        return TOKEN_COLORS[self.kind]


@dataclass
class CodeLine:
    number: int
    content: str
    tokens: List[SyntaxToken]
    highlighted: bool = False
    side_comment: Optional[str] = None


def classify(word: str) -> TokenKind:
    if word in KEYWORDS:
        return TokenKind.KEYWORD
    if word.isdigit():
        return TokenKind.NUMBER
    if len(word) >= 2 and word[0] == word[-1] and word[0] in "\"'":
        return TokenKind.STRING
    if word in PUNCTUATION:
        return TokenKind.PUNCTUATION
    if word.startswith("//") or word.startswith("#"):
        return TokenKind.COMMENT
    return TokenKind.IDENTIFIER


def tokenize(line: str) -> List[SyntaxToken]:
    tokens = []
    words = line.split()
    for i, word in enumerate(words):
        kind = classify(word)
        if kind == TokenKind.COMMENT:
            # Everything after a comment marker belongs to the comment.
            tokens.append(SyntaxToken(" ".join(words[i:]), kind))
            break
        tokens.append(SyntaxToken(word, kind))
    return tokens


def code_lines(code: List[str], step: Optional[Step] = None) -> List[CodeLine]:
    """Number the code 1-based and mark the line the step points at."""
    lines = []
    for number, content in enumerate(code, start=1):
        current = step is not None and step.line_number == number
        lines.append(CodeLine(
            number=number,
            content=content,
            tokens=tokenize(content),
            highlighted=current,
            side_comment=step.comment if current else None,
        ))
    return lines
