"""
USFM line tokenizer

Splits USFM text into lines and each line into tokens. Every token keeps the
exact slice of source it was read from (``raw``) so that spans which are not
modelled structurally (the inside of a footnote, for example) can be written
back unchanged.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

import regex

from .markers import DEFAULT_STYLESHEET, UsfmStyleType, UsfmStylesheet, is_milestone_end, is_milestone_start

LOG = logging.getLogger(__name__)


class UsfmTokenType(Enum):
    CHAPTER = auto()
    VERSE = auto()
    TEXT = auto()
    WORD = auto()
    PARAGRAPH = auto()
    CHARACTER = auto()
    NOTE = auto()
    END = auto()
    MILESTONE = auto()
    MILESTONE_END = auto()
    UNKNOWN = auto()


_STYLE_TOKEN_TYPES = {
    UsfmStyleType.PARAGRAPH: UsfmTokenType.PARAGRAPH,
    UsfmStyleType.CHARACTER: UsfmTokenType.CHARACTER,
    UsfmStyleType.NOTE: UsfmTokenType.NOTE,
    UsfmStyleType.UNKNOWN: UsfmTokenType.UNKNOWN,
}

_LINE_BREAK_REGEX = regex.compile(r"\r?\n")
_MARKER_REGEX = regex.compile(r"\\(?:(?P<tag>\+?\w+(?:-[se](?!\w))?)(?P<close>\*)?|(?P<selfclose>\*))")
_NUMBER_REGEX = regex.compile(r"[ \t]+(?P<number>\d+[a-z]?)(?!\w)")


@dataclass
class UsfmToken:
    type: UsfmTokenType
    marker: Optional[str] = None
    text: Optional[str] = None
    end_marker: Optional[str] = None
    number: Optional[str] = None
    next_char: Optional[str] = None
    raw: str = ""
    line_number: int = -1
    column_number: int = -1

    @property
    def nestless_marker(self) -> Optional[str]:
        return self.marker[1:] if self.marker is not None and self.marker[0] == "+" else self.marker

    @property
    def is_closed(self) -> bool:
        return self.end_marker is not None


class UsfmTokenizer:
    def __init__(self, stylesheet: UsfmStylesheet = DEFAULT_STYLESHEET) -> None:
        self._stylesheet = stylesheet

    def tokenize(self, text: str) -> List[UsfmToken]:
        tokens: List[UsfmToken] = []
        lines = _LINE_BREAK_REGEX.split(text)
        last = len(lines) - 1
        for index, line in enumerate(lines):
            if index < last:
                line += "\n"
            self._tokenize_line(line, index + 1, index == last, tokens)
        return tokens

    def _tokenize_line(self, line: str, line_number: int, is_final: bool, tokens: List[UsfmToken]) -> None:
        if line.strip() == "":
            if not is_final:
                tokens.append(UsfmToken(UsfmTokenType.TEXT, text=line, raw=line, line_number=line_number, column_number=0))
            return

        matches = list(_MARKER_REGEX.finditer(line))
        pos = 0
        index = 0
        while index < len(matches):
            match = matches[index]
            if match.start() > pos:
                self._add_text(tokens, line[pos : match.start()], line_number, pos)

            if match.group("tag") is None or match.group("close") is not None:
                # \* or \tag*
                marker = "*" if match.group("tag") is None else match.group("tag") + "*"
                tokens.append(
                    UsfmToken(
                        UsfmTokenType.END,
                        marker=marker,
                        raw=match.group(0),
                        line_number=line_number,
                        column_number=match.start(),
                    )
                )
                pos = match.end()
                index += 1
                continue

            following = matches[index + 1] if index + 1 < len(matches) else None
            rest_end = following.start() if following is not None else len(line)
            rest = line[match.end() : rest_end]
            token = self._read_marker(match, rest, line_number)

            end = rest_end
            if following is not None and self._closes(match.group("tag"), rest, following):
                token.end_marker = "*" if following.group("selfclose") is not None else following.group("tag") + "*"
                end = following.end()
                index += 1
            token.raw = line[match.start() : end]
            tokens.append(token)
            pos = end
            index += 1

        if pos < len(line):
            self._add_text(tokens, line[pos:], line_number, pos)

    def _read_marker(self, match: regex.Match, rest: str, line_number: int) -> UsfmToken:
        marker = match.group("tag")
        token = UsfmToken(self._token_type(marker), marker=marker, line_number=line_number, column_number=match.start())

        if self._stylesheet.get_tag(marker).numbered:
            number_match = _NUMBER_REGEX.match(rest)
            if number_match is not None:
                token.number = number_match.group("number")
                rest = rest[number_match.end() :]

        if rest == "":
            return token
        if rest.strip() == "":
            token.next_char = rest
        elif rest[0] == " ":
            token.text = rest[1:]
        else:
            token.text = rest
        return token

    def _token_type(self, marker: str) -> UsfmTokenType:
        tag = marker[1:] if marker.startswith("+") else marker
        if tag == "c":
            return UsfmTokenType.CHAPTER
        if tag == "v":
            return UsfmTokenType.VERSE
        if tag == "w":
            return UsfmTokenType.WORD
        if is_milestone_start(tag):
            return UsfmTokenType.MILESTONE
        if is_milestone_end(tag):
            return UsfmTokenType.MILESTONE_END
        return _STYLE_TOKEN_TYPES[self._stylesheet.get_tag(tag).style_type]

    @staticmethod
    def _closes(marker: str, rest: str, following: regex.Match) -> bool:
        if following.group("selfclose") is not None:
            # \* only ends milestones and markers carrying attributes
            tag = marker[1:] if marker.startswith("+") else marker
            return is_milestone_start(tag) or is_milestone_end(tag) or "|" in rest
        return following.group("close") is not None and following.group("tag") == marker

    @staticmethod
    def _add_text(tokens: List[UsfmToken], text: str, line_number: int, column_number: int) -> None:
        tokens.append(
            UsfmToken(UsfmTokenType.TEXT, text=text, raw=text, line_number=line_number, column_number=column_number)
        )


def tokenize(text: str) -> List[UsfmToken]:
    tokens = UsfmTokenizer().tokenize(text)
    LOG.debug("read %d tokens", len(tokens))
    return tokens
