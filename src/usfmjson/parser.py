"""
USFM to verse object parser

Consumes the token list produced by the tokenizer and builds a Document.
Malformed scripture text never aborts a parse: missing numbers, unmatched end
markers and duplicate verses are recovered from locally and reported through
the module logger.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

import regex

from .markers import DEFAULT_STYLESHEET, UsfmStylesheet, default_attribute, milestone_start_for, nestless
from .model import (
    AttributeValue,
    Chapter,
    Document,
    Marker,
    Milestone,
    Text,
    UsfmAttribute,
    VerseContent,
    VerseObject,
    Word,
)
from .tokenizer import UsfmToken, UsfmTokenizer, UsfmTokenType

LOG = logging.getLogger(__name__)

_ATTRIBUTE_REGEX = regex.compile(r"([\w-]+)\s*=\s*([\"'])(.*?)\2")
_GLUED_NUMBER_REGEX = regex.compile(r"^(?P<tag>[cv])(?P<number>\d+)$")
_VERSE_SPAN_REGEX = regex.compile(r"^-(?P<end>\d+[a-z]?)(?![\w-])")


@dataclass(frozen=True)
class ParseOptions:
    chunk: bool = False
    content_source: Optional[str] = None
    convert_to_int: Tuple[str, ...] = ()
    attribute_map: Optional[Mapping[str, str]] = None


def normalize_number(number: str) -> str:
    return number.lstrip("0") or "0"


def parse_attributes(
    attribute_string: str, default_name: Optional[str], options: ParseOptions
) -> List[UsfmAttribute]:
    """Read ``key="value"`` pairs, canonicalizing keys the way they are stored in the tree."""
    attributes: List[UsfmAttribute] = []
    matches = list(_ATTRIBUTE_REGEX.finditer(attribute_string))
    if len(matches) == 0:
        value = attribute_string.strip()
        if value and default_name is not None:
            attributes.append(UsfmAttribute(default_name, value))
        elif value:
            LOG.debug("dropping unnamed attribute value %r", value)
        return attributes

    for match in matches:
        key = match.group(1)
        if key.startswith("x-"):
            key = key[2:]
        if key == "strongs":
            key = "strong"
        if options.attribute_map is not None:
            key = options.attribute_map.get(key, key)
        value: AttributeValue = match.group(3)
        if key in options.convert_to_int:
            try:
                value = int(value)
            except ValueError:
                LOG.debug("attribute %s=%r is not an integer", key, value)
        attributes.append(UsfmAttribute(key, value))
    return attributes


class UsfmParserState:
    def __init__(self, stylesheet: UsfmStylesheet, options: ParseOptions) -> None:
        self._stylesheet = stylesheet
        self.options = options
        self.headers: List[VerseObject] = []
        self.chapters: Dict[str, Chapter] = {}
        self.verses: Dict[str, VerseContent] = {}
        self.current_chapter: Optional[str] = None
        self.current_verse: Optional[str] = None
        self.suppressed = False
        # open milestones are indices into the arena
        self._arena: List[Milestone] = []
        self._milestones: List[int] = []
        # tags opened since the outermost unterminated marker
        self._nesting: List[str] = []
        self.nested: Optional[Marker] = None
        self._discard: List[VerseObject] = []

    @property
    def stylesheet(self) -> UsfmStylesheet:
        return self._stylesheet

    @property
    def is_nested(self) -> bool:
        return self.nested is not None

    @property
    def nesting(self) -> List[str]:
        return self._nesting

    def target(self) -> List[VerseObject]:
        if len(self._milestones) > 0:
            milestone = self._arena[self._milestones[-1]]
            if milestone.children is None:
                milestone.children = []
            return milestone.children
        if self.suppressed:
            return self._discard
        if self.options.chunk and self.current_verse is not None:
            return self.verses[self.current_verse].verse_objects
        if self.current_chapter is not None:
            chapter = self.chapters[self.current_chapter]
            verse = "front" if self.current_verse is None else self.current_verse
            return chapter.setdefault(verse, VerseContent()).verse_objects
        return self.headers

    def push(self, verse_object: VerseObject) -> None:
        self.target().append(verse_object)

    def push_text(self, text: Optional[str]) -> None:
        if not text:
            return
        target = self.target()
        if len(target) > 0 and isinstance(target[-1], Text):
            target[-1].text += text
        else:
            target.append(Text(text))

    def push_literal(self, raw: str) -> None:
        if self.is_nested:
            self.append_raw(raw)
        else:
            self.push_text(raw)

    def open_nested(self, marker: Marker) -> None:
        self.push(marker)
        self.nested = marker
        self._nesting = [nestless(marker.tag)]

    def append_raw(self, raw: str) -> None:
        marker = self.nested
        assert marker is not None
        payload = marker.payload or ""
        if marker.next_char is not None:
            pending = marker.next_char
            payload += pending[1:] if pending.startswith(" ") else pending
            marker.next_char = None
        payload += raw
        if marker.text is not None or self._stylesheet.get_tag(marker.tag).display_text:
            marker.text = payload
        else:
            marker.content = payload

    def close_nested(self) -> None:
        self.nested = None
        self._nesting = []

    def open_milestone(self, milestone: Milestone) -> None:
        self.push(milestone)
        self._arena.append(milestone)
        self._milestones.append(len(self._arena) - 1)

    def find_milestone(self, tags: Tuple[str, ...]) -> Optional[int]:
        for depth in range(len(self._milestones) - 1, -1, -1):
            if nestless(self._arena[self._milestones[depth]].tag) in tags:
                return depth
        return None

    def close_milestones(self, depth: int, end_tag: Optional[str] = None) -> None:
        """Close the milestone at ``depth`` and every milestone opened inside it."""
        while len(self._milestones) > depth:
            milestone = self._arena[self._milestones.pop()]
            if not milestone.children:
                milestone.children = None
            if len(self._milestones) == depth:
                milestone.end_tag = end_tag

    def close_spans(self) -> None:
        if self.is_nested:
            LOG.debug("closing unterminated \\%s", self.nested.tag)
            self.close_nested()
        if len(self._milestones) > 0:
            LOG.debug("closing %d open milestone(s)", len(self._milestones))
            self.close_milestones(0)

    def to_document(self) -> Document:
        return Document(
            headers=self.headers,
            chapters=self.chapters,
            verses=self.verses if self.options.chunk else None,
        )


class UsfmParser:
    def __init__(self, stylesheet: UsfmStylesheet = DEFAULT_STYLESHEET, options: Optional[ParseOptions] = None) -> None:
        self._stylesheet = stylesheet
        self._tokenizer = UsfmTokenizer(stylesheet)
        self.options = ParseOptions() if options is None else options

    def parse(self, text: str) -> Document:
        tokens = self._tokenizer.tokenize(text)
        state = UsfmParserState(self._stylesheet, self.options)
        for token in tokens:
            self._process_token(state, _split_glued_number(token))
        state.close_spans()
        return state.to_document()

    def _process_token(self, state: UsfmParserState, token: UsfmToken) -> None:
        if token.type == UsfmTokenType.CHAPTER:
            self._process_chapter(state, token)
        elif token.type == UsfmTokenType.VERSE:
            self._process_verse(state, token)
        elif token.type == UsfmTokenType.MILESTONE_END:
            self._process_milestone_end(state, token)
        elif state.is_nested:
            self._process_nested(state, token)
        elif token.type == UsfmTokenType.END:
            self._process_end(state, token)
        elif token.type == UsfmTokenType.TEXT:
            state.push_text(token.text)
        elif token.type == UsfmTokenType.WORD:
            state.push(self._read_word(token))
        elif token.type == UsfmTokenType.MILESTONE:
            state.open_milestone(self._read_milestone(token))
        else:
            self._process_marker(state, token)

    def _process_chapter(self, state: UsfmParserState, token: UsfmToken) -> None:
        if token.number is None:
            LOG.debug("line %d: \\c without a number kept as text", token.line_number)
            state.push_literal(token.raw)
            return

        state.close_spans()
        chapter = normalize_number(token.number)
        if chapter in state.chapters:
            LOG.warning("line %d: chapter %s repeated, keeping verses already read", token.line_number, chapter)
        state.chapters.setdefault(chapter, {})
        state.current_chapter = chapter
        state.current_verse = None
        state.suppressed = False
        if token.text is not None and token.text.strip() != "":
            state.push_text(token.text)
        elif token.next_char is not None and token.next_char != "\n" and "\n" in token.next_char:
            # trailing blanks after the number stay at the front of the chapter
            state.push_text(token.next_char)

    def _process_verse(self, state: UsfmParserState, token: UsfmToken) -> None:
        if token.number is None:
            LOG.debug("line %d: \\v without a number kept as text", token.line_number)
            state.push_literal(token.raw)
            return

        state.close_spans()
        verse = normalize_number(token.number)
        if token.text is not None:
            body = token.text
        elif token.next_char is not None and "\n" in token.next_char:
            body = token.next_char
        elif token.next_char is not None:
            body = token.next_char[1:] if token.next_char.startswith(" ") else token.next_char
        else:
            body = ""
        span = _VERSE_SPAN_REGEX.match(body)
        if span is not None:
            verse = f"{verse}-{span.group('end')}"
            body = body[span.end() :]
            if body.startswith(" "):
                body = body[1:]

        if state.options.chunk:
            verses: Optional[Dict[str, VerseContent]] = state.verses
        elif state.current_chapter is not None:
            verses = state.chapters[state.current_chapter]
        else:
            verses = None

        state.current_verse = verse
        if verses is None:
            LOG.warning("line %d: verse %s found before any chapter, dropped", token.line_number, verse)
            state.suppressed = True
        elif verse in verses:
            LOG.warning(
                "line %d: duplicate verse %s in chapter %s, keeping the first",
                token.line_number,
                verse,
                state.current_chapter,
            )
            state.suppressed = True
        else:
            verses[verse] = VerseContent()
            state.suppressed = False
        state.push_text(body)

    def _process_milestone_end(self, state: UsfmParserState, token: UsfmToken) -> None:
        assert token.marker is not None
        depth = state.find_milestone(milestone_start_for(token.marker))
        if depth is None:
            LOG.debug("line %d: unmatched \\%s kept as text", token.line_number, token.marker)
            state.push_literal(token.raw)
            return
        if state.is_nested:
            state.close_nested()
        self._close_milestones(state, depth, token)

    @staticmethod
    def _close_milestones(state: UsfmParserState, depth: int, token: UsfmToken) -> None:
        assert token.marker is not None
        if token.type != UsfmTokenType.MILESTONE_END or token.is_closed:
            state.close_milestones(depth, token.raw[1:])
            return
        # an end marker without \* leaves the text after it outside the milestone
        state.close_milestones(depth, token.marker)
        state.push_text(token.raw[1 + len(token.marker) :])

    def _process_nested(self, state: UsfmParserState, token: UsfmToken) -> None:
        if token.type == UsfmTokenType.END and token.marker != "*":
            tag = nestless(token.marker[:-1])
            if tag in state.nesting:
                while state.nesting.pop() != tag:
                    pass
                if len(state.nesting) == 0:
                    state.nested.end_tag = token.raw[1:]
                    state.close_nested()
                    return
            state.append_raw(token.raw)
            return

        state.append_raw(token.raw)
        if (
            token.marker is not None
            and not token.is_closed
            and self._stylesheet.get_tag(token.marker).needs_termination
        ):
            state.nesting.append(nestless(token.marker))

    def _process_end(self, state: UsfmParserState, token: UsfmToken) -> None:
        assert token.marker is not None
        if token.marker != "*":
            depth = state.find_milestone(milestone_start_for(token.marker))
            if depth is not None:
                self._close_milestones(state, depth, token)
                return
        LOG.debug("line %d: stray \\%s kept as text", token.line_number, token.marker)
        state.push_text(token.raw)

    def _process_marker(self, state: UsfmParserState, token: UsfmToken) -> None:
        assert token.marker is not None
        tag = self._stylesheet.get_tag(token.marker)
        marker = Marker(token.marker, number=token.number, next_char=token.next_char, end_tag=token.end_marker)
        if tag.display_text:
            marker.text = token.text
        else:
            marker.content = token.text

        if tag.needs_termination and not token.is_closed:
            state.open_nested(marker)
        else:
            state.push(marker)

    def _read_word(self, token: UsfmToken) -> Word:
        assert token.marker is not None
        text, _, attribute_string = (token.text or "").partition("|")
        attributes = parse_attributes(attribute_string, default_attribute(token.marker), self.options)
        if self.options.content_source is not None:
            attributes.insert(0, UsfmAttribute("content-source", self.options.content_source))
        return Word(text.strip(), attributes, token.marker)

    def _read_milestone(self, token: UsfmToken) -> Milestone:
        assert token.marker is not None
        tag = token.marker[:-2]
        _, _, attribute_string = (token.text or "").partition("|")
        return Milestone(tag, parse_attributes(attribute_string, default_attribute(tag), self.options))


def _split_glued_number(token: UsfmToken) -> UsfmToken:
    """Turn ``\\v1`` and ``\\c12`` into regular verse and chapter tokens."""
    if token.type != UsfmTokenType.UNKNOWN or token.marker is None:
        return token
    match = _GLUED_NUMBER_REGEX.match(token.marker)
    if match is None:
        return token
    LOG.debug("line %d: splitting glued marker \\%s", token.line_number, token.marker)
    token_type = UsfmTokenType.CHAPTER if match.group("tag") == "c" else UsfmTokenType.VERSE
    return UsfmToken(
        token_type,
        marker=match.group("tag"),
        text=token.text,
        end_marker=token.end_marker,
        number=match.group("number"),
        next_char=token.next_char,
        raw=token.raw,
        line_number=token.line_number,
        column_number=token.column_number,
    )


def parse_usfm(
    text: str,
    chunk: bool = False,
    content_source: Optional[str] = None,
    convert_to_int: Tuple[str, ...] = (),
    attribute_map: Optional[Mapping[str, str]] = None,
) -> Document:
    """Parse USFM text into a Document.

    With ``chunk`` the input is treated as a fragment and verses are collected
    in ``Document.verses`` instead of under their chapter.
    """
    options = ParseOptions(
        chunk=chunk,
        content_source=content_source,
        convert_to_int=tuple(convert_to_int),
        attribute_map=attribute_map,
    )
    return UsfmParser(options=options).parse(text)
