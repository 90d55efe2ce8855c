"""
Verse objects to USFM

The inverse of the parser: walks a Document and writes the markup back,
restoring the whitespace the tokenizer recorded and reconciling line breaks
around chapter and verse markers.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import regex

from .markers import is_standard_milestone_attribute, is_standard_word_attribute
from .model import Document, Marker, Milestone, Text, UsfmAttribute, VerseContent, VerseObject, Word

LOG = logging.getLogger(__name__)

_QUOTE_LINE_REGEX = regex.compile(r"\\q\d*\s")
_LEADING_NUMBER_REGEX = regex.compile(r"^\d+")
_BLANK_LINE_END_REGEX = regex.compile(r"[ \t]*\n")
_TRAILING_BLANKS_REGEX = regex.compile(r"[ \t]+\n")


@dataclass(frozen=True)
class SerializeOptions:
    chunk: bool = False
    ignore: Tuple[str, ...] = ()
    attribute_map: Optional[Mapping[str, str]] = None
    milestone_ignore: Tuple[str, ...] = ()
    milestone_map: Optional[Mapping[str, str]] = None
    forced_new_lines: bool = False


class _UsfmWriter:
    def __init__(self) -> None:
        self._parts: List[str] = []
        self._line = ""

    def write(self, text: Optional[str]) -> None:
        if not text:
            return
        self._parts.append(text)
        if "\n" in text:
            self._line = text.rsplit("\n", 1)[1]
        else:
            self._line += text

    @property
    def last_char(self) -> str:
        return self._parts[-1][-1] if len(self._parts) > 0 else ""

    @property
    def current_line(self) -> str:
        return self._line

    def drop_last_char(self) -> None:
        last = self._parts.pop()[:-1]
        if last:
            self._parts.append(last)
        self._line = self._line[:-1]

    def getvalue(self) -> str:
        return "".join(self._parts)


def verse_sort_key(verse: str) -> Tuple[int, str]:
    match = _LEADING_NUMBER_REGEX.match(verse)
    return (int(match.group()) if match is not None else 0, verse)


def _render_attributes(
    attributes: Iterable[UsfmAttribute],
    ignore: Sequence[str],
    attribute_map: Mapping[str, str],
    is_standard: Callable[[str], bool],
) -> str:
    rendered = []
    for attribute in attributes:
        if attribute.name in ignore:
            continue
        name = attribute_map.get(attribute.name, attribute.name)
        if name == "strongs":
            name = "strong"
        prefix = "" if is_standard(name) else "x-"
        rendered.append(f'{prefix}{name}="{attribute.value}"')
    return " ".join(rendered)


class UsfmSerializer:
    def __init__(self, options: Optional[SerializeOptions] = None) -> None:
        self.options = SerializeOptions() if options is None else options
        self._word_map: Dict[str, str] = dict(self.options.attribute_map or {})
        self._milestone_map: Dict[str, str] = dict(self.options.milestone_map or {})

    def serialize(self, document: Document) -> str:
        writer = _UsfmWriter()
        self._write_objects(writer, document.headers)
        if not self.options.chunk:
            for chapter in sorted(document.chapters, key=verse_sort_key):
                self._write_chapter(writer, chapter, document.chapters[chapter])
        if document.verses is not None:
            self._write_verses(writer, document.verses)
        return writer.getvalue()

    def _write_chapter(self, writer: _UsfmWriter, chapter: str, verses: Dict[str, VerseContent]) -> None:
        if writer.last_char not in ("", "\n"):
            writer.write("\n")
        writer.write(f"\\c {chapter}")
        front = verses.get("front")
        first = front.verse_objects[0] if front is not None and front.verse_objects else None
        if not (isinstance(first, Text) and _TRAILING_BLANKS_REGEX.match(first.text)):
            writer.write("\n")
        if front is not None:
            self._write_objects(writer, front.verse_objects)
        self._write_verses(writer, {verse: content for verse, content in verses.items() if verse != "front"})

    def _write_verses(self, writer: _UsfmWriter, verses: Dict[str, VerseContent]) -> None:
        for verse in sorted(verses, key=verse_sort_key):
            self._write_verse(writer, verse, verses[verse])

    def _write_verse(self, writer: _UsfmWriter, verse: str, content: VerseContent) -> None:
        body_writer = _UsfmWriter()
        self._write_objects(body_writer, content.verse_objects)
        body = body_writer.getvalue()

        last_char = writer.last_char
        in_quote = _QUOTE_LINE_REGEX.search(writer.current_line) is not None
        if last_char in ("", "\n"):
            pass
        elif last_char.isspace():
            if self.options.forced_new_lines and not in_quote:
                writer.drop_last_char()
                writer.write("\n")
        elif in_quote:
            writer.write(" ")
        else:
            writer.write("\n")

        writer.write(f"\\v {verse}")
        if body and _BLANK_LINE_END_REGEX.match(body) is None:
            writer.write(" ")
        writer.write(body)

    def _write_objects(self, writer: _UsfmWriter, verse_objects: Optional[Sequence[VerseObject]]) -> None:
        previous: Optional[VerseObject] = None
        for verse_object in verse_objects or ():
            if (
                self.options.forced_new_lines
                and isinstance(verse_object, Milestone)
                and isinstance(previous, Milestone)
                and not writer.last_char.isspace()
            ):
                writer.write("\n")
            self._write_object(writer, verse_object)
            previous = verse_object

    def _write_object(self, writer: _UsfmWriter, verse_object: VerseObject) -> None:
        if isinstance(verse_object, Text):
            writer.write(verse_object.text)
        elif isinstance(verse_object, Word):
            self._write_word(writer, verse_object)
        elif isinstance(verse_object, Milestone):
            self._write_milestone(writer, verse_object)
        elif isinstance(verse_object, Marker):
            self._write_marker(writer, verse_object)
        else:
            raise TypeError(f"Cannot serialize {verse_object!r}")

    def _write_word(self, writer: _UsfmWriter, word: Word) -> None:
        attributes = _render_attributes(word.attributes, self.options.ignore, self._word_map, is_standard_word_attribute)
        writer.write(f"\\{word.tag} {word.text}")
        if attributes:
            writer.write("|" + attributes)
        writer.write(f"\\{word.tag}*")

    def _write_milestone(self, writer: _UsfmWriter, milestone: Milestone) -> None:
        attributes = _render_attributes(
            milestone.attributes, self.options.milestone_ignore, self._milestone_map, is_standard_milestone_attribute
        )
        writer.write(f"\\{milestone.tag}-s")
        if attributes:
            writer.write(" |" + attributes)
        writer.write("\\*")
        self._write_objects(writer, milestone.children)
        if milestone.end_tag is not None:
            writer.write("\\" + milestone.end_tag)

    def _write_marker(self, writer: _UsfmWriter, marker: Marker) -> None:
        writer.write("\\" + marker.tag)
        if marker.number is not None:
            writer.write(" " + marker.number)
        payload = marker.payload
        if payload:
            writer.write(payload if payload.startswith("\n") else " " + payload)
        writer.write(marker.next_char)
        if marker.end_tag is not None:
            writer.write("\\" + marker.end_tag)


def to_usfm(
    document: Document,
    chunk: bool = False,
    ignore: Iterable[str] = (),
    attribute_map: Optional[Mapping[str, str]] = None,
    milestone_ignore: Iterable[str] = (),
    milestone_map: Optional[Mapping[str, str]] = None,
    forced_new_lines: bool = False,
) -> str:
    """Write a Document back out as USFM text."""
    options = SerializeOptions(
        chunk=chunk,
        ignore=tuple(ignore),
        attribute_map=attribute_map,
        milestone_ignore=tuple(milestone_ignore),
        milestone_map=milestone_map,
        forced_new_lines=forced_new_lines,
    )
    usfm = UsfmSerializer(options).serialize(document)
    LOG.debug("wrote %d characters of USFM", len(usfm))
    return usfm
