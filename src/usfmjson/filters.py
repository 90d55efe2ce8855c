"""
Helpers built on top of the parser: plain text extraction, header lookup and
marker removal.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Union

import regex

from .markers import NOTE_MARKERS, content_is_display_text
from .model import Document, Marker, Milestone, Text, VerseObject, Word
from .parser import parse_usfm

_WORD_REGEX = regex.compile(r"\\(\+?)w\s+([^|\\]*?)\s*(?:\|[^\\]*)?\\\1w\*")


def _verse_object_lists(document: Document) -> Iterator[List[VerseObject]]:
    yield document.headers
    for chapter in document.chapters.values():
        for content in chapter.values():
            yield content.verse_objects
    if document.verses is not None:
        for content in document.verses.values():
            yield content.verse_objects


def _plain_text(verse_objects: Iterable[VerseObject], parts: List[str]) -> None:
    for verse_object in verse_objects:
        if isinstance(verse_object, Text):
            parts.append(verse_object.text)
        elif isinstance(verse_object, Word):
            parts.append(verse_object.text)
        elif isinstance(verse_object, Milestone):
            _plain_text(verse_object.children or (), parts)
        elif isinstance(verse_object, Marker) and content_is_display_text(verse_object.tag) and verse_object.text:
            parts.append(verse_object.text)


def flatten_to_plain_text(fragment: Optional[str]) -> Optional[str]:
    """Parse a USFM fragment and return only the text a reader would see."""
    if not fragment:
        return fragment
    document = parse_usfm(fragment, chunk=True)
    parts: List[str] = []
    for verse_objects in _verse_object_lists(document):
        _plain_text(verse_objects, parts)
    return "".join(parts)


def header_lookup(document: Document) -> Dict[str, str]:
    """Map each header tag (id, h, toc1...) to its trimmed value; the first occurrence wins."""
    headers: Dict[str, str] = {}
    for header in document.headers:
        if isinstance(header, Marker):
            headers.setdefault(header.tag, (header.payload or "").strip())
    return headers


def remove_marker(text: Optional[str], markers: Union[None, str, Iterable[str]] = None) -> str:
    """Strip USFM markers from ``text``.

    Footnotes and cross references are removed together with their content,
    words keep only their text and every other marker is dropped. With
    ``markers`` only the named tags (and their numbered levels) are touched.
    """
    if not text:
        return ""
    if isinstance(markers, str):
        markers = [markers]
    selected = None if markers is None else list(markers)

    notes = NOTE_MARKERS if selected is None else [tag for tag in selected if tag in NOTE_MARKERS]
    for tag in notes:
        text = regex.sub(rf"\\{tag}(?![\w-]).*?\\{tag}\*", "", text, flags=regex.DOTALL)

    if selected is None or "w" in selected:
        text = _WORD_REGEX.sub(r"\2", text)

    if selected is None:
        tag_pattern = r"\\\+?\w+(?:-[se])?\*?|\\\*"
    else:
        others = [regex.escape(tag) for tag in selected if tag not in NOTE_MARKERS]
        if len(others) == 0:
            return text
        tag_pattern = r"\\\+?(?:" + "|".join(others) + r")\d*(?![\w-])\*?"

    # a marker glued to the previous word leaves a single space behind
    text = regex.sub(rf"(?:^|(?<=\s))(?:{tag_pattern})\s*", "", text)
    return regex.sub(rf"(?:{tag_pattern})(\s?)\s*", r"\1", text)
