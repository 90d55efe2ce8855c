"""
USFM marker taxonomy

Static classification of the known USFM tags. The tables are built once, when
the module is imported, and are read-only afterwards; the tokenizer, parser
and serializer all consult the same stylesheet.
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple


class UsfmStyleType(Enum):
    UNKNOWN = auto()
    CHARACTER = auto()
    NOTE = auto()
    PARAGRAPH = auto()


# Output node types
PARAGRAPH = "paragraph"
QUOTE = "quote"
SECTION = "section"
FOOTNOTE = "footnote"


@dataclass(frozen=True)
class UsfmTag:
    marker: str
    style_type: UsfmStyleType = UsfmStyleType.UNKNOWN
    end_marker: Optional[str] = None
    display_text: bool = False
    numbered: bool = False
    type_name: Optional[str] = None

    @property
    def needs_termination(self) -> bool:
        return self.end_marker is not None


def _levels(marker: str, count: int) -> Tuple[str, ...]:
    return (marker,) + tuple(f"{marker}{level}" for level in range(1, count + 1))


# Paragraph level styles; their text is shown inline and is not closed
PARAGRAPH_MARKERS = (
    ("p", "m", "po", "pr", "cls", "pmo", "pm", "pmc", "pmr", "mi", "nb", "pc", "b", "lh", "lf")
    + _levels("pi", 3)
    + _levels("ph", 3)
    + _levels("li", 4)
    + _levels("lim", 4)
    + ("ip", "ipi", "im", "imi", "ipq", "imq", "ipr", "ib", "ie", "cd", "lit")
    + _levels("ili", 2)
    + _levels("io", 4)
)

QUOTE_MARKERS = (
    ("qr", "qc", "qa", "qd")
    + _levels("q", 4)
    + _levels("qm", 3)
    + _levels("iq", 3)
)

SECTION_MARKERS = (
    ("mr", "r", "sr", "d", "sp", "cl", "iot")
    + _levels("s", 4)
    + _levels("ms", 3)
    + _levels("sd", 4)
    + _levels("mt", 4)
    + _levels("mte", 2)
    + _levels("is", 2)
    + _levels("imt", 4)
)

NOTE_MARKERS = ("f", "fe", "ef", "x", "ex")

# Spans that run until an explicit \tag* is found
NEED_TERMINATION_MARKERS = (
    "add", "bd", "bdit", "bk", "ca", "cat", "dc", "ef", "em", "ex", "f", "fa", "fdc", "fe",
    "fig", "fm", "fqa", "fv", "ior", "iqt", "it", "jmp", "k", "lik", "litl", "nd", "ndx",
    "no", "ord", "pn", "png", "pro", "qac", "qs", "qt", "rb", "rq", "rt", "sc", "sig",
    "sis", "sup", "tl", "va", "vp", "w", "wa", "wg", "wh", "wj", "x", "xdc", "xnt", "xop",
    "xot", "xta",
) + _levels("imte", 3) + _levels("liv", 3)

NUMBERED_MARKERS = ("c", "v", "ca", "va", "vp")

IDENTIFICATION_MARKERS = (
    ("id", "ide", "usfm", "sts", "rem", "restore")
    + _levels("h", 3)
    + ("toc1", "toc2", "toc3", "toca1", "toca2", "toca3")
)

# \w attributes defined by USFM 3; everything else is written with an "x-" prefix
STANDARD_WORD_ATTRIBUTES = frozenset(
    ("lemma", "strong", "srcloc", "gloss", "link-href", "link-title", "link-id")
)

STANDARD_MILESTONE_ATTRIBUTES = frozenset(("who", "sid", "eid"))

# Attribute assumed when a tag is followed by a bare value (\w gracious|grace\w*)
DEFAULT_ATTRIBUTES: Mapping[str, str] = MappingProxyType(
    {"w": "lemma", "rb": "gloss", **{tag: "who" for tag in _levels("qt", 5)}}
)

# End markers that close a milestone opened under a different name
MILESTONE_END_ALIASES: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {"qt-e": _levels("qt", 5)[1:]}
)


class UsfmStylesheet:
    def __init__(self) -> None:
        self._tags: Dict[str, UsfmTag] = {}
        self._create_default_tags()
        self._frozen: Mapping[str, UsfmTag] = MappingProxyType(self._tags)

    @property
    def tags(self) -> Mapping[str, UsfmTag]:
        return self._frozen

    def get_tag(self, marker: str) -> UsfmTag:
        marker = nestless(marker)
        tag = self._frozen.get(marker)
        if tag is not None:
            return tag
        return UsfmTag(marker)

    def _create_tags(self, markers: Iterable[str], **properties) -> None:
        for marker in markers:
            # If tag already exists update with the additional properties
            tag = self._tags.get(marker)
            if tag is None:
                self._tags[marker] = UsfmTag(marker, **properties)
            else:
                self._tags[marker] = replace(tag, **properties)

    def _create_default_tags(self) -> None:
        self._create_tags(IDENTIFICATION_MARKERS, style_type=UsfmStyleType.PARAGRAPH)
        self._create_tags(
            PARAGRAPH_MARKERS, style_type=UsfmStyleType.PARAGRAPH, display_text=True, type_name=PARAGRAPH
        )
        self._create_tags(
            QUOTE_MARKERS, style_type=UsfmStyleType.PARAGRAPH, display_text=True, type_name=QUOTE
        )
        self._create_tags(
            SECTION_MARKERS, style_type=UsfmStyleType.PARAGRAPH, display_text=True, type_name=SECTION
        )
        for marker in NEED_TERMINATION_MARKERS:
            self._create_tags((marker,), style_type=UsfmStyleType.CHARACTER, end_marker=marker + "*")
        self._create_tags(NOTE_MARKERS, style_type=UsfmStyleType.NOTE, type_name=FOOTNOTE)
        self._create_tags(("c",), style_type=UsfmStyleType.PARAGRAPH)
        self._create_tags(("v",), style_type=UsfmStyleType.CHARACTER)
        self._create_tags(NUMBERED_MARKERS, numbered=True)


def nestless(marker: str) -> str:
    return marker[1:] if marker.startswith("+") else marker


DEFAULT_STYLESHEET = UsfmStylesheet()


def needs_termination(tag: str) -> bool:
    return DEFAULT_STYLESHEET.get_tag(tag).needs_termination


def content_is_display_text(tag: str) -> bool:
    return DEFAULT_STYLESHEET.get_tag(tag).display_text


def supports_numeric_argument(tag: str) -> bool:
    return DEFAULT_STYLESHEET.get_tag(tag).numbered


def type_of(tag: str) -> Optional[str]:
    return DEFAULT_STYLESHEET.get_tag(tag).type_name


def is_milestone_start(tag: str) -> bool:
    return tag.endswith("-s") and len(tag) > 2


def is_milestone_end(tag: str) -> bool:
    return tag.endswith("-e") and len(tag) > 2


def milestone_start_for(end_tag: str) -> Tuple[str, ...]:
    """Return the milestone tags that ``end_tag`` (``zaln-e``, ``k*``...) can close."""
    tag = nestless(end_tag)
    if tag.endswith("*"):
        tag = tag[:-1]
    aliases = MILESTONE_END_ALIASES.get(tag, ())
    if is_milestone_end(tag):
        tag = tag[:-2]
    return (tag,) + aliases


def default_attribute(tag: str) -> Optional[str]:
    return DEFAULT_ATTRIBUTES.get(nestless(tag))


def is_standard_word_attribute(name: str) -> bool:
    return name in STANDARD_WORD_ATTRIBUTES


def is_standard_milestone_attribute(name: str) -> bool:
    return name in STANDARD_MILESTONE_ATTRIBUTES
