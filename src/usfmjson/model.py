"""
Verse objects

The tree built by the parser and consumed by the serializer, together with the
conversion to and from the JSON shape used by other USFM tooling::

    {"headers": [...], "chapters": {"1": {"1": {"verseObjects": [...]}}}}
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from .markers import type_of

AttributeValue = Union[str, int]


@dataclass
class UsfmAttribute:
    name: str
    value: AttributeValue

    def __repr__(self) -> str:
        return f'{self.name}="{self.value}"'


def _get_attribute(attributes: Iterable[UsfmAttribute], name: str) -> Optional[AttributeValue]:
    attribute = next((a for a in attributes if a.name == name), None)
    if attribute is None:
        return None
    return attribute.value


@dataclass
class Text:
    text: str

    def to_json(self) -> Dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass
class Word:
    text: str
    attributes: List[UsfmAttribute] = field(default_factory=list)
    tag: str = "w"

    def get_attribute(self, name: str) -> Optional[AttributeValue]:
        return _get_attribute(self.attributes, name)

    @property
    def lemma(self) -> Optional[AttributeValue]:
        return self.get_attribute("lemma")

    @property
    def strong(self) -> Optional[AttributeValue]:
        return self.get_attribute("strong")

    @property
    def morph(self) -> Optional[AttributeValue]:
        return self.get_attribute("morph")

    @property
    def occurrence(self) -> Optional[AttributeValue]:
        return self.get_attribute("occurrence")

    @property
    def occurrences(self) -> Optional[AttributeValue]:
        return self.get_attribute("occurrences")

    @property
    def content_source(self) -> Optional[AttributeValue]:
        return self.get_attribute("content-source")

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text, "tag": self.tag, "type": "word"}
        for attribute in self.attributes:
            data[attribute.name] = attribute.value
        return data


@dataclass
class Milestone:
    tag: str
    attributes: List[UsfmAttribute] = field(default_factory=list)
    children: Optional[List["VerseObject"]] = None
    end_tag: Optional[str] = None

    def get_attribute(self, name: str) -> Optional[AttributeValue]:
        return _get_attribute(self.attributes, name)

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"tag": self.tag, "type": "milestone"}
        for attribute in self.attributes:
            data[attribute.name] = attribute.value
        if self.children:
            data["children"] = [child.to_json() for child in self.children]
        if self.end_tag is not None:
            data["endTag"] = self.end_tag
        return data


@dataclass
class Marker:
    """A paragraph, section, note or character marker.

    Display text tags (paragraphs, quotes and sections) keep their payload in
    ``text``; every other tag keeps it in ``content``.
    """

    tag: str
    number: Optional[str] = None
    text: Optional[str] = None
    content: Optional[str] = None
    next_char: Optional[str] = None
    end_tag: Optional[str] = None

    @property
    def type(self) -> Optional[str]:
        return type_of(self.tag)

    @property
    def payload(self) -> Optional[str]:
        return self.text if self.text is not None else self.content

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"tag": self.tag}
        if self.type is not None:
            data["type"] = self.type
        if self.number is not None:
            data["number"] = self.number
        if self.text is not None:
            data["text"] = self.text
        if self.content is not None:
            data["content"] = self.content
        if self.next_char is not None:
            data["nextChar"] = self.next_char
        if self.end_tag is not None:
            data["endTag"] = self.end_tag
        return data


VerseObject = Union[Text, Word, Milestone, Marker]

_WORD_KEYS = ("text", "tag", "type")
_MILESTONE_KEYS = ("tag", "type", "children", "endTag")


def _attributes_from_json(data: Dict[str, Any], reserved: Iterable[str]) -> List[UsfmAttribute]:
    return [UsfmAttribute(key, value) for key, value in data.items() if key not in reserved]


def verse_object_from_json(data: Dict[str, Any]) -> VerseObject:
    if not isinstance(data, dict):
        raise ValueError(f"Expected a verse object, got {data!r}")
    kind = data.get("type")
    if kind == "text":
        return Text(data.get("text", ""))
    if kind == "word":
        return Word(data.get("text", ""), _attributes_from_json(data, _WORD_KEYS), data.get("tag", "w"))
    if kind == "milestone":
        if data.get("tag") is None:
            raise ValueError(f"Milestone without a tag: {data!r}")
        children = data.get("children")
        return Milestone(
            data["tag"],
            _attributes_from_json(data, _MILESTONE_KEYS),
            [verse_object_from_json(child) for child in children] if children else None,
            data.get("endTag"),
        )
    if "tag" in data:
        return Marker(
            data["tag"],
            number=data.get("number"),
            text=data.get("text"),
            content=data.get("content"),
            next_char=data.get("nextChar"),
            end_tag=data.get("endTag"),
        )
    raise ValueError(f"Cannot determine the verse object type of {data!r}")


@dataclass
class VerseContent:
    verse_objects: List[VerseObject] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {"verseObjects": [verse_object.to_json() for verse_object in self.verse_objects]}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "VerseContent":
        return cls([verse_object_from_json(item) for item in data.get("verseObjects", [])])


Chapter = Dict[str, VerseContent]


@dataclass
class Document:
    headers: List[VerseObject] = field(default_factory=list)
    chapters: Dict[str, Chapter] = field(default_factory=dict)
    verses: Optional[Dict[str, VerseContent]] = None

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "headers": [header.to_json() for header in self.headers],
            "chapters": {
                chapter: {verse: content.to_json() for verse, content in verses.items()}
                for chapter, verses in self.chapters.items()
            },
        }
        if self.verses is not None:
            data["verses"] = {verse: content.to_json() for verse, content in self.verses.items()}
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Document":
        verses = data.get("verses")
        return cls(
            headers=[verse_object_from_json(header) for header in data.get("headers", [])],
            chapters={
                str(chapter): {str(verse): VerseContent.from_json(content) for verse, content in chapter_verses.items()}
                for chapter, chapter_verses in data.get("chapters", {}).items()
            },
            verses=None
            if verses is None
            else {str(verse): VerseContent.from_json(content) for verse, content in verses.items()},
        )
