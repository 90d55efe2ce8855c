"""
USFM to JSON converter

Parses USFM into verse objects grouped by chapter and verse, and writes them
back out as USFM without changing a well-formed source.
"""

from .filters import flatten_to_plain_text, header_lookup, remove_marker
from .model import Document, Marker, Milestone, Text, UsfmAttribute, VerseContent, VerseObject, Word
from .parser import ParseOptions, UsfmParser, parse_usfm
from .serializer import SerializeOptions, UsfmSerializer, to_usfm

__version__ = "0.2.0"

__all__ = [
    "Document",
    "Marker",
    "Milestone",
    "ParseOptions",
    "SerializeOptions",
    "Text",
    "UsfmAttribute",
    "UsfmParser",
    "UsfmSerializer",
    "VerseContent",
    "VerseObject",
    "Word",
    "flatten_to_plain_text",
    "header_lookup",
    "parse_usfm",
    "remove_marker",
    "to_usfm",
]
