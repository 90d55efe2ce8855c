import pytest

from usfmjson import Document, Marker, Milestone, Text, UsfmAttribute, VerseContent, Word, parse_usfm
from usfmjson.model import verse_object_from_json


class TestJson:
    def test_word(self) -> None:
        word = Word("a", [UsfmAttribute("lemma", "b"), UsfmAttribute("occurrence", 1)])
        assert word.to_json() == {"text": "a", "tag": "w", "type": "word", "lemma": "b", "occurrence": 1}
        assert verse_object_from_json(word.to_json()) == word

    def test_milestone(self) -> None:
        milestone = Milestone("zaln", [UsfmAttribute("strong", "G1")], [Text("x")], "zaln-e\\*")
        assert milestone.to_json() == {
            "tag": "zaln",
            "type": "milestone",
            "strong": "G1",
            "children": [{"type": "text", "text": "x"}],
            "endTag": "zaln-e\\*",
        }
        assert verse_object_from_json(milestone.to_json()) == milestone

    def test_marker(self) -> None:
        """Test markers carry their derived type."""
        marker = Marker("q1", text="a\n")
        assert marker.to_json() == {"tag": "q1", "type": "quote", "text": "a\n"}
        footnote = Marker("f", content="+ \\ft x", end_tag="f*")
        assert footnote.to_json() == {"tag": "f", "type": "footnote", "content": "+ \\ft x", "endTag": "f*"}
        assert Marker("c", number="1", next_char="\n").to_json() == {"tag": "c", "number": "1", "nextChar": "\n"}
        assert verse_object_from_json(footnote.to_json()) == footnote

    def test_unknown_object(self) -> None:
        with pytest.raises(ValueError, match="Cannot determine"):
            verse_object_from_json({"text": "no type"})

    def test_malformed_objects(self) -> None:
        with pytest.raises(ValueError, match="Milestone without a tag"):
            verse_object_from_json({"type": "milestone"})
        with pytest.raises(ValueError, match="Expected a verse object"):
            verse_object_from_json(["text"])

    def test_document(self) -> None:
        document = parse_usfm("\\id GEN\n\\c 1\n\\v 1 a")
        assert document.to_json() == {
            "headers": [{"tag": "id", "content": "GEN\n"}],
            "chapters": {"1": {"1": {"verseObjects": [{"type": "text", "text": "a"}]}}},
        }

    def test_chunk_document(self) -> None:
        data = parse_usfm("\\v 1 a", chunk=True).to_json()
        assert data["verses"] == {"1": {"verseObjects": [{"type": "text", "text": "a"}]}}
        assert Document.from_json(data).verses == {"1": VerseContent([Text("a")])}

    def test_numeric_keys(self) -> None:
        document = Document.from_json({"chapters": {1: {2: {"verseObjects": []}}}})
        assert document.chapters == {"1": {"2": VerseContent()}}
        assert document.headers == []
        assert document.verses is None
