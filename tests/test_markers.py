import pytest

from usfmjson import markers
from usfmjson.markers import DEFAULT_STYLESHEET, UsfmStyleType


class TestTaxonomy:
    @pytest.mark.parametrize("tag", ["f", "x", "fe", "w", "bd", "add", "wj", "qt", "+bd", "imte1", "liv2"])
    def test_needs_termination(self, tag: str) -> None:
        """Test spans that must be closed explicitly."""
        assert markers.needs_termination(tag)

    @pytest.mark.parametrize("tag", ["p", "q1", "s5", "c", "v", "id", "ft", "zaln"])
    def test_no_termination(self, tag: str) -> None:
        """Test tags that are never closed."""
        assert not markers.needs_termination(tag)

    def test_display_text(self) -> None:
        """Test paragraph, quote and section styles keep display text."""
        assert markers.content_is_display_text("p")
        assert markers.content_is_display_text("q2")
        assert markers.content_is_display_text("mt")
        assert not markers.content_is_display_text("id")
        assert not markers.content_is_display_text("f")

    def test_numeric_argument(self) -> None:
        """Test only chapter, verse and alternate numbers take a number."""
        assert markers.supports_numeric_argument("c")
        assert markers.supports_numeric_argument("v")
        assert markers.supports_numeric_argument("va")
        assert not markers.supports_numeric_argument("p")
        assert not markers.supports_numeric_argument("toc1")

    def test_type_of(self) -> None:
        assert markers.type_of("p") == markers.PARAGRAPH
        assert markers.type_of("q1") == markers.QUOTE
        assert markers.type_of("s") == markers.SECTION
        assert markers.type_of("f") == markers.FOOTNOTE
        assert markers.type_of("bd") is None

    def test_unknown_tag(self) -> None:
        """Test unknown tags have no special behavior."""
        tag = DEFAULT_STYLESHEET.get_tag("zzz")
        assert tag.style_type == UsfmStyleType.UNKNOWN
        assert not tag.needs_termination
        assert not tag.display_text
        assert not tag.numbered
        assert tag.type_name is None

    def test_classification_is_stable(self) -> None:
        """Test repeated lookups give the same answers."""
        for tag in ["p", "f", "w", "zzz", "+w", "q3"]:
            first = (
                markers.needs_termination(tag),
                markers.content_is_display_text(tag),
                markers.supports_numeric_argument(tag),
                markers.type_of(tag),
            )
            for _ in range(3):
                assert first == (
                    markers.needs_termination(tag),
                    markers.content_is_display_text(tag),
                    markers.supports_numeric_argument(tag),
                    markers.type_of(tag),
                )

    def test_tags_are_read_only(self) -> None:
        with pytest.raises(TypeError):
            DEFAULT_STYLESHEET.tags["p"] = DEFAULT_STYLESHEET.get_tag("q")  # type: ignore


class TestMilestones:
    def test_start_and_end(self) -> None:
        assert markers.is_milestone_start("zaln-s")
        assert markers.is_milestone_end("zaln-e")
        assert not markers.is_milestone_start("-s")
        assert not markers.is_milestone_end("p")

    def test_milestone_start_for(self) -> None:
        """Test end markers map back to the tags they close."""
        assert markers.milestone_start_for("zaln-e") == ("zaln",)
        assert markers.milestone_start_for("k*") == ("k",)
        assert markers.milestone_start_for("+k*") == ("k",)
        assert markers.milestone_start_for("qt-e") == ("qt", "qt1", "qt2", "qt3", "qt4", "qt5")

    def test_standard_attributes(self) -> None:
        assert markers.is_standard_word_attribute("lemma")
        assert markers.is_standard_word_attribute("strong")
        assert not markers.is_standard_word_attribute("morph")
        assert markers.is_standard_milestone_attribute("who")
        assert not markers.is_standard_milestone_attribute("strong")

    def test_default_attribute(self) -> None:
        assert markers.default_attribute("w") == "lemma"
        assert markers.default_attribute("qt1") == "who"
        assert markers.default_attribute("zaln") is None
