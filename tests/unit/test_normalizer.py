"""Unit tests for TextNormalizer."""

import pytest

from docqa.ingestion.models import Document
from docqa.ingestion.normalizer import TextNormalizer, filter_printable_ascii


@pytest.fixture
def normalizer() -> TextNormalizer:
    return TextNormalizer()


def _is_printable_ascii(text: str) -> bool:
    return all(0x20 <= ord(ch) <= 0x7E for ch in text)


def test_script_removed_and_non_ascii_dropped(normalizer: TextNormalizer) -> None:
    raw = "<script>alert(1)</script><p>Hello Wörld</p>"
    assert normalizer.normalize(raw) == "Hello Wrld"


def test_style_subtree_removed(normalizer: TextNormalizer) -> None:
    raw = "<html><head><style>p { color: red; }</style></head><body><p>Body text</p></body></html>"
    assert normalizer.normalize(raw) == "Body text"


@pytest.mark.parametrize(
    "raw",
    [
        "Tabs\tand\nnewlines\r\n",
        "Emoji \U0001F600 and accents: café, naïve",
        "<div>Nested <b>bold</b> &amp; entities &lt;tag&gt;</div>",
        "\x00\x07control\x1bchars\x7f",
        "<p>unclosed <b>markup",
        "&lt;script&gt;alert(1)&lt;/script&gt;",
    ],
)
def test_output_is_printable_ascii_and_idempotent(normalizer: TextNormalizer, raw: str) -> None:
    once = normalizer.normalize(raw)

    assert _is_printable_ascii(once)
    assert len(once) <= len(raw)
    assert normalizer.normalize(once) == once


def test_escaped_markup_does_not_resurface(normalizer: TextNormalizer) -> None:
    once = normalizer.normalize("&lt;script&gt;alert(1)&lt;/script&gt;ok")
    assert "<script>" not in once
    assert normalizer.normalize(once) == once


def test_malformed_markup_degrades_gracefully(normalizer: TextNormalizer) -> None:
    assert normalizer.normalize("<<<p>>broken</div></span>text") != ""


def test_empty_and_whitespace_results_are_valid(normalizer: TextNormalizer) -> None:
    assert normalizer.normalize("") == ""
    assert normalizer.normalize("<script>only()</script>") == ""
    assert normalizer.normalize("   ", markup=False) == "   "


def test_plain_text_mode_keeps_angle_brackets(normalizer: TextNormalizer) -> None:
    assert normalizer.normalize("a < b > c", markup=False) == "a < b > c"


def test_selector_removal() -> None:
    normalizer = TextNormalizer(remove_selectors=[".thrv_widget_menu"])
    raw = '<div class="thrv_widget_menu">Home | About</div><p>Content</p>'
    assert normalizer.normalize(raw) == "Content"


def test_custom_remove_tags() -> None:
    normalizer = TextNormalizer(remove_tags=["nav"])
    raw = "<nav>Menu</nav><script>x</script><p>Text</p>"
    assert normalizer.normalize(raw) == "xText"


def test_invalid_selector_rejected() -> None:
    with pytest.raises(ValueError, match="Invalid CSS selector"):
        TextNormalizer(remove_selectors=["div[[["])


def test_from_settings_uses_normalization_section(make_settings) -> None:
    settings = make_settings(
        normalization={"remove_tags": ["script"], "remove_selectors": [".ad"]}
    )
    normalizer = TextNormalizer.from_settings(settings)

    assert normalizer.remove_tags == ["script"]
    assert normalizer.remove_selectors == [".ad"]


def test_normalize_document_respects_content_type(normalizer: TextNormalizer) -> None:
    html = Document(id="d1", content="<p>Hi</p>", metadata={"content_type": "text/html"})
    text = Document(id="d2", content="<p>Hi</p>", metadata={"content_type": "text/plain"})

    normalized_html = normalizer.normalize_document(html)
    normalized_text = normalizer.normalize_document(text)

    assert normalized_html.content == "Hi"
    assert normalized_html.metadata["normalized"] is True
    assert normalized_text.content == "<p>Hi</p>"
    assert html.content == "<p>Hi</p>"


def test_filter_printable_ascii() -> None:
    assert filter_printable_ascii("aéb\nc~\x7f") == "ab c~"


def test_line_breaks_keep_words_apart(normalizer: TextNormalizer) -> None:
    raw = "first line\r\nsecond\tline\n\nnext paragraph"

    once = normalizer.normalize(raw, markup=False)

    assert once == "first line second line next paragraph"
    assert normalizer.normalize(once, markup=False) == once
