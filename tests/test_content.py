"""Tests for rich-text content extraction."""

import pytest

from hot_issues.content import (
    extract_content,
    extract_image_urls,
    extract_text_without_images,
)


def paragraph(*nodes):
    return {"type": "paragraph", "content": list(nodes)}


def text(value):
    return {"type": "text", "text": value}


def image(src):
    return {"type": "image", "attrs": {"src": src}}


class TestExtractText:
    """Tests for text extraction."""

    def test_paragraphs_on_separate_lines(self, rich_document):
        """Test block nodes are separated by newlines and images dropped."""
        result = extract_text_without_images(rich_document)
        assert result == "Pod stuck in ImagePullBackOff\nnamespace: ns-dev"

    def test_text_preserved_verbatim(self):
        """Test inline text nodes are concatenated without changes."""
        doc = {"type": "doc", "content": [paragraph(text("Error: "), text("x509  cert"))]}
        assert extract_text_without_images(doc) == "Error: x509  cert"

    def test_hard_break(self):
        """Test hard breaks become newlines."""
        doc = {"type": "doc", "content": [paragraph(text("a"), {"type": "hardBreak"}, text("b"))]}
        assert extract_text_without_images(doc) == "a\nb"

    def test_nested_list(self):
        """Test nested list items keep one line each."""
        doc = {
            "type": "doc",
            "content": [
                {
                    "type": "bulletList",
                    "content": [
                        {"type": "listItem", "content": [paragraph(text("first"))]},
                        {"type": "listItem", "content": [paragraph(text("second"))]},
                    ],
                }
            ],
        }
        assert extract_text_without_images(doc) == "first\nsecond"

    def test_plain_string_passthrough(self):
        """Test a plain string description is returned as-is."""
        assert extract_text_without_images("just text") == "just text"

    @pytest.mark.parametrize("doc", [None, 42, [], {}, {"type": "doc", "content": "oops"}])
    def test_malformed_documents(self, doc):
        """Test malformed documents produce empty text."""
        assert extract_text_without_images(doc) == ""


class TestExtractImageUrls:
    """Tests for image URL extraction."""

    def test_document_order(self, rich_document):
        """Test URLs are returned in document order, including nested images."""
        assert extract_image_urls(rich_document) == [
            "https://img.example.com/1.png",
            "https://img.example.com/2.png",
        ]

    def test_skips_images_without_src(self):
        """Test image nodes without src are ignored."""
        doc = {
            "type": "doc",
            "content": [
                {"type": "image"},
                {"type": "image", "attrs": {"src": ""}},
                image("https://img.example.com/ok.png"),
            ],
        }
        assert extract_image_urls(doc) == ["https://img.example.com/ok.png"]

    @pytest.mark.parametrize("doc", [None, "text", [], {"content": None}])
    def test_malformed_documents(self, doc):
        """Test malformed documents produce no URLs."""
        assert extract_image_urls(doc) == []


class TestExtractContent:
    """Tests for the combined extractor."""

    def test_returns_text_and_urls(self, rich_document):
        plain_text, urls = extract_content(rich_document)
        assert "ImagePullBackOff" in plain_text
        assert len(urls) == 2

    def test_empty_document(self):
        assert extract_content({"type": "doc"}) == ("", [])
