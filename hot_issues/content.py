"""
Plain text and image extraction from rich ticket descriptions.

Ticket descriptions are authored in a rich-text editor and stored as a
node tree (``{"type": ..., "text": ..., "attrs": {...}, "content": [...]}``).
The analyzer needs the text without embedded images, plus the image URLs
in document order so they can be attached to the completion request.

Extraction never fails: malformed or empty documents yield ``""`` and ``[]``.
"""

import logging
from typing import Any


logger = logging.getLogger(__name__)


IMAGE_NODE_TYPES = frozenset({"image"})
LINE_BREAK_NODE_TYPES = frozenset({"hardBreak"})
BLOCK_NODE_TYPES = frozenset({
    "paragraph",
    "heading",
    "blockquote",
    "codeBlock",
    "listItem",
    "bulletList",
    "orderedList",
    "taskItem",
    "taskList",
    "horizontalRule",
    "table",
    "tableRow",
})


def _children(node: dict) -> list:
    content = node.get("content")
    return content if isinstance(content, list) else []


def _collect_text(node: Any, parts: list[str]) -> None:
    if not isinstance(node, dict):
        return

    node_type = node.get("type")
    if node_type in IMAGE_NODE_TYPES:
        return
    if node_type in LINE_BREAK_NODE_TYPES:
        parts.append("\n")
        return

    text = node.get("text")
    if isinstance(text, str):
        parts.append(text)

    for child in _children(node):
        _collect_text(child, parts)

    # Keep blocks on separate lines without doubling existing breaks
    if node_type in BLOCK_NODE_TYPES and parts and not parts[-1].endswith("\n"):
        parts.append("\n")


def extract_text_without_images(document: Any) -> str:
    """
    Extract the textual content of a document, dropping embedded images.

    Text is preserved verbatim; block nodes are separated by newlines.

    Args:
        document: Rich-text node tree, a plain string, or None.

    Returns:
        Plain text (empty string for malformed or empty documents).
    """
    if isinstance(document, str):
        return document

    parts: list[str] = []
    _collect_text(document, parts)
    return "".join(parts).strip("\n")


def extract_image_urls(document: Any) -> list[str]:
    """
    Collect image URLs from a document in document order.

    Args:
        document: Rich-text node tree.

    Returns:
        List of image ``src`` values; nodes without a usable src are skipped.
    """
    urls: list[str] = []
    stack = [document]

    # Depth-first, children pushed in reverse to keep document order
    while stack:
        node = stack.pop()
        if not isinstance(node, dict):
            continue
        if node.get("type") in IMAGE_NODE_TYPES:
            attrs = node.get("attrs")
            src = attrs.get("src") if isinstance(attrs, dict) else None
            if isinstance(src, str) and src.strip():
                urls.append(src.strip())
            else:
                logger.debug("Skipping image node without src")
            continue
        stack.extend(reversed(_children(node)))

    return urls


def extract_content(document: Any) -> tuple[str, list[str]]:
    """Split a document into ``(plain_text, image_urls)``."""
    return extract_text_without_images(document), extract_image_urls(document)
