"""
Prompt construction for hot issue analysis.

Both builders are pure functions: the same tags, settings and ticket
content always render the same messages, with no storage or network access.
"""

from typing import Any, Optional, Sequence

from .config import AnalysisSettings
from .content import extract_image_urls, extract_text_without_images
from .models import ExistingTag


NO_EXISTING_TAGS = "No existing tags yet."

SYSTEM_PROMPT_TEMPLATE = """You are the tagging assistant of a cloud platform support ticket system. Produce a structured tag result based only on the ticket title, description and images.

## OUTPUT FIELDS:
- name: the tag category. Reuse an existing tag name from the list below whenever possible: if the ticket is at least {threshold_pct}% similar to an existing tag, use that name exactly. Otherwise create a new, concise category name (e.g. Deployment, Networking, Authentication, Image Registry, Database).
- description: {min_description_length}-{max_description_length} characters, a single short phrase carrying the key facts. It MUST be at most {max_description_length} characters, never longer. Recommended template:
  [module/service/system name] + [symptom/error code/key error word] + [phase/resource]
  Example: applaunchpad image pull
- confidence: a number between 0 and 1; use 0.6 or lower when information is missing or ambiguous.
- reasoning (optional): a brief justification, or the missing information (at most {max_reasoning_length} characters).

## MANDATORY RULES:
- The description must never be a generic phrase such as "XX issue" or "not enough information". It must contain at least one concrete entity:
  - module/service name (e.g. applaunchpad, devbox, ingress, registry, gateway, postgres, mysql, redis)
  - resource or object (e.g. Deployment/Pod/Job/Service/Ingress plus its name)
  - error code or keyword (e.g. ImagePullBackOff, CrashLoopBackOff, x509, ECONNREFUSED, 5xx, 404, TLS, timeout)
  - phase or operation (e.g. startup, deploy, login, pull, change, upgrade, backup, restore)
- Keep code, identifiers and error keywords exactly as written; do not translate them or summarize them as "problem".
- If neither module name, error code nor resource name can be identified from the text or images, lower the confidence and name the missing item in reasoning (e.g. "missing app name/error code").
- If the input contains large blocks of code or logs, ignore implementation details and do not copy them; only extract short keywords (module, resource, error keyword, error code, phase) into the description, compressing as needed to stay within {max_description_length} characters.
- The description must be a single line: no line breaks, no extra spaces, no decorative punctuation or quotes.

## SUGGESTED PROCEDURE:
1) Extract named entities and key error words from the title, description and images (module, resource, error code, phase, environment words such as public network, private network, cluster, tenant, namespace).
2) Match against existing tag names first (at least {threshold_pct}% similar): on a match reuse that name; otherwise produce a new category name.
3) Compose the description from module, error keyword and phase or resource, keeping it within {min_description_length}-{max_description_length} characters and dropping redundancy.
4) When uncertain, lower the confidence and explain what is missing in reasoning.

## EXISTING TAGS (most used first):
{existing_tags}

## EXAMPLES:

Good example 1
Input title: "applaunchpad deploy failed ImagePullBackOff"
Output:
{{
  "name": "Deployment",
  "description": "ImagePullBackOff deploy",
  "confidence": 0.86,
  "reasoning": "Title has error code, image pull at deploy"
}}

Good example 2
Input title: "Editor won't open, page shows 404"
Output:
{{
  "name": "Console UI",
  "description": "devbox page 404",
  "confidence": 0.82,
  "reasoning": "editor means devbox, symptom is 404"
}}

Good example 3
Input title: "Public network hangs, outbound requests time out after 30s"
Output:
{{
  "name": "Networking",
  "description": "egress timeout 30s",
  "confidence": 0.8
}}

Good example 4
Input title: "Database connection failed ECONNREFUSED"
Output:
{{
  "name": "Database",
  "description": "postgres ECONNREFUSED",
  "confidence": 0.84
}}

Bad examples (forbidden):
- "App cannot start" / "Startup issue" / "Not enough information" / "Editor problem" / "Public network issue" (too generic, no entity or error keyword)
"""


def render_existing_tags(existing_tags: Sequence[ExistingTag]) -> str:
    """
    Render the vocabulary section of the system prompt.

    Args:
        existing_tags: Tags ordered by usage.

    Returns:
        One ``- name: description (usage count: N)`` line per tag,
        or the no-tags marker when the vocabulary is empty.
    """
    if not existing_tags:
        return NO_EXISTING_TAGS
    return "\n".join(tag.to_prompt_line() for tag in existing_tags)


def build_system_prompt(
    existing_tags: Sequence[ExistingTag],
    settings: Optional[AnalysisSettings] = None,
) -> str:
    """
    Build the system instruction for hot issue analysis.

    Args:
        existing_tags: Current vocabulary ordered by usage.
        settings: Policy constants (length ceilings, similarity threshold).

    Returns:
        The complete system prompt.
    """
    settings = settings or AnalysisSettings()
    max_description_length = settings.max_description_length

    return SYSTEM_PROMPT_TEMPLATE.format(
        threshold_pct=round(settings.similarity_threshold * 100),
        min_description_length=max_description_length // 2,
        max_description_length=max_description_length,
        max_reasoning_length=settings.max_reasoning_length,
        existing_tags=render_existing_tags(existing_tags),
    )


def build_user_text(title: str, plain_text: str) -> str:
    """Format the text block of the user message."""
    return f"Title: {title}\nDescription: {plain_text}"


def build_user_content(
    title: str,
    document: Any,
    max_images: int = 6,
) -> list[dict[str, Any]]:
    """
    Build the multimodal user message content.

    Args:
        title: Ticket title.
        document: Rich-text ticket description.
        max_images: Maximum number of image blocks; extra images are dropped.

    Returns:
        One text block followed by image blocks in document order.
    """
    content: list[dict[str, Any]] = [
        {"type": "text", "text": build_user_text(title, extract_text_without_images(document))}
    ]
    for url in extract_image_urls(document)[:max_images]:
        content.append({"type": "image_url", "image_url": {"url": url}})
    return content
