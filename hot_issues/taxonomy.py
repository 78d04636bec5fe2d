"""
Tag resolution and ticket linking.

Both operations are read-then-write without a storage-level lock:
two concurrent analyses proposing the same new tag name may each
create it. That outcome is accepted; it never corrupts existing rows.
"""

import logging

from .repository import TagRepository


logger = logging.getLogger(__name__)


def resolve_tag(repository: TagRepository, name: str, description: str) -> int:
    """
    Map a tag name to a persisted tag id, creating the tag if needed.

    Lookup is exact and case-sensitive. An existing tag keeps its original
    description (first write wins).

    Args:
        repository: Tag storage.
        name: Proposed tag name.
        description: Description used only when the tag is created.

    Returns:
        Id of the existing or newly created tag.
    """
    existing = repository.find_tag_by_name(name)
    if existing is not None:
        logger.debug(f"Reusing tag '{name}' (id={existing.id})")
        return existing.id

    return repository.create_tag(name, description, is_ai_generated=True).id


def ensure_link(
    repository: TagRepository,
    ticket_id: str,
    tag_id: int,
    confidence: float,
) -> bool:
    """
    Link a ticket to a tag unless the pair is already linked.

    Args:
        repository: Tag storage.
        ticket_id: External ticket identifier.
        tag_id: Tag to link.
        confidence: Confidence stored on a new link; existing links keep theirs.

    Returns:
        True if a new link was created.
    """
    if repository.is_ticket_tag_linked(ticket_id, tag_id):
        logger.debug(f"Ticket {ticket_id} already linked to tag {tag_id}")
        return False

    repository.link_ticket_to_tag(ticket_id, tag_id, confidence, is_ai_generated=True)
    return True
