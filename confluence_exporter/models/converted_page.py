"""Converted page data model."""

import uuid
from dataclasses import dataclass, field
from typing import Dict, Tuple

from confluence_exporter.models.confluence_page import Attachment

# Fixed namespace so the same page id always yields the same uid
UID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "confluence-exporter/page")


def compute_uid(page_id: str) -> str:
    """Derive the stable record identifier for a page.

    The uid depends on the page id only, so re-exporting an unchanged
    source produces byte-identical uids and sinks can upsert on it.

    Args:
        page_id: Confluence page ID

    Returns:
        Canonical UUID string (letters, digits and hyphens)
    """
    return str(uuid.uuid5(UID_NAMESPACE, str(page_id)))


@dataclass(frozen=True)
class ConvertedPage:
    """A page after markdown conversion, ready to hand to a sink.

    Attributes:
        uid: Deterministic identifier, the idempotence key for sinks
        title: Page title
        body: Markdown body
        link: Absolute web URL of the source page
        page_id: Source page ID
        space_key: Source space key
        version: Source version number
        attachments: Attachments to export alongside the page (empty unless enabled)
    """
    uid: str
    title: str
    body: str
    link: str
    page_id: str = ""
    space_key: str = ""
    version: int = 0
    attachments: Tuple[Attachment, ...] = field(default_factory=tuple)

    def to_record(self) -> Dict[str, str]:
        """Return the persisted shape shared by every sink."""
        return {
            'uid': self.uid,
            'title': self.title,
            'body': self.body,
            'link': self.link,
        }
