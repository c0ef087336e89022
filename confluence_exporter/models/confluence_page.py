"""Confluence space, page and attachment data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Space:
    """A named partition of the Confluence instance.

    Attributes:
        key: Space key (e.g., "TEAM")
        name: Human-readable space name (empty when supplied by the caller)
    """
    key: str
    name: str = ""


@dataclass(frozen=True)
class ConfluencePage:
    """Confluence page with storage format content.

    Decoded once from an API response and never mutated afterwards.

    Attributes:
        page_id: Unique identifier for the page
        title: Page title
        space_key: Space key where the page resides (e.g., "TEAM")
        version: Current version number
        raw_body: Page content in Confluence storage format (XHTML)
        url: Web UI link as returned by the API (usually relative to the base URL)
        parent_id: Parent page ID (None if page is a root)
    """
    page_id: str
    title: str
    space_key: str
    version: int
    raw_body: str
    url: str = ""
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class Attachment:
    """File attached to exactly one Confluence page.

    Attributes:
        attachment_id: Attachment content ID (e.g., "att123")
        title: Attachment title
        file_name: Name the file is stored under
        media_type: MIME type reported by Confluence
        file_size: Size in bytes (0 when unknown)
        download_url: Download link, relative to the base URL
    """
    attachment_id: str
    title: str
    file_name: str
    media_type: str = ""
    file_size: int = 0
    download_url: str = ""
