"""Filesafe name conversion for page titles and attachment names.

Every character that is invalid or problematic in a path component on some
file system is replaced one-for-one; all other characters, including case,
are preserved exactly. The mapping is deterministic, so re-exporting a page
with the same title always lands on the same path.
"""

import re


class FilesafeConverter:
    """Converts Confluence page titles to filesafe names.

    Conversion rules:
    - Path-hostile characters (/, \\, :, *, ?, ", <, >, |) → hyphen (-)
    - Spaces → underscore (_)
    - Every other character is kept unchanged
    - Names that would be empty or a directory reference ("", ".", "..")
      become "untitled", "_." and "_.." respectively

    Examples:
        - "Customer Feedback" → "Customer_Feedback"
        - "API Reference: Getting Started" → "API_Reference-_Getting_Started"
        - "Client/Server" → "Client-Server"
    """

    HOSTILE_CHARS = re.compile(r'[/\\:*?"<>|]')

    @classmethod
    def safe_name(cls, title: str) -> str:
        """Convert a title to a name usable as a single path component.

        Args:
            title: The Confluence page title (or attachment name)

        Returns:
            The filesafe name, without extension

        Examples:
            >>> FilesafeConverter.safe_name("Q&A: Session 1")
            'Q&A-_Session_1'
        """
        name = cls.HOSTILE_CHARS.sub('-', title)
        name = name.replace(' ', '_')

        if not name:
            return 'untitled'
        if name in ('.', '..'):
            return f'_{name}'
        return name

    @classmethod
    def title_to_filename(cls, title: str, extension: str = '.md') -> str:
        """Convert a page title to a filename.

        Examples:
            >>> FilesafeConverter.title_to_filename("Release Notes")
            'Release_Notes.md'
        """
        return f"{cls.safe_name(title)}{extension}"
