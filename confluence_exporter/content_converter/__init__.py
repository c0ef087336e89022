"""Content conversion module for storage format → markdown conversion.

This module provides the MarkdownConverter, the MacroHandler that rewrites
Confluence storage elements to plain HTML, and the FilesafeConverter used
for every on-disk name.
"""

from .filesafe_converter import FilesafeConverter
from .macro_handler import MacroHandler
from .markdown_converter import MarkdownConverter, normalize_markdown

__all__ = ['FilesafeConverter', 'MacroHandler', 'MarkdownConverter', 'normalize_markdown']
