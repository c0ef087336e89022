"""Markdown converter using markdownify and Python-Markdown.

This module converts Confluence storage format (XHTML with `ac:`/`ri:`
elements) to markdown. Storage elements are first rewritten to plain HTML
by MacroHandler, then markdownify renders the markdown (clean pipe tables,
fenced code). Python-Markdown renders markdown back to HTML, which is what
makes the output round-trip stable.
"""

import html
import logging
import re
from typing import Any

import markdown as markdown_lib
from bs4 import BeautifulSoup
from markdownify import MarkdownConverter as BaseMarkdownConverter

from ..confluence_client.errors import ConversionError
from ..models import ConversionResult
from .macro_handler import MacroHandler

logger = logging.getLogger(__name__)

CDATA_PATTERN = re.compile(r'<!\[CDATA\[(.*?)\]\]>', re.DOTALL)
EXCESS_NEWLINES = re.compile(r'\n{3,}')
CODE_LANGUAGE_CLASS = re.compile(r'^language-(.+)$')
# markdownify indents nested list items by 2 (bullets) or 3 (numbers) spaces
MARKDOWN_TAB_LENGTH = 2


class _CustomMarkdownConverter(BaseMarkdownConverter):
    """Custom markdownify converter with Confluence-friendly settings."""

    def __init__(self, preserve_links: bool = True, **options):
        # Set defaults for clean pipe table output
        options.setdefault('heading_style', 'atx')  # Use # style headings
        options.setdefault('bullets', '-')  # Use - for bullets
        options.setdefault('strong_em_symbol', '*')  # Use * for bold/italic
        options.setdefault('escape_misc', False)
        # Backslash breaks survive trailing-whitespace stripping
        options.setdefault('newline_style', 'backslash')
        super().__init__(**options)
        self.preserve_links = preserve_links

    def _is_in_table_cell(self, parent_tags):
        """Check if we're inside a table cell based on parent tags."""
        return 'td' in parent_tags or 'th' in parent_tags

    def convert_a(self, el, text, parent_tags):
        if not self.preserve_links:
            return text
        return super().convert_a(el, text, parent_tags)

    def convert_pre(self, el, text, parent_tags):
        """Render a fenced code block from the raw text of the element.

        The raw text is used instead of the converted children so code is
        never markdown-escaped.
        """
        code = el.get_text().strip('\n')
        if not code.strip():
            return ''

        language = el.get('data-language', '')
        if not language:
            code_tag = el.find('code')
            for css_class in (code_tag.get('class') or []) if code_tag else []:
                match = CODE_LANGUAGE_CLASS.match(css_class)
                if match:
                    language = match.group(1)
                    break

        return '\n\n```%s\n%s\n```\n\n' % (language, code)

    def convert_p(self, el, text, parent_tags):
        """Convert paragraph, using <br> for line breaks in table cells.

        Confluence stores multi-line table cell content as multiple <p> tags.
        We convert these to <br> separated content to preserve line breaks.
        """
        text = text.strip()
        if not text:
            return ''

        # In table cells, use <br> for paragraph breaks instead of collapsing
        if self._is_in_table_cell(parent_tags):
            return text + '\n'

        if '_inline' in parent_tags:
            return ' ' + text + ' '
        return '\n\n%s\n\n' % text

    def _convert_cell(self, el, text):
        colspan = 1
        if 'colspan' in el.attrs and el['colspan'].isdigit():
            colspan = max(1, min(1000, int(el['colspan'])))
        # Newlines come from convert_p; a cell has to stay on one line
        cell_text = text.strip().replace('\n', '<br>')
        while '<br><br>' in cell_text:
            cell_text = cell_text.replace('<br><br>', '<br>')
        while cell_text.endswith('<br>'):
            cell_text = cell_text.removesuffix('<br>')
        cell_text = cell_text.replace('|', '\\|')
        return ' ' + cell_text + ' |' * colspan

    def convert_td(self, el, text, parent_tags):
        """Convert table cell, preserving line breaks as <br> tags."""
        return self._convert_cell(el, text)

    def convert_th(self, el, text, parent_tags):
        """Convert table header cell, preserving line breaks as <br> tags."""
        return self._convert_cell(el, text)

    def convert_br(self, el, text, parent_tags):
        """Convert <br> tags, preserving them in table cells."""
        if self._is_in_table_cell(parent_tags):
            return '<br>'
        if '_inline' in parent_tags:
            return ' '
        if self.options['newline_style'].lower() == 'backslash':
            return '\\\n'
        return '  \n'


def normalize_markdown(text: str) -> str:
    """Apply the output normalization every converted document gets.

    Trailing whitespace is stripped per line, runs of blank lines collapse
    to one, and a non-empty document ends with exactly one newline.
    """
    lines = [line.rstrip() for line in text.split('\n')]
    text = EXCESS_NEWLINES.sub('\n\n', '\n'.join(lines)).strip('\n')
    return text + '\n' if text else ''


class MarkdownConverter:
    """Converts Confluence storage format to markdown.

    The converter is pure and deterministic: the same markup always gives
    the same markdown, and it never touches the network or disk.

    Example:
        >>> converter = MarkdownConverter()
        >>> converter.convert('<h1>Title</h1><p>Hello</p>')
        '# Title\\n\\nHello\\n'
    """

    def __init__(self, preserve_links: bool = True):
        """Initialize MarkdownConverter.

        Args:
            preserve_links: Render hyperlinks as links (True) or as their text only
        """
        self.preserve_links = preserve_links
        self.macro_handler = MacroHandler()

    def convert(self, markup: Any) -> str:
        """Convert storage-format markup to markdown.

        Args:
            markup: Confluence storage format XHTML string

        Returns:
            Normalized markdown, "" for empty input

        Raises:
            ConversionError: If the markup is structurally malformed
        """
        return self.convert_detailed(markup).markdown

    def convert_detailed(self, markup: Any) -> ConversionResult:
        """Convert markup and report the constructs that were degraded."""
        if not isinstance(markup, str):
            raise ConversionError(
                f"Expected markup as str, got {type(markup).__name__}"
            )
        if not markup.strip():
            return ConversionResult(markdown='')

        try:
            soup = BeautifulSoup(self._escape_cdata(markup), 'html.parser')
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionError(f"Storage format could not be parsed: {e}") from e

        try:
            warnings = self.macro_handler.process(soup)
            rendered = _CustomMarkdownConverter(
                preserve_links=self.preserve_links
            ).convert_soup(soup)
        except Exception as e:
            raise ConversionError(f"Markdownify conversion failed: {e}") from e

        return ConversionResult(markdown=normalize_markdown(rendered), warnings=warnings)

    def markdown_to_html(self, markdown: str) -> str:
        """Render markdown back to HTML using Python-Markdown.

        Args:
            markdown: Markdown string

        Returns:
            HTML string

        Raises:
            ConversionError: If markdown is not a string
        """
        if not isinstance(markdown, str):
            raise ConversionError(
                f"Expected markdown as str, got {type(markdown).__name__}"
            )
        if not markdown:
            return ""
        return markdown_lib.markdown(
            markdown,
            extensions=['tables', 'fenced_code'],
            tab_length=MARKDOWN_TAB_LENGTH,
        )

    @staticmethod
    def _escape_cdata(markup: str) -> str:
        """Replace CDATA sections by their escaped text.

        Raises:
            ConversionError: If a CDATA section is never terminated
        """
        escaped = CDATA_PATTERN.sub(
            lambda match: html.escape(match.group(1), quote=False),
            markup,
        )
        if '<![CDATA[' in escaped:
            raise ConversionError("Unterminated CDATA section in storage format")
        return escaped
