"""Storage-format element handling ahead of markdown conversion.

Confluence storage format mixes plain XHTML with `ac:` (macro, image, link,
task) and `ri:` (resource identifier) elements that no HTML-to-markdown
library understands. MacroHandler rewrites those elements in place into
their nearest plain-HTML equivalent so the markdown renderer only ever sees
standard tags.

Anything it does not recognize is degraded to its visible text: macro
parameters and placeholders are dropped, bodies are kept. Unknown
constructs therefore never make a page fail.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .filesafe_converter import FilesafeConverter

logger = logging.getLogger(__name__)

# Default headings for admonition-style macros (panel has none)
PANEL_TITLES: Dict[str, Optional[str]] = {
    'info': 'Info',
    'note': 'Note',
    'tip': 'Tip',
    'warning': 'Warning',
    'panel': None,
}

EMOTICONS = {
    'smile': '🙂',
    'sad': '🙁',
    'cheeky': '😛',
    'laugh': '😀',
    'wink': '😉',
    'thumbs-up': '👍',
    'thumbs-down': '👎',
    'information': 'ℹ️',
    'tick': '✅',
    'cross': '❌',
    'warning': '⚠️',
    'plus': '➕',
    'minus': '➖',
    'question': '❓',
    'light-on': '💡',
    'light-off': '💡',
    'yellow-star': '⭐',
    'red-star': '⭐',
    'green-star': '⭐',
    'blue-star': '⭐',
    'heart': '❤️',
    'broken-heart': '💔',
}


class MacroHandler:
    """Rewrites Confluence storage elements into plain HTML.

    Structured macros are processed innermost first so nested macros are
    already plain HTML by the time their container is rewritten.

    Example:
        >>> soup = BeautifulSoup(storage_xhtml, 'html.parser')
        >>> warnings = MacroHandler().process(soup)
    """

    def __init__(self):
        self.macro_converters: Dict[str, Callable[[BeautifulSoup, Tag], None]] = {
            'code': self._convert_code_macro,
            'noformat': self._convert_code_macro,
            'expand': self._convert_expand_macro,
        }
        for name in PANEL_TITLES:
            self.macro_converters[name] = self._convert_panel_macro

    def process(self, soup: BeautifulSoup) -> List[str]:
        """Rewrite every storage-format element in the soup.

        Args:
            soup: Parsed storage-format document, modified in place

        Returns:
            Warnings for macros that had no dedicated conversion
        """
        warnings = []

        for element in reversed(soup.find_all(['ac:structured-macro', 'ac:macro'])):
            macro_name = (element.get('ac:name') or '').lower()
            converter = self.macro_converters.get(macro_name)
            if converter:
                converter(soup, element)
            else:
                self._convert_unknown_macro(element)
                warnings.append(f"Unsupported macro rendered as text: {macro_name or '<unnamed>'}")

        self._convert_images(soup)
        self._convert_links(soup)
        self._convert_emoticons(soup)
        self._convert_task_lists(soup)
        self._convert_times(soup)
        self._unwrap_remaining(soup)
        self._promote_header_rows(soup)

        for warning in warnings:
            logger.debug(warning)
        return warnings

    @staticmethod
    def _param(element: Tag, name: str) -> str:
        for parameter in element.find_all('ac:parameter', recursive=False):
            if parameter.get('ac:name') == name:
                return parameter.get_text().strip()
        return ''

    def _convert_code_macro(self, soup: BeautifulSoup, element: Tag) -> None:
        language = self._param(element, 'language')
        body = element.find('ac:plain-text-body', recursive=False)

        pre = soup.new_tag('pre')
        if language:
            pre['data-language'] = language
        code = soup.new_tag('code')
        code.string = body.get_text() if body is not None else ''
        pre.append(code)
        element.replace_with(pre)

    def _convert_panel_macro(self, soup: BeautifulSoup, element: Tag) -> None:
        macro_name = (element.get('ac:name') or '').lower()
        title = self._param(element, 'title') or PANEL_TITLES.get(macro_name)

        quote = soup.new_tag('blockquote')
        if title:
            heading = soup.new_tag('p')
            strong = soup.new_tag('strong')
            strong.string = title
            heading.append(strong)
            quote.append(heading)

        body = element.find('ac:rich-text-body', recursive=False)
        if body is not None:
            for child in list(body.contents):
                quote.append(child.extract())

        element.replace_with(quote)

    def _convert_expand_macro(self, soup: BeautifulSoup, element: Tag) -> None:
        title = self._param(element, 'title') or 'Details'

        container = soup.new_tag('div')
        heading = soup.new_tag('p')
        strong = soup.new_tag('strong')
        strong.string = title
        heading.append(strong)
        container.append(heading)

        body = element.find('ac:rich-text-body', recursive=False)
        if body is not None:
            for child in list(body.contents):
                container.append(child.extract())

        element.replace_with(container)

    def _convert_unknown_macro(self, element: Tag) -> None:
        """Keep only the visible body of a macro we have no mapping for."""
        for parameter in element.find_all('ac:parameter', recursive=False):
            parameter.decompose()
        for body in element.find_all(['ac:rich-text-body', 'ac:plain-text-body'], recursive=False):
            body.unwrap()
        element.unwrap()

    def _convert_images(self, soup: BeautifulSoup) -> None:
        for image in soup.find_all('ac:image'):
            attachment = image.find('ri:attachment')
            url = image.find('ri:url')
            if attachment is not None:
                src = attachment.get('ri:filename', '')
            elif url is not None:
                src = url.get('ri:value', '')
            else:
                src = ''

            if not src:
                image.decompose()
                continue

            img = soup.new_tag('img', src=src)
            alt = image.get('ac:alt') or image.get('ac:title') or ''
            if alt:
                img['alt'] = alt
            image.replace_with(img)

    def _convert_links(self, soup: BeautifulSoup) -> None:
        for link in soup.find_all('ac:link'):
            href, default_text = self._link_target(link)
            replacement = soup.new_tag('a', href=href) if href else soup.new_tag('span')

            body = link.find(['ac:link-body', 'ac:plain-text-link-body'])
            if body is not None and (body.get_text().strip() or body.find(True)):
                for child in list(body.contents):
                    replacement.append(child.extract())
            else:
                replacement.string = default_text

            link.replace_with(replacement)

    @staticmethod
    def _link_target(link: Tag) -> Tuple[str, str]:
        """Return (href, fallback text) for an ac:link."""
        anchor = link.get('ac:anchor', '')

        page = link.find('ri:page')
        if page is not None:
            title = page.get('ri:content-title', '')
            href = FilesafeConverter.title_to_filename(title) if title else ''
            if anchor:
                href = f"{href}#{anchor}"
            return href, title or anchor

        attachment = link.find('ri:attachment')
        if attachment is not None:
            filename = attachment.get('ri:filename', '')
            return filename, filename

        url = link.find('ri:url')
        if url is not None:
            value = url.get('ri:value', '')
            return value, value

        user = link.find('ri:user')
        if user is not None:
            ident = (
                user.get('ri:username')
                or user.get('ri:userkey')
                or user.get('ri:account-id')
                or 'user'
            )
            return '', f"@{ident}"

        if anchor:
            return f"#{anchor}", anchor
        return '', ''

    @staticmethod
    def _convert_emoticons(soup: BeautifulSoup) -> None:
        for emoticon in soup.find_all('ac:emoticon'):
            name = emoticon.get('ac:name', '')
            emoticon.replace_with(EMOTICONS.get(name, f":{name}:" if name else ''))

    @staticmethod
    def _convert_task_lists(soup: BeautifulSoup) -> None:
        for task_list in reversed(soup.find_all('ac:task-list')):
            items = soup.new_tag('ul')
            for task in task_list.find_all('ac:task', recursive=False):
                status = task.find('ac:task-status')
                done = status is not None and status.get_text().strip() == 'complete'

                item = soup.new_tag('li')
                item.append('[x] ' if done else '[ ] ')
                body = task.find('ac:task-body')
                if body is not None:
                    for child in list(body.contents):
                        item.append(child.extract())
                items.append(item)
            task_list.replace_with(items)

    @staticmethod
    def _convert_times(soup: BeautifulSoup) -> None:
        for time_tag in soup.find_all('time'):
            time_tag.replace_with(time_tag.get('datetime') or time_tag.get_text())

    @staticmethod
    def _unwrap_remaining(soup: BeautifulSoup) -> None:
        """Drop invisible leftovers and unwrap every other namespaced tag."""
        for hidden in soup.find_all(['ac:parameter', 'ac:placeholder', 'colgroup']):
            hidden.decompose()
        for element in reversed(soup.find_all(lambda tag: ':' in tag.name)):
            element.unwrap()

    @staticmethod
    def _promote_header_rows(soup: BeautifulSoup) -> None:
        """Make the first row of every table a header row.

        Markdown tables always have a header; promoting the first row keeps
        an N-row table at N rows plus the separator line.
        """
        for table in soup.find_all('table'):
            first_row = table.find('tr')
            if first_row is None:
                continue
            cells = first_row.find_all(['td', 'th'], recursive=False)
            if cells and not all(cell.name == 'th' for cell in cells):
                for cell in cells:
                    cell.name = 'th'
