"""Notion block to Markdown converter."""

import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger('notion_markdown_exporter.converters.block_converter')

LIST_ITEM_TYPES = {'bulleted_list_item', 'numbered_list_item', 'to_do'}

# Child pages become files of their own, databases are not exported
SKIPPED_TYPES = {'child_page', 'child_database', 'table_of_contents', 'breadcrumb'}

FILE_LINK_TYPES = {'video', 'file', 'pdf', 'audio'}
URL_LINK_TYPES = {'bookmark', 'embed', 'link_preview'}
CONTAINER_TYPES = {'column_list', 'column', 'synced_block'}

_SURROUNDING_SPACE = re.compile(r'^(\s*)(.*?)(\s*)$', re.DOTALL)


def render_rich_text(runs: Optional[List[Dict[str, Any]]]) -> str:
    """
    Render an array of rich text runs to inline Markdown.

    Args:
        runs: Notion rich text objects

    Returns:
        Markdown text with annotations and links applied
    """
    if not runs:
        return ""
    return ''.join(_render_run(run) for run in runs)


def plain_text(runs: Optional[List[Dict[str, Any]]]) -> str:
    """Concatenate the plain text of rich text runs without any markup."""
    if not runs:
        return ""
    return ''.join(run.get('plain_text') or '' for run in runs)


def _render_run(run: Dict[str, Any]) -> str:
    if run.get('type') == 'equation':
        expression = (run.get('equation') or {}).get('expression') or run.get('plain_text') or ''
        return f"${expression}$" if expression else ""

    text = run.get('plain_text') or ''
    if not text:
        return ""

    # Markers must hug the text, so surrounding whitespace is kept outside
    leading, core, trailing = _SURROUNDING_SPACE.match(text).groups()
    if not core:
        return text

    annotations = run.get('annotations') or {}
    if annotations.get('code'):
        core = f"`{core}`"
    if annotations.get('bold'):
        core = f"**{core}**"
    if annotations.get('italic'):
        core = f"*{core}*"
    if annotations.get('strikethrough'):
        core = f"~~{core}~~"
    if annotations.get('underline'):
        core = f"<u>{core}</u>"

    href = run.get('href')
    if href:
        core = f"[{core}]({href})"

    return f"{leading}{core}{trailing}"


def _indent(markdown: str, prefix: str) -> str:
    return '\n'.join(prefix + line if line.strip() else line for line in markdown.split('\n'))


def _quote(markdown: str) -> str:
    return '\n'.join(f"> {line}" if line else ">" for line in markdown.split('\n'))


def _file_url(content: Dict[str, Any]) -> str:
    """Resolve the URL of a Notion-hosted or external file object."""
    source_type = content.get('type')
    if source_type in ('file', 'external'):
        return (content.get(source_type) or {}).get('url', '')
    return ''


class BlockConverter:
    """
    Converts the block tree of a Notion page into a Markdown document.

    Blocks are listed through a PaginatedLister, so nested children of any
    depth are fetched lazily while rendering.
    """

    INDENT = '    '

    def __init__(self, lister, logger: Optional[logging.Logger] = None):
        """
        Initialize the converter.

        Args:
            lister: PaginatedLister used to list block children
            logger: Logger instance
        """
        self.lister = lister
        self.logger = logger or logging.getLogger('notion_markdown_exporter.converters.block_converter')

    def page_to_markdown(self, page_id: str) -> str:
        """
        Render the content of a page.

        Args:
            page_id: Notion page ID

        Returns:
            Markdown document without trailing newlines
        """
        blocks = list(self.lister.iter_block_children(page_id))
        self.logger.debug(f"Converting {len(blocks)} top-level blocks of page {page_id}")
        return self.render_blocks(blocks).rstrip('\n')

    def render_blocks(self, blocks: List[Dict[str, Any]]) -> str:
        """Render sibling blocks, keeping consecutive list items on adjacent lines."""
        rendered = []
        number = 0

        for block in blocks:
            block_type = block.get('type')
            number = number + 1 if block_type == 'numbered_list_item' else 0

            markdown = self.render_block(block, number=number)
            if markdown:
                rendered.append((block_type in LIST_ITEM_TYPES, markdown))

        output = []
        previous_is_list = False
        for index, (is_list, markdown) in enumerate(rendered):
            if index:
                output.append('\n' if is_list and previous_is_list else '\n\n')
            output.append(markdown)
            previous_is_list = is_list

        return ''.join(output)

    def render_block(self, block: Dict[str, Any], number: int = 1) -> str:
        """
        Render a single block and its nested children.

        Args:
            block: Notion block object
            number: Position of a numbered list item within its run

        Returns:
            Markdown for the block, empty for skipped block types
        """
        block_type = block.get('type')
        content = block.get(block_type) or {}

        if block_type in SKIPPED_TYPES:
            return ""

        text = render_rich_text(content.get('rich_text'))

        if block_type == 'paragraph':
            return self._with_children(text, block)

        if block_type in ('heading_1', 'heading_2', 'heading_3'):
            level = int(block_type[-1])
            heading = f"{'#' * level} {text}"
            children = self._render_children(block)
            return f"{heading}\n\n{children}" if children else heading

        if block_type == 'bulleted_list_item':
            return self._list_item(f"- {text}", block)

        if block_type == 'numbered_list_item':
            return self._list_item(f"{number}. {text}", block)

        if block_type == 'to_do':
            checked = 'x' if content.get('checked') else ' '
            return self._list_item(f"- [{checked}] {text}", block)

        if block_type == 'quote':
            return _quote(self._with_children(text, block))

        if block_type == 'callout':
            icon = content.get('icon') or {}
            emoji = icon.get('emoji') if icon.get('type') == 'emoji' else None
            body = f"{emoji} {text}" if emoji else text
            return _quote(self._with_children(body, block))

        if block_type == 'toggle':
            children = self._render_children(block)
            return f"<details>\n<summary>{text}</summary>\n\n{children}\n\n</details>"

        if block_type == 'code':
            language = content.get('language') or ''
            if language == 'plain text':
                language = ''
            return f"```{language}\n{plain_text(content.get('rich_text'))}\n```"

        if block_type == 'divider':
            return "---"

        if block_type == 'equation':
            return f"$$\n{content.get('expression', '')}\n$$"

        if block_type == 'image':
            caption = plain_text(content.get('caption'))
            return f"![{caption}]({_file_url(content)})"

        if block_type in FILE_LINK_TYPES:
            url = _file_url(content)
            label = plain_text(content.get('caption')) or content.get('name') or block_type
            return f"[{label}]({url})" if url else ""

        if block_type in URL_LINK_TYPES:
            url = content.get('url', '')
            label = plain_text(content.get('caption')) or url
            return f"[{label}]({url})" if url else ""

        if block_type == 'link_to_page':
            target = content.get('page_id')
            if not target:
                return ""
            return f"[Linked page](https://www.notion.so/{target.replace('-', '')})"

        if block_type == 'table':
            return self._render_table(block)

        if block_type in CONTAINER_TYPES:
            return self._render_children(block)

        self.logger.debug(f"Skipping unsupported block type '{block_type}' ({block.get('id')})")
        return ""

    def _render_children(self, block: Dict[str, Any]) -> str:
        if not block.get('has_children'):
            return ""
        children = list(self.lister.iter_block_children(block['id']))
        return self.render_blocks(children)

    def _with_children(self, text: str, block: Dict[str, Any]) -> str:
        children = self._render_children(block)
        if not children:
            return text
        if not text:
            return _indent(children, self.INDENT)
        return f"{text}\n\n{_indent(children, self.INDENT)}"

    def _list_item(self, line: str, block: Dict[str, Any]) -> str:
        children = self._render_children(block)
        if not children:
            return line
        return f"{line}\n{_indent(children, self.INDENT)}"

    def _render_table(self, block: Dict[str, Any]) -> str:
        """Render a table; the first row always becomes the Markdown header row."""
        rows = [
            row for row in self.lister.iter_block_children(block['id'])
            if row.get('type') == 'table_row'
        ]
        if not rows:
            return ""

        width = (block.get('table') or {}).get('table_width') or max(
            len((row.get('table_row') or {}).get('cells', [])) for row in rows
        )

        lines = []
        for index, row in enumerate(rows):
            cells = (row.get('table_row') or {}).get('cells', [])
            values = [render_rich_text(cell).replace('|', '\\|') for cell in cells]
            values += [''] * (width - len(values))
            lines.append('| ' + ' | '.join(values) + ' |')
            if index == 0:
                lines.append('|' + '|'.join(['---'] * width) + '|')

        return '\n'.join(lines)


__all__ = ['BlockConverter', 'render_rich_text', 'plain_text']
