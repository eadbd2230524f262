"""Tests for Notion block to Markdown conversion."""

from conftest import block, image_block, paragraph, text_run
from converters import BlockConverter, convert_page, plain_text, render_rich_text
from fetchers import PaginatedLister


def make_converter(client):
    return BlockConverter(PaginatedLister(client))


class TestRichText:
    """Test inline rich text rendering."""

    def test_plain(self):
        assert render_rich_text([text_run("Hello "), text_run("world")]) == "Hello world"

    def test_empty(self):
        assert render_rich_text(None) == ""
        assert render_rich_text([]) == ""

    def test_annotations(self):
        assert render_rich_text([text_run("bold", bold=True)]) == "**bold**"
        assert render_rich_text([text_run("it", italic=True)]) == "*it*"
        assert render_rich_text([text_run("gone", strikethrough=True)]) == "~~gone~~"
        assert render_rich_text([text_run("x = 1", code=True)]) == "`x = 1`"
        assert render_rich_text([text_run("under", underline=True)]) == "<u>under</u>"

    def test_combined_annotations(self):
        assert render_rich_text([text_run("both", bold=True, italic=True)]) == "***both***"

    def test_whitespace_kept_outside_markers(self):
        assert render_rich_text([text_run(" spaced ", bold=True)]) == " **spaced** "

    def test_link(self):
        run = text_run("docs", href="https://example.com/docs")
        assert render_rich_text([run]) == "[docs](https://example.com/docs)"

    def test_inline_equation(self):
        run = {'type': 'equation', 'plain_text': 'E=mc^2', 'equation': {'expression': 'E=mc^2'}}
        assert render_rich_text([text_run("Energy: "), run]) == "Energy: $E=mc^2$"

    def test_plain_text_ignores_annotations(self):
        assert plain_text([text_run("a", bold=True), text_run("b", code=True)]) == "ab"


class TestBlockRendering:
    """Test rendering of individual block types."""

    def test_paragraphs_separated_by_blank_line(self, fake_client):
        fake_client.blocks['page'] = [paragraph("First"), paragraph("Second")]
        assert make_converter(fake_client).page_to_markdown('page') == "First\n\nSecond"

    def test_headings(self, fake_client):
        fake_client.blocks['page'] = [
            block('heading_1', 'h1', rich_text=[text_run("Title")]),
            block('heading_2', 'h2', rich_text=[text_run("Section")]),
            block('heading_3', 'h3', rich_text=[text_run("Detail")]),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "# Title\n\n## Section\n\n### Detail"

    def test_bulleted_list_items_adjacent(self, fake_client):
        fake_client.blocks['page'] = [
            block('bulleted_list_item', 'b1', rich_text=[text_run("one")]),
            block('bulleted_list_item', 'b2', rich_text=[text_run("two")]),
            paragraph("after"),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "- one\n- two\n\nafter"

    def test_numbered_list_restarts_after_other_block(self, fake_client):
        fake_client.blocks['page'] = [
            block('numbered_list_item', 'n1', rich_text=[text_run("a")]),
            block('numbered_list_item', 'n2', rich_text=[text_run("b")]),
            paragraph("break"),
            block('numbered_list_item', 'n3', rich_text=[text_run("c")]),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "1. a\n2. b\n\nbreak\n\n1. c"

    def test_nested_list_children_indented(self, fake_client):
        fake_client.blocks['page'] = [
            block('bulleted_list_item', 'parent', has_children=True, rich_text=[text_run("parent")]),
        ]
        fake_client.blocks['parent'] = [
            block('bulleted_list_item', 'child', rich_text=[text_run("child")]),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "- parent\n    - child"

    def test_to_do(self, fake_client):
        fake_client.blocks['page'] = [
            block('to_do', 't1', rich_text=[text_run("done")], checked=True),
            block('to_do', 't2', rich_text=[text_run("open")], checked=False),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "- [x] done\n- [ ] open"

    def test_code_block(self, fake_client):
        fake_client.blocks['page'] = [
            block('code', 'c1', rich_text=[text_run("print('hi')")], language='python'),
            block('code', 'c2', rich_text=[text_run("raw")], language='plain text'),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "```python\nprint('hi')\n```\n\n```\nraw\n```"

    def test_quote_and_callout(self, fake_client):
        fake_client.blocks['page'] = [
            block('quote', 'q', rich_text=[text_run("wise words")]),
            block('callout', 'c', rich_text=[text_run("heads up")], icon={'type': 'emoji', 'emoji': '💡'}),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "> wise words\n\n> 💡 heads up"

    def test_toggle(self, fake_client):
        fake_client.blocks['page'] = [
            block('toggle', 'tg', has_children=True, rich_text=[text_run("More")]),
        ]
        fake_client.blocks['tg'] = [paragraph("hidden")]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "<details>\n<summary>More</summary>\n\nhidden\n\n</details>"

    def test_divider_and_equation(self, fake_client):
        fake_client.blocks['page'] = [
            block('divider', 'd'),
            block('equation', 'e', expression='a^2+b^2=c^2'),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "---\n\n$$\na^2+b^2=c^2\n$$"

    def test_image_uses_caption_as_alt(self, fake_client):
        fake_client.blocks['page'] = [
            image_block("https://s3.notion.so/a/diagram.png", caption="Diagram"),
            block('image', 'hosted', type='file', file={'url': 'https://files.notion.so/b.jpg'}, caption=[]),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "![Diagram](https://s3.notion.so/a/diagram.png)\n\n![](https://files.notion.so/b.jpg)"

    def test_bookmark_and_file_links(self, fake_client):
        fake_client.blocks['page'] = [
            block('bookmark', 'bm', url='https://example.com', caption=[]),
            block('pdf', 'pdf', type='external', external={'url': 'https://example.com/a.pdf'}, caption=[]),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "[https://example.com](https://example.com)\n\n[pdf](https://example.com/a.pdf)"

    def test_link_to_page(self, fake_client):
        fake_client.blocks['page'] = [
            block('link_to_page', 'l', type='page_id', page_id='1234-abcd'),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "[Linked page](https://www.notion.so/1234abcd)"

    def test_table_first_row_is_header(self, fake_client):
        fake_client.blocks['page'] = [block('table', 'tbl', has_children=True, table_width=2)]
        fake_client.blocks['tbl'] = [
            block('table_row', 'r1', cells=[[text_run("Name")], [text_run("Value")]]),
            block('table_row', 'r2', cells=[[text_run("a|b")], [text_run("1")]]),
        ]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "| Name | Value |\n|---|---|\n| a\\|b | 1 |"

    def test_columns_flattened(self, fake_client):
        fake_client.blocks['page'] = [block('column_list', 'cl', has_children=True)]
        fake_client.blocks['cl'] = [block('column', 'col1', has_children=True),
                                    block('column', 'col2', has_children=True)]
        fake_client.blocks['col1'] = [paragraph("left")]
        fake_client.blocks['col2'] = [paragraph("right")]
        result = make_converter(fake_client).page_to_markdown('page')
        assert result == "left\n\nright"

    def test_child_pages_and_unknown_blocks_skipped(self, fake_client):
        fake_client.blocks['page'] = [
            paragraph("kept"),
            block('child_page', 'cp', title='Sub'),
            block('child_database', 'db', title='Tasks'),
            block('mystery_widget', 'mw'),
        ]
        assert make_converter(fake_client).page_to_markdown('page') == "kept"

    def test_empty_page(self, fake_client):
        assert make_converter(fake_client).page_to_markdown('empty') == ""


class TestConvertPage:
    """Test the package-level convenience function."""

    def test_convert_page(self, fake_client):
        fake_client.blocks['page'] = [paragraph("Hello"), image_block("https://www.notion.so/img.png")]
        markdown = convert_page('page', PaginatedLister(fake_client))
        assert markdown == "Hello\n\n![](https://www.notion.so/img.png)"
