"""
Layout and compiler tests

Tests wrapping, the three layouts, the status line, scrolling limits and
rasterizing into cell frames.
"""

import pytest

from termdeck.config import AppSettings
from termdeck.lib.compiler import Compiler
from termdeck.lib.layout import LayoutDispatcher, line_wrap, tree_rasterize
from termdeck.lib.parser import Parser
from termdeck.lib.theme import theme_load
from termdeck.models.render import RenderLine, Span, Style


VIEWPORT = (80, 24)


def texts(lines):
    return [line.text for line in lines]


def render(source, viewport=VIEWPORT, index=0, scroll=0):
    deck = Parser(source).parse()
    dispatcher = LayoutDispatcher()
    tree = dispatcher.tree_build(deck, index, viewport, scroll)
    return deck, dispatcher, tree


class TestWrap:
    """Test line wrapping"""

    def test_wrap_at_spaces(self):
        line = RenderLine((Span("alpha beta gamma"),))
        assert texts(line_wrap(line, 11)) == ["alpha beta", "gamma"]

    def test_break_long_word(self):
        """Words longer than the width are split"""
        line = RenderLine((Span("abcdefghij"),))
        assert texts(line_wrap(line, 4)) == ["abcd", "efgh", "ij"]

    def test_nowrap_clipped(self):
        """Banner lines are clipped, never wrapped"""
        line = RenderLine((Span("abcdefghij"),), nowrap=True)
        assert texts(line_wrap(line, 4)) == ["abcd"]

    def test_wide_characters(self):
        """Double-width characters count as two cells"""
        line = RenderLine((Span("日本語"),))
        assert texts(line_wrap(line, 4)) == ["日本", "語"]

    def test_styles_survive_wrap(self):
        """Each wrapped row keeps the spans' styles"""
        bold = Span("bold words here", Style(bold=True))
        rows = line_wrap(RenderLine((bold,)), 6)
        assert all(span.style.bold for row in rows for span in row.spans)


class TestCompiler:
    """Test block compilation"""

    @pytest.fixture
    def compiler(self):
        return Compiler(theme_load("mocha"))

    def test_heading_prefix(self, compiler):
        deck = Parser("## Title").parse()
        assert texts(compiler.blocks_compile(deck.slides[0].content)) == ["## Title"]

    def test_centered_heading_has_no_prefix(self, compiler):
        deck = Parser("## Title").parse()
        lines = compiler.blocks_compile(deck.slides[0].content, align="center")
        assert texts(lines) == ["Title"]
        assert lines[0].align == "center"

    def test_lists(self, compiler):
        deck = Parser("- a\n  - b\n\nText\n\n1. one").parse()
        assert texts(compiler.blocks_compile(deck.slides[0].content)) == [
            "• a", "  • b", "", "Text", "", "1. one",
        ]

    def test_list_continuation(self, compiler):
        """Content nested in an item is indented under its bullet"""
        deck = Parser("- first\n\n  > quoted\n- second").parse()
        assert texts(compiler.blocks_compile(deck.slides[0].content)) == [
            "• first", "  │ quoted", "• second",
        ]

    def test_code_block(self, compiler):
        """Code lines keep their text and fill the line"""
        deck = Parser("```python\nprint(1)\n```").parse()
        lines = compiler.blocks_compile(deck.slides[0].content)
        assert lines[0].text.strip() == "python"
        assert lines[1].text.strip() == "print(1)"
        assert lines[1].nowrap
        assert lines[1].fill == compiler.theme.surface

    def test_inline_code_chip(self, compiler):
        deck = Parser("use `ls`").parse()
        assert texts(compiler.blocks_compile(deck.slides[0].content)) == ["use  ls "]

    def test_quote_prefix(self, compiler):
        deck = Parser("> hi").parse()
        line = compiler.blocks_compile(deck.slides[0].content)[0]
        assert line.text == "│ hi"
        assert line.spans[1].style.italic

    def test_banner_lines(self, compiler):
        """Figlet headings become several unwrapped lines"""
        deck = Parser("<!-- figlet -->\n# Hi").parse()
        lines = compiler.blocks_compile(deck.slides[0].content)
        assert len(lines) > 1
        assert all(line.nowrap for line in lines)

    def test_image_anchor(self, compiler):
        deck = Parser("![alt](x.png)").parse()
        line = compiler.blocks_compile(deck.slides[0].content)[0]
        assert line.image.alt == "alt"
        assert line.image.max_width_percent == 100
        assert line.image.height == compiler.settings.image_placeholder_height


class TestLayouts:
    """Test region placement"""

    def test_status_line(self):
        """The last row shows position, keys and layout"""
        _, _, tree = render("# A\n---\n# B\n---\n# C")
        frame = tree_rasterize(tree)
        status = frame.row_text(23)
        assert status.startswith(" [1/3]")
        assert status.rstrip().endswith("default")

    def test_default_region(self):
        """Default content starts at the margins"""
        _, _, tree = render("# A")
        region = tree.regions[0]
        assert (region.rect.x, region.rect.y) == (2, 1)
        assert region.lines[0].text == "# A"

    def test_center_box(self):
        """Center layout puts a natural-size box in the middle"""
        _, _, tree = render("<!-- layout: center -->\n# Hi")
        rect = tree.regions[0].rect
        assert rect.width == 2
        assert rect.x == 2 + (76 - 2) // 2
        assert rect.y == 1 + (21 - 1) // 2

    def test_two_columns_do_not_overlap(self):
        _, _, tree = render("<!-- layout: two-column -->\nleft\n|||\nright")
        left, right = tree.regions[0].rect, tree.regions[1].rect
        assert left.x == 2
        assert left.right < right.x
        assert right.right == 78
        assert left.width == right.width
        assert texts(tree.regions[1].lines) == ["right"]

    def test_overflow_scrolls(self):
        """Content taller than the area can scroll and gets a scrollbar"""
        source = "\n\n".join(f"line {n}" for n in range(40))
        deck, dispatcher, tree = render(source)
        assert tree.scrollbar is not None
        limit = dispatcher.max_scroll(deck, 0, VIEWPORT)
        assert limit > 0

        scrolled = dispatcher.tree_build(deck, 0, VIEWPORT, limit)
        assert scrolled.regions[0].lines[-1].text == "line 39"

    def test_short_slide_does_not_scroll(self):
        deck, dispatcher, tree = render("# A")
        assert tree.scrollbar is None
        assert dispatcher.max_scroll(deck, 0, VIEWPORT) == 0

    def test_tiny_viewport(self):
        """Very small terminals clip without errors"""
        deck, dispatcher, tree = render("# A long heading\n\nsome text", viewport=(5, 2))
        frame = tree_rasterize(tree)
        assert (frame.width, frame.height) == (5, 2)


class TestRasterize:
    """Test frames"""

    def test_frame_size(self):
        _, _, tree = render("# A")
        frame = tree_rasterize(tree)
        assert (frame.width, frame.height) == VIEWPORT
        assert all(len(row) == 80 for row in frame.rows)

    def test_text_drawn(self):
        _, _, tree = render("Hello")
        frame = tree_rasterize(tree)
        assert frame.row_text(1)[2:7] == "Hello"

    def test_image_placeholder(self):
        """Images get a box with the alt text; width follows the directive"""
        _, _, tree = render("<!-- image_max_width: 50 -->\n![diagram](d.png)")
        assert len(tree.images) == 1
        placement = tree.images[0]
        assert placement.rect.width == 38
        assert placement.rect.height == AppSettings().image_placeholder_height

        frame = tree_rasterize(tree)
        assert "diagram" in frame.text()
        assert frame.row_text(placement.rect.y)[placement.rect.x] == "┌"

    def test_wide_character_cells(self):
        """A wide character fills two cells, the second left empty"""
        _, _, tree = render("日本")
        frame = tree_rasterize(tree)
        assert frame.rows[1][2].char == "日"
        assert frame.rows[1][3].char == ""
        assert frame.row_text(1).startswith("  日本")
