"""
Markdown event translator

Turns the ordered markdown event stream into semantic Blocks. Inline style
markers (emphasis, strong, strikethrough, inline code) are tracked on a
stack and applied to StyledRuns; container nesting (quotes, lists, tables)
decides where a finished line goes. Block content nested in a list item
(code, headings, quotes) stays in its list as continuation items.

Besides content blocks the translator emits three markers for the slide
builder: RuleBlock for document-level thematic breaks, ColumnBreakBlock for
'|||' separators (seen here as the column sentinel paragraph) and
DirectiveBlock for top-level HTML comments. Fenced code is literal text to
the markdown parser, so a '---' inside a fence never reaches this module as
a rule.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import appsettings
from ..models.directives import ImageWidthDirective
from ..models.parser import EventKind, MarkdownEvent, Tag
from ..models.slides import (
    Block,
    CodeBlock,
    ColumnBreakBlock,
    DirectiveBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ListItem,
    ParagraphBlock,
    QuoteBlock,
    RuleBlock,
    RunStyle,
    StyledLine,
    StyledRun,
)
from .directives import DirectiveRegistry
from .errors import ParseError
from .log import LOG


STYLE_TAGS: Dict[Tag, RunStyle] = {
    Tag.EMPHASIS: RunStyle.ITALIC,
    Tag.STRONG: RunStyle.BOLD,
    Tag.STRIKETHROUGH: RunStyle.STRIKETHROUGH,
}

INLINE_CONTEXTS = frozenset({Tag.PARAGRAPH, Tag.HEADING, Tag.TABLE_CELL})

# Containers that collect finished lines; the innermost open one wins
COLLECTING_TAGS = frozenset({Tag.QUOTE, Tag.TABLE, Tag.OTHER, Tag.ITEM})

QUOTE_MARK = "│ "

URL_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*://')


class MarkdownTranslator:
    """
    Stateful converter from MarkdownEvent to Block

    Feed events with process() in document order, then call finish().

    Attributes:
        base_dir: Directory image paths are resolved against
        blocks: Finished blocks, in order
        diagnostics: ParseError entries for constructs shown as plain text
    """

    def __init__(
        self,
        base_dir: Path = Path("."),
        registry: Optional[DirectiveRegistry] = None,
        column_sentinel: Optional[str] = None,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.registry = registry or DirectiveRegistry()
        self.column_sentinel = column_sentinel or appsettings.column_sentinel
        self.blocks: List[Block] = []
        self.diagnostics: List[Exception] = []

        self.stack: List[Tag] = []
        self.style_stack: List[RunStyle] = [RunStyle.NONE]
        self.runs: List[StyledRun] = []
        self.lines: List[StyledLine] = []

        self.heading_level: int = 0
        self.code_language: str = ""
        self.code_text: str = ""
        self.list_stack: List[Dict[str, Any]] = []
        self.list_items: List[ListItem] = []
        self.item_stack: List[Dict[str, Any]] = []
        self.quote_lines: List[StyledLine] = []
        self.table_lines: List[StyledLine] = []
        self.other_lines: List[StyledLine] = []

        self.content_seen: bool = False
        self.slide_content_seen: bool = False
        self.document_image_width: Optional[int] = None
        self.slide_image_width: Optional[int] = None

    # ------------------------------------------------------------------
    # context helpers

    def inside(self, tag: Tag) -> bool:
        return tag in self.stack

    @property
    def top_level(self) -> bool:
        """No quote, list, table or unknown container is open"""
        return not any(tag in self.stack for tag in (Tag.QUOTE, Tag.LIST, Tag.TABLE, Tag.OTHER))

    @property
    def inline_context(self) -> bool:
        return any(tag in INLINE_CONTEXTS for tag in self.stack)

    @property
    def style(self) -> RunStyle:
        return self.style_stack[-1]

    def run_add(self, text: str, style: Optional[RunStyle] = None) -> None:
        if text:
            self.runs.append(StyledRun(text, self.style if style is None else style))

    def runs_take(self) -> StyledLine:
        runs, self.runs = tuple(self.runs), []
        return runs

    def block_add(self, block: Block) -> None:
        self.blocks.append(block)
        if block.kind not in (RuleBlock.kind, ColumnBreakBlock.kind, DirectiveBlock.kind):
            self.content_seen = True
            self.slide_content_seen = True

    def container(self) -> Optional[Tag]:
        """Innermost open container that collects finished lines"""
        for tag in reversed(self.stack):
            if tag in COLLECTING_TAGS:
                return tag
        return None

    def container_lines(self, tag: Optional[Tag]) -> List[StyledLine]:
        if tag is Tag.QUOTE:
            return self.quote_lines
        if tag is Tag.TABLE:
            return self.table_lines
        if tag is Tag.OTHER:
            return self.other_lines
        return self.lines

    def line_emit(self, line: StyledLine) -> None:
        """Send a finished line to the innermost collecting container"""
        tag = self.container()
        if tag is Tag.ITEM:
            self.listItem_store(ListItem(line, depth=self.list_depth, continuation=True))
        else:
            self.container_lines(tag).append(line)

    @property
    def list_depth(self) -> int:
        return max(len(self.list_stack) - 1, 0)

    def itemText_flush(self) -> None:
        """Finish pending item text before block content nested in the item"""
        if self.container() is Tag.ITEM and self.runs:
            self.item_emit()

    def listItem_store(self, item: ListItem) -> None:
        """Keep an item with its list, or as a plain line when the list sits in a quote or table"""
        host = self.list_stack[-1]['host'] if self.list_stack else None
        if host is None:
            self.list_items.append(item)
            return
        if item.continuation:
            marker = "  " * (item.depth + 1)
        else:
            marker = "  " * item.depth + (f"{item.ordinal}. " if item.ordinal is not None else "• ")
        self.container_lines(host).append((StyledRun(marker),) + item.runs)

    def paragraph_flush(self) -> None:
        """Emit pending top-level paragraph lines as a ParagraphBlock"""
        if self.runs:
            self.lines.append(self.runs_take())
        if self.lines:
            self.block_add(ParagraphBlock(tuple(self.lines)))
            self.lines = []

    def parseError_note(self, message: str) -> None:
        error = ParseError(message)
        LOG(f"Rendered as plain text: {message}", level=2)
        self.diagnostics.append(error)

    # ------------------------------------------------------------------
    # event dispatch

    def process(self, event: MarkdownEvent) -> None:
        """Consume one event"""
        if event.kind is EventKind.START:
            self.start_handle(event)
            self.stack.append(event.tag)
        elif event.kind is EventKind.END:
            if self.stack and self.stack[-1] is event.tag:
                self.stack.pop()
            self.end_handle(event)
        elif event.kind is EventKind.TEXT:
            self.text_handle(event.text)
        elif event.kind is EventKind.CODE:
            self.run_add(event.text, self.style | RunStyle.CODE)
        elif event.kind is EventKind.SOFT_BREAK:
            self.run_add(" ")
        elif event.kind is EventKind.HARD_BREAK:
            self.hardBreak_handle()
        elif event.kind is EventKind.IMAGE:
            self.image_handle(event)
        elif event.kind is EventKind.HTML:
            self.html_handle(event.text)
        elif event.kind is EventKind.INLINE_HTML:
            self.inlineHtml_handle(event.text)
        elif event.kind is EventKind.RULE:
            self.rule_handle()

    def start_handle(self, event: MarkdownEvent) -> None:
        tag = event.tag
        if tag in STYLE_TAGS:
            self.style_stack.append(self.style | STYLE_TAGS[tag])
        elif tag is Tag.PARAGRAPH:
            if self.container() is Tag.ITEM and self.runs:
                self.run_add(" ")
        elif tag is Tag.HEADING:
            self.itemText_flush()
            self.heading_level = event.attrs.get('level', 1)
            self.runs = []
        elif tag is Tag.CODE_BLOCK:
            self.itemText_flush()
            self.code_language = event.attrs.get('language', '')
            self.code_text = ""
        elif tag is Tag.LIST:
            self.itemText_flush()
            start = event.attrs.get('start')
            host = self.container()
            if host is Tag.ITEM:
                host = self.list_stack[-1]['host'] if self.list_stack else None
            if host is None and not self.list_stack:
                self.list_items = []
            self.list_stack.append({
                'ordered': start is not None,
                'next': start if start is not None else 1,
                'host': host,
            })
        elif tag is Tag.ITEM:
            current = self.list_stack[-1] if self.list_stack else {'ordered': False, 'next': 1}
            ordinal = None
            if current['ordered']:
                ordinal = current['next']
                current['next'] += 1
            self.item_stack.append({'ordinal': ordinal, 'emitted': False})
            self.runs = []
        elif tag is Tag.QUOTE:
            self.itemText_flush()
            if not self.inside(Tag.QUOTE):
                self.quote_lines = []
            elif self.quote_lines:
                self.quote_lines.append(())
        elif tag is Tag.TABLE:
            self.itemText_flush()
            self.table_lines = []
        elif tag is Tag.OTHER and not self.inline_context:
            self.itemText_flush()
            if not self.inside(Tag.OTHER):
                self.other_lines = []

    def end_handle(self, event: MarkdownEvent) -> None:
        tag = event.tag
        if tag in STYLE_TAGS:
            if len(self.style_stack) > 1:
                self.style_stack.pop()
        elif tag is Tag.PARAGRAPH:
            self.paragraphEnd_handle()
        elif tag is Tag.HEADING:
            runs = self.runs_take()
            if self.top_level:
                self.paragraph_flush()
                self.block_add(HeadingBlock(self.heading_level, runs))
            else:
                self.line_emit(runs)
            self.heading_level = 0
        elif tag is Tag.CODE_BLOCK:
            self.codeBlockEnd_handle()
        elif tag is Tag.ITEM:
            item = self.item_stack[-1] if self.item_stack else None
            if item is not None and (not item['emitted'] or self.runs):
                self.item_emit()
            if self.item_stack:
                self.item_stack.pop()
        elif tag is Tag.LIST:
            current = self.list_stack.pop() if self.list_stack else {'ordered': False, 'host': None}
            if not self.list_stack and current['host'] is None:
                self.block_add(ListBlock(current['ordered'], tuple(self.list_items)))
                self.list_items = []
        elif tag is Tag.QUOTE:
            if not self.inside(Tag.QUOTE):
                if self.runs:
                    self.quote_lines.append(self.runs_take())
                while self.quote_lines and not self.quote_lines[-1]:
                    self.quote_lines.pop()
                lines, self.quote_lines = tuple(self.quote_lines), []
                if self.container() is None:
                    self.block_add(QuoteBlock(lines))
                else:
                    for line in lines:
                        self.line_emit((StyledRun(QUOTE_MARK),) + line)
        elif tag is Tag.TABLE_CELL:
            self.run_add(" | ", RunStyle.NONE)
        elif tag is Tag.TABLE_ROW:
            runs = list(self.runs_take())
            if runs and runs[-1].text == " | ":
                runs.pop()
            self.line_emit(tuple(runs))
        elif tag is Tag.TABLE:
            self.parseError_note("table")
            lines, self.table_lines = tuple(self.table_lines), []
            if self.top_level:
                self.block_add(ParagraphBlock(lines))
            else:
                for line in lines:
                    self.line_emit(line)
        elif tag is Tag.OTHER and not self.inline_context and not self.inside(Tag.OTHER):
            if self.runs:
                self.other_lines.append(self.runs_take())
            name = event.attrs.get('name', 'unknown')
            self.parseError_note(f"unsupported markdown element {name}")
            lines, self.other_lines = tuple(self.other_lines), []
            if lines and self.top_level:
                self.block_add(ParagraphBlock(lines))
            else:
                for line in lines:
                    self.line_emit(line)

    def paragraphEnd_handle(self) -> None:
        container = self.container()
        if container is Tag.ITEM:
            return
        if container is Tag.QUOTE:
            if self.runs:
                self.quote_lines.append(self.runs_take())
            self.quote_lines.append(())
            return
        if not self.top_level:
            if self.runs:
                self.line_emit(self.runs_take())
            return

        if not self.lines and ''.join(run.text for run in self.runs).strip() == self.column_sentinel:
            self.runs = []
            self.block_add(ColumnBreakBlock())
            return
        self.paragraph_flush()

    def codeBlockEnd_handle(self) -> None:
        text = self.code_text[:-1] if self.code_text.endswith("\n") else self.code_text
        lines = tuple(text.split("\n")) if text else ()
        self.code_text = ""
        if self.top_level and not self.item_stack:
            self.paragraph_flush()
            self.block_add(CodeBlock(self.code_language, lines))
        else:
            for line in lines:
                self.line_emit((StyledRun(line, RunStyle.CODE),))

    def text_handle(self, text: str) -> None:
        if self.inside(Tag.CODE_BLOCK):
            self.code_text += text
        else:
            self.run_add(text)

    def hardBreak_handle(self) -> None:
        if self.heading_level:
            self.run_add(" ")
        elif self.container() is Tag.ITEM:
            self.item_emit()
        else:
            self.line_emit(self.runs_take())

    def item_emit(self) -> None:
        """Finish the text of the innermost list item; later text continues it"""
        state = self.item_stack[-1]
        continuation = state['emitted']
        state['emitted'] = True
        self.listItem_store(ListItem(
            self.runs_take(),
            depth=self.list_depth,
            ordinal=None if continuation else state['ordinal'],
            continuation=continuation,
        ))

    def image_handle(self, event: MarkdownEvent) -> None:
        src = event.attrs.get('src', '')
        alt = event.text
        if not self.top_level or self.heading_level or self.item_stack:
            self.run_add(f"[image: {alt or src}]", self.style | RunStyle.ITALIC)
            return
        self.paragraph_flush()
        self.block_add(ImageBlock(
            path=self.imagePath_resolve(src),
            alt=alt,
            max_width_percent=self.slide_image_width or self.document_image_width,
        ))

    def imagePath_resolve(self, src: str) -> str:
        """Resolve an image path against the document directory; URLs pass through"""
        if not src or URL_PATTERN.match(src) or Path(src).is_absolute():
            return src
        return str(self.base_dir / src)

    def html_handle(self, text: str) -> None:
        if text.lstrip().startswith("<!--"):
            if self.top_level and not self.item_stack:
                self.paragraph_flush()
                self.block_add(DirectiveBlock(text))
                self.imageWidth_scope(text)
            return
        self.itemText_flush()
        self.parseError_note("raw HTML block")
        lines = tuple((StyledRun(line),) for line in text.splitlines())
        if self.top_level:
            self.paragraph_flush()
            self.block_add(ParagraphBlock(lines))
        else:
            for line in lines:
                self.line_emit(line)

    def inlineHtml_handle(self, text: str) -> None:
        if text.startswith("<!--"):
            return
        self.parseError_note(f"inline HTML {text}")
        self.run_add(text)

    def imageWidth_scope(self, text: str) -> None:
        """Track the image_max_width directive in scope for later images"""
        if self.slide_content_seen:
            return
        for directive in self.registry.comment_parse(text, keys=("image_max_width",)):
            if isinstance(directive, ImageWidthDirective):
                self.slide_image_width = directive.percent
                if not self.content_seen:
                    self.document_image_width = directive.percent

    def rule_handle(self) -> None:
        if not self.top_level or self.item_stack:
            LOG("Ignoring thematic break nested in a container", level=3)
            return
        self.paragraph_flush()
        self.block_add(RuleBlock())
        self.slide_image_width = None
        self.slide_content_seen = False

    def finish(self) -> List[Block]:
        """Flush pending content and return all blocks"""
        self.paragraph_flush()
        return self.blocks


def blocks_translate(
    events: List[MarkdownEvent],
    base_dir: Path = Path("."),
    registry: Optional[DirectiveRegistry] = None,
    diagnostics: Optional[List[Exception]] = None,
    column_sentinel: Optional[str] = None,
) -> List[Block]:
    """
    Translate a full event stream

    Args:
        events: Markdown events in document order
        base_dir: Directory image paths are resolved against
        registry: Directive registry (for image width scope)
        diagnostics: List receiving ParseError entries
        column_sentinel: Text marking a column separator paragraph

    Returns:
        Blocks, including Rule/ColumnBreak/Directive markers
    """
    translator = MarkdownTranslator(base_dir=base_dir, registry=registry, column_sentinel=column_sentinel)
    for event in events:
        translator.process(event)
    blocks = translator.finish()
    if diagnostics is not None:
        diagnostics.extend(translator.diagnostics)
    return blocks
