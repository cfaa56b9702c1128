"""
Markdown event stream

mistletoe parses markdown into a token tree. EventRenderer walks that tree
and flattens it into an ordered list of MarkdownEvent (container start/end,
text, inline code, images, raw HTML, rules, breaks), the input the
translator consumes.

HTML blocks and spans are not part of mistletoe's default token set; the
renderer registers them for the duration of its context, so documents must
be parsed inside `with EventRenderer() as renderer:`.

Example:
    >>> events = markdown_events("Hello *world*")
    >>> [e.kind.value for e in events]
    ['start', 'text', 'start', 'text', 'end', 'end']
"""

from typing import Any, Callable, Dict, Iterable, Iterator, List

from mistletoe import Document
from mistletoe.base_renderer import BaseRenderer
from mistletoe.block_token import HtmlBlock
from mistletoe.span_token import HtmlSpan

from ..models.parser import EventKind, MarkdownEvent, Tag


# Tokens that map directly onto a container tag
CONTAINER_TAGS: Dict[str, Tag] = {
    'Paragraph': Tag.PARAGRAPH,
    'Quote': Tag.QUOTE,
    'ListItem': Tag.ITEM,
    'Emphasis': Tag.EMPHASIS,
    'Strong': Tag.STRONG,
    'Strikethrough': Tag.STRIKETHROUGH,
    'Link': Tag.LINK,
    'AutoLink': Tag.LINK,
    'TableRow': Tag.TABLE_ROW,
    'TableCell': Tag.TABLE_CELL,
}


class EventRenderer(BaseRenderer):
    """
    mistletoe renderer producing MarkdownEvent lists instead of markup

    Only the token registration and context management of BaseRenderer are
    used; `document_events()` replaces `render()`.
    """

    def __init__(self) -> None:
        super().__init__(HtmlBlock, HtmlSpan)
        self.walkers: Dict[str, Callable[[Any], Iterator[MarkdownEvent]]] = {
            'Heading': self.heading_walk,
            'SetextHeading': self.heading_walk,
            'BlockCode': self.codeBlock_walk,
            'CodeFence': self.codeBlock_walk,
            'List': self.list_walk,
            'Table': self.table_walk,
            'ThematicBreak': self.rule_walk,
            'HtmlBlock': self.htmlBlock_walk,
            'HtmlSpan': self.htmlSpan_walk,
            'Image': self.image_walk,
            'InlineCode': self.inlineCode_walk,
            'LineBreak': self.lineBreak_walk,
            'RawText': self.rawText_walk,
            'EscapeSequence': self.children_walk,
        }

    # BaseRenderer looks these up when registering the HTML tokens
    def render_html_block(self, token: Any) -> str:
        return token.content

    def render_html_span(self, token: Any) -> str:
        return token.content

    def document_events(self, source: str) -> List[MarkdownEvent]:
        """
        Parse markdown source and return its event stream

        Args:
            source: Markdown text

        Returns:
            Events in document order
        """
        document = Document(source)
        return list(self.children_walk(document))

    def children_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        for child in token_children(token):
            yield from self.token_walk(child)

    def token_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        name = type(token).__name__
        walker = self.walkers.get(name)
        if walker is not None:
            yield from walker(token)
            return

        tag = CONTAINER_TAGS.get(name, Tag.OTHER)
        attrs = {'name': name} if tag is Tag.OTHER else {}
        yield MarkdownEvent(EventKind.START, tag, attrs=attrs)
        yield from self.children_walk(token)
        if tag is Tag.OTHER and not token_children(token) and isinstance(getattr(token, 'content', None), str):
            yield MarkdownEvent(EventKind.TEXT, text=token.content)
        yield MarkdownEvent(EventKind.END, tag, attrs=attrs)

    def heading_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        attrs = {'level': token.level}
        yield MarkdownEvent(EventKind.START, Tag.HEADING, attrs=attrs)
        yield from self.children_walk(token)
        yield MarkdownEvent(EventKind.END, Tag.HEADING, attrs=attrs)

    def codeBlock_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        attrs = {'language': (getattr(token, 'language', '') or '').strip()}
        yield MarkdownEvent(EventKind.START, Tag.CODE_BLOCK, attrs=attrs)
        content = ''.join(child.content for child in token_children(token))
        yield MarkdownEvent(EventKind.TEXT, text=content)
        yield MarkdownEvent(EventKind.END, Tag.CODE_BLOCK, attrs=attrs)

    def list_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        attrs = {'start': getattr(token, 'start', None)}
        yield MarkdownEvent(EventKind.START, Tag.LIST, attrs=attrs)
        yield from self.children_walk(token)
        yield MarkdownEvent(EventKind.END, Tag.LIST, attrs=attrs)

    def table_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        yield MarkdownEvent(EventKind.START, Tag.TABLE)
        header = getattr(token, 'header', None)
        if header is not None:
            yield from self.token_walk(header)
        yield from self.children_walk(token)
        yield MarkdownEvent(EventKind.END, Tag.TABLE)

    def rule_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        yield MarkdownEvent(EventKind.RULE)

    def htmlBlock_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        yield MarkdownEvent(EventKind.HTML, text=token.content)

    def htmlSpan_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        yield MarkdownEvent(EventKind.INLINE_HTML, text=token.content)

    def image_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        alt = ''.join(event.text for event in self.children_walk(token) if event.kind is EventKind.TEXT)
        yield MarkdownEvent(EventKind.IMAGE, text=alt, attrs={'src': token.src, 'title': getattr(token, 'title', '')})

    def inlineCode_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        content = ''.join(child.content for child in token_children(token))
        yield MarkdownEvent(EventKind.CODE, text=content)

    def lineBreak_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        kind = EventKind.SOFT_BREAK if getattr(token, 'soft', True) else EventKind.HARD_BREAK
        yield MarkdownEvent(kind)

    def rawText_walk(self, token: Any) -> Iterator[MarkdownEvent]:
        yield MarkdownEvent(EventKind.TEXT, text=token.content)


def token_children(token: Any) -> Iterable[Any]:
    """Children of a mistletoe token; leaf tokens have none"""
    return getattr(token, 'children', None) or ()


def markdown_events(source: str) -> List[MarkdownEvent]:
    """
    Parse markdown into an ordered event list

    Args:
        source: Markdown text

    Returns:
        List of MarkdownEvent in document order
    """
    with EventRenderer() as renderer:
        return renderer.document_events(source)
