"""
HTML formatting for readability, shared by the Markup Formatter stage and the
Template Renderer.
"""
from __future__ import annotations

import asyncio
import logging
import re
import typing as t

from .core import PathLike, Stage, require
from .dependencies import PipDependency

if t.TYPE_CHECKING:
    from lxml.html import HtmlElement


logger = logging.getLogger(__name__)

DOCUMENT_RE = re.compile(r'<html[\s>]', re.IGNORECASE)
# ASCII whitespace only; U+00A0 from &nbsp; is content.
HTML_SPACE = ' \t\n\r\f'
WHITESPACE_RE = re.compile(r'[ \t\n\r\f]+')

# Elements whose contents are whitespace-sensitive or not markup.
PRESERVE_TAGS = frozenset({'pre', 'textarea', 'script', 'style'})
# Phrasing content; a run of these is kept on one line.
INLINE_TAGS = frozenset({
    'a', 'abbr', 'b', 'bdi', 'bdo', 'br', 'button', 'cite', 'code', 'data',
    'del', 'dfn', 'em', 'i', 'img', 'input', 'ins', 'kbd', 'label', 'mark',
    'q', 's', 'samp', 'select', 'small', 'span', 'strong', 'sub', 'sup',
    'time', 'u', 'var', 'wbr',
})


class FormatOptions(t.TypedDict, total=False):
    """
    Options accepted by `format_html()`.
    """
    input_path: PathLike
    output_path: PathLike
    ocd: bool
    indent: str


def _has_text(text: str | None):
    return bool(text and text.strip(HTML_SPACE))


def _squash(text: str | None):
    if _has_text(text):
        return WHITESPACE_RE.sub(' ', t.cast(str, text))
    return text


def _condense(element: HtmlElement):
    if not isinstance(element.tag, str) or element.tag in PRESERVE_TAGS:
        return
    element.text = _squash(element.text)
    for child in element:
        _condense(child)
        child.tail = _squash(child.tail)


def _is_inline_content(element: HtmlElement, children: list[HtmlElement]):
    if _has_text(element.text) or any(_has_text(c.tail) for c in children):
        return True
    return all(isinstance(c.tag, str) and c.tag in INLINE_TAGS for c in children)


def _indent(element: HtmlElement, level: int, indent: str):
    if not isinstance(element.tag, str) or element.tag in PRESERVE_TAGS:
        return
    children = list(element)
    if not children or _is_inline_content(element, children):
        return

    pad = '\n' + indent * (level + 1)
    element.text = pad
    for child in children:
        _indent(child, level + 1, indent)
        child.tail = pad
    children[-1].tail = '\n' + indent * level


def format_markup(text: str, ocd: bool = True, indent: str = '  ') -> str:
    """
    Reformat HTML for readability.

    Block-level elements that hold only other elements are put one child per
    line at @indent per level. Inline runs, mixed text, and the contents of
    `pre`, `textarea`, `script` and `style` are left alone. With @ocd, text
    outside those elements has its whitespace runs condensed to single spaces
    and the result ends with exactly one newline. Formatting already
    formatted markup returns it unchanged.
    """
    import lxml.html

    if not text.strip(HTML_SPACE):
        return ''

    if DOCUMENT_RE.search(text):
        root = lxml.html.document_fromstring(text)
        doctype = root.getroottree().docinfo.doctype or None
        if ocd:
            _condense(root)
        _indent(root, 0, indent)
        result = lxml.html.tostring(root, encoding='unicode', doctype=doctype)
    else:
        wrapper = lxml.html.fragment_fromstring(text, create_parent='div')
        if ocd:
            _condense(wrapper)
        # The wrapper itself is never output, so its children start at the
        # left margin.
        _indent(wrapper, -1, indent)
        result = (wrapper.text or '').lstrip('\n') + ''.join(
            lxml.html.tostring(child, encoding='unicode') for child in wrapper
        )

    if ocd:
        result = result.strip(HTML_SPACE) + '\n'
    return result


class MarkupFormatStage(Stage):
    """
    Stage reformatting an HTML file for readability using lxml.
    """
    operation = 'format_html'

    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('lxml'),
        }

    def __init__(self, ocd: bool = True, indent: str = '  '):
        super().__init__()
        self.ocd = ocd
        self.indent = indent

    async def __call__(self, input_path: PathLike | None = None, output_path: PathLike | None = None):
        require(self.operation, input_path=input_path, output_path=output_path)
        logger.info('Beautifying HTML for %s', input_path)
        data = await self.read_text(t.cast(PathLike, input_path))
        formatted = await asyncio.to_thread(format_markup, data, self.ocd, self.indent)
        return await self.write_text(t.cast(PathLike, output_path), formatted)


async def format_html(input_path: PathLike | None = None,
                      output_path: PathLike | None = None,
                      *,
                      ocd: bool = True,
                      indent: str = '  '):
    """
    Read @input_path, reformat it with `format_markup()`, and write the result
    to @output_path. Returns the written path.
    """
    return await MarkupFormatStage(ocd, indent)(input_path, output_path)
