"""
Unused-rule purging and vendor prefixing for compiled style sheets.

Selectors are inspected with tinycss2; the actual rule removal and prefixing
is done by lightningcss.
"""
from __future__ import annotations

import asyncio
import dataclasses
import glob
import logging
import re
import typing as t
from pathlib import Path

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence
    import tinycss2.ast as c2ast
    from .core import PathLike


logger = logging.getLogger(__name__)

DEFAULT_EXTRACTOR_RE = re.compile(r'[A-Za-z0-9_-]+')
GLOB_CHARS_RE = re.compile(r'[*?[]')
GROUP_AT_RULES = frozenset({'media', 'supports', 'layer', 'container', 'document'})
ANIMATION_PROPERTIES = frozenset({
    'animation', 'animation-name', '-webkit-animation', '-webkit-animation-name',
    '-moz-animation', '-moz-animation-name',
})

Extractor = t.Callable[[str], 'Iterable[str]']
SafelistEntry = t.Union[str, 're.Pattern[str]']


@dataclasses.dataclass(frozen=True)
class RawContent:
    """
    Content given inline rather than as a file path or glob.
    """
    raw: str
    extension: str = 'html'


@dataclasses.dataclass
class PurgeResult:
    file: Path
    css: str
    source_map: Path | None = None
    warnings: list[str] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class PrefixResult:
    css: str
    warnings: list[str] = dataclasses.field(default_factory=list)


def default_extractor(content: str) -> set[str]:
    """
    Split @content into every word that could name a class, id, or tag.
    """
    return set(DEFAULT_EXTRACTOR_RE.findall(content))


def _prelude_symbols(prelude: list[c2ast.Node]):
    import tinycss2.ast as c2ast
    previous = None
    for token in prelude:
        if isinstance(token, c2ast.IdentToken) and isinstance(previous, c2ast.LiteralToken) and previous == '.':
            yield token.value
        elif isinstance(token, c2ast.HashToken) and token.is_identifier:
            yield token.value
        previous = token


def _style_rules(rules: Iterable[c2ast.Node]) -> Iterator[c2ast.QualifiedRule]:
    import tinycss2
    import tinycss2.ast as c2ast
    for rule in rules:
        if isinstance(rule, c2ast.QualifiedRule):
            yield rule
        elif isinstance(rule, c2ast.AtRule) and rule.content is not None:
            if rule.lower_at_keyword in GROUP_AT_RULES:
                yield from _style_rules(
                    tinycss2.parse_rule_list(rule.content, skip_comments=True, skip_whitespace=True)
                )


def _parse(css: str):
    import tinycss2
    return tinycss2.parse_stylesheet(css, skip_comments=True, skip_whitespace=True)


def find_selector_symbols(css: str) -> set[str]:
    """
    Return the class names and ids used by selectors in @css, including those
    inside conditional group rules such as `@media`. Selectors inside
    functional pseudo-classes like `:not()` are not counted.
    """
    symbols: set[str] = set()
    for rule in _style_rules(_parse(css)):
        symbols.update(_prelude_symbols(rule.prelude))
    return symbols


def find_animation_names(css: str) -> set[str]:
    """
    Return the identifiers named by `animation` and `animation-name`
    declarations in @css. Besides keyframes names these include keywords
    such as `infinite`, which are harmless to keep.
    """
    import tinycss2
    import tinycss2.ast as c2ast
    names: set[str] = set()
    for rule in _style_rules(_parse(css)):
        for declaration in tinycss2.parse_declaration_list(rule.content, skip_comments=True, skip_whitespace=True):
            if isinstance(declaration, c2ast.Declaration) and declaration.lower_name in ANIMATION_PROPERTIES:
                names.update(
                    token.value for token in declaration.value
                    if isinstance(token, (c2ast.IdentToken, c2ast.StringToken))
                )
    return names


def _is_safelisted(symbol: str, safelist: Sequence[SafelistEntry]):
    for entry in safelist:
        if isinstance(entry, str):
            if entry == symbol:
                return True
        elif entry.search(symbol):
            return True
    return False


def _expand_content(content: Sequence[PathLike | RawContent], encoding: str) -> list[str]:
    texts: list[str] = []
    for item in content:
        if isinstance(item, RawContent):
            texts.append(item.raw)
            continue
        pattern = str(item)
        if GLOB_CHARS_RE.search(pattern):
            matches = sorted(glob.glob(pattern, recursive=True))
            if not matches:
                logger.warning('No purge content matched %s', pattern)
            texts.extend(Path(m).read_text(encoding) for m in matches if Path(m).is_file())
        else:
            texts.append(Path(pattern).read_text(encoding))
    return texts


def _purge_one(path: Path,
               used: set[str],
               safelist: Sequence[SafelistEntry],
               encoding: str):
    import lightningcss
    css = path.read_text(encoding)
    warnings = find_parse_warnings(css, str(path))
    # Keyframes share the symbol namespace, so animated names stay.
    keep = used | find_animation_names(css)
    unused = {
        symbol for symbol in find_selector_symbols(css)
        if symbol not in keep and not _is_safelisted(symbol, safelist)
    }
    logger.debug('Unused selectors in %s: %s', path, ', '.join(sorted(unused)) or '(none)')
    purged = lightningcss.process_stylesheet(
        css,
        filename=str(path),
        error_recovery=True,
        unused_symbols=unused,
        browsers_list=None,
        minify=False,
    )
    return PurgeResult(path, purged, warnings=warnings)


async def purge_stylesheets(content: Sequence[PathLike | RawContent],
                            css_files: Sequence[PathLike],
                            *,
                            safelist: Sequence[SafelistEntry] = (),
                            extractor: Extractor | None = None,
                            encoding: str = 'utf-8') -> list[PurgeResult]:
    """
    Remove rules from each of @css_files whose class or id selectors never
    appear in @content. Keyframes still named by an animation are kept, and
    unparsable rules are dropped with a warning on the result.

    :param content: File paths, glob patterns, or `RawContent` to scan for
        used names.
    :param css_files: Style sheets to purge. They are read but not written.
    :param safelist: Names or compiled patterns that are always kept.
    :param extractor: Function splitting content into candidate names;
        defaults to `default_extractor()`.
    """
    extractor = extractor or default_extractor
    texts = await asyncio.to_thread(_expand_content, content, encoding)
    used: set[str] = set()
    for text in texts:
        used.update(extractor(text))

    return list(await asyncio.gather(*(
        asyncio.to_thread(_purge_one, Path(css_file), used, safelist, encoding)
        for css_file in css_files
    )))


def find_parse_warnings(css: str, filename: str = '') -> list[str]:
    """
    Return a message for each top-level parse error tinycss2 reports in @css.
    """
    import tinycss2.ast as c2ast
    return [
        f'{filename or "<css>"}:{node.source_line}:{node.source_column}: {node.message}'
        for node in _parse(css)
        if isinstance(node, c2ast.ParseError)
    ]


def prefix_stylesheet(css: str,
                      browsers_list: Sequence[str] | None = ('defaults',),
                      *,
                      filename: str = '',
                      minify: bool = False) -> PrefixResult:
    """
    Add the vendor-prefixed variants @browsers_list needs to @css.
    """
    import lightningcss
    warnings = find_parse_warnings(css, filename)
    prefixed = lightningcss.process_stylesheet(
        css,
        filename=filename,
        error_recovery=True,
        browsers_list=list(browsers_list) if browsers_list else None,
        minify=minify,
    )
    return PrefixResult(prefixed, warnings)
