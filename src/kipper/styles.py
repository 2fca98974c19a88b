"""
Style Compiler & Purger stage: Sass to CSS with libsass, then unused-rule
purging and vendor prefixing.
"""
from __future__ import annotations

import asyncio
import logging
import re
import typing as t
from pathlib import Path

from .core import PathLike, Stage, require
from .dependencies import PipDependency
from .purge import PurgeResult, RawContent, prefix_stylesheet, purge_stylesheets

if t.TYPE_CHECKING:
    from collections.abc import Sequence
    from .purge import Extractor, SafelistEntry


logger = logging.getLogger(__name__)

OutputStyle = t.Literal['nested', 'expanded', 'compact', 'compressed']
SOURCE_MAP_COMMENT_RE = re.compile(r'/\*# sourceMappingURL=.*?\*/\s*')


class StyleOptions(t.TypedDict, total=False):
    """
    Options accepted by `compile_and_purge_styles()`.
    """
    src_path: PathLike
    dest_path: PathLike
    source_map: bool
    purge_content: list[PathLike | RawContent]
    css_files_to_purge: list[PathLike]
    purge_source_map: bool
    include_paths: list[PathLike]
    output_style: OutputStyle
    browsers_list: list[str]
    safelist: list[SafelistEntry]
    minify: bool


def map_path_for(css_path: PathLike):
    """
    Return the conventional source map path for @css_path: `<name>.css.map`.
    """
    css_path = Path(css_path)
    return css_path.with_name(css_path.name + '.map')


class StyleCompileStage(Stage):
    """
    Stage compiling a Sass entry point to CSS, then purging unused rules and
    adding vendor prefixes to every purged file.

    The steps run in a fixed order: compile, write CSS and source map, purge,
    then prefix and overwrite each purged file. All writes have finished when
    the call returns.
    """
    operation = 'compile_and_purge_styles'

    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('libsass', check_name='sass'),
            PipDependency('tinycss2'),
            PipDependency('lightningcss'),
        }

    def __init__(self,
                 include_paths: Sequence[PathLike] = (),
                 output_style: OutputStyle = 'expanded',
                 browsers_list: Sequence[str] | None = ('defaults',),
                 safelist: Sequence[SafelistEntry] = (),
                 extractor: Extractor | None = None,
                 minify: bool = False):
        """
        :param include_paths: Extra directories searched by Sass `@use` and
            `@import`.
        :param output_style: libsass output style.
        :param browsers_list: Browserslist queries that decide which vendor
            prefixes are added. None disables prefixing.
        :param safelist: Class names, ids, or compiled patterns never purged.
        :param extractor: Custom content tokenizer for purging.
        :param minify: Whether the final CSS is minified.
        """
        super().__init__()
        self.include_paths = [str(p) for p in include_paths]
        self.output_style = output_style
        self.browsers_list = list(browsers_list) if browsers_list else None
        self.safelist = list(safelist)
        self.extractor = extractor
        self.minify = minify

    def compile(self, src_path: Path, dest_path: Path, source_map: bool) -> tuple[str, str | None]:
        """
        Compile @src_path with libsass, returning the CSS and, if requested,
        the source map. Paths in the map are relative to @dest_path.
        """
        import sass
        options: dict[str, t.Any] = {
            'filename': str(src_path),
            'output_style': self.output_style,
            'include_paths': self.include_paths,
        }
        if source_map:
            css, map_data = sass.compile(
                **options,
                source_map_filename=str(map_path_for(dest_path)),
                output_filename_hint=str(dest_path),
            )
            return css, map_data
        return sass.compile(**options), None

    async def prefix_and_write(self, result: PurgeResult):
        logger.info('Autoprefixing %s', result.file)
        prefixed = await asyncio.to_thread(
            prefix_stylesheet,
            result.css,
            self.browsers_list,
            filename=str(result.file),
            minify=self.minify,
        )
        for warning in dict.fromkeys([*result.warnings, *prefixed.warnings]):
            logger.warning(warning)

        css = SOURCE_MAP_COMMENT_RE.sub('', prefixed.css)
        if result.source_map:
            css = f'{css.rstrip()}\n/*# sourceMappingURL={result.source_map.name} */\n'
        return await self.write_text(result.file, css)

    async def __call__(self,
                       src_path: PathLike | None = None,
                       dest_path: PathLike | None = None,
                       source_map: bool = True,
                       purge_content: Sequence[PathLike | RawContent] | None = None,
                       css_files_to_purge: Sequence[PathLike] | None = None,
                       purge_source_map: bool = True):
        require(self.operation, src_path=src_path, dest_path=dest_path)
        src_path = Path(t.cast(PathLike, src_path))
        dest_path = Path(t.cast(PathLike, dest_path))

        logger.info('Rendering Sass to CSS from %s', src_path)
        css, map_data = self.compile(src_path, dest_path, source_map)

        writes = [self.write_text(dest_path, css)]
        if map_data is not None:
            writes.append(self.write_text(map_path_for(dest_path), map_data))
        await asyncio.gather(*writes)

        css_files = [Path(p) for p in css_files_to_purge or [dest_path]]
        if purge_content is None:
            logger.info('No purge content given; skipping purge for %s', dest_path)
            texts = await asyncio.gather(*(self.read_text(p) for p in css_files))
            results = [PurgeResult(p, text) for p, text in zip(css_files, texts)]
        else:
            logger.info('Purging unused CSS for %s', dest_path)
            results = await purge_stylesheets(
                purge_content,
                css_files,
                safelist=self.safelist,
                extractor=self.extractor,
                encoding=self.encoding,
            )

        if purge_source_map:
            for result in results:
                candidate = map_path_for(result.file)
                if await asyncio.to_thread(candidate.is_file):
                    result.source_map = candidate

        return list(await asyncio.gather(*(self.prefix_and_write(r) for r in results)))


async def compile_and_purge_styles(src_path: PathLike | None = None,
                                   dest_path: PathLike | None = None,
                                   source_map: bool = True,
                                   purge_content: Sequence[PathLike | RawContent] | None = None,
                                   css_files_to_purge: Sequence[PathLike] | None = None,
                                   purge_source_map: bool = True,
                                   *,
                                   include_paths: Sequence[PathLike] = (),
                                   output_style: OutputStyle = 'expanded',
                                   browsers_list: Sequence[str] | None = ('defaults',),
                                   safelist: Sequence[SafelistEntry] = (),
                                   extractor: Extractor | None = None,
                                   minify: bool = False):
    """
    Compile @src_path to @dest_path, purge rules unused by @purge_content from
    @css_files_to_purge (default: just @dest_path), and vendor-prefix the
    result. Returns the paths of the final style sheets.
    """
    stage = StyleCompileStage(include_paths, output_style, browsers_list, safelist, extractor, minify)
    return await stage(src_path, dest_path, source_map, purge_content, css_files_to_purge, purge_source_map)
