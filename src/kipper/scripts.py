"""
Script stages: Babel transpilation through dukpy and minification through
tdewolff-minify.
"""
from __future__ import annotations

import asyncio
import logging
import typing as t
from pathlib import Path

from .core import PathLike, Stage, require
from .dependencies import PipDependency

if t.TYPE_CHECKING:
    from collections.abc import Sequence


logger = logging.getLogger(__name__)

JS_MIMETYPE = 'application/javascript'


class TranspileOptions(t.TypedDict, total=False):
    """
    Options accepted by `transpile_script()`.
    """
    input_path: PathLike
    output_path: PathLike
    minify: bool
    presets: list[str]
    plugins: list[str]


class MinifyOptions(t.TypedDict, total=False):
    """
    Options accepted by `minify_script()`.
    """
    input_path: PathLike
    output_path: PathLike


def minify_js(code: str) -> str:
    import minify
    return minify.string(JS_MIMETYPE, code)


def _minify_dependency():
    return PipDependency('tdewolff-minify', check_name='minify')


class ScriptTranspileStage(Stage):
    """
    Stage transforming a script for older runtimes with Babel, optionally
    minifying the result. Source maps are not propagated.
    """
    operation = 'transpile_script'

    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('dukpy'),
            _minify_dependency(),
        }

    def __init__(self,
                 minify: bool = True,
                 presets: Sequence[str] = ('es2015',),
                 plugins: Sequence[str] = ()):
        super().__init__()
        self.minify = minify
        self.presets = list(presets)
        self.plugins = list(plugins)

    def transform(self, source: str, filename: str) -> str:
        import dukpy
        options: dict[str, t.Any] = {'presets': self.presets, 'filename': filename}
        if self.plugins:
            options['plugins'] = self.plugins
        code = dukpy.babel_compile(source, **options)['code']
        if self.minify:
            code = minify_js(code)
        return code

    async def __call__(self, input_path: PathLike | None = None, output_path: PathLike | None = None):
        require(self.operation, input_path=input_path, output_path=output_path)
        input_path = t.cast(PathLike, input_path)
        logger.info('Transpiling %s%s', input_path, ' and minifying' if self.minify else '')
        source = await self.read_text(input_path)
        code = await asyncio.to_thread(self.transform, source, Path(input_path).name)
        return await self.write_text(t.cast(PathLike, output_path), code)


class ScriptMinifyStage(Stage):
    """
    Stage minifying a script without transpiling it.
    """
    operation = 'minify_script'

    @classmethod
    def get_dependencies(cls):
        return {
            _minify_dependency(),
        }

    async def __call__(self, input_path: PathLike | None = None, output_path: PathLike | None = None):
        require(self.operation, input_path=input_path, output_path=output_path)
        input_path = t.cast(PathLike, input_path)
        logger.info('Minifying %s', Path(input_path).name)
        source = await self.read_text(input_path)
        code = await asyncio.to_thread(minify_js, source)
        return await self.write_text(t.cast(PathLike, output_path), code)


async def transpile_script(input_path: PathLike | None = None,
                           output_path: PathLike | None = None,
                           minify: bool = True,
                           *,
                           presets: Sequence[str] = ('es2015',),
                           plugins: Sequence[str] = ()):
    """
    Transpile @input_path with Babel using @presets and @plugins, minify it if
    @minify, and write it to @output_path. Returns the written path.
    """
    return await ScriptTranspileStage(minify, presets, plugins)(input_path, output_path)


async def minify_script(input_path: PathLike | None = None, output_path: PathLike | None = None):
    """
    Minify @input_path into @output_path. Returns the written path.
    """
    return await ScriptMinifyStage()(input_path, output_path)
