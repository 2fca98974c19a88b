"""
Template Renderer stage: render a Jinja template against a data context and
global variables, then write formatted HTML.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import typing as t
from pathlib import Path
from types import MappingProxyType

from .core import PathLike, Stage, require
from .dependencies import PipDependency
from .markup import format_markup

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from jinja2 import Environment


logger = logging.getLogger(__name__)

GlobalsInput = t.Union['Mapping[str, t.Any]', 'Iterable[tuple[str, t.Any]]']


class TemplateOptions(t.TypedDict, total=False):
    """
    Options accepted by `render_template()`.
    """
    input_path: PathLike
    output_path: PathLike
    search_paths: list[PathLike]
    globals: dict[str, t.Any]
    data: dict[str, t.Any]


def _freeze(items: GlobalsInput | None) -> Mapping[str, t.Any]:
    # dict() keeps the last value for a repeated name.
    return MappingProxyType(dict(items or {}))


@dataclasses.dataclass(frozen=True)
class RenderContext:
    """
    Read-only variables for one render call. `globals` are visible to every
    template in the render, including imported and included ones; `data` is
    passed to the top-level template only.
    """
    globals: Mapping[str, t.Any] = dataclasses.field(default_factory=lambda: MappingProxyType({}))
    data: Mapping[str, t.Any] = dataclasses.field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, globals_: GlobalsInput | None = None, data: Mapping[str, t.Any] | None = None):
        return cls(_freeze(globals_), _freeze(data))

    def with_global(self, name: str, value: t.Any):
        """
        Return a new context with @name set to @value, replacing any earlier
        value for @name.
        """
        return dataclasses.replace(self, globals=_freeze({**self.globals, name: value}))


class TemplateRenderStage(Stage):
    """
    Stage rendering a Jinja template and passing the result through the
    markup formatter. A new `Environment` is built for every call, so no
    state carries over between renders.
    """
    operation = 'render_template'

    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('jinja2'),
            PipDependency('lxml'),
        }

    def __init__(self, ocd: bool = True, env_options: dict[str, t.Any] | None = None):
        """
        :param ocd: Whether to format rendered output in strict mode.
        :param env_options: Extra keyword arguments for the Jinja
            `Environment`, such as `trim_blocks` or `extensions`.
        """
        super().__init__()
        self.ocd = ocd
        self.env_options = env_options or {}

    def build_environment(self, search_paths: Sequence[PathLike], context: RenderContext) -> Environment:
        from jinja2 import Environment, FileSystemLoader, select_autoescape
        options = {'autoescape': select_autoescape()} | self.env_options
        env = Environment(
            loader=FileSystemLoader([Path(p) for p in search_paths]),
            enable_async=True,
            **options
        )
        for name, value in context.globals.items():
            env.globals[name] = value
        return env

    async def __call__(self,
                       input_path: PathLike | None = None,
                       output_path: PathLike | None = None,
                       search_paths: Sequence[PathLike] | None = None,
                       context: RenderContext | None = None):
        require(self.operation, input_path=input_path, output_path=output_path, search_paths=search_paths)
        input_path = t.cast(PathLike, input_path)
        output_path = t.cast(PathLike, output_path)
        search_paths = t.cast('Sequence[PathLike]', search_paths)
        context = context or RenderContext()

        logger.info('Compiling Jinja template %s', input_path)
        env = self.build_environment(search_paths, context)
        template = env.get_template(Path(input_path).as_posix())
        rendered = await template.render_async(**context.data)

        logger.info('Beautifying %s from Jinja', output_path)
        formatted = await asyncio.to_thread(format_markup, rendered, self.ocd)
        return await self.write_text(output_path, formatted)


async def render_template(input_path: PathLike | None = None,
                          output_path: PathLike | None = None,
                          search_paths: Sequence[PathLike] | None = None,
                          globals: GlobalsInput | None = None,  # pylint: disable=redefined-builtin
                          data: Mapping[str, t.Any] | None = None,
                          *,
                          context: RenderContext | None = None,
                          ocd: bool = True):
    """
    Render the template @input_path, found in @search_paths, and write the
    formatted markup to @output_path.

    :param globals: A mapping or a sequence of `(name, value)` pairs made
        global for the render. Later pairs replace earlier ones of the same
        name.
    :param data: Variables for the top-level template.
    :param context: A prepared `RenderContext`; @globals and @data are layered
        on top of it.
    :returns: The written path.
    """
    base = context or RenderContext()
    merged = RenderContext(
        _freeze([*base.globals.items(), *_freeze(globals).items()]),
        _freeze({**base.data, **(data or {})}),
    )
    return await TemplateRenderStage(ocd)(input_path, output_path, search_paths, merged)
