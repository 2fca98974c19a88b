"""
kipper's command line interface: one subcommand per stage, plus a dependency
audit.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
import typing as t
from pathlib import Path

from .core import Stage, StageUnavailableException
from .markup import format_html
from .pretty_utils import configure_logging, print_with_style
from .purge import RawContent
from .scripts import minify_script, transpile_script
from .styles import compile_and_purge_styles
from .templates import render_template
from .viewer import LAUNCHER_DEPENDENCY, open_in_app

if t.TYPE_CHECKING:
    from collections.abc import Coroutine


def _global_pair(value: str):
    name, sep, raw = value.partition('=')
    if not sep or not name:
        raise argparse.ArgumentTypeError(f'expected NAME=VALUE, got {value!r}')
    return name, raw


def _purge_content(value: str):
    if value.startswith('raw:'):
        return RawContent(value[4:])
    return value


def pprint_stage(stage: t.Type[Stage]):
    """
    Prettily display dependency information for the given Stage class.
    """
    missing = [
        str(d) for d in stage.get_dependencies()
        if d.needed and not d.satisfied
    ]
    if missing:
        text = ', '.join(missing)
        print_with_style(f'✗ {stage.__name__} (missing: {text})', style='red')
    else:
        print_with_style(f'✓ {stage.__name__}', style='green')


def pprint_missing_deps(stage: t.Type[Stage]):
    """
    Prettily display an error for the given Stage with missing dependencies.
    """
    print_with_style(
        f'{stage.__name__} is unavailable due to missing dependencies!',
        file='stderr',
        style='red'
    )
    for dep in stage.get_dependencies():
        if not dep.needed:
            continue
        if dep.satisfied:
            print_with_style(f'✓ {dep}', style='green')
        else:
            print_with_style(f'✗ {dep}: {dep.install_hint}', style='red')


def audit():
    stages = Stage.get_all_stages()
    available = Stage.get_available_stages()
    print(f'Available stages ({len(available)}/{len(stages)})')
    for stage in stages:
        pprint_stage(stage)
    dep = LAUNCHER_DEPENDENCY
    if not dep.needed:
        print(f'Viewer launcher: none needed on {sys.platform}')
    elif dep.satisfied:
        print_with_style(f'Viewer launcher: ✓ {dep}', style='green')
    else:
        print_with_style(f'Viewer launcher: ✗ {dep}: {dep.install_hint}', style='red')


def build_parser():
    parser = argparse.ArgumentParser(prog='kipper', description='Run a front-end asset pipeline stage.')
    parser.add_argument('-v', '--verbose',
                        help='show debug output',
                        action='count',
                        default=0)
    parser.add_argument('--audit-stages',
                        help='show which stages have their libraries installed, instead of running one',
                        action='store_true')
    subparsers = parser.add_subparsers(dest='command')

    render = subparsers.add_parser('render', help='render a Jinja template to formatted HTML')
    render.add_argument('input_path', help='template name, relative to the template directories')
    render.add_argument('output_path', type=Path)
    render.add_argument('-t', '--templates',
                        help='template directory; may be repeated',
                        type=Path,
                        action='append',
                        dest='search_paths',
                        required=True)
    render.add_argument('-g', '--global',
                        help='global variable as NAME=VALUE; may be repeated, last wins',
                        type=_global_pair,
                        action='append',
                        dest='globals',
                        default=[])
    render.add_argument('-d', '--data',
                        help='JSON file with template variables',
                        type=Path)

    styles = subparsers.add_parser('styles', help='compile Sass, purge unused rules, and add vendor prefixes')
    styles.add_argument('src_path', type=Path)
    styles.add_argument('dest_path', type=Path)
    styles.add_argument('--source-map',
                        help='write a source map beside the compiled CSS',
                        action=argparse.BooleanOptionalAction,
                        default=True)
    styles.add_argument('-c', '--content',
                        help='path, glob, or raw:<text> scanned for used selectors; may be repeated',
                        type=_purge_content,
                        action='append',
                        dest='purge_content')
    styles.add_argument('--purge',
                        help='style sheet to purge; may be repeated; defaults to DEST_PATH',
                        type=Path,
                        action='append',
                        dest='css_files_to_purge')
    styles.add_argument('--purge-source-map',
                        help='keep the source map reference on purged files',
                        action=argparse.BooleanOptionalAction,
                        default=True)
    styles.add_argument('-I', '--include',
                        help='Sass include directory; may be repeated',
                        type=Path,
                        action='append',
                        dest='include_paths',
                        default=[])
    styles.add_argument('--style',
                        help='Sass output style',
                        choices=['nested', 'expanded', 'compact', 'compressed'],
                        dest='output_style',
                        default='expanded')
    styles.add_argument('-b', '--browsers',
                        help='browserslist query for prefixing; may be repeated',
                        action='append',
                        dest='browsers_list')
    styles.add_argument('-s', '--safelist',
                        help='class or id never purged; may be repeated',
                        action='append',
                        default=[])
    styles.add_argument('--minify',
                        help='minify the final CSS',
                        action='store_true')

    transpile = subparsers.add_parser('transpile', help='transpile a script with Babel')
    transpile.add_argument('input_path', type=Path)
    transpile.add_argument('output_path', type=Path)
    transpile.add_argument('--minify',
                           help='minify the transpiled script',
                           action=argparse.BooleanOptionalAction,
                           default=True)
    transpile.add_argument('--preset',
                           help='Babel preset; may be repeated',
                           action='append',
                           dest='presets')
    transpile.add_argument('--plugin',
                           help='Babel plugin; may be repeated',
                           action='append',
                           dest='plugins',
                           default=[])

    minify = subparsers.add_parser('minify', help='minify a script')
    minify.add_argument('input_path', type=Path)
    minify.add_argument('output_path', type=Path)

    fmt = subparsers.add_parser('format', help='reformat an HTML file')
    fmt.add_argument('input_path', type=Path)
    fmt.add_argument('output_path', type=Path)
    fmt.add_argument('--ocd',
                     help='condense whitespace and normalize the final newline',
                     action=argparse.BooleanOptionalAction,
                     default=True)
    fmt.add_argument('--indent',
                     help='number of spaces per level',
                     type=int,
                     default=2)

    viewer = subparsers.add_parser('open', help='open a file in a desktop application')
    viewer.add_argument('app')
    viewer.add_argument('path', type=Path)

    return parser


def make_call(args: argparse.Namespace) -> Coroutine[t.Any, t.Any, t.Any]:
    """
    Turn parsed arguments into the stage coroutine they describe.
    """
    if args.command == 'render':
        data = json.loads(args.data.read_text('utf-8')) if args.data else None
        return render_template(args.input_path, args.output_path, args.search_paths, args.globals, data)
    if args.command == 'styles':
        return compile_and_purge_styles(
            args.src_path,
            args.dest_path,
            args.source_map,
            args.purge_content,
            args.css_files_to_purge,
            args.purge_source_map,
            include_paths=args.include_paths,
            output_style=args.output_style,
            browsers_list=args.browsers_list or ('defaults',),
            safelist=args.safelist,
            minify=args.minify,
        )
    if args.command == 'transpile':
        return transpile_script(
            args.input_path,
            args.output_path,
            args.minify,
            presets=args.presets or ('es2015',),
            plugins=args.plugins,
        )
    if args.command == 'minify':
        return minify_script(args.input_path, args.output_path)
    if args.command == 'format':
        return format_html(args.input_path, args.output_path, ocd=args.ocd, indent=' ' * args.indent)
    if args.command == 'open':
        return open_in_app(args.app, args.path)
    raise ValueError(f'Unknown command {args.command!r}')


def main(arguments: list[str] | None = None):
    """
    kipper main function. Runs the stage named on the command line.
    """
    parser = build_parser()
    args = parser.parse_args(arguments)

    if args.audit_stages:
        audit()
        return
    if not args.command:
        parser.error('a command is required unless --audit-stages is given')

    configure_logging(args.verbose)
    try:
        asyncio.run(make_call(args))
    except StageUnavailableException as e:
        pprint_missing_deps(e.stage)
        sys.exit(1)
