import json
import logging
from pathlib import Path

import pytest
import sass

from kipper.core import ConfigurationError
from kipper.purge import RawContent
from kipper.styles import compile_and_purge_styles, map_path_for
from kipper.test_harness import run, write_tree


@pytest.fixture
def sass_dir(tmp_path: Path):
    return write_tree(tmp_path / 'sass', {
        '_extras.scss': '.unused { color: blue; }\n',
        'main.scss': (
            "$accent: red;\n"
            "@import 'extras';\n"
            ".used { color: $accent; user-select: none; }\n"
        ),
        'broken.scss': '.a { color: $nowhere; }\n',
    })


def test_compile_purge_and_prefix(tmp_path: Path, sass_dir: Path):
    dest = tmp_path / 'out' / 'main.css'
    written = run(compile_and_purge_styles(
        sass_dir / 'main.scss',
        dest,
        purge_content=[RawContent('<p class="used">hi</p>')],
        browsers_list=['safari 10'],
    ))
    assert written == [dest]
    css = dest.read_text()
    assert '.used' in css
    assert '.unused' not in css
    assert '-webkit-user-select' in css
    assert css.count('sourceMappingURL') == 1
    assert css.rstrip().endswith('/*# sourceMappingURL=main.css.map */')

    source_map = json.loads(map_path_for(dest).read_text())
    assert source_map['version'] == 3
    assert any(s.endswith('main.scss') for s in source_map['sources'])


def test_compile_without_source_maps(tmp_path: Path, sass_dir: Path):
    dest = tmp_path / 'main.css'
    run(compile_and_purge_styles(
        sass_dir / 'main.scss',
        dest,
        source_map=False,
        purge_content=[RawContent('used')],
    ))
    assert not map_path_for(dest).exists()
    assert 'sourceMappingURL' not in dest.read_text()


def test_purge_source_map_disabled(tmp_path: Path, sass_dir: Path):
    dest = tmp_path / 'main.css'
    run(compile_and_purge_styles(
        sass_dir / 'main.scss',
        dest,
        purge_content=[RawContent('used')],
        purge_source_map=False,
    ))
    assert map_path_for(dest).exists()
    assert 'sourceMappingURL' not in dest.read_text()


def test_compile_without_purge_content(tmp_path: Path, sass_dir: Path):
    dest = tmp_path / 'main.css'
    run(compile_and_purge_styles(sass_dir / 'main.scss', dest, source_map=False))
    css = dest.read_text()
    assert '.used' in css
    assert '.unused' in css


def test_purge_extra_files(tmp_path: Path, sass_dir: Path):
    dest = tmp_path / 'main.css'
    vendor = write_tree(tmp_path, {'vendor.css': '.modal{color:red} .used{color:red}'}) / 'vendor.css'
    written = run(compile_and_purge_styles(
        sass_dir / 'main.scss',
        dest,
        source_map=False,
        purge_content=[RawContent('<div class="used"></div>')],
        css_files_to_purge=[dest, vendor],
    ))
    assert written == [dest, vendor]
    assert '.modal' not in vendor.read_text()
    assert '.unused' not in dest.read_text()


def test_compile_error_aborts(tmp_path: Path, sass_dir: Path):
    dest = tmp_path / 'broken.css'
    with pytest.raises(sass.CompileError):
        run(compile_and_purge_styles(sass_dir / 'broken.scss', dest, purge_content=[RawContent('a')]))
    assert not dest.exists()
    assert not map_path_for(dest).exists()


@pytest.mark.parametrize('missing', ['src_path', 'dest_path'])
def test_styles_require_paths(tmp_path: Path, sass_dir: Path, missing: str):
    options = {'src_path': sass_dir / 'main.scss', 'dest_path': tmp_path / 'main.css'}
    options[missing] = None
    with pytest.raises(ConfigurationError, match=f'No {missing} provided to compile_and_purge_styles'):
        run(compile_and_purge_styles(**options))
    assert not (tmp_path / 'main.css').exists()


def test_purge_logs_parse_warnings(tmp_path: Path, sass_dir: Path, caplog: pytest.LogCaptureFixture):
    dest = tmp_path / 'main.css'
    vendor = write_tree(tmp_path, {'vendor.css': '.a { color: red; } .b'}) / 'vendor.css'
    caplog.set_level(logging.WARNING, logger='kipper')
    written = run(compile_and_purge_styles(
        sass_dir / 'main.scss',
        dest,
        source_map=False,
        purge_content=[RawContent('<p class="used a"></p>')],
        css_files_to_purge=[dest, vendor],
    ))
    assert written == [dest, vendor]
    assert '.a' in vendor.read_text()
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert warnings[0].startswith(f'{vendor}:1:')
