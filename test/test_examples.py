import pathlib

import pytest

from kipper.markup import format_markup
from kipper.test_harness import run_example


EXAMPLE_PATH = pathlib.Path(__file__).parent.parent / 'examples' / 'basic_site.py'


@pytest.fixture(scope='module')
def site(tmp_path_factory: pytest.TempPathFactory):
    output_dir = tmp_path_factory.mktemp('basic_site')
    run_example(EXAMPLE_PATH, output_dir)
    return output_dir


def test_example_page(site: pathlib.Path):
    html = (site / 'index.html').read_text()
    assert '<title>Acme</title>' in html
    assert 'Welcome to Acme, makers of fine anvils.' in html
    assert '<li>Drop-forged</li>' in html
    assert format_markup(html) == html


def test_example_styles(site: pathlib.Path):
    css = (site / 'css' / 'main.css').read_text()
    for kept in ('.site-header', '.intro', '.lead', '.button'):
        assert kept in css
    for dropped in ('.sidebar', '.button-ghost'):
        assert dropped not in css
    assert '-webkit-user-select' in css
    assert (site / 'css' / 'main.css.map').exists()


def test_example_script(site: pathlib.Path):
    code = (site / 'js' / 'app.js').read_text()
    assert '=>' not in code
    assert '`' not in code
    assert 'visitor' in code
