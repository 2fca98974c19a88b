from pathlib import Path

import pytest

from kipper.core import ConfigurationError
from kipper.markup import format_html, format_markup
from kipper.test_harness import run


DOCUMENT = (
    '<!DOCTYPE html><html><head><title>Acme</title></head>'
    '<body><div><p>Hello   <b>there</b>\n  friend</p><p>Second</p></div></body></html>'
)


def test_format_fragment():
    assert format_markup('<div><p>Hi <b>there</b></p><p>Second</p></div>') == (
        '<div>\n'
        '  <p>Hi <b>there</b></p>\n'
        '  <p>Second</p>\n'
        '</div>\n'
    )


def test_format_fragment_siblings():
    assert format_markup('<p>One</p><p>Two</p>') == '<p>One</p>\n<p>Two</p>\n'


def test_format_document():
    result = format_markup(DOCUMENT)
    assert result.startswith('<!DOCTYPE html>')
    assert '<html>\n  <head>\n    <title>Acme</title>\n  </head>\n' in result
    assert '    <div>\n      <p>Hello <b>there</b> friend</p>\n      <p>Second</p>\n    </div>\n' in result
    assert result.endswith('</html>\n')


def test_format_without_ocd_keeps_text_whitespace():
    result = format_markup(DOCUMENT, ocd=False)
    assert 'Hello   <b>there</b>\n  friend' in result


def test_format_custom_indent():
    assert format_markup('<ul><li>a</li></ul>', indent='\t') == '<ul>\n\t<li>a</li>\n</ul>\n'


def test_format_preserves_pre():
    result = format_markup('<div><pre>  a\n     b</pre></div>')
    assert '<pre>  a\n     b</pre>' in result


def test_format_leaves_inline_runs():
    assert format_markup('<p><span>a</span><span>b</span></p>') == '<p><span>a</span><span>b</span></p>\n'


@pytest.mark.parametrize('ocd', [True, False])
@pytest.mark.parametrize('text,expected', [
    ('<p>a&nbsp;&nbsp;b</p>', '<p>a\xa0\xa0b</p>'),
    ('<div>&nbsp;<p>x</p></div>', '<div>\xa0<p>x</p></div>'),
    ('<p>&amp; &lt;b&gt; &copy;</p>', '<p>&amp; &lt;b&gt; \xa9</p>'),
])
def test_format_keeps_character_references(text: str, expected: str, ocd: bool):
    result = format_markup(text, ocd=ocd).replace('&nbsp;', '\xa0').replace('&copy;', '\xa9')
    assert result.rstrip('\n') == expected


def test_format_keeps_nbsp_in_condensed_text():
    result = format_markup('<div><p>one \xa0 two</p><p>\xa0</p></div>').replace('&nbsp;', '\xa0')
    assert result == '<div>\n  <p>one \xa0 two</p>\n  <p>\xa0</p>\n</div>\n'


def test_format_empty():
    assert format_markup('   \n') == ''


@pytest.mark.parametrize('text', [
    DOCUMENT,
    '<div><p>Hi <b>there</b></p><!-- note --><p>Second</p></div>',
    '<section><pre>  keep\n this</pre><ul><li>x</li><li>y</li></ul></section>',
])
def test_format_idempotent(text: str):
    once = format_markup(text)
    assert format_markup(once) == once


def test_format_html(tmp_path: Path):
    source = tmp_path / 'page.html'
    source.write_text('<div><p>Hi</p></div>')
    target = tmp_path / 'out' / 'page.html'
    run(format_html(source, target))
    assert target.read_text() == '<div>\n  <p>Hi</p>\n</div>\n'


def test_format_html_in_place(tmp_path: Path):
    source = tmp_path / 'page.html'
    source.write_text('<ul><li>a</li></ul>')
    run(format_html(source, source))
    assert source.read_text() == '<ul>\n  <li>a</li>\n</ul>\n'


@pytest.mark.parametrize('missing', ['input_path', 'output_path'])
def test_format_html_requires_paths(tmp_path: Path, missing: str):
    source = tmp_path / 'page.html'
    source.write_text('<p>x</p>')
    kwargs = {'input_path': source, 'output_path': tmp_path / 'out.html'}
    kwargs[missing] = None
    with pytest.raises(ConfigurationError, match=f'No {missing} provided to format_html'):
        run(format_html(**kwargs))
    assert not (tmp_path / 'out.html').exists()


def test_format_html_missing_input(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        run(format_html(tmp_path / 'nope.html', tmp_path / 'out.html'))
