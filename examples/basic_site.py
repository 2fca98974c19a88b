import asyncio
from pathlib import Path

from kipper import compile_and_purge_styles, render_template, transpile_script
from kipper.pretty_utils import configure_logging


INPUT_DIR = Path(__file__).parent / 'basic_site'
GLOBALS = {
    'siteName': 'Acme',
}
BROWSERS = ['safari 10', 'firefox 60']


async def build(input_dir: Path, output_dir: Path):
    # The page has to exist before styles are purged against it.
    await render_template(
        'home.html.j2',
        output_dir / 'index.html',
        [input_dir / 'templates'],
        globals=GLOBALS,
        data={
            'tagline': 'makers of fine anvils',
            'features': ['Drop-forged', 'Cartoon-tested', 'Next-day delivery'],
        },
    )
    await asyncio.gather(
        compile_and_purge_styles(
            input_dir / 'styles' / 'main.scss',
            output_dir / 'css' / 'main.css',
            purge_content=[output_dir / 'index.html', str(input_dir / 'scripts' / '*.js')],
            browsers_list=BROWSERS,
        ),
        transpile_script(
            input_dir / 'scripts' / 'app.js',
            output_dir / 'js' / 'app.js',
        ),
    )


if __name__ == '__main__':
    configure_logging()
    asyncio.run(build(INPUT_DIR, Path('output/basic_site')))
