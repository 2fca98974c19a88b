"""
Helpers shared by the test suite and the example pipelines.
"""
import asyncio
import pathlib
import runpy
import typing as t


T = t.TypeVar('T')


def run(coro: t.Coroutine[t.Any, t.Any, T]) -> T:
    """
    Run a stage coroutine to completion on a fresh event loop.
    """
    return asyncio.run(coro)


def write_tree(root: pathlib.Path, files: dict[str, str]):
    """
    Write each of @files, a mapping of relative path to text, under @root.
    """
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, 'utf-8')
    return root


def load_example(path: pathlib.Path):
    """
    Execute the example script at @path and return its globals.
    """
    return runpy.run_path(str(path))


def run_example(path: pathlib.Path, output_dir: pathlib.Path):
    """
    Run the `build()` coroutine of the example pipeline at @path, writing into
    @output_dir, and return the example's namespace.
    """
    module_items = load_example(path)
    input_dir: pathlib.Path = module_items['INPUT_DIR']
    run(module_items['build'](input_dir, output_dir))
    return module_items
