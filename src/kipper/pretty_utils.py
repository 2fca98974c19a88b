"""
Internal utilities for console output and logging setup.
"""
import logging

import rich.console
import rich.logging


_consoles = {
    'stdout': rich.console.Console(),
    'stderr': rich.console.Console(stderr=True),
}


def print_with_style(*args, sep=' ', end='\n', file: str = 'stdout', style=None):
    """
    print() replacement which supports rich console styles.
    """
    _consoles[file].print(*args, sep=sep, end=end, style=style)


def configure_logging(verbosity: int = 0):
    """
    Route kipper's log records to stderr through rich. @verbosity 0 shows
    progress messages; 1 or more adds debug output.
    """
    handler = rich.logging.RichHandler(
        console=_consoles['stderr'],
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter('%(message)s'))
    root = logging.getLogger('kipper')
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbosity > 0 else logging.INFO)
    return root
