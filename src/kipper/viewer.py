"""
Open a built file in a named desktop application.
"""
from __future__ import annotations

import asyncio
import logging
import subprocess
import sys
import threading

from .core import PathLike, require
from .dependencies import ExecDependency


logger = logging.getLogger(__name__)

# Other platforms execute the application directly.
LAUNCHER_DEPENDENCY = (
    ExecDependency('open', 'included with macOS', platforms=('darwin',))
    | ExecDependency('cmd', 'included with Windows', platforms=('win32',))
)


class ViewerLaunchError(RuntimeError):
    """
    Exception raised when the platform launcher reports a failure.
    """
    def __init__(self, command: list[str], returncode: int):
        self.command = command
        self.returncode = returncode
        super().__init__(f'{" ".join(command)} exited with status {returncode}')


def launch_command(app: str, path: str, platform: str | None = None) -> tuple[list[str], bool]:
    """
    Return the command opening @path in @app on @platform, and whether that
    command is a launcher which exits once the application has started.
    """
    platform = platform or sys.platform
    if platform == 'darwin':
        return ['open', '-a', app, path], True
    if platform.startswith('win'):
        return ['cmd', '/c', 'start', '', app, path], True
    return [app, path], False


def _spawn_detached(command: list[str]) -> subprocess.Popen:
    process = subprocess.Popen(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        close_fds=True,
        start_new_session=True,
    )
    # Reaped in the background; the application outlives this call.
    threading.Thread(target=process.wait, name=f'reap-{process.pid}', daemon=True).start()
    return process


async def open_in_app(app: str | None = None, path: PathLike | None = None):
    """
    Open @path in the application @app without waiting for it to close.

    Launcher output is logged. A command that cannot be spawned, or a launcher
    that exits non-zero, raises; errors from the application itself do not.
    """
    require('open_in_app', app=app, path=path)
    command, is_launcher = launch_command(str(app), str(path))
    logger.info('Opening %s in %s', path, app)

    if not is_launcher:
        return await asyncio.to_thread(_spawn_detached, command)

    process = await asyncio.create_subprocess_exec(
        *command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    for output in (stdout, stderr):
        if output:
            logger.info(output.decode(errors='replace').rstrip())
    if process.returncode:
        raise ViewerLaunchError(command, process.returncode)
    return process
