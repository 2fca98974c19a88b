"""
Core classes shared by every kipper Stage: the Stage base class, option
validation, error types, and non-blocking file I/O.
"""
from __future__ import annotations

import abc
import asyncio
import logging
import os
import typing as t
from pathlib import Path

from .dependencies import Dependency

if t.TYPE_CHECKING:
    from collections.abc import Set


PathLike = t.Union[str, os.PathLike]

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """
    Exception raised when a required option is missing from a Stage call.
    """
    def __init__(self, field: str, operation: str):
        self.field = field
        self.operation = operation
        super().__init__(f'No {field} provided to {operation}')


class StageUnavailableException(Exception):
    """
    Exception raised when a Stage to be used is unavailable due to missing
    dependencies.
    """
    def __init__(self, stage: t.Type[Stage], *args: t.Any):
        self.stage = stage
        super().__init__(f'{stage.__name__} is unavailable due to missing dependencies', *args)


def require(operation: str, **fields: t.Any):
    """
    Raise `ConfigurationError` for the first of @fields that is None or empty.
    Runs before any I/O so a bad call never touches the file system.
    """
    for name, value in fields.items():
        if value is None or (isinstance(value, (str, list, tuple)) and not value):
            raise ConfigurationError(name, operation)


class Stage(abc.ABC):
    """
    Abstract base class for Stages, single adapters around one external
    library plus the file I/O around it.
    """
    encoding = 'utf-8'
    newline = '\n'
    #: Name used in log and error messages; set by subclasses.
    operation = ''
    _stage_registry: list[t.Type[Stage]] = []

    def __init_subclass__(cls, **kw):
        super().__init_subclass__(**kw)
        cls._stage_registry.append(cls)

    def __init__(self):
        if not self.is_available():
            raise StageUnavailableException(type(self))

    @classmethod
    def get_all_stages(cls):
        """
        Return a list of all currently known Stages.
        """
        return list(cls._stage_registry)

    @classmethod
    def get_available_stages(cls):
        """
        Return a list of all currently known Stages whose requirements are met.
        """
        return [s for s in cls._stage_registry if s.is_available()]

    @classmethod
    def is_available(cls) -> bool:
        """
        Return whether this Stage's requirements are installed.
        """
        return all(d.satisfied for d in cls.get_dependencies() if d.needed)

    @classmethod
    def get_dependencies(cls) -> Set[Dependency]:
        """
        Return the requirements for this Stage.
        """
        return set()

    async def read_text(self, path: PathLike) -> str:
        return await asyncio.to_thread(Path(path).read_text, self.encoding)

    async def write_text(self, path: PathLike, data: str) -> Path:
        """
        Write @data to @path from a worker thread, creating parent directories.
        """
        return await asyncio.to_thread(self._write_text_sync, Path(path), data)

    def _write_text_sync(self, path: Path, data: str):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data, self.encoding, newline=self.newline)
        logger.debug('Wrote %s', path)
        return path

    @abc.abstractmethod
    async def __call__(self, *args: t.Any, **kwargs: t.Any) -> t.Any:
        ...
