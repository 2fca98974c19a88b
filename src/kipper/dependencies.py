"""
Availability checks for the libraries and executables each Stage wraps.
"""
from __future__ import annotations

import abc
import importlib
import shutil
import sys


class Dependency(abc.ABC):
    """
    A base class for checkable stage requirements, composable with `|` and `&`.
    """
    @property
    @abc.abstractmethod
    def satisfied(self) -> bool:
        """
        Whether this requirement is installed.
        """

    @property
    def needed(self) -> bool:
        """
        Whether this requirement applies on the running platform.
        """
        return True

    @property
    @abc.abstractmethod
    def install_hint(self) -> str:
        """
        A short hint on how to install this requirement.
        """

    def __repr__(self):
        return f'{self.__class__.__name__}({self}, needed={self.needed}, satisfied={self.satisfied})'

    def __or__(self, other: Dependency):
        return _OrDependency(self, other)

    def __and__(self, other: Dependency):
        return _AndDependency(self, other)


class _OrDependency(Dependency):
    def __init__(self, left: Dependency, right: Dependency):
        self.left = left
        self.right = right

    def __repr__(self):
        return f'({self.left!r} | {self.right!r})'

    def __str__(self):
        return f'({self.left} | {self.right})'

    def _candidates(self):
        return [d for d in (self.left, self.right) if d.needed]

    @property
    def satisfied(self):
        """
        Whether any side needed on this platform is installed.
        """
        return any(d.satisfied for d in self._candidates())

    @property
    def needed(self):
        return self.left.needed or self.right.needed

    @property
    def install_hint(self):
        """
        The hint of the first side needed on this platform.
        """
        candidates = self._candidates()
        return candidates[0].install_hint if candidates else ''


class _AndDependency(Dependency):
    def __init__(self, left: Dependency, right: Dependency):
        self.left = left
        self.right = right

    def __repr__(self):
        return f'({self.left!r} & {self.right!r})'

    def __str__(self):
        return f'({self.left} & {self.right})'

    @property
    def satisfied(self):
        """
        Whether every side needed on this platform is installed.
        """
        return all(d.satisfied for d in (self.left, self.right) if d.needed)

    @property
    def needed(self):
        return self.left.needed or self.right.needed

    @property
    def install_hint(self):
        return '; '.join(d.install_hint for d in (self.left, self.right) if d.needed and not d.satisfied)


class PipDependency(Dependency):
    """
    A requirement on a pip-installable distribution. @check_name is the import
    name when it differs from the distribution name.
    """
    def __init__(self, name: str, check_name: str | None = None):
        self.name = name
        self.check_name = check_name or name

    def __str__(self):
        return self.name

    @property
    def satisfied(self):
        try:
            importlib.import_module(self.check_name)
        except ImportError:
            return False
        return True

    @property
    def install_hint(self):
        return f'pip install {self.name}'


class ExecDependency(Dependency):
    """
    A requirement on an executable found on PATH, optionally limited to
    certain `sys.platform` values.
    """
    def __init__(self,
                 name: str,
                 source: str | None = None,
                 platforms: tuple[str, ...] | None = None):
        self.name = name
        self.source = source or name
        self.platforms = platforms

    def __str__(self):
        return self.name

    @property
    def satisfied(self):
        return bool(shutil.which(self.name))

    @property
    def needed(self):
        return self.platforms is None or sys.platform in self.platforms

    @property
    def install_hint(self):
        return self.source
