"""Protocol definitions for Quire.

The watch loop talks to two collaborators it does not own: something that
reports progress to the operator, and something that tells browsers to
reload. These protocols describe what the loop calls on them.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .build import BuildResult


@runtime_checkable
class ReloadNotifier(Protocol):
    """Receives one signal after every successful rebuild."""

    @abstractmethod
    def reload(self) -> None:
        """Tell connected clients that the output changed."""
        ...


@runtime_checkable
class BuildReporter(Protocol):
    """Shows build progress and failures to the operator."""

    @abstractmethod
    def building(self) -> None:
        """Report that a build has started."""
        ...

    @abstractmethod
    def built(self, result: BuildResult) -> None:
        """Report a finished build.

        Args:
            result: Result of the build.
        """
        ...

    @abstractmethod
    def failure(self, exc: BaseException) -> None:
        """Report a failed build with its chain of causes.

        Args:
            exc: The error that failed the build.
        """
        ...

    @abstractmethod
    def message(self, text: str) -> None:
        """Report a plain message."""
        ...
