"""Error types for Quire.

Every failure raised while building carries the path it is attributed to, so
that the console can report where a build went wrong. Errors are always raised
``from`` the underlying exception; the reporter walks ``__cause__`` to print the
whole chain.

Key classes:
- QuireError: Base class for all Quire errors.
- BuildError: A failure attributed to a source or destination path.
- WatchError: The file watcher itself stopped working.
"""

from __future__ import annotations

from pathlib import Path


class QuireError(Exception):
    """Base class for all errors raised by Quire."""


class BuildError(QuireError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file or directory that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught, if any.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = Path(source_path)
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class InputMissingError(BuildError):
    """The input root does not exist."""

    def __init__(self, source_path: Path):
        super().__init__(source_path, "input directory does not exist")


class OutputIsFileError(BuildError):
    """The output path exists and is a regular file."""

    def __init__(self, source_path: Path):
        super().__init__(source_path, "output path is already a file")


class ReadError(BuildError):
    """A source file or directory could not be read."""

    def __init__(self, source_path: Path, original_error: Exception | None = None):
        super().__init__(source_path, "failed to read", original_error)


class WriteError(BuildError):
    """An output file or directory could not be created."""

    def __init__(self, source_path: Path, original_error: Exception | None = None):
        super().__init__(source_path, "failed to write", original_error)


class TemplateNotFoundError(BuildError):
    """A render was requested for a template name that is not registered."""

    def __init__(self, source_path: Path, template_name: str):
        self.template_name = template_name
        super().__init__(source_path, f'no template named "{template_name}"')


class TemplateLoadError(BuildError):
    """A template file could not be compiled."""


class RenderError(BuildError):
    """Rendering a source file into a template failed."""

    def __init__(
        self,
        source_path: Path,
        template_name: str,
        original_error: Exception | None = None,
    ):
        self.template_name = template_name
        super().__init__(
            source_path,
            f'failed to render into "{template_name}" template',
            original_error,
        )


class CollectionBuildError(BuildError):
    """A member of a collection failed, so the whole collection failed."""

    def __init__(
        self,
        source_path: Path,
        collection: str,
        original_error: Exception | None = None,
    ):
        self.collection = collection
        super().__init__(
            source_path,
            f'failed to build entity in collection "{collection}"',
            original_error,
        )


class WatchError(QuireError):
    """The file system watcher failed; watching cannot continue."""


def error_chain(exc: BaseException) -> list[str]:
    """Return the messages of an exception and all of its causes.

    The outermost context comes first and the root cause last.

    Args:
        exc: The exception to unwind.

    Returns:
        List of human-readable messages.
    """
    chain: list[str] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = str(current) or type(current).__name__
        if not isinstance(current, QuireError):
            text = f"{type(current).__name__}: {text}"
        chain.append(text)
        current = current.__cause__
    return chain
