"""Console output for Quire.

Build progress, timings and failures are printed with click. A failure is
shown with its whole chain of causes, outermost first::

    Build failed
    Error:
        0: site/posts: failed to build entity in collection "posts"
        1: site/posts/hello.md: failed to render into "post" template
        2: UndefinedError: 'author' is undefined
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from .errors import error_chain

if TYPE_CHECKING:
    from .build import BuildResult


class Console:
    """Reports build progress to the terminal.

    Implements the BuildReporter protocol.
    """

    def __init__(self, err: bool = False):
        """Initialize the console.

        Args:
            err: Write progress to stderr instead of stdout.
        """
        self.err = err

    def building(self) -> None:
        click.echo("Building...", err=self.err)

    def built(self, result: BuildResult) -> None:
        if result.cancelled:
            click.echo(click.style("Build cancelled", fg="yellow"), err=self.err)
            return
        entities = sum(len(s) for s in result.collections.values())
        click.echo(
            click.style(f"Built in {result.elapsed_ms} ms", fg="green")
            + f" ({len(result.pages)} pages, {entities} entities,"
            f" {len(result.assets)} assets into {result.output_dir})",
            err=self.err,
        )

    def failure(self, exc: BaseException) -> None:
        click.echo(click.style("Build failed", fg="red", bold=True), err=True)
        click.echo("Error:", err=True)
        for i, text in enumerate(error_chain(exc)):
            click.echo(f"    {i}: " + click.style(text, fg="red"), err=True)

    def message(self, text: str) -> None:
        click.echo(text, err=self.err)

    def serving(self, address: str) -> None:
        click.echo(click.style(f"Serving @ {address}", fg="cyan"), err=self.err)
