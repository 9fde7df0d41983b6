"""Site building functionality for Quire.

This module contains the top-level build driver. A build moves through these
states::

    IDLE -> VALIDATING_INPUT -> SYNCHRONIZING_OUTPUT -> LOADING_TEMPLATES
         -> BUILDING -> DONE | FAILED

Output clearing and template loading run to completion before anything is
rendered. The build then fans out one action per asset file, page, collection
and the site index, runs them concurrently on an asyncio loop and joins them.
The first action to fail fails the build; actions already started are left to
finish their own writes.

Key functions:
- build_site: Build the entire site.
- classify_input: Sort top-level input entries into pages and collections.
- load_config: Load optional settings from quire.yaml.
"""

from __future__ import annotations

import asyncio
import enum
import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from .collections import build_collection
from .content import EntitySummary
from .errors import InputMissingError, WriteError
from .output import ConfirmCallback, copy_file, sync_output_dir
from .pages import build_index, build_page
from .scanner import scan_dir, scan_files_recursive
from .templates import TemplateSet
from .utils import is_markdown

CONFIG_FILENAME = "quire.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "port": 3030,
    "ws_port": None,
    "debounce_ms": 250,
}

RESERVED_FILENAMES = frozenset({"README.md", "readme.md", "index.md"})
RESERVED_DIRNAMES = frozenset({".git", "assets", "templates"})

ASSETS_DIR = "assets"
TEMPLATES_DIR = "templates"


class BuildState(enum.Enum):
    IDLE = "idle"
    VALIDATING_INPUT = "validating_input"
    SYNCHRONIZING_OUTPUT = "synchronizing_output"
    LOADING_TEMPLATES = "loading_templates"
    BUILDING = "building"
    DONE = "done"
    FAILED = "failed"


@dataclass
class InputLayout:
    """Classified top-level entries of an input tree.

    Attributes:
        pages: Markdown filenames rendered as top-level pages.
        collections: Directory names built as collections.
        assets: Asset file paths relative to ``assets/``.
    """

    pages: list[str] = field(default_factory=list)
    collections: list[str] = field(default_factory=list)
    assets: list[PurePosixPath] = field(default_factory=list)


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        output_dir: Directory where the site was built.
        pages: Output filenames of top-level pages, including the index.
        collections: Summaries of each collection's members, newest first.
        assets: Copied asset paths, relative to ``assets/``.
        elapsed_ms: Time spent building, excluding any confirmation prompt.
        cancelled: True if the user declined to overwrite the output.
    """

    output_dir: Path
    pages: list[str] = field(default_factory=list)
    collections: dict[str, list[EntitySummary]] = field(default_factory=dict)
    assets: list[PurePosixPath] = field(default_factory=list)
    elapsed_ms: int = 0
    cancelled: bool = False


def load_config(input_dir: Path) -> dict[str, Any]:
    """Load optional settings from quire.yaml in the input root.

    Args:
        input_dir: Input tree root.

    Returns:
        Dictionary containing configuration values, with defaults applied.
    """
    config_path = input_dir / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)
    return config


def classify_input(input_dir: Path, output_dir: Path | None = None) -> InputLayout:
    """Sort the top-level entries of an input tree.

    Reserved names are skipped. Any other ``.md`` file is a page and any other
    directory is a collection. An output directory nested in the input tree is
    never treated as a collection.

    Args:
        input_dir: Input tree root.
        output_dir: Output directory of the build, if known.

    Returns:
        InputLayout of the tree.
    """
    layout = InputLayout()
    skip_dir = output_dir.resolve() if output_dir is not None else None
    for entry in scan_dir(input_dir):
        if entry.is_file:
            if is_markdown(entry.name) and entry.name not in RESERVED_FILENAMES:
                layout.pages.append(entry.name)
        elif entry.name not in RESERVED_DIRNAMES:
            if skip_dir is not None and entry.path.resolve() == skip_dir:
                continue
            layout.collections.append(entry.name)
    layout.assets = scan_files_recursive(input_dir / ASSETS_DIR)
    return layout


class SiteBuilder:
    """Builds one input tree into one output directory.

    A SiteBuilder holds no state between builds besides its paths; every call
    to ``build`` scans the input, loads templates and renders everything again.

    Attributes:
        input_dir: Input tree root.
        output_dir: Output directory.
        confirm: Optional callback asked before an existing output is cleared.
        state: Current BuildState.
    """

    def __init__(
        self,
        input_dir: Path,
        output_dir: Path,
        confirm: ConfirmCallback | None = None,
        today: date | None = None,
    ):
        """Initialize the builder.

        Args:
            input_dir: Input tree root.
            output_dir: Output directory.
            confirm: Optional callback asked before clearing existing output.
            today: Date for collection members without one. Defaults to the
                build date.
        """
        self.input_dir = Path(input_dir)
        self.output_dir = Path(output_dir)
        self.confirm = confirm
        self.today = today
        self.state = BuildState.IDLE

    def build(self) -> BuildResult:
        """Run a full build.

        Returns:
            BuildResult describing what was written.

        Raises:
            BuildError: On the first failure. The state becomes FAILED.
        """
        try:
            result = self._build()
        except BaseException:
            self.state = BuildState.FAILED
            raise
        self.state = BuildState.DONE
        return result

    def _build(self) -> BuildResult:
        self.state = BuildState.VALIDATING_INPUT
        if not self.input_dir.is_dir():
            raise InputMissingError(self.input_dir)

        self.state = BuildState.SYNCHRONIZING_OUTPUT
        if not sync_output_dir(self.output_dir, self.confirm):
            return BuildResult(output_dir=self.output_dir, cancelled=True)
        start = time.perf_counter()

        self.state = BuildState.LOADING_TEMPLATES
        templates = TemplateSet.load(self.input_dir / TEMPLATES_DIR)

        self.state = BuildState.BUILDING
        layout = classify_input(self.input_dir, self.output_dir)
        self._create_output_dirs(layout)
        result = asyncio.run(self._run_actions(layout, templates))
        result.elapsed_ms = int((time.perf_counter() - start) * 1000)
        return result

    def _create_output_dirs(self, layout: InputLayout) -> None:
        for name in (ASSETS_DIR, *layout.collections):
            target = self.output_dir / name
            try:
                target.mkdir(exist_ok=True)
            except OSError as exc:
                raise WriteError(target, exc) from exc

    async def _run_actions(self, layout: InputLayout, templates: TemplateSet) -> BuildResult:
        assets_in = self.input_dir / ASSETS_DIR
        assets_out = self.output_dir / ASSETS_DIR
        asset_actions = [
            asyncio.to_thread(copy_file, assets_in / rel, assets_out / rel)
            for rel in layout.assets
        ]
        page_actions = [
            build_page(name, self.input_dir, self.output_dir, templates) for name in layout.pages
        ]
        collection_actions = [
            build_collection(name, self.input_dir, self.output_dir, templates, self.today)
            for name in layout.collections
        ]
        index_action = build_index(self.input_dir, self.output_dir, templates)

        results = await asyncio.gather(
            *asset_actions, *page_actions, *collection_actions, index_action
        )

        page_start = len(asset_actions)
        collection_start = page_start + len(page_actions)
        pages = list(results[page_start:collection_start])
        summaries = results[collection_start : collection_start + len(collection_actions)]
        return BuildResult(
            output_dir=self.output_dir,
            pages=[results[-1], *pages],
            collections=dict(zip(layout.collections, summaries)),
            assets=list(layout.assets),
        )


def build_site(
    input_dir: Path,
    output_dir: Path,
    confirm: ConfirmCallback | None = None,
    today: date | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        input_dir: Input tree root.
        output_dir: Output directory.
        confirm: Optional callback asked before an existing output is cleared.
        today: Date for collection members without one.

    Returns:
        BuildResult of the build.
    """
    return SiteBuilder(input_dir, output_dir, confirm=confirm, today=today).build()
