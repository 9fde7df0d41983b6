"""Watch loop for Quire.

Watches the input tree with watchdog and rebuilds the whole site when it
changes. Bursts of events (an editor saving several files, a ``git checkout``)
are coalesced by a debouncer: every event restarts a short timer, and only
when the timer runs out is a rebuild requested.

Rebuilds run one at a time on the thread that called ``WatchLoop.run``. A
failed rebuild is reported and watching continues; a successful one signals
the reload notifier. Only a failure of the watcher itself ends the loop.

Key classes:
- Debouncer: Coalesces rapid triggers into one callback.
- WatchLoop: Runs the initial build, then rebuilds on change.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .build import BuildResult, build_site
from .console import Console
from .errors import WatchError
from .protocols import BuildReporter, ReloadNotifier

DEFAULT_DEBOUNCE_SECONDS = 0.25

# Reading the input during a build produces these on some platforms.
IGNORED_EVENT_TYPES = frozenset({"opened", "closed", "closed_no_write"})


class Debouncer:
    """Calls a function once a quiet period follows the last trigger.

    Attributes:
        window: Quiet period in seconds.
        callback: Function called when the window elapses.
    """

    def __init__(self, window: float, callback: Callable[[], None]):
        self.window = window
        self.callback = callback
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def trigger(self) -> None:
        """Start the window, or restart it if already running."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.window, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        """Drop a pending call, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        self.callback()


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, debouncer: Debouncer, output_dir: Path):
        super().__init__()
        self.debouncer = debouncer
        self.output_dir = output_dir.resolve()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        path = Path(os.fsdecode(event.src_path)).resolve()
        # Skip changes written by the build itself.
        if path == self.output_dir or self.output_dir in path.parents:
            return
        self.debouncer.trigger()


class WatchLoop:
    """Rebuilds a site whenever its input tree changes.

    Attributes:
        input_dir: Input tree root, watched recursively.
        output_dir: Output directory of every build.
        reloader: Notified after each successful rebuild.
        reporter: Receives progress and failures.
        debouncer: Coalesces file system events.
    """

    def __init__(
        self,
        input_dir: Path,
        output_dir: Path,
        reloader: ReloadNotifier | None = None,
        reporter: BuildReporter | None = None,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        observer_factory: Callable[[], Observer] = Observer,
        poll_interval: float = 0.5,
    ):
        """Initialize the watch loop.

        Args:
            input_dir: Input tree root.
            output_dir: Output directory.
            reloader: Optional reload notifier.
            reporter: Optional reporter; defaults to the console.
            debounce: Debounce window in seconds.
            observer_factory: Creates the watchdog observer.
            poll_interval: How often the loop checks that the observer lives.
        """
        self.input_dir = Path(input_dir)
        self.output_dir = Path(output_dir)
        self.reloader = reloader
        self.reporter = reporter or Console()
        self.poll_interval = poll_interval
        self._observer_factory = observer_factory
        self._rebuild_requested = threading.Event()
        self._stopped = threading.Event()
        self.debouncer = Debouncer(debounce, self._rebuild_requested.set)

    def run(self) -> None:
        """Build once, then rebuild on every change until stopped.

        Raises:
            WatchError: If the file system watcher fails.
        """
        self.rebuild()
        observer = self._start_observer()
        try:
            while not self._stopped.is_set():
                if self._rebuild_requested.wait(self.poll_interval):
                    self._rebuild_requested.clear()
                    if not self._stopped.is_set():
                        self.rebuild()
                if not observer.is_alive() and not self._stopped.is_set():
                    raise WatchError(f"file watcher for {self.input_dir} stopped unexpectedly")
        finally:
            self.debouncer.cancel()
            observer.stop()
            if observer.is_alive():
                observer.join(timeout=5)

    def stop(self) -> None:
        """Ask the loop to return after the current rebuild."""
        self._stopped.set()
        self._rebuild_requested.set()

    def rebuild(self) -> BuildResult | None:
        """Run one full build without confirmation.

        Returns:
            BuildResult on success, None if the build failed.
        """
        self.reporter.building()
        try:
            result = build_site(self.input_dir, self.output_dir)
        except Exception as exc:
            self.reporter.failure(exc)
            return None
        self.reporter.built(result)
        if self.reloader is not None:
            self.reloader.reload()
        return result

    def _start_observer(self) -> Observer:
        handler = _ChangeHandler(self.debouncer, self.output_dir)
        observer = self._observer_factory()
        try:
            observer.schedule(handler, str(self.input_dir), recursive=True)
            observer.start()
        except OSError as exc:
            raise WatchError(f"cannot watch {self.input_dir}: {exc}") from exc
        return observer
