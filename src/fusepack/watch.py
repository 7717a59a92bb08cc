"""Reinstall whenever the sources change.

Two pieces cooperate through a :class:`queue.Queue`:

* :class:`SourceWatcher` polls the project tree. It compares stat snapshots
  of every file matching the watch patterns and enqueues a
  :class:`WatchEvent` for the initial state and for every change.
* :func:`serve` is a single-threaded consumer. It takes one event, drains
  whatever else is already queued into the same run, and calls the action.

Events that arrive while the action runs wait in the queue and are merged
into one follow-up run, so two installs never overlap and a burst of saves
costs at most one extra install. A failing action is reported and the loop
keeps going.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pathspec

from fusepack.exceptions import FusepackError
from fusepack.output import error, info

logger = logging.getLogger(__name__)

_ALWAYS_SKIP = {".git", ".luacheckcache", "__pycache__"}

Snapshot = dict[str, tuple[int, int]]


@dataclass(frozen=True)
class WatchEvent:
    """A batch of changed paths (relative, ``/``-separated)."""

    paths: frozenset[str] = field(default_factory=frozenset)
    initial: bool = False


def merge_events(events: Iterable[WatchEvent]) -> WatchEvent:
    """Combine several events into one."""
    paths: set[str] = set()
    initial = False
    for event in events:
        paths.update(event.paths)
        initial = initial or event.initial
    return WatchEvent(frozenset(paths), initial)


class SourceWatcher:
    """Poll files under *root* that match gitignore-style *patterns*.

    Args:
        root: Project root.
        patterns: Patterns such as ``src/**``.
    """

    def __init__(self, root: Path, patterns: list[str]) -> None:
        self._root = root
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)
        self._last: Optional[Snapshot] = None

    def snapshot(self) -> Snapshot:
        """Map each watched file to ``(mtime_ns, size)``."""
        result: Snapshot = {}
        for dirpath, dirnames, filenames in os.walk(self._root):
            dirnames[:] = [d for d in dirnames if d not in _ALWAYS_SKIP]
            rel_dir = os.path.relpath(dirpath, self._root)
            for fname in filenames:
                rel_path = fname if rel_dir == "." else os.path.join(rel_dir, fname)
                rel_path = rel_path.replace(os.sep, "/")
                if not self._spec.match_file(rel_path):
                    continue
                try:
                    stat = os.stat(os.path.join(dirpath, fname))
                except FileNotFoundError:
                    continue
                result[rel_path] = (stat.st_mtime_ns, stat.st_size)
        return result

    def poll(self) -> Optional[WatchEvent]:
        """Return an event describing changes since the last poll, or ``None``.

        The first call always returns the initial event.
        """
        current = self.snapshot()
        previous, self._last = self._last, current
        if previous is None:
            return WatchEvent(frozenset(current), initial=True)

        changed = {
            path for path in current.keys() | previous.keys()
            if current.get(path) != previous.get(path)
        }
        if not changed:
            return None
        return WatchEvent(frozenset(changed))

    def run(self, events: "queue.Queue[WatchEvent]", stop: threading.Event, interval: float) -> None:
        """Poll until *stop* is set, putting every event on *events*."""
        while not stop.is_set():
            event = self.poll()
            if event is not None:
                logger.debug("Detected %d changed file(s)", len(event.paths))
                events.put(event)
            stop.wait(interval)


def serve(
    events: "queue.Queue[WatchEvent]",
    action: Callable[[], object],
    stop: threading.Event,
    max_runs: Optional[int] = None,
) -> int:
    """Consume *events*, running *action* once per batch, until *stop* is set.

    Args:
        events: Queue fed by a :class:`SourceWatcher`.
        action: Called with no arguments for each batch of events.
        stop: Ends the loop when set.
        max_runs: Stop after this many runs.

    Returns:
        How many times *action* ran.
    """
    runs = 0
    while not stop.is_set():
        try:
            first = events.get(timeout=0.1)
        except queue.Empty:
            continue

        batch = [first]
        while True:
            try:
                batch.append(events.get_nowait())
            except queue.Empty:
                break
        event = merge_events(batch)

        if not event.initial:
            info(f"Change detected in {len(event.paths)} file(s).")
        try:
            action()
        except FusepackError as exc:
            error(str(exc))
        runs += 1
        if max_runs is not None and runs >= max_runs:
            break
    return runs


def watch(
    root: Path,
    patterns: list[str],
    action: Callable[[], object],
    interval: float = 0.5,
    stop: Optional[threading.Event] = None,
    max_runs: Optional[int] = None,
) -> int:
    """Watch *patterns* under *root* and run *action* on start and on every change.

    Blocks until *stop* is set, *max_runs* is reached, or the user presses
    Ctrl-C. Returns how many times *action* ran.
    """
    stop = stop or threading.Event()
    events: "queue.Queue[WatchEvent]" = queue.Queue()
    watcher = SourceWatcher(root, patterns)
    poller = threading.Thread(
        target=watcher.run, args=(events, stop, interval), name="fusepack-watch", daemon=True
    )
    poller.start()
    info(f"Watching {', '.join(patterns)} (Ctrl-C to stop)")
    try:
        return serve(events, action, stop, max_runs)
    finally:
        stop.set()
        poller.join()
