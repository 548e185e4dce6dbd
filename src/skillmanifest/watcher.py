"""CorpusWatcher: re-run the manifest pipeline when unit files change."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

Snapshot = dict[str, tuple[int, int]]


class CorpusWatcher:
    """Polls the corpus for *.md changes and re-runs after a quiet period.

    Runs happen on the calling thread, one at a time. Changes made while a run
    is in progress are picked up by the next poll and coalesced into a single
    re-run.
    """

    def __init__(
        self,
        root: Path,
        run: Callable[[], object],
        *,
        debounce_seconds: float = 0.3,
        poll_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._root = root
        self._run = run
        self._debounce = debounce_seconds
        self._poll = poll_interval
        self._clock = clock
        self._sleep = sleep
        self.runs = 0

    def snapshot(self) -> Snapshot:
        """(mtime_ns, size) for every markdown file under root."""
        snap: Snapshot = {}
        if not self._root.is_dir():
            return snap
        for path in sorted(self._root.rglob("*.md")):
            try:
                stat = path.stat()
            except OSError:
                continue
            snap[path.relative_to(self._root).as_posix()] = (stat.st_mtime_ns, stat.st_size)
        return snap

    def wait_for_change(self, previous: Snapshot) -> Snapshot:
        """Block until the corpus differs from previous and then stays quiet."""
        current = previous
        while current == previous:
            self._sleep(self._poll)
            current = self.snapshot()

        changed = sorted(set(current.items()) ^ set(previous.items()))
        logger.info(f"Change detected: {', '.join(sorted({name for name, _ in changed}))}")

        quiet_since = self._clock()
        while True:
            remaining = self._debounce - (self._clock() - quiet_since)
            if remaining <= 0:
                return current
            self._sleep(min(self._poll, remaining))
            latest = self.snapshot()
            if latest != current:
                current = latest
                quiet_since = self._clock()

    def _run_once(self) -> None:
        self.runs += 1
        logger.debug(f"Watch run #{self.runs}")
        self._run()

    def run_forever(self, max_runs: int | None = None) -> None:
        """Run once, then once per settled change. max_runs bounds the total."""
        snap = self.snapshot()
        self._run_once()
        while max_runs is None or self.runs < max_runs:
            # Snapshot is taken before the run so edits during it trigger a re-run
            snap = self.wait_for_change(snap)
            self._run_once()
