"""
CacheWatcher: polls Granola's cache file and runs a sync when it changes.

Granola rewrites cache-v3.json whenever a meeting's notes are updated, so a
changed modification time is the signal that new AI panels may exist.

  WAITING ──(mtime changed)──► SYNCING ──(done or failed)──► WAITING

Run via 'tally watch', or from a scheduler/login item.
"""
from __future__ import annotations

import logging
import signal
import time
from pathlib import Path
from typing import Callable, Optional

from ..config import Config, load_config
from ..granola.cache import CacheError
from ..pipeline import SyncResult, run_sync
from ..storage.dataset import DatasetError

logger = logging.getLogger(__name__)


class CacheWatcher:
    """Designed to run forever (until SIGTERM/SIGINT)."""

    def __init__(
        self,
        config: Optional[Config] = None,
        sync: Callable[[Config], SyncResult] = run_sync,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or load_config()
        self._sync = sync
        self._sleep = sleep
        self._running = False
        self._last_mtime: Optional[float] = None

    @property
    def cache_file(self) -> Path:
        return self.config.granola.cache_file

    def run(self, max_ticks: Optional[int] = None) -> None:
        """Main loop. Blocks until stop() is called or a signal arrives."""
        self._running = True
        self._setup_signal_handlers()
        logger.info(f"tally watcher started — watching {self.cache_file}")

        ticks = 0
        while self._running:
            self.tick()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            self._sleep(self.config.watch.poll_interval)

    def stop(self) -> None:
        self._running = False

    def _mtime(self) -> Optional[float]:
        try:
            return self.cache_file.stat().st_mtime
        except OSError:
            return None

    def tick(self) -> Optional[SyncResult]:
        """Sync if the cache changed since the last tick. Returns the sync result, if any."""
        mtime = self._mtime()
        if mtime is None:
            logger.debug(f"Cache not present: {self.cache_file}")
            return None
        if mtime == self._last_mtime:
            return None

        self._last_mtime = mtime
        try:
            result = self._sync(self.config)
        except (CacheError, DatasetError) as exc:
            logger.error(f"Sync failed: {exc}")
            return None
        except Exception as exc:
            logger.error(f"Watcher tick error: {exc}", exc_info=True)
            return None

        if result.meetings:
            logger.info(
                f"Synced {len(result.meetings)} meeting(s), {result.items_added} action item(s)"
            )
        return result

    def _setup_signal_handlers(self) -> None:
        def _handle_signal(signum, frame):
            logger.info("Signal received — shutting down watcher")
            self.stop()

        signal.signal(signal.SIGTERM, _handle_signal)
        signal.signal(signal.SIGINT, _handle_signal)
