"""Watch mode - file watcher that keeps the target index in step with disk."""

import json
import logging
import signal
import threading
import time
from pathlib import Path
from typing import Any, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .adapters.fs_storage import FsStorage
from .core.utils import path_to_uri
from .core.workspace import Workspace

logger = logging.getLogger(__name__)

EDITOR_TEMP_SUFFIXES = ("~", ".swp", ".swx", ".tmp")

BatchCallback = Callable[[set[Path], set[Path]], None]


class DebounceHandler(FileSystemEventHandler):
    """
    Collects document events and hands them over in batches once the
    project has been quiet for ``debounce_ms``.
    """

    def __init__(self, storage: FsStorage, on_batch: BatchCallback, debounce_ms: int = 150):
        super().__init__()
        self.storage = storage
        self.on_batch = on_batch
        self.debounce_ms = debounce_ms

        # Track pending changes by path; the observer thread writes, the
        # main loop drains
        self._lock = threading.Lock()
        self.changed: set[Path] = set()
        self.deleted: set[Path] = set()
        self.last_event_time = 0.0

    def _should_skip(self, path: Path) -> bool:
        name = path.name
        if name.endswith(EDITOR_TEMP_SUFFIXES) or name.startswith(".#"):
            return True
        return not self.storage.matches(path)

    def _record(self, path: Path, deleted: bool) -> None:
        if self._should_skip(path):
            return
        with self._lock:
            if deleted:
                self.changed.discard(path)
                self.deleted.add(path)
            else:
                self.deleted.discard(path)
                self.changed.add(path)
            self.last_event_time = time.time()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(Path(str(event.src_path)), deleted=False)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(Path(str(event.src_path)), deleted=False)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(Path(str(event.src_path)), deleted=True)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._record(Path(str(event.src_path)), deleted=True)
        self._record(Path(str(event.dest_path)), deleted=False)

    def check_and_flush(self) -> None:
        """Flush if nothing has happened for a full debounce window."""
        with self._lock:
            if not (self.changed or self.deleted):
                return
            elapsed = (time.time() - self.last_event_time) * 1000
        if elapsed >= self.debounce_ms:
            self.flush()

    def flush(self) -> None:
        """Hand the pending paths to ``on_batch`` and start a new batch."""
        with self._lock:
            if not (self.changed or self.deleted):
                return
            changed, self.changed = self.changed, set()
            deleted, self.deleted = self.deleted, set()

        if self.on_batch:
            self.on_batch(changed, deleted)


def apply_batch(workspace: Workspace, changed: set[Path], deleted: set[Path]) -> dict[str, int]:
    """Push one debounced batch of file events into the workspace."""
    counts = {"refreshed": 0, "skipped": 0, "removed": 0}
    for path in sorted(deleted):
        workspace.remove_file(path_to_uri(path))
        counts["removed"] += 1
    for path in sorted(changed):
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable file %s: %s", path, exc)
            counts["skipped"] += 1
            continue
        if workspace.refresh_file(path_to_uri(path), text):
            counts["refreshed"] += 1
        else:
            counts["skipped"] += 1
    return counts


def watch_project(
    storage: FsStorage,
    workspace: Workspace,
    debounce_ms: int = 150,
    quiet: bool = False,
    json_output: bool = False,
) -> int:
    """
    Scan the project once, then watch it and re-index targets on change.

    Args:
        storage: Project files to scan and watch
        workspace: Session whose target index is maintained
        debounce_ms: Debounce window in milliseconds
        quiet: Suppress output
        json_output: Output JSON events instead of human-readable

    Returns:
        Exit code
    """
    if not storage.root.exists():
        logger.error("Project root not found: %s", storage.root)
        return 1

    total = workspace.analyze_project(storage.iter_documents())
    if not quiet and not json_output:
        print(f"Indexed {total} file(s), {len(workspace.targets)} target(s)")

    running = True

    def handle_batch(changed: set[Path], deleted: set[Path]) -> None:
        start_time = time.time()
        counts = apply_batch(workspace, changed, deleted)
        duration_ms = int((time.time() - start_time) * 1000)

        if json_output:
            event = {
                "type": "batch",
                "changed": sorted(str(p) for p in changed),
                "deleted": sorted(str(p) for p in deleted),
                "targets": len(workspace.targets),
                "duration_ms": duration_ms,
            }
            print(json.dumps(event), flush=True)
        elif not quiet:
            print(
                f"Indexed: ~{counts['refreshed']} -{counts['removed']} "
                f"({len(workspace.targets)} targets, {duration_ms}ms)",
                flush=True,
            )

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handler = DebounceHandler(storage, handle_batch, debounce_ms)
    observer = Observer()
    observer.schedule(handler, str(storage.root), recursive=True)

    if not quiet and not json_output:
        print(f"Watching {storage.root} (debounce: {debounce_ms}ms)", flush=True)
        print("Press Ctrl+C to stop", flush=True)

    observer.start()

    try:
        while running:
            time.sleep(0.1)
            handler.check_and_flush()
    finally:
        handler.flush()
        observer.stop()
        observer.join()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)

    return 0
