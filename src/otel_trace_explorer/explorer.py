"""
A trace exploration session: loaded files, stitched traces, search and anomalies.
"""

from typing import Dict, FrozenSet, Iterable, List, Optional
from collections import OrderedDict
import asyncio
import contextlib
import logging

from .anomaly_service import AnomalyDetectionService
from .config import ExplorerConfig
from .debounce import Debouncer
from .models import AnomalyResult, FileEvent, FileEventKind, Trace, TraceFile
from .search_service import SearchService
from .trace_service import TraceService


class TraceExplorer:
    """
    Holds the state of one exploration session and keeps it current.

    Loading and re-parsing run in worker threads, and anomaly detection runs
    as a background task that is restarted whenever the traces change.
    """

    def __init__(
        self,
        config: Optional[ExplorerConfig] = None,
        trace_service: Optional[TraceService] = None,
        search_service: Optional[SearchService] = None,
        anomaly_service: Optional[AnomalyDetectionService] = None,
    ):
        self.config = config or ExplorerConfig()
        self.trace_service = trace_service or TraceService()
        self.search_service = search_service or SearchService()
        self.anomaly_service = anomaly_service or AnomalyDetectionService()
        self.logger = logging.getLogger(self.__class__.__name__)

        self._files: Dict[str, TraceFile] = OrderedDict()
        self._traces: List[Trace] = []
        self._anomalies: List[AnomalyResult] = []
        self._anomaly_task: Optional[asyncio.Task] = None
        self._debouncer = Debouncer(self.config.debounce_seconds)

    @property
    def loaded_files(self) -> List[TraceFile]:
        return list(self._files.values())

    @property
    def traces(self) -> List[Trace]:
        return self._traces

    @property
    def anomalies(self) -> List[AnomalyResult]:
        return self._anomalies

    @property
    def anomalous_trace_ids(self) -> FrozenSet[str]:
        return self.anomaly_service.get_anomalous_trace_ids()

    async def load_files(self, file_paths: Iterable[str], detect: bool = True) -> List[TraceFile]:
        """
        Load trace files into the session and re-stitch.

        Files already loaded are replaced. Unsupported or unreadable files
        are logged and skipped.

        Args:
            file_paths: Paths to load
            detect: Start a background anomaly detection pass afterwards

        Returns:
            The files that were loaded by this call
        """
        new_files = await asyncio.to_thread(self.trace_service.load_files, list(file_paths))
        for trace_file in new_files:
            self._files[trace_file.file_path] = trace_file

        self.stitch()
        if detect:
            self.start_anomaly_detection()
        return new_files

    def stitch(self) -> List[Trace]:
        """Rebuild every trace from the currently loaded files."""
        self._traces = self.trace_service.stitch_traces(self._files.values())
        return self._traces

    def search(self, query: Optional[str]) -> List[Trace]:
        """Parse a query and apply it to the current traces."""
        trace_filter = self.search_service.parse_query(query)
        return self.search_service.filter_traces(self._traces, trace_filter)

    def anomalies_for_span(self, span_id: str) -> List[AnomalyResult]:
        return [anomaly for anomaly in self._anomalies if anomaly.span_id == span_id]

    def start_anomaly_detection(self) -> asyncio.Task:
        """
        Run anomaly detection in the background, cancelling any pass in flight.

        Returns:
            The task; awaiting it yields the results
        """
        if self._anomaly_task is not None and not self._anomaly_task.done():
            self.logger.debug("Cancelling in-flight anomaly detection")
            self._anomaly_task.cancel()

        self._anomaly_task = asyncio.get_running_loop().create_task(
            self._run_anomaly_detection(list(self._traces))
        )
        self._anomaly_task.add_done_callback(self._log_detection_failure)
        return self._anomaly_task

    def _log_detection_failure(self, task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Anomaly detection failed: {error}", exc_info=error)

    async def detect_anomalies(self) -> List[AnomalyResult]:
        """Run anomaly detection and wait for the results."""
        return await self.start_anomaly_detection()

    async def _run_anomaly_detection(self, traces: List[Trace]) -> List[AnomalyResult]:
        results = await self.anomaly_service.detect_anomalies(traces, self.config.anomaly_config())
        self._anomalies = results
        self.search_service.set_anomalous_trace_ids(self.anomaly_service.get_anomalous_trace_ids())
        return results

    def handle_file_event(self, event: FileEvent) -> Optional[asyncio.Task]:
        """
        React to a change reported by the file watcher.

        Created and changed files are re-parsed once their events quiesce;
        deleted files are dropped immediately. A rename is a delete of the old
        path followed by a create of the new one.

        Args:
            event: The file-system event

        Returns:
            The pending re-parse task, if one was scheduled
        """
        if event.kind == FileEventKind.RENAMED:
            if event.old_path:
                self.handle_file_event(FileEvent(kind=FileEventKind.DELETED, file_path=event.old_path))
            return self.handle_file_event(FileEvent(kind=FileEventKind.CREATED, file_path=event.file_path))

        if not self.trace_service.parser_factory.is_supported(event.file_path):
            self.logger.debug(f"Ignoring {event.kind.value} event for unsupported file: {event.file_path}")
            return None

        if event.kind == FileEventKind.DELETED:
            self._debouncer.cancel(event.file_path)
            self._remove_file(event.file_path)
            return None

        self.logger.debug(f"File {event.kind.value.lower()} detected: {event.file_path}")
        return self._debouncer.trigger(event.file_path, lambda: self._reload_file(event.file_path))

    async def _reload_file(self, file_path: str):
        trace_file = await asyncio.to_thread(self.trace_service.load_file, file_path)
        if trace_file is None:
            self.logger.warning(f"Keeping previous contents of {file_path}, reload failed")
            return

        self._files[file_path] = trace_file
        self.logger.info(f"Reloaded {file_path} ({trace_file.span_count} spans)")
        self.stitch()
        self.start_anomaly_detection()

    def _remove_file(self, file_path: str):
        if self._files.pop(file_path, None) is None:
            return
        self.logger.info(f"Removed {file_path}")
        self.stitch()
        self.start_anomaly_detection()

    def clear(self):
        """Drop all files, traces and anomalies."""
        self._debouncer.cancel_all()
        if self._anomaly_task is not None:
            self._anomaly_task.cancel()
            self._anomaly_task = None

        self._files.clear()
        self._traces = []
        self._anomalies = []
        self.trace_service.clear()
        self.anomaly_service.clear()
        self.search_service.set_anomalous_trace_ids(())

    async def close(self):
        """Cancel pending re-parses and any detection pass in flight."""
        await self._debouncer.aclose()
        task, self._anomaly_task = self._anomaly_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
