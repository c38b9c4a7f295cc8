"""Workflow controller - the MIGOP state machine.

Drives export, analysis, transformation, replacement and the optional
Official finalization as asyncio tasks, pausing twice so the user can name
versions in the editor. Only the controller mutates workflow state.
"""

import asyncio
import logging
from datetime import datetime
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional

from migop.core.config import Settings, get_settings
from migop.domain.docx import DocxProcessor, SuggestionDetector, XmlTransformer, count_by_type
from migop.domain.errors import (
    DocxProcessingError,
    InvalidGatewayResultError,
    MigopError,
    WorkflowValidationError,
)
from migop.domain.versioning import VersionManager, VersionRecord, VersionType
from migop.domain.workflow.call_tracker import CallPolicy, RemoteCallTracker
from migop.domain.workflow.chunking import chunked_for_each
from migop.domain.workflow.events import (
    RESET,
    CompletionEvent,
    ErrorEvent,
    StateChangeEvent,
    StatusEvent,
    WorkflowEventPublisher,
)
from migop.domain.workflow.states import PhaseInfo, WorkflowState, phase_info
from migop.domain.workflow.workflow_data import CompletionSummary, ResumeData, WorkflowData
from migop.gateway.base import DocumentGateway, ExportResult, HistoryWriteResult, ReplaceResult
from migop.gateway.clipboard import Clipboard


logger = logging.getLogger(__name__)


class _RunSuperseded(Exception):
    """The run this coroutine belongs to was reset."""


def _kb(size: int) -> str:
    return f"{size / 1024:.1f}"


class WorkflowController:
    """Pausable three-phase workflow over one document."""

    def __init__(
        self,
        gateway: DocumentGateway,
        settings: Optional[Settings] = None,
        clipboard: Optional[Clipboard] = None,
        version_manager: Optional[VersionManager] = None,
        processor: Optional[DocxProcessor] = None,
        detector: Optional[SuggestionDetector] = None,
        transformer: Optional[XmlTransformer] = None,
        clock: Optional[Callable[[], datetime]] = None,
        events: Optional[WorkflowEventPublisher] = None,
    ):
        self._gateway = gateway
        self._settings = settings or get_settings()
        self._clipboard = clipboard
        self._versions = version_manager or VersionManager()
        self._processor = processor or DocxProcessor()
        self._detector = detector or SuggestionDetector()
        self._transformer = transformer or XmlTransformer(detector=self._detector)
        self._clock = clock or datetime.now
        self.events = events or WorkflowEventPublisher()

        self._calls = RemoteCallTracker()
        self._state = WorkflowState.IDLE
        self._data = WorkflowData()
        self._completion: Optional[CompletionSummary] = None
        self._last_error: Optional[Dict[str, Any]] = None
        self._run_id = 0
        self._step = ""
        self._task: Optional[asyncio.Task] = None
        self._background: set = set()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def get_state(self) -> WorkflowState:
        return self._state

    def is_paused(self) -> bool:
        return self._state.is_pause

    def is_complete(self) -> bool:
        return self._state is WorkflowState.COMPLETE

    def get_workflow_data(self) -> WorkflowData:
        """Deep copy of the current run's data."""
        return self._data.copy()

    def get_phase_info(self) -> PhaseInfo:
        return phase_info(self._state)

    @property
    def completion(self) -> Optional[CompletionSummary]:
        return self._completion

    @property
    def last_error(self) -> Optional[Dict[str, Any]]:
        return dict(self._last_error) if self._last_error else None

    def get_stats(self) -> Dict[str, Any]:
        return {
            "state": self._state.value,
            "is_paused": self.is_paused(),
            "is_complete": self.is_complete(),
            "suggestions_count": self._data.suggestions_count,
            "version_counter": self._data.version_counter,
            "is_official": self._data.phase2.is_official,
            "active_calls": self._calls.active_call_ids,
            "completion": self._completion.to_dict() if self._completion else None,
        }

    async def wait_until_settled(self) -> None:
        """Wait until no phase of the current run is executing."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_workflow(self) -> bool:
        """Start a new run from IDLE. Returns False if the request was ignored."""
        if self._state is not WorkflowState.IDLE:
            logger.warning(f"Cannot start workflow from state {self._state.value}")
            return False

        loop = asyncio.get_running_loop()
        self._data = WorkflowData()
        self._completion = None
        self._last_error = None
        run_id = self._run_id
        logger.info(f"Starting workflow run {run_id}")
        self._transition(WorkflowState.P1_EXPORTING)
        self._launch(loop, run_id, self._execute_phase1)
        return True

    def resume_workflow(self, user_data: Any = None) -> bool:
        """
        Resume from a pause.

        At the first pause ``user_data`` is ignored. At the second pause it is
        a ResumeData (or dict); an Official resume requires a committee and
        comments before anything is written.

        Returns False if the request was ignored.
        """
        if not self.is_paused():
            logger.warning(f"Cannot resume workflow from state {self._state.value}")
            return False

        loop = asyncio.get_running_loop()
        run_id = self._run_id

        if self._state is WorkflowState.VERSION_1_PAUSE:
            logger.info(f"Resuming run {run_id} into phase 2")
            self._transition(WorkflowState.P2_TRANSFORMING)
            self._launch(loop, run_id, self._execute_phase2)
            return True

        resume = ResumeData.from_value(user_data)
        if not resume.is_official:
            logger.info(f"Run {run_id} finished without an Official version")
            self._complete()
            return True

        self._data.phase2.is_official = True
        self._data.phase3.committee = resume.committee
        self._data.phase3.comments = resume.comments

        errors = []
        if not (resume.committee or "").strip():
            errors.append("Committee is required for an Official version")
        if not self._versions.sanitize_comments(resume.comments):
            errors.append("Comments are required for an Official version")
        if errors:
            self._step = "Official version"
            self._fail(WorkflowValidationError("Official version input is incomplete", errors))
            return True

        logger.info(f"Resuming run {run_id} into phase 3")
        self._transition(WorkflowState.P3_FINALIZING)
        self._launch(loop, run_id, self._execute_phase3)
        return True

    def reset(self) -> None:
        """Abandon the current run, whatever it is doing, and return to IDLE."""
        self._calls.invalidate_all()
        self._run_id += 1
        self._task = None
        self._state = WorkflowState.IDLE
        self._data = WorkflowData()
        self._completion = None
        self._last_error = None
        self._step = ""
        logger.info(f"Workflow reset (next run {self._run_id})")
        self.events.publish(
            StateChangeEvent(old_state=RESET, new_state=WorkflowState.IDLE, workflow_data=self._data.copy())
        )

    # ------------------------------------------------------------------
    # Phase execution
    # ------------------------------------------------------------------

    def _launch(
        self,
        loop: asyncio.AbstractEventLoop,
        run_id: int,
        phase: Callable[[int], Awaitable[None]],
    ) -> None:
        task = loop.create_task(self._run_phase(run_id, phase))
        self._task = task
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run_phase(self, run_id: int, phase: Callable[[int], Awaitable[None]]) -> None:
        try:
            await phase(run_id)
        except _RunSuperseded:
            logger.info(f"Dropped remainder of superseded run {run_id}")
        except MigopError as e:
            if self._is_current(run_id):
                self._fail(e)
            else:
                logger.info(f"Dropped failure of superseded run {run_id}: {e.message}")
        except Exception as e:
            if self._is_current(run_id):
                logger.exception(f"Unexpected failure during {self._step}")
                self._fail(e)
            else:
                logger.info(f"Dropped failure of superseded run {run_id}: {e}")

    async def _execute_phase1(self, run_id: int) -> None:
        self._checkpoint(run_id, "Export")
        self._status("Exporting document as DOCX...")
        result = await self._calls.call(self._policy("export"), self._gateway.export_document)
        self._checkpoint(run_id, "Export")
        if isinstance(result, dict):
            result = ExportResult.from_dict(result)
        if not isinstance(result, ExportResult) or not result.success or not result.data:
            raise InvalidGatewayResultError(
                getattr(result, "error", None) or "Export returned no document data"
            )
        self._data.phase1.exported_docx_base64 = result.data
        self._data.export_metadata = result.metadata
        self._status(f"Exported document ({_kb(len(result.data))} KB)")

        self._checkpoint(run_id, "DOCX unpacking")
        package = self._processor.unpack(self._processor.decode(result.data))
        document_xml = self._processor.read_document_xml(package)
        self._data.phase1.package = package
        self._data.phase1.document_xml = document_xml
        self._status(f"Extracted document.xml ({_kb(len(document_xml.encode('utf-8')))} KB)")

        self._transition(WorkflowState.P1_ANALYZING)
        self._checkpoint(run_id, "Suggestion analysis")
        root = self._detector.parse(document_xml)
        elements = self._detector.revision_elements(root)
        self._status(f"Analyzing {len(elements)} revision marks...")
        suggestions = await chunked_for_each(
            list(enumerate(elements)),
            lambda pair: self._detector.to_suggestion(pair[1], pair[0]),
            on_progress=partial(self._progress, "Analyzed"),
            is_cancelled=partial(self._is_superseded, run_id),
            **self._chunk_options(),
        )
        self._checkpoint(run_id, "Suggestion analysis")
        self._data.phase1.suggestions = suggestions
        counts = count_by_type(suggestions)
        self._status(f"Found {counts['insertion']} insertions and {counts['deletion']} deletions")

        self._checkpoint(run_id, "Version counter")
        raw_counter = await self._calls.call(
            self._policy("counter"),
            partial(self._gateway.get_or_increment_version_counter, True),
        )
        self._checkpoint(run_id, "Version counter")
        counter = self._coerce_counter(raw_counter)
        self._data.version_counter = counter

        version = self._versions.generate(counter, VersionType.BEFORE, self._clock())
        self._data.phase1.version_number = version
        await self._copy_to_clipboard(version)
        self._checkpoint(run_id, "Version counter")
        self._status(f"Version 1 ready: {version}")
        self._transition(WorkflowState.VERSION_1_PAUSE)

    async def _execute_phase2(self, run_id: int) -> None:
        phase1 = self._data.phase1
        self._checkpoint(run_id, "XML transformation")
        plan = self._transformer.prepare(phase1.document_xml or "")
        self._status(f"Transforming {len(phase1.suggestions)} suggestions...")
        await chunked_for_each(
            phase1.suggestions,
            partial(self._transformer.apply, plan),
            on_progress=partial(self._progress, "Transformed"),
            is_cancelled=partial(self._is_superseded, run_id),
            **self._chunk_options(),
        )
        self._checkpoint(run_id, "XML transformation")
        modified_xml = self._transformer.serialize(plan)
        self._data.phase2.modified_xml = modified_xml
        self._status(f"Transformed {plan.applied} suggestions")

        self._transition(WorkflowState.P2_REBUILDING)
        self._checkpoint(run_id, "DOCX rebuild")
        if phase1.package is None:
            raise DocxProcessingError("No DOCX package to rebuild")
        rebuilt = self._processor.rebuild(phase1.package, modified_xml)
        encoded = self._processor.encode(rebuilt)
        self._data.phase2.rebuilt_docx_base64 = encoded
        self._status(f"Rebuilt DOCX ({_kb(len(rebuilt))} KB)")

        self._transition(WorkflowState.P2_REPLACING)
        self._checkpoint(run_id, "Document replacement")
        self._status("Replacing document content...")
        result = await self._calls.call(
            self._policy("replace"),
            partial(self._gateway.replace_document, encoded),
        )
        self._checkpoint(run_id, "Document replacement")
        if isinstance(result, dict):
            result = ReplaceResult.from_dict(result)
        if not isinstance(result, ReplaceResult) or not result.success:
            raise InvalidGatewayResultError(
                getattr(result, "error", None) or "Document replacement was not confirmed"
            )
        self._data.replacement_details = dict(result.replacement_details)

        version = self._versions.generate(self._data.version_counter, VersionType.AFTER, self._clock())
        self._data.phase2.version_number = version
        await self._copy_to_clipboard(version)
        self._checkpoint(run_id, "Document replacement")
        self._status(f"Version 2 ready: {version}")
        self._transition(WorkflowState.VERSION_2_PAUSE)

    async def _execute_phase3(self, run_id: int) -> None:
        phase3 = self._data.phase3
        self._checkpoint(run_id, "Official finalization")
        now = self._clock()
        version = self._versions.generate(self._data.version_counter, VersionType.OFFICIAL, now)
        phase3.version_number = version
        phase3.timestamp = now.isoformat()

        record = VersionRecord(
            version_number=version,
            committee=self._versions.committee_display_name(phase3.committee),
            timestamp=phase3.timestamp,
            comments=self._versions.sanitize_comments(phase3.comments),
        )
        validation = self._versions.validate(record)
        if not validation.valid:
            raise WorkflowValidationError("Version history entry is invalid", validation.errors)

        self._status("Writing version history...")
        result = await self._calls.call(
            self._policy("history"),
            partial(self._gateway.write_version_history, record),
        )
        self._checkpoint(run_id, "Official finalization")
        if isinstance(result, dict):
            result = HistoryWriteResult.from_dict(result)
        if not isinstance(result, HistoryWriteResult) or not result.success:
            raise InvalidGatewayResultError(
                getattr(result, "error", None) or "Version history write was not confirmed"
            )
        self._status(f"Official version recorded: {version}")
        self._complete()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_current(self, run_id: int) -> bool:
        return run_id == self._run_id

    def _is_superseded(self, run_id: int) -> bool:
        return run_id != self._run_id

    def _checkpoint(self, run_id: int, step: str) -> None:
        if not self._is_current(run_id):
            raise _RunSuperseded(run_id)
        self._step = step

    def _policy(self, operation: str) -> CallPolicy:
        s = self._settings
        timeouts = {
            "export": s.export_timeout_seconds,
            "replace": s.replace_timeout_seconds,
            "counter": s.counter_timeout_seconds,
            "history": s.history_timeout_seconds,
        }
        return CallPolicy(
            operation=operation,
            timeout_seconds=timeouts[operation],
            max_attempts=s.gateway_max_attempts,
            retry_backoff_seconds=s.gateway_retry_backoff_seconds,
        )

    def _chunk_options(self) -> Dict[str, Any]:
        s = self._settings
        return {
            "max_items_per_slice": s.chunk_max_items,
            "max_millis_per_slice": s.chunk_max_millis,
            "progress_every": s.progress_every,
        }

    @staticmethod
    def _coerce_counter(raw: Any) -> int:
        value: Optional[int] = None
        if isinstance(raw, bool):
            value = None
        elif isinstance(raw, int):
            value = raw
        elif isinstance(raw, float) and raw.is_integer():
            value = int(raw)
        elif isinstance(raw, str) and raw.strip().isdecimal():
            value = int(raw.strip())

        if value is None or value < 1:
            logger.warning(f"Version counter returned {raw!r}; using 1")
            return 1
        return value

    async def _copy_to_clipboard(self, text: str) -> None:
        if self._clipboard is None:
            return
        try:
            await self._clipboard.copy(text)
        except Exception as e:
            logger.warning(f"Could not copy {text} to clipboard: {e}")

    def _transition(self, new_state: WorkflowState) -> None:
        old_state = self._state
        self._state = new_state
        logger.info(
            f"State: {old_state.value} -> {new_state.value}",
            extra={"run_id": self._run_id, "old_state": old_state.value, "new_state": new_state.value},
        )
        self.events.publish(
            StateChangeEvent(old_state=old_state, new_state=new_state, workflow_data=self._data.copy())
        )

    def _status(self, message: str, progress: Optional[Dict[str, int]] = None) -> None:
        logger.info(message)
        self.events.publish(StatusEvent(message=message, state=self._state, progress=progress))

    def _progress(self, label: str, done: int, total: int) -> None:
        self._status(f"{label} {done}/{total}", progress={"done": done, "total": total})

    def _complete(self) -> None:
        data = self._data
        run_id = self._run_id
        completion = self._completion = CompletionSummary(
            suggestions_count=data.suggestions_count,
            is_official=data.phase2.is_official,
            version_counter=data.version_counter,
            final_version_number=data.phase3.version_number or data.phase2.version_number,
        )
        self._transition(WorkflowState.COMPLETE)
        if not self._is_current(run_id):
            return
        logger.info(f"Workflow complete: {completion.to_dict()}", extra={"run_id": run_id})
        self.events.publish(CompletionEvent(summary=completion))

    def _fail(self, error: Exception) -> None:
        failed_state = self._state
        if isinstance(error, MigopError):
            cause = error.to_dict()
            detail = error.message
        else:
            cause = {"error_type": type(error).__name__, "message": str(error)}
            detail = str(error)
        step = self._step or failed_state.value
        message = f"{step} failed: {detail}"
        run_id = self._run_id
        logger.error(message, extra={"run_id": run_id, "failed_state": failed_state.value})

        self._last_error = {"message": message, "cause": cause, "failed_state": failed_state.value}
        data = self._data.copy()
        self._transition(WorkflowState.ERROR)
        # A listener may have reset during the ERROR transition.
        if not self._is_current(run_id):
            return
        self.events.publish(
            ErrorEvent(message=message, cause=cause, failed_state=failed_state, workflow_data=data)
        )
