"""Generation scheduler — daily rollups and prompt generation.

Runs two wall-clock jobs on a background thread (summary/status
processing and prompt generation) and serves on-demand prompt requests,
either synchronously or fire-and-forget on a small worker pool.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime

from cyclejournal.clock import is_past, next_occurrence
from cyclejournal.config import CycleJournalConfig
from cyclejournal.context import ContextAggregator
from cyclejournal.cycle import CycleDate
from cyclejournal.errors import (
    BackendUnavailable,
    CycleJournalError,
    GenerationReport,
    InvalidPromptNumber,
)
from cyclejournal.llm import TextGenerator
from cyclejournal.personalization import PersonalizationState
from cyclejournal.prompts import PromptTemplates, PromptType
from cyclejournal.scheduler.models import (
    GenerationRequest,
    ScheduledJob,
    SchedulerState,
    parse_summary_response,
    prompt_type_for,
)
from cyclejournal.store import ArtifactKind, ContentStore

logger = logging.getLogger(__name__)

RETRIGGER_GUARD_SECONDS = 60.0
MAX_QUEUE_WORKERS = 2


class KeyedLocks:
    """One lock per key, created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(key, (threading.Lock(), 0))
            self._locks[key] = (lock, users + 1)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, users = self._locks[key]
                if users <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class GenerationScheduler:
    """Owns every write of summaries, statuses, and prompts.

    Every artifact is checked for existence under a per-artifact lock
    immediately before generation, so concurrent passes never call the
    backend twice for the same artifact. Reads and replacements of the
    rolling status are serialized by a single status lock.
    """

    def __init__(
        self,
        *,
        store: ContentStore,
        generator: TextGenerator,
        personalization: PersonalizationState,
        templates: PromptTemplates,
        config: CycleJournalConfig,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._generator = generator
        self._personalization = personalization
        self._templates = templates
        self._config = config
        self._now = now
        self._aggregator = ContextAggregator(store)

        self._artifact_locks = KeyedLocks()
        self._status_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._state = SchedulerState.STOPPED

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._executor: ThreadPoolExecutor | None = None
        self.retrigger_guard_seconds = RETRIGGER_GUARD_SECONDS

    # ── Properties ───────────────────────────────────────────────

    @property
    def max_prompts(self) -> int:
        return self._config.journal.max_prompts_per_day

    @property
    def state(self) -> SchedulerState:
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def today(self) -> CycleDate:
        return CycleDate.from_real_date(self._now().date(), self._config.calendar.epoch)

    def _set_state(self, state: SchedulerState) -> None:
        with self._state_lock:
            self._state = state

    # ── Lifecycle ────────────────────────────────────────────────

    def start(self) -> None:
        """Run the startup check and periodic loop on a daemon thread."""
        if self.is_running:
            logger.warning("Scheduler already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="cyclejournal-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(
            "Scheduler started (processing %s, prompts %s)",
            self._config.journal.processing_time,
            self._config.journal.prompt_generation_time,
        )

    def stop(self, timeout: float | None = None) -> None:
        """Stop the periodic loop; an in-flight pass finishes first."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Scheduler thread still finishing a pass")
            else:
                self._thread = None
        if self._executor is not None:
            self._executor.shutdown(wait=timeout is None)
            self._executor = None
        logger.info("Scheduler stopped")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the loop exits; True when it has."""
        if self._thread is None:
            return True
        self._thread.join(timeout=timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        self._set_state(SchedulerState.GENERATING)
        try:
            self.startup_check()
        except Exception:
            logger.exception("Startup check failed")

        while not self._stop_event.is_set():
            job, wake_at = self.next_job()
            delay = max((wake_at - self._now()).total_seconds(), 0.0)
            logger.info("Next %s job at %s", job, wake_at.strftime("%Y-%m-%d %H:%M"))
            self._set_state(SchedulerState.WAITING)
            if self._stop_event.wait(delay):
                break
            try:
                self.run_job(job)
            except Exception:
                logger.exception("Scheduled %s job failed", job)
            # Guard against re-firing within the same minute.
            if self._stop_event.wait(self.retrigger_guard_seconds):
                break
        self._set_state(SchedulerState.STOPPED)

    def next_job(self, now: datetime | None = None) -> tuple[ScheduledJob, datetime]:
        """The soonest upcoming job; prompts win a tie."""
        now = now or self._now()
        journal = self._config.journal
        prompts_at = next_occurrence(journal.prompt_generation_time, now)
        processing_at = next_occurrence(journal.processing_time, now)
        if processing_at < prompts_at:
            return ScheduledJob.PROCESSING, processing_at
        return ScheduledJob.PROMPTS, prompts_at

    def run_job(self, job: ScheduledJob) -> GenerationReport:
        self._set_state(SchedulerState.GENERATING)
        try:
            if job == ScheduledJob.PROCESSING:
                report = self.catch_up()
            else:
                report = self.run_generation_pass(GenerationRequest(target=self.today()))
        finally:
            self._set_state(SchedulerState.WAITING)
        log = logger.warning if report.has_errors else logger.info
        log("%s job: %s", job, report.summary_line())
        return report

    def startup_check(self) -> GenerationReport:
        """Catch up after downtime once today's prompt time has passed."""
        report = GenerationReport()
        if not is_past(self._config.journal.prompt_generation_time, self._now()):
            logger.info("Prompt time not reached yet; nothing to catch up")
            return report
        report.merge(self.catch_up())
        today = self.today()
        if self._store.count_prompts(today, self.max_prompts) == 0:
            logger.info("No prompts for %s yet; generating now", today)
            report.merge(
                self.run_generation_pass(GenerationRequest(target=today, skip_checks=True))
            )
        return report

    # ── Summary/status processing ────────────────────────────────

    def catch_up(self) -> GenerationReport:
        """Produce missing summaries and statuses for every stored entry, oldest first."""
        report = GenerationReport()
        dates = self._store.find_dates_needing_rollup()
        if not dates:
            return report
        logger.info("Processing %d date(s) needing summary/status", len(dates))
        try:
            self._generator.ensure_ready()
        except BackendUnavailable as exc:
            logger.warning("Backend unavailable, skipping %d rollup(s): %s", len(dates), exc)
            for date in dates:
                report.add_error(str(date), ArtifactKind.SUMMARY, str(exc))
            return report
        for date in dates:
            try:
                self._roll_up(date, report)
            except CycleJournalError as exc:
                logger.warning("Rollup for %s failed: %s", date, exc)
                report.add_error(str(date), "summary", str(exc))
        return report

    def _roll_up(self, date: CycleDate, report: GenerationReport) -> None:
        code = str(date)
        with self._artifact_locks.hold((code, "rollup")):
            has_summary = self._store.exists(date, ArtifactKind.SUMMARY)
            has_status = self._store.exists(date, ArtifactKind.STATUS)
            if has_summary and has_status:
                report.add_skipped(code, ArtifactKind.SUMMARY)
                report.add_skipped(code, ArtifactKind.STATUS)
                return
            entry = self._store.read(date, ArtifactKind.ENTRY)
            if entry is None:
                return

            with self._status_lock:
                current = self._personalization.get_current_status()
                _, version = self._personalization.status.read()
                prompt = self._templates.summary_prompt(entry, current, code)
                raw = self._generator.generate(prompt, self._config.llm.summary_max_tokens)
                result = parse_summary_response(raw)

                if has_summary:
                    report.add_skipped(code, ArtifactKind.SUMMARY)
                else:
                    self._store.write(date, ArtifactKind.SUMMARY, result.summary)
                    report.add_generated(code, ArtifactKind.SUMMARY)

                if result.status:
                    self._personalization.status.replace(result.status, expected_version=version)
                if has_status:
                    report.add_skipped(code, ArtifactKind.STATUS)
                else:
                    self._store.write(date, ArtifactKind.STATUS, result.status or current)
                    report.add_generated(code, ArtifactKind.STATUS)
        logger.info("Rolled up %s%s", code, " (status changed)" if result.status else "")

    # ── Prompt generation ────────────────────────────────────────

    def run_generation_pass(self, request: GenerationRequest) -> GenerationReport:
        """Generate every missing artifact for ``request.target``.

        Backend failures are recorded per artifact and do not abort the
        remaining artifacts.
        """
        report = GenerationReport()
        target = request.target
        if not request.skip_checks:
            report.merge(self.catch_up())

        numbers = request.numbers
        if numbers is None:
            existing = self._store.count_prompts(target, self.max_prompts)
            numbers = list(range(existing + 1, self.max_prompts + 1))
        if not numbers:
            logger.info("All %d prompts exist for %s", self.max_prompts, target)
            return report

        prompt_type = prompt_type_for(target)
        context = self.build_context(target)
        for number in numbers:
            try:
                self._generate_prompt(target, number, prompt_type, context, report)
            except CycleJournalError as exc:
                logger.warning("Prompt %d for %s failed: %s", number, target, exc)
                report.add_error(str(target), ArtifactKind.PROMPT, str(exc), index=number)
        return report

    def build_context(self, target: CycleDate) -> str:
        """Aggregated history for *target*, enriched with personalization."""
        base = "\n\n".join(self._aggregator.get_context_for_prompt(target))
        return self._personalization.enrich_context(base, now=self._now())

    def _generate_prompt(
        self,
        target: CycleDate,
        number: int,
        prompt_type: PromptType,
        context: str,
        report: GenerationReport,
    ) -> None:
        code = str(target)
        with self._artifact_locks.hold((code, ArtifactKind.PROMPT, number)):
            if self._store.exists(target, ArtifactKind.PROMPT, number):
                report.add_skipped(code, ArtifactKind.PROMPT, index=number)
                return
            self._generator.ensure_ready()
            text = self._generator.generate(
                self._templates.build_prompt(prompt_type, context, number),
                self._config.llm.prompt_max_tokens,
            )
            self._store.write(target, ArtifactKind.PROMPT, text, index=number)
            report.add_generated(code, ArtifactKind.PROMPT, index=number)
        logger.info("Generated %s prompt %d for %s", prompt_type.display_name, number, code)

    # ── On-demand ────────────────────────────────────────────────

    def _check_number(self, number: int, *, capped: bool = True) -> None:
        if number < 1:
            raise InvalidPromptNumber(f"Prompt numbers start at 1, got {number}")
        if capped and number > self.max_prompts:
            raise InvalidPromptNumber(
                f"Prompt number must be between 1 and {self.max_prompts}, got {number}"
            )

    def generate_on_demand(self, date: CycleDate, number: int) -> GenerationReport:
        """Generate prompt *number* for *date* now, raising on failure.

        Raises:
            InvalidPromptNumber: *number* outside 1..max_prompts_per_day.
            BackendUnavailable: The backend cannot be reached.
            BackendGenerationFailed: The generation call failed.
        """
        self._check_number(number)
        return self._generate_single(date, number)

    def _generate_single(self, date: CycleDate, number: int) -> GenerationReport:
        report = GenerationReport()
        if self._store.exists(date, ArtifactKind.PROMPT, number):
            report.add_skipped(str(date), ArtifactKind.PROMPT, index=number)
            return report
        context = self.build_context(date)
        self._generate_prompt(date, number, prompt_type_for(date), context, report)
        return report

    def _generate_queued(self, date: CycleDate, number: int) -> GenerationReport:
        # No daily cap here, so readers can page past the scheduled set.
        self._check_number(number, capped=False)
        return self._generate_single(date, number)

    def queue(self, date: CycleDate, number: int) -> Future[GenerationReport]:
        """Generate prompt *number* for *date* in the background.

        Any number from 1 up is accepted. Nothing is raised to the
        caller; the returned future may be ignored and failures are
        logged.
        """
        with self._state_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=MAX_QUEUE_WORKERS, thread_name_prefix="cyclejournal-queue"
                )
            future = self._executor.submit(self._generate_queued, date, number)
        future.add_done_callback(lambda f: self._log_queued(f, date, number))
        return future

    @staticmethod
    def _log_queued(future: Future[GenerationReport], date: CycleDate, number: int) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Queued prompt %d for %s failed: %s", number, date, exc)
            return
        logger.info("Queued prompt %d for %s: %s", number, date, future.result().summary_line())
