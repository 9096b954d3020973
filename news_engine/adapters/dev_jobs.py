"""
Dev job scheduler adapter.

Polls the scheduled article job from a daemon thread, for development and
single-node deployments. Multi-node deployments call ``run_due`` from one
external cron instead.

Key behaviors:
- Runs never overlap; trigger_now and the poller share one lock
- A run that raises is logged and the poller waits for the next tick
- stop() returns once the poller has finished its current run
"""

from __future__ import annotations

import logging
import threading

from news_engine.components.scheduler import JobReport, ScheduledArticleJob

logger = logging.getLogger(__name__)


class DevJobScheduler:
    """Background poller for due staged and unpublish-dated articles."""

    def __init__(
        self,
        job: ScheduledArticleJob,
        poll_interval_seconds: float = 60.0,
    ) -> None:
        self._job = job
        self._interval = poll_interval_seconds
        self._stopping = threading.Event()
        self._run_lock = threading.Lock()
        self._poller: threading.Thread | None = None
        self.last_report: JobReport | None = None

    @property
    def is_running(self) -> bool:
        return self._poller is not None and self._poller.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stopping.clear()
        self._poller = threading.Thread(
            target=self._poll_loop, name="news-scheduled-articles", daemon=True
        )
        self._poller.start()
        logger.info("Scheduled article poller started, every %.1fs", self._interval)

    def stop(self, timeout: float = 5.0) -> None:
        if self._poller is None:
            return
        self._stopping.set()
        self._poller.join(timeout=timeout)
        if self._poller.is_alive():
            logger.warning("Scheduled article poller did not stop within %.1fs", timeout)
        else:
            self._poller = None
            logger.info("Scheduled article poller stopped")

    def trigger_now(self) -> JobReport:
        """Run the job on the calling thread, waiting for any run in progress."""
        with self._run_lock:
            report = self._job.run_due()
        self.last_report = report
        return report

    def _poll_loop(self) -> None:
        while not self._stopping.wait(timeout=self._interval):
            try:
                report = self.trigger_now()
            except Exception:
                logger.exception("Scheduled article run failed")
                continue
            if report.failed:
                logger.warning(
                    "Scheduled article run left %d articles for the next tick",
                    len(report.failed),
                )
