"""In-process FIFO queue for contact emails."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Protocol

import structlog

from src.background import fire_and_forget, wait_for_tasks
from src.schemas.contact import EmailJob

logger = structlog.get_logger()


class EmailSender(Protocol):
    async def send(self, job: EmailJob) -> None:
        """Deliver one job; raise on failure."""
        ...


class EmailQueue:
    """Serial email queue drained by at most one loop at a time.

    ``enqueue`` appends and kicks off a drain without waiting for it. The
    ``_draining`` flag keeps a second drain from starting while one is
    running; the running loop picks up anything enqueued meanwhile. Every
    job is attempted exactly once: failures are logged and dropped.
    """

    def __init__(self, sender: EmailSender):
        self.sender = sender
        self._jobs: deque[EmailJob] = deque()
        self._draining = False
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._jobs)

    @property
    def draining(self) -> bool:
        return self._draining

    def enqueue(self, job: EmailJob) -> None:
        self._jobs.append(job)
        logger.info("email_job_enqueued", caller_ip=job.caller_ip, queued=len(self._jobs))
        if not self._draining:
            fire_and_forget(self.drain(), self._tasks, "email_drain_failed")

    async def drain(self) -> None:
        if self._draining:
            return
        self._draining = True
        try:
            while self._jobs:
                job = self._jobs.popleft()
                try:
                    await self.sender.send(job)
                    logger.info(
                        "email_job_sent",
                        email=job.data.email,
                        company=job.data.company,
                    )
                except Exception as e:
                    logger.error(
                        "email_job_failed",
                        error=str(e),
                        email=job.data.email,
                    )
        finally:
            self._draining = False

    async def wait_idle(self) -> None:
        """Wait for outstanding drains to finish."""
        await wait_for_tasks(self._tasks)
