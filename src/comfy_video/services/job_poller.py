"""
Wait for a queued job to finish.

ComfyUI has no push notification over plain HTTP, so completion is detected
by polling /history/{prompt_id} on a fixed interval. The loop is bounded by an
attempt budget of one query per interval for the requested number of minutes.

States: submitted -> polling -> completed_success | completed_error | timed_out
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from comfy_video.errors import GenerationFailed, GenerationTimeout
from comfy_video.models.job import HistoryEntry, Job, JobState
from comfy_video.services.comfyui_client import ComfyUIClient

logger = logging.getLogger(__name__)

WARMUP_SECONDS = 5.0
POLL_INTERVAL_SECONDS = 1.0
ATTEMPTS_PER_MINUTE = 60

Sleeper = Callable[[float], Awaitable[None]]


def max_attempts_for(timeout_minutes: float) -> int:
    return int(ATTEMPTS_PER_MINUTE * timeout_minutes)


class JobPoller:
    """Polls one job until it reaches a terminal state."""

    def __init__(
        self,
        client: ComfyUIClient,
        timeout_minutes: float,
        warmup: float = WARMUP_SECONDS,
        interval: float = POLL_INTERVAL_SECONDS,
        sleep: Optional[Sleeper] = None,
    ):
        self.client = client
        self.timeout_minutes = timeout_minutes
        self.max_attempts = max_attempts_for(timeout_minutes)
        self.warmup = warmup
        self.interval = interval
        self.sleep = sleep or asyncio.sleep
        self.state = JobState.SUBMITTED
        self.attempts = 0

    async def check(self, job: Job) -> Optional[HistoryEntry]:
        """
        Run one status query.

        Returns:
            The history record once the job completed successfully, None while it is still pending

        Raises:
            GenerationFailed: if the job completed with an error status
        """
        history = await self.client.get_history(job.prompt_id)
        record = history.get(job.prompt_id) if isinstance(history, dict) else None
        if not record:
            logger.debug("[ComfyUI] Prompt not found in history")
            return None

        if not isinstance(record, dict):
            logger.debug(f"[ComfyUI] Unexpected history record, still waiting: {record!r}")
            return None

        entry = HistoryEntry.model_validate(record)
        if entry.status is None:
            logger.debug("[ComfyUI] Execution status not found")
            return None

        if not entry.status.completed:
            return None

        logger.info("[ComfyUI] Video generation completed")
        if entry.status.status_str == "error":
            self.state = JobState.COMPLETED_ERROR
            raise GenerationFailed("[ComfyUI] Video generation failed", description=entry.status.error_message())

        self.state = JobState.COMPLETED_SUCCESS
        return entry

    async def wait(self, job: Job) -> HistoryEntry:
        """
        Block until the job completes.

        Raises:
            GenerationFailed: if the job completed with an error status
            GenerationTimeout: if the attempt budget ran out first
        """
        await self.sleep(self.warmup)
        self.state = JobState.POLLING

        while self.attempts < self.max_attempts:
            await self.sleep(self.interval)
            self.attempts += 1
            logger.info(
                f"[ComfyUI] Checking video generation status (attempt {self.attempts}/{self.max_attempts})..."
            )
            entry = await self.check(job)
            if entry is not None:
                return entry

        self.state = JobState.TIMED_OUT
        raise GenerationTimeout(f"Video generation timeout after {self.timeout_minutes:g} minutes")
