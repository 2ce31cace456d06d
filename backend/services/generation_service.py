"""
Generation Service - Background page generation jobs

Handles:
- Accepting a generation request and running it as a detached task
- Initializing unknown pages (title + page-type template)
- Model content generation, persistence and component build
- Broadcasting lifecycle messages to the page's subscribers

WORKFLOW STATE MACHINE:
=======================
[not_started] → [initializing] → [generating_content] → [persisting]
      → [building] → [broadcasting_result] → [done]

Any step may end in [failed]. A build failure is NOT a job failure:
the content stays persisted, an error is broadcast and the job continues
to [broadcasting_result].
"""
import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from agents.core.builder import BuildRequest, ComponentBuilder
from agents.model_client import ModelRouter
from agents.text_utils import truncate
from errors import GenerationInProgressError
from services.event_service import PageBroadcaster
from services.page_store import FilePageStore, validate_page_id

logger = logging.getLogger(__name__)

BUILD_ERROR_PREFIX = "Component build failed: "
GENERIC_ERROR_MESSAGE = "Failed to generate page"


class JobState(str, Enum):
    NOT_STARTED = "not_started"
    INITIALIZING = "initializing"
    GENERATING_CONTENT = "generating_content"
    PERSISTING = "persisting"
    BUILDING = "building"
    BROADCASTING_RESULT = "broadcasting_result"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = (JobState.DONE, JobState.FAILED)


class GenerationJob(BaseModel):
    """In-memory record of one generation request"""
    model_config = ConfigDict(arbitrary_types_allowed=True, protected_namespaces=())

    page_id: str
    page_type: str
    user_prompt: str
    model_choice: Optional[str] = None
    state: JobState = JobState.NOT_STARTED
    error: Optional[str] = None
    build_error: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    task: Optional[asyncio.Task] = Field(default=None, exclude=True)

    @property
    def is_running(self) -> bool:
        return self.state not in TERMINAL_STATES

    def to_dict(self) -> dict:
        return {
            "pageId": self.page_id,
            "pageType": self.page_type,
            "state": self.state.value,
            "error": self.error,
            "buildError": self.build_error,
            "createdAt": self.created_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
        }


class GenerationCoordinator:
    """
    Runs page generation jobs

    Holds no global state: the store, builder, broadcaster and model router
    are passed in at construction.
    """

    def __init__(
        self,
        store: FilePageStore,
        builder: ComponentBuilder,
        broadcaster: PageBroadcaster,
        model_router: ModelRouter,
    ):
        self.store = store
        self.builder = builder
        self.broadcaster = broadcaster
        self.model_router = model_router
        self._jobs: Dict[str, GenerationJob] = {}

    # ========================================================================
    # Job table
    # ========================================================================

    def get_job(self, page_id: str) -> Optional[GenerationJob]:
        return self._jobs.get(page_id)

    async def wait_for_job(self, page_id: str) -> Optional[GenerationJob]:
        """Await the current job of a page (used by tests and shutdown)"""
        job = self._jobs.get(page_id)
        if job is not None and job.task is not None:
            await asyncio.gather(job.task, return_exceptions=True)
        return job

    async def shutdown(self) -> None:
        """Wait for running jobs to finish"""
        tasks = [job.task for job in self._jobs.values() if job.task is not None and not job.task.done()]
        if tasks:
            logger.info(f"[shutdown] Waiting for {len(tasks)} generation job(s)")
            await asyncio.gather(*tasks, return_exceptions=True)

    # ========================================================================
    # Entry point
    # ========================================================================

    def generate(
        self,
        page_id: str,
        page_type: str,
        user_prompt: str,
        model_choice: Optional[str] = None,
    ) -> GenerationJob:
        """
        Accept a generation request and start it in the background

        Must be called from a running event loop. Returns immediately.

        Raises:
            InvalidPageIdError: If the page id is not usable
            GenerationInProgressError: If a job for this page is still running
        """
        validate_page_id(page_id)

        existing = self._jobs.get(page_id)
        if existing is not None and existing.is_running:
            raise GenerationInProgressError(f"Page {page_id} is already being generated")

        job = GenerationJob(
            page_id=page_id,
            page_type=page_type,
            user_prompt=user_prompt,
            model_choice=model_choice,
        )
        self._jobs[page_id] = job
        job.task = asyncio.create_task(self._run_job(job), name=f"generate:{page_id}")

        logger.info(
            f"[generate] Accepted page_id={page_id} page_type={page_type} "
            f"model_choice={model_choice} prompt={truncate(user_prompt, 100)!r}"
        )
        return job

    # ========================================================================
    # Job execution
    # ========================================================================

    async def _run_job(self, job: GenerationJob) -> None:
        page_id = job.page_id
        logger.info(f"[run_job] START page_id={page_id}")

        try:
            await self._execute(job)
        except Exception as e:
            logger.exception(f"[run_job] page_id={page_id} failed in state {job.state.value}: {e}")
            self._fail(job, str(e) or GENERIC_ERROR_MESSAGE)
            self.broadcaster.broadcast_error(page_id, str(e) or GENERIC_ERROR_MESSAGE)
        finally:
            job.finished_at = datetime.now(timezone.utc)
            logger.info(f"[run_job] END page_id={page_id} state={job.state.value}")

    async def _execute(self, job: GenerationJob) -> None:
        page_id = job.page_id

        # Step 1: current source, initializing the page when it has none
        job.state = JobState.INITIALIZING
        current_source = await self.store.read_component_source(page_id)
        if not current_source:
            title = await self.model_router.generate_title(
                job.user_prompt, job.page_type, model_choice=job.model_choice
            )
            logger.info(f"[run_job] Initializing page_id={page_id} title={title!r}")
            current_source = await self.store.initialize_page(page_id, job.page_type, title)

        # Step 2
        self.broadcaster.broadcast_generation_start(page_id)

        # Step 3: a content failure ends the job before anything is written
        job.state = JobState.GENERATING_CONTENT
        try:
            content = await self.model_router.generate_content(
                job.user_prompt,
                current_source,
                job.page_type,
                model_choice=job.model_choice,
            )
        except Exception as e:
            message = str(e) or GENERIC_ERROR_MESSAGE
            logger.error(f"[run_job] Content generation failed for page_id={page_id}: {message}")
            self._fail(job, message)
            self.broadcaster.broadcast_error(page_id, message)
            return

        # Step 4
        job.state = JobState.PERSISTING
        await self.store.write_component_source(page_id, content)

        # Step 5: build failures are reported, the persisted content stays
        job.state = JobState.BUILDING
        try:
            artifact = await self.builder.build(BuildRequest(
                source_code=content,
                output_dir=self.store.page_dir(page_id),
                page_id=page_id,
            ))
            logger.info(f"[run_job] Built page_id={page_id} artifact={artifact}")
        except Exception as e:
            job.build_error = str(e) or "Unknown build error"
            logger.error(f"[run_job] Build failed for page_id={page_id}: {job.build_error}")
            self.broadcaster.broadcast_error(page_id, f"{BUILD_ERROR_PREFIX}{job.build_error}")

        # Step 6
        job.state = JobState.BROADCASTING_RESULT
        self.broadcaster.broadcast_page_update(page_id, content)
        self.broadcaster.broadcast_generation_complete(page_id)
        job.state = JobState.DONE

    @staticmethod
    def _fail(job: GenerationJob, message: str) -> None:
        job.state = JobState.FAILED
        job.error = message


__all__ = [
    "GenerationCoordinator",
    "GenerationJob",
    "JobState",
    "BUILD_ERROR_PREFIX",
]
