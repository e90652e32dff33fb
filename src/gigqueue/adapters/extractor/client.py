"""HTTP client for the extraction service job API.

The service extracts listings asynchronously: ``POST /jobs`` accepts the source
content and returns a job id, ``GET /jobs/{id}`` reports the job status until it
is ``done`` (with events) or ``failed``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError as PayloadValidationError

from gigqueue.adapters.http_resilience import ResilientClient
from gigqueue.config.extractor import ExtractorConfig, get_extractor_config
from gigqueue.domain.ports import Extractor
from gigqueue.domain.review.errors import UpstreamExtractionError

from .schema import JobAccepted, JobRequest, JobStatusResponse
from .translator import parse_candidates

if TYPE_CHECKING:
    from collections.abc import Callable

    from gigqueue.config.http_resilience import ResilienceConfig
    from gigqueue.domain.review.candidates import Candidate

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpExtractor:
    config: ExtractorConfig = field(default_factory=get_extractor_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def __call__(self, source_content: str) -> list[Candidate]:
        return asyncio.run(self._extract_async(source_content))

    async def _extract_async(self, source_content: str) -> list[Candidate]:
        async with self.client_factory(self.config.resilience) as client:
            try:
                job_id = await self._submit(client, source_content)
                status = await self._poll(client, job_id)
            except httpx.TimeoutException as exc:
                raise UpstreamExtractionError("Extraction service timed out") from exc
            except httpx.HTTPStatusError as exc:
                raise UpstreamExtractionError(
                    f"Extraction service returned {exc.response.status_code}"
                ) from exc
            except httpx.HTTPError as exc:
                raise UpstreamExtractionError(f"Extraction service unreachable: {exc}") from exc
            except PayloadValidationError as exc:
                raise UpstreamExtractionError(
                    "Unexpected extraction service payload", operation="extract:parse"
                ) from exc

        if status.status == "failed":
            raise UpstreamExtractionError(
                f"Extraction job {job_id} failed: {status.error or 'no reason given'}"
            )
        log.info("Extraction job %s returned %s event(s)", job_id, len(status.events))
        return parse_candidates(status.events)

    async def _submit(self, client: ResilientClient, source_content: str) -> str:
        response = await client.post(
            "/jobs", json=JobRequest(html=source_content).model_dump(mode="json")
        )
        response.raise_for_status()
        accepted = JobAccepted.model_validate(response.json())
        log.debug("Submitted extraction job %s", accepted.job_id)
        return accepted.job_id

    async def _poll(self, client: ResilientClient, job_id: str) -> JobStatusResponse:
        for attempt in range(1, self.config.max_polls + 1):
            response = await client.get(f"/jobs/{job_id}")
            response.raise_for_status()
            status = JobStatusResponse.model_validate(response.json())
            if status.finished:
                return status
            log.debug(
                "Extraction job %s still %s (poll %s/%s)",
                job_id,
                status.status,
                attempt,
                self.config.max_polls,
            )
            await asyncio.sleep(self.config.poll_interval_seconds)
        raise UpstreamExtractionError(
            f"Extraction job {job_id} did not finish after {self.config.max_polls} polls",
            operation="extract:poll",
        )


if TYPE_CHECKING:
    _extractor_check: Extractor = HttpExtractor()
