"""Pydantic models describing the extraction service payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

JobState = Literal["pending", "running", "done", "failed"]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ExtractorBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class JobRequest(ExtractorBaseModel):
    html: str


class JobAccepted(ExtractorBaseModel):
    job_id: str = Field(alias="jobId")


class ExtractedEvent(ExtractorBaseModel):
    """One listing as the extractor reports it.

    Dates and times stay raw strings here; the model output is free text and
    the translator decides what is usable.
    """

    artist_name: str = Field(alias="artistName")
    venue_name: str = Field(alias="venueName")
    date: str | None = None
    time: str | None = None
    notes: str | None = None
    facebook_url: str | None = Field(default=None, alias="facebookUrl")

    _normalize_optional = field_validator("date", "time", "notes", "facebook_url", mode="before")(
        _blank_to_none
    )


class JobStatusResponse(ExtractorBaseModel):
    job_id: str | None = Field(default=None, alias="jobId")
    status: JobState
    events: list[ExtractedEvent] = Field(default_factory=list)
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.status in {"done", "failed"}
