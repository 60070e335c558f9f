"""
Pydantic models for image pull progress records.

The engine streams one JSON object per line while pulling an image, for
example:

    {"status": "Pulling fs layer", "id": "a1b2c3d4"}
    {"status": "Downloading", "id": "a1b2c3d4",
     "progressDetail": {"current": 512, "total": 2048},
     "progress": "[=====>        ]  512B/2.048kB"}
    {"status": "Pull complete", "id": "a1b2c3d4"}
    {"errorDetail": {"message": "manifest unknown"}, "error": "manifest unknown"}

These keys are camelCase on the wire, unlike the resource documents.
"""

from pydantic import BaseModel, ConfigDict, Field


class ProgressDetail(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    current: int | None = None
    total: int | None = None


class ErrorDetail(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    code: int | None = None
    message: str | None = None


class PullProgressEvent(BaseModel):
    """One record of an image pull stream."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    status: str = ""
    id: str | None = None
    progress_detail: ProgressDetail | None = Field(default=None, alias="progressDetail")
    progress: str | None = None
    error: str | None = None
    error_detail: ErrorDetail | None = Field(default=None, alias="errorDetail")

    @property
    def fraction(self) -> float | None:
        """current/total when the record carries a nonzero total."""
        detail = self.progress_detail
        if detail is None or not detail.total:
            return None
        return (detail.current or 0) / detail.total

    @property
    def error_message(self) -> str | None:
        if self.error:
            return self.error
        if self.error_detail and self.error_detail.message:
            return self.error_detail.message
        return None
