"""Pydantic models for the wizard submission API"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

PER_USER_LICENSE = "per-user"
FIRST_PARTY_ACCESS = "first-party"


class SubmissionPayload(BaseModel):
    """One completed setup wizard, as posted by the front-end.

    Every field is optional at the model level so that a missing email or
    company name is reported with the wizard's own error shape instead of a
    422 from FastAPI.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    email: Optional[str] = None
    company_name: Optional[str] = None
    your_name: Optional[str] = None
    role: Optional[str] = None
    team_size: Optional[str] = None
    timeline: Optional[str] = None
    current_tools: Optional[str] = None
    license_type: Optional[str] = None  # per-user, api-token
    access_method: Optional[str] = None  # first-party, bedrock, vertex
    org_uuid: Optional[str] = None
    completed_at: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_text(cls, v: Any) -> Any:
        # The form sends numbers for team size and arrays for multi-selects
        if v is None or isinstance(v, str):
            return v
        # false and 0 count as unanswered, like an empty string
        if isinstance(v, bool):
            return "true" if v else None
        if isinstance(v, (int, float)):
            return str(v) if v else None
        if isinstance(v, (list, tuple)):
            return ", ".join(str(item) for item in v if item is not None)
        return str(v)

    @property
    def is_per_user(self) -> bool:
        return self.license_type == PER_USER_LICENSE

    def missing_required_fields(self) -> list[str]:
        return [name for name in ("email", "company_name") if not getattr(self, name)]


class SubmissionAck(BaseModel):
    success: bool = True
    message: str = "Setup information submitted successfully"


class ErrorResponse(BaseModel):
    error: str
    message: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    service: str
