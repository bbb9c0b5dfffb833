from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from sellabroad.infra.config import LeadCaptureConfig, get_app_config
from sellabroad.infra.logging_std import get_logger, log_kv
from sellabroad.integration.http_client import HttpClientError, HttpResponseError, SimpleHttpClient

logger = get_logger(__name__)

LEADS_PATH = "/forecast-leads"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class LeadCaptureError(RuntimeError):
    pass


class LeadValidationError(LeadCaptureError):
    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


class LeadSubmissionError(LeadCaptureError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class LeadCaptureData:
    name: str
    email: str
    phone: str
    company: str
    brand_name: Optional[str] = None
    forecast_summary: Optional[str] = None

    def cleaned(self) -> "LeadCaptureData":
        brand = (self.brand_name or "").strip() or None
        return LeadCaptureData(
            name=self.name.strip(),
            email=self.email.strip(),
            phone=self.phone.strip(),
            company=self.company.strip(),
            brand_name=brand,
            forecast_summary=self.forecast_summary,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class LeadCaptureResponse:
    success: bool
    id: str


def validate_lead(data: LeadCaptureData) -> None:
    errors: Dict[str, str] = {}
    if not data.name.strip():
        errors["name"] = "Name is required"
    if not data.email.strip():
        errors["email"] = "Email is required"
    elif not _EMAIL_RE.match(data.email.strip()):
        errors["email"] = "Enter a valid email"
    if not data.phone.strip():
        errors["phone"] = "Phone is required"
    if not data.company.strip():
        errors["company"] = "Company is required"
    if errors:
        raise LeadValidationError(errors)


def _upstream_message(err: HttpResponseError) -> str:
    try:
        body = err.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"Failed to submit lead ({err.status})"


def submit_forecast_lead(
    data: LeadCaptureData,
    *,
    client: Optional[SimpleHttpClient] = None,
    settings: Optional[LeadCaptureConfig] = None,
) -> LeadCaptureResponse:
    """
    POST contact details plus the forecast summary to ``<api_base_url>/forecast-leads``.

    Raises LeadValidationError before any network call when a field is missing,
    LeadSubmissionError when no endpoint is configured (outside dry-run) or
    the endpoint rejects the lead or is unreachable.
    """
    settings = settings if settings is not None else get_app_config().lead_capture
    validate_lead(data)
    lead = data.cleaned()

    if not settings.dry_run and not settings.api_base_url.strip():
        raise LeadSubmissionError("lead capture endpoint not configured")

    if client is None:
        client = SimpleHttpClient(retry_max=settings.retry_max, dry_run=settings.dry_run)
    url = settings.api_base_url.strip().rstrip("/") + LEADS_PATH

    try:
        resp = client.post_json(url, lead.to_payload(), timeout_s=settings.timeout_s)
    except HttpResponseError as exc:
        raise LeadSubmissionError(_upstream_message(exc), status=exc.status) from exc
    except HttpClientError as exc:
        raise LeadSubmissionError(f"Failed to submit lead ({exc})") from exc

    if resp.headers.get("x-dry-run") == "1":
        log_kv(logger, "lead capture dry-run", company=lead.company)
        return LeadCaptureResponse(success=True, id="dry-run")

    try:
        body = resp.json()
    except ValueError as exc:
        raise LeadSubmissionError("Lead endpoint returned invalid JSON", status=resp.status) from exc
    if not isinstance(body, dict):
        raise LeadSubmissionError("Lead endpoint returned an unexpected payload", status=resp.status)

    out = LeadCaptureResponse(success=bool(body.get("success", False)), id=str(body.get("id", "")))
    log_kv(logger, "lead captured", lead_id=out.id, success=out.success)
    return out
