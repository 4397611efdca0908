import pytest
from fastapi.testclient import TestClient

from setup_wizard import rate_limiter
from setup_wizard.config import Settings
from setup_wizard.email_service import MailTransport
from setup_wizard.main import create_app


class RecordingTransport(MailTransport):
    name = "recording"

    def __init__(self):
        self.sent = []

    def send(self, email):
        self.sent.append(email)
        return {"id": f"fake-{len(self.sent)}", "success": True}


class FailingTransport(MailTransport):
    name = "failing"

    def __init__(self, fail_on_call: int = 1):
        self.fail_on_call = fail_on_call
        self.calls = 0
        self.sent = []

    def send(self, email):
        self.calls += 1
        if self.calls >= self.fail_on_call:
            raise ConnectionRefusedError("SMTP server refused connection to smtp.internal:587")
        self.sent.append(email)
        return {"id": f"fake-{self.calls}", "success": True}


@pytest.fixture(autouse=True)
def clear_rate_limits():
    rate_limiter.reset_rate_limits()
    yield
    rate_limiter.reset_rate_limits()


@pytest.fixture
def settings():
    return Settings(
        smtp_host="smtp.internal",
        email_to="team@example.com",
        sales_email="sales@example.com",
        send_confirmation=False,
    )


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(settings, transport):
    return TestClient(create_app(settings, transport))


@pytest.fixture
def per_user_payload():
    return {
        "email": "a@b.com",
        "company_name": "Acme",
        "your_name": "Ada Lovelace",
        "role": "Engineering Manager",
        "team_size": "50",
        "timeline": "This quarter",
        "license_type": "per-user",
        "access_method": "first-party",
        "org_uuid": "7f9c1d2e-0000-4000-8000-123456789abc",
        "current_tools": "Copilot",
        "completed_at": "2025-01-15T14:30:00Z",
    }
