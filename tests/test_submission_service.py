from dataclasses import replace

import pytest

from setup_wizard.exceptions import TransportError, ValidationError
from setup_wizard.schemas import SubmissionPayload
from setup_wizard.services.submission_service import SubmissionService

from .conftest import FailingTransport, RecordingTransport


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [
        {"company_name": "Acme"},
        {"email": "a@b.com"},
        {"email": "", "company_name": "Acme"},
        {"email": False, "company_name": "Acme"},
        {"email": "a@b.com", "company_name": 0},
        {},
    ],
)
async def test_missing_required_fields_send_nothing(settings, fields):
    transport = RecordingTransport()
    service = SubmissionService(settings, transport)

    with pytest.raises(ValidationError) as exc_info:
        await service.submit(SubmissionPayload(**fields))

    assert exc_info.value.status_code == 400
    assert exc_info.value.to_dict() == {
        "error": "Missing required fields",
        "message": "Email and company name are required",
    }
    assert transport.sent == []


@pytest.mark.asyncio
async def test_whitespace_company_name_is_present(settings):
    transport = RecordingTransport()

    await SubmissionService(settings, transport).submit(
        SubmissionPayload(email="a@b.com", company_name="   ")
    )

    assert len(transport.sent) == 1


@pytest.mark.asyncio
async def test_per_user_submission_copies_sales(settings, per_user_payload):
    transport = RecordingTransport()
    service = SubmissionService(settings, transport)

    ack = await service.submit(SubmissionPayload(**per_user_payload))

    assert ack.success is True
    assert len(transport.sent) == 1
    notification = transport.sent[0]
    assert notification.to == "team@example.com"
    assert notification.cc == ["sales@example.com"]
    assert notification.subject == "[Claude Code Setup] Acme - SALES REQUIRED"
    assert notification.reply_to == "a@b.com"
    assert notification.sender == '"Claude Code Setup Wizard" <noreply@anthropic.com>'
    assert "Sales Follow-up Required" in notification.html
    assert "Sales Follow-up Required" in notification.text


@pytest.mark.asyncio
async def test_api_token_submission_has_no_cc(settings):
    transport = RecordingTransport()
    service = SubmissionService(settings, transport)

    await service.submit(SubmissionPayload(email="a@b.com", company_name="Acme"))

    notification = transport.sent[0]
    assert notification.cc == []
    assert notification.subject == "[Claude Code Setup] Acme - API Setup"
    assert "Sales Follow-up Required" not in notification.text


@pytest.mark.asyncio
async def test_per_user_without_sales_email_still_sends(settings):
    transport = RecordingTransport()
    service = SubmissionService(replace(settings, sales_email=None), transport)

    await service.submit(
        SubmissionPayload(email="a@b.com", company_name="Acme", license_type="per-user")
    )

    assert transport.sent[0].cc == []
    assert "SALES REQUIRED" in transport.sent[0].subject


@pytest.mark.asyncio
async def test_default_recipient_when_email_to_unset(settings):
    transport = RecordingTransport()
    service = SubmissionService(replace(settings, email_to=None), transport)

    await service.submit(SubmissionPayload(email="a@b.com", company_name="Acme"))

    assert transport.sent[0].to == "claude-code-enterprise@anthropic.com"


@pytest.mark.asyncio
async def test_confirmation_sent_only_when_enabled(settings, per_user_payload):
    payload = SubmissionPayload(**per_user_payload)

    disabled = RecordingTransport()
    await SubmissionService(settings, disabled).submit(payload)
    assert len(disabled.sent) == 1

    enabled = RecordingTransport()
    await SubmissionService(replace(settings, send_confirmation=True), enabled).submit(payload)
    assert len(enabled.sent) == 2

    confirmation = enabled.sent[1]
    assert confirmation.to == "a@b.com"
    assert confirmation.subject == "Claude Code Setup - Next Steps"
    assert confirmation.sender == '"Claude Code Team" <noreply@anthropic.com>'
    assert confirmation.cc == []
    assert "What happens next:" in confirmation.text


@pytest.mark.asyncio
async def test_email_from_overrides_both_senders(settings):
    transport = RecordingTransport()
    custom = replace(settings, email_from="Wizard <wizard@example.com>", send_confirmation=True)

    await SubmissionService(custom, transport).submit(
        SubmissionPayload(email="a@b.com", company_name="Acme")
    )

    assert [email.sender for email in transport.sent] == ["Wizard <wizard@example.com>"] * 2


@pytest.mark.asyncio
async def test_transport_failure_skips_confirmation(settings):
    transport = FailingTransport(fail_on_call=1)
    service = SubmissionService(replace(settings, send_confirmation=True), transport)

    with pytest.raises(TransportError) as exc_info:
        await service.submit(SubmissionPayload(email="a@b.com", company_name="Acme"))

    assert transport.calls == 1
    assert exc_info.value.status_code == 500
    assert "smtp.internal" not in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)


@pytest.mark.asyncio
async def test_confirmation_failure_is_a_transport_error(settings):
    transport = FailingTransport(fail_on_call=2)
    service = SubmissionService(replace(settings, send_confirmation=True), transport)

    with pytest.raises(TransportError):
        await service.submit(SubmissionPayload(email="a@b.com", company_name="Acme"))

    assert transport.calls == 2
    assert len(transport.sent) == 1


@pytest.mark.asyncio
async def test_success_is_logged_with_company_and_email(settings, caplog):
    service = SubmissionService(settings, RecordingTransport())

    with caplog.at_level("INFO", logger="setup_wizard.services.submission_service"):
        await service.submit(SubmissionPayload(email="a@b.com", company_name="Acme"))

    assert "Wizard submission from Acme (a@b.com)" in caplog.text
