"""
Submission Service
Validates a completed setup wizard and relays it to the enterprise team by email
"""

import logging

from ..config import Settings
from ..email_service import MailTransport, send_templated_email
from ..email_templates import EmailKind
from ..exceptions import TransportError, ValidationError
from ..schemas import SubmissionAck, SubmissionPayload

logger = logging.getLogger(__name__)


class SubmissionService:
    """Turns one wizard payload into a staff notification and, optionally, a confirmation"""

    def __init__(self, settings: Settings, transport: MailTransport):
        self.settings = settings
        self.transport = transport

    def validate(self, payload: SubmissionPayload) -> None:
        missing = payload.missing_required_fields()
        if missing:
            logger.warning(f"Rejected wizard submission - missing fields: {', '.join(missing)}")
            raise ValidationError()

    async def submit(self, payload: SubmissionPayload) -> SubmissionAck:
        """
        Validate, notify staff, then confirm to the customer when enabled.

        Raises:
            ValidationError: email or company name missing; nothing is sent
            TransportError: the transport failed; later sends are skipped
        """
        self.validate(payload)

        kinds = [EmailKind.NOTIFICATION]
        if self.settings.send_confirmation:
            kinds.append(EmailKind.CONFIRMATION)

        try:
            for kind in kinds:
                await send_templated_email(kind, payload, self.settings, self.transport)
        except Exception as e:
            logger.error(f"❌ Error processing wizard submission from {payload.company_name}: {e}")
            raise TransportError() from e

        logger.info(f"Wizard submission from {payload.company_name} ({payload.email})")
        return SubmissionAck()
