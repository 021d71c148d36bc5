"""
Submission pipeline tests (validate -> normalize -> compose -> dispatch).
"""

import pytest

from app.config import FormSettings, MailSettings
from app.errors import SubmissionError
from app.models.submission import DeliveryResult, FailureReason
from app.services.mail_backends import MailBackend
from app.services.submission import process_submission


class RecordingBackend(MailBackend):
    name = "recording"

    def __init__(self, settings: MailSettings, result: DeliveryResult | None = None):
        super().__init__(settings)
        self.result = result or DeliveryResult.ok()
        self.delivered = []

    async def health_check(self) -> bool:
        return True

    async def deliver(self, message):
        self.delivered.append(message)
        return self.result


def _backend(**overrides) -> RecordingBackend:
    values = {"from_address": "forms@example.com", "to_address": "ops@example.com"}
    values.update(overrides)
    return RecordingBackend(MailSettings(**values))


SIMPLE_FORM = FormSettings(required_fields=["name", "phone", "location"])


class TestProcessSubmission:

    @pytest.mark.asyncio
    async def test_successful_dispatch(self):
        backend = _backend(subject="Contact request")
        fields = {"name": "Asha", "phone": "123", "location": '{"lat": 12.9716, "lng": 77.5946}'}

        result = await process_submission(fields, [], SIMPLE_FORM, backend)

        assert result.success is True
        message = backend.delivered[0]
        assert message.subject == "Contact request"
        assert message.fields["location"] == "12.9716, 77.5946"
        assert message.map_url.endswith("12.9716,77.5946")

    @pytest.mark.asyncio
    async def test_missing_fields_stop_before_dispatch(self):
        backend = _backend()

        with pytest.raises(SubmissionError) as exc_info:
            await process_submission({"name": "Asha"}, [], SIMPLE_FORM, backend)

        assert exc_info.value.reason == FailureReason.MISSING_FIELDS
        assert exc_info.value.extra["missing_fields"] == ["phone", "location"]
        assert backend.delivered == []

    @pytest.mark.asyncio
    async def test_misconfigured_backend_is_never_called(self):
        backend = _backend(to_address=None)
        fields = {"name": "Asha", "phone": "123", "location": "MG Road"}

        with pytest.raises(SubmissionError) as exc_info:
            await process_submission(fields, [], SIMPLE_FORM, backend)

        error = exc_info.value
        assert error.status_code == 500
        assert error.reason == FailureReason.MISCONFIGURED
        assert error.detail == {"missing_settings": ["MAIL_TO"]}
        assert backend.delivered == []

    @pytest.mark.asyncio
    async def test_provider_failure_is_returned(self):
        backend = _backend()
        backend.result = DeliveryResult.failed({"message": "Sender not verified"})
        fields = {"name": "Asha", "phone": "123", "location": "MG Road"}

        result = await process_submission(fields, [], SIMPLE_FORM, backend)

        assert result.success is False
        assert result.reason == FailureReason.PROVIDER_ERROR
        assert result.provider_detail == {"message": "Sender not verified"}

    @pytest.mark.asyncio
    async def test_malformed_location_does_not_fail_submission(self):
        backend = _backend()
        fields = {"name": "Asha", "phone": "123", "location": "{lat:12"}

        result = await process_submission(fields, [], SIMPLE_FORM, backend)

        assert result.success is True
        assert backend.delivered[0].fields["location"] == "{lat:12"
