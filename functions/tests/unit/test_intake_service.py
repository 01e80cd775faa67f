"""Unit tests for the intake service."""

import pytest
from unittest.mock import patch

from config.errors import NotificationError, PersistenceError, ValidationError
from services.intake_service import IntakeService


class TestSubmit:
    """Tests for IntakeService.submit."""

    @pytest.mark.asyncio
    async def test_submission_is_priced_and_stored(self, estimate_store, regular_submission_data):
        service = IntakeService(store=estimate_store)

        record = await service.submit(regular_submission_data)

        assert record.quote_total == 190
        assert record.quote.extra_rooms == 1
        assert record.is_new is True
        assert await estimate_store.unread_count() == 1
        assert (await estimate_store.list())[0].id == record.id

    @pytest.mark.asyncio
    async def test_form_field_names_are_accepted(self, estimate_store, form_submission_data):
        service = IntakeService(store=estimate_store)

        record = await service.submit(form_submission_data)

        # move: 325 + 8x35 + 6x40 + kitchen 50 + garage 40
        assert record.quote_total == 325 + 280 + 240 + 90
        assert record.property_profile.other_area_text == "Attic, Pantry"

    @pytest.mark.asyncio
    async def test_server_quote_wins_over_client_total(self, estimate_store, deep_submission_data):
        deep_submission_data["quoteTotal"] = 1
        service = IntakeService(store=estimate_store)

        record = await service.submit(deep_submission_data)

        assert record.quote_total == 455

    @pytest.mark.asyncio
    async def test_invalid_submission_stores_nothing(self, estimate_store, regular_submission_data):
        regular_submission_data["roomCount"] = 0
        service = IntakeService(store=estimate_store)

        with pytest.raises(ValidationError):
            await service.submit(regular_submission_data)

        assert await estimate_store.list() == []

    @pytest.mark.asyncio
    async def test_persistence_error_propagates(self, estimate_store, regular_submission_data, mock_sms_service):
        service = IntakeService(store=estimate_store, sms_service=mock_sms_service)

        with patch.object(estimate_store, "_write_file", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                await service.submit(regular_submission_data)

        mock_sms_service.notify_new_estimate.assert_not_called()


class TestNotification:
    """SMS notification after a successful store."""

    @pytest.mark.asyncio
    async def test_owner_is_notified(self, estimate_store, regular_submission_data, mock_sms_service):
        service = IntakeService(store=estimate_store, sms_service=mock_sms_service)

        record = await service.submit(regular_submission_data)

        mock_sms_service.notify_new_estimate.assert_awaited_once()
        notified = mock_sms_service.notify_new_estimate.await_args.args[0]
        assert notified.id == record.id

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_record(self, estimate_store, regular_submission_data, mock_sms_service):
        mock_sms_service.notify_new_estimate.side_effect = NotificationError("Twilio unreachable")
        service = IntakeService(store=estimate_store, sms_service=mock_sms_service)

        record = await service.submit(regular_submission_data)

        assert (await estimate_store.get(record.id)) is not None

    @pytest.mark.asyncio
    async def test_unexpected_notifier_error_keeps_submission(
        self, estimate_store, regular_submission_data, mock_sms_service
    ):
        mock_sms_service.notify_new_estimate.side_effect = AttributeError("'list' object has no attribute 'get'")
        service = IntakeService(store=estimate_store, sms_service=mock_sms_service)

        record = await service.submit(regular_submission_data)

        assert [r.id for r in await estimate_store.list()] == [record.id]

    @pytest.mark.asyncio
    async def test_non_json_twilio_reply_keeps_submission(self, estimate_store, regular_submission_data):
        import httpx

        from services.sms_service import SmsService

        sms = SmsService(
            account_sid="AC123",
            auth_token="token",
            from_number="+15550000000",
            to_number="+19255550100",
            transport=httpx.MockTransport(lambda request: httpx.Response(201, text="Queued")),
        )
        service = IntakeService(store=estimate_store, sms_service=sms)

        record = await service.submit(regular_submission_data)

        assert record.quote_total == 190
        assert await estimate_store.unread_count() == 1
