"""Pytest configuration and shared fixtures for Estimate Inbox tests."""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime, timedelta, timezone
from typing import Dict, Any


# ============================================================================
# Ensure local imports work (config/, models/, services/, validators/)
# ============================================================================
#
# Our codebase uses absolute imports like `from models...` / `from services...`.
# This guarantees that `functions/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def snapshot_path(tmp_path):
    """Snapshot file location inside a per-test directory (not created yet)."""
    return tmp_path / "data" / "estimates.json"


class StepClock:
    """Deterministic clock: each call is one second after the previous."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture
def clock():
    return StepClock(datetime(2025, 1, 15, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def estimate_store(snapshot_path, clock):
    """Fresh EstimateStore over an empty temp snapshot."""
    from services.estimate_store import EstimateStore

    return EstimateStore(snapshot_path, lock_timeout=5.0, clock=clock)


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def regular_submission_data() -> Dict[str, Any]:
    from tests.fixtures.sample_submissions import REGULAR_SUBMISSION
    return dict(REGULAR_SUBMISSION)


@pytest.fixture
def deep_submission_data() -> Dict[str, Any]:
    from tests.fixtures.sample_submissions import DEEP_SUBMISSION
    return dict(DEEP_SUBMISSION)


@pytest.fixture
def form_submission_data() -> Dict[str, Any]:
    from tests.fixtures.sample_submissions import FORM_SUBMISSION
    return dict(FORM_SUBMISSION)


@pytest.fixture
def regular_submission(regular_submission_data):
    from models.estimate import EstimateSubmission
    return EstimateSubmission.model_validate(regular_submission_data)


@pytest.fixture
def deep_submission(deep_submission_data):
    from models.estimate import EstimateSubmission
    return EstimateSubmission.model_validate(deep_submission_data)


# ============================================================================
# Notification Mocks
# ============================================================================

@pytest.fixture
def mock_sms_service():
    """Mock SmsService that records notifications."""
    service = MagicMock()
    service.notify_new_estimate = AsyncMock(return_value="SM-test-sid")
    return service


# ============================================================================
# Environment Setup
# ============================================================================

@pytest.fixture(autouse=True)
def mock_settings(tmp_path):
    """Point settings at a temp snapshot with SMS disabled for all tests."""
    from config.settings import Settings
    from services.estimate_store import reset_estimate_stores

    test_settings = Settings(
        estimates_data_path=str(tmp_path / "default" / "estimates.json"),
        store_lock_timeout_seconds=5.0,
        twilio_phone_number=None,
        notify_phone_number=None,
        cors_allow_origin="*",
        log_level="INFO",
    )
    reset_estimate_stores()
    with patch('config.settings.settings', test_settings):
        yield test_settings
    reset_estimate_stores()
