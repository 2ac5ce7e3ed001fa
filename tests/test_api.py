# =============================================================================
# Unit Tests - API Route Handlers
# =============================================================================
#
# Endpoint functions are called directly with a Container built around
# in-memory storage, the mock collaborators and a FakeClock, so no server
# or TestClient is involved.
#
# Test groups:
#   1. Current-user dependency
#   2. Auth endpoints
#   3. Question endpoints
#   4. Dashboard & health
#   5. Error mapping
# =============================================================================

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException

from studentqa.api.auth import (
    login_endpoint,
    send_otp_endpoint,
    signup_endpoint,
    verify_otp_endpoint,
)
from studentqa.api.dashboard import dashboard_endpoint
from studentqa.api.deps import get_container, get_current_user
from studentqa.api.errors import status_code_for
from studentqa.api.questions import (
    get_question_endpoint,
    list_questions_endpoint,
    submit_question_endpoint,
)
from studentqa.config import Settings
from studentqa.container import build_container
from studentqa.errors import (
    CollaboratorError,
    DuplicateUser,
    EmptyName,
    OTPExpired,
    OTPMismatch,
    OTPNotFound,
    PersistenceError,
    StudentQAError,
    UserNotFound,
)
from studentqa.models.domain import QuestionStatus
from studentqa.models.requests import (
    LoginRequest,
    SendOTPRequest,
    SignupRequest,
    SubmitQuestionRequest,
    VerifyOTPRequest,
)
from studentqa.services.mock_llm import MockAnswerGenerator, MockQuestionAnalyzer

MOBILE = "9876543210"


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


@pytest.fixture
def container(storage, clock):
    config = Settings(
        otp_echo_in_response=True, seed_sample_data=False, llm_backend="mock",
    )
    return build_container(
        config,
        storage=storage,
        analyzer=MockQuestionAnalyzer(),
        generator=MockAnswerGenerator(),
        clock=clock,
    )


def _signup(container, name: str = "Jane Doe", mobile: str = MOBILE):
    sent = _run(send_otp_endpoint(SendOTPRequest(mobile_number=mobile), container=container))
    return _run(signup_endpoint(
        SignupRequest(mobile_number=mobile, otp=sent.otp, full_name=name),
        container=container,
    ))


def _status_of(call) -> int:
    with pytest.raises(HTTPException) as exc_info:
        _run(call)
    return exc_info.value.status_code


# ---------------------------------------------------------------------------
# 1. Current user
# ---------------------------------------------------------------------------


class TestCurrentUser:
    def test_container_from_app_state(self, container):
        request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(container=container)))
        assert get_container(request) is container

    def test_known_user(self, container):
        user = _signup(container)
        current = _run(get_current_user(x_user_id=user.id, container=container))
        assert current.id == user.id

    def test_missing_header(self, container):
        assert _status_of(get_current_user(x_user_id=None, container=container)) == 401

    def test_unknown_user(self, container):
        assert _status_of(get_current_user(x_user_id="user_nope", container=container)) == 401


# ---------------------------------------------------------------------------
# 2. Auth endpoints
# ---------------------------------------------------------------------------


class TestAuthEndpoints:
    def test_send_otp_echoes_code_when_enabled(self, container):
        response = _run(send_otp_endpoint(SendOTPRequest(mobile_number=MOBILE), container=container))
        assert response.success
        assert len(response.otp) == 6

    def test_send_otp_hides_code_by_default_even_in_debug(self, storage, clock):
        quiet = build_container(
            Settings(debug=True, seed_sample_data=False),
            storage=storage,
            analyzer=MockQuestionAnalyzer(),
            generator=MockAnswerGenerator(),
            clock=clock,
        )
        response = _run(send_otp_endpoint(SendOTPRequest(mobile_number=MOBILE), container=quiet))
        assert response.otp is None

    def test_send_otp_invalid_mobile(self, container):
        call = send_otp_endpoint(SendOTPRequest(mobile_number="12345"), container=container)
        assert _status_of(call) == 422

    def test_verify_otp(self, container):
        sent = _run(send_otp_endpoint(SendOTPRequest(mobile_number=MOBILE), container=container))
        response = _run(verify_otp_endpoint(
            VerifyOTPRequest(mobile_number=MOBILE, otp=sent.otp), container=container,
        ))
        assert response.message == "OTP verified successfully."

    def test_verify_wrong_otp(self, container):
        sent = _run(send_otp_endpoint(SendOTPRequest(mobile_number=MOBILE), container=container))
        wrong = "000000" if sent.otp != "000000" else "111111"
        call = verify_otp_endpoint(VerifyOTPRequest(mobile_number=MOBILE, otp=wrong), container=container)
        assert _status_of(call) == 400

    def test_signup_returns_user(self, container):
        user = _signup(container)
        assert user.full_name == "Jane Doe"
        assert user.mobile_number == MOBILE

    def test_duplicate_signup_is_409(self, container):
        _signup(container)
        sent = _run(send_otp_endpoint(SendOTPRequest(mobile_number=MOBILE), container=container))
        call = signup_endpoint(
            SignupRequest(mobile_number=MOBILE, otp=sent.otp, full_name="Jane"),
            container=container,
        )
        assert _status_of(call) == 409

    def test_login(self, container):
        user = _signup(container)
        sent = _run(send_otp_endpoint(SendOTPRequest(mobile_number=MOBILE), container=container))
        logged_in = _run(login_endpoint(
            LoginRequest(mobile_number=MOBILE, otp=sent.otp), container=container,
        ))
        assert logged_in.id == user.id

    def test_login_unknown_is_404(self, container):
        sent = _run(send_otp_endpoint(SendOTPRequest(mobile_number=MOBILE), container=container))
        call = login_endpoint(LoginRequest(mobile_number=MOBILE, otp=sent.otp), container=container)
        assert _status_of(call) == 404


# ---------------------------------------------------------------------------
# 3. Question endpoints
# ---------------------------------------------------------------------------


class TestQuestionEndpoints:
    def test_submit_and_answer(self, container):
        user = _run(container.auth.get_user_by_id(_signup(container).id))

        response = _run(submit_question_endpoint(
            SubmitQuestionRequest(question_text="  What is 2+2?  "),
            user=user, container=container,
        ))

        assert response.success
        assert response.question.question_text == "What is 2+2?"
        assert response.question.status is QuestionStatus.ANSWERED
        assert response.message.startswith("Question submitted and answered successfully!")

    def test_submit_too_short_is_422(self, container):
        user = _run(container.auth.get_user_by_id(_signup(container).id))
        call = submit_question_endpoint(
            SubmitQuestionRequest(question_text="2+2?"), user=user, container=container,
        )
        assert _status_of(call) == 422

    def test_submit_with_classifier_failure_still_succeeds(self, container):
        user = _run(container.auth.get_user_by_id(_signup(container).id))
        container.questions._analyzer = SimpleNamespace(
            provider_name="broken",
            analyze=AsyncMock(side_effect=CollaboratorError("Network error")),
        )

        response = _run(submit_question_endpoint(
            SubmitQuestionRequest(question_text="What is 2+2?"), user=user, container=container,
        ))

        assert response.success
        assert response.question.status is QuestionStatus.PENDING
        assert "Network error" in response.message

    def test_submit_storage_failure_is_503(self, container, storage):
        user = _run(container.auth.get_user_by_id(_signup(container).id))
        storage.questions.add = AsyncMock(side_effect=PersistenceError())
        call = submit_question_endpoint(
            SubmitQuestionRequest(question_text="What is 2+2?"), user=user, container=container,
        )
        assert _status_of(call) == 503

    def test_list_filters(self, container, clock):
        user = _run(container.auth.get_user_by_id(_signup(container).id))
        for text in ("What is 2+2?", "Why is the sky blue?"):
            _run(submit_question_endpoint(
                SubmitQuestionRequest(question_text=text), user=user, container=container,
            ))
            clock.advance(minutes=1)

        everything = _run(list_questions_endpoint(status=None, q=None, user=user, container=container))
        assert [q.question_text for q in everything] == ["Why is the sky blue?", "What is 2+2?"]

        searched = _run(list_questions_endpoint(status=None, q="SKY", user=user, container=container))
        assert [q.question_text for q in searched] == ["Why is the sky blue?"]

        answered = _run(list_questions_endpoint(
            status=QuestionStatus.ANSWERED, q=None, user=user, container=container,
        ))
        assert len(answered) == 2

        pending = _run(list_questions_endpoint(
            status=QuestionStatus.PENDING, q="sky", user=user, container=container,
        ))
        assert pending == []

    def test_get_question_owned_only(self, container):
        jane = _run(container.auth.get_user_by_id(_signup(container).id))
        john = _run(container.auth.get_user_by_id(
            _signup(container, name="John", mobile="8765432109").id
        ))
        submitted = _run(submit_question_endpoint(
            SubmitQuestionRequest(question_text="What is 2+2?"), user=jane, container=container,
        ))

        fetched = _run(get_question_endpoint(submitted.question.id, user=jane, container=container))
        assert fetched.id == submitted.question.id

        assert _status_of(get_question_endpoint(submitted.question.id, user=john, container=container)) == 404
        assert _status_of(get_question_endpoint("question_missing", user=jane, container=container)) == 404


# ---------------------------------------------------------------------------
# 4. Dashboard & health
# ---------------------------------------------------------------------------


class TestDashboardEndpoint:
    def test_dashboard_counts(self, container):
        user = _run(container.auth.get_user_by_id(_signup(container).id))
        _run(submit_question_endpoint(
            SubmitQuestionRequest(question_text="What is 2+2?"), user=user, container=container,
        ))

        dashboard = _run(dashboard_endpoint(user=user, container=container))

        assert dashboard.user.id == user.id
        assert dashboard.summary.total == 1
        assert dashboard.summary.answered == 1
        assert len(dashboard.questions) == 1


class TestHealth:
    def test_health(self):
        from studentqa.main import health

        response = _run(health())
        assert response.status == "ok"
        assert response.storage_backend in {"memory", "sql"}


# ---------------------------------------------------------------------------
# 5. Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (EmptyName(), 422),
            (OTPNotFound(), 400),
            (OTPMismatch(), 400),
            (OTPExpired(), 400),
            (DuplicateUser(), 409),
            (UserNotFound(), 404),
            (PersistenceError(), 503),
            (StudentQAError(), 500),
        ],
    )
    def test_status_codes(self, error, status_code):
        assert status_code_for(error) == status_code
