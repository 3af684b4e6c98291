"""Tests for the authenticated Gmail relay."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from gmail_oauth_app.gmail.client import GmailRelay
from gmail_oauth_app.utils.errors import AuthenticationError, GmailAPIError, SessionError


@pytest.fixture
def relay(store, oauth_manager):
    return GmailRelay(store, oauth_manager)


@pytest.fixture
def mock_audit(mocker):
    return mocker.patch("gmail_oauth_app.gmail.client.audit_logger")


class TestLoad:
    """Tests for resolving the session cookie to an authenticated record."""

    def test_authenticated_record(self, relay, authenticated_record) -> None:
        record = relay.load(authenticated_record.id)
        assert record is not None
        assert record.email == "user@example.com"

    @pytest.mark.parametrize("session_id", [None, "", "unknown-session"])
    def test_missing_session(self, relay, session_id) -> None:
        assert relay.load(session_id) is None

    def test_pending_session_is_not_authenticated(self, relay, pending_record):
        assert relay.load(pending_record.id) is None


class TestExecute:
    """Tests for running operations with the session's credentials."""

    def test_operation_receives_service(
        self, relay, authenticated_record, gmail_build, mock_audit
    ) -> None:
        operation = MagicMock(return_value={"labels": []})

        result = relay.execute(authenticated_record, "list_labels", {}, operation)

        assert result == {"labels": []}
        operation.assert_called_once_with(gmail_build.return_value)
        credentials = gmail_build.call_args.args[0]
        assert credentials.token == "mock-access-token"
        assert credentials.refresh_token == "mock-refresh-token"

    def test_unchanged_tokens_are_not_written(
        self, relay, store, authenticated_record, gmail_build, mock_audit, mocker
    ) -> None:
        spy = mocker.spy(store, "update")

        relay.execute(authenticated_record, "list_labels", {}, lambda service: None)

        spy.assert_not_called()

    def test_silently_refreshed_token_is_written_back(
        self, relay, store, authenticated_record, gmail_build, mock_audit
    ) -> None:
        new_expiry = datetime(2030, 1, 1, 12, 0, 0)

        def refreshing_build(credentials):
            credentials.token = "refreshed-access-token"
            credentials.expiry = new_expiry
            return MagicMock()

        gmail_build.side_effect = refreshing_build

        relay.execute(authenticated_record, "list_labels", {}, lambda service: None)

        stored = store.get(authenticated_record.id)
        assert stored.tokens.access_token == "refreshed-access-token"
        assert stored.tokens.expiry == new_expiry
        assert stored.tokens.refresh_token == "mock-refresh-token"
        assert authenticated_record.tokens.access_token == "refreshed-access-token"

    def test_write_back_happens_on_failure(
        self, relay, store, authenticated_record, gmail_build, mock_audit
    ) -> None:
        def refreshing_build(credentials):
            credentials.token = "refreshed-access-token"
            return MagicMock()

        gmail_build.side_effect = refreshing_build

        def failing(service):
            raise GmailAPIError("Backend Error", status_code=500)

        with pytest.raises(GmailAPIError):
            relay.execute(authenticated_record, "list_labels", {}, failing)

        stored = store.get(authenticated_record.id)
        assert stored.tokens.access_token == "refreshed-access-token"

    def test_logout_during_call_is_not_undone(
        self, relay, store, authenticated_record, gmail_build, mock_audit
    ) -> None:
        def refreshing_build(credentials):
            credentials.token = "silently-refreshed"
            return MagicMock()

        gmail_build.side_effect = refreshing_build

        def logout_midway(service):
            store.delete(authenticated_record.id)
            return {}

        relay.execute(authenticated_record, "list_labels", {}, logout_midway)

        assert store.get(authenticated_record.id) is None
        assert len(store) == 0

    def test_operations_are_audited(
        self, relay, authenticated_record, gmail_build, mock_audit
    ) -> None:
        relay.execute(
            authenticated_record, "send_message", {"to": "a@example.com"}, MagicMock()
        )

        kwargs = mock_audit.log_operation.call_args.kwargs
        assert kwargs["operation"] == "send_message"
        assert kwargs["parameters"] == {"to": "a@example.com"}
        assert kwargs["session_id"] == authenticated_record.id
        assert kwargs["user"] == "user@example.com"
        assert kwargs["result_status"] == "success"
        assert kwargs["duration_ms"] >= 0

    def test_failures_are_audited(
        self, relay, authenticated_record, gmail_build, mock_audit
    ) -> None:
        operation = MagicMock(side_effect=GmailAPIError("Quota exceeded"))

        with pytest.raises(GmailAPIError):
            relay.execute(authenticated_record, "send_message", {}, operation)

        kwargs = mock_audit.log_operation.call_args.kwargs
        assert kwargs["result_status"] == "error"
        assert kwargs["error_message"] == "Quota exceeded"

    def test_record_without_tokens_never_calls_google(
        self, relay, pending_record, gmail_build
    ) -> None:
        with pytest.raises(SessionError):
            relay.execute(pending_record, "list_labels", {}, MagicMock())

        gmail_build.assert_not_called()


class TestRefresh:
    """Tests for the explicit token refresh."""

    def test_refresh_stores_new_tokens(
        self, relay, store, oauth_manager, authenticated_record, mocker
    ) -> None:
        refreshed = authenticated_record.tokens.merged(access_token="new-token")
        mocker.patch.object(oauth_manager, "refresh_tokens", return_value=refreshed)

        record = relay.refresh(authenticated_record)

        assert record.tokens.access_token == "new-token"
        assert store.get(record.id).tokens.access_token == "new-token"

    def test_refresh_after_logout_does_not_restore_session(
        self, relay, store, oauth_manager, authenticated_record, mocker
    ) -> None:
        refreshed = authenticated_record.tokens.merged(access_token="new-token")

        def logout_then_refresh(tokens):
            store.delete(authenticated_record.id)
            return refreshed

        mocker.patch.object(
            oauth_manager, "refresh_tokens", side_effect=logout_then_refresh
        )

        with pytest.raises(SessionError, match="Session ended"):
            relay.refresh(authenticated_record)

        assert store.get(authenticated_record.id) is None

    def test_refresh_failure_leaves_store_unchanged(
        self, relay, store, oauth_manager, authenticated_record, mocker
    ) -> None:
        mocker.patch.object(
            oauth_manager,
            "refresh_tokens",
            side_effect=AuthenticationError("Failed to refresh token"),
        )

        with pytest.raises(AuthenticationError):
            relay.refresh(authenticated_record)

        assert store.get(authenticated_record.id).tokens.access_token == (
            "mock-access-token"
        )
