"""Tests for the command-line entry point."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from gmail_oauth_app import __main__ as entry


class TestValidateEnvironment:
    def test_configured(self) -> None:
        assert entry.validate_environment() is True

    @pytest.mark.parametrize("missing", ["GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"])
    def test_missing_variable(self, monkeypatch, missing) -> None:
        monkeypatch.delenv(missing)
        assert entry.validate_environment() is False


class TestMain:
    @pytest.fixture(autouse=True)
    def no_dotenv(self, mocker):
        return mocker.patch.object(entry, "load_dotenv")

    def test_exits_when_not_configured(self, monkeypatch, mocker) -> None:
        monkeypatch.delenv("GOOGLE_CLIENT_SECRET")
        run = mocker.patch("uvicorn.run")

        with pytest.raises(SystemExit) as exc_info:
            entry.main()

        assert exc_info.value.code == 1
        run.assert_not_called()

    def test_serves_app_on_host_and_port(self, monkeypatch, mocker) -> None:
        monkeypatch.setenv("HOST", "127.0.0.1")
        monkeypatch.setenv("PORT", "8080")
        run = mocker.patch("uvicorn.run")

        entry.main()

        kwargs = run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 8080
        assert kwargs["proxy_headers"] is False
        assert run.call_args.args[0].title == "Gmail API Test Application"

    def test_relaxes_oauthlib_scope_check(self, mocker) -> None:
        mocker.patch("uvicorn.run")

        with patch.dict(os.environ):
            os.environ.pop("OAUTHLIB_RELAX_TOKEN_SCOPE", None)
            entry.main()

            assert os.environ["OAUTHLIB_RELAX_TOKEN_SCOPE"] == "1"

    def test_keeps_explicit_oauthlib_setting(self, monkeypatch, mocker) -> None:
        monkeypatch.setenv("OAUTHLIB_RELAX_TOKEN_SCOPE", "0")
        mocker.patch("uvicorn.run")

        entry.main()

        assert os.environ["OAUTHLIB_RELAX_TOKEN_SCOPE"] == "0"
