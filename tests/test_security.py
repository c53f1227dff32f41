import pytest

from staydesk import security
from staydesk.exceptions import ConfigurationError
from staydesk.security import (
    SettingsCredentialVerifier,
    hash_password,
    is_admin_session_active,
    issue_admin_token,
)


class TestSettingsCredentialVerifier:

    def test_plain_password_is_hashed_and_checked(self):
        verifier = SettingsCredentialVerifier(username="HotelAdmin", password="s3cret")
        assert verifier.verify("HotelAdmin", "s3cret") is True
        assert verifier.verify(" HotelAdmin ", "s3cret") is True
        assert verifier.verify("HotelAdmin", "wrong") is False
        assert verifier.verify("someone", "s3cret") is False

    def test_pre_hashed_password(self):
        verifier = SettingsCredentialVerifier(username="admin", password_hash=hash_password("hunter2"))
        assert verifier.verify("admin", "hunter2") is True
        assert verifier.verify("admin", "hunter3") is False

    def test_unconfigured_password_is_an_error(self):
        verifier = SettingsCredentialVerifier(username="admin", password="", password_hash="")
        with pytest.raises(ConfigurationError):
            verifier.verify("admin", "")


class TestAdminSession:

    def test_issued_token_is_active(self):
        assert is_admin_session_active(issue_admin_token("HotelAdmin")) is True

    @pytest.mark.parametrize("token", [None, "", "not-a-token"])
    def test_missing_or_garbage_token(self, token):
        assert is_admin_session_active(token) is False

    def test_tampered_token(self):
        token = issue_admin_token("HotelAdmin")
        assert is_admin_session_active(token[:-2] + ("AA" if not token.endswith("AA") else "BB")) is False

    def test_expired_token(self, monkeypatch):
        token = issue_admin_token("HotelAdmin")
        monkeypatch.setattr(security, "session_max_age", lambda: -1)
        assert is_admin_session_active(token) is False
