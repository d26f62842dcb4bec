"""Tests for settings-bound RTC token issuance."""
from __future__ import annotations

import logging

import pytest
from pydantic import SecretStr

from callgate.core.config import Settings
from callgate.services import access_token
from callgate.services import rtc as rtc_service


def test_issue_token_uses_configured_credentials(agora_credentials):
    app_id, certificate = agora_credentials

    issued = rtc_service.issue_token("friendship-17", "42", 120)

    decoded = access_token.decode_token(issued.token)
    assert decoded.app_id == app_id
    assert access_token.verify_signature(decoded, certificate)
    assert issued.user_id == 42
    assert issued.expires_at == issued.issued_at + 120
    assert issued.expires_in == 120


def test_issue_token_defaults_ttl_from_settings(agora_credentials, monkeypatch):
    monkeypatch.setattr(rtc_service.settings, "rtc_token_ttl_seconds", 900)

    issued = rtc_service.issue_token("room1", 42)

    assert issued.expires_in == 900


def test_issue_token_caps_ttl(agora_credentials, monkeypatch):
    monkeypatch.setattr(rtc_service.settings, "rtc_token_max_ttl_seconds", 60)

    with pytest.raises(access_token.InvalidTtl):
        rtc_service.issue_token("room1", 42, 61)


def test_issue_token_without_credentials(no_agora_credentials):
    with pytest.raises(access_token.MissingCredentials):
        rtc_service.issue_token("room1", 42, 60)


def test_check_configuration_logs_when_missing(caplog):
    config = Settings(agora_app_id="", agora_app_certificate="")

    with caplog.at_level(logging.ERROR, logger="callgate.services.rtc"):
        assert rtc_service.check_configuration(config) is False

    assert "AGORA_APP_ID" in caplog.text


def test_check_configuration_strict_mode_raises():
    config = Settings(agora_app_id="abc", agora_app_certificate="", rtc_require_credentials=True)

    with pytest.raises(access_token.MissingCredentials):
        rtc_service.check_configuration(config)


def test_check_configuration_ok():
    config = Settings(agora_app_id="abc", agora_app_certificate=SecretStr("secret"))

    assert rtc_service.check_configuration(config) is True
    assert config.rtc_configured


def test_credentials_are_trimmed():
    config = Settings(agora_app_id=" abc ", agora_app_certificate=" secret\n")

    credentials = rtc_service.credentials_from_settings(config)

    assert credentials == access_token.Credentials("abc", "secret")


def test_issue_token_checks_credentials_before_ttl(no_agora_credentials, monkeypatch):
    monkeypatch.setattr(rtc_service.settings, "rtc_token_max_ttl_seconds", 60)

    with pytest.raises(access_token.MissingCredentials):
        rtc_service.issue_token("room1", 42, 10**9)


def test_issue_token_logs_nothing_above_debug(agora_credentials, caplog):
    with caplog.at_level(logging.INFO, logger="callgate"):
        rtc_service.issue_token("room1", 42, 60)

    assert caplog.records == []
