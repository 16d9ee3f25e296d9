from __future__ import annotations

import pytest

from build_watcher.config import ConfigError, Settings


def test_load_parses_all_settings():
    settings = Settings.load(
        {
            "EMAIL_HOSTNAME": "mail.example.org",
            "EMAIL_PORT": "587",
            "EMAIL_USERNAME": "user",
            "EMAIL_PASSWORD": "pass",
            "EMAIL_FROM": "Cloud Build <build@example.org>",
            "EMAIL_RECIPIENTS": 'user1@example.org,user2@example.org, "Some User" <user3@example.org>',
            "EMAIL_TIME_ZONE": "America/New_York",
            "EMAIL_BUILD_TRIGGER_IDS": "123-456,789-012",
            "EMAIL_BUILD_TRIGGER_NAMES": "trigger-1, trigger-2",
            "EMAIL_BUILD_STATUSES": "FAILURE,TIMEOUT",
            "BADGE_BUCKET": "my-bucket",
            "BADGE_REPORTS": "true",
        }
    )
    assert (settings.email_hostname, settings.email_port) == ("mail.example.org", 587)
    assert (settings.email_username, settings.email_password) == ("user", "pass")
    assert str(settings.email_from) == "Cloud Build <build@example.org>"
    assert settings.email_recipient_addrs() == ["user1@example.org", "user2@example.org", "user3@example.org"]
    assert str(settings.email_time_zone) == "America/New_York"
    assert settings.email_trigger_ids == {"123-456", "789-012"}
    assert settings.email_trigger_names == {"trigger-1", "trigger-2"}
    assert settings.email_statuses == {"FAILURE", "TIMEOUT"}
    assert settings.badge_bucket == "my-bucket"
    assert settings.badge_reports is True


def test_load_defaults():
    settings = Settings.load({})
    assert settings.email_port == 25
    assert settings.email_statuses == {"FAILURE", "INTERNAL_ERROR", "TIMEOUT"}
    assert str(settings.email_time_zone) == "Etc/UTC"
    assert settings.email_from is None
    assert settings.email_recipients == ()
    assert settings.email_trigger_ids == frozenset()
    assert settings.email_trigger_names == frozenset()
    assert settings.badge_bucket == ""
    assert settings.badge_reports is False


def test_load_treats_blank_values_as_unset():
    settings = Settings.load({"EMAIL_PORT": "  ", "EMAIL_BUILD_TRIGGER_NAMES": ""})
    assert settings.email_port == 25
    assert settings.email_trigger_names == frozenset()


def test_list_settings_are_deduplicated_and_case_sensitive():
    settings = Settings.load({"EMAIL_BUILD_TRIGGER_NAMES": "deploy ,Deploy,deploy"})
    assert settings.email_trigger_names == {"deploy", "Deploy"}


@pytest.mark.parametrize(
    ("env", "setting"),
    [
        ({"EMAIL_PORT": "smtp"}, "EMAIL_PORT"),
        ({"BADGE_REPORTS": "maybe"}, "BADGE_REPORTS"),
        ({"EMAIL_FROM": "not an address"}, "EMAIL_FROM"),
        ({"EMAIL_RECIPIENTS": "a@example.org, nobody"}, "EMAIL_RECIPIENTS"),
        ({"EMAIL_TIME_ZONE": "Mars/Olympus_Mons"}, "EMAIL_TIME_ZONE"),
        ({"EMAIL_BUILD_STATUSES": "FAILURE,BROKEN"}, "EMAIL_BUILD_STATUSES"),
    ],
)
def test_load_rejects_bad_values(env, setting):
    with pytest.raises(ConfigError) as excinfo:
        Settings.load(env)
    assert setting in str(excinfo.value)


def test_load_reports_first_primitive_error():
    with pytest.raises(ConfigError) as excinfo:
        Settings.load({"EMAIL_PORT": "x", "BADGE_REPORTS": "y"})
    assert "EMAIL_PORT" in str(excinfo.value)


def test_from_env_reads_environment(monkeypatch):
    monkeypatch.setenv("EMAIL_HOSTNAME", "smtp.example.org")
    monkeypatch.setenv("BADGE_BUCKET", "badges")
    settings = Settings.from_env()
    assert settings.email_hostname == "smtp.example.org"
    assert settings.badge_bucket == "badges"


def test_settings_are_immutable():
    settings = Settings.load({})
    with pytest.raises(AttributeError):
        settings.email_port = 587  # type: ignore[misc]
