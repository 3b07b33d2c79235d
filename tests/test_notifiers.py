"""Tests for notification payloads and notifier selection."""
from datetime import date

from surfcheck.services.notifications.apns import ApnsNotifier, apns_configured
from surfcheck.services.notifications.notifier import LogNotifier, default_notifier
from surfcheck.services.notifications.payloads import NotificationPayload, NotificationType, no_good_session

APNS_ENV = ("APNS_KEY_ID", "APNS_TEAM_ID", "APNS_BUNDLE_ID", "APNS_KEY_P8_PATH", "APNS_KEY_P8_BASE64")


def _clear_apns(monkeypatch):
    for name in APNS_ENV:
        monkeypatch.delenv(name, raising=False)


class TestPayloads:
    def test_dedupe_key(self):
        payload = no_good_session(date(2025, 3, 10))

        assert payload.dedupe_key("abc", date(2025, 3, 10)) == "abc|daily_summary|2025-03-10"

    def test_slot_is_part_of_dedupe_key(self):
        payload = NotificationPayload(type=NotificationType.REGIONAL_COMPARISON, title="t", body="b", slot="1800")

        assert payload.dedupe_key("abc", date(2025, 3, 10)) == "abc|regional_comparison_1800|2025-03-10"


class TestNotifiers:
    def test_log_notifier_sends_nothing(self):
        assert LogNotifier().send(["tok"], no_good_session(date(2025, 3, 10))) == 0

    def test_default_is_log_notifier_without_apns(self, monkeypatch):
        _clear_apns(monkeypatch)

        assert not apns_configured()
        assert isinstance(default_notifier(), LogNotifier)

    def test_default_is_apns_when_configured(self, monkeypatch):
        monkeypatch.setenv("APNS_KEY_ID", "KEY123")
        monkeypatch.setenv("APNS_TEAM_ID", "TEAM123")
        monkeypatch.setenv("APNS_BUNDLE_ID", "com.example.surfcheck")

        assert isinstance(default_notifier(), ApnsNotifier)

    def test_apns_without_key_skips(self, monkeypatch):
        _clear_apns(monkeypatch)
        monkeypatch.setenv("APNS_KEY_ID", "KEY123")
        monkeypatch.setenv("APNS_TEAM_ID", "TEAM123")
        notifier = ApnsNotifier(bundle_id="com.example.surfcheck")
        payload = no_good_session(date(2025, 3, 10))

        assert notifier.send([], payload) == 0
        assert notifier.send(["tok"], payload) == 0
