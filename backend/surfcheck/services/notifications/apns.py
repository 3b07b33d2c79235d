"""
Send push notifications via Apple Push Notification service (APNs).
Requires APNS_KEY_ID, APNS_TEAM_ID, APNS_BUNDLE_ID, and APNS_KEY_P8_PATH or APNS_KEY_P8_BASE64 in env.
If not configured, send() logs and returns 0.
"""
import base64
import logging
import os
import threading
import time
from pathlib import Path

import httpx
import jwt

from surfcheck.services.notifications.payloads import NotificationPayload

logger = logging.getLogger(__name__)

# APNs host: sandbox for dev builds, production for release
APNS_SANDBOX = "https://api.sandbox.push.apple.com"
APNS_PRODUCTION = "https://api.push.apple.com"

# APNs accepts provider tokens issued within the last hour
_JWT_EXPIRY_SECONDS = 55 * 60


def _load_p8_key() -> str | None:
    """Load .p8 key from APNS_KEY_P8_BASE64 or APNS_KEY_P8_PATH. None if not set or unreadable."""
    base64_content = os.getenv("APNS_KEY_P8_BASE64")
    if base64_content:
        try:
            return base64.b64decode(base64_content).decode("utf-8")
        except ValueError as e:
            logger.warning("APNS_KEY_P8_BASE64 decode failed: %s", e)
            return None
    path = os.getenv("APNS_KEY_P8_PATH")
    if path and Path(path).exists():
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("APNS_KEY_P8_PATH read failed: %s", e)
            return None
    return None


def apns_configured() -> bool:
    return bool(os.getenv("APNS_KEY_ID") and os.getenv("APNS_TEAM_ID") and os.getenv("APNS_BUNDLE_ID"))


class ApnsNotifier:
    def __init__(self, bundle_id: str | None = None, use_sandbox: bool | None = None, timeout: float = 10.0):
        self._bundle_id = bundle_id or os.getenv("APNS_BUNDLE_ID")
        if use_sandbox is None:
            use_sandbox = os.getenv("APNS_USE_SANDBOX", "true").lower() in ("1", "true", "yes")
        self._base_url = APNS_SANDBOX if use_sandbox else APNS_PRODUCTION
        self._timeout = timeout
        self._jwt_cache: tuple[str, float] | None = None  # (token, expiry epoch)
        self._lock = threading.Lock()

    def _provider_token(self) -> str | None:
        key_id = os.getenv("APNS_KEY_ID")
        team_id = os.getenv("APNS_TEAM_ID")
        if not key_id or not team_id:
            return None
        with self._lock:
            now = time.time()
            if self._jwt_cache and self._jwt_cache[1] > now:
                return self._jwt_cache[0]
            p8 = _load_p8_key()
            if not p8:
                return None
            try:
                token = jwt.encode(
                    {"iss": team_id, "iat": int(now)},
                    p8,
                    algorithm="ES256",
                    headers={"alg": "ES256", "kid": key_id},
                )
            except (jwt.PyJWTError, ValueError) as e:
                logger.warning("APNs JWT build failed: %s", e, exc_info=True)
                return None
            self._jwt_cache = (token, now + _JWT_EXPIRY_SECONDS)
            return token

    def send(self, target_tokens: list[str], payload: NotificationPayload) -> int:
        """Push to every token over one HTTP/2 connection. Returns count of 200 responses."""
        if not target_tokens:
            return 0
        if not self._bundle_id:
            logger.debug("APNS_BUNDLE_ID not set; skipping push")
            return 0
        provider_token = self._provider_token()
        if not provider_token:
            logger.debug("APNs not configured (key/team); skipping push")
            return 0
        headers = {
            "authorization": f"bearer {provider_token}",
            "apns-topic": self._bundle_id,
            "apns-push-type": "alert",
            "apns-priority": "10",
        }
        body = {
            "aps": {"alert": {"title": payload.title, "body": payload.body}, "sound": "default"},
            "type": payload.type.value,
            "data": payload.data,
        }
        sent = 0
        with httpx.Client(http2=True, timeout=self._timeout) as client:
            for device_token in target_tokens:
                try:
                    resp = client.post(f"{self._base_url}/3/device/{device_token}", json=body, headers=headers)
                except httpx.HTTPError as e:
                    logger.warning("APNs request failed for token %s...: %s", device_token[:20], e)
                    continue
                if resp.status_code == 200:
                    sent += 1
                else:
                    logger.warning("APNs returned %s for token %s...: %s", resp.status_code, device_token[:20], resp.text)
        return sent
