"""Post Block Kit messages to Slack. Fire-and-forget: failures are logged only."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

SLACK_POST_URL = "https://slack.com/api/chat.postMessage"


class SlackPoster:
    """Notification sink for bid events and run digests."""

    def __init__(self, bot_token: str, channel: str, timeout: float = 30) -> None:
        self.bot_token = bot_token
        self.channel = channel
        self.timeout = timeout

    def _post(self, payload: dict) -> dict:
        resp = httpx.post(
            SLACK_POST_URL,
            headers={
                "Authorization": f"Bearer {self.bot_token}",
                "Content-Type": "application/json",
            },
            json={"channel": self.channel, **payload},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        if not data.get("ok"):
            raise RuntimeError(f"Slack API error: {data.get('error', 'unknown')}")
        return data

    def send(self, text: str, blocks: list[dict] | None = None) -> bool:
        """Post a message. Returns True on success; never raises, never retries."""
        payload: dict = {"text": text}
        if blocks:
            payload["blocks"] = blocks
        try:
            data = self._post(payload)
        except (httpx.HTTPError, RuntimeError, ValueError) as exc:
            logger.error("slack_send result=failure channel=%s error=%s", self.channel, exc)
            return False
        logger.info("slack_send result=success channel=%s ts=%s", self.channel, data.get("ts"))
        return True
