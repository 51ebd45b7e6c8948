"""RTC provider collaborator.

`RtcService` is the interface the stream orchestration depends on;
`LivekitRtcService` implements it on top of the `livekit-api` package.

Whether the provider is configured is decided once, from the constructor
arguments. An unconfigured service runs in degraded mode: it hands out a
fixed placeholder credential, reports no channel members and skips recording
stop, so local development works without RTC credentials.

Usage:
    from app.services.integrations.rtc_service import get_rtc_service

    rtc = get_rtc_service()
    credential = await rtc.mint_host_credential("session_se_01...", "us_01...", timedelta(hours=24))
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from livekit import api
from loguru import logger
from pydantic import BaseModel

from app.app_config import get_app_environ_config

PLACEHOLDER_TOKEN = "placeholder-token-rtc-not-configured"


class RtcCredential(BaseModel):
    """Time-limited grant for one identity on one channel."""

    app_id: str | None = None  # provider endpoint the client connects to
    channel_name: str
    token: str
    uid: str
    is_host: bool = False


class ChannelMember(BaseModel):
    uid: str
    name: str | None = None


class RtcService(ABC):
    """Operations the stream orchestration needs from the RTC provider."""

    @property
    @abstractmethod
    def is_configured(self) -> bool: ...

    @abstractmethod
    async def mint_host_credential(self, channel: str, uid: str, ttl: timedelta) -> RtcCredential: ...

    @abstractmethod
    async def mint_viewer_credential(self, channel: str, uid: str, ttl: timedelta) -> RtcCredential: ...

    @abstractmethod
    async def list_channel_members(self, channel: str) -> list[ChannelMember]: ...

    @abstractmethod
    async def stop_recording(self, channel: str, sid: str, resource_id: str) -> None: ...


class LivekitRtcService(RtcService):
    """LiveKit implementation of the RTC collaborator."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._api_secret = api_secret
        self._configured = bool(url and api_key and api_secret)
        if self._configured:
            logger.info("LivekitRtcService initialized for URL={}", url)
        else:
            logger.warning("LivekitRtcService not configured, credentials will be placeholders")

    @property
    def is_configured(self) -> bool:
        return self._configured

    @asynccontextmanager
    async def _get_api_client(self) -> AsyncIterator[api.LiveKitAPI]:
        logger.debug(f"Creating LiveKit API client for URL={self._url}")
        async with api.LiveKitAPI(self._url, self._api_key, self._api_secret) as lkapi:
            yield lkapi

    def _mint(self, channel: str, uid: str, ttl: timedelta, *, is_host: bool) -> RtcCredential:
        if not self._configured:
            return RtcCredential(
                app_id=self._url,
                channel_name=channel,
                token=PLACEHOLDER_TOKEN,
                uid=uid,
                is_host=is_host,
            )

        logger.info(f"Creating LiveKit access token for identity={uid}, room={channel}, host={is_host}")

        grants = api.VideoGrants(
            room_join=True,
            room=channel,
            room_admin=is_host,
            room_record=is_host,
            can_publish=is_host,
            can_subscribe=True,
            can_publish_data=True,
        )
        token = (
            api.AccessToken(self._api_key, self._api_secret)
            .with_identity(uid)
            .with_kind("standard")
            .with_ttl(ttl)
            .with_grants(grants)
        )

        return RtcCredential(
            app_id=self._url,
            channel_name=channel,
            token=token.to_jwt(),
            uid=uid,
            is_host=is_host,
        )

    async def mint_host_credential(self, channel: str, uid: str, ttl: timedelta) -> RtcCredential:
        """Publish + subscribe grant for the session's trainer."""
        return self._mint(channel, uid, ttl, is_host=True)

    async def mint_viewer_credential(self, channel: str, uid: str, ttl: timedelta) -> RtcCredential:
        """Subscribe-only grant for a booked participant."""
        return self._mint(channel, uid, ttl, is_host=False)

    async def list_channel_members(self, channel: str) -> list[ChannelMember]:
        if not self._configured:
            logger.info("RTC not configured: list_channel_members returns []")
            return []

        logger.debug(f"Getting participants for room: {channel}")
        async with self._get_api_client() as lkapi:
            response = await lkapi.room.list_participants(api.ListParticipantsRequest(room=channel))
            return [ChannelMember(uid=p.identity, name=p.name or None) for p in response.participants]

    async def stop_recording(self, channel: str, sid: str, resource_id: str) -> None:
        """Stop the recording egress identified by `sid` (idempotent)."""
        if not self._configured:
            logger.info("RTC not configured: skipping stop_recording for {}", channel)
            return

        logger.info(f"Stopping recording: channel={channel} egress_id={sid} resource_id={resource_id}")
        async with self._get_api_client() as lkapi:
            try:
                await lkapi.egress.stop_egress(api.StopEgressRequest(egress_id=sid))
            except api.TwirpError as e:
                # Already stopped egress reports failed_precondition
                if e.code == "failed_precondition":
                    logger.info(f"Recording already stopped: egress_id={sid}")
                    return
                raise


_rtc_service: RtcService | None = None


def get_rtc_service() -> RtcService:
    global _rtc_service
    if _rtc_service is None:
        cfg = get_app_environ_config()
        _rtc_service = LivekitRtcService(
            url=cfg.LIVEKIT_URL,
            api_key=cfg.LIVEKIT_API_KEY,
            api_secret=cfg.LIVEKIT_API_SECRET,
        )
    return _rtc_service
