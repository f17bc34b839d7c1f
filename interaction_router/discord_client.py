"""Thin wrapper around the Discord REST API used by handlers."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import httpx
import structlog

DISCORD_API_BASE_URL = "https://discord.com/api/v10"

logger = structlog.get_logger(__name__)


class DiscordApiError(Exception):
    """A non-2xx response from the Discord REST API.

    ``raw`` keeps the decoded JSON error body so handlers and the error
    translator can look at Discord's numeric ``code``.
    """

    def __init__(self, status: int, raw: Mapping[str, Any] | None, *, method: str = "", path: str = "") -> None:
        self.status = status
        self.raw: Mapping[str, Any] = raw or {}
        self.code: int | None = self.raw.get("code") if isinstance(self.raw.get("code"), int) else None
        self.method = method
        self.path = path
        message = self.raw.get("message") or f"HTTP {status}"
        super().__init__(f"{method} {path} failed: {message}".strip())


class DiscordClient:
    """Encapsulate Discord REST interactions for easier testing."""

    def __init__(
        self,
        *,
        token: str | None = None,
        application_id: str | None = None,
        client: httpx.Client | None = None,
        base_url: str = DISCORD_API_BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        if client is None and token is None:
            raise ValueError("Either an instantiated client or a bot token must be provided.")

        headers = {"Authorization": f"Bot {token}"} if token else {}
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout, headers=headers)
        self.application_id = application_id

    @property
    def client(self) -> httpx.Client:
        """Expose the underlying httpx client for advanced use cases."""

        return self._client

    def close(self) -> None:
        self._client.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        response = self._client.request(method, path, json=json, params=params)
        if response.is_error:
            try:
                raw = response.json()
            except ValueError:
                raw = {"message": response.text[:200]}
            logger.warning(
                "discord_api_error",
                method=method,
                path=path,
                status=response.status_code,
                code=raw.get("code") if isinstance(raw, dict) else None,
            )
            raise DiscordApiError(
                response.status_code, raw if isinstance(raw, dict) else None, method=method, path=path
            )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _require_application_id(self) -> str:
        if not self.application_id:
            raise ValueError("An application id is required for interaction webhooks.")
        return self.application_id

    def create_followup_message(self, interaction_token: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        application_id = self._require_application_id()
        return self.request(
            "POST", f"/webhooks/{application_id}/{interaction_token}", json=dict(payload)
        )

    def edit_original_response(self, interaction_token: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        application_id = self._require_application_id()
        return self.request(
            "PATCH",
            f"/webhooks/{application_id}/{interaction_token}/messages/@original",
            json=dict(payload),
        )

    def delete_original_response(self, interaction_token: str) -> None:
        application_id = self._require_application_id()
        self.request(
            "DELETE", f"/webhooks/{application_id}/{interaction_token}/messages/@original"
        )

    def get_webhook(self, webhook_id: str) -> Mapping[str, Any]:
        return self.request("GET", f"/webhooks/{webhook_id}")

    def list_guild_webhooks(self, guild_id: str) -> Sequence[Mapping[str, Any]]:
        return self.request("GET", f"/guilds/{guild_id}/webhooks") or []

    def create_message(self, channel_id: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        return self.request("POST", f"/channels/{channel_id}/messages", json=dict(payload))

    def bulk_overwrite_commands(
        self, commands: Sequence[Mapping[str, Any]], *, guild_id: str | None = None
    ) -> Sequence[Mapping[str, Any]]:
        application_id = self._require_application_id()
        if guild_id:
            path = f"/applications/{application_id}/guilds/{guild_id}/commands"
        else:
            path = f"/applications/{application_id}/commands"
        return self.request("PUT", path, json=[dict(command) for command in commands])
