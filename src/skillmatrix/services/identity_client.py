"""Client for the hosted identity service's admin API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from skillmatrix.config import IdentityConfig, identity_config, settings
from skillmatrix.exceptions import IdentityServiceError

logger = logging.getLogger(__name__)


class IdentityClient:
    """
    Thin async wrapper over ``{identity_url}/auth/v1/admin/users``.

    Every call authenticates with the service key. Non-2xx responses and
    transport failures raise IdentityServiceError; nothing is retried.
    """

    ADMIN_USERS_PATH = "/auth/v1/admin/users"

    def __init__(
        self,
        base_url: str | None = None,
        service_key: str | None = None,
        config: IdentityConfig | None = None,
    ) -> None:
        """
        Initialize the identity client.

        Args:
            base_url: Identity service root URL (defaults to settings.identity_url)
            service_key: Privileged service key (defaults to settings.identity_service_key)
            config: Timeout and ban settings (uses the loaded config if not provided)
        """
        self.base_url = (base_url or settings.identity_url).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.identity_service_key
        self.config = config or identity_config

    def _headers(self) -> dict[str, str]:
        if not self.service_key:
            raise IdentityServiceError(
                "Identity service key is not configured",
                context={"setting": "IDENTITY_SERVICE_KEY"},
            )
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Send one request to the admin API.

        Args:
            operation: Name used in logs and error context
            method: HTTP method
            path: Path below the base URL
            payload: JSON body

        Returns:
            Decoded JSON body (empty dict when there is none)

        Raises:
            IdentityServiceError: On transport failure or a non-2xx response
        """
        headers = self._headers()
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                response = await client.request(method, url, headers=headers, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:200]
            logger.error(f"Identity {operation} failed with {e.response.status_code}: {detail}")
            raise IdentityServiceError(
                f"Identity service rejected {operation}: {detail or e.response.reason_phrase}",
                context={"operation": operation, "status_code": e.response.status_code},
                original_exception=e,
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Identity {operation} request error: {e}")
            raise IdentityServiceError(
                f"Identity service unreachable during {operation}",
                context={"operation": operation},
                original_exception=e,
            ) from e

        if not response.content:
            return {}
        return response.json()

    async def create_user(self, email: str, password: str, full_name: str) -> str:
        """
        Create a confirmed identity user.

        Returns:
            The identity id of the new user
        """
        data = await self._request(
            "create",
            "POST",
            self.ADMIN_USERS_PATH,
            {
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"full_name": full_name},
            },
        )
        user_id = data.get("id") or (data.get("user") or {}).get("id")
        if not user_id:
            raise IdentityServiceError(
                "Identity service returned no user id", context={"operation": "create"}
            )
        logger.info(f"Created identity user {user_id} for {email}")
        return user_id

    async def update_user(self, user_id: str, **attributes: Any) -> dict[str, Any]:
        """Update identity attributes (email, password, user_metadata, ban_duration)."""
        return await self._request("update", "PUT", f"{self.ADMIN_USERS_PATH}/{user_id}", attributes)

    async def ban_user(self, user_id: str) -> dict[str, Any]:
        return await self.update_user(user_id, ban_duration=self.config.ban_duration)

    async def unban_user(self, user_id: str) -> dict[str, Any]:
        return await self.update_user(user_id, ban_duration="none")

    async def delete_user(self, user_id: str) -> None:
        await self._request("delete", "DELETE", f"{self.ADMIN_USERS_PATH}/{user_id}")
        logger.info(f"Deleted identity user {user_id}")
