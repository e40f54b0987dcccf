"""
Trust-validation backend client.

The backend maps an authorization token and a hostname to SSH credentials
and tells whether the host is known. It also reports which SSH client
command to launch.

Endpoints (JSON over HTTP):
    POST {base_url}/authenticate_for_host  {"token": ..., "host": ...}
        -> {"valid": bool, "known": bool, "userid"?, "password"?, "key"?}
    GET  {base_url}/ssh_command
        -> {"command": "/usr/libexec/ssh-client"}

Usage:
    client = TrustClient()
    result = client.authenticate_for_host(token, "db01.example.com")
"""

import logging
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from authbridge.config import settings
from authbridge.errors import BackendFault

logger = logging.getLogger(__name__)


class HostAuthentication(BaseModel):
    """Backend verdict for a (token, host) pair."""

    valid: bool = False
    known: bool = False
    userid: Optional[str] = None
    password: Optional[str] = None
    key: Optional[str] = None


class SshCommand(BaseModel):
    command: str


class TrustValidator(Protocol):
    """Interface of the trust-validation backend."""

    def authenticate_for_host(self, token: str, host: str) -> HostAuthentication:
        ...

    def ssh_command(self) -> str:
        ...


class TrustClient:
    """
    Synchronous httpx client for the trust-validation backend.

    Every transport error, non-2xx status or malformed payload is raised as
    BackendFault; the caller reports it as an internal-error problem.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.TRUST_BACKEND_URL).rstrip("/")
        headers = {}
        api_token = token if token is not None else settings.TRUST_BACKEND_TOKEN
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"

        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.TRUST_BACKEND_TIMEOUT,
            transport=transport,
        )

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error("Trust backend request %s %s failed: %s", method, path, e)
            raise BackendFault(f"Trust backend error: {e}") from e
        except ValueError as e:
            logger.error("Trust backend returned invalid JSON for %s: %s", path, e)
            raise BackendFault(f"Trust backend returned invalid JSON: {e}") from e

    def authenticate_for_host(self, token: str, host: str) -> HostAuthentication:
        """Resolve credentials for ``host`` using the caller's token."""
        data = self._request("POST", "/authenticate_for_host", json={"token": token, "host": host})
        try:
            result = HostAuthentication.model_validate(data)
        except ValidationError as e:
            raise BackendFault(f"Unexpected authenticate_for_host payload: {e}") from e

        logger.info(
            "Backend verdict for %s: valid=%s known=%s",
            host,
            result.valid,
            result.known,
        )
        return result

    def ssh_command(self) -> str:
        """Command line of the SSH client to launch."""
        data = self._request("GET", "/ssh_command")
        try:
            return SshCommand.model_validate(data).command
        except ValidationError as e:
            raise BackendFault(f"Unexpected ssh_command payload: {e}") from e

    def close(self) -> None:
        self._client.close()
