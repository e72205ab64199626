"""Help Scout API client with authentication and request handling."""

import json
import os
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from helpscout_metrics.models import ConversationPage

# Config file location
CONFIG_PATH = Path.home() / ".helpscout-metrics" / "config.json"

BASE_URL = "https://api.helpscout.net/v1"

# Default timeout for API requests
DEFAULT_TIMEOUT = 30.0


class HelpScoutClientError(Exception):
    """Base exception for Help Scout client errors."""


class HelpScoutAuthError(HelpScoutClientError):
    """Authentication error."""


class HelpScoutAPIError(HelpScoutClientError):
    """API request error (network, auth or malformed response)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# A page fetch failure of any kind surfaces as this type.
TransportError = HelpScoutAPIError


def _load_config_from_file() -> dict[str, Any]:
    """Load configuration from config file."""
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def _save_config(config: dict) -> Path:
    """Save config dict to file, preserving permissions."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_PATH, "w") as f:
        json.dump(config, f, indent=2)
    try:
        CONFIG_PATH.chmod(0o600)
    except OSError:
        pass  # Windows doesn't support Unix permissions
    return CONFIG_PATH


def _parse_mailboxes(value: str | list | None) -> list[str]:
    """Normalize a comma-separated string or list into mailbox identifiers."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(m).strip() for m in value if str(m).strip()]


def get_api_key() -> str:
    """Get the API key from environment variables or config file.

    Raises:
        HelpScoutAuthError: If no API key is configured
    """
    api_key = os.environ.get("HELPSCOUT_API_KEY") or _load_config_from_file().get("api_key")
    if not api_key:
        raise HelpScoutAuthError(
            "Missing Help Scout API key (HELPSCOUT_API_KEY). "
            f"Set the environment variable or run 'helpscout-metrics auth login' "
            f"to create {CONFIG_PATH}"
        )
    return api_key


def get_mailboxes() -> list[str]:
    """Get the configured mailbox identifiers, environment first."""
    env = os.environ.get("HELPSCOUT_MAILBOXES")
    if env:
        return _parse_mailboxes(env)
    return _parse_mailboxes(_load_config_from_file().get("mailboxes"))


def save_credentials(api_key: str, mailboxes: list[str] | None = None) -> Path:
    """Save the API key (and optionally mailboxes) to the config file.

    Returns:
        Path to the config file
    """
    # Load existing config to preserve other settings (e.g., Slack)
    config = _load_config_from_file()
    config["api_key"] = api_key
    if mailboxes:
        config["mailboxes"] = _parse_mailboxes(mailboxes)
    return _save_config(config)


def delete_credentials() -> bool:
    """Remove the API key and mailboxes from the config file.

    Returns:
        True if anything was removed, False otherwise
    """
    config = _load_config_from_file()
    had_creds = "api_key" in config or "mailboxes" in config
    config.pop("api_key", None)
    config.pop("mailboxes", None)
    if had_creds:
        _save_config(config)
    return had_creds


def save_slack_config(webhook_url: str, channel: str) -> Path:
    """Save Slack webhook configuration to config file."""
    config = _load_config_from_file()
    config["slack_webhook_url"] = webhook_url
    config["slack_channel"] = channel
    return _save_config(config)


def get_slack_config() -> tuple[str, str] | None:
    """Get Slack configuration from environment or config file.

    Returns:
        Tuple of (webhook_url, channel) or None if not configured
    """
    webhook_url = os.environ.get("SLACK_WEBHOOK_URL")
    channel = os.environ.get("SLACK_CHANNEL")

    if not webhook_url or not channel:
        config = _load_config_from_file()
        webhook_url = webhook_url or config.get("slack_webhook_url")
        channel = channel or config.get("slack_channel")

    if webhook_url and channel:
        return webhook_url, channel
    return None


def get_auth_status() -> dict:
    """Get current configuration status.

    Returns:
        Dict with:
            - configured: bool - whether an API key is available
            - source: str | None - "env", "config", or None
            - config_path: str - path to config file
            - env_vars_set: list - which env vars are set
            - mailboxes: list - configured mailbox identifiers
    """
    env_vars_set = [
        name for name in ("HELPSCOUT_API_KEY", "HELPSCOUT_MAILBOXES")
        if os.environ.get(name)
    ]
    config = _load_config_from_file()

    source = None
    if os.environ.get("HELPSCOUT_API_KEY"):
        source = "env"
    elif config.get("api_key"):
        source = "config"

    return {
        "configured": source is not None,
        "source": source,
        "config_path": str(CONFIG_PATH),
        "env_vars_set": env_vars_set,
        "mailboxes": get_mailboxes(),
    }


class HelpScoutClient:
    """Async HTTP client for the Help Scout mailbox API."""

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        If no API key is provided it is loaded from the environment
        or config file.
        """
        self.api_key = api_key or get_api_key()
        self.timeout = timeout
        self.base_url = BASE_URL
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Make an API request to Help Scout.

        Args:
            method: HTTP method
            endpoint: API endpoint (without base URL)
            params: Query parameters
            timeout: Request timeout override

        Returns:
            Parsed JSON response

        Raises:
            HelpScoutAPIError: On API errors
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        # Help Scout takes the API key as the username with a dummy password
        async with httpx.AsyncClient(
            auth=(self.api_key, "X"), transport=self._transport
        ) as client:
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._get_headers(),
                    params=params,
                    timeout=timeout or self.timeout,
                )
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                error_msg = self._format_http_error(e)
                raise HelpScoutAPIError(error_msg, e.response.status_code) from e
            except httpx.TimeoutException as e:
                raise HelpScoutAPIError(
                    "Request timed out. The Help Scout API may be slow or unavailable."
                ) from e
            except httpx.RequestError as e:
                raise HelpScoutAPIError(f"Request failed: {e}") from e
            except ValueError as e:
                raise HelpScoutAPIError(f"Invalid JSON in response from {endpoint}") from e

    def _format_http_error(self, error: httpx.HTTPStatusError) -> str:
        """Format HTTP error into user-friendly message."""
        status = error.response.status_code

        try:
            data = error.response.json()
            detail = data.get("error", str(data)) if isinstance(data, dict) else str(data)
        except ValueError:
            detail = error.response.text[:200] if error.response.text else ""

        if status == 401:
            return "Authentication failed. Check your Help Scout API key."
        elif status == 403:
            return f"Permission denied. You don't have access to this mailbox. {detail}"
        elif status == 404:
            return f"Resource not found. {detail}"
        elif status == 429:
            return "Rate limit exceeded. Please wait before making more requests."
        elif status >= 500:
            return f"Help Scout server error ({status}). Try again later. {detail}"
        else:
            return f"API error ({status}): {detail}"

    async def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Make a GET request."""
        return await self.request("GET", endpoint, params=params, timeout=timeout)

    async def list_conversations(self, mailbox_id: str | int, page: int = 1) -> ConversationPage:
        """Fetch one page of conversations for a mailbox.

        Raises:
            HelpScoutAPIError: On transport errors or a malformed page
        """
        result = await self.get(
            f"mailboxes/{mailbox_id}/conversations.json", params={"page": page}
        )
        try:
            return ConversationPage.model_validate(result)
        except ValidationError as e:
            raise HelpScoutAPIError(
                f"Malformed conversations page {page} for mailbox {mailbox_id}: "
                f"{e.error_count()} validation error(s)"
            ) from e

    async def list_mailboxes(self) -> list[dict[str, Any]]:
        """List the mailboxes the API key can access."""
        result = await self.get("mailboxes.json")
        return [
            {"id": m.get("id"), "name": m.get("name"), "email": m.get("email")}
            for m in result.get("items", [])
        ]
