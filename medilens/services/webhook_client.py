# medilens/services/webhook_client.py
import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

from medilens.core.errors import (
    NetworkError,
    NotConfiguredError,
    ServerError,
    ValidationError,
    WebhookTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": "MediLens-Chatbot/1.0",
}


def _status_error(status: int, body: str) -> ServerError:
    if status == 404:
        message = (
            "Webhook not found (404): The webhook URL may be incorrect or the endpoint doesn't exist.\n"
            "Try:\n"
            "1. Check if URL should use '/webhook/' instead of '/webhook-test/'\n"
            "2. Verify the webhook ID in your workflow\n"
            "3. Ensure the webhook is activated"
        )
    elif status == 500:
        message = (
            "Workflow error (500): There's an error in the AI workflow.\n"
            "Steps to fix:\n"
            "1. Open the workflow service\n"
            "2. Check the 'Executions' tab for failed executions\n"
            "3. Review the error details in the execution log\n"
            "4. Common issues: missing nodes, incorrect data mapping, or authentication problems"
        )
    elif status == 403:
        message = (
            "Access forbidden (403): Check the webhook authentication settings.\n"
            "Ensure:\n"
            "1. Webhook authentication matches what MediLens sends\n"
            "2. CORS is properly configured\n"
            "3. No IP restrictions are blocking this server"
        )
    else:
        message = f"HTTP error {status}: {body}"
    return ServerError(message, upstream_status=status, body=body)


class WebhookClient:
    """
    Posts chat payloads to the external AI workflow and returns the raw body.

    The whole call (connect, send, read) is bounded by ``timeout`` seconds and
    cancelled when it runs over.
    """

    def __init__(
        self,
        url: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = (url or "").strip()
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.url)

    def _check_url(self):
        if not self.url:
            raise NotConfiguredError(
                "The AI assistant is not configured. Please set MEDILENS_WEBHOOK_URL on the server."
            )
        parsed = urlparse(self.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError(
                "Invalid webhook URL format. Please check MEDILENS_WEBHOOK_URL on the server."
            )

    async def post(self, payload: Dict[str, Any]) -> str:
        self._check_url()
        logger.info("Sending request to webhook %s", self.url)
        logger.debug("Webhook payload: %s", payload)

        try:
            # same bound per phase; wait_for caps the whole call
            async with httpx.AsyncClient(
                transport=self._transport,
                headers=DEFAULT_HEADERS,
                timeout=httpx.Timeout(self.timeout),
            ) as client:
                response = await asyncio.wait_for(
                    client.post(self.url, json=payload),
                    timeout=self.timeout,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.error("Webhook timed out after %.1fs: %s", self.timeout, self.url)
            raise WebhookTimeoutError(
                "Request timeout: The webhook is taking too long to respond. "
                "Please check the AI workflow."
            ) from exc
        except httpx.RequestError as exc:
            logger.error("Cannot reach webhook %s: %s", self.url, exc)
            raise NetworkError(
                "Network error: Cannot reach webhook URL. Please verify:\n"
                f"1. The URL is correct: {self.url}\n"
                "2. The workflow service is running and accessible\n"
                "3. The webhook endpoint exists and is enabled"
            ) from exc

        logger.info("Webhook responded with status %s", response.status_code)
        if not response.is_success:
            body = response.text
            logger.error("Webhook error response (%s): %s", response.status_code, body)
            raise _status_error(response.status_code, body)

        logger.debug("Raw webhook response: %s", response.text)
        return response.text
