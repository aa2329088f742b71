"""
Chat completion client
Sends the conversation to the completions endpoint and decodes the reply
"""
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from cgpt.errors import ApiError, ConfigError, DecodeError, NetworkError
from cgpt.models.chat import Conversation, Message, MessageResponse

logger = logging.getLogger(__name__)

COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.5
DEFAULT_TIMEOUT = 30.0


def build_messages(history: Conversation, new_message: Message) -> Conversation:
    """The conversation as it will be after this turn: history followed by the new message"""
    return [*history, new_message]


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error text from an API error response"""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.reason_phrase


class ChatClient:
    """
    Client for a single request/response exchange with the chat completion API

    One POST per call: no retries, no streaming.
    """

    def __init__(
        self,
        token: str,
        *,
        url: str = COMPLETIONS_URL,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the chat client.

        Args:
            token: Bearer token for the API
            url: Completions endpoint
            model: Model identifier sent with every request
            temperature: Sampling temperature sent with every request
            timeout: Seconds to wait for the whole exchange
            transport: Optional httpx transport, used to fake the API in tests

        Raises:
            ConfigError: If the token is empty
        """
        if not token:
            raise ConfigError("API token must not be empty")

        self.token = token
        self.url = url
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.transport = transport

    def build_payload(self, messages: Conversation) -> Dict[str, Any]:
        """Request body: model, ordered messages and temperature"""
        payload_messages: List[Dict[str, str]] = [m.model_dump(mode="json") for m in messages]
        return {
            "model": self.model,
            "messages": payload_messages,
            "temperature": self.temperature,
        }

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def send(self, history: Conversation, new_message: Message) -> MessageResponse:
        """
        Send the history plus the new message and return the decoded response.
        A response without choices is returned as is; complete() rejects it.

        Raises:
            NetworkError: On connection failure or timeout
            ApiError: If the API answers with a non-success status
            DecodeError: If the body is not a valid chat completion
        """
        messages = build_messages(history, new_message)
        payload = self.build_payload(messages)

        logger.info(f"Request started: POST {self.url} with {len(messages)} messages (model={self.model})")
        start_time = time.time()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request to {self.url} timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {self.url} failed: {e}") from e

        process_time = time.time() - start_time
        logger.info(
            f"Request completed: POST {self.url} - "
            f"Status: {response.status_code} - "
            f"Process time: {process_time:.4f}s"
        )

        if response.is_error:
            detail = _error_detail(response)
            logger.error(f"API error {response.status_code}: {detail}")
            raise ApiError(f"API returned {response.status_code}: {detail}", status_code=response.status_code)

        try:
            decoded = MessageResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.error(f"Could not decode API response: {e}")
            raise DecodeError(f"Malformed API response: {e.error_count()} validation error(s)") from e

        logger.info(
            f"Response {decoded.id}: {len(decoded.choices)} choice(s), "
            f"usage prompt={decoded.usage.prompt_tokens} "
            f"completion={decoded.usage.completion_tokens} "
            f"total={decoded.usage.total_tokens}"
        )
        return decoded

    async def complete(self, history: Conversation, new_message: Message) -> Message:
        """
        Send and return the first choice's message

        Raises:
            EmptyResponseError: If the response contains no choices
        """
        response = await self.send(history, new_message)
        return response.first_message()
