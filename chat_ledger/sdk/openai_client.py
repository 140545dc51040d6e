"""
Chat completion client.

Sends a message sequence to the configured chat completion endpoint in a
single attempt and returns the reply text and token usage.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import OpenAI

from ..config.loader import ApiSettings, ConfigurationError

CHAT_COMPLETIONS_SUFFIX = "/chat/completions"


class ChatCompletionError(Exception):
    """Raised when a chat completion request fails.

    Attributes:
        detail: Provider-supplied error body when the API returned one
        status_code: HTTP status of a non-success response
    """
    def __init__(self, message: str, detail: Any = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.detail = detail
        self.status_code = status_code


class MissingSettingsError(ChatCompletionError, ConfigurationError):
    """Raised at call time when endpoint, model or credential is unset."""


@dataclass(frozen=True)
class ChatReply:
    """The parts of a chat completion response the client records."""
    content: str
    model: str
    total_tokens: int


def base_url_from_route(route: str) -> str:
    """Turn a full chat completions route into an SDK base URL.

    "https://api.openai.com/v1/chat/completions" → "https://api.openai.com/v1"
    """
    url = route.rstrip("/")
    if url.endswith(CHAT_COMPLETIONS_SUFFIX):
        url = url[: -len(CHAT_COMPLETIONS_SUFFIX)]
    return url


class ChatCompletionClient:
    """Single-attempt chat completion client.

    The underlying OpenAI client is created on first use, so missing
    settings only surface when a request is made. SDK retries are
    disabled.
    """

    def __init__(
        self,
        settings: ApiSettings,
        timeout: Optional[float] = 60.0,
        http_client: Optional[httpx.Client] = None
    ):
        self.settings = settings
        self.timeout = timeout
        self.http_client = http_client
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            try:
                self.settings.require()
            except ConfigurationError as e:
                raise MissingSettingsError(str(e))
            options = {}
            if self.http_client is not None:
                options["http_client"] = self.http_client
            self._client = OpenAI(
                api_key=self.settings.api_key,
                base_url=base_url_from_route(self.settings.endpoint),
                max_retries=0,
                timeout=self.timeout,
                **options
            )
        return self._client

    def complete(self, messages: List[Dict[str, str]]) -> ChatReply:
        """Request a completion for the given messages.

        Args:
            messages: Role/content message dictionaries (required)

        Returns:
            ChatReply with the first choice's text and total tokens

        Raises:
            ValueError: If messages is empty
            ChatCompletionError: On missing settings, transport errors,
                non-success responses or a malformed payload
        """
        if not messages:
            raise ValueError("messages is required and cannot be empty")

        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self.settings.model,
                messages=messages
            )
            return self._to_reply(response)
        except openai.APIStatusError as e:
            detail = e.body if e.body is not None else e.message
            raise ChatCompletionError(
                f"API returned HTTP {e.status_code}: {detail}",
                detail=detail,
                status_code=e.status_code
            )
        except openai.APIError as e:
            raise ChatCompletionError(f"API request failed: {e.message}")
        except (AttributeError, TypeError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            raise ChatCompletionError(f"Malformed API response: {e}")

    def _to_reply(self, response: Any) -> ChatReply:
        usage = getattr(response, "usage", None)
        if usage is None or usage.total_tokens is None:
            raise ChatCompletionError("Malformed API response: missing usage information")
        total_tokens = usage.total_tokens
        if isinstance(total_tokens, bool) or not isinstance(total_tokens, int) or total_tokens < 0:
            raise ChatCompletionError(
                f"Malformed API response: invalid total_tokens {total_tokens!r}"
            )
        if not response.choices:
            raise ChatCompletionError("Malformed API response: no choices returned")

        message = response.choices[0].message
        if message is None:
            raise ChatCompletionError("Malformed API response: choice has no message")
        return ChatReply(
            content=message.content or "",
            model=response.model or self.settings.model,
            total_tokens=total_tokens
        )
