#!/usr/bin/env python3
"""
Flow Studio Completion Client

Boundary to the remote text-completion service used by every swarm agent.
Talks to any OpenAI-compatible chat completions endpoint.

Features:
- Explicit request descriptor (free text vs. structured output)
- Structured output handling: JSON directive, fence stripping, parse-or-fail
- Retry with linear backoff (retry_delay * attempt)
- Batched dispatch in concurrency-limited windows
- Token usage and wall-clock duration on every result

Example Usage:
    from completion_client import CompletionClient

    client = CompletionClient()

    # Free text
    result = await client.complete("Describe a calm color palette")
    print(result.text)

    # Structured output
    tokens = await client.complete_structured("Return design tokens as JSON")

    # Several prompts, three at a time
    results = await client.complete_batch(["a", "b", "c", "d"])
"""

import json
import time
import asyncio
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional
import logging

from openai import AsyncOpenAI, OpenAIError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from config import (
    APIConfig, CompletionConfig, OutputKind, STRUCTURED_OUTPUT_DIRECTIVE,
)
from errors import ConfigurationError, MalformedOutputError, TransportError

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionRequest:
    """
    A single request to the completion service.

    Attributes:
        prompt: The user prompt
        output: Whether free text or a structured (JSON) value is expected
        system_prompt: Optional system prompt
        model: Model identifier
        max_tokens: Maximum output size
        temperature: Sampling temperature
    """
    prompt: str
    output: OutputKind
    system_prompt: Optional[str] = None
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None


@dataclass
class CompletionResult:
    """
    Result of a completion request.

    Attributes:
        text: Raw response text
        parsed: Parsed structured value (structured requests only)
        usage: Token usage statistics
        model: Model that produced the response
        stop_reason: Why generation stopped
        duration: Wall-clock seconds spent on the call
        output: Kind of output that was requested
    """
    text: str
    parsed: Any = None
    usage: Dict[str, int] = field(default_factory=dict)
    model: str = ""
    stop_reason: str = "stop"
    duration: float = 0.0
    output: OutputKind = OutputKind.TEXT

    @property
    def value(self) -> Any:
        """Parsed value for structured requests, text otherwise"""
        if self.output is OutputKind.STRUCTURED:
            return self.parsed
        return self.text

    @property
    def total_tokens(self) -> int:
        """Get total tokens used"""
        return self.usage.get("total_tokens", 0)


def strip_code_fence(text: str) -> str:
    """Remove a ```json or ``` fence wrapping the whole text"""
    text = text.strip()
    if text.startswith("```json"):
        text = text[len("```json"):]
    elif text.startswith("```"):
        text = text[len("```"):]
    else:
        return text

    text = text.rstrip()
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_structured_output(raw_text: str) -> Any:
    """Parse structured output, raising MalformedOutputError with the raw text"""
    try:
        return json.loads(strip_code_fence(raw_text))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON from completion: {raw_text[:200]}")
        raise MalformedOutputError(f"Invalid JSON response: {e}", raw_text) from e


class CompletionClient:
    """
    Async client for the completion service.

    Missing credentials fail at construction, before any network attempt.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        config: Optional[CompletionConfig] = None,
    ):
        """
        Initialize the completion client.

        Args:
            api_key: API key (defaults to FLOW_STUDIO_API_KEY env var)
            base_url: API base URL (defaults to FLOW_STUDIO_BASE_URL)
            config: Default completion parameters
        """
        api_config = APIConfig.from_env(api_key, base_url)

        self.async_client = AsyncOpenAI(
            api_key=api_config.api_key,
            base_url=api_config.base_url,
            timeout=api_config.timeout,
        )
        self.config = config or CompletionConfig()

        logger.info(f"Initialized CompletionClient with model: {self.config.model}")

    def build_request(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        output: OutputKind = OutputKind.TEXT,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> CompletionRequest:
        """Build a request, filling unset parameters from the client config"""
        return CompletionRequest(
            prompt=prompt,
            output=output,
            system_prompt=system_prompt,
            model=model or self.config.model,
            max_tokens=max_tokens or self.config.max_tokens,
            temperature=temperature if temperature is not None else self.config.temperature,
        )

    def _build_messages(self, request: CompletionRequest) -> List[Dict[str, Any]]:
        """Build the messages array for API request"""
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})
        return messages

    def _parse_response(self, response: Any, request: CompletionRequest) -> CompletionResult:
        """Parse API response into CompletionResult"""
        choice = response.choices[0]

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return CompletionResult(
            text=choice.message.content or "",
            usage=usage,
            model=response.model,
            stop_reason=choice.finish_reason or "stop",
            output=request.output,
        )

    async def _dispatch(self, request: CompletionRequest) -> CompletionResult:
        """Send one request over the wire and return the raw result"""
        params = {
            "model": request.model or self.config.model,
            "messages": self._build_messages(request),
            "max_tokens": request.max_tokens or self.config.max_tokens,
            "temperature": (
                request.temperature if request.temperature is not None
                else self.config.temperature
            ),
        }

        try:
            response = await self.async_client.chat.completions.create(**params)
        except OpenAIError as e:
            raise TransportError(f"Completion service error: {e}") from e

        return self._parse_response(response, request)

    async def send(self, request: CompletionRequest) -> CompletionResult:
        """
        Dispatch a request once, with no retry.

        Structured requests get the JSON directive appended to the prompt and
        their response parsed; a parse failure raises MalformedOutputError.
        """
        wire_request = request
        if request.output is OutputKind.STRUCTURED:
            wire_request = replace(
                request, prompt=f"{request.prompt}\n\n{STRUCTURED_OUTPUT_DIRECTIVE}"
            )

        start = time.monotonic()
        result = await self._dispatch(wire_request)
        result.duration = time.monotonic() - start
        result.output = request.output

        if request.output is OutputKind.STRUCTURED:
            result.parsed = parse_structured_output(result.text)

        return result

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **options
    ) -> CompletionResult:
        """Request free text"""
        request = self.build_request(prompt, system_prompt, OutputKind.TEXT, **options)
        return await self.send(request)

    async def complete_structured(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **options
    ) -> Any:
        """Request a structured value and return it parsed"""
        request = self.build_request(prompt, system_prompt, OutputKind.STRUCTURED, **options)
        result = await self.send(request)
        return result.parsed

    def _is_retryable(self, error: BaseException) -> bool:
        if isinstance(error, ConfigurationError):
            return False
        if isinstance(error, MalformedOutputError):
            return self.config.retry_malformed_output
        return True

    async def complete_with_retry(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        output: OutputKind = OutputKind.TEXT,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        **options
    ) -> CompletionResult:
        """
        Send a request, retrying failures with linear backoff.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt
            output: Expected output kind
            max_retries: Total attempts (default: config.max_retries)
            retry_delay: Backoff unit in seconds; attempt n waits retry_delay * n

        Returns:
            CompletionResult of the first successful attempt. The last
            attempt's exception propagates unchanged.
        """
        request = self.build_request(prompt, system_prompt, output, **options)
        max_retries = max_retries or self.config.max_retries
        retry_delay = retry_delay if retry_delay is not None else self.config.retry_delay

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, max_retries)),
            wait=wait_incrementing(start=retry_delay, increment=retry_delay),
            retry=retry_if_exception(self._is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                return await self.send(request)

    async def complete_batch(
        self,
        prompts: List[str],
        system_prompt: Optional[str] = None,
        output: OutputKind = OutputKind.TEXT,
        max_concurrent: Optional[int] = None,
        **options
    ) -> List[CompletionResult]:
        """
        Process prompts in windows of max_concurrent concurrent calls.

        Each window completes before the next starts, with a fixed pause
        between windows. Results keep input order.
        """
        window = max_concurrent or self.config.max_concurrent
        results: List[CompletionResult] = []

        for start in range(0, len(prompts), window):
            batch = prompts[start:start + window]
            requests = [
                self.build_request(p, system_prompt, output, **options) for p in batch
            ]
            results.extend(await asyncio.gather(*[self.send(r) for r in requests]))

            if start + window < len(prompts):
                await asyncio.sleep(self.config.batch_pause)

        return results

    def stream(self, prompt: str, **options):
        """Streaming responses are not supported"""
        raise NotImplementedError("Streaming not yet implemented")


def create_client(**kwargs) -> CompletionClient:
    """Create a CompletionClient"""
    return CompletionClient(**kwargs)


if __name__ == "__main__":
    async def _demo():
        client = CompletionClient()
        result = await client.complete("Name three accessible brand colors.")
        print(f"Response: {result.text}")
        print(f"Tokens: {result.total_tokens} | Time: {result.duration:.2f}s")

    print("Flow Studio Completion Client Demo")
    print("=" * 50)
    asyncio.run(_demo())
