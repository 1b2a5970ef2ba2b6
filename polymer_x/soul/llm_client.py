"""Gemini client with key rotation, adaptive throttling and a strict timeout."""

import asyncio
import os
import random
import time
from typing import Optional

from dotenv import load_dotenv

from polymer_x.contracts.schemas import GenerationResponse, TokenUsage
from polymer_x.errors import RemoteTransportError
from polymer_x.log import get_logger

load_dotenv()

logger = get_logger(__name__)


class ProviderStats:
    """Track request timing and keys for a provider."""
    def __init__(self, name: str, interval: float, keys: Optional[list[str]] = None):
        self.name = name
        self.interval = interval
        self.last_request_time = 0.0
        self.lock = asyncio.Lock()

        # Multi-key support: GEMINI_API_KEY=key1,key2
        if keys is None:
            raw_keys = os.getenv(f"{name.upper()}_API_KEY", "")
            keys = [k.strip() for k in raw_keys.split(",") if k.strip()]
        self.keys = keys
        self.current_key_index = 0

    def get_current_key(self) -> Optional[str]:
        if not self.keys:
            return None
        return self.keys[self.current_key_index]

    def rotate_key(self) -> bool:
        """Rotate to the next key. Returns True if we looped back."""
        if not self.keys:
            return False
        self.current_key_index = (self.current_key_index + 1) % len(self.keys)
        return self.current_key_index == 0


class GeminiClient:
    """Remote backend that asks a Gemini model for an enzyme design."""

    # Shared across instances so concurrent runs respect one rate limit
    _shared_stats: Optional[ProviderStats] = None

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        timeout: float = 60.0,
        stats: Optional[ProviderStats] = None,
    ):
        self.model = model
        self.timeout = timeout
        self.stats = stats or self.shared_stats()

    @classmethod
    def shared_stats(cls) -> ProviderStats:
        if cls._shared_stats is None:
            # 4s = 15 RPM (free tier flash)
            interval = float(os.getenv("GEMINI_MIN_INTERVAL", "4.0"))
            cls._shared_stats = ProviderStats("gemini", interval)
        return cls._shared_stats

    @property
    def has_keys(self) -> bool:
        return bool(self.stats.keys)

    async def _throttle(self) -> None:
        """Enforce the minimum interval between requests."""
        async with self.stats.lock:
            now = time.time()
            elapsed = now - self.stats.last_request_time
            if elapsed < self.stats.interval:
                wait_time = self.stats.interval - elapsed
                # Jitter prevents a thundering herd
                wait_time += random.uniform(0.1, 0.5)
                await asyncio.sleep(wait_time)
            self.stats.last_request_time = time.time()

    async def generate_content(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
    ) -> GenerationResponse:
        """Generate content, rotating keys on rate limits and timeouts.

        ``timeout`` bounds the whole request. Each attempt gets an even share
        of the time left, so a hung key still leaves room for the next one.

        Raises:
            RemoteTransportError: no key configured, a provider error, or every
                key was rate limited or timed out.
        """
        if not self.has_keys:
            raise RemoteTransportError("No GEMINI_API_KEY configured")

        last_error: Optional[BaseException] = None
        key_count = len(self.stats.keys)
        deadline = time.monotonic() + self.timeout
        for attempt in range(key_count):
            if time.monotonic() >= deadline:
                break
            current_key = self.stats.get_current_key()
            try:
                await self._throttle()
                # Split what is left of the budget across the keys not yet tried
                attempt_timeout = max(deadline - time.monotonic(), 0.001) / (key_count - attempt)
                content = await asyncio.wait_for(
                    asyncio.to_thread(self._run_sync, current_key, prompt, system_instruction),
                    timeout=attempt_timeout,
                )
            except Exception as e:
                error_str = str(e)
                is_rate_limit = "429" in error_str or "RESOURCE_EXHAUSTED" in error_str
                is_timeout = isinstance(e, (asyncio.TimeoutError, TimeoutError))

                if is_rate_limit or is_timeout:
                    reason = "rate_limit" if is_rate_limit else "timeout"
                    logger.warning(
                        "gemini.rotate_key",
                        reason=reason,
                        key_index=self.stats.current_key_index,
                    )
                    self.stats.rotate_key()
                    last_error = e
                    continue

                logger.error("gemini.error", error=error_str)
                raise RemoteTransportError(f"Gemini request failed: {e}") from e

            prompt_tok = (len(prompt) + len(system_instruction or "")) // 4
            comp_tok = len(content) // 4
            return GenerationResponse(
                content=content,
                usage=TokenUsage(
                    prompt_tokens=prompt_tok,
                    completion_tokens=comp_tok,
                    total_tokens=prompt_tok + comp_tok,
                    cost_usd=self._calculate_cost(prompt_tok, comp_tok),
                ),
                model_name=self.model,
                provider=self.stats.name,
            )

        raise RemoteTransportError(f"All Gemini keys exhausted. Last error: {last_error}") from last_error

    def _run_sync(self, api_key: str, prompt: str, system_instruction: Optional[str]) -> str:
        # Fresh client per call; runs inside asyncio.to_thread
        import google.genai as genai
        from google.genai import types

        client = genai.Client(api_key=api_key)
        response = client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(system_instruction=system_instruction),
        )
        return response.text or ""

    def _calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Rough cost estimate, per 1M tokens."""
        price_in, price_out = 0.10, 0.40
        cost = (prompt_tokens / 1_000_000 * price_in) + (completion_tokens / 1_000_000 * price_out)
        return round(cost, 6)
