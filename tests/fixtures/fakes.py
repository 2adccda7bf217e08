"""In-memory stand-ins for providers and LLM clients.

Both satisfy the same protocols as the real implementations so the
orchestrator can be exercised without any network access.
"""

from __future__ import annotations

import asyncio
from typing import Any

from nutrition_resolver.llm.models import LLMCompletionResult
from nutrition_resolver.schemas.product import Candidate, Query, QueryKind


class FakeProvider:
    """Provider answering with a fixed candidate after an optional delay.

    ``hang=True`` never answers; the provider records whether it was
    cancelled so tests can assert that stragglers are cleaned up.
    """

    def __init__(
        self,
        source_id: str,
        candidate: Candidate | None = None,
        *,
        delay: float = 0.0,
        hang: bool = False,
        error: Exception | None = None,
        kinds: frozenset[QueryKind] = frozenset(QueryKind),
    ) -> None:
        self.source_id = source_id
        self.candidate = candidate
        self.delay = delay
        self.hang = hang
        self.error = error
        self.kinds = kinds
        self.calls = 0
        self.cancelled = False
        self.initialized = False
        self.closed = False

    async def initialize(self) -> None:
        self.initialized = True

    async def shutdown(self) -> None:
        self.closed = True

    def supports(self, query: Query) -> bool:
        return query.kind in self.kinds

    async def lookup(self, query: Query) -> Candidate | None:
        self.calls += 1
        try:
            if self.hang:
                await asyncio.Event().wait()
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.candidate


class FakeLLMClient:
    """LLM client returning canned replies in order (the last one repeats)."""

    def __init__(
        self,
        *replies: str,
        error: Exception | None = None,
        delay: float = 0.0,
        model: str = "fake-model",
    ) -> None:
        self.replies = list(replies) or ["UNKNOWN"]
        self.error = error
        self.delay = delay
        self.model = model
        self.prompts: list[str] = []
        self.calls: list[dict[str, Any]] = []

    async def initialize(self) -> None:
        return None

    async def shutdown(self) -> None:
        return None

    async def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> LLMCompletionResult:
        self.prompts.append(prompt)
        self.calls.append({"model": model, "system": system, "options": options})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        index = min(len(self.prompts) - 1, len(self.replies) - 1)
        return LLMCompletionResult(raw_response=self.replies[index], model=self.model)
