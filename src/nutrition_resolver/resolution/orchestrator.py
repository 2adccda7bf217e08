"""Resolution orchestrator.

``NutritionResolver`` races every provider that supports a query, filters
and scores what comes back, and hands the survivors to the consensus
resolver. When nothing structured survives it asks the AI fallback, using
the best product name any provider reported. A trusted, high-scoring
candidate ends the race early; a global deadline ends it regardless.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from collections import Counter
from typing import TYPE_CHECKING, Final

from nutrition_resolver.llm.exceptions import LLMError
from nutrition_resolver.observability.logging import get_logger, log_context
from nutrition_resolver.observability.metrics import record_resolution
from nutrition_resolver.providers.local_dataset import LocalDatasetProvider
from nutrition_resolver.resolution.cache import CacheStats, ResultCache
from nutrition_resolver.resolution.consensus import ConsensusResolver
from nutrition_resolver.resolution.constants import AI_SOURCE_ID
from nutrition_resolver.resolution.exceptions import (
    AIFallbackRefusedError,
    AIFallbackUnparseableError,
    CandidateImplausibleError,
)
from nutrition_resolver.resolution.scoring import (
    has_meaningful_name,
    score_candidate,
    source_trust,
)
from nutrition_resolver.resolution.validator import (
    is_plausible,
    reconstruct_calories,
    validate_candidate,
)
from nutrition_resolver.schemas.product import ResolutionOrigin, ResolutionResult


if TYPE_CHECKING:
    from collections.abc import Sequence

    from nutrition_resolver.providers.local_dataset import LocalDataset
    from nutrition_resolver.providers.protocol import Provider
    from nutrition_resolver.resolution.fallback import AIFallbackParser
    from nutrition_resolver.schemas.product import Candidate, Query, ScoredCandidate


logger = get_logger(__name__)

DEFAULT_GLOBAL_DEADLINE: Final[float] = 8.0
DEFAULT_EARLY_EXIT_MIN_SCORE: Final[float] = 0.8
DEFAULT_EARLY_EXIT_MIN_TRUST: Final[float] = 0.8
DEFAULT_BARCODE_MIN_LENGTH: Final[int] = 8
DEFAULT_BARCODE_MAX_LENGTH: Final[int] = 14


@dataclasses.dataclass(slots=True)
class _Collection:
    """Everything gathered during one provider race."""

    scored: list[ScoredCandidate] = dataclasses.field(default_factory=list)
    rejected: list[Candidate] = dataclasses.field(default_factory=list)
    early_exit: bool = False


class NutritionResolver:
    """Resolve a barcode or product name to one nutrition answer.

    Example:
        ```python
        resolver = NutritionResolver(providers, ResultCache(), ai_fallback=parser)
        result = await resolver.resolve(Query.barcode("0123456789012"))
        ```
    """

    def __init__(
        self,
        providers: Sequence[Provider],
        cache: ResultCache | None = None,
        ai_fallback: AIFallbackParser | None = None,
        consensus: ConsensusResolver | None = None,
        *,
        dataset: LocalDataset | None = None,
        global_deadline: float = DEFAULT_GLOBAL_DEADLINE,
        early_exit_min_score: float = DEFAULT_EARLY_EXIT_MIN_SCORE,
        early_exit_min_trust: float = DEFAULT_EARLY_EXIT_MIN_TRUST,
        barcode_min_length: int = DEFAULT_BARCODE_MIN_LENGTH,
        barcode_max_length: int = DEFAULT_BARCODE_MAX_LENGTH,
    ) -> None:
        """Initialize the resolver.

        Args:
            providers: Registered providers, dispatched concurrently.
            cache: Result cache; a private one is created when omitted.
            ai_fallback: Parser used when no structured candidate survives.
            consensus: Final-answer selector.
            dataset: Local table; registered as one more provider.
            global_deadline: Seconds after which collection stops.
            early_exit_min_score: Combined score that can end the race early.
            early_exit_min_trust: Source trust required for an early exit.
            barcode_min_length: Shortest accepted barcode (digits).
            barcode_max_length: Longest accepted barcode (digits).
        """
        self.providers: list[Provider] = list(providers)
        if dataset is not None and not any(
            isinstance(p, LocalDatasetProvider) for p in self.providers
        ):
            self.providers.append(LocalDatasetProvider(dataset))
        self.cache = cache if cache is not None else ResultCache()
        self.ai_fallback = ai_fallback
        self.consensus = consensus or ConsensusResolver()
        self.global_deadline = global_deadline
        self.early_exit_min_score = early_exit_min_score
        self.early_exit_min_trust = early_exit_min_trust
        self.barcode_min_length = barcode_min_length
        self.barcode_max_length = barcode_max_length
        self._source_hits: Counter[str] = Counter()

    async def initialize(self) -> None:
        """Initialize every provider."""
        for provider in self.providers:
            await provider.initialize()
        logger.info(
            "NutritionResolver initialized",
            providers=[p.source_id for p in self.providers],
            ai_fallback=self.ai_fallback is not None,
        )

    async def shutdown(self) -> None:
        """Release provider resources."""
        for provider in self.providers:
            await provider.shutdown()
        logger.debug("NutritionResolver shutdown")

    # =========================================================================
    # Public API
    # =========================================================================

    async def resolve(self, query: Query) -> ResolutionResult:
        """Resolve a query to a single result. Never raises.

        Returns:
            The cached result when fresh, otherwise a new ``consensus``,
            ``best-single``, ``ai-fallback`` or ``unresolved`` result.
        """
        with log_context(query_key=query.key):
            try:
                return await self._resolve(query)
            except Exception:
                logger.exception("Resolution failed unexpectedly")
                record_resolution(ResolutionOrigin.UNRESOLVED.value)
                return ResolutionResult.unresolved(query.key)

    def invalidate(self, query: Query) -> int:
        """Drop the cached result for one query."""
        removed = self.cache.invalidate(query.key)
        logger.info("Cache entry invalidated", query_key=query.key, removed=removed)
        return removed

    def clear_all(self) -> int:
        """Drop every cached result."""
        removed = self.cache.clear()
        logger.info("Cache cleared", removed=removed)
        return removed

    def stats(self) -> CacheStats:
        """Cache size, hit/miss totals and validated candidates per source."""
        return CacheStats(
            entry_count=len(self.cache),
            per_source_hit_counts=dict(self._source_hits),
            cache_hits=self.cache.hits,
            cache_misses=self.cache.misses,
        )

    # =========================================================================
    # Resolution steps
    # =========================================================================

    def _is_valid(self, query: Query) -> bool:
        if not query.value:
            return False
        if query.is_barcode:
            return self.barcode_min_length <= len(query.value) <= self.barcode_max_length
        return True

    async def _resolve(self, query: Query) -> ResolutionResult:
        if not self._is_valid(query):
            logger.info("Rejected invalid query", kind=query.kind.value, value=query.value)
            record_resolution(ResolutionOrigin.UNRESOLVED.value)
            return ResolutionResult.unresolved(query.key)

        cached = self.cache.get(query.key)
        if cached is not None:
            logger.debug("Cache hit", origin=cached.origin.value)
            return cached

        started = time.perf_counter()
        providers = [p for p in self.providers if p.supports(query)]
        collection = await self._collect(query, providers)

        if collection.scored:
            result = self.consensus.resolve(collection.scored, query)
        else:
            result = await self._fallback(query, collection.rejected)

        if result.candidate is not None and not is_plausible(result.candidate):
            logger.warning(
                "Final candidate failed validation",
                origin=result.origin.value,
                source=result.candidate.source_id,
            )
            result = ResolutionResult.unresolved(query.key)

        if result.is_resolved:
            self.cache.put(query.key, result)

        duration = time.perf_counter() - started
        record_resolution(result.origin.value, duration)
        logger.info(
            "Resolution finished",
            origin=result.origin.value,
            confidence=round(result.confidence, 3),
            sources=list(result.sources),
            candidates=len(collection.scored),
            early_exit=collection.early_exit,
            duration_ms=round(duration * 1000, 1),
        )
        return result

    async def _collect(self, query: Query, providers: Sequence[Provider]) -> _Collection:
        """Race the providers until all settle, a trusted answer arrives or time runs out."""
        collection = _Collection()
        if not providers:
            return collection

        tasks: dict[asyncio.Task[Candidate | None], Provider] = {
            asyncio.create_task(p.lookup(query), name=f"lookup:{p.source_id}"): p
            for p in providers
        }
        pending: set[asyncio.Task[Candidate | None]] = set(tasks)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.global_deadline

        try:
            while pending and not collection.early_exit:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    logger.info(
                        "Global deadline reached",
                        deadline=self.global_deadline,
                        pending=sorted(tasks[t].source_id for t in pending),
                    )
                    break
                done, pending = await asyncio.wait(
                    pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
                )
                # Same-tick completions are handled in a fixed order.
                for task in sorted(done, key=lambda t: tasks[t].source_id):
                    self._admit(tasks[task], task, collection)
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        return collection

    def _admit(
        self,
        provider: Provider,
        task: asyncio.Task[Candidate | None],
        collection: _Collection,
    ) -> None:
        """Validate and score one settled lookup."""
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            # Providers must not raise; contain the ones that do.
            logger.error(
                "Provider raised past its boundary",
                source=provider.source_id,
                error=repr(error),
            )
            return

        candidate = task.result()
        if candidate is None:
            return

        candidate = reconstruct_calories(candidate)
        try:
            validate_candidate(candidate)
        except CandidateImplausibleError as e:
            logger.debug(
                "Candidate discarded",
                source=candidate.source_id,
                rule=e.rule,
                reason=str(e),
            )
            collection.rejected.append(candidate)
            return

        scored = score_candidate(candidate)
        collection.scored.append(scored)
        self._source_hits[scored.source_id] += 1

        if (
            scored.combined_score >= self.early_exit_min_score
            and scored.reliability_score >= self.early_exit_min_trust
        ):
            logger.debug(
                "Early exit on trusted candidate",
                source=scored.source_id,
                combined=round(scored.combined_score, 3),
            )
            collection.early_exit = True

    def _fallback_name(self, query: Query, rejected: Sequence[Candidate]) -> str | None:
        """Best product name for the AI: highest-trust provider name, then the query."""
        named = [c for c in rejected if has_meaningful_name(c)]
        if named:
            best = min(named, key=lambda c: (-source_trust(c.source_id), c.source_id))
            return best.product_name
        if not query.is_barcode:
            return query.value
        return None

    async def _fallback(self, query: Query, rejected: Sequence[Candidate]) -> ResolutionResult:
        if self.ai_fallback is None:
            return ResolutionResult.unresolved(query.key)

        product_name = self._fallback_name(query, rejected)
        if product_name is None:
            logger.info("No product name available for AI fallback")
            return ResolutionResult.unresolved(query.key)

        barcode = query.value if query.is_barcode else None
        try:
            estimate = await self.ai_fallback.estimate(product_name, barcode=barcode)
        except AIFallbackRefusedError as e:
            logger.info("AI fallback refused", product_name=product_name, reason=str(e))
            return ResolutionResult.unresolved(query.key)
        except AIFallbackUnparseableError as e:
            logger.warning("AI fallback unparseable", product_name=product_name, reason=str(e))
            return ResolutionResult.unresolved(query.key)
        except TimeoutError:
            logger.warning(
                "AI fallback timed out",
                product_name=product_name,
                timeout=self.ai_fallback.timeout,
            )
            return ResolutionResult.unresolved(query.key)
        except LLMError as e:
            logger.warning(
                "AI fallback transport failed",
                product_name=product_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return ResolutionResult.unresolved(query.key)

        candidate = estimate.candidate
        if barcode is not None and candidate.barcode is None:
            candidate = dataclasses.replace(candidate, barcode=barcode)

        return ResolutionResult(
            query_key=query.key,
            origin=ResolutionOrigin.AI_FALLBACK,
            confidence=estimate.confidence,
            candidate=candidate,
            text_extracted=estimate.text_extracted,
            sources=(AI_SOURCE_ID,),
        )
