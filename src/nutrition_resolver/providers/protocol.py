"""Provider protocol definition.

Every nutrition source, remote or local, is registered with the resolver as
an object satisfying this protocol, so the orchestrator can dispatch them
uniformly and tests can substitute simple fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from nutrition_resolver.schemas.product import Candidate, Query


@runtime_checkable
class Provider(Protocol):
    """Interface for nutrition providers.

    ``lookup`` returns ``None`` for "not found" and for any failure; it must
    not raise.
    """

    source_id: str

    async def initialize(self) -> None:
        """Acquire resources (HTTP connection pools, etc.)."""
        ...

    async def shutdown(self) -> None:
        """Release resources."""
        ...

    def supports(self, query: Query) -> bool:
        """Whether this provider can answer this kind of query."""
        ...

    async def lookup(self, query: Query) -> Candidate | None:
        """Resolve the query to a candidate, or None."""
        ...
