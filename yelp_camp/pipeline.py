"""Ordered request pipeline.

A pipeline is a fixed sequence of named stages. Each stage receives the
request and the mutable per-request :class:`RequestState` and returns either
a response, which ends the pipeline, or ``None`` to continue. Stages listed in
``skip`` are not called at all.

The runner knows nothing about Flask; the stages the application installs
live in :mod:`yelp_camp.middleware`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

from yelp_camp.logging_config import get_logger

logger = get_logger(__name__)

Stage = Callable[[Any, "RequestState"], Optional[Any]]


@dataclass
class RequestState:
    """Values the pipeline computes for the rest of the request.

    Attributes:
        body: Parsed and (once sanitized) cleaned request body.
        query: Parsed and (once sanitized) cleaned query string.
        current_user: Authenticated user, or None for anonymous callers.
        flashes: One-shot messages by category, read for this response.
        completed: Names of the stages that ran, in order.
    """

    body: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    current_user: Optional[Any] = None
    flashes: dict[str, list[str]] = field(default_factory=dict)
    completed: list[str] = field(default_factory=list)


class RequestPipeline:
    """Runs stages in registration order until one returns a response."""

    def __init__(
        self, stages: Iterable[tuple[str, Stage]], skip: Iterable[str] = ()
    ) -> None:
        self._stages: list[tuple[str, Stage]] = []
        seen: set[str] = set()
        for name, stage in stages:
            if name in seen:
                raise ValueError(f"Duplicate pipeline stage: {name}")
            seen.add(name)
            self._stages.append((name, stage))

        self.skip = frozenset(skip)
        unknown = self.skip - seen
        if unknown:
            raise ValueError(f"Cannot skip unknown stage(s): {', '.join(sorted(unknown))}")

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self._stages]

    @property
    def active(self) -> list[str]:
        """Names of the stages that will run."""
        return [name for name in self.names if name not in self.skip]

    def run(self, request: Any, state: RequestState) -> Optional[Any]:
        """Run every active stage in order.

        Args:
            request: The incoming request, passed through to each stage.
            state: Per-request state the stages fill in.

        Returns:
            The first response a stage produced, or None if every stage
            continued.
        """
        for name, stage in self._stages:
            if name in self.skip:
                continue
            response = stage(request, state)
            state.completed.append(name)
            if response is not None:
                logger.debug("Pipeline stopped at stage %s", name)
                return response
        return None
