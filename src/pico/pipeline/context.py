"""Per-request pipeline state."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class PipelineContext:
    """Mutable state threaded through one pipeline run.

    Created fresh for every request and never shared. ``inbound_claims``
    keeps the decoded cookie claims so the server can tell whether the
    token must be re-issued.
    """

    params: dict[str, Any] = field(default_factory=dict)
    result: Any = None
    claims: dict[str, Any] | None = None
    inbound_claims: dict[str, Any] | None = None
    stage: str | None = None

