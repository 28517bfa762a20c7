"""Inline Logic Engine domain models.

Spans and parsed expressions live for one evaluation pass only. The
context lives for one ``process_messages`` call.
"""

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Span:
    """One balanced ``${...}`` region of a string.

    Attributes:
        raw: The full text, including ``${`` and the closing ``}``.
        content: The text between the delimiters.
        start_index: Offset of ``$`` in the scanned string.
    """

    raw: str
    content: str
    start_index: int

    @property
    def end_index(self) -> int:
        return self.start_index + len(self.raw)


@dataclass(frozen=True)
class Call:
    """A function call such as ``tbl(3, 'name')``; args are unresolved raw text."""

    name: str
    args: tuple[str, ...]


@dataclass(frozen=True)
class RandShorthand:
    """The ``rand:MIN:MAX`` form."""

    minimum: int
    maximum: int


@dataclass(frozen=True)
class VarRef:
    """A bare variable reference."""

    name: str


Expression = Call | RandShorthand | VarRef


@dataclass
class ILEContext:
    """Mutable variable scope for one template invocation.

    Attributes:
        tenant_id: Owner of every row and image this invocation may read.
        variables: Bound names in binding order.
        deadline: ``time.monotonic()`` value after which lookups are skipped.
        expired: Set once the deadline passed or a lookup timed out.
    """

    tenant_id: str
    variables: dict[str, Any] = field(default_factory=dict)
    deadline: float | None = None
    expired: bool = False

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def check_expired(self) -> bool:
        if not self.expired and self.deadline is not None and time.monotonic() >= self.deadline:
            self.expired = True
        return self.expired
