"""Exceptions surfaced by resolution-rank operations."""

from __future__ import annotations


class PolicyViolation(ValueError):
    """A caller-facing rejection: the operation is well formed but not allowed.

    reason is a stable machine-readable code; the message is for humans.
    """

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class NotFound(LookupError):
    """A referenced user, group or resolution does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id
