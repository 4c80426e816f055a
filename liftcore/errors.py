from __future__ import annotations

from typing import Optional


class MalformedDefinition(ValueError):
    """A program definition (or its start weights) violates a structural precondition.

    Raised instead of producing progression numbers from bad data. Callers
    should reject the definition upstream rather than retry.
    """

    def __init__(self, message: str, *, slot_id: Optional[str] = None):
        super().__init__(message)
        self.slot_id = slot_id


class UnknownRuleKind(MalformedDefinition):
    """A progression rule names a kind this engine does not implement.

    Usually means the definition was authored for a newer rule vocabulary.
    """

    def __init__(self, kind: object, *, slot_id: Optional[str] = None):
        super().__init__(f"unknown progression rule kind: {kind!r}", slot_id=slot_id)
        self.kind = kind
