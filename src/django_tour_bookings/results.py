"""Result types separating the primary outcome from best-effort side effects.

A service returns ``ActionResult`` only when its primary write succeeded.
Failures of the primary write are raised as exceptions; failures of
notifications, credential rendering, activity writes or the customer link
are recorded here instead, so callers can tell "saved, but the email
failed" apart from "not saved".
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class SideEffect:
    """Outcome of one best-effort side effect.

    Attributes:
        kind: notification, credential, activity or customer_link
        ok: Whether it succeeded
        detail: Provider message id on success, error text on failure
    """

    kind: str
    ok: bool
    detail: str = ""

    @classmethod
    def succeeded(cls, kind: str, detail: str = "") -> "SideEffect":
        return cls(kind=kind, ok=True, detail=detail)

    @classmethod
    def failed(cls, kind: str, detail: str) -> "SideEffect":
        return cls(kind=kind, ok=False, detail=detail)


@dataclass
class ActionResult:
    """Result of a booking operation whose primary write took effect.

    Attributes:
        booking: The booking as persisted (None after a delete)
        side_effects: Best-effort outcomes, in the order they ran
        value: Optional operation-specific payload (e.g. a check-in credential)
    """

    booking: Any
    side_effects: list[SideEffect] = field(default_factory=list)
    value: Optional[Any] = None

    def add(self, effect: Optional[SideEffect]) -> None:
        if effect is not None:
            self.side_effects.append(effect)

    @property
    def failures(self) -> list[SideEffect]:
        return [effect for effect in self.side_effects if not effect.ok]

    @property
    def fully_succeeded(self) -> bool:
        return not self.failures

    def effect(self, kind: str) -> Optional[SideEffect]:
        """Most recent side effect of the given kind, if any."""
        for effect in reversed(self.side_effects):
            if effect.kind == kind:
                return effect
        return None

    @property
    def notification_sent(self) -> bool:
        effect = self.effect("notification")
        return bool(effect and effect.ok)
