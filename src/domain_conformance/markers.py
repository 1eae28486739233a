"""
Accessibility markers for constructors.

Python has no private constructors, so entity code states intent with
``@private`` or ``@protected`` on ``__init__``. The checker reads the decorator
names statically; at runtime the markers only record the level on the function.
"""

from collections.abc import Callable
from typing import TypeVar

from domain_conformance.domain.constants import PRIVATE_MARKER, PROTECTED_MARKER

F = TypeVar("F", bound=Callable[..., object])


class _AccessibilityMarker:
    def __init__(self, level: str) -> None:
        self.level = level

    def __call__(self, func: F) -> F:
        func.__accessibility__ = self.level  # type: ignore[attr-defined]
        return func

    def __repr__(self) -> str:
        return f"@{self.level}"


private = _AccessibilityMarker(PRIVATE_MARKER)
protected = _AccessibilityMarker(PROTECTED_MARKER)
