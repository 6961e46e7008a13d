"""Best-effort enrichment steps that must never fail the operation they decorate."""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

APPLIED = "applied"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class EnrichmentOutcome:
    status: str
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def skipped(cls, reason: Optional[str] = None) -> "EnrichmentOutcome":
        return cls(status=SKIPPED, error=reason)

    @property
    def applied(self) -> bool:
        return self.status == APPLIED


@dataclass
class Enriched(Generic[T]):
    """Primary result of an operation plus the outcome of its optional enrichment."""

    primary: T
    enrichment: EnrichmentOutcome = field(default_factory=EnrichmentOutcome.skipped)


def run_best_effort(label: str, fn: Callable[..., Any], *args, **kwargs) -> EnrichmentOutcome:
    """Run ``fn`` and capture any exception as a failed outcome."""
    try:
        value = fn(*args, **kwargs)
    except Exception as exc:
        logger.warning("%s failed, continuing without it: %s", label, exc)
        return EnrichmentOutcome(status=FAILED, error=str(exc))
    return EnrichmentOutcome(status=APPLIED, value=value)
