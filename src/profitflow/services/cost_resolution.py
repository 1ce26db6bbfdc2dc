"""
Missing Cost Resolution
========================
The second half of the two-phase orders import.

When an import returns NEEDS_COST_INPUT, the caller builds one
CostRequest per unknown name (each with up to three suggestions from
similarly named products), collects answers, records them and imports
the same text again. Nothing from the paused pass is reused.

Usage:
    resolver = CostResolver(ledger)
    result = ingest_until_resolved(pipeline, text, resolver, ask=my_prompt)
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from profitflow.config import Config, DEFAULT_CONFIG
from profitflow.models.records import IngestResult, IngestStatus
from profitflow.services.ledger import KeyValueLedger
from profitflow.services.name_matcher import NameMatcher, Suggestion
from profitflow.services.order_ingestion import OrderIngestionPipeline
from profitflow.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CostRequest:
    """An unknown product name awaiting a unit cost"""
    name: str
    suggestions: List[Suggestion] = field(default_factory=list)

    def interpret(self, answer: Any) -> Optional[float]:
        """
        Turn an answer into a cost.

        Accepts a number, a numeric string (decimal comma allowed), or
        ``"#<n>"`` to take the cost of the n-th suggestion (1-based).
        Blank or unusable answers give None.
        """
        if answer is None:
            return None
        if isinstance(answer, (int, float)) and not isinstance(answer, bool):
            return float(answer) if math.isfinite(answer) else None

        text = str(answer).strip()
        if not text:
            return None
        if text.startswith('#'):
            try:
                index = int(text[1:]) - 1
            except ValueError:
                return None
            if 0 <= index < len(self.suggestions):
                return self.suggestions[index].cost
            return None

        try:
            value = float(text.replace(',', '.'))
        except ValueError:
            return None
        return value if math.isfinite(value) else None


class CostResolver:
    """Builds cost requests and records the answers."""

    def __init__(
        self,
        ledger: KeyValueLedger,
        matcher: Optional[NameMatcher] = None,
        config: Optional[Config] = None
    ):
        self.ledger = ledger
        self.config = config or DEFAULT_CONFIG
        self.matcher = matcher or NameMatcher(self.config.matching)

    def requests_for(self, missing_names: List[str]) -> List[CostRequest]:
        """One request per name, suggestions drawn from every known cost."""
        pool = {
            name: cost for name, cost in self.ledger.product_costs().items()
            if name not in missing_names and math.isfinite(cost)
        }
        return [
            CostRequest(name=name, suggestions=self.matcher.suggest(name, pool))
            for name in missing_names
        ]

    def apply(self, requests: List[CostRequest], answers: Mapping[str, Any]) -> List[str]:
        """
        Record every usable answer.

        Returns
        -------
        List[str]
            Names still without a cost; empty means the import can be
            replayed.
        """
        unresolved = []
        for request in requests:
            cost = request.interpret(answers.get(request.name))
            if cost is None:
                unresolved.append(request.name)
                continue
            self.ledger.set_product_cost(request.name, cost)
            logger.info(f"Recorded cost {cost} for {request.name!r}")

        if unresolved:
            logger.warning(f"Still missing costs for: {unresolved}")
        return unresolved


def ingest_until_resolved(
    pipeline: OrderIngestionPipeline,
    text: str,
    resolver: CostResolver,
    ask: Callable[[List[CostRequest]], Dict[str, Any]]
) -> IngestResult:
    """
    Import ``text``, asking for missing costs until the import goes through.

    ``ask`` receives the pending requests and returns answers keyed by
    product name. If any answer is missing or unusable the function stops
    and returns the NEEDS_COST_INPUT result; the answers that were usable
    stay recorded.
    """
    result = pipeline.ingest(text)
    while result.status is IngestStatus.NEEDS_COST_INPUT:
        requests = resolver.requests_for(result.missing_names)
        answers = ask(requests) or {}
        if resolver.apply(requests, answers):
            return result
        # Full replay from the same text
        result = pipeline.ingest(text)
    return result
