"""
Cost estimation over the static rate tables.

All rates are USD. Raw costs are computed unrounded and rounded to
``COST_PRECISION`` decimals only when a ``CostEstimate`` is produced.
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional

from .models import CostEstimate, ModelSpec, UsageStats

logger = logging.getLogger("ShowScribe.Cost")

COST_PRECISION = 10


def estimate_tokens(text: Optional[str]) -> int:
    """One token per whitespace-delimited word. Deliberately crude."""
    return len(text.split()) if text else 0


def round_cost(value: float) -> float:
    return round(value, COST_PRECISION)


class CostEstimator:
    """
    Pure cost functions over per-provider rate tables.

    A lookup miss yields a zero cost with ``rate_found=False`` and a warning
    on the ``ShowScribe.Cost`` logger.
    """

    def __init__(self, rate_tables: Mapping[str, Iterable[ModelSpec]]):
        self._tables: Dict[str, Dict[str, ModelSpec]] = {
            provider: {spec.name.lower(): spec for spec in specs}
            for provider, specs in rate_tables.items()
        }

    @classmethod
    def from_providers(cls, providers: Mapping[str, object]) -> "CostEstimator":
        """Build from loaded provider configs (anything with a ``models`` list)."""
        return cls({name: list(getattr(cfg, "models", []) or []) for name, cfg in providers.items()})

    @classmethod
    def default(cls) -> "CostEstimator":
        from .config import load_rate_tables
        return cls(load_rate_tables())

    @property
    def providers(self) -> List[str]:
        return list(self._tables)

    def models(self, provider_id: str) -> List[ModelSpec]:
        return list(self._tables.get(provider_id, {}).values())

    def find_model(self, provider_id: str, model_id: str) -> Optional[ModelSpec]:
        spec = self._tables.get(provider_id, {}).get(model_id.lower())
        if spec is None:
            logger.warning(f"No rate found for {provider_id}/{model_id}; reporting cost as 0")
        return spec

    def transcription_cost(self, provider_id: str, model_id: str, duration_seconds: float) -> CostEstimate:
        minutes = duration_seconds / 60
        spec = self.find_model(provider_id, model_id)
        raw = spec.cost_per_minute_usd * minutes if spec else 0.0
        return CostEstimate(
            provider_id=provider_id,
            model_id=model_id,
            billed_quantity=minutes,
            unit="minutes",
            cost=round_cost(raw),
            rate_found=spec is not None,
        )

    def transcription_cost_cents(self, provider_id: str, model_id: str, duration_seconds: float) -> float:
        spec = self.find_model(provider_id, model_id)
        if not spec:
            return 0.0
        return round_cost(spec.cost_per_minute_usd * 100 * duration_seconds / 60)

    def llm_cost(self, provider_id: str, model_id: str, input_tokens: int, output_tokens: int) -> CostEstimate:
        spec = self.find_model(provider_id, model_id)
        raw = 0.0
        if spec:
            rates = spec.cost_per_1M_tokens_usd
            if rates.input or rates.output:
                raw = (input_tokens / 1_000_000) * rates.input + (output_tokens / 1_000_000) * rates.output
        return CostEstimate(
            provider_id=provider_id,
            model_id=model_id,
            billed_quantity=input_tokens + output_tokens,
            unit="tokens",
            cost=round_cost(raw),
            rate_found=spec is not None,
        )

    def usage_cost(
        self,
        provider_id: str,
        model_id: str,
        usage: UsageStats,
        input_text: Optional[str] = None,
        output_text: Optional[str] = None,
    ) -> CostEstimate:
        """LLM cost from reported usage, approximating any missing count from the texts."""
        input_tokens = usage.input_tokens if usage.input_tokens is not None else estimate_tokens(input_text)
        output_tokens = usage.output_tokens if usage.output_tokens is not None else estimate_tokens(output_text)
        return self.llm_cost(provider_id, model_id, input_tokens, output_tokens)

    @staticmethod
    def total(estimates: Iterable[CostEstimate]) -> float:
        return round_cost(sum(e.cost for e in estimates))
