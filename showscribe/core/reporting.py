import logging
from typing import Any, Dict, List, Optional

from rich.table import Table

from ..constants import TRANSCRIPTION_PROVIDERS
from .console import console as console_manager
from .cost import CostEstimator

logger = logging.getLogger("ShowScribe.Reporting")


class CostReporter:
    def __init__(self, estimator: CostEstimator):
        self.estimator = estimator

    def generate_summary(
        self,
        minutes: Optional[float] = None,
        input_tokens: Optional[int] = None,
        output_tokens: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """One row per rate-table model that applies to the given workload."""
        wants_tokens = input_tokens is not None or output_tokens is not None
        rows = []
        for provider_id in self.estimator.providers:
            is_transcription = provider_id in TRANSCRIPTION_PROVIDERS
            for spec in self.estimator.models(provider_id):
                if is_transcription and minutes is not None:
                    estimate = self.estimator.transcription_cost(provider_id, spec.name, minutes * 60)
                elif not is_transcription and wants_tokens:
                    estimate = self.estimator.llm_cost(provider_id, spec.name, input_tokens or 0, output_tokens or 0)
                else:
                    continue

                rows.append({
                    "provider": provider_id,
                    "model": spec.name,
                    "display_name": spec.display_name or spec.name,
                    "quantity": estimate.billed_quantity,
                    "unit": estimate.unit,
                    "cost_usd": estimate.cost,
                })
        return rows

    def print_report(
        self,
        minutes: Optional[float] = None,
        input_tokens: Optional[int] = None,
        output_tokens: Optional[int] = None,
    ):
        """Print the estimates as a rich table."""
        rows = self.generate_summary(minutes, input_tokens, output_tokens)

        if minutes is not None:
            title = f"ShowScribe Cost Estimate ({minutes:g} minutes of audio)"
        else:
            title = f"ShowScribe Cost Estimate ({input_tokens or 0:,} input / {output_tokens or 0:,} output tokens)"

        table = Table(title=title)
        table.add_column("Provider", style="info")
        table.add_column("Model")
        table.add_column("Quantity", justify="right")
        table.add_column("Cost (USD)", justify="right", style="cost")

        for row in sorted(rows, key=lambda r: (r["provider"], r["cost_usd"])):
            quantity = f"{row['quantity']:,.2f} min" if row["unit"] == "minutes" else f"{int(row['quantity']):,} tok"
            table.add_row(row["provider"], row["display_name"], quantity, f"${row['cost_usd']:.4f}")

        console_manager.print(table)
        if not rows:
            logger.warning("No models matched the requested workload")
