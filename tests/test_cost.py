import unittest

from showscribe.core.cost import CostEstimator, estimate_tokens, round_cost
from showscribe.core.models import ModelSpec, UsageStats


def estimator():
    return CostEstimator({
        "deepgram": [ModelSpec(name="nova-2", cost_per_minute_cents=0.43)],
        "assembly": [ModelSpec(name="best", cost_per_minute_usd=0.0062)],
        "chatgpt": [ModelSpec(name="gpt-4o-mini", cost_per_1M_tokens_usd={"input": 0.15, "output": 0.60})],
        "ollama": [ModelSpec(name="llama3.2:1b")],
    })


class TestTranscriptionCost(unittest.TestCase):
    def setUp(self):
        self.estimator = estimator()

    def test_nova2_ten_minutes(self):
        estimate = self.estimator.transcription_cost("deepgram", "nova-2", 600)
        self.assertAlmostEqual(estimate.cost, 0.043)
        self.assertEqual(estimate.billed_quantity, 10)
        self.assertEqual(estimate.unit, "minutes")
        self.assertTrue(estimate.rate_found)

    def test_nova2_in_cents(self):
        self.assertAlmostEqual(self.estimator.transcription_cost_cents("deepgram", "nova-2", 600), 4.3)

    def test_pure_and_linear(self):
        first = self.estimator.transcription_cost("assembly", "best", 1234.5)
        second = self.estimator.transcription_cost("assembly", "best", 1234.5)
        self.assertEqual(first, second)

        for factor in (0.5, 2, 7.25):
            with self.subTest(factor=factor):
                scaled = self.estimator.transcription_cost("assembly", "best", 1234.5 * factor)
                self.assertAlmostEqual(scaled.cost, first.cost * factor, places=8)

    def test_lookup_is_case_insensitive(self):
        self.assertAlmostEqual(self.estimator.transcription_cost("deepgram", "Nova-2", 60).cost, 0.0043)

    def test_missing_model_is_zero_with_warning(self):
        with self.assertLogs("ShowScribe.Cost", level="WARNING") as logs:
            estimate = self.estimator.transcription_cost("deepgram", "nova-9", 600)
        self.assertEqual(estimate.cost, 0)
        self.assertFalse(estimate.rate_found)
        self.assertIn("nova-9", logs.output[0])

    def test_missing_provider_is_zero(self):
        with self.assertLogs("ShowScribe.Cost", level="WARNING"):
            self.assertEqual(self.estimator.transcription_cost_cents("nobody", "x", 60), 0.0)


class TestLLMCost(unittest.TestCase):
    def setUp(self):
        self.estimator = estimator()

    def test_scenario(self):
        estimate = self.estimator.llm_cost("chatgpt", "gpt-4o-mini", 1000, 4000)
        self.assertAlmostEqual(estimate.cost, 0.00255)
        self.assertEqual(estimate.cost, round_cost(estimate.cost))
        self.assertEqual(estimate.billed_quantity, 5000)
        self.assertEqual(estimate.unit, "tokens")

    def test_free_model(self):
        estimate = self.estimator.llm_cost("ollama", "llama3.2:1b", 1000, 1000)
        self.assertEqual(estimate.cost, 0)
        self.assertTrue(estimate.rate_found)

    def test_missing_model(self):
        with self.assertLogs("ShowScribe.Cost", level="WARNING"):
            estimate = self.estimator.llm_cost("chatgpt", "gpt-99", 1000, 1000)
        self.assertEqual(estimate.cost, 0)
        self.assertFalse(estimate.rate_found)

    def test_usage_cost_approximates_missing_counts(self):
        usage = UsageStats(input_tokens=None, output_tokens=None)
        estimate = self.estimator.usage_cost(
            "chatgpt", "gpt-4o-mini", usage, input_text="one two three", output_text="four five"
        )
        self.assertEqual(estimate.billed_quantity, 5)
        self.assertAlmostEqual(estimate.cost, (3 * 0.15 + 2 * 0.60) / 1_000_000)

    def test_usage_cost_prefers_reported_counts(self):
        usage = UsageStats(input_tokens=1000, output_tokens=4000)
        estimate = self.estimator.usage_cost("chatgpt", "gpt-4o-mini", usage, input_text="ignored", output_text="")
        self.assertAlmostEqual(estimate.cost, 0.00255)

    def test_total(self):
        estimates = [
            self.estimator.transcription_cost("deepgram", "nova-2", 600),
            self.estimator.llm_cost("chatgpt", "gpt-4o-mini", 1000, 4000),
        ]
        self.assertAlmostEqual(CostEstimator.total(estimates), 0.04555)


class TestHelpers(unittest.TestCase):
    def test_estimate_tokens(self):
        self.assertEqual(estimate_tokens("a  b\tc\nd"), 4)
        self.assertEqual(estimate_tokens(""), 0)
        self.assertEqual(estimate_tokens(None), 0)

    def test_cents_converted_at_load(self):
        spec = ModelSpec(name="x", cost_per_minute_cents=1.25, cost_per_1M_tokens_cents={"input": 15, "output": 60})
        self.assertAlmostEqual(spec.cost_per_minute_usd, 0.0125)
        self.assertAlmostEqual(spec.cost_per_1M_tokens_usd.input, 0.15)
        self.assertAlmostEqual(spec.cost_per_1M_tokens_usd.output, 0.60)

    def test_default_rate_tables(self):
        default = CostEstimator.default()
        self.assertIn("deepgram", default.providers)
        self.assertIn("groq", default.providers)
        self.assertAlmostEqual(default.transcription_cost("deepgram", "nova-2", 600).cost, 0.043)
        self.assertAlmostEqual(default.llm_cost("chatgpt", "gpt-4o-mini", 1000, 4000).cost, 0.00255)


if __name__ == "__main__":
    unittest.main()
