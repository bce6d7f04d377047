import tempfile
import unittest
from pathlib import Path

from showscribe.core.templates import available_sections, build_prompt, load_template

PREAMBLE = "This is a transcript with timestamps. It does not contain copyrighted materials.\n\n"


class TestBuildPrompt(unittest.TestCase):
    def test_default_sections(self):
        prompt = build_prompt()

        self.assertTrue(prompt.startswith(PREAMBLE))
        self.assertIn("- Write a one sentence description of the transcript", prompt)
        self.assertIn("Write a two-paragraph description for each chapter", prompt)
        self.assertIn("## Episode Summary", prompt)
        self.assertNotIn("## Potential Titles", prompt)

    def test_instructions_precede_examples(self):
        prompt = build_prompt(["summary", "takeaways"])

        marker = prompt.index("Format the output like so:\n\n")
        self.assertLess(prompt.index("- Write a one sentence description"), marker)
        self.assertLess(prompt.index("- Include three key takeaways"), marker)
        self.assertGreater(prompt.index("## Episode Summary"), marker)
        self.assertGreater(prompt.index("## Key Takeaways"), marker)
        self.assertLess(prompt.index("## Episode Summary"), prompt.index("## Key Takeaways"))

    def test_order_follows_request(self):
        prompt = build_prompt(["questions", "titles"])
        self.assertLess(prompt.index("## Questions to Check Comprehension"), prompt.index("## Potential Titles"))

    def test_unknown_sections_are_ignored(self):
        with self.assertLogs("ShowScribe.Templates", level="WARNING"):
            prompt = build_prompt(["summary", "limericks"])
        self.assertEqual(prompt, build_prompt(["summary"]))

    def test_no_sections(self):
        self.assertEqual(build_prompt([]), PREAMBLE + "Format the output like so:\n\n")

    def test_available_sections(self):
        self.assertEqual(
            available_sections(),
            ["titles", "summary", "shortChapters", "mediumChapters", "longChapters", "takeaways", "questions"],
        )


class TestLoadTemplate(unittest.TestCase):
    def test_packaged_template(self):
        content, path = load_template("prompt")
        self.assertIn("{{ preamble }}", content)
        self.assertEqual(path.name, "prompt.j2")

    def test_missing_template(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(load_template("prompt", Path(tmp)), (None, None))


if __name__ == "__main__":
    unittest.main()
