import math
import unittest

from showscribe.core.errors import ParseError
from showscribe.core.models import WhisperJsonInput, WhisperLrcInput
from showscribe.core.normalizers import (
    NO_TRANSCRIPTION_TEXT,
    format_mm_ss,
    normalize_assembly,
    normalize_deepgram,
    normalize_whisper,
    normalize_whisper_json,
    normalize_whisper_lrc,
)


def lowercase_words(n):
    return [{"word": f"word{i}", "start": float(i)} for i in range(n)]


class TestFormatting(unittest.TestCase):
    def test_format_mm_ss(self):
        self.assertEqual(format_mm_ss(0), "00:00")
        self.assertEqual(format_mm_ss(65.9), "01:05")
        self.assertEqual(format_mm_ss(3725), "62:05")


class TestDeepgram(unittest.TestCase):
    def test_block_markers_for_plain_words(self):
        for n in (1, 29, 30, 31, 60, 75, 100):
            with self.subTest(n=n):
                text = normalize_deepgram(lowercase_words(n)).text
                self.assertEqual(text.count("["), math.ceil(n / 30))
                self.assertEqual(text.count("\n"), math.ceil(n / 30))

    def test_capitalized_words_and_sentence_ends(self):
        words = [
            {"word": "hello", "punctuated_word": "Hello", "start": 0.5},
            {"word": "world", "punctuated_word": "world.", "start": 1.0},
            {"word": "again", "start": 65.0},
        ]
        transcript = normalize_deepgram(words)

        self.assertEqual(transcript.text, "[00:00] Hello world.\nagain\n")
        self.assertEqual([s.text for s in transcript.segments], ["Hello world.", "again"])
        self.assertEqual(transcript.segments[1].timestamp_seconds, 65.0)

    def test_speaker_mode_groups_runs(self):
        words = [
            {"word": "hi", "punctuated_word": "Hi", "start": 0.0, "speaker": 0},
            {"word": "there", "start": 0.4, "speaker": 0},
            {"word": "hello", "start": 1.2, "speaker": 1},
            {"word": "back", "start": 1.6, "speaker": 0},
        ]
        transcript = normalize_deepgram(words, speaker_labels=True)

        self.assertEqual(transcript.text, "Speaker 0: Hi there\n\nSpeaker 1: hello\n\nSpeaker 0: back")
        self.assertNotIn("[", transcript.text)
        self.assertEqual(transcript.segments[1].render(), "Speaker 1: hello")

    def test_speaker_flag_without_speaker_ids_uses_timestamps(self):
        transcript = normalize_deepgram(lowercase_words(3), speaker_labels=True)
        self.assertTrue(transcript.text.startswith("[00:00] "))

    def test_word_without_text_is_parse_error(self):
        with self.assertRaises(ParseError):
            normalize_deepgram([{"start": 0.0}])

    def test_deterministic(self):
        words = lowercase_words(45)
        self.assertEqual(normalize_deepgram(words), normalize_deepgram(words))


class TestAssembly(unittest.TestCase):
    def test_utterances_win_over_words(self):
        payload = {
            "utterances": [
                {"speaker": "A", "start": 61500, "text": "Hi there"},
                {"speaker": "B", "start": 125000, "text": "Welcome back"},
            ],
            "words": [{"text": "ignored", "start": 0}],
            "text": "ignored too",
        }
        labelled = normalize_assembly(payload, speaker_labels=True)
        self.assertEqual(labelled.text, "Speaker A (01:01): Hi there\nSpeaker B (02:05): Welcome back")

        plain = normalize_assembly(payload)
        self.assertEqual(plain.text, "(01:01): Hi there\n(02:05): Welcome back")
        self.assertNotIn("ignored", plain.text)

    def test_words_wrap_at_eighty_characters(self):
        words = [{"text": "abcd", "start": i * 1000} for i in range(20)]
        transcript = normalize_assembly({"words": words})

        expected = "[00:00] " + " ".join(["abcd"] * 16) + "\n[00:16] " + " ".join(["abcd"] * 4) + "\n"
        self.assertEqual(transcript.text, expected)
        self.assertEqual(len(transcript.segments), 2)

    def test_text_fallback_verbatim(self):
        transcript = normalize_assembly({"utterances": [], "words": [], "text": "Just the text."})
        self.assertEqual(transcript.text, "Just the text.")

    def test_nothing_available(self):
        self.assertEqual(normalize_assembly({}).text, NO_TRANSCRIPTION_TEXT)


class TestWhisperLrc(unittest.TestCase):
    def test_strips_metadata_and_fractions(self):
        content = "[by:whisper.cpp]\n[00:00.00] hello world\n[00:05.50] foo bar\n"
        transcript = normalize_whisper_lrc(content)
        self.assertEqual(transcript.text, "[00:00] hello world\n[00:05] foo bar")
        self.assertEqual(transcript.segments[1].timestamp_seconds, 5)

    def test_lines_capped_at_fifteen_words(self):
        words = " ".join(f"w{i}" for i in range(20))
        transcript = normalize_whisper_lrc(f"[01:10.25] {words}")
        lines = transcript.text.split("\n")

        self.assertEqual(len(lines), 2)
        self.assertEqual(len(lines[0].split()) - 1, 15)
        self.assertTrue(lines[1].startswith("[01:10] w15"))

    def test_defaults_to_zero_before_first_tag(self):
        transcript = normalize_whisper_lrc("intro words\n[00:03.00] later")
        self.assertEqual(transcript.text, "[00:00] intro words\n[00:03] later")

    def test_multiple_tags_on_one_line(self):
        transcript = normalize_whisper_lrc("[00:01.00] one two [00:02.00] three")
        self.assertEqual(transcript.text, "[00:01] one two\n[00:02] three")

    def test_tag_without_words_is_ignored(self):
        transcript = normalize_whisper_lrc("[00:01.00] one\n[00:05.00]\ntwo three")
        self.assertEqual(transcript.text, "[00:01] one two three")


class TestWhisperJson(unittest.TestCase):
    def entries(self, n):
        return [{"text": f" w{i}", "timestamps": {"from": f"00:00:{i:02d},500"}} for i in range(n)]

    def test_chunks_of_thirty_five(self):
        transcript = normalize_whisper_json(self.entries(40))
        lines = transcript.text.split("\n")

        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("[00:00]  w0 w1"))
        self.assertTrue(lines[1].startswith("[00:35]  w35"))
        self.assertEqual(transcript.segments[0].text, "".join(f" w{i}" for i in range(35)))

    def test_hours_fold_into_minutes(self):
        transcript = normalize_whisper_json([{"text": " late", "timestamps": {"from": "01:02:03,000"}}])
        self.assertEqual(transcript.text, "[62:03]  late")

    def test_offsets_fallback(self):
        transcript = normalize_whisper_json([{"text": "x", "offsets": {"from": 95000}}])
        self.assertEqual(transcript.text, "[01:35] x")

    def test_bad_timestamp_is_parse_error(self):
        with self.assertRaises(ParseError):
            normalize_whisper_json([{"text": "x", "timestamps": {"from": "aa:bb"}}])


class TestWhisperDispatch(unittest.TestCase):
    def test_dispatch_on_kind(self):
        lrc = normalize_whisper({"kind": "lrc", "content": "[00:01.00] hi"})
        self.assertEqual(lrc.text, "[00:01] hi")

        json_input = WhisperJsonInput(entries=[{"text": "hi", "timestamps": {"from": "00:00:02,000"}}])
        self.assertEqual(normalize_whisper(json_input).text, "[00:02] hi")

        self.assertEqual(normalize_whisper(WhisperLrcInput(content="")).text, "")


if __name__ == "__main__":
    unittest.main()
