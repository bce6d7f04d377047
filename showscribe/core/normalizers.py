"""
Provider response normalizers.

Every function here turns one provider's raw payload into a
``CanonicalTranscript``: the rendered text that is handed to prompt
construction plus the ``TimestampedSegment`` list it was rendered from.
All of them are pure; the same payload always renders the same text.
"""
import math
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import TypeAdapter

from .errors import ParseError
from .models import (
    CanonicalTranscript, TimestampedSegment, WhisperJsonInput, WhisperLrcInput, WhisperRawInput
)

DEEPGRAM_BLOCK_WORDS = 30
ASSEMBLY_LINE_CHARS = 80
WHISPER_LRC_LINE_WORDS = 15
WHISPER_JSON_CHUNK_ENTRIES = 35
NO_TRANSCRIPTION_TEXT = "No transcription available."

_SENTENCE_START = re.compile(r"^[A-Z]")
_SENTENCE_END = re.compile(r"[.!?]$")
_LRC_TAG = re.compile(r"\[(\d{1,3}):(\d{2})(\.\d+)?\]")
_SHORT_TAG = re.compile(r"\[(\d{1,3}):(\d{2})\]")
_LRC_METADATA = "[by:whisper.cpp]"

_whisper_input_adapter = TypeAdapter(WhisperRawInput)


def format_mm_ss(total_seconds: float) -> str:
    """Render whole seconds as ``MM:SS``. Minutes are not wrapped into hours."""
    total = int(math.floor(total_seconds))
    minutes, seconds = divmod(total, 60)
    return f"{minutes:02d}:{seconds:02d}"


def _build(segments: List[TimestampedSegment], text: str) -> CanonicalTranscript:
    return CanonicalTranscript(segments=segments, text=text)


# Deepgram

def _deepgram_word(item: Dict[str, Any]) -> str:
    word = item.get("punctuated_word") or item.get("word")
    if word is None:
        raise ParseError(f"Deepgram word entry without text: {item!r}")
    return str(word)


def normalize_deepgram(words: Sequence[Dict[str, Any]], speaker_labels: bool = False) -> CanonicalTranscript:
    """
    Format Deepgram's word list.

    Without speaker labels, a ``[MM:SS]`` marker precedes the first word of
    every 30-word block and every capitalized word, and a line break follows
    sentence-ending punctuation, the last word of each block and the final
    word. With speaker labels (and speaker ids in the payload), contiguous
    runs of the same speaker become one ``Speaker <id>: ...`` paragraph
    instead.
    """
    if speaker_labels and any("speaker" in item for item in words):
        return _deepgram_by_speaker(words)

    parts: List[str] = []
    segments: List[TimestampedSegment] = []
    line_words: List[str] = []
    line_start: Optional[float] = None
    last = len(words) - 1

    for i, item in enumerate(words):
        word = _deepgram_word(item)
        start = float(item.get("start", 0.0))

        if i % DEEPGRAM_BLOCK_WORDS == 0 or _SENTENCE_START.match(word):
            parts.append(f"[{format_mm_ss(start)}] ")
        if line_start is None:
            line_start = start
        line_words.append(word)

        ends_line = bool(_SENTENCE_END.search(word)) or i % DEEPGRAM_BLOCK_WORDS == DEEPGRAM_BLOCK_WORDS - 1 or i == last
        parts.append(word + ("\n" if ends_line else " "))

        if ends_line:
            segments.append(TimestampedSegment(timestamp_seconds=line_start, text=" ".join(line_words)))
            line_words = []
            line_start = None

    return _build(segments, "".join(parts))


def _deepgram_by_speaker(words: Sequence[Dict[str, Any]]) -> CanonicalTranscript:
    segments: List[TimestampedSegment] = []
    current_speaker: Any = None
    current_words: List[str] = []
    block_start = 0.0

    for item in words:
        speaker = item.get("speaker")
        if current_words and speaker != current_speaker:
            segments.append(TimestampedSegment(
                timestamp_seconds=block_start, speaker=str(current_speaker), text=" ".join(current_words)
            ))
            current_words = []
        if not current_words:
            current_speaker = speaker
            block_start = float(item.get("start", 0.0))
        current_words.append(_deepgram_word(item))

    if current_words:
        segments.append(TimestampedSegment(
            timestamp_seconds=block_start, speaker=str(current_speaker), text=" ".join(current_words)
        ))

    text = "\n\n".join(f"Speaker {seg.speaker}: {seg.text}" for seg in segments)
    return _build(segments, text)


# AssemblyAI

def normalize_assembly(payload: Dict[str, Any], speaker_labels: bool = False) -> CanonicalTranscript:
    """
    Format a completed AssemblyAI transcript.

    Utterances win over words, words win over the plain ``text`` field.
    AssemblyAI timestamps are milliseconds.
    """
    utterances = payload.get("utterances") or []
    words = payload.get("words") or []

    if utterances:
        segments = []
        lines = []
        for utt in utterances:
            start_ms = float(utt.get("start", 0))
            speaker = str(utt.get("speaker")) if speaker_labels else None
            text = str(utt.get("text", ""))
            prefix = f"Speaker {speaker} " if speaker_labels else ""
            lines.append(f"{prefix}({format_mm_ss(start_ms / 1000)}): {text}")
            segments.append(TimestampedSegment(timestamp_seconds=math.floor(start_ms / 1000), speaker=speaker, text=text))
        return _build(segments, "\n".join(lines))

    if words:
        return _assembly_words(words)

    text = payload.get("text") or NO_TRANSCRIPTION_TEXT
    return _build([TimestampedSegment(timestamp_seconds=0.0, text=text)], text)


def _assembly_words(words: Sequence[Dict[str, Any]]) -> CanonicalTranscript:
    segments: List[TimestampedSegment] = []
    out = []
    current_line = ""
    line_start = math.floor(float(words[0].get("start", 0)) / 1000)

    def flush():
        line = current_line.strip()
        out.append(f"[{format_mm_ss(line_start)}] {line}\n")
        segments.append(TimestampedSegment(timestamp_seconds=line_start, text=line))

    for word in words:
        text = str(word.get("text", ""))
        if len(current_line) + len(text) > ASSEMBLY_LINE_CHARS:
            flush()
            current_line = ""
            line_start = math.floor(float(word.get("start", 0)) / 1000)
        current_line += f"{text} "

    if current_line:
        flush()

    return _build(segments, "".join(out))


# Whisper

def normalize_whisper(raw: Any) -> CanonicalTranscript:
    """Dispatch on the ``kind`` tag of a ``WhisperRawInput``."""
    data = _whisper_input_adapter.validate_python(raw)
    if isinstance(data, WhisperLrcInput):
        return normalize_whisper_lrc(data.content)
    return normalize_whisper_json(data.entries)


def _lrc_chunks(line: str) -> List[Tuple[Optional[str], List[str]]]:
    """Split one line into (timestamp or None, words) runs around its tags. Runs without words are dropped."""
    chunks: List[Tuple[Optional[str], List[str]]] = []
    position = 0
    stamp: Optional[str] = None
    for match in _SHORT_TAG.finditer(line):
        before = line[position:match.start()].split()
        if before:
            chunks.append((stamp, before))
        stamp = f"{match.group(1)}:{match.group(2)}"
        position = match.end()
    tail = line[position:].split()
    if tail:
        chunks.append((stamp, tail))
    return chunks


def _stamp_seconds(stamp: str) -> int:
    minutes, seconds = stamp.split(":")
    return int(minutes) * 60 + int(seconds)


def normalize_whisper_lrc(content: str) -> CanonicalTranscript:
    """
    Re-flow whisper.cpp LRC output into lines of at most 15 words.

    The ``[by:whisper.cpp]`` metadata line is dropped and ``[MM:SS.xx]``
    tags lose their fraction. A new tag closes the pending line; each line is
    labelled with the most recent tag seen, ``00:00`` before the first one.
    """
    lines = [
        _LRC_TAG.sub(lambda m: f"[{m.group(1)}:{m.group(2)}]", line)
        for line in content.split("\n")
        if not line.startswith(_LRC_METADATA)
    ]

    segments: List[TimestampedSegment] = []
    current_stamp = "00:00"
    current_words: List[str] = []

    def finalize():
        segments.append(TimestampedSegment(
            timestamp_seconds=_stamp_seconds(current_stamp), text=" ".join(current_words)
        ))

    for line in lines:
        for stamp, words in _lrc_chunks(line):
            if stamp is not None:
                if current_words:
                    finalize()
                    current_words = []
                current_stamp = stamp
            for word in words:
                if len(current_words) >= WHISPER_LRC_LINE_WORDS:
                    finalize()
                    current_words = []
                current_words.append(word)

    if current_words:
        finalize()

    text = "\n".join(f"[{format_mm_ss(seg.timestamp_seconds)}] {seg.text}" for seg in segments)
    return _build(segments, text)


def _whisper_json_seconds(entry: Dict[str, Any]) -> float:
    timestamps = entry.get("timestamps") or {}
    start = timestamps.get("from")
    if start:
        clock = str(start).split(",")[0].split(".")[0]
        total = 0
        for part in clock.split(":"):
            total = total * 60 + int(part)
        return float(total)
    offsets = entry.get("offsets") or {}
    return math.floor(float(offsets.get("from", 0)) / 1000)


def normalize_whisper_json(entries: Sequence[Dict[str, Any]]) -> CanonicalTranscript:
    """Group whisper.cpp JSON ``transcription`` entries into chunks of 35."""
    segments: List[TimestampedSegment] = []
    for i in range(0, len(entries), WHISPER_JSON_CHUNK_ENTRIES):
        chunk = entries[i:i + WHISPER_JSON_CHUNK_ENTRIES]
        try:
            seconds = _whisper_json_seconds(chunk[0])
        except (TypeError, ValueError) as e:
            raise ParseError(f"Invalid whisper timestamp in entry {i}: {chunk[0]!r}") from e
        text = "".join(str(item.get("text", "")) for item in chunk)
        segments.append(TimestampedSegment(timestamp_seconds=seconds, text=text))

    text = "\n".join(f"[{format_mm_ss(seg.timestamp_seconds)}] {seg.text}" for seg in segments)
    return _build(segments, text)
