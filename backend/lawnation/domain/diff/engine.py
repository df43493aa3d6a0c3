"""
Law Nation Editorial - Word Diff Engine
======================================
Word-level comparison of two plain-text extractions.

Text is tokenized into alternating word and whitespace runs, so the output
re-joins into the original strings. Only words are compared; whitespace is
re-attached afterwards, so reflowed lines and doubled spaces are not reported
as content changes.

Long documents are matched in two passes, the way ``difflib.Differ`` pairs
lines before characters: first over short content-defined segments of words,
then word by word inside the segments that differ.
"""

from __future__ import annotations

import re
import zlib
from dataclasses import asdict, dataclass
from difflib import SequenceMatcher

_TOKEN_RE = re.compile(r"\s+|\S+")
_SENTENCE_END = (".", ";", ":", "!", "?")

SEGMENT_MIN_WORDS = 4
SEGMENT_MAX_WORDS = 48
# Changed regions larger than this (old words x new words) are reported whole.
REFINE_LIMIT = 250_000

Opcode = tuple[str, int, int, int, int]


@dataclass(frozen=True, slots=True)
class DiffPart:
    value: str
    added: bool = False
    removed: bool = False

    @property
    def kind(self) -> str:
        if self.added:
            return "added"
        if self.removed:
            return "removed"
        return "unchanged"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DiffStats:
    added: int
    removed: int
    unchanged: int
    total: int


@dataclass(frozen=True, slots=True)
class DiffSummary:
    """Stored on the change log entry. ``added``/``removed`` are net of ``modified``."""

    added: int
    removed: int
    modified: int
    unchanged: int
    total: int

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["description"] = describe(self)
        return payload


def tokenize(text: str | None) -> list[str]:
    return _TOKEN_RE.findall(text or "")


def _is_boundary(word: str) -> bool:
    return word.endswith(_SENTENCE_END) or zlib.crc32(word.encode("utf-8")) % 8 == 0


def _segments(words: list[str]) -> list[tuple[int, int]]:
    """Cut words into runs whose ends depend on content, not position.

    An insertion therefore only reshapes the segments around it and the
    rest of the document still lines up segment for segment.
    """
    spans: list[tuple[int, int]] = []
    start = 0
    for index, word in enumerate(words):
        size = index - start + 1
        if size >= SEGMENT_MAX_WORDS or (size >= SEGMENT_MIN_WORDS and _is_boundary(word)):
            spans.append((start, index + 1))
            start = index + 1
    if start < len(words):
        spans.append((start, len(words)))
    return spans


def _word_span(spans: list[tuple[int, int]], first: int, last: int, total: int) -> tuple[int, int]:
    if first == last:
        at = spans[first][0] if first < len(spans) else total
        return at, at
    return spans[first][0], spans[last - 1][1]


def word_opcodes(old_words: list[str], new_words: list[str]) -> list[Opcode]:
    """``SequenceMatcher``-style opcodes over word indexes."""
    old_spans = _segments(old_words)
    new_spans = _segments(new_words)
    coarse = SequenceMatcher(
        None,
        [tuple(old_words[a:b]) for a, b in old_spans],
        [tuple(new_words[a:b]) for a, b in new_spans],
        autojunk=False,
    )
    opcodes: list[Opcode] = []
    for tag, i1, i2, j1, j2 in coarse.get_opcodes():
        a1, a2 = _word_span(old_spans, i1, i2, len(old_words))
        b1, b2 = _word_span(new_spans, j1, j2, len(new_words))
        if tag == "equal" or (a2 - a1) * (b2 - b1) > REFINE_LIMIT:
            opcodes.append((tag, a1, a2, b1, b2))
            continue
        fine = SequenceMatcher(None, old_words[a1:a2], new_words[b1:b2], autojunk=False)
        opcodes.extend((t, a1 + x1, a1 + x2, b1 + y1, b1 + y2) for t, x1, x2, y1, y2 in fine.get_opcodes())
    return opcodes


class _PartBuilder:
    """Turns word opcodes back into parts over the original tokens."""

    def __init__(self, old_tokens: list[str], new_tokens: list[str]) -> None:
        self.old_tokens = old_tokens
        self.new_tokens = new_tokens
        self.old_at = [i for i, token in enumerate(old_tokens) if not token.isspace()]
        self.new_at = [i for i, token in enumerate(new_tokens) if not token.isspace()]
        self.old_cursor = 0
        self.new_cursor = 0
        self.parts: list[DiffPart] = []

    def _whitespace(self, old_end: int, new_end: int) -> None:
        # Whitespace present on both sides is unchanged, whatever its characters.
        old_ws = "".join(self.old_tokens[self.old_cursor:old_end])
        new_ws = "".join(self.new_tokens[self.new_cursor:new_end])
        if old_ws and new_ws:
            self.parts.append(DiffPart(new_ws))
        elif old_ws:
            self.parts.append(DiffPart(old_ws, removed=True))
        elif new_ws:
            self.parts.append(DiffPart(new_ws, added=True))
        self.old_cursor, self.new_cursor = old_end, new_end

    def equal(self, i1: int, i2: int, j1: int, j2: int) -> None:
        self._whitespace(self.old_at[i1], self.new_at[j1])
        end = self.new_at[j2 - 1] + 1
        self.parts.append(DiffPart("".join(self.new_tokens[self.new_cursor:end])))
        self.old_cursor, self.new_cursor = self.old_at[i2 - 1] + 1, end

    def change(self, i1: int, i2: int, j1: int, j2: int) -> None:
        old_start = self.old_at[i1] if i2 > i1 else self.old_cursor
        new_start = self.new_at[j1] if j2 > j1 else self.new_cursor
        self._whitespace(old_start, new_start)
        if i2 > i1:
            end = self.old_at[i2 - 1] + 1
            self.parts.append(DiffPart("".join(self.old_tokens[old_start:end]), removed=True))
            self.old_cursor = end
        if j2 > j1:
            end = self.new_at[j2 - 1] + 1
            self.parts.append(DiffPart("".join(self.new_tokens[new_start:end]), added=True))
            self.new_cursor = end

    def finish(self) -> list[DiffPart]:
        self._whitespace(len(self.old_tokens), len(self.new_tokens))
        return _merge(self.parts)


def _merge(parts: list[DiffPart]) -> list[DiffPart]:
    merged: list[DiffPart] = []
    for part in parts:
        if not part.value:
            continue
        if merged and merged[-1].added == part.added and merged[-1].removed == part.removed:
            last = merged.pop()
            part = DiffPart(last.value + part.value, added=part.added, removed=part.removed)
        merged.append(part)
    return merged


def compare(old_text: str | None, new_text: str | None) -> list[DiffPart]:
    """Ordered diff parts; removed parts precede added parts within a replacement."""
    builder = _PartBuilder(tokenize(old_text), tokenize(new_text))
    old_words = [builder.old_tokens[i] for i in builder.old_at]
    new_words = [builder.new_tokens[i] for i in builder.new_at]
    for tag, i1, i2, j1, j2 in word_opcodes(old_words, new_words):
        if tag == "equal":
            builder.equal(i1, i2, j1, j2)
        else:
            builder.change(i1, i2, j1, j2)
    return builder.finish()


def stats(parts: list[DiffPart]) -> DiffStats:
    added = removed = unchanged = 0
    for part in parts:
        words = len(part.value.split())
        if part.added:
            added += words
        elif part.removed:
            removed += words
        else:
            unchanged += words
    return DiffStats(added=added, removed=removed, unchanged=unchanged, total=added + removed + unchanged)


def summarize(parts: list[DiffPart]) -> DiffSummary:
    counted = stats(parts)
    modified = min(counted.added, counted.removed)
    return DiffSummary(
        added=counted.added - modified,
        removed=counted.removed - modified,
        modified=modified,
        unchanged=counted.unchanged,
        total=counted.total,
    )


def _plural(count: int, verb: str) -> str:
    return f"{count} word{'s' if count != 1 else ''} {verb}"


def describe(summary: DiffSummary | dict) -> str:
    if isinstance(summary, dict):
        added = int(summary.get("added") or 0)
        removed = int(summary.get("removed") or 0)
        modified = int(summary.get("modified") or 0)
    else:
        added, removed, modified = summary.added, summary.removed, summary.modified
    pieces = []
    if added:
        pieces.append(_plural(added, "added"))
    if removed:
        pieces.append(_plural(removed, "removed"))
    if modified:
        pieces.append(_plural(modified, "modified"))
    return ", ".join(pieces) if pieces else "No changes detected"


def compute_summary(old_text: str | None, new_text: str | None) -> dict:
    return summarize(compare(old_text, new_text)).to_dict()
