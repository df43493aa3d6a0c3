import random
import time

from lawnation.domain.diff.engine import DiffPart, compare, compute_summary, describe, stats, summarize, tokenize, word_opcodes


class TestCompare:
    def test_identical_text_is_one_unchanged_part(self):
        parts = compare("The appeal is dismissed.", "The appeal is dismissed.")
        assert parts == [DiffPart("The appeal is dismissed.")]

    def test_replacement_lists_removed_before_added(self):
        parts = compare("the court held", "the court ruled")
        assert [p.kind for p in parts] == ["unchanged", "removed", "added"]
        assert parts[1].value == "held"
        assert parts[2].value == "ruled"

    def test_parts_rebuild_both_texts(self):
        old = "one two three four"
        new = "one three four five"
        parts = compare(old, new)
        assert "".join(p.value for p in parts if not p.added) == old
        assert "".join(p.value for p in parts if not p.removed) == new

    def test_whitespace_differences_are_not_changes(self):
        parts = compare("the  court\nheld", "the court held")
        assert len(parts) == 1
        assert parts[0].kind == "unchanged"
        assert parts[0].value == "the court held"

    def test_empty_old_text_is_all_added(self):
        parts = compare("", "new text")
        assert parts == [DiffPart("new text", added=True)]
        assert compare(None, None) == []

    def test_trailing_insertion_is_one_added_part(self):
        parts = compare("a b", "a b c d")
        assert parts[-1] == DiffPart(" c d", added=True)


class TestSummary:
    def test_word_counts(self):
        counted = stats(compare("one two three", "one three"))
        assert (counted.added, counted.removed, counted.unchanged, counted.total) == (0, 1, 2, 3)

    def test_replacements_count_as_modified(self):
        summary = summarize(compare("the court held", "the court ruled"))
        assert summary.modified == 1
        assert summary.added == 0
        assert summary.removed == 0
        assert summary.unchanged == 2
        assert summary.total == 4

    def test_modified_is_net_of_added_and_removed(self):
        summary = summarize(compare("alpha beta", "gamma delta epsilon"))
        assert summary.modified == 2
        assert summary.added == 1
        assert summary.removed == 0

    def test_compute_summary_carries_description(self):
        payload = compute_summary("a b", "a b c")
        assert payload["added"] == 1
        assert payload["description"] == "1 word added"


class TestDescribe:
    def test_no_changes(self):
        assert describe(summarize(compare("same", "same"))) == "No changes detected"

    def test_pluralization_and_order(self):
        assert describe({"added": 2, "removed": 1, "modified": 0}) == "2 words added, 1 word removed"
        assert describe({"added": 0, "removed": 0, "modified": 3}) == "3 words modified"


def test_tokenize_keeps_whitespace_runs():
    assert tokenize("a  b\n") == ["a", "  ", "b", "\n"]
    assert tokenize(None) == []


def test_compare_is_deterministic():
    old = "The appellant argued that the tribunal erred in law.\n\nAppeal allowed."
    new = "The appellant contended that the tribunal erred in fact.\n\nAppeal dismissed with costs."
    assert compare(old, new) == compare(old, new)
    assert summarize(compare(old, new)).to_dict() == summarize(compare(old, new)).to_dict()


LEGAL_WORDS = (
    "appeal court tribunal held that the respondent appellant statute section clause contract "
    "liability damages negligence evidence witness judgment order costs jurisdiction petition "
    "writ mandamus certiorari bench counsel plaintiff defendant decree injunction remedy breach "
    "duty claim affidavit hearing ruling precedent doctrine equity trust estate lease tenancy"
).split()


def _legal_text(words: int, seed: int, vocabulary=LEGAL_WORDS) -> list[str]:
    rng = random.Random(seed)
    text = []
    for _ in range(words):
        word = rng.choice(vocabulary)
        text.append(word + "." if rng.random() < 0.1 else word)
    return text


class TestLargeDocuments:
    def test_scattered_substitutions_in_long_article(self):
        old_words = _legal_text(30_000, seed=11)
        new_words = list(old_words)
        for n in range(10):
            new_words[1_500 + n * 3_000] = f"amended{n}"

        started = time.perf_counter()
        summary = summarize(compare(" ".join(old_words), " ".join(new_words)))
        elapsed = time.perf_counter() - started

        assert elapsed < 10
        assert (summary.modified, summary.added, summary.removed) == (10, 0, 0)
        assert summary.unchanged == 29_990

    def test_complete_rewrite_is_reported_whole(self):
        old_text = " ".join(_legal_text(5_000, seed=3))
        new_text = " ".join(_legal_text(5_000, seed=4, vocabulary=[f"term{i}" for i in range(40)]))

        started = time.perf_counter()
        counted = stats(compare(old_text, new_text))

        assert time.perf_counter() - started < 5
        assert (counted.added, counted.removed, counted.unchanged) == (5_000, 5_000, 0)

    def test_insertion_keeps_later_text_aligned(self):
        old_words = _legal_text(2_000, seed=5)
        new_words = old_words[:700] + ["newly", "inserted", "words"] + old_words[700:]
        opcodes = word_opcodes(old_words, new_words)
        changed = [op for op in opcodes if op[0] != "equal"]
        assert changed == [("insert", 700, 700, 700, 703)]


def test_middle_insertion_rebuilds_both_texts():
    parts = compare("a c", "a b c")
    assert "".join(p.value for p in parts if not p.added) == "a c"
    assert "".join(p.value for p in parts if not p.removed) == "a b c"
    assert stats(parts).added == 1
