"""
Text comparison helpers used for OCR output.

Similarity is based on the Levenshtein edit distance over the whole string.
Word changes are found by zipping the two word lists by index; there is no
sequence alignment, so an insertion early in the text shows up as a run of
"changed" words after it.
"""

import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List

WHITESPACE_RUN = re.compile(r'\s+')

ADDED = "added"
REMOVED = "removed"
CHANGED = "changed"


@dataclass(frozen=True)
class TextChange:
    position: int
    from_word: str
    to_word: str
    kind: str

    def to_dict(self) -> Dict[str, Any]:
        return {'position': self.position, 'from': self.from_word, 'to': self.to_word, 'kind': self.kind}


@dataclass(frozen=True)
class TextComparisonResult:
    similarity: float
    changes: List[TextChange] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'similarity': self.similarity, 'changes': [c.to_dict() for c in self.changes]}


@dataclass(frozen=True)
class OCRTextComparison(TextComparisonResult):
    text_a: str = ""
    text_b: str = ""
    words_a: int = 0
    words_b: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['changes'] = [c.to_dict() for c in self.changes]
        return data


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit insert, delete and substitute costs"""
    previous = list(range(len(a) + 1))
    for j in range(1, len(b) + 1):
        current = [j] + [0] * len(a)
        for i in range(1, len(a) + 1):
            if a[i - 1] == b[j - 1]:
                current[i] = previous[i - 1]
            else:
                current[i] = min(previous[i - 1], current[i - 1], previous[i]) + 1
        previous = current
    return previous[len(a)]


def text_similarity(a: str, b: str) -> float:
    """1 - distance / longest length, two empty strings are identical"""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def split_words(text: str) -> List[str]:
    return WHITESPACE_RUN.split(text)


def detect_text_changes(a: str, b: str) -> List[TextChange]:
    """Compare words position by position"""
    words_a = split_words(a)
    words_b = split_words(b)
    changes = []
    for i in range(max(len(words_a), len(words_b))):
        word_a = words_a[i] if i < len(words_a) else ""
        word_b = words_b[i] if i < len(words_b) else ""
        if word_a == word_b:
            continue
        if not word_a:
            kind = ADDED
        elif not word_b:
            kind = REMOVED
        else:
            kind = CHANGED
        changes.append(TextChange(i, word_a, word_b, kind))
    return changes


def compare_text(a: str, b: str) -> TextComparisonResult:
    return TextComparisonResult(similarity=text_similarity(a, b), changes=detect_text_changes(a, b))


def compare_ocr_results(result_a, result_b) -> OCRTextComparison:
    """Compare two OCRResult values after trimming surrounding whitespace"""
    text_a = result_a.text.strip()
    text_b = result_b.text.strip()
    return OCRTextComparison(
        similarity=text_similarity(text_a, text_b),
        changes=detect_text_changes(text_a, text_b),
        text_a=text_a,
        text_b=text_b,
        words_a=len(result_a.words),
        words_b=len(result_b.words),
    )
