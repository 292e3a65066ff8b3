"""
Deterministic content rewriting used on the rule path.

These are naive, locale-unaware transforms: the AI path replaces them with
the provider's own optimized fields.
"""

import re
from collections import Counter
from typing import List

SPECIAL_CHAR_RUN = re.compile(r"[!@#$%^&*()]{2,}")
SENTENCE_TERMINATORS = re.compile(r"[.!?]+")
NON_WORD = re.compile(r"[^\w\s]")

MAX_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 4


def generate_optimized_title(title: str) -> str:
    """Strip special-character runs and title-case each space-separated word."""
    cleaned = SPECIAL_CHAR_RUN.sub("", title or "").strip()
    return " ".join(word[:1].upper() + word[1:].lower() for word in cleaned.split(" "))


def generate_optimized_description(description: str) -> str:
    """
    Group sentences in pairs separated by blank lines.

    Descriptions with two sentences or fewer are returned unchanged.
    """
    if not description:
        return ""

    sentences = [s.strip() for s in SENTENCE_TERMINATORS.split(description) if s.strip()]
    if len(sentences) <= 2:
        return description

    paragraphs = []
    for i in range(0, len(sentences), 2):
        paragraphs.append(". ".join(sentences[i:i + 2]) + ".")

    return "\n\n".join(paragraphs)


def extract_keywords(text: str) -> List[str]:
    """
    Up to 10 most frequent words longer than three characters.

    Ties keep first-encounter order, so the output is deterministic.
    """
    words = NON_WORD.sub("", (text or "").lower()).split()
    frequencies = Counter(w for w in words if len(w) >= MIN_KEYWORD_LENGTH)
    return [word for word, _ in frequencies.most_common(MAX_KEYWORDS)]
