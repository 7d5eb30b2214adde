"""
Shared text normalization and set utilities used by the keyword miner
and the similarity scorer.
"""
import re
from typing import AbstractSet, FrozenSet, Iterable, List

_GENERAL_STOP_WORDS = frozenset({
    "the", "a", "an", "is", "are", "am", "was", "were", "be", "been", "being",
    "in", "on", "at", "to", "for", "of", "and", "or", "but", "not", "with",
    "by", "from", "as", "it", "its", "this", "that", "these", "those",
    "i", "you", "he", "she", "we", "they", "my", "your", "our", "his", "her", "their",
    "me", "us", "him", "them", "do", "does", "did", "have", "has", "had",
    "will", "would", "can", "could", "shall", "should", "may", "might", "must",
    "so", "if", "then", "than", "no", "all", "any", "each", "every", "some",
    "such", "very", "just", "about", "up", "out", "how", "what", "which", "who",
    "when", "where", "also", "more", "other", "into", "over", "after", "before",
})

_MARKETPLACE_STOP_WORDS = frozenset({
    "app", "apps", "shopify", "store", "stores", "shop", "shops",
})

# Used for similarity text tokens
STOP_WORDS: FrozenSet[str] = _GENERAL_STOP_WORDS | _MARKETPLACE_STOP_WORDS

# Used for keyword mining; also drops generic marketing vocabulary
KEYWORD_STOP_WORDS: FrozenSet[str] = STOP_WORDS | frozenset({
    "online", "plugin", "plugins", "tool", "tools", "solution", "solutions",
    "feature", "features", "powerful", "easy", "easily", "best", "free",
    "new", "help", "helps", "get", "gets", "use", "using", "used",
    "make", "makes", "made", "one", "way", "like", "need", "needs",
    "based", "built", "create", "increase", "improve", "manage",
    "right", "top", "first", "most", "great", "good",
})

_NON_WORD = re.compile(r"[^a-z0-9\s-]")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def clean_words(text: str) -> List[str]:
    """Lower-case, strip everything but letters, digits and hyphens, keep words of 2+ chars."""
    cleaned = _NON_WORD.sub(" ", (text or "").lower())
    return [w for w in _WHITESPACE.split(cleaned) if len(w) >= 2]


def tokenize(text: str, stop_words: AbstractSet[str] = STOP_WORDS) -> FrozenSet[str]:
    """
    Tokenize text into a set of normalized words.

    Args:
        text: Free text (name, subtitle, introduction...).
        stop_words: Words to drop.

    Returns:
        FrozenSet[str]: Lower-cased alphanumeric tokens of 3+ characters.
    """
    cleaned = _NON_ALNUM.sub(" ", (text or "").lower())
    return frozenset(
        w for w in _WHITESPACE.split(cleaned)
        if len(w) >= 3 and w not in stop_words
    )


def jaccard(set_a: AbstractSet[str], set_b: AbstractSet[str]) -> float:
    """Jaccard index |A ∩ B| / |A ∪ B|, defined as 0 when both sets are empty."""
    if not set_a and not set_b:
        return 0.0
    smaller, larger = (set_a, set_b) if len(set_a) <= len(set_b) else (set_b, set_a)
    intersection = sum(1 for item in smaller if item in larger)
    union = len(set_a) + len(set_b) - intersection
    return intersection / union if union else 0.0


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def join_non_empty(parts: Iterable[str], sep: str = " ") -> str:
    return sep.join(p for p in parts if p)
