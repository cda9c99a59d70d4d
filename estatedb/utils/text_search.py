"""Text analysis and term-frequency scoring for text indexes."""

import re
from typing import Iterable, Optional

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")

STOP_WORDS = frozenset({
    "a", "about", "above", "after", "again", "against", "all", "am", "an", "and",
    "any", "are", "as", "at", "be", "because", "been", "before", "being", "below",
    "between", "both", "but", "by", "can", "did", "do", "does", "doing", "down",
    "during", "each", "few", "for", "from", "further", "had", "has", "have",
    "having", "he", "her", "here", "hers", "herself", "him", "himself", "his",
    "how", "i", "if", "in", "into", "is", "it", "its", "itself", "just", "me",
    "more", "most", "my", "myself", "no", "nor", "not", "now", "of", "off", "on",
    "once", "only", "or", "other", "our", "ours", "ourselves", "out", "over",
    "own", "same", "she", "should", "so", "some", "such", "than", "that", "the",
    "their", "theirs", "them", "themselves", "then", "there", "these", "they",
    "this", "those", "through", "to", "too", "under", "until", "up", "very",
    "was", "we", "were", "what", "when", "where", "which", "while", "who",
    "whom", "why", "will", "with", "you", "your", "yours", "yourself",
    "yourselves",
})


def stem(token: str) -> str:
    """Light English suffix stripping (plurals, -ing, -ed)."""
    if len(token) <= 3 or token.isdigit():
        return token
    if token.endswith("sses"):
        return token[:-2]
    if token.endswith("ies") and len(token) > 4:
        return token[:-3] + "y"
    if token.endswith("s") and not token.endswith(("ss", "us", "is")):
        return token[:-1]
    if token.endswith("ing") and len(token) > 5:
        return token[:-3]
    if token.endswith("ed") and len(token) > 4:
        return token[:-2]
    return token


def analyze(text: Optional[str]) -> list[str]:
    """Tokenize, drop stop words and stem."""
    if not text:
        return []
    return [
        stem(token)
        for token in _TOKEN_PATTERN.findall(text.lower())
        if token not in STOP_WORDS
    ]


def score_field(text: Optional[str], weight: float = 1.0) -> dict[str, float]:
    """
    Score every term of one field.

    Each repeat of a term contributes half as much as the previous one, and
    terms that make up a larger share of a short field score higher:
    ``weight * freq * (0.5 * count / num_tokens + 0.5)``.
    """
    tokens = analyze(text)
    if not tokens:
        return {}

    counts: dict[str, int] = {}
    freqs: dict[str, float] = {}
    for term in tokens:
        count = counts.get(term, 0)
        freqs[term] = freqs.get(term, 0.0) + 1.0 / (2 ** count)
        counts[term] = count + 1

    num_tokens = len(tokens)
    return {
        term: weight * freqs[term] * (0.5 * counts[term] / num_tokens + 0.5)
        for term in counts
    }


def score_document(document: dict, fields: Iterable[str], weights: Optional[dict[str, float]] = None) -> dict[str, float]:
    """Sum per-field term scores across the indexed fields of a document."""
    weights = weights or {}
    scores: dict[str, float] = {}
    for field in fields:
        value = document.get(field)
        if not isinstance(value, str):
            continue
        for term, score in score_field(value, weights.get(field, 1.0)).items():
            scores[term] = scores.get(term, 0.0) + score
    return scores


def parse_search(query: str) -> tuple[set[str], set[str]]:
    """
    Split a search string into wanted and excluded terms.

    Words prefixed with ``-`` exclude documents containing them; the rest
    are OR-ed together.
    """
    wanted: set[str] = set()
    excluded: set[str] = set()
    for word in query.split():
        target = excluded if word.startswith("-") and len(word) > 1 else wanted
        target.update(analyze(word.lstrip("-") if target is excluded else word))
    return wanted, excluded
