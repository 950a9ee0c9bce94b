"""Keyword extraction and summaries for search snippets and fetched pages.

Pure functions with no I/O. Search results use the short-snippet variants
(``extract_keywords``/``summarize_snippet``), the fetch tool uses the page
variants (``extract_page_keywords``/``summarize_page``).
"""

import re
from collections import Counter
from urllib.parse import urlparse

_SNIPPET_STOP_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "had", "her",
    "was", "one", "our", "out", "day", "get", "has", "him", "his", "how", "man",
    "new", "now", "old", "see", "two", "way", "who", "boy", "did", "its", "let",
    "put", "say", "she", "too", "use",
})

_PAGE_STOP_WORDS = _SNIPPET_STOP_WORDS | frozenset({
    "with", "have", "this", "will", "your", "from", "they", "know", "want", "been",
    "good", "much", "some", "time", "very", "when", "come", "here", "just", "like",
    "long", "make", "many", "over", "such", "take", "than", "them", "well", "were",
})

_SENTENCE = re.compile(r"[^.!?]+[.!?]*")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


def extract_domain(url: str) -> str:
    try:
        host = urlparse(url).hostname
    except ValueError:
        host = None
    if not host:
        return "unknown source"
    return host.removeprefix("www.")


def _top_words(
    text: str,
    *,
    min_length: int,
    stop_words: frozenset[str],
    limit: int,
    min_frequency: int = 1,
) -> list[str]:
    words = re.findall(rf"\b[a-z]{{{min_length},}}\b", text.lower())
    counts = Counter(w for w in words if w not in stop_words)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [word for word, count in ranked if count >= min_frequency][:limit]


def extract_keywords(title: str, snippet: str, limit: int = 5) -> list[str]:
    return _top_words(
        f"{title} {snippet}",
        min_length=3,
        stop_words=_SNIPPET_STOP_WORDS,
        limit=limit,
    )


def extract_page_keywords(title: str, content: str, limit: int = 8) -> list[str]:
    """Most frequent words of four or more letters.

    Long pages (over 1000 chars) only count words seen at least twice.
    """
    return _top_words(
        f"{title} {content}",
        min_length=4,
        stop_words=_PAGE_STOP_WORDS,
        limit=limit,
        min_frequency=2 if len(content) > 1000 else 1,
    )


def summarize_snippet(title: str, snippet: str, url: str) -> str:
    if not snippet:
        return f"Content from {extract_domain(url)}: {title}"

    summary = " ".join(snippet.split())
    if len(summary) < 50:
        summary = f"{title}: {summary}"

    if len(summary) > 200:
        sentences = [s.strip() for s in _SENTENCE.findall(summary) if s.strip()]
        truncated = sentences[0] if sentences else ""
        for sentence in sentences[1:]:
            candidate = f"{truncated} {sentence}"
            if len(candidate) > 180:
                break
            truncated = candidate
        summary = truncated if 50 < len(truncated) <= 200 else summary[:180] + "..."

    if not summary.endswith((".", "!", "?")):
        summary += "." if len(summary) < 180 else "..."
    return summary


def summarize_page(title: str, content: str, url: str) -> str:
    """Pick the most substantial of the first five paragraphs and keep up to
    three of its sentences (300 chars max)."""
    if not content or len(content) < 50:
        return f"Content from {extract_domain(url)}: {title}"

    paragraphs = [p for p in _PARAGRAPH_SPLIT.split(content) if len(p.strip()) > 20]
    if not paragraphs:
        return _fallback_summary(content, title)

    best = paragraphs[0]
    best_score = 0.0
    for index, paragraph in enumerate(paragraphs[:5]):
        sentences = [s for s in _SENTENCE_SPLIT.split(paragraph) if len(s.strip()) > 10]
        length_score = min(len(paragraph) / 200, 1.0)
        sentence_score = min(len(sentences) / 3, 1.0)
        # The first paragraph is often navigation residue.
        position_score = 0.8 if index == 0 else 1.0
        score = (length_score + sentence_score) * position_score
        if score > best_score and len(paragraph) > 80:
            best_score = score
            best = paragraph

    summary = ""
    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(best) if len(s.strip()) > 15]
    for sentence in sentences[:3]:
        if len(summary + sentence) > 300:
            break
        summary += f"{sentence}. "

    if len(summary) < 80:
        return _fallback_summary(content, title)
    return summary.strip()


def _fallback_summary(content: str, title: str) -> str:
    summary = " ".join(content.split()[:50])
    if len(summary) < 100:
        summary = f"{title}: {summary}"

    summary = summary.rstrip(".!?")
    if len(summary) > 200:
        return summary[:197] + "..."
    return summary + "."
