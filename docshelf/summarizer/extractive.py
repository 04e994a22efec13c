"""Offline extractive summary: pick the highest-scoring sentences by word frequency."""
import re
from collections import Counter
from typing import List

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")
_WORD_RE = re.compile(r"\w+")

STOPWORDS = frozenset("""
a about above after again against all am an and any are as at be because been
before being below between both but by can could did do does doing down during
each few for from further had has have having he her here hers herself him
himself his how i if in into is it its itself just me more most my myself no
nor not now of off on once only or other our ours ourselves out over own same
she should so some such than that the their theirs them themselves then there
these they this those through to too under until up very was we were what when
where which while who whom why will with would you your yours yourself
yourselves
""".split())


def split_sentences(text: str) -> List[str]:
    """Split on terminal punctuation, keeping the punctuation with its sentence."""
    return [s.strip() for s in _SENTENCE_RE.findall(text or "") if s.strip()]


def _content_words(text: str) -> List[str]:
    return [w for w in _WORD_RE.findall(text.lower()) if w not in STOPWORDS]


def extractive_summary(text: str, max_sentences: int = 2) -> str:
    """
    Return the `max_sentences` sentences whose non-stopword tokens are most
    frequent across the whole text, in their original order. Ties go to the
    earlier sentence. Short texts come back whole, whitespace included.
    """
    sentences = split_sentences(text)
    if len(sentences) <= max_sentences:
        return (text or "").strip()

    freq = Counter(_content_words(text))
    scores = [sum(freq[w] for w in _content_words(s)) for s in sentences]

    ranked = sorted(range(len(sentences)), key=lambda i: (-scores[i], i))
    keep = sorted(ranked[:max_sentences])
    return " ".join(sentences[i] for i in keep)
