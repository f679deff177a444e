# moderation/engine.py
"""
Profanity scoring for user-generated text.

`moderate()` is pure: it never touches the database or the network and
never mutates its input. Offsets in the result always refer to the
original text, even though matching runs on a normalised copy.
"""
import re
import unicodedata
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from core.conf import market_setting

from .wordlists import CATEGORIES, SAFE_WORDS

SEVERITY_WEIGHTS = {
    'high': 50,
    'medium': 35,
    'low': 15,
}
SEVERITY_RANK = {'low': 0, 'medium': 1, 'high': 2}

MAX_SCORE = 100
MIN_WORD_LENGTH = 3

VERDICT_SAFE = 'safe'
VERDICT_NEEDS_REVIEW = 'needs_review'
VERDICT_SEVERE = 'severe'

# Latin characters commonly typed in place of Cyrillic ones
LOOKALIKES = str.maketrans({
    'a': 'а', '@': 'а', 'e': 'е', 'o': 'о', '0': 'о', 'c': 'с',
    'p': 'р', 'x': 'х', 'y': 'у', 'k': 'к',
})

_CYRILLIC = re.compile(r'[а-я]')


@dataclass
class Violation:
    word: str
    category: str
    severity: str
    start: int
    end: int


@dataclass
class ModerationResult:
    is_clean: bool
    score: int
    verdict: str
    categories: List[str] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)
    sanitized_text: Optional[str] = None
    stats: Optional[dict] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.sanitized_text is None:
            data.pop('sanitized_text')
        if self.stats is None:
            data.pop('stats')
        return data


def _fold_char(ch: str) -> str:
    """Lowercase + strip diacritics (ё -> е, й -> и, stress marks)."""
    decomposed = unicodedata.normalize('NFKD', ch.lower())
    return ''.join(c for c in decomposed if not unicodedata.combining(c))


def normalize(text: str):
    """
    Return (normalised, index) where index[i] is the position in `text`
    of the character that produced normalised[i].
    """
    chars = []
    index = []
    for pos, ch in enumerate(text):
        for folded in _fold_char(ch):
            chars.append(folded)
            index.append(pos)
    return ''.join(chars), index


def _build_lexicon():
    lexicon = {}
    for category, severity, words in CATEGORIES:
        for word in words:
            key = ''.join(_fold_char(ch) for ch in word)
            if len(key) >= MIN_WORD_LENGTH and key not in lexicon:
                lexicon[key] = (category, severity)
    return lexicon


def _compile(words):
    # Longest first so alternation prefers the fullest match
    ordered = sorted(words, key=len, reverse=True)
    if not ordered:
        return None
    return re.compile(r'(?<!\w)(?:' + '|'.join(re.escape(w) for w in ordered) + r')(?!\w)')


LEXICON = _build_lexicon()
CYRILLIC_PATTERN = _compile([w for w in LEXICON if _CYRILLIC.search(w)])
LATIN_PATTERN = _compile([w for w in LEXICON if not _CYRILLIC.search(w)])
SAFE = tuple(''.join(_fold_char(ch) for ch in w) for w in SAFE_WORDS)


def _is_false_positive(normalized: str, start: int, end: int) -> bool:
    # Expand to the surrounding token and compare against the safe list
    left = start
    while left > 0 and normalized[left - 1].isalnum():
        left -= 1
    right = end
    while right < len(normalized) and normalized[right].isalnum():
        right += 1
    token = normalized[left:right]
    return any(safe in token for safe in SAFE)


def find_violations(text: str) -> List[Violation]:
    """All whole-word dictionary hits, one per span, ordered by position."""
    if not text or not text.strip():
        return []

    plain, index = normalize(text)
    folded = plain.translate(LOOKALIKES)

    by_span = {}
    for pattern, haystack in ((CYRILLIC_PATTERN, folded), (LATIN_PATTERN, plain)):
        if pattern is None:
            continue
        for match in pattern.finditer(haystack):
            s, e = match.start(), match.end()
            if _is_false_positive(haystack, s, e):
                continue
            category, severity = LEXICON[match.group(0)]
            start, end = index[s], index[e - 1] + 1
            current = by_span.get((start, end))
            if current and SEVERITY_RANK[current.severity] >= SEVERITY_RANK[severity]:
                continue
            by_span[(start, end)] = Violation(
                word=text[start:end],
                category=category,
                severity=severity,
                start=start,
                end=end,
            )

    return sorted(by_span.values(), key=lambda v: v.start)


def score_violations(violations: List[Violation]) -> int:
    return min(MAX_SCORE, sum(SEVERITY_WEIGHTS[v.severity] for v in violations))


def verdict_for(score: int, strict: bool = False):
    """Return (is_clean, verdict) for a score."""
    clean_threshold = market_setting(
        'MODERATION_STRICT_CLEAN_THRESHOLD' if strict else 'MODERATION_CLEAN_THRESHOLD'
    )
    if score <= clean_threshold:
        return True, VERDICT_SAFE
    if score <= market_setting('MODERATION_REJECT_THRESHOLD'):
        return False, VERDICT_NEEDS_REVIEW
    return False, VERDICT_SEVERE


def mask_text(text: str, violations: List[Violation]) -> str:
    """Replace every violating span with '*' of the same length."""
    if not violations:
        return text
    parts = []
    last = 0
    for v in sorted(violations, key=lambda v: v.start):
        parts.append(text[last:v.start])
        parts.append('*' * (v.end - v.start))
        last = v.end
    parts.append(text[last:])
    return ''.join(parts)


def moderate(text: str, strict: bool = False, mask: bool = False, return_stats: bool = False) -> ModerationResult:
    text = text or ''
    violations = find_violations(text)
    score = score_violations(violations)
    is_clean, verdict = verdict_for(score, strict=strict)

    categories = []
    for v in violations:
        if v.category not in categories:
            categories.append(v.category)

    result = ModerationResult(
        is_clean=is_clean,
        score=score,
        verdict=verdict,
        categories=categories,
        violations=violations,
    )

    if mask:
        result.sanitized_text = mask_text(text, violations)

    if return_stats:
        result.stats = {
            'total_words': len(text.split()),
            'violations_count': len(violations),
            'unique_words': len({v.word.lower() for v in violations}),
            'text_length': len(text),
        }

    return result
