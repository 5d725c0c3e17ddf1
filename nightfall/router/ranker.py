"""TF-IDF skill ranker with context affinity.

Latin text is split into words; contiguous ideographic runs emit every
character plus every adjacent bigram, so no segmentation dictionary is
needed. The index is memoized by the sorted set of skill ids and rebuilt
only when that set changes.
"""

import math
import re
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from nightfall.context import ContextSignals, MotionState, TimeBand
from nightfall.router.models import RankedSkill
from nightfall.skills.base import Skill

_WORD_RE = re.compile(r"[a-z0-9_]+")
_HAN_RE = re.compile(r"[\u4e00-\u9fff]+")

# (terms, boost) per active context condition
_DRIVING_TERMS = ("detour", "drive", "car", "绕", "偏航", "顺路")
_STEALTH_TERMS = ("stealth", "invisible", "隐身", "不社交", "安静", "quiet", "silent")
_LOW_ENERGY_TERMS = ("rest", "quiet", "chill", "安静", "低压", "躺")
_LATE_TERMS = ("late", "night", "宵", "夜")


def tokenize(text: str) -> list[str]:
    s = (text or "").lower()
    tokens = _WORD_RE.findall(s)
    for run in _HAN_RE.findall(s):
        for i, ch in enumerate(run):
            tokens.append(ch)
            if i + 1 < len(run):
                tokens.append(run[i : i + 2])
    return tokens


def vectorize(tokens: list[str], idf: dict[str, float]) -> dict[str, float]:
    return {t: (1 + math.log(c)) * idf.get(t, 1.0) for t, c in Counter(tokens).items()}


def cosine(a: dict[str, float], b: dict[str, float]) -> float:
    norm_a = math.sqrt(sum(v * v for v in a.values()))
    norm_b = math.sqrt(sum(v * v for v in b.values()))
    if not norm_a or not norm_b:
        return 0.0
    if len(b) < len(a):
        a, b = b, a
    dot = sum(v * b.get(t, 0.0) for t, v in a.items())
    return dot / (norm_a * norm_b)


def _has_any(text: str, terms: Sequence[str]) -> bool:
    return any(t in text for t in terms)


def context_boost(search_text: str, context: ContextSignals) -> float:
    """Fixed increments for skills whose text fits the active context."""
    text = search_text.lower()
    boost = 0.0
    if context.mobility.motion_state == MotionState.DRIVING and _has_any(text, _DRIVING_TERMS):
        boost += 0.12
    if (context.user_state.stealth or context.user_state.social_temp <= 1) and _has_any(
        text, _STEALTH_TERMS
    ):
        boost += 0.1
    if context.user_state.energy_band == "low" and _has_any(text, _LOW_ENERGY_TERMS):
        boost += 0.08
    if context.time.time_band == TimeBand.LATE and _has_any(text, _LATE_TERMS):
        boost += 0.06
    return boost


@dataclass
class _Profile:
    id: str
    title: str
    description: str
    search_text: str
    vector: dict[str, float]


@dataclass
class _Index:
    key: tuple[str, ...]
    profiles: list[_Profile]
    idf: dict[str, float]


def is_rankable(skill: Skill) -> bool:
    """Only skills that can answer on the tonight surface are ranked."""
    m = skill.manifest
    return "tonight" in m.allowed_surfaces and (
        "explore" in m.intents or "tonight_answer" in m.intents
    )


class SkillRanker:
    """Score skills against an utterance."""

    def __init__(self, semantic_weight: float = 0.75, keyword_boost: float = 0.2) -> None:
        self._semantic_weight = semantic_weight
        self._keyword_boost = keyword_boost
        self._index: _Index | None = None

    @property
    def index_key(self) -> tuple[str, ...] | None:
        return self._index.key if self._index else None

    def _get_index(self, skills: Sequence[Skill]) -> _Index:
        key = tuple(sorted(s.id for s in skills))
        if self._index is not None and self._index.key == key:
            return self._index

        texts = [(s, s.search_text) for s in skills]
        df: Counter[str] = Counter()
        for _, text in texts:
            df.update(set(tokenize(text)))
        total = len(texts)
        idf = {t: math.log(1 + total / (1 + c)) for t, c in df.items()}

        profiles = [
            _Profile(
                id=s.id,
                title=s.manifest.title,
                description=s.manifest.description,
                search_text=text,
                vector=vectorize(tokenize(text), idf),
            )
            for s, text in texts
        ]
        self._index = _Index(key=key, profiles=profiles, idf=idf)
        return self._index

    def rank(
        self, utterance: str, context: ContextSignals, skills: Sequence[Skill]
    ) -> list[RankedSkill]:
        """Return rankable skills sorted by descending score."""
        candidates = [s for s in skills if is_rankable(s)]
        if not candidates:
            return []
        index = self._get_index(candidates)
        query = vectorize(tokenize(utterance), index.idf)
        lowered = (utterance or "").lower()

        ranked: list[RankedSkill] = []
        for p in index.profiles:
            semantic = cosine(query, p.vector)
            ctx = context_boost(p.search_text, context)
            spoken_id = re.sub(r"[-_]", " ", p.id.lower())
            kw = self._keyword_boost if spoken_id and spoken_id in lowered else 0.0
            score = min(1.0, max(0.0, semantic * self._semantic_weight + ctx + kw))

            reasons = []
            if semantic > 0.1:
                reasons.append(f"semantic={semantic:.2f}")
            if ctx > 0:
                reasons.append(f"context+{ctx:.2f}")
            if kw > 0:
                reasons.append(f"keyword+{kw:.2f}")
            ranked.append(
                RankedSkill(
                    id=p.id, title=p.title, description=p.description, score=score, reasons=reasons
                )
            )

        ranked.sort(key=lambda r: r.score, reverse=True)
        return ranked
