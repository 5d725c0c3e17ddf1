"""Resolve an utterance to a skill, or to a clarification question.

Resolution order, first match wins:
1. An explicit ``$skill-id`` call naming a registered skill
2. Short utterances always clarify
3. Fixed keyword rules
4. Ranked semantic match (clarifies when the top score is weak or close)
5. Static fallback skill
"""

import re

from nightfall.config.models.router import RouterConfig
from nightfall.context import ContextSignals
from nightfall.errors import SkillNotFoundError
from nightfall.observability.logging import get_logger
from nightfall.observability.metrics import ROUTE_DECISIONS
from nightfall.policy.text import clip_text
from nightfall.router.models import ClarifyDecision, Decision, RankedSkill, RouteDecision
from nightfall.router.ranker import SkillRanker
from nightfall.skills.registry import SkillRegistry

logger = get_logger(__name__)

_EXPLICIT_RE = re.compile(r"\$([a-z0-9\-_]+)", re.IGNORECASE)

KEYWORD_RULES: tuple[tuple[re.Pattern[str], str, str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), skill_id, reason)
    for pattern, skill_id, reason in (
        (r"(不想社交|不社交|隐形|只想看看|不打招呼|不聊天)", "attend-invisibly", "social_stealth"),
        (r"(书店|阅读|买书|书柜|图书)", "bookstore-refuge", "bookstore"),
        (r"(咖啡|cafe|拿铁|卡布|美式)", "coffee-dongwang", "coffee"),
        (r"(下雨|雨天|雨夜|潮湿)", "curate-rainy-day", "rainy_day"),
        (r"(一个人吃|独自吃|solo(\s*meal)?|夜宵|晚餐|宵夜)", "solo-meal-editor", "solo_meal"),
        (r"(展览|美术馆|画廊|艺术(\s*展)?|museum|gallery)", "plan-artwalk", "artwalk"),
        (r"(博物馆|museum)", "plan-museum-sprint", "museum"),
        (r"(建筑|architect|街区|citywalk|散步|走走|溜达|路上)", "plan-architecture-citywalk", "walk"),
        (r"(偏航|绕一下|回家路上|顺路|detour)", "inner-street-detour", "detour"),
        (r"(预算|便宜|省钱|平价)", "budget-stroll-curator", "budget"),
        (r"(设计|空间|灯光|材质|动线|声场)", "space-reviewer", "design_lens"),
        (r"(观后感|评价|复盘|留一句|写一句)", "leave-exhibit-review", "echo"),
        (r"(艺术家|关注|展讯|订阅|follow)", "follow-favorite-artists", "artists"),
        (r"(打字|dazi|协议|节奏|写作习惯)", "draft-dazi-protocol", "focus_protocol"),
        (r"(快闪|pop-?up|微展|路过的展)", "plan-micro-exhibit-stop", "micro_exhibit"),
    )
)

_CHOICE_LETTERS = "ABCDEFGHIJ"


def extract_explicit_id(text: str) -> str | None:
    m = _EXPLICIT_RE.search(text)
    return m.group(1).strip() if m else None


class SkillRouter:
    """Deterministic router over a skill registry.

    The ranker's index lives on this instance, so independent routers
    (for example in tests) never share cached state.
    """

    def __init__(
        self,
        registry: SkillRegistry,
        config: RouterConfig | None = None,
        *,
        fallback_skill_id: str | None = None,
        ranker: SkillRanker | None = None,
    ) -> None:
        self._registry = registry
        self._config = config or RouterConfig()
        self._fallback_skill_id = fallback_skill_id
        self._ranker = ranker or SkillRanker(
            semantic_weight=self._config.semantic_weight,
            keyword_boost=self._config.keyword_boost,
        )

    @property
    def ranker(self) -> SkillRanker:
        return self._ranker

    def fallback_id(self) -> str | None:
        """First registered id among the preferred fallback and the static list."""
        ids = [self._fallback_skill_id, *self._config.fallback_skill_ids]
        return next((i for i in ids if i and self._registry.has(i)), None)

    def rank(self, utterance: str, context: ContextSignals) -> list[RankedSkill]:
        return self._ranker.rank(utterance, context, self._registry.list_skills())

    def route(self, utterance: str, context: ContextSignals) -> Decision:
        decision = self._resolve((utterance or "").strip(), context)
        ROUTE_DECISIONS.labels(kind=decision.kind, reason=decision.reason).inc()
        logger.info(
            "route_decided",
            kind=decision.kind,
            reason=decision.reason,
            skill_id=getattr(decision, "skill_id", None),
            confidence=round(decision.confidence, 3),
        )
        return decision

    def _resolve(self, text: str, context: ContextSignals) -> Decision:
        cfg = self._config

        explicit = extract_explicit_id(text)
        if explicit and self._registry.has(explicit):
            return RouteDecision(skill_id=explicit, reason="explicit_call", confidence=1.0)

        if len(text) <= cfg.short_utterance_chars:
            ranked = self.rank(text, context)
            return self._clarify(ranked, reason="clarify_short_utterance")

        for pattern, skill_id, reason in KEYWORD_RULES:
            if pattern.search(text) and self._registry.has(skill_id):
                return RouteDecision(
                    skill_id=skill_id, reason=reason, confidence=cfg.rule_confidence
                )

        ranked = self.rank(text, context)
        if ranked:
            top = ranked[0]
            second = ranked[1] if len(ranked) > 1 else None
            if top.score < cfg.min_score or (
                second is not None and top.score - second.score < cfg.min_gap
            ):
                return self._clarify(ranked, reason="clarify_low_confidence")
            return RouteDecision(
                skill_id=top.id,
                reason="semantic_rank",
                confidence=top.score,
                debug={"top": [r.model_dump() for r in ranked[:3]]},
            )

        fallback = self.fallback_id()
        if fallback is None:
            raise SkillNotFoundError(self._fallback_skill_id or "fallback")
        return RouteDecision(
            skill_id=fallback, reason="fallback", confidence=cfg.fallback_confidence
        )

    def _clarify(self, ranked: list[RankedSkill], *, reason: str) -> ClarifyDecision:
        cfg = self._config
        choices: list[str] = []
        choice_map: dict[str, str] = {}
        for letter, r in zip(_CHOICE_LETTERS, ranked[: cfg.max_choices], strict=False):
            label = clip_text(f"{letter} · {r.title}", cfg.label_max_chars)
            choices.append(label)
            choice_map[label] = r.id

        fallback = self.fallback_id()
        fallback_label = clip_text(cfg.fallback_label, cfg.label_max_chars)
        if fallback is not None and fallback_label not in choice_map:
            choices.append(fallback_label)
            choice_map[fallback_label] = fallback

        return ClarifyDecision(
            choices=choices,
            choice_map=choice_map,
            reason=reason,
            confidence=ranked[0].score if ranked else 0.0,
            debug={"top": [r.model_dump() for r in ranked[:3]]},
        )
