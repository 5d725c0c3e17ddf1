"""Packaged prompt skills shipped with the runtime."""

from nightfall.providers.content.base import ContentGenerator
from nightfall.skills.models import UIHints
from nightfall.skills.prompt import PromptSkill, SkillPackage

_PLACES = ("places.search", "maps.link")


def _ui(*tones: str, mode: str = "explore") -> UIHints:
    return UIHints(tone_tags=list(tones), ui_mode_hint=mode)


PACKAGES: tuple[SkillPackage, ...] = (
    SkillPackage(
        id="chill-place-picker",
        title="Somewhere to unwind",
        description="Pick one spot to zone out, sit still, or do nothing at all.",
        default_prompt="Find me somewhere comfortable to sit and do nothing",
        brief="Pick places that tolerate long stays with no purchase pressure. "
        "Prefer soft light, seating with backs, low music. Plan B is always a hotel lobby or similar stable fallback.",
        shelf_tag="CHILL",
        intents=("place_anchor", "tonight_answer"),
        tools=_PLACES,
        ui_hints=_ui("warm", "minimal"),
        keywords=("找个放松的地方", "帮你挑一个适合放空、发呆、或者什么都不做的地方", "舒服的角落", "chill", "relax", "quiet"),
    ),
    SkillPackage(
        id="coffee-dongwang",
        title="Coffee oracle",
        description="The right cafe for what you need: a jolt, a long sit, or time alone.",
        default_prompt="A cafe where I can sit for two hours",
        brief="Classify the need (caffeine, long stay, solitude) before choosing. "
        "Mention outlets and seating only when known; otherwise add a risk flag.",
        shelf_tag="COFFEE",
        intents=("place_anchor", "explore"),
        tools=_PLACES,
        ui_hints=_ui("warm"),
        keywords=("咖啡懂王", "按你的需求推荐最合适的咖啡馆", "提神", "久坐", "独处", "coffee", "cafe"),
    ),
    SkillPackage(
        id="micro-itinerary-curator",
        title="Two-hour micro trip",
        description="A 2-3 hour city mini-adventure with a main line and a way out.",
        default_prompt="Plan two hours out in the city tonight",
        brief="Build a short route of at most three stops. Each stop must be walkable from the last. "
        "Plan B ends the route early at a stable place.",
        shelf_tag="ROUTE",
        intents=("explore",),
        tools=_PLACES,
        keywords=("2小时微行程", "规划一个2-3小时的城市小探索", "有主线有退路", "itinerary", "route"),
    ),
    SkillPackage(
        id="inner-street-detour",
        title="Side-street detour",
        description="Skip the crowds and take a quiet lane home or to where you are going.",
        default_prompt="A quieter way home",
        brief="Prefer lit side streets and short detours under fifteen minutes. "
        "When the user is driving, return a single navigation action only.",
        shelf_tag="DETOUR",
        intents=("explore",),
        tools=_PLACES,
        keywords=("小路绕行", "避开人流", "走一条安静的小路回家", "绕", "顺路", "detour", "drive", "car"),
    ),
    SkillPackage(
        id="budget-stroll-curator",
        title="Free stroll",
        description="A city walk that costs nothing or next to nothing.",
        default_prompt="Go out without spending money",
        brief="Only free or very cheap stops. Parks, riverside paths, free galleries, public libraries.",
        shelf_tag="BUDGET",
        intents=("explore",),
        tools=_PLACES,
        ui_hints=_ui("lived_in"),
        keywords=("穷游散步", "不花钱或少花钱的城市漫步路线", "budget", "free", "cheap"),
    ),
    SkillPackage(
        id="curate-rainy-day",
        title="Rainy day refuge",
        description="Places that stay comfortable even when it pours.",
        default_prompt="It is raining but I do not want to stay home",
        brief="Check the forecast seed when present. Favor covered access and places reachable without "
        "long outdoor walks. Plan B is indoors and close.",
        shelf_tag="RAIN",
        intents=("explore", "place_anchor"),
        tools=(*_PLACES, "weather.forecast"),
        ui_hints=_ui("mist", "warm"),
        keywords=("雨天去处", "下雨天也能舒服待着的地方推荐", "rain", "rainy", "indoor"),
    ),
    SkillPackage(
        id="solo-meal-editor",
        title="Dinner for one",
        description="A restaurant where eating alone feels natural, never awkward.",
        default_prompt="Somewhere good to eat alone",
        brief="Bar seating, counters and single portions score higher. Avoid places that only seat groups.",
        shelf_tag="SOLO MEAL",
        intents=("place_anchor",),
        tools=_PLACES,
        ui_hints=_ui("warm"),
        keywords=("一个人吃饭", "找一个适合独自用餐、不尴尬的餐厅", "solo", "meal", "dinner", "late"),
    ),
    SkillPackage(
        id="space-reviewer",
        title="Space review",
        description="A designer's eye for a space that is kind to your brain.",
        default_prompt="A well designed place to focus",
        brief="Judge light, materials, circulation and acoustics. Explain the pick in one design sentence.",
        shelf_tag="DESIGN",
        intents=("place_anchor",),
        tools=_PLACES,
        ui_hints=_ui("minimal", mode="focus"),
        keywords=("空间测评", "用设计师的眼光帮你挑一个对脑子友好的空间", "design", "focus"),
    ),
    SkillPackage(
        id="bookstore-refuge",
        title="Bookstore refuge",
        description="A bookstore to hide in, read, or stare into space.",
        default_prompt="A quiet bookstore to sit in for a while",
        brief="Prefer bookstores with seating and late hours. Plan B is a library or a quiet cafe nearby.",
        shelf_tag="BOOK",
        intents=("place_anchor", "focus"),
        tools=_PLACES,
        ui_hints=_ui("paper", "warm", mode="focus"),
        keywords=("书店避难所", "找一家适合躲进去看书、发呆的书店", "book", "bookstore", "reading", "quiet"),
    ),
    SkillPackage(
        id="attend-invisibly",
        title="Attend invisibly",
        description="Go to the event without socializing; plan a low-visibility route through it.",
        default_prompt="I want to see the event but not talk to anyone",
        brief="Plan arrival after the start, a spot at the edge, and an exit that needs no goodbyes. "
        "Stealth first; never suggest introductions.",
        shelf_tag="STEALTH",
        intents=("quiet_copresence", "explore"),
        ui_hints=_ui("minimal", mode="stealth"),
        keywords=("隐形参与", "想去某个活动但不想社交", "隐身", "不社交", "stealth", "invisible", "silent"),
    ),
    SkillPackage(
        id="draft-dazi-protocol",
        title="Buddy protocol",
        description="Draft a simple agreement for a night out with a companion, boundaries included.",
        default_prompt="Draft rules for a quiet co-working night with a friend",
        brief="Produce a short protocol: start time, quiet periods, check-ins, how either side can leave. "
        "The primary action is focus, not navigation.",
        shelf_tag="FOCUS",
        intents=("focus",),
        ui_hints=_ui("minimal", mode="focus"),
        keywords=("搭子协议", "帮你起草一份和搭子的默契协议", "边界感", "focus", "protocol"),
    ),
    SkillPackage(
        id="follow-favorite-artists",
        title="Follow artists",
        description="Track new shows and events from the artists you like.",
        default_prompt="What are my favourite artists showing nearby",
        brief="List only events you can justify from seeds or context; otherwise say it is unverified.",
        shelf_tag="ART",
        intents=("explore",),
        keywords=("追艺术家", "追踪你喜欢的艺术家的最新展览和活动", "artist", "art", "follow"),
    ),
    SkillPackage(
        id="leave-exhibit-review",
        title="Exhibit echo",
        description="Capture and shape your thoughts right after a show.",
        default_prompt="Help me write down what I felt at the exhibition",
        brief="Ask nothing; compress the user's words into one line worth keeping and save it to the pocket.",
        shelf_tag="ECHO",
        intents=("footprint",),
        tools=("storage.pocket.append",),
        keywords=("展览回响", "看完展览后，帮你记录和整理观展感受", "review", "echo"),
    ),
    SkillPackage(
        id="plan-artwalk",
        title="Art walk",
        description="A walking route that strings together several art spaces.",
        default_prompt="Several galleries in one walk",
        brief="Two to four galleries within walking distance, ordered to end near transit.",
        shelf_tag="ARTWALK",
        intents=("explore",),
        tools=_PLACES,
        keywords=("艺术漫步", "规划一条串联多个艺术空间的步行路线", "gallery", "art", "walk"),
    ),
    SkillPackage(
        id="plan-museum-sprint",
        title="Museum sprint",
        description="Short on time: the best route through a museum.",
        default_prompt="One hour in a museum",
        brief="Pick the three rooms worth the time and the entrance closest to them.",
        shelf_tag="MUSEUM",
        intents=("explore",),
        tools=_PLACES,
        keywords=("博物馆速刷", "时间有限时，帮你规划博物馆的最佳参观路线", "museum"),
    ),
    SkillPackage(
        id="plan-architecture-citywalk",
        title="Architecture walk",
        description="A walking route past the city's most interesting buildings.",
        default_prompt="A walk past interesting buildings",
        brief="Route past three to five buildings with one sentence on each. Keep the loop under an hour.",
        shelf_tag="ARCH",
        intents=("explore",),
        tools=_PLACES,
        keywords=("建筑漫游", "规划一条欣赏城市建筑的步行路线", "architecture", "citywalk", "walk"),
    ),
    SkillPackage(
        id="plan-micro-exhibit-stop",
        title="Pop-up stop",
        description="Small exhibitions or pop-ups nearby worth a quick look.",
        default_prompt="A small exhibition I can drop into",
        brief="Pop-ups and small shows only. Always give an opening-hours risk flag when unverified.",
        shelf_tag="POP-UP",
        intents=("explore",),
        tools=_PLACES,
        keywords=("快闪展打卡", "找到附近值得一看的小型展览或快闪活动", "popup", "exhibit"),
    ),
)


def packaged_skills(generator: ContentGenerator) -> list[PromptSkill]:
    """Instantiate every packaged skill against ``generator``."""
    return [PromptSkill(pkg, generator) for pkg in PACKAGES]
