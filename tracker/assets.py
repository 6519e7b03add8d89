from dataclasses import dataclass
from typing import Optional, Literal

HoldingType = Literal[
    "emergency_fund",
    "pension_fund",
    "indonesian_equity",
    "international_equity",
    "gold",
]

GroupName = Literal["indonesian", "international", "gold"]


@dataclass(frozen=True)
class HoldingMeta:
    name: str
    short_name: str
    emoji: str
    color: str
    group: GroupName


@dataclass(frozen=True)
class AllocationGroup:
    key: GroupName
    name: str
    emoji: str
    color: str
    target: float                    # percent of the whole portfolio
    members: tuple[HoldingType, ...] # holding types counted in this group
    primary: HoldingType             # holding that receives new contributions


@dataclass(frozen=True)
class Phase:
    number: int
    label: str
    icon: str
    group: Optional[GroupName]  # None means maintenance (split by target)
    months: Optional[int]       # None means open-ended
    span: str


HOLDINGS: dict[HoldingType, HoldingMeta] = {
    "emergency_fund": HoldingMeta("Emergency Fund", "Emergency", "🛡️", "#6B7280", "indonesian"),
    "pension_fund": HoldingMeta("Pension Fund", "Pension", "🏦", "#8B5CF6", "indonesian"),
    "indonesian_equity": HoldingMeta("Indonesian Equity", "Indo Equity", "📈", "#EF4444", "indonesian"),
    "international_equity": HoldingMeta("International", "International", "🌍", "#3B82F6", "international"),
    "gold": HoldingMeta("Gold", "Gold", "🥇", "#F59E0B", "gold"),
}

HOLDING_TYPES: tuple[HoldingType, ...] = tuple(HOLDINGS)

GROUPS: tuple[AllocationGroup, ...] = (
    AllocationGroup(
        key="indonesian",
        name="Indonesian",
        emoji="🇮🇩",
        color="#EF4444",
        target=50.0,
        members=("emergency_fund", "pension_fund", "indonesian_equity"),
        primary="indonesian_equity",
    ),
    AllocationGroup(
        key="international",
        name="International",
        emoji="🌍",
        color="#3B82F6",
        target=40.0,
        members=("international_equity",),
        primary="international_equity",
    ),
    AllocationGroup(
        key="gold",
        name="Gold",
        emoji="🥇",
        color="#F59E0B",
        target=10.0,
        members=("gold",),
        primary="gold",
    ),
)

GROUPS_BY_KEY: dict[GroupName, AllocationGroup] = {g.key: g for g in GROUPS}

TIMELINE: tuple[Phase, ...] = (
    Phase(1, "Phase 1: Build Gold", "🥇", "gold", 2, "Months 1-2"),
    Phase(2, "Phase 2: Build Indo", "🇮🇩", "indonesian", 6, "Months 3-8"),
    Phase(3, "Phase 3: Maintenance", "⚖️", None, None, "Month 9+"),
)

UNKNOWN_COLOR = "#888888"

if abs(sum(g.target for g in GROUPS) - 100.0) > 1e-9:
    raise ValueError("allocation group targets must sum to 100")

if sorted(t for g in GROUPS for t in g.members) != sorted(HOLDING_TYPES):
    raise ValueError("every holding type must belong to exactly one group")


def holding_meta(holding_type: str) -> Optional[HoldingMeta]:
    return HOLDINGS.get(holding_type)
