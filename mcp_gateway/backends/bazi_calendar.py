"""Bazi Calendar — pure sexagenary-cycle arithmetic for the four pillars.

Invariants:
    - Solar (Gregorian) input only
    - Year pillar switches at the start of spring (Feb 4), not Jan 1
    - Month branch follows the twelve solar-term boundaries (fixed-day approximation)
    - Day pillar counted from 1949-10-01, a jiazi (甲子) day
    - Hour 23:00 belongs to the zi (子) hour of the SAME calendar day

Design Decisions:
    - Fixed boundary days instead of astronomical solar terms: off by at most one
      day around a boundary, no ephemeris dependency
    - Month and hour stems derived from year and day stems (five-tiger and
      five-rat rules) rather than from lookup tables
"""

from datetime import date, datetime

STEMS = ("甲", "乙", "丙", "丁", "戊", "己", "庚", "辛", "壬", "癸")
BRANCHES = ("子", "丑", "寅", "卯", "辰", "巳", "午", "未", "申", "酉", "戌", "亥")
STEM_ELEMENTS = (
    "wood", "wood", "fire", "fire", "earth",
    "earth", "metal", "metal", "water", "water",
)
BRANCH_ELEMENTS = (
    "water", "earth", "wood", "wood", "earth", "fire",
    "fire", "earth", "metal", "metal", "earth", "water",
)
ELEMENTS = ("metal", "wood", "water", "fire", "earth")

# (month, day, branch index) — first day of each solar month
_MONTH_BOUNDARIES = (
    (1, 6, 1), (2, 4, 2), (3, 6, 3), (4, 5, 4), (5, 6, 5), (6, 6, 6),
    (7, 7, 7), (8, 8, 8), (9, 8, 9), (10, 8, 10), (11, 7, 11), (12, 7, 0),
)
_SPRING_START = (2, 4)
_DAY_EPOCH = date(1949, 10, 1)

# wood → fire → earth → metal → water → wood
_GENERATES = {
    "wood": "fire", "fire": "earth", "earth": "metal",
    "metal": "water", "water": "wood",
}
# wood → earth → water → fire → metal → wood
_CONTROLS = {
    "wood": "earth", "earth": "water", "water": "fire",
    "fire": "metal", "metal": "wood",
}

ELEMENT_TRAITS = {
    "wood": {"colors": ["green", "cyan"], "numbers": [3, 8], "directions": ["east"]},
    "fire": {"colors": ["red", "purple"], "numbers": [2, 7], "directions": ["south"]},
    "earth": {"colors": ["yellow", "brown"], "numbers": [5, 10], "directions": ["center"]},
    "metal": {"colors": ["white", "gold"], "numbers": [4, 9], "directions": ["west", "northwest"]},
    "water": {"colors": ["black", "blue"], "numbers": [1, 6], "directions": ["north"]},
}


def pillar(stem: int, branch: int) -> dict:
    return {
        "heavenly": STEMS[stem],
        "earthly": BRANCHES[branch],
        "element": STEM_ELEMENTS[stem],
        "branchElement": BRANCH_ELEMENTS[branch],
    }


def solar_year(moment: date) -> int:
    if (moment.month, moment.day) < _SPRING_START:
        return moment.year - 1
    return moment.year


def year_indices(moment: date) -> tuple[int, int]:
    cycle = (solar_year(moment) - 4) % 60
    return cycle % 10, cycle % 12


def month_branch(moment: date) -> int:
    branch = 0  # before Jan 6 we are still in the zi month begun Dec 7
    for month, day, b in _MONTH_BOUNDARIES:
        if (moment.month, moment.day) >= (month, day):
            branch = b
    return branch


def month_indices(moment: date) -> tuple[int, int]:
    year_stem, _ = year_indices(moment)
    branch = month_branch(moment)
    first_stem = (year_stem % 5 * 2 + 2) % 10
    return (first_stem + (branch - 2) % 12) % 10, branch


def day_indices(moment: date) -> tuple[int, int]:
    cycle = (moment - _DAY_EPOCH).days % 60
    return cycle % 10, cycle % 12


def hour_indices(moment: datetime) -> tuple[int, int]:
    day_stem, _ = day_indices(moment.date())
    branch = (moment.hour + 1) // 2 % 12
    return (day_stem % 5 * 2 + branch) % 10, branch


def four_pillars(moment: datetime) -> dict:
    day = moment.date()
    return {
        "year": pillar(*year_indices(day)),
        "month": pillar(*month_indices(day)),
        "day": pillar(*day_indices(day)),
        "hour": pillar(*hour_indices(moment)),
    }


def element_distribution(pillars: dict) -> dict[str, int]:
    counts = {e: 0 for e in ELEMENTS}
    for p in pillars.values():
        counts[p["element"]] += 1
        counts[p["branchElement"]] += 1
    return counts


def element_balance(distribution: dict[str, int]) -> dict:
    high, low = max(distribution.values()), min(distribution.values())
    strong = [e for e in ELEMENTS if distribution[e] == high]
    weak = [e for e in ELEMENTS if distribution[e] == low]
    return {
        "strong": strong,
        "weak": weak,
        "analysis": (
            f"{', '.join(strong)} dominant, {', '.join(weak)} deficient; "
            f"strengthen {', '.join(weak)} to balance the five elements"
        ),
    }


def relation(a: str, b: str) -> str:
    """Five-element relation between two elements."""
    if a == b:
        return "harmony"
    if _GENERATES[a] == b or _GENERATES[b] == a:
        return "supportive"
    return "restrictive"


def element_compatibility(dist_a: dict[str, int], dist_b: dict[str, int]) -> int:
    shared = sum(1 for e in ELEMENTS if dist_a.get(e, 0) > 0 and dist_b.get(e, 0) > 0)
    return min(50 + 10 * shared, 100)


def hour_range(branch: int) -> str:
    return f"{(2 * branch - 1) % 24:02d}:00-{(2 * branch + 1) % 24:02d}:00"


def traits_for(elements: list[str]) -> dict:
    merged: dict[str, list] = {"colors": [], "numbers": [], "directions": [], "elements": []}
    for e in elements:
        traits = ELEMENT_TRAITS[e]
        merged["colors"].extend(traits["colors"])
        merged["numbers"].extend(traits["numbers"])
        merged["directions"].extend(traits["directions"])
        merged["elements"].append(e)
    return merged


def generates(a: str, b: str) -> bool:
    return _GENERATES[a] == b


def controls(a: str, b: str) -> bool:
    return _CONTROLS[a] == b
