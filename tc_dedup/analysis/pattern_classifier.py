"""
Module for labelling what distinguishes two near-duplicate test cases.
"""

from collections import Counter
from typing import Dict, Iterable, List, Tuple

# Ordered rules: the first pattern whose keyword appears among the
# distinguishing tokens wins. Multi-word keywords need all their tokens.
PATTERN_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    ("user_type", (
        "admin", "administrator", "guest", "user", "users", "free", "premium",
        "paid", "anonymous", "member", "subscriber", "owner", "viewer", "editor",
    )),
    ("theme", (
        "dark", "light", "theme", "dark mode", "light mode", "night", "contrast",
    )),
    ("entry_point", (
        "deep link", "deeplink", "notification", "notifications", "widget",
        "shortcut", "launch", "more menu", "dashboard", "search",
    )),
    ("component", (
        "button", "menu", "field", "card", "tab", "dropdown", "checkbox",
        "toggle", "icon", "modal", "dialog", "link",
    )),
    ("permission", (
        "camera", "location", "grant", "granted", "deny", "denied",
        "permission", "permissions", "microphone", "contacts", "allow",
    )),
]

PATTERN_ORDER = [name for name, _ in PATTERN_RULES] + ["other"]

VARIATION_KEYS = {
    "user_type": "userTypes",
    "theme": "themes",
    "entry_point": "entryPoints",
    "component": "components",
    "permission": "permissions",
}


def classify_pattern(distinguishing_tokens: Iterable[str]) -> Tuple[str, Dict[str, List[str]]]:
    """
    Classify the dominant difference between two test cases.

    Args:
        distinguishing_tokens: Tokens present in one case but not the other

    Returns:
        Tuple of (pattern_type, variation_details)
    """
    tokens = set(distinguishing_tokens)
    if not tokens:
        return "other", {}

    for pattern_type, keywords in PATTERN_RULES:
        matched = [kw for kw in keywords if all(part in tokens for part in kw.split())]
        if matched:
            return pattern_type, {VARIATION_KEYS[pattern_type]: sorted(matched)}

    return "other", {}


def dominant_pattern(pattern_types: Iterable[str]) -> str:
    """Most common pattern label; ties go to the label earlier in rule order."""
    counts = Counter(pattern_types)
    if not counts:
        return "other"
    return min(counts, key=lambda p: (-counts[p], PATTERN_ORDER.index(p) if p in PATTERN_ORDER else len(PATTERN_ORDER)))
