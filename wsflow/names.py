"""Short human-readable workspace IDs (``calm-delta``, ``swift-harbor``, ...)."""

from __future__ import annotations

import random
from collections.abc import Iterable

MAX_ATTEMPTS = 10

ADJECTIVES = (
    "calm", "bold", "cool", "fast", "keen", "warm", "blue", "gold", "iron", "dark",
    "wild", "free", "deep", "pure", "fair", "soft", "true", "open", "wise", "safe",
    "brave", "crisp", "deft", "eager", "firm", "glad", "hale", "just", "kind", "lean",
    "mild", "neat", "pale", "quick", "rare", "slim", "tame", "vast", "apt", "airy",
    "avid", "brisk", "civic", "clear", "dense", "dry", "even", "fine", "flat", "fresh",
    "grand", "green", "hardy", "icy", "jade", "lush", "noble", "odd", "plain", "prime",
    "quiet", "rapid", "rich", "rough", "round", "royal", "sharp", "sleek", "solid", "steep",
    "still", "stout", "sunny", "swift", "tall", "tidy", "trim", "vivid", "whole", "young",
    "amber", "ashen", "coral", "dusky", "faint", "fleet",
)  # fmt: skip

NOUNS = (
    "brook", "cliff", "delta", "flame", "grove", "haven", "ridge", "spark", "stone", "trail",
    "creek", "drift", "field", "frost", "maple", "ocean", "pearl", "river", "shore", "cedar",
    "basin", "bluff", "cairn", "cloud", "coast", "crest", "dune", "ember", "falls", "fjord",
    "glade", "gorge", "heath", "knoll", "ledge", "marsh", "mesa", "oasis", "orbit", "plume",
    "pond", "quartz", "reef", "sage", "shoal", "slate", "slope", "spire", "steppe", "tide",
    "vale", "verge", "wharf", "arch", "birch", "bloom", "briar", "cove", "crane", "crown",
    "dale", "dew", "elm", "fern", "flint", "forge", "glen", "harbor", "haze", "helm",
    "holly", "ivy", "lake", "lark",
)  # fmt: skip


def generate_id(rng: random.Random | None = None) -> str:
    """Random ``adjective-noun`` ID."""
    rng = rng or random
    return f"{rng.choice(ADJECTIVES)}-{rng.choice(NOUNS)}"


def generate_unique_id(existing_ids: Iterable[str], rng: random.Random | None = None) -> str:
    """ID not present in ``existing_ids``.

    Tries ``MAX_ATTEMPTS`` plain IDs, then gives up on the short form and
    appends a 4-digit suffix.  Always returns.
    """
    rng = rng or random
    existing = set(existing_ids)

    for _ in range(MAX_ATTEMPTS):
        candidate = generate_id(rng)
        if candidate not in existing:
            return candidate

    return f"{generate_id(rng)}-{rng.randint(1000, 9999)}"
