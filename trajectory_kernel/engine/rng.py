"""Seeded random streams."""

import random


def create_rng(seed: int) -> random.Random:
    """One independent, reproducible stream per seed."""
    return random.Random(seed)


def derive_seed(base_seed: int, trial: int) -> int:
    """Seed for trial `trial` of an ensemble started from `base_seed`."""
    return base_seed + trial


def month_seed(seed: int, month: int) -> int:
    """Seed for the single stream shared by every phase of one month."""
    return seed * 100_003 + month
