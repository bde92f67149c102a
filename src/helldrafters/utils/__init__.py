"""Utility functions for the Helldrafters draft engine."""

from helldrafters.utils.rng import (
    fisher_yates,
    generate_seed,
    make_rng,
    random_sample,
    weighted_index,
)

__all__ = [
    "fisher_yates",
    "generate_seed",
    "make_rng",
    "random_sample",
    "weighted_index",
]
