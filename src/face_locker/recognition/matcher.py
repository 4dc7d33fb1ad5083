"""Nearest-neighbour descriptor matching."""

import logging
from typing import Optional

import numpy as np

from ..constants import get_matching_config
from ..types import UNKNOWN_LABEL, Gallery, MatchResult

logger = logging.getLogger(__name__)


def euclidean_distances(live: np.ndarray, gallery: Gallery) -> np.ndarray:
    """Distances from a live descriptor to every gallery descriptor."""
    live = np.asarray(live, dtype=np.float64).flatten()
    references = np.vstack(gallery.embeddings)
    if references.shape[1] != live.shape[0]:
        raise ValueError(
            f"Descriptor size mismatch: live {live.shape[0]}, gallery {references.shape[1]}"
        )
    return np.linalg.norm(references - live, axis=1)


def match(live: np.ndarray, gallery: Gallery, distance_threshold: float = 0.6) -> MatchResult:
    """Match a live descriptor against a single-identity gallery.

    The nearest gallery descriptor decides. The match only counts when its
    distance is strictly below the threshold; otherwise the face is unknown.
    """
    if len(gallery) == 0:
        raise ValueError(f"Gallery for {gallery.owner} is empty")

    distances = euclidean_distances(live, gallery)
    distance = float(distances.min())

    # Every embedding in a gallery belongs to its owner
    verified = distance < distance_threshold
    label = gallery.owner if verified else UNKNOWN_LABEL

    logger.info(f"Best match - Label: {label}, Distance: {distance:.4f}")
    return MatchResult(best_label=label, distance=distance, verified=verified)


class Matcher:
    """Matcher bound to a distance threshold."""

    def __init__(self, distance_threshold: Optional[float] = None):
        if distance_threshold is None:
            distance_threshold = get_matching_config().distance_threshold
        if distance_threshold <= 0:
            raise ValueError("distance_threshold must be positive")
        self.distance_threshold = distance_threshold

    def match(self, live: np.ndarray, gallery: Gallery) -> MatchResult:
        return match(live, gallery, self.distance_threshold)
