# -*- coding: utf-8 -*-
"""
Descriptor Matching - Forward-backward nearest-neighbour matching.

Matches source descriptors to reference descriptors with a ratio test on
the two nearest reference neighbours, then keeps only the pairs whose
reference descriptor matches back to the same source descriptor.

Dependencies
------------
scipy

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""

# Standard library
import logging
from typing import Tuple

# Third-party
import numpy as np
from scipy.spatial import cKDTree

# volreg internal
from volreg.exceptions import MatchError
from volreg.features.models import DescriptorStore

logger = logging.getLogger(__name__)

#: Value in a match list for a source descriptor without a match.
NO_MATCH = -1


def match_forward_backward(
    desc_src: DescriptorStore,
    desc_ref: DescriptorStore,
    threshold: float,
) -> np.ndarray:
    """Match descriptors, validated in both directions.

    A source descriptor ``k`` matches reference descriptor ``m`` when

    1. ``m`` is its nearest reference neighbour and the distance ratio to
       the second-nearest neighbour is at most *threshold*, and
    2. ``k`` is the nearest source neighbour of ``m``.

    Parameters
    ----------
    desc_src : DescriptorStore
        Source descriptors.
    desc_ref : DescriptorStore
        Reference descriptors.
    threshold : float
        Nearest/second-nearest distance ratio limit, in (0, 1].

    Returns
    -------
    np.ndarray
        Match list. Shape (len(desc_src),), dtype int. Entry ``k`` is the
        matched reference index or ``NO_MATCH``.

    Raises
    ------
    MatchError
        If either store is empty or the descriptor lengths differ.
    """
    if len(desc_src) == 0 or len(desc_ref) == 0:
        raise MatchError(
            f"Cannot match empty descriptor stores "
            f"(source={len(desc_src)}, reference={len(desc_ref)})"
        )
    try:
        feats_src = desc_src.feature_matrix()
        feats_ref = desc_ref.feature_matrix()
    except ValueError as e:
        raise MatchError(f"Inconsistent descriptor lengths: {e}") from e
    if feats_src.shape[1] != feats_ref.shape[1]:
        raise MatchError(
            f"Descriptor lengths differ: source {feats_src.shape[1]}, "
            f"reference {feats_ref.shape[1]}"
        )

    # Forward: nearest two reference neighbours of each source descriptor
    tree_ref = cKDTree(feats_ref)
    k = 2 if len(desc_ref) > 1 else 1
    dists, idx = tree_ref.query(feats_src, k=k)
    if k == 1:
        nearest, nearest_idx = dists, idx
        passes_ratio = np.ones(len(desc_src), dtype=bool)
    else:
        nearest, second = dists[:, 0], dists[:, 1]
        nearest_idx = idx[:, 0]
        passes_ratio = nearest <= threshold * second

    # Backward: nearest source neighbour of each reference descriptor
    tree_src = cKDTree(feats_src)
    _, back_idx = tree_src.query(feats_ref, k=1)
    consistent = back_idx[nearest_idx] == np.arange(len(desc_src))

    matches = np.where(passes_ratio & consistent, nearest_idx, NO_MATCH)
    matches = matches.astype(np.intp)

    logger.debug(
        "Matched %d of %d source descriptors (threshold=%.3f)",
        int(np.count_nonzero(matches != NO_MATCH)), len(desc_src), threshold,
    )
    return matches


def matches_to_coordinates(
    desc_src: DescriptorStore,
    desc_ref: DescriptorStore,
    matches: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Convert a match list to aligned coordinate matrices.

    Parameters
    ----------
    desc_src : DescriptorStore
        Source descriptors the match list indexes.
    desc_ref : DescriptorStore
        Reference descriptors the match list points into.
    matches : np.ndarray
        Match list from ``match_forward_backward``.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        ``(match_src, match_ref)``, each shape (N, 3), where row ``r`` of
        both matrices is one matched pair. Rows follow source order.

    Raises
    ------
    MatchError
        If the match list length or any index is inconsistent with the
        stores.
    """
    matches = np.asarray(matches)
    if matches.shape != (len(desc_src),):
        raise MatchError(
            f"Match list has shape {matches.shape}, expected "
            f"({len(desc_src)},)"
        )
    src_idx = np.flatnonzero(matches != NO_MATCH)
    ref_idx = matches[src_idx]
    if np.any(ref_idx < 0) or np.any(ref_idx >= len(desc_ref)):
        raise MatchError(
            f"Match list references descriptors outside the reference "
            f"store (size {len(desc_ref)})"
        )

    coords_src = desc_src.coordinates()
    coords_ref = desc_ref.coordinates()
    return coords_src[src_idx], coords_ref[ref_idx]
