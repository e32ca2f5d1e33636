"""
choose the number of clusters for a window
"""
import math
from collections import namedtuple
from typing import List, Optional, Sequence

import numpy as np

from .constants import DEFAULTS
from .kmeans import Cluster, kmeans

ClusterSelection = namedtuple('ClusterSelection', ['n_clusters', 'score', 'clusters'])


def calinski_harabasz(data: Sequence[np.ndarray], clusters: List[Cluster]) -> float:
    """
    ratio of the between-cluster to within-cluster dispersion (squared euclidean), each normalized by its
    degrees of freedom. The grand centroid is the per-dimension mean of the cluster centroids

    Returns:
        the index, NaN when there are not more points than clusters
    """
    n_points = len(data)
    k = len(clusters)
    if n_points <= k:
        return float('nan')
    data = np.asarray(data, dtype=np.float64)
    grand_centroid = np.mean([cluster.centroid for cluster in clusters], axis=0)

    between = 0.0
    within = 0.0
    for cluster in clusters:
        if not cluster.points_idx:
            continue
        between += len(cluster) * float(np.sum((cluster.centroid - grand_centroid) ** 2))
        within += float(np.sum((data[cluster.points_idx] - cluster.centroid) ** 2))

    if within == 0:
        return between / (k - 1)
    return (between / (k - 1)) / (within / (n_points - k))


def select_clusters(
    data: Sequence[np.ndarray],
    min_clusters: int = DEFAULTS.min_clusters,
    max_clusters: int = DEFAULTS.max_clusters,
    max_rounds: int = DEFAULTS.max_rounds,
) -> Optional[ClusterSelection]:
    """
    cluster with increasing k and keep the best scoring clustering. Stops at the first k which does not
    improve on the best score so far

    Returns:
        the chosen clustering, or None if no k gave a finite score
    """
    best = None
    for k in range(min_clusters, max_clusters + 1):
        if k >= len(data):
            break
        clusters = kmeans(data, k, max_rounds=max_rounds)
        score = calinski_harabasz(data, clusters)
        if not math.isfinite(score) or (best is not None and score <= best.score):
            break
        best = ClusterSelection(k, score, clusters)
    return best
