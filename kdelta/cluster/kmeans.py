"""
k-means clustering of k-mer delta vectors using a canberra-like distance
"""
from typing import List, Sequence

import numpy as np

from .constants import DEFAULTS

INFORMATIVE_MIN = 1.0
""":class:`float`: dimensions where abs(x) + abs(y) does not exceed this are ignored by the distance"""


class Cluster:
    """
    Attributes:
        centroid (numpy.ndarray): mean of the member points
        points_idx (list of int): indices of the members in the input data
    """

    def __init__(self, centroid: np.ndarray):
        self.centroid = centroid
        self.points_idx: List[int] = []

    def __len__(self):
        return len(self.points_idx)

    def __repr__(self):
        return '{}(n={}, points_idx={})'.format(self.__class__.__name__, len(self), self.points_idx)

    def update_centroid(self, data: np.ndarray):
        """
        set the centroid to the per-dimension mean of the members. Empty clusters keep their centroid
        """
        if self.points_idx:
            self.centroid = data[self.points_idx].mean(axis=0)


def canberra_distance(a: np.ndarray, b: np.ndarray) -> float:
    """
    sum of absolute differences over the sum of absolute values, only using dimensions with enough signal

    Returns:
        1.0 if no dimension is informative and 0.0 if the informative dimensions are identical

    Example:
        >>> canberra_distance(np.array([2.0, 0.5]), np.array([4.0, 0.0]))
        0.3333333333333333
    """
    return float(centroid_distances(np.asarray(a)[np.newaxis, :], np.asarray(b))[0])


def centroid_distances(data: np.ndarray, centroid: np.ndarray) -> np.ndarray:
    """
    :func:`canberra_distance` from each row of data to a single centroid
    """
    denom = np.abs(data) + np.abs(centroid)
    informative = denom > INFORMATIVE_MIN
    deno = np.where(informative, denom, 0).sum(axis=1)
    neum = np.where(informative, np.abs(data - centroid), 0).sum(axis=1)
    result = np.ones(data.shape[0], dtype=np.float64)
    np.divide(neum, deno, out=result, where=deno != 0)
    return result


def choose_centroids(data: Sequence[np.ndarray], k: int) -> List[np.ndarray]:
    """
    split the input, in its given order, into k equal segments and use the middle point of each

    The input is not sorted here, callers wanting representative starting points should order it first
    """
    segment_size = len(data) // k
    return [np.array(data[i * segment_size + segment_size // 2], dtype=np.float64) for i in range(0, k)]


def assign_points(data: np.ndarray, centroids: List[np.ndarray]) -> np.ndarray:
    """
    Returns:
        the index of the nearest centroid for each point. Ties go to the lowest centroid index
    """
    distances = np.column_stack([centroid_distances(data, centroid) for centroid in centroids])
    return np.argmin(distances, axis=1)


def kmeans(data: Sequence[np.ndarray], k: int, max_rounds: int = DEFAULTS.max_rounds) -> List[Cluster]:
    """
    Args:
        data: equal length vectors to cluster
        k: the number of clusters, must be greater than 1 and less than the number of points
        max_rounds: maximum number of assignment/update rounds

    Returns:
        k clusters whose members partition the input indices
    """
    if not 1 < k < len(data):
        raise ValueError('number of clusters must be between 1 and the number of points (exclusive)', k, len(data))
    data = np.asarray(data, dtype=np.float64)
    clusters = [Cluster(centroid) for centroid in choose_centroids(data, k)]

    for _ in range(0, max_rounds):
        old_centroids = [cluster.centroid for cluster in clusters]
        clusters = [Cluster(centroid) for centroid in old_centroids]
        for idx, nearest in enumerate(assign_points(data, old_centroids)):
            clusters[nearest].points_idx.append(idx)

        for cluster in clusters:
            cluster.update_centroid(data)

        if all(np.array_equal(cluster.centroid, old) for cluster, old in zip(clusters, old_centroids)):
            break
    return clusters
