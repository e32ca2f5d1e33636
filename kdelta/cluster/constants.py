from ..constants import WeakKdeltaNamespace

DEFAULTS = WeakKdeltaNamespace()
"""
- max_clusters
- max_rounds
- min_clusters
"""
DEFAULTS.add('min_clusters', 2, defn='the smallest number of clusters tried for a window')
DEFAULTS.add('max_clusters', 9, defn='the largest number of clusters tried for a window')
DEFAULTS.add(
    'max_rounds',
    10,
    defn='maximum number of assignment/update rounds of k-means. Stops earlier if the centroids do not change',
)
