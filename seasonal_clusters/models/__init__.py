"""Clustering models: k-means and the cluster count scan."""

from seasonal_clusters.models.kmeans import KMeansClusterer
from seasonal_clusters.models.selection import ClusterCountSelector

__all__ = ["KMeansClusterer", "ClusterCountSelector"]
