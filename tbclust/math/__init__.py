"""
Core mathematical algorithms for PCA and K-means clustering.

This module contains implementations of:
- Principal Component Analysis (PCA) on standardized data
- K-means clustering (Lloyd's algorithm) with seeded initialization
- Second-level refinement of a single cluster
"""

from tbclust.math.named_matrix import NamedMatrix
from tbclust.math.pca import pca_project_named_matrix, wrapped_pca
from tbclust.math.clusters import Cluster, KMeansResult, cluster_named_matrix, kmeans
from tbclust.math.refine import refine_cluster

__all__ = [
    'NamedMatrix',
    'pca_project_named_matrix',
    'wrapped_pca',
    'Cluster',
    'KMeansResult',
    'cluster_named_matrix',
    'kmeans',
    'refine_cluster',
]
