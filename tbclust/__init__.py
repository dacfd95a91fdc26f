"""
tbclust: principal component analysis and k-means clustering of yearly
incidence tables.

Loads a labelled table (countries x years), reduces it with a standardized
PCA, partitions it with seeded k-means and supports caller-driven
re-clustering of a single cluster.
"""

__version__ = '0.1.0'

from tbclust.components.config import Config, ConfigManager
from tbclust.data_loader import load_csv, load_dataframe
from tbclust.errors import (
    EmptyClusterError, InputShapeError, NonConvergenceWarning, ParameterError, TbclustError
)
from tbclust.math.named_matrix import NamedMatrix
from tbclust.math.pca import pca_project_named_matrix, wrapped_pca
from tbclust.math.clusters import KMeansResult, cluster_named_matrix, kmeans
from tbclust.math.refine import refine_cluster
