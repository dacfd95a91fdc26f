"""
Exploration helpers built on the reducer and the clusterer.

These functions drive the usual walkthrough: project the table onto its
first principal components, then cluster it for several values of k with
the same seed and compare the partitions.
"""

import logging
from typing import Dict, Iterable, Optional

import pandas as pd

from tbclust.errors import ParameterError
from tbclust.math.clusters import (
    DEFAULT_MAX_ITERS, DEFAULT_SEED, KMeansResult, cluster_named_matrix, silhouette
)
from tbclust.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)

DEFAULT_K_VALUES = (3, 4, 5, 6)


def explore_k(nmat: NamedMatrix,
              k_values: Iterable[int] = DEFAULT_K_VALUES,
              seed: int = DEFAULT_SEED,
              max_iters: int = DEFAULT_MAX_ITERS,
              n_init: int = 1,
              init: str = 'random',
              empty_cluster: str = 'reseed') -> Dict[int, KMeansResult]:
    """
    Cluster the same matrix once for every k, with the same seed.

    Args:
        nmat: Matrix to cluster
        k_values: Cluster counts to try
        seed: Seed shared by every run
        max_iters: Maximum number of iterations per run
        n_init: Number of restarts per run
        init: Initialization method
        empty_cluster: Empty-cluster policy

    Returns:
        Dictionary mapping k to its KMeansResult, in ascending k order
    """
    k_values = sorted(set(k_values))
    if not k_values:
        raise ParameterError("At least one value of k is required")

    results = {}
    for k in k_values:
        results[k] = cluster_named_matrix(
            nmat, k,
            seed=seed,
            max_iters=max_iters,
            n_init=n_init,
            init=init,
            empty_cluster=empty_cluster,
        )
        logger.info(f"k={k}: sizes {results[k].sizes.tolist()}, "
                    f"tot_withinss {results[k].tot_withinss:.4g}")
    return results


def exploration_summary(nmat: NamedMatrix,
                        results: Dict[int, KMeansResult]) -> pd.DataFrame:
    """
    One row per k with the quantities used to compare partitions.

    Columns: 'tot_withinss', 'betweenss_ratio' (betweenss / totss),
    'silhouette', 'iterations' and 'converged'.
    """
    data = nmat.values
    rows = []
    for k, result in sorted(results.items()):
        ratio = result.betweenss / result.totss if result.totss > 0 else 0.0
        rows.append({
            'k': k,
            'tot_withinss': result.tot_withinss,
            'betweenss_ratio': ratio,
            'silhouette': silhouette(data, result.assignments),
            'iterations': result.iterations,
            'converged': result.converged,
        })
    return pd.DataFrame(rows).set_index('k')


def with_cluster_column(nmat: NamedMatrix,
                        result: KMeansResult,
                        labels: Optional[Iterable] = None) -> pd.DataFrame:
    """
    Attach cluster ids to the original table.

    Returns the matrix as a DataFrame with an extra 'cluster' column, limited
    to ``labels`` when given.
    """
    frame = nmat.matrix
    frame['cluster'] = pd.Series(result.assignment_dict())
    if labels is not None:
        frame = frame.loc[list(labels)]
    return frame
