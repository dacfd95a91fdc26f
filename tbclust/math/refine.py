"""
Second-level clustering of a single cluster.

Refinement takes the rows of one cluster from a finished clustering and
clusters them again with their own k and seed. There is no automatic
stopping rule: callers decide which cluster to split and how often.
"""

import logging

from tbclust.errors import ParameterError
from tbclust.math.clusters import (
    DEFAULT_MAX_ITERS, DEFAULT_SEED, KMeansResult, cluster_named_matrix
)
from tbclust.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)


def cluster_subset(nmat: NamedMatrix, result: KMeansResult, cluster_id: int) -> NamedMatrix:
    """
    Rows of nmat that belong to cluster_id in result.

    Args:
        nmat: The matrix the clustering was computed on
        result: A clustering of nmat
        cluster_id: 1-based cluster id

    Returns:
        A new NamedMatrix holding only the member rows, in their original order
    """
    if list(result.rownames) != nmat.rownames():
        raise ParameterError("Clustering result does not match the rows of the matrix")

    members = result.members()
    if cluster_id not in members:
        raise ParameterError(
            f"Unknown cluster id {cluster_id}; expected one of {sorted(members)}"
        )
    return nmat.rowname_subset(members[cluster_id])


def refine_cluster(nmat: NamedMatrix,
                   result: KMeansResult,
                   cluster_id: int,
                   k: int,
                   seed: int = DEFAULT_SEED,
                   max_iters: int = DEFAULT_MAX_ITERS,
                   n_init: int = 1,
                   init: str = 'random',
                   empty_cluster: str = 'reseed') -> KMeansResult:
    """
    Re-cluster the members of one cluster.

    The returned result is labelled with the subset's row names, so it can
    itself be refined again by passing it together with
    ``cluster_subset(nmat, result, cluster_id)``.

    Args:
        nmat: The matrix the clustering was computed on
        result: A clustering of nmat
        cluster_id: 1-based id of the cluster to split
        k: Number of sub-clusters
        seed: Seed for the sub-clustering, independent of the parent run
        max_iters: Maximum number of iterations
        n_init: Number of restarts
        init: Initialization method
        empty_cluster: Empty-cluster policy

    Returns:
        KMeansResult over the subset rows
    """
    subset = cluster_subset(nmat, result, cluster_id)
    logger.info(f"Refining cluster {cluster_id} ({len(subset)} rows) with k={k}, seed={seed}")
    return cluster_named_matrix(
        subset, k,
        seed=seed,
        max_iters=max_iters,
        n_init=n_init,
        init=init,
        empty_cluster=empty_cluster,
    )
