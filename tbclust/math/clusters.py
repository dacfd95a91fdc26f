"""
K-means clustering implementation for tbclust.

This module provides Lloyd's algorithm with seeded initialization, an
explicit empty-cluster policy and canonical cluster numbering, so that a
given (matrix, k, seed) always produces the same partition.

Cluster ids exposed to callers are dense and 1-based. They are renumbered
in order of first appearance in row order: the cluster holding row 0 is
always cluster 1.
"""

import logging
import warnings
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.spatial.distance import cdist
from sklearn.metrics import silhouette_score

from tbclust.errors import (
    EmptyClusterError, NonConvergenceWarning, ParameterError
)
from tbclust.math.named_matrix import NamedMatrix
from tbclust.math.validation import as_numeric_matrix, check_k, check_positive_int

logger = logging.getLogger(__name__)

DEFAULT_SEED = 1
DEFAULT_MAX_ITERS = 10

INIT_METHODS = ('random', 'kmeans++')
EMPTY_CLUSTER_POLICIES = ('reseed', 'error')


class Cluster:
    """
    Represents a cluster in K-means clustering.
    """

    def __init__(self,
                 center: np.ndarray,
                 members: Optional[List[int]] = None,
                 id: Optional[int] = None):
        """
        Initialize a cluster with a center and optional members.

        Args:
            center: The center of the cluster
            members: Indices of members belonging to the cluster
            id: Cluster id (1-based once a clustering is finished)
        """
        self.center = np.array(center, dtype=float)
        self.members = [] if members is None else list(members)
        self.id = id

    def __len__(self) -> int:
        return len(self.members)

    def __repr__(self) -> str:
        return f"Cluster(id={self.id}, members={len(self.members)})"


def distinct_row_indices(data: np.ndarray) -> np.ndarray:
    """
    Indices of the first occurrence of each distinct row, in row order.
    """
    _, first = np.unique(data, axis=0, return_index=True)
    return np.sort(first)


def init_centers(data: np.ndarray,
                 k: int,
                 rng: np.random.RandomState,
                 method: str = 'random') -> np.ndarray:
    """
    Choose k initial centers from the distinct rows of data.

    'random' samples k distinct rows uniformly. 'kmeans++' picks the first
    row uniformly and each further row with probability proportional to its
    squared distance from the nearest center chosen so far.

    Args:
        data: Data matrix
        k: Number of clusters
        rng: Seeded random source
        method: 'random' or 'kmeans++'

    Returns:
        Array of shape (k, n_cols)
    """
    candidates = distinct_row_indices(data)
    if k > len(candidates):
        raise ParameterError(
            f"More cluster centers ({k}) than distinct data points ({len(candidates)})"
        )

    if method == 'random':
        chosen = rng.choice(candidates, size=k, replace=False)
        return data[chosen].copy()

    chosen = [candidates[rng.randint(len(candidates))]]
    for _ in range(1, k):
        d2 = cdist(data[candidates], data[chosen], 'sqeuclidean').min(axis=1)
        probs = d2 / d2.sum()
        chosen.append(rng.choice(candidates, p=probs))
    return data[np.array(chosen)].copy()


def assign_points(data: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """
    Index of the nearest center for every row.

    Ties go to the lowest center index.
    """
    return np.argmin(cdist(data, centers, 'sqeuclidean'), axis=1)


def compute_centers(data: np.ndarray, labels: np.ndarray, k: int,
                    previous: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Mean of the member rows of each cluster.

    Clusters without members keep their previous center (or zeros when no
    previous centers are given).
    """
    centers = np.zeros((k, data.shape[1])) if previous is None else previous.copy()
    for j in range(k):
        mask = labels == j
        if np.any(mask):
            centers[j] = data[mask].mean(axis=0)
    return centers


def most_distal(data: np.ndarray, labels: np.ndarray, centers: np.ndarray) -> int:
    """
    Row farthest from its own center, among rows of clusters with more
    than one member. Returns -1 when no such row exists.
    """
    sizes = np.bincount(labels, minlength=len(centers))
    eligible = sizes[labels] > 1
    if not np.any(eligible):
        return -1
    dists = np.sum((data - centers[labels]) ** 2, axis=1)
    dists[~eligible] = -1.0
    return int(np.argmax(dists))


def fill_empty_clusters(data: np.ndarray,
                        labels: np.ndarray,
                        centers: np.ndarray,
                        iteration: int,
                        policy: str,
                        diagnostics: List[str]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Apply the empty-cluster policy to an assignment.

    Under 'reseed' each empty cluster (lowest index first) takes over the
    row farthest from its current center and is centered on it. Under
    'error' an EmptyClusterError is raised.

    Returns:
        Tuple of (labels, centers), copies when anything changed
    """
    k = len(centers)
    sizes = np.bincount(labels, minlength=k)
    empty = np.where(sizes == 0)[0]
    if len(empty) == 0:
        return labels, centers

    if policy == 'error':
        raise EmptyClusterError(int(empty[0]), iteration)

    labels = labels.copy()
    centers = centers.copy()
    for j in empty:
        idx = most_distal(data, labels, centers)
        if idx < 0:
            raise EmptyClusterError(int(j), iteration)
        source = labels[idx]
        labels[idx] = j
        centers[j] = data[idx]
        message = (f"Cluster {j + 1} became empty at iteration {iteration}; "
                   f"reseeded from row {idx} (taken from cluster {source + 1})")
        logger.warning(message)
        diagnostics.append(message)
    return labels, centers


def lloyd(data: np.ndarray,
          centers: np.ndarray,
          max_iters: int = DEFAULT_MAX_ITERS,
          empty_cluster: str = 'reseed') -> Dict[str, Any]:
    """
    Run Lloyd iterations from the given starting centers.

    One iteration recomputes the centers from the current assignment and
    reassigns every row. The loop stops when the assignment no longer
    changes or after max_iters iterations.

    Returns:
        Dictionary with 'labels' (0-based), 'centers', 'iterations',
        'converged' and 'diagnostics'
    """
    k = len(centers)
    diagnostics = []

    labels = assign_points(data, centers)
    labels, centers = fill_empty_clusters(data, labels, centers, 0, empty_cluster, diagnostics)

    converged = False
    iterations = 0
    for iteration in range(1, max_iters + 1):
        iterations = iteration
        centers = compute_centers(data, labels, k, centers)
        new_labels = assign_points(data, centers)
        new_labels, centers = fill_empty_clusters(
            data, new_labels, centers, iteration, empty_cluster, diagnostics
        )
        logger.debug(f"Iteration {iteration}: {int(np.sum(new_labels != labels))} row(s) moved")
        if np.array_equal(new_labels, labels):
            converged = True
            break
        labels = new_labels

    return {
        'labels': labels,
        'centers': compute_centers(data, labels, k, centers),
        'iterations': iterations,
        'converged': converged,
        'diagnostics': diagnostics,
    }


def canonical_labels(labels: np.ndarray, k: int) -> np.ndarray:
    """
    Renumber 0-based labels to 1..k in order of first appearance.
    """
    uniq, first = np.unique(labels, return_index=True)
    mapping = np.zeros(k, dtype=int)
    for new_id, old in enumerate(uniq[np.argsort(first)], start=1):
        mapping[old] = new_id
    return mapping[labels]


def within_sum_of_squares(data: np.ndarray, assignments: np.ndarray,
                          centers: np.ndarray) -> np.ndarray:
    """
    Within-cluster sum of squared distances for each cluster.

    Args:
        data: Data matrix
        assignments: 1-based cluster id per row
        centers: One center per cluster id, in id order

    Returns:
        Array of per-cluster sums
    """
    diffs = data - centers[assignments - 1]
    sq = np.sum(diffs ** 2, axis=1)
    return np.bincount(assignments - 1, weights=sq, minlength=len(centers))


class KMeansResult:
    """
    Outcome of a k-means run.

    Attributes:
        k: Number of clusters
        seed: Seed used for initialization
        assignments: 1-based cluster id per row
        centers: Array of shape (k, n_cols); row i is the center of cluster i + 1
        sizes: Number of rows in each cluster
        withinss: Within-cluster sum of squares per cluster
        tot_withinss: Sum of withinss
        totss: Total sum of squares around the grand mean
        betweenss: totss - tot_withinss
        iterations: Lloyd iterations performed by the kept run
        converged: False when the iteration cap was hit
        diagnostics: Messages about anomalies met while iterating
        rownames: Row labels
        colnames: Column labels
    """

    def __init__(self,
                 data: np.ndarray,
                 assignments: np.ndarray,
                 centers: np.ndarray,
                 iterations: int,
                 converged: bool,
                 seed: int,
                 diagnostics: Optional[List[str]] = None,
                 rownames: Optional[List[Any]] = None,
                 colnames: Optional[List[Any]] = None):
        self.k = len(centers)
        self.seed = seed
        self.assignments = np.asarray(assignments, dtype=int)
        self.centers = np.asarray(centers, dtype=float)
        self.iterations = iterations
        self.converged = converged
        self.diagnostics = list(diagnostics or [])
        self.rownames = list(range(data.shape[0])) if rownames is None else list(rownames)
        self.colnames = list(range(data.shape[1])) if colnames is None else list(colnames)

        self.sizes = np.bincount(self.assignments - 1, minlength=self.k)
        self.withinss = within_sum_of_squares(data, self.assignments, self.centers)
        self.tot_withinss = float(self.withinss.sum())
        self.totss = float(np.sum((data - data.mean(axis=0)) ** 2))
        self.betweenss = self.totss - self.tot_withinss

        self.clusters = [
            Cluster(self.centers[i], np.where(self.assignments == i + 1)[0].tolist(), i + 1)
            for i in range(self.k)
        ]

    def assignment_dict(self) -> Dict[Any, int]:
        """Row label -> cluster id."""
        return {name: int(cid) for name, cid in zip(self.rownames, self.assignments)}

    def members(self) -> Dict[int, List[Any]]:
        """Cluster id -> list of row labels, in row order."""
        return {
            cluster.id: [self.rownames[idx] for idx in cluster.members]
            for cluster in self.clusters
        }

    def size_dict(self) -> Dict[int, int]:
        return {i + 1: int(size) for i, size in enumerate(self.sizes)}

    def centroid_frame(self) -> pd.DataFrame:
        """Centers as a DataFrame indexed by cluster id, one column per observation."""
        return pd.DataFrame(
            self.centers,
            index=pd.Index(range(1, self.k + 1), name='cluster'),
            columns=self.colnames,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data representation suitable for JSON serialization."""
        return {
            'k': self.k,
            'seed': self.seed,
            'iterations': self.iterations,
            'converged': self.converged,
            'diagnostics': list(self.diagnostics),
            'tot_withinss': self.tot_withinss,
            'totss': self.totss,
            'betweenss': self.betweenss,
            'assignments': self.assignment_dict(),
            'clusters': [
                dict(entry, size=int(self.sizes[i]), withinss=float(self.withinss[i]))
                for i, entry in enumerate(clusters_to_dict(self.clusters, self.rownames))
            ],
        }

    def __repr__(self) -> str:
        return (f"KMeansResult(k={self.k}, sizes={self.sizes.tolist()}, "
                f"tot_withinss={self.tot_withinss:.4g}, converged={self.converged})")


def _check_options(max_iters: int, n_init: int, init: str, empty_cluster: str, seed: Any) -> None:
    check_positive_int(max_iters, 'max_iters')
    check_positive_int(n_init, 'n_init')
    if init not in INIT_METHODS:
        raise ParameterError(f"Unknown init method {init!r}, expected one of {INIT_METHODS}")
    if empty_cluster not in EMPTY_CLUSTER_POLICIES:
        raise ParameterError(
            f"Unknown empty-cluster policy {empty_cluster!r}, "
            f"expected one of {EMPTY_CLUSTER_POLICIES}"
        )
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)) or seed < 0:
        raise ParameterError(f"seed must be a non-negative integer, got {seed!r}")


def kmeans(data: Any,
           k: int,
           seed: int = DEFAULT_SEED,
           max_iters: int = DEFAULT_MAX_ITERS,
           n_init: int = 1,
           init: str = 'random',
           empty_cluster: str = 'reseed',
           rownames: Optional[List[Any]] = None,
           colnames: Optional[List[Any]] = None) -> KMeansResult:
    """
    Perform K-means clustering on the data.

    All inputs are validated before any iteration. With n_init > 1 the
    algorithm is restarted from fresh centers drawn from the same seeded
    random stream and the run with the lowest total within-cluster sum of
    squares is kept (the earliest one on ties).

    Args:
        data: n x m numeric matrix
        k: Number of clusters, 1 <= k <= n
        seed: Seed for the initialization random source
        max_iters: Maximum number of Lloyd iterations per run
        n_init: Number of restarts
        init: 'random' or 'kmeans++'
        empty_cluster: 'reseed' or 'error'
        rownames: Optional row labels
        colnames: Optional column labels

    Returns:
        KMeansResult

    Raises:
        InputShapeError: for malformed data
        ParameterError: for out-of-range parameters
        EmptyClusterError: when a cluster empties under the 'error' policy
    """
    matrix = as_numeric_matrix(data)
    k = check_k(k, matrix.shape[0])
    _check_options(max_iters, n_init, init, empty_cluster, seed)

    logger.info(
        f"Running k-means: k={k}, seed={seed}, n_init={n_init}, init={init}, "
        f"max_iters={max_iters} on {matrix.shape[0]}x{matrix.shape[1]} matrix"
    )

    rng = np.random.RandomState(seed)
    best = None
    best_wss = None
    for run in range(n_init):
        centers = init_centers(matrix, k, rng, init)
        outcome = lloyd(matrix, centers, max_iters, empty_cluster)
        diffs = matrix - outcome['centers'][outcome['labels']]
        wss = float(np.sum(diffs ** 2))
        logger.debug(f"Run {run + 1}/{n_init}: tot_withinss={wss:.6g}")
        if best is None or wss < best_wss:
            best = outcome
            best_wss = wss

    if not best['converged']:
        message = (f"k-means did not converge within {max_iters} iterations "
                   f"(k={k}, seed={seed})")
        logger.warning(message)
        best['diagnostics'].append(message)
        warnings.warn(message, NonConvergenceWarning, stacklevel=2)

    labels = canonical_labels(best['labels'], k)
    # Reorder centers so that row i belongs to cluster id i + 1
    centers = np.zeros_like(best['centers'])
    for old, new in zip(best['labels'], labels):
        centers[new - 1] = best['centers'][old]

    return KMeansResult(
        matrix, labels, centers,
        iterations=best['iterations'],
        converged=best['converged'],
        seed=seed,
        diagnostics=best['diagnostics'],
        rownames=rownames,
        colnames=colnames,
    )


def cluster_named_matrix(nmat: NamedMatrix,
                         k: int,
                         seed: int = DEFAULT_SEED,
                         max_iters: int = DEFAULT_MAX_ITERS,
                         n_init: int = 1,
                         init: str = 'random',
                         empty_cluster: str = 'reseed') -> KMeansResult:
    """
    Cluster the rows of a NamedMatrix.

    Args:
        nmat: NamedMatrix to cluster
        k: Number of clusters
        seed: Seed for the initialization random source
        max_iters: Maximum number of iterations
        n_init: Number of restarts
        init: Initialization method
        empty_cluster: Empty-cluster policy

    Returns:
        KMeansResult labelled with the matrix row and column names
    """
    return kmeans(
        nmat.values, k,
        seed=seed,
        max_iters=max_iters,
        n_init=n_init,
        init=init,
        empty_cluster=empty_cluster,
        rownames=nmat.rownames(),
        colnames=nmat.colnames(),
    )


def silhouette(data: Any, assignments: Any) -> float:
    """
    Mean silhouette coefficient of a clustering.

    Args:
        data: Data matrix
        assignments: Cluster id per row

    Returns:
        Silhouette coefficient between -1 and 1, or 0.0 when it is
        undefined (fewer than 2 clusters, or every row in its own cluster)
    """
    matrix = as_numeric_matrix(data)
    labels = np.asarray(assignments)
    n_labels = len(np.unique(labels))
    if n_labels < 2 or n_labels >= matrix.shape[0]:
        return 0.0
    return float(silhouette_score(matrix, labels))


def clusters_to_dict(clusters: List[Cluster], data_indices: Optional[List[Any]] = None) -> List[Dict]:
    """
    Convert clusters to a dictionary format for serialization.

    Args:
        clusters: List of clusters
        data_indices: Optional mapping from numerical indices to row labels

    Returns:
        List of cluster dictionaries
    """
    result = []

    for cluster in clusters:
        if data_indices is not None:
            members = [data_indices[idx] for idx in cluster.members]
        else:
            members = list(cluster.members)

        result.append({
            'id': cluster.id,
            'center': cluster.center.tolist(),
            'members': members,
        })

    return result


def clusters_from_dict(clusters_dict: List[Dict],
                       data_index_map: Optional[Dict[Any, int]] = None) -> List[Cluster]:
    """
    Convert dictionary format back to Cluster objects.

    Args:
        clusters_dict: List of cluster dictionaries
        data_index_map: Optional mapping from row labels to numerical indices

    Returns:
        List of Cluster objects
    """
    result = []

    for cluster_dict in clusters_dict:
        if data_index_map is not None:
            members = [data_index_map[m] for m in cluster_dict['members']]
        else:
            members = cluster_dict['members']

        result.append(Cluster(
            center=np.array(cluster_dict['center']),
            members=members,
            id=cluster_dict.get('id'),
        ))

    return result
