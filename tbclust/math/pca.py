"""
PCA (Principal Component Analysis) implementation for tbclust.

Components are obtained from a symmetric eigendecomposition of the
covariance matrix of the standardized data (or, equivalently, from the SVD
of the standardized data itself). Columns are centered and scaled to unit
sample variance before decomposition, matching R's ``prcomp(x, scale.=TRUE)``.

The sign of a principal axis is arbitrary. Each component is flipped so
that its first non-negligible loading is positive, which keeps results
stable across runs, but callers should not attach meaning to the sign.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy import linalg

from tbclust.errors import InputShapeError, ParameterError
from tbclust.math.named_matrix import NamedMatrix
from tbclust.math.validation import as_numeric_matrix

logger = logging.getLogger(__name__)

PCA_METHODS = ('eigen', 'svd')


def normalize_sign(comps: np.ndarray) -> np.ndarray:
    """
    Flip each component so that its first non-negligible loading is positive.

    Args:
        comps: Matrix with one component per row

    Returns:
        Sign-normalized copy of comps
    """
    comps = np.array(comps, dtype=float)
    for i, comp in enumerate(comps):
        for value in comp:
            if abs(value) > 1e-10:
                if value < 0:
                    comps[i] = -comp
                break
    return comps


def standardize(data: np.ndarray, scale: bool = True) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Center (and optionally scale) the columns of a matrix.

    Args:
        data: Validated numeric matrix
        scale: Divide each column by its sample standard deviation

    Returns:
        Tuple of (standardized matrix, column means, column scales)

    Raises:
        InputShapeError: if scaling is requested and a column has zero variance
    """
    center = data.mean(axis=0)
    if scale:
        # A column has zero variance exactly when all its values are equal
        zero_cols = np.where(np.ptp(data, axis=0) == 0)[0]
        if len(zero_cols) > 0:
            raise InputShapeError(
                f"Cannot scale zero-variance column(s) at position(s) {zero_cols.tolist()}"
            )
        sd = data.std(axis=0, ddof=1)
    else:
        sd = np.ones(data.shape[1])
    return (data - center) / sd, center, sd


def _eigen_decomposition(std_data: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    n_rows = std_data.shape[0]
    cov = std_data.T @ std_data / (n_rows - 1)
    # eigh returns ascending eigenvalues for symmetric input
    eigvals, eigvecs = linalg.eigh(cov)
    order = np.argsort(eigvals)[::-1]
    return eigvals[order], eigvecs[:, order].T


def _svd_decomposition(std_data: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    n_rows, n_cols = std_data.shape
    _, singular, vt = linalg.svd(std_data, full_matrices=False)
    eigvals = np.zeros(n_cols)
    eigvals[:len(singular)] = singular ** 2 / (n_rows - 1)
    return eigvals, vt[:n_cols]


def wrapped_pca(data: Any,
                n_comps: Optional[int] = None,
                scale: bool = True,
                method: str = 'eigen') -> Dict[str, np.ndarray]:
    """
    Compute a principal component analysis of a numeric matrix.

    Args:
        data: n x m numeric matrix (rows = entities, columns = observations)
        n_comps: Number of components to keep (defaults to m)
        scale: Scale columns to unit variance before decomposition
        method: 'eigen' (covariance eigendecomposition) or 'svd'

    Returns:
        Dictionary with keys 'center', 'scale', 'comps', 'eigenvalues',
        'explained_variance', 'cumulative_variance' and 'scores'

    Raises:
        InputShapeError: for malformed data, fewer than 2 columns, fewer rows
            than columns, or a zero-variance column when scaling
        ParameterError: for an invalid n_comps or method
    """
    matrix = as_numeric_matrix(data)
    n_rows, n_cols = matrix.shape

    if n_cols < 2:
        raise InputShapeError(f"PCA needs at least 2 columns, got {n_cols}")
    if n_rows < n_cols:
        raise InputShapeError(
            f"PCA needs at least as many rows as columns, got {n_rows} x {n_cols}"
        )

    if n_comps is None:
        n_comps = n_cols
    if isinstance(n_comps, bool) or not isinstance(n_comps, (int, np.integer)):
        raise ParameterError(f"n_comps must be an integer, got {n_comps!r}")
    if n_comps < 1 or n_comps > n_cols:
        raise ParameterError(f"n_comps must be in [1, {n_cols}], got {n_comps}")

    if method not in PCA_METHODS:
        raise ParameterError(f"Unknown PCA method {method!r}, expected one of {PCA_METHODS}")

    std_data, center, sd = standardize(matrix, scale)

    if method == 'svd':
        eigvals, comps = _svd_decomposition(std_data)
    else:
        eigvals, comps = _eigen_decomposition(std_data)

    # Tiny negative eigenvalues are rounding noise of a rank-deficient covariance
    eigvals = np.clip(eigvals, 0.0, None)
    total = eigvals.sum()
    if total <= 0:
        raise InputShapeError("Total variance is zero; nothing to decompose")

    comps = normalize_sign(comps)
    explained = eigvals / total

    logger.debug(
        f"PCA on {n_rows}x{n_cols} matrix (scale={scale}, method={method}): "
        f"explained variance {np.round(explained[:n_comps], 4).tolist()}"
    )

    kept = comps[:n_comps]
    return {
        'center': center,
        'scale': sd,
        'comps': kept,
        'eigenvalues': eigvals[:n_comps],
        'explained_variance': explained[:n_comps],
        'cumulative_variance': np.cumsum(explained)[:n_comps],
        'scores': std_data @ kept.T,
    }


def project(data: Any, pca_results: Dict[str, np.ndarray]) -> np.ndarray:
    """
    Project rows into an existing PCA space.

    Args:
        data: Matrix of rows with the same columns as the fitted data
        pca_results: Output of wrapped_pca

    Returns:
        Array of scores, one row per input row
    """
    matrix = as_numeric_matrix(data)
    n_cols = len(pca_results['center'])
    if matrix.shape[1] != n_cols:
        raise InputShapeError(
            f"Expected {n_cols} columns to project, got {matrix.shape[1]}"
        )
    std_data = (matrix - pca_results['center']) / pca_results['scale']
    return std_data @ pca_results['comps'].T


def component_names(n_comps: int) -> List[str]:
    """Return the conventional names PC1..PCn."""
    return [f"PC{i + 1}" for i in range(n_comps)]


def pca_project_named_matrix(nmat: NamedMatrix,
                             n_comps: int = 2,
                             scale: bool = True,
                             method: str = 'eigen') -> Tuple[Dict[str, np.ndarray], Dict[Any, np.ndarray]]:
    """
    Perform PCA on a NamedMatrix and project its rows.

    Args:
        nmat: NamedMatrix containing the data
        n_comps: Number of components to keep
        scale: Scale columns to unit variance
        method: Decomposition method

    Returns:
        Tuple of (pca_results, projections by row name)
    """
    pca_results = wrapped_pca(nmat.values, n_comps, scale=scale, method=method)
    pca_results['colnames'] = nmat.colnames()
    pca_results['rownames'] = nmat.rownames()

    proj_dict = {name: proj for name, proj in zip(nmat.rownames(), pca_results['scores'])}

    logger.info(
        f"Projected {len(proj_dict)} rows onto {n_comps} components "
        f"({pca_results['cumulative_variance'][-1]:.1%} of variance)"
    )
    return pca_results, proj_dict


def scores_frame(pca_results: Dict[str, Any], rownames: Optional[List[Any]] = None) -> pd.DataFrame:
    """
    Scores as a DataFrame indexed by row name with columns PC1..PCn.
    """
    scores = pca_results['scores']
    if rownames is None:
        rownames = pca_results.get('rownames', list(range(scores.shape[0])))
    return pd.DataFrame(scores, index=rownames, columns=component_names(scores.shape[1]))


def loadings_frame(pca_results: Dict[str, Any], colnames: Optional[List[Any]] = None) -> pd.DataFrame:
    """
    Component loadings as a DataFrame: one row per original column,
    one column per component.
    """
    comps = pca_results['comps']
    if colnames is None:
        colnames = pca_results.get('colnames', list(range(comps.shape[1])))
    return pd.DataFrame(comps.T, index=colnames, columns=component_names(comps.shape[0]))


def variance_summary(pca_results: Dict[str, Any]) -> pd.DataFrame:
    """
    Importance of components, in the layout of R's ``summary(prcomp(...))``.

    Returns:
        DataFrame indexed by component with columns 'std_dev',
        'proportion' and 'cumulative'
    """
    eigvals = pca_results['eigenvalues']
    return pd.DataFrame(
        {
            'std_dev': np.sqrt(eigvals),
            'proportion': pca_results['explained_variance'],
            'cumulative': pca_results['cumulative_variance'],
        },
        index=component_names(len(eigvals)),
    )
