"""
Text and JSON rendering of analysis results.

The reporter only formats what the reducer and clusterer produced; it never
recomputes anything.
"""

import json
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from tbclust.math.clusters import KMeansResult
from tbclust.math.pca import loadings_frame, scores_frame, variance_summary


def _to_builtin(value: Any) -> Any:
    # json cannot serialize numpy scalars or arrays
    if isinstance(value, dict):
        return {str(k): _to_builtin(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_builtin(v) for v in value]
    if isinstance(value, np.ndarray):
        return _to_builtin(value.tolist())
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    return value


def to_json(payload: Dict[str, Any], indent: int = 2) -> str:
    return json.dumps(_to_builtin(payload), indent=indent)


def pca_payload(pca_results: Dict[str, Any], n_scores: int = 2) -> Dict[str, Any]:
    """
    Plain-data view of a PCA: variance table and the first n_scores
    score columns per row.
    """
    summary = variance_summary(pca_results)
    scores = scores_frame(pca_results).iloc[:, :n_scores]
    return {
        'explained_variance': summary['proportion'].to_dict(),
        'cumulative_variance': summary['cumulative'].to_dict(),
        'scores': {name: row.tolist() for name, row in scores.iterrows()},
    }


def format_pca(pca_results: Dict[str, Any], n_scores: int = 2,
               max_rows: Optional[int] = None) -> str:
    """Variance summary, loadings of the first components and row scores."""
    lines = ["Importance of components:"]
    lines.append(variance_summary(pca_results).T.to_string(float_format=lambda v: f"{v:.4f}"))
    lines.append("")
    lines.append("Loadings:")
    loadings = loadings_frame(pca_results).iloc[:, :n_scores]
    lines.append(loadings.to_string(float_format=lambda v: f"{v:.4f}"))
    lines.append("")
    lines.append("Scores:")
    scores = scores_frame(pca_results).iloc[:, :n_scores]
    if max_rows is not None:
        scores = scores.head(max_rows)
    lines.append(scores.to_string(float_format=lambda v: f"{v:.4f}"))
    return "\n".join(lines)


def format_clusters(result: KMeansResult, title: Optional[str] = None) -> str:
    """
    Cluster sizes, within-cluster sums of squares, member lists and centroids.
    """
    lines = []
    if title:
        lines.append(title)
    lines.append(
        f"k = {result.k}, seed = {result.seed}, iterations = {result.iterations}"
        f"{'' if result.converged else ' (not converged)'}"
    )
    lines.append(
        f"Within-cluster sum of squares by cluster: "
        f"{', '.join(f'{w:.2f}' for w in result.withinss)}"
    )
    if result.totss > 0:
        lines.append(f"(between_SS / total_SS = {result.betweenss / result.totss:.1%})")

    for cluster_id, names in result.members().items():
        lines.append("")
        lines.append(f"Cluster {cluster_id} ({len(names)} members):")
        lines.append("  " + ", ".join(str(name) for name in names))

    lines.append("")
    lines.append("Centroids:")
    lines.append(result.centroid_frame().to_string(float_format=lambda v: f"{v:.2f}"))

    for message in result.diagnostics:
        lines.append(f"Note: {message}")

    return "\n".join(lines)


def format_exploration(summary: pd.DataFrame, results: Dict[int, KMeansResult]) -> str:
    """Comparison table for several k followed by cluster sizes per k."""
    lines = ["Partition quality by k:"]
    lines.append(summary.to_string(float_format=lambda v: f"{v:.4f}"))
    lines.append("")
    for k, result in sorted(results.items()):
        sizes: List[str] = [f"{cid}:{size}" for cid, size in result.size_dict().items()]
        lines.append(f"k={k} cluster sizes: {' '.join(sizes)}")
    return "\n".join(lines)
