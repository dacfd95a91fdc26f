"""
Tests for the exploration helpers.
"""

import pytest
import numpy as np

from tbclust.analysis import explore_k, exploration_summary, with_cluster_column
from tbclust.errors import ParameterError
from tbclust.math.clusters import cluster_named_matrix
from tbclust.math.named_matrix import NamedMatrix


@pytest.fixture
def blobs_nmat(blobs):
    return NamedMatrix(blobs, [f"c{i}" for i in range(len(blobs))], ['X1990', 'X1991'])


class TestExploreK:
    """Tests for explore_k."""

    def test_runs_every_k_in_order(self, blobs_nmat):
        results = explore_k(blobs_nmat, [4, 2, 3, 2], seed=1)

        assert list(results.keys()) == [2, 3, 4]
        for k, result in results.items():
            assert result.k == k
            assert result.seed == 1

    def test_matches_single_runs(self, blobs_nmat):
        """Each k gets exactly the run a direct call with the same seed produces."""
        results = explore_k(blobs_nmat, [3, 5], seed=4)
        direct = cluster_named_matrix(blobs_nmat, 5, seed=4)
        assert np.array_equal(results[5].assignments, direct.assignments)

    def test_empty_k_values(self, blobs_nmat):
        with pytest.raises(ParameterError):
            explore_k(blobs_nmat, [])

    def test_invalid_k(self, blobs_nmat):
        with pytest.raises(ParameterError):
            explore_k(blobs_nmat, [2, 100])


class TestExplorationSummary:
    """Tests for exploration_summary."""

    def test_columns(self, blobs_nmat):
        results = explore_k(blobs_nmat, [1, 2, 3], seed=1, n_init=5, max_iters=50)
        summary = exploration_summary(blobs_nmat, results)

        assert list(summary.index) == [1, 2, 3]
        assert list(summary.columns) == [
            'tot_withinss', 'betweenss_ratio', 'silhouette', 'iterations', 'converged'
        ]
        assert summary.loc[1, 'silhouette'] == 0.0
        assert np.isclose(summary.loc[1, 'betweenss_ratio'], 0.0)
        # Three blobs: k=3 separates them almost perfectly
        assert summary.loc[3, 'betweenss_ratio'] > 0.95
        assert summary.loc[3, 'silhouette'] > summary.loc[2, 'silhouette']


class TestWithClusterColumn:
    """Tests for with_cluster_column."""

    def test_adds_cluster_ids(self, four_rows_nmat):
        result = cluster_named_matrix(four_rows_nmat, 2, seed=1)
        frame = with_cluster_column(four_rows_nmat, result)

        assert frame['cluster'].tolist() == [1, 1, 2, 2]
        assert list(frame.columns) == ['X1990', 'X1991', 'X1992', 'cluster']

    def test_restrict_to_labels(self, four_rows_nmat):
        result = cluster_named_matrix(four_rows_nmat, 2, seed=1)
        frame = with_cluster_column(four_rows_nmat, result, ['d', 'a'])

        assert list(frame.index) == ['d', 'a']
        assert frame['cluster'].tolist() == [2, 1]
