"""
Error taxonomy for tbclust.

Input validation failures and bad parameters are raised before any
computation starts. Anomalies met while iterating (non-convergence,
reseeded empty clusters) are reported on the result instead, with the
exception of the explicit ``error`` empty-cluster policy.
"""


class TbclustError(Exception):
    """Base class for all tbclust errors."""


class InputShapeError(TbclustError, ValueError):
    """
    Raised when input data cannot be analysed as a labelled numeric table.

    Covers ragged rows, non-numeric or missing cells, duplicate row labels,
    zero-variance columns and shapes too small for PCA.
    """


class ParameterError(TbclustError, ValueError):
    """Raised when a caller-supplied parameter is out of range."""


class EmptyClusterError(TbclustError, RuntimeError):
    """
    Raised when a cluster loses all of its members during k-means and the
    ``error`` empty-cluster policy is in force.
    """

    def __init__(self, cluster_index: int, iteration: int):
        self.cluster_index = cluster_index
        self.iteration = iteration
        super().__init__(
            f"Cluster {cluster_index + 1} became empty at iteration {iteration}"
        )


class NonConvergenceWarning(UserWarning):
    """Emitted when k-means hits its iteration cap with assignments still changing."""
