"""
Shared fixtures for tbclust tests.
"""

import os
import sys

import numpy as np
import pytest

# Add the parent directory to the path to import the package
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tbclust.components.config import ConfigManager
from tbclust.math.named_matrix import NamedMatrix


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts without a shared configuration instance."""
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def four_rows():
    """Two well separated pairs of rows."""
    return np.array([
        [0.0, 0.0, 0.0],
        [1.0, 1.0, 1.0],
        [10.0, 10.0, 10.0],
        [11.0, 11.0, 11.0]
    ])


@pytest.fixture
def four_rows_nmat(four_rows):
    return NamedMatrix(four_rows, ['a', 'b', 'c', 'd'], ['X1990', 'X1991', 'X1992'])


@pytest.fixture
def blobs():
    """Three gaussian blobs of 20 points each in 2 dimensions."""
    rng = np.random.RandomState(0)
    centers = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
    return np.vstack([rng.randn(20, 2) * 0.5 + c for c in centers])


@pytest.fixture
def incidence_csv(tmp_path):
    """A small incidence table in the layout of the source data."""
    path = tmp_path / "tb.csv"
    path.write_text(
        "country,X1990,X1991,X1992\n"
        "Afghanistan,\"1,168\",1150,1120\n"
        "Albania,25,24,26\n"
        "Algeria,38,39,37\n"
        "Angola,530,510,540\n"
        "Argentina,40,42,41\n"
        "Armenia,22,27,24\n"
    )
    return path
