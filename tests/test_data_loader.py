"""
Tests for CSV loading.
"""

import io

import pytest
import numpy as np
import pandas as pd

from tbclust.data_loader import load_csv, load_dataframe
from tbclust.errors import InputShapeError


def write(tmp_path, text, name="data.csv"):
    path = tmp_path / name
    path.write_text(text)
    return path


class TestLoadCSV:
    """Tests for load_csv."""

    def test_load(self, incidence_csv):
        nmat = load_csv(str(incidence_csv))

        assert nmat.rownames()[:3] == ['Afghanistan', 'Albania', 'Algeria']
        assert nmat.colnames() == ['X1990', 'X1991', 'X1992']
        assert nmat.shape == (6, 3)

    def test_thousands_separator_stripped(self, incidence_csv):
        nmat = load_csv(incidence_csv)
        assert np.array_equal(nmat.matrix.loc['Afghanistan'].values, [1168.0, 1150.0, 1120.0])

    def test_file_like_source(self):
        buffer = io.StringIO("name,X1990,X1991\nA,1,2\nB,\"2,000\",4\n")
        nmat = load_csv(buffer)
        assert np.array_equal(nmat.values, [[1.0, 2.0], [2000.0, 4.0]])

    def test_labels_are_stripped(self):
        nmat = load_csv(io.StringIO("name,X1990\n  Chad ,5\nCuba,6\n"))
        assert nmat.rownames() == ['Chad', 'Cuba']

    def test_label_column_by_name(self):
        text = "X1990,country,X1991\n1,A,2\n3,B,4\n"
        nmat = load_csv(io.StringIO(text), label_column='country')

        assert nmat.rownames() == ['A', 'B']
        assert nmat.colnames() == ['X1990', 'X1991']
        assert np.array_equal(nmat.values, [[1.0, 2.0], [3.0, 4.0]])

    def test_missing_cell(self, tmp_path):
        path = write(tmp_path, "country,X1990,X1991\nA,1,2\nB,,4\n")
        with pytest.raises(InputShapeError, match="Missing value"):
            load_csv(path)

    def test_short_row(self, tmp_path):
        path = write(tmp_path, "country,X1990,X1991\nA,1,2\nB,3\n")
        with pytest.raises(InputShapeError):
            load_csv(path)

    def test_long_row(self, tmp_path):
        path = write(tmp_path, "country,X1990,X1991\nA,1,2\nB,3,4\nC,5,6,7\n")
        with pytest.raises(InputShapeError):
            load_csv(path)

    def test_non_numeric_cell(self, tmp_path):
        path = write(tmp_path, "country,X1990,X1991\nA,1,2\nB,three,4\n")
        with pytest.raises(InputShapeError, match="three"):
            load_csv(path)

    def test_duplicate_labels(self, tmp_path):
        path = write(tmp_path, "country,X1990\nA,1\nA,2\n")
        with pytest.raises(InputShapeError):
            load_csv(path)

    def test_empty_file(self, tmp_path):
        path = write(tmp_path, "")
        with pytest.raises(InputShapeError):
            load_csv(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_csv(tmp_path / "nope.csv")


class TestLoadDataFrame:
    """Tests for load_dataframe."""

    def test_numeric_frame(self):
        frame = pd.DataFrame({
            'country': ['A', 'B'],
            'X1990': [1.5, 2.5],
            'X1991': [3, 4]
        })
        nmat = load_dataframe(frame)

        assert nmat.rownames() == ['A', 'B']
        assert np.array_equal(nmat.values, [[1.5, 3.0], [2.5, 4.0]])

    def test_label_column_out_of_range(self):
        frame = pd.DataFrame({'country': ['A'], 'X1990': [1]})
        with pytest.raises(InputShapeError):
            load_dataframe(frame, label_column=5)

    def test_unknown_label_column(self):
        frame = pd.DataFrame({'country': ['A'], 'X1990': [1]})
        with pytest.raises(InputShapeError):
            load_dataframe(frame, label_column='name')

    def test_label_only(self):
        frame = pd.DataFrame({'country': ['A', 'B']})
        with pytest.raises(InputShapeError):
            load_dataframe(frame)

    def test_missing_label(self):
        frame = pd.DataFrame({'country': ['A', None], 'X1990': ['1', '2']})
        with pytest.raises(InputShapeError):
            load_dataframe(frame)

    def test_custom_thousands_separator(self):
        frame = pd.DataFrame({'country': ['A'], 'X1990': ['1.234'], 'X1991': ['5']})
        nmat = load_dataframe(frame, thousands='.')
        assert np.array_equal(nmat.values, [[1234.0, 5.0]])
