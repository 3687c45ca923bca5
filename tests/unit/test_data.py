"""Unit tests for loading and shaping input tables."""

import numpy as np
import pandas as pd
import polars as pl
import pytest

from portfolio_analytics.data import (
    add_dummies,
    design_matrix,
    drop_incomplete,
    load_csv,
    load_stata,
    require_columns,
)
from portfolio_analytics.exceptions import DataSchemaError


@pytest.fixture
def blueprinty_csv(tmp_path):
    path = tmp_path / "blueprinty.csv"
    path.write_text(
        "patents,region,age,iscustomer\n"
        "3,Northeast,32.5,1\n"
        "0,Southwest,NA,0\n"
        "5,Midwest,21.0,1\n"
        "2,Northeast,26.0,0\n"
    )
    return path


@pytest.mark.unit
class TestLoaders:
    """Tests for the CSV and Stata loaders."""

    def test_load_csv(self, blueprinty_csv):
        df = load_csv(blueprinty_csv, columns=["patents", "region", "age", "iscustomer"])
        assert df.shape == (4, 4)
        assert df["age"].null_count() == 1

    def test_load_csv_missing_columns(self, blueprinty_csv):
        with pytest.raises(DataSchemaError) as excinfo:
            load_csv(blueprinty_csv, columns=["patents", "firm_size"])

        assert excinfo.value.missing == ["firm_size"]
        assert str(blueprinty_csv) in str(excinfo.value)

    def test_load_csv_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_csv(tmp_path / "nope.csv")

    def test_load_stata(self, tmp_path):
        path = tmp_path / "karlan_list_2007.dta"
        pd.DataFrame({"treatment": [1, 0, 1], "gave": [0, 1, 0], "amount": [0.0, 25.0, 0.0]}).to_stata(
            path, write_index=False
        )

        df = load_stata(path, columns=["treatment", "gave", "amount"])
        assert isinstance(df, pl.DataFrame)
        assert df["amount"].to_list() == [0.0, 25.0, 0.0]


@pytest.mark.unit
class TestShaping:
    """Tests for cleaning and design-matrix helpers."""

    def test_require_columns_passes(self):
        require_columns(pl.DataFrame({"a": [1]}), ["a"], source="test")

    def test_drop_incomplete(self, blueprinty_csv):
        df = drop_incomplete(load_csv(blueprinty_csv), ["age"])
        assert df.shape[0] == 3
        assert df["age"].null_count() == 0

    def test_add_dummies_with_reference(self, blueprinty_csv):
        df = add_dummies(load_csv(blueprinty_csv), "region", reference="Northeast")

        assert "region" not in df.columns
        assert "region_Northeast" not in df.columns
        assert df["region_Midwest"].to_list() == [0, 0, 1, 0]
        assert df["region_Southwest"].to_list() == [0, 1, 0, 0]

    def test_add_dummies_unknown_reference(self, blueprinty_csv):
        with pytest.raises(DataSchemaError, match="Reference level"):
            add_dummies(load_csv(blueprinty_csv), "region", reference="Atlantis")

    def test_design_matrix_with_intercept(self):
        df = pl.DataFrame({"age": [20, 30], "iscustomer": [0, 1]})
        X, names = design_matrix(df, ["age", "iscustomer"])

        assert names == ["intercept", "age", "iscustomer"]
        assert X.dtype == np.float64
        np.testing.assert_array_equal(X, [[1.0, 20.0, 0.0], [1.0, 30.0, 1.0]])

    def test_design_matrix_without_intercept(self):
        X, names = design_matrix(pl.DataFrame({"age": [20, 30]}), ["age"], intercept=False)
        assert names == ["age"]
        assert X.shape == (2, 1)
