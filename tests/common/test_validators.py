"""
Tests for input validation functions.

This module tests the edge-list DataFrame and partition validators, covering
both valid inputs (should pass) and invalid inputs (should raise
ValidationError).
"""

import pytest
import polars as pl

from netlens.common.exceptions import ValidationError
from netlens.common.validators import validate_edgelist_dataframe, validate_partition


class TestValidationError:
    """Test the ValidationError exception class."""

    def test_basic_error(self):
        """Test basic error creation and message."""
        error = ValidationError("Test error message")
        assert str(error) == "Validation error: Test error message"
        assert error.field is None
        assert error.details == {}

    def test_error_with_field(self):
        """Test error with a field name."""
        error = ValidationError("Column is invalid", field="source")
        assert "Validation error in field 'source': Column is invalid" in str(error)
        assert error.field == "source"

    def test_error_with_details(self):
        """Test error with additional details."""
        error = ValidationError("Too many items", details={"count": 5, "max_allowed": 10})
        assert "count=5" in str(error)
        assert "max_allowed=10" in str(error)
        assert error.details["count"] == 5


class TestValidateEdgelistDataframe:
    """Test edge list DataFrame validation."""

    def test_valid_basic_edgelist(self):
        """Test validation of a basic valid edge list."""
        df = pl.DataFrame({"source": ["A", "B", "C"], "target": ["B", "C", "A"]})
        validate_edgelist_dataframe(df)

    def test_valid_numeric_identifiers(self):
        """Test that numeric columns are accepted (read as strings later)."""
        df = pl.DataFrame({"source": [1, 2], "target": [2, 3]})
        validate_edgelist_dataframe(df)

    def test_valid_custom_columns(self):
        """Test validation with custom column names."""
        df = pl.DataFrame({"from": ["A"], "to": ["B"]})
        validate_edgelist_dataframe(df, source_col="from", target_col="to")

    def test_empty_dataframe(self):
        """Test that an empty frame with the right columns passes."""
        df = pl.DataFrame({"source": [], "target": []}, schema={"source": pl.Utf8, "target": pl.Utf8})
        validate_edgelist_dataframe(df)

    def test_missing_required_columns(self):
        """Test validation fails when required columns are missing."""
        df = pl.DataFrame({"source": ["A"], "dest": ["B"]})

        with pytest.raises(ValidationError) as exc_info:
            validate_edgelist_dataframe(df)

        assert "Missing required columns" in str(exc_info.value)
        assert exc_info.value.details["missing"] == ["target"]

    def test_null_values_in_source(self):
        """Test validation fails with null values in the source column."""
        df = pl.DataFrame({"source": ["A", None], "target": ["B", "C"]})

        with pytest.raises(ValidationError) as exc_info:
            validate_edgelist_dataframe(df)

        assert exc_info.value.field == "source"
        assert exc_info.value.details["null_count"] == 1

    def test_null_values_in_target(self):
        """Test validation fails with null values in the target column."""
        df = pl.DataFrame({"source": ["A", "B"], "target": [None, "C"]})

        with pytest.raises(ValidationError) as exc_info:
            validate_edgelist_dataframe(df)

        assert exc_info.value.field == "target"

    def test_nested_dtype_rejected(self):
        """Test validation fails for list-typed identifier columns."""
        df = pl.DataFrame({"source": [["A", "B"]], "target": ["C"]})

        with pytest.raises(ValidationError, match="nested dtype"):
            validate_edgelist_dataframe(df)


class TestValidatePartition:
    """Test partition validation."""

    def test_valid_partition(self):
        """Test a total integer partition passes."""
        validate_partition({"a": 0, "b": 1}, nodes=["a", "b"])

    def test_numpy_integer_ids_accepted(self):
        """Test numpy integer community ids are accepted."""
        import numpy as np

        validate_partition({"a": np.int64(0), "b": np.int32(1)})

    def test_not_a_mapping(self):
        """Test non-mapping input is rejected."""
        with pytest.raises(ValidationError, match="must be a mapping"):
            validate_partition([0, 1])

    def test_non_integer_ids(self):
        """Test float and bool community ids are rejected."""
        with pytest.raises(ValidationError, match="not an integer"):
            validate_partition({"a": 0.5})
        with pytest.raises(ValidationError, match="not an integer"):
            validate_partition({"a": True})

    def test_missing_nodes(self):
        """Test the totality check."""
        with pytest.raises(ValidationError) as exc_info:
            validate_partition({"a": 0}, name="detected", nodes=["a", "b", "c"])

        assert exc_info.value.field == "detected"
        assert exc_info.value.details["missing_nodes"] == ["b", "c"]
