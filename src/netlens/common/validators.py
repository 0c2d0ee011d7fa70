"""
Input validation utilities for the netlens library.

These checks run at the public entry points, before any computation, so that
malformed tabular input and inconsistent partitions fail fast with a
ValidationError that names the offending field.
"""

from numbers import Integral
from typing import Any, Iterable, Mapping, Optional

import polars as pl

from .exceptions import ValidationError


def validate_edgelist_dataframe(
    df: pl.DataFrame,
    source_col: str = "source",
    target_col: str = "target"
) -> None:
    """
    Validate an edge list DataFrame for graph construction.

    Checks that the source and target columns exist and contain no null
    values. Node identifiers are later read as strings, so any dtype whose
    values render to strings is accepted.

    Parameters
    ----------
    df : pl.DataFrame
        Edge list DataFrame to validate
    source_col : str, default "source"
        Name of the source node column
    target_col : str, default "target"
        Name of the target node column

    Raises
    ------
    ValidationError
        If the DataFrame fails any validation checks

    Examples
    --------
    >>> df = pl.DataFrame({"source": ["A", "B"], "target": ["B", "C"]})
    >>> validate_edgelist_dataframe(df)
    """
    required_cols = [source_col, target_col]
    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        raise ValidationError(
            f"Missing required columns: {missing_cols}",
            field="columns",
            details={"available_columns": df.columns, "missing": missing_cols}
        )

    for col in required_cols:
        null_count = df[col].null_count()
        if null_count > 0:
            raise ValidationError(
                f"Column contains {null_count} null values",
                field=col,
                details={"null_count": null_count, "total_rows": len(df)}
            )

        dtype = df[col].dtype
        if dtype.is_nested():
            raise ValidationError(
                f"Column has nested dtype {dtype} and cannot hold node identifiers",
                field=col,
                details={"dtype": str(dtype)}
            )


def validate_partition(
    partition: Any,
    name: str = "partition",
    nodes: Optional[Iterable[str]] = None
) -> None:
    """
    Validate a node -> community id mapping.

    Parameters
    ----------
    partition : Any
        Object that should be a mapping from string node ids to integer ids
    name : str, default "partition"
        Name used in error messages
    nodes : Iterable[str], optional
        If given, every node must have an entry (totality check)

    Raises
    ------
    ValidationError
        If the partition is not a mapping, has non-integer community ids,
        or misses one of the required nodes
    """
    if not isinstance(partition, Mapping):
        raise ValidationError(
            f"Partition must be a mapping, got {type(partition).__name__}",
            field=name
        )

    for node, community in partition.items():
        if isinstance(community, bool) or not isinstance(community, Integral):
            raise ValidationError(
                f"Community id for node '{node}' is not an integer",
                field=name,
                value=community,
                expected="int"
            )

    if nodes is not None:
        missing = [node for node in nodes if node not in partition]
        if missing:
            raise ValidationError(
                f"Partition is missing {len(missing)} nodes",
                field=name,
                details={"missing_nodes": missing[:10]}
            )
