"""
Common utilities for the netlens library.

This module provides shared functionality used across all other modules:
- ID mapping between node identifiers and dense integer indices
- Input validation for edge lists, parameters and partitions
- Custom exception hierarchy
- Logging configuration and timing helpers
- Cooperative cancellation tokens
"""

from .exceptions import (
    NetworkAnalysisError,
    ValidationError,
    GraphConstructionError,
    ConfigurationError,
    ComputationError,
    ScaleLimitError,
    OperationCancelledError,
    DataFormatError,
    validate_parameter,
    require_positive,
    require_probability
)

from .id_mapper import IDMapper
from .validators import validate_edgelist_dataframe, validate_partition
from .cancellation import CancellationToken, check_cancelled

from .logging_config import (
    setup_logging,
    get_logger,
    configure_external_library_logging,
    log_function_entry,
    log_performance_metric,
    LoggingTimer,
    JSONFormatter
)
