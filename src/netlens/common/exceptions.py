"""
Exception hierarchy for the netlens graph analytics library.

Every error raised deliberately by the library derives from
NetworkAnalysisError, so callers can catch the whole family with one clause.
The subclasses map onto the failure modes of the analytics engine:

- ValidationError / DataFormatError: malformed input data
- ConfigurationError: unknown algorithm selector or invalid parameter
- ComputationError / ScaleLimitError: a computation that cannot (or must not) run
- OperationCancelledError: cooperative cancellation requested by the caller

Degenerate inputs (empty graphs, single nodes, edgeless graphs) are never
errors; the algorithms return neutral values for them instead.
"""

from typing import Dict, Any, Optional, List, Union
import traceback


class NetworkAnalysisError(Exception):
    """
    Base exception for all netlens errors.

    Parameters
    ----------
    message : str
        Human-readable error message describing what went wrong
    details : Dict[str, Any], optional
        Structured information about the error for programmatic handling
    cause : Exception, optional
        The underlying exception that caused this error
    context : Dict[str, Any], optional
        Information about the operation that failed

    Examples
    --------
    >>> raise NetworkAnalysisError("Graph analysis failed")
    >>> raise NetworkAnalysisError(
    ...     "Invalid network size",
    ...     details={"nodes": 0, "edges": 10}
    ... )
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message
        self.details = details or {}
        self.cause = cause
        self.context = context or {}

        full_message = message

        if self.details:
            detail_parts = []
            for key, value in self.details.items():
                if isinstance(value, (list, dict)) and len(str(value)) > 100:
                    detail_parts.append(f"{key}=<{type(value).__name__} with {len(value)} items>")
                else:
                    detail_parts.append(f"{key}={value}")

            if detail_parts:
                full_message += f" (Details: {', '.join(detail_parts)})"

        if self.context:
            context_parts = [f"{k}={v}" for k, v in self.context.items()]
            if context_parts:
                full_message += f" (Context: {', '.join(context_parts)})"

        super().__init__(full_message)

        if cause is not None:
            self.__cause__ = cause

    def add_context(self, **kwargs: Any) -> 'NetworkAnalysisError':
        """
        Add additional context to the exception.

        Returns
        -------
        NetworkAnalysisError
            Self, for method chaining
        """
        self.context.update(kwargs)
        return self

    def get_debug_info(self) -> Dict[str, Any]:
        """Return every piece of information attached to this error."""
        return {
            "exception_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "traceback": traceback.format_exc() if self.__traceback__ is not None else None
        }


class ValidationError(NetworkAnalysisError):
    """
    Exception raised when input data cannot be used for analysis.

    Parameters
    ----------
    message : str
        Descriptive error message explaining the validation failure
    field : str, optional
        Name of the field or column that failed validation
    value : Any, optional
        The invalid value that caused the error
    expected : str, optional
        Description of what was expected
    details : Dict[str, Any], optional
        Additional details about the validation failure

    Examples
    --------
    >>> raise ValidationError("Source column contains null values", field="source")
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> None:
        self.field = field
        self.value = value
        self.expected = expected

        enhanced_details = details or {}
        if field is not None:
            enhanced_details["field"] = field
        if value is not None:
            enhanced_details["invalid_value"] = value
        if expected is not None:
            enhanced_details["expected"] = expected

        if field:
            enhanced_message = f"Validation error in field '{field}': {message}"
        else:
            enhanced_message = f"Validation error: {message}"

        super().__init__(enhanced_message, details=enhanced_details, **kwargs)


class GraphConstructionError(NetworkAnalysisError):
    """
    Exception raised when a Graph cannot be assembled from its edge list.

    Malformed edge-list lines are skipped rather than reported, so this error
    only surfaces for unexpected failures inside the builder.

    Parameters
    ----------
    message : str
        Description of the graph construction error
    node_count : int, optional
        Number of nodes known when the error occurred
    edge_count : int, optional
        Number of edges processed when the error occurred
    operation : str, optional
        Specific step that failed (e.g., "build_adjacency")
    """

    def __init__(
        self,
        message: str,
        node_count: Optional[int] = None,
        edge_count: Optional[int] = None,
        operation: Optional[str] = None,
        **kwargs
    ) -> None:
        self.node_count = node_count
        self.edge_count = edge_count
        self.operation = operation

        context = {}
        if node_count is not None:
            context["node_count"] = node_count
        if edge_count is not None:
            context["edge_count"] = edge_count
        if operation:
            context["operation"] = operation

        super().__init__(message, context=context, **kwargs)


class ConfigurationError(NetworkAnalysisError):
    """
    Exception raised for unknown algorithm selectors and invalid parameters.

    Configuration errors are raised immediately, before any computation, and
    are never retried.

    Parameters
    ----------
    message : str
        Description of the configuration error
    parameter : str, optional
        Name of the problematic parameter
    value : Any, optional
        The invalid parameter value
    valid_options : List[Any], optional
        List of valid options for the parameter
    function : str, optional
        Name of the function where the error occurred

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "Unknown community detection algorithm",
    ...     parameter="algorithm",
    ...     value="spectral",
    ...     valid_options=["louvain", "girvan_newman", "label_propagation"]
    ... )
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        value: Optional[Any] = None,
        valid_options: Optional[List[Any]] = None,
        function: Optional[str] = None,
        **kwargs
    ) -> None:
        self.parameter = parameter
        self.value = value
        self.valid_options = valid_options
        self.function = function

        details = kwargs.get('details', {})
        if parameter:
            details["parameter"] = parameter
        if value is not None:
            details["invalid_value"] = value
        if valid_options:
            details["valid_options"] = valid_options
        if function:
            details["function"] = function

        enhanced_message = message
        if parameter and valid_options:
            enhanced_message += f". Valid options for '{parameter}': {valid_options}"

        kwargs["details"] = details
        super().__init__(enhanced_message, **kwargs)


class ComputationError(NetworkAnalysisError):
    """
    Exception raised when a computation fails or is refused.

    Parameters
    ----------
    message : str
        Description of the computational error
    operation : str, optional
        The computational operation that failed
    error_type : str, optional
        Type of computational error (e.g., "numerical", "scale_limit")
    resource_info : Dict[str, Any], optional
        Information about the input size when the error occurred
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        error_type: Optional[str] = None,
        resource_info: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> None:
        self.operation = operation
        self.error_type = error_type
        self.resource_info = resource_info or {}

        context = kwargs.get('context', {})
        if operation:
            context["operation"] = operation
        if error_type:
            context["error_type"] = error_type

        details = kwargs.get('details', {})
        details.update(self.resource_info)

        kwargs["details"] = details
        kwargs["context"] = context

        super().__init__(message, **kwargs)


class ScaleLimitError(ComputationError):
    """
    Exception raised when an algorithm is invoked on a graph beyond its safety limit.

    Girvan-Newman recomputes edge betweenness after every removal, which costs
    O(n·m) per step; it refuses graphs above a fixed node-count threshold before
    doing any work.

    Parameters
    ----------
    message : str
        Description of the limit that was exceeded
    node_count : int
        Number of nodes in the offending graph
    limit : int
        Largest node count the operation accepts
    """

    def __init__(
        self,
        message: str,
        node_count: int,
        limit: int,
        **kwargs
    ) -> None:
        self.node_count = node_count
        self.limit = limit

        kwargs.setdefault("error_type", "scale_limit")
        kwargs["resource_info"] = {"nodes": node_count, "limit": limit}
        super().__init__(message, **kwargs)


class OperationCancelledError(NetworkAnalysisError):
    """
    Exception raised when a caller cancels a running analysis.

    Parameters
    ----------
    message : str
        Description of where the operation stopped
    operation : str, optional
        Name of the operation that was interrupted
    """

    def __init__(
        self,
        message: str = "Operation was cancelled",
        operation: Optional[str] = None,
        **kwargs
    ) -> None:
        self.operation = operation

        context = kwargs.get('context', {})
        if operation:
            context["operation"] = operation
        kwargs["context"] = context

        super().__init__(message, **kwargs)


class DataFormatError(ValidationError):
    """
    Exception raised for unreadable files and malformed tabular input.

    Parameters
    ----------
    message : str
        Description of the format error
    format_type : str, optional
        Expected format (e.g., "edge list", "DataFrame")
    file_path : str, optional
        Path to the problematic file
    """

    def __init__(
        self,
        message: str,
        format_type: Optional[str] = None,
        file_path: Optional[str] = None,
        **kwargs
    ) -> None:
        details = kwargs.get('details', {})

        if format_type:
            details["format_type"] = format_type
        if file_path:
            details["file_path"] = file_path

        kwargs["details"] = details
        super().__init__(message, **kwargs)


def validate_parameter(
    value: Any,
    valid_options: List[Any],
    parameter_name: str,
    function_name: Optional[str] = None
) -> None:
    """
    Validate that a parameter value is in the list of valid options.

    Raises
    ------
    ConfigurationError
        If value is not in valid_options
    """
    if value not in valid_options:
        raise ConfigurationError(
            f"Invalid value for parameter '{parameter_name}': {value}",
            parameter=parameter_name,
            value=value,
            valid_options=valid_options,
            function=function_name
        )


def require_positive(
    value: Union[int, float],
    parameter_name: str,
    allow_zero: bool = False
) -> None:
    """
    Validate that a numeric parameter is positive.

    Parameters
    ----------
    value : Union[int, float]
        The numeric value to validate
    parameter_name : str
        Name of the parameter
    allow_zero : bool, default False
        Whether to allow zero values

    Raises
    ------
    ConfigurationError
        If value is not positive (or non-negative if allow_zero=True)
    """
    if allow_zero and value < 0:
        raise ConfigurationError(
            f"Parameter '{parameter_name}' must be non-negative, got {value}",
            parameter=parameter_name,
            value=value
        )
    elif not allow_zero and value <= 0:
        raise ConfigurationError(
            f"Parameter '{parameter_name}' must be positive, got {value}",
            parameter=parameter_name,
            value=value
        )


def require_probability(value: float, parameter_name: str) -> None:
    """
    Validate that a parameter lies in the closed interval [0, 1].

    Raises
    ------
    ConfigurationError
        If value is outside [0, 1]
    """
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(
            f"Parameter '{parameter_name}' must be within [0, 1], got {value}",
            parameter=parameter_name,
            value=value
        )
