"""
Input validation utilities.
"""

from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray

from ..core.exceptions import ValidationError


def validate_collection_name(name: Any) -> str:
    """
    Validate a collection name.

    Only emptiness is checked here; names the backing engine cannot use
    are rejected by the engine itself with a StorageError.

    Args:
        name: The collection name to validate

    Returns:
        The validated name

    Raises:
        ValidationError: If name is not a string or is empty/whitespace
    """
    if not isinstance(name, str):
        raise ValidationError(
            f"Collection name must be a string, got {type(name).__name__}"
        )

    if not name.strip():
        raise ValidationError("Collection name cannot be empty or whitespace")

    return name


def validate_dimension(dimension: int, min_dim: int = 1, max_dim: int = 65536) -> int:
    """
    Validate vector dimension.

    Args:
        dimension: The dimension to validate
        min_dim: Minimum allowed dimension
        max_dim: Maximum allowed dimension

    Returns:
        The validated dimension

    Raises:
        ValidationError: If dimension is invalid
    """
    if isinstance(dimension, bool) or not isinstance(dimension, int):
        raise ValidationError(
            f"Dimension must be an integer, got {type(dimension).__name__}"
        )

    if dimension < min_dim:
        raise ValidationError(
            f"Dimension too small: {dimension} (min {min_dim})"
        )

    if dimension > max_dim:
        raise ValidationError(
            f"Dimension too large: {dimension} (max {max_dim})"
        )

    return dimension


def as_embedding(vector: Optional[Any]) -> NDArray[np.float32]:
    """
    Convert a vector-like value to a 1-D float32 array.

    Length is not checked; ``None`` becomes the empty vector.

    Raises:
        ValidationError: If the value is not one-dimensional
    """
    if vector is None:
        return np.empty(0, dtype=np.float32)

    array = np.asarray(vector, dtype=np.float32)

    if array.ndim != 1:
        raise ValidationError(
            f"Embedding must be 1-dimensional, got {array.ndim} dimensions"
        )

    return array
