"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Catalog
    ExerciseNotFoundError,

    # Mapping
    UserMappingNotFoundError,
    MappingStorageError,
    InvalidMappingImportError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Catalog
    "ExerciseNotFoundError",

    # Mapping
    "UserMappingNotFoundError",
    "MappingStorageError",
    "InvalidMappingImportError",
]
