"""Operation registries for the two APS API families."""

from .base import (
    BinaryOutput,
    Endpoint,
    OperationRegistry,
    OperationSpec,
    ResponseKind,
)
from .data_management import DATA_MANAGEMENT, DataManagementOperation
from .model_derivative import MODEL_DERIVATIVE, ModelDerivativeOperation

__all__ = [
    "DATA_MANAGEMENT",
    "MODEL_DERIVATIVE",
    "BinaryOutput",
    "DataManagementOperation",
    "Endpoint",
    "ModelDerivativeOperation",
    "OperationRegistry",
    "OperationSpec",
    "ResponseKind",
]
