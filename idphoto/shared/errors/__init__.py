"""Shared errors module.

Система обработки ошибок приложения.
"""

from idphoto.shared.errors.base import AppException
from idphoto.shared.errors.context import get_trace_id, set_trace_id, trace_id_var
from idphoto.shared.errors.domain_errors import (
    BadRequestError,
    ConflictError,
    IdempotencyKeyMismatchError,
    InternalServerError,
    InvalidCallbackStatusError,
    InvalidOrderError,
    NotFoundError,
    NotImplementedFeatureError,
    OrderAlreadyPaidError,
    OrderNotFoundError,
    PaymentNotConfiguredError,
    ServiceUnavailableError,
    TaskNotFoundError,
    TaskNotOwnedError,
    TaskNotReadyError,
    TokenExpiredError,
    TokenNotActiveError,
    TokenNotFoundError,
)
from idphoto.shared.errors.handlers import setup_exception_handlers
from idphoto.shared.errors.photo_errors import (
    AssetNotFoundError,
    AssetStorageError,
    InvalidUploadError,
    LayoutDoesNotFitError,
    PayloadDecodeError,
    PhotoServiceError,
    PhotoServiceRejectedError,
)
from idphoto.shared.errors.schemas import ErrorDetail, ErrorResponse

__all__ = [
    # Base
    "AppException",
    # Context
    "trace_id_var",
    "get_trace_id",
    "set_trace_id",
    # Error kinds
    "BadRequestError",
    "NotFoundError",
    "ConflictError",
    "InternalServerError",
    "NotImplementedFeatureError",
    "ServiceUnavailableError",
    # Tasks
    "TaskNotFoundError",
    "TaskNotReadyError",
    "TaskNotOwnedError",
    # Orders
    "OrderNotFoundError",
    "InvalidOrderError",
    "OrderAlreadyPaidError",
    "IdempotencyKeyMismatchError",
    "InvalidCallbackStatusError",
    "PaymentNotConfiguredError",
    # Tokens
    "TokenNotFoundError",
    "TokenNotActiveError",
    "TokenExpiredError",
    # Photo processing
    "PhotoServiceError",
    "PhotoServiceRejectedError",
    "PayloadDecodeError",
    "LayoutDoesNotFitError",
    "AssetStorageError",
    "AssetNotFoundError",
    "InvalidUploadError",
    # Handlers
    "setup_exception_handlers",
    # Schemas
    "ErrorDetail",
    "ErrorResponse",
]
