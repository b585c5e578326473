"""
Common helpers for the repository layer.

Backend bodies are parsed into domain models here so every repository
reports a malformed answer the same way.
"""

import logging
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from goodtraining.core.errors import BackendError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

MSG_UNEXPECTED_RESPONSE = "서버 응답을 처리하지 못했습니다."


def parse_one(model: type[M], data: Any, operation: str) -> M:
    """
    Parse a single backend record.

    Raises:
        BackendError: If the record does not fit the model
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        logger.error(
            f"Malformed {model.__name__} from backend",
            extra={"operation": operation, "error_count": e.error_count()},
        )
        raise BackendError(
            MSG_UNEXPECTED_RESPONSE, details={"operation": operation}
        ) from e


def parse_many(model: type[M], data: Any, operation: str) -> list[M]:
    """
    Parse a list answer, skipping records that do not fit the model.

    Raises:
        BackendError: If the answer is not a list at all
    """
    if data is None:
        return []
    if not isinstance(data, list):
        logger.error(
            f"Expected a list of {model.__name__} from backend",
            extra={"operation": operation, "got": type(data).__name__},
        )
        raise BackendError(MSG_UNEXPECTED_RESPONSE, details={"operation": operation})

    parsed = []
    for item in data:
        try:
            parsed.append(model.model_validate(item))
        except PydanticValidationError as e:
            logger.warning(
                f"Skipping malformed {model.__name__} record",
                extra={
                    "operation": operation,
                    "record_id": item.get("id") if isinstance(item, dict) else None,
                    "error_count": e.error_count(),
                },
            )
    return parsed
