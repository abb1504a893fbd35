import functools
import logging
from typing import Any, Generic, List, Optional, TypeVar

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import BookingError, ERROR_STATUS_CODES, PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationResult(BaseModel, Generic[T]):
    """Structured outcome of a core operation: `{success, data?, error?}`."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None
    details: Optional[dict] = None
    revalidated: List[str] = []

    model_config = {"arbitrary_types_allowed": True}

    @classmethod
    def ok(cls, data: Any = None, revalidated: Optional[List[str]] = None) -> "OperationResult":
        return cls(success=True, data=data, revalidated=list(revalidated or []))

    @classmethod
    def fail(cls, exc: BookingError) -> "OperationResult":
        details = None
        conflicting = getattr(exc, "conflicting", None)
        if conflicting:
            details = {"conflicting": conflicting}
        return cls(success=False, error=exc.message, code=exc.code, details=details)

    def unwrap(self):
        """Return `data`, raising the failure as an HTTPException."""
        raise_for_result(self)
        return self.data


def _find_session(args, kwargs) -> Optional[Session]:
    db = kwargs.get("db")
    if db is None and args and isinstance(args[0], Session):
        db = args[0]
    return db


def core_operation(name: str):
    """
    Run a core operation at its boundary.

    The wrapped function takes the session as its first argument (or `db=`)
    and returns `(data, revalidated_paths)`. Domain errors and storage
    failures roll the session back and come out as a failed OperationResult;
    nothing propagates to the caller.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> OperationResult:
            db = _find_session(args, kwargs)
            try:
                data, revalidated = func(*args, **kwargs)
            except BookingError as exc:
                if db is not None:
                    db.rollback()
                logger.info("[%s] rejected: %s (%s)", name, exc.message, exc.code)
                return OperationResult.fail(exc)
            except SQLAlchemyError:
                if db is not None:
                    db.rollback()
                logger.exception("[%s] storage failure", name)
                return OperationResult.fail(
                    PersistenceError(f"Storage error during {name}")
                )
            return OperationResult.ok(data, revalidated)

        return wrapper

    return decorator


def raise_for_result(result: OperationResult) -> None:
    if result.success:
        return
    status_code = ERROR_STATUS_CODES.get(result.code, 400)
    if result.details:
        detail = {"error": result.code, "message": result.error, **result.details}
    else:
        detail = result.error
    raise HTTPException(status_code=status_code, detail=detail)
