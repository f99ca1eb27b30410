"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class SubjectNotFoundException(BusinessException):
    def __init__(self, subject_id: Optional[int] = None):
        details = {"subject_id": subject_id} if subject_id is not None else None
        super().__init__(
            code=BusinessCode.SUBJECT_NOT_FOUND,
            message="Subject not found",
            error_type="SubjectNotFound",
            details=details,
            field="subject_id",
        )


class SubjectDisabledException(BusinessException):
    def __init__(self, subject_id: int):
        super().__init__(
            code=BusinessCode.SUBJECT_DISABLED,
            message="Subject is disabled",
            error_type="SubjectDisabled",
            details={"subject_id": subject_id},
            field="subject_id",
        )


class QuestionNotFoundException(BusinessException):
    def __init__(self, question_id: Optional[int] = None):
        details = {"question_id": question_id} if question_id is not None else None
        super().__init__(
            code=BusinessCode.QUESTION_NOT_FOUND,
            message="Question not found",
            error_type="QuestionNotFound",
            details=details,
            field="id",
        )


class NegativeLikesException(BusinessException):
    def __init__(self, question_id: int, likes: int):
        super().__init__(
            code=BusinessCode.LIKES_EXHAUSTED,
            message="Like count can not be negative",
            error_type="NegativeLikes",
            details={"question_id": question_id, "likes": likes},
        )


class StoreErrorKind(str, Enum):
    """Neutral classification of record store failures."""

    TRANSIENT = "transient"
    FATAL = "fatal"


class StoreException(BusinessException):
    def __init__(self, message: str, *, kind: StoreErrorKind = StoreErrorKind.FATAL):
        self.kind = kind
        super().__init__(
            code=BusinessCode.DATABASE_ERROR,
            message=message,
            error_type="StoreError",
            details={"kind": kind.value},
        )

    @property
    def transient(self) -> bool:
        return self.kind is StoreErrorKind.TRANSIENT
