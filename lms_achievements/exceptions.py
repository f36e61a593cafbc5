"""
Standardized exception hierarchy for the achievement engine
Provides rich context and consistent logging for store and rule failures
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

import psycopg

logger = logging.getLogger(__name__)


class AchievementEngineError(Exception):
    """
    Base exception for all achievement engine errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - Structured context
    - Automatic logging

    Example:
        raise AchievementEngineError(
            message="Failed to load achievement catalog",
            user_id="7f3c...",
            operation="load_candidates",
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        log_level: int = logging.ERROR
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        self._log_error(log_level)

    def _log_error(self, level: int) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # 'message' is reserved by logging
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(level, f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.log(level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for run reports"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "operation": self.operation,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Rule Errors
# ==========================================

class CriteriaValidationError(AchievementEngineError):
    """
    Raised when an achievement's criteria payload cannot be parsed

    Logged as a warning: a malformed rule is never fatal, it is simply
    never satisfied.
    """

    def __init__(
        self,
        message: str,
        achievement_id: Optional[str] = None,
        criteria: Optional[Any] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        self.achievement_id = achievement_id
        self.criteria = criteria
        self.reason = reason or message
        super().__init__(
            message=message,
            context={"achievement_id": achievement_id, "criteria": criteria},
            log_level=logging.WARNING,
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(AchievementEngineError):
    """
    Base class for database-related errors
    """
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(message=message, **kwargs)


class QueryError(DatabaseError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        kwargs.setdefault("context", {"query": query})
        super().__init__(message=message, **kwargs)


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(AchievementEngineError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> AchievementEngineError:
    """
    Wrap external exceptions (psycopg, pool timeouts) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate AchievementEngineError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_all_achievements")
    """
    if isinstance(error, AchievementEngineError):
        return error

    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    return AchievementEngineError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
