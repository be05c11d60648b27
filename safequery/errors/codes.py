from enum import Enum


class ErrorCode(str, Enum):
    # --- Validation ---
    VALIDATION_EMPTY = "VALIDATION_EMPTY"
    VALIDATION_MULTI_STATEMENT = "VALIDATION_MULTI_STATEMENT"
    VALIDATION_NON_SELECT = "VALIDATION_NON_SELECT"
    VALIDATION_FORBIDDEN_KEYWORD = "VALIDATION_FORBIDDEN_KEYWORD"

    # --- Executor / DB ---
    DB_TIMEOUT = "DB_TIMEOUT"
    DB_ERROR = "DB_ERROR"

    # --- Schema lookups ---
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"

    # --- Internal ---
    INTERNAL_ERROR = "INTERNAL_ERROR"
