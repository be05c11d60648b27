from safequery.errors.codes import ErrorCode

ERROR_MAP = {
    ErrorCode.VALIDATION_EMPTY: (422, False),
    ErrorCode.VALIDATION_MULTI_STATEMENT: (422, False),
    ErrorCode.VALIDATION_NON_SELECT: (422, False),
    ErrorCode.VALIDATION_FORBIDDEN_KEYWORD: (422, False),
    ErrorCode.DB_TIMEOUT: (503, True),
    ErrorCode.DB_ERROR: (422, False),
    ErrorCode.TABLE_NOT_FOUND: (404, False),
    ErrorCode.INTERNAL_ERROR: (500, False),
}


def map_error(code: ErrorCode | None) -> tuple[int, bool]:
    if code is None:
        return (500, False)
    return ERROR_MAP.get(code, (500, False))
