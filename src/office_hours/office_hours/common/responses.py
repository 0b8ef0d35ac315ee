from __future__ import annotations

from flask import jsonify

from ..core.exceptions import (
    AlreadyActiveError,
    CorruptSessionError,
    DomainError,
    NotActiveError,
    NotFoundError,
    ValidationError,
)

_STATUS_BY_ERROR = {
    NotFoundError: 404,
    AlreadyActiveError: 409,
    NotActiveError: 409,
    CorruptSessionError: 409,
    ValidationError: 400,
}


def error_status(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR.items():
        if isinstance(error, cls):
            return status
    return 400


def json_error(error: DomainError):
    return jsonify({"success": False, "error": error.code, "message": str(error)}), error_status(error)


def json_failure(message: str, status: int = 500):
    return jsonify({"success": False, "error": "Internal", "message": message}), status
