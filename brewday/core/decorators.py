from functools import wraps
from flask import jsonify, request
import logging
import traceback

logger = logging.getLogger(__name__)

class AppError(Exception):
    """Base error for anything the API reports back to the caller."""
    def __init__(self, message, code=400, payload=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.payload = payload


class IbuMethodError(AppError):
    """Recipe asks for a bitterness formula that does not exist."""
    def __init__(self, ibu_method):
        super().__init__(f"Unknown IBU method '{ibu_method}'!", code=422, payload={"ibu_method": ibu_method})


class BeerXMLError(AppError):
    """Document could not be read as BeerXML."""


class RecipeFormatError(AppError):
    """Payload could not be turned into a recipe."""


def _error_response(status, code, message, **extra):
    body = {"status": status, "code": code, "message": message}
    body.update(extra)
    return jsonify(body), code


def api_safe(f):
    """
    Wraps an API endpoint so every failure becomes a JSON error body.
    AppErrors keep their code and payload; anything else is logged with
    its traceback and returned as a 500.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except AppError as e:
            logger.warning(f"{request.method} {request.path} rejected ({e.code}): {e.message}")
            return _error_response("error", e.code, e.message, data=e.payload)
        except Exception as e:
            trace = traceback.format_exc()
            logger.error(f"CRITICAL ERROR in {f.__name__} ({request.method} {request.path}): {str(e)}\n{trace}")
            return _error_response("fatal", 500, "Internal System Error", debug_error=str(e))
    return decorated_function
