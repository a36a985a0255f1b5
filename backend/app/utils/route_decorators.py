"""
Route decorators for standardized error handling and response formatting.

Every validation endpoint answers with the same envelope:
``{"success": bool, "data": ..., "error": ...}``. The remote adapter relies
on that shape to decide whether to fall back.
"""

import logging
from functools import wraps

from flask import jsonify

logger = logging.getLogger(__name__)


def handle_route_errors(route_description=None):
    """
    Decorator to standardize error handling across all routes.

    Handles:
    - ValueError (including GraphModelError) → 400 Bad Request
    - Exception → 500 Internal Server Error
    - Automatic JSON response formatting via jsonify()

    Usage:
        @bp.route('/endpoint', methods=['POST'])
        @handle_route_errors("validating graph")
        def my_route():
            return success_response(data=result.to_dict())
    """
    def decorator(f):
        desc = route_description or f.__name__

        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return _format_response(f(*args, **kwargs))
            except ValueError as e:
                logger.warning("%s - ValueError: %s", desc, str(e))
                return jsonify(error_response(str(e))), 400
            except Exception as e:
                logger.exception("Error in %s: %s", desc, e)
                return jsonify(error_response(str(e))), 500

        return wrapper

    return decorator


def _format_response(result):
    """Wrap dict/list returns (optionally with a status code) in jsonify()."""
    if hasattr(result, 'status_code'):
        return result

    if isinstance(result, tuple):
        data, rest = result[0], result[1:]
        if isinstance(data, (dict, list)):
            return (jsonify(data), *rest)
        return result

    if isinstance(result, (dict, list)):
        return jsonify(result)

    return result


def success_response(data=None, message=None, **kwargs):
    """
    Build a standardized success response dictionary.

    Usage:
        return success_response(data=result.to_dict())
    """
    response = {"success": True}

    if message:
        response["message"] = message

    if data is not None:
        response["data"] = data

    response.update(kwargs)
    return response


def error_response(error):
    return {"success": False, "error": error}
