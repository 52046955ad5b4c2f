# Overview: Request decorators for API routes: actor context and error mapping.

from functools import wraps
from flask import current_app, g, jsonify, request

from .validation import ConflictError, NotFoundError, ValidationError


def with_actor(f):
    """
    Establish the acting user for the request.

    Authentication happens upstream; the gateway forwards the user id in the
    X-User-Id header. Sets:
    - g.actor_id: int, or None when the header is absent

    Returns 400 if the header is present but not an integer.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get("X-User-Id")
        if raw is None or not raw.strip():
            g.actor_id = None
        else:
            try:
                g.actor_id = int(raw.strip())
            except ValueError:
                return jsonify({"error": "X-User-Id must be an integer"}), 400

        return f(*args, **kwargs)

    return decorated_function


def json_errors(f):
    """
    Map service exceptions to JSON error responses.

    - ValidationError -> 400
    - NotFoundError   -> 404
    - ConflictError   -> 409, with `retryable` so clients know to resubmit
    - anything else   -> 500, logged with traceback, no internal detail leaked
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except NotFoundError as e:
            return jsonify({"error": str(e)}), 404
        except ConflictError as e:
            if e.retryable:
                current_app.logger.warning("Version conflict on %s %s: %s", request.method, request.path, e)
            body = {"error": str(e), "retryable": e.retryable}
            if e.details:
                body["details"] = e.details
            return jsonify(body), 409
        except Exception:
            current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
            return jsonify({"error": "Internal server error"}), 500

    return decorated_function
