from functools import wraps
from flask_jwt_extended import verify_jwt_in_request
from tender_api.services.policy import current_actor, assert_allowed


def require_operation(operation: str, message: str = 'Access denied'):
    """Verify the bearer token and gate the view on the operation's role list.

    The role check runs before the handler loads anything, so a denied caller gets
    403 even for ids that do not exist.
    """
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            assert_allowed(current_actor(), operation, message)
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_auth(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        current_actor()
        return fn(*args, **kwargs)
    return wrapper
