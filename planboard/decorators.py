"""
Custom route decorators for access control.

- api_login_required: the request must carry a Flask-Login identity (session
  cookie or Bearer API token); otherwise a 401 JSON error is returned instead
  of a redirect to a login page.
"""

from functools import wraps

from flask import jsonify
from flask_login import current_user

from planboard.errors import Unauthenticated


def api_login_required(f):
    """Require an authenticated, active user for a JSON endpoint."""

    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_active:
            return jsonify(Unauthenticated("No active session.").to_dict()), 401
        return f(*args, **kwargs)

    return decorated
