import functools

from flask import jsonify, redirect, request, session, url_for


def login_required(f):
    """Redirect pages to the login form; answer API calls with 401 JSON."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if not session.get('logged_in'):
            if request.path.startswith('/api/'):
                return jsonify({'error': 'Login required', 'status': 401}), 401
            return redirect(url_for('auth.login'))
        return f(*args, **kwargs)
    return decorated
