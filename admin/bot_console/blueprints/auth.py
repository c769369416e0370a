import hmac

from flask import (
    Blueprint, current_app, flash, redirect, render_template_string, request,
    session, url_for,
)

bp = Blueprint('auth', __name__)

LOGIN_PAGE = '''<!doctype html>
<title>Bot console login</title>
{% for category, message in get_flashed_messages(with_categories=true) %}
  <p class="{{ category }}">{{ message }}</p>
{% endfor %}
<form method="post">
  <input type="password" name="token" placeholder="Admin token">
  <button type="submit">Log in</button>
</form>
'''


def _token_ok(token, cfg):
    expected = cfg.ADMIN_TOKEN or ''
    if not expected or not token:
        return False
    return hmac.compare_digest(token.encode(), expected.encode())


@bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        cfg = current_app.console_config
        token = request.form.get('token', '').strip()
        if _token_ok(token, cfg):
            session['logged_in'] = True
            return redirect(url_for('console.index'))
        flash('Invalid token', 'error')
    return render_template_string(LOGIN_PAGE)


@bp.route('/logout')
def logout():
    session.clear()
    return redirect(url_for('auth.login'))
