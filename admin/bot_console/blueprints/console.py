from flask import Blueprint, Response, current_app, jsonify, request

from ..decorators import login_required

bp = Blueprint('console', __name__)


def _sessions():
    return current_app.console_sessions


def _not_found(bot_id):
    return jsonify({'error': f'No console open for bot {bot_id}', 'status': 404}), 404


def _session_state(session):
    ctl = session.controller
    status = session.status
    return {
        'bot_id': session.bot_id,
        'count': ctl.line_count,
        'paused': session.paused,
        'autoscroll': session.autoscroll,
        'status': status.value if status else None,
        'status_label': status.label if status else None,
        'transitional': status.is_transitional if status else False,
        'viewers': len(session.viewers),
        'placeholder': ctl.placeholder,
    }


@bp.route('/')
@login_required
def index():
    manager = _sessions()
    sessions = [manager.get(bot_id) for bot_id in manager.bot_ids()]
    return jsonify({'sessions': [_session_state(s) for s in sessions if s is not None]})


@bp.route('/api/bots/<bot_id>/console/viewers', methods=['POST'])
@login_required
def api_attach(bot_id):
    viewer_id = _sessions().attach(bot_id)
    return jsonify({'ok': True, 'viewer_id': viewer_id}), 201


@bp.route('/api/bots/<bot_id>/console/viewers/<viewer_id>', methods=['DELETE'])
@login_required
def api_detach(bot_id, viewer_id):
    if not _sessions().detach(bot_id, viewer_id):
        return _not_found(bot_id)
    return jsonify({'ok': True})


@bp.route('/api/bots/<bot_id>/console/lines')
@login_required
def api_lines(bot_id):
    session = _sessions().get(bot_id)
    if session is None:
        return _not_found(bot_id)
    try:
        since = int(request.args.get('since', 0))
    except ValueError:
        return jsonify({'error': 'since must be an integer', 'status': 400}), 400
    entries, seq = session.buffer.since(since)
    state = _session_state(session)
    state.update({'lines': [e.to_dict() for e in entries], 'total': seq})
    return jsonify(state)


@bp.route('/api/bots/<bot_id>/console/<action>', methods=['POST'])
@login_required
def api_control(bot_id, action):
    session = _sessions().get(bot_id)
    if session is None:
        return _not_found(bot_id)
    ctl = session.controller
    if action == 'pause':
        ctl.pause()
    elif action == 'resume':
        ctl.resume()
    elif action == 'clear':
        ctl.clear()
    elif action == 'scroll-to-bottom':
        ctl.scroll_to_bottom()
    elif action == 'scroll':
        data = request.get_json(silent=True) or {}
        try:
            ctl.on_scroll(float(data['scrollHeight']), float(data['scrollTop']),
                          float(data['clientHeight']))
        except (KeyError, TypeError, ValueError):
            return jsonify({'error': 'scrollHeight, scrollTop and clientHeight are required',
                            'status': 400}), 400
    else:
        return jsonify({'error': f'Unknown action {action}', 'status': 404}), 404
    return jsonify({'ok': True, **_session_state(session)})


@bp.route('/api/bots/<bot_id>/console/export')
@login_required
def api_export(bot_id):
    session = _sessions().get(bot_id)
    if session is None:
        return _not_found(bot_id)
    filename, text = session.controller.export_text()
    return Response(
        text,
        mimetype='text/plain',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )
