from flask import Blueprint, jsonify, url_for

from portal.decorators import auth_required, get_current_user, landing_path

bp = Blueprint('main', __name__)

ADMIN_NAV = [
    {'label': 'Dashboard', 'path': '/admin'},
    {'label': 'Devotees', 'path': '/admin/devotees'},
    {'label': 'Sessions', 'path': '/admin/sessions'},
    {'label': 'Assignments', 'path': '/admin/homework'},
    {'label': 'Quizzes', 'path': '/admin/quizzes'},
    {'label': 'Library', 'path': '/admin/resources'},
    {'label': 'Mentorship', 'path': '/admin/mentorship'},
    {'label': 'Gita Wisdom', 'path': '/admin/gita'},
]

USER_NAV = [
    {'label': 'My Dashboard', 'path': '/app'},
    {'label': 'Sessions', 'path': '/app/sessions'},
    {'label': 'Japa Sadhana', 'path': '/app/chanting'},
    {'label': 'Assignments', 'path': '/app/homework'},
    {'label': 'My Quizzes', 'path': '/app/quizzes'},
    {'label': 'Digital Library', 'path': '/app/resources'},
    {'label': 'Mentorship', 'path': '/app/mentorship'},
    {'label': 'Gita Wisdom', 'path': '/app/gita'},
    {'label': 'My Profile', 'path': '/app/profile'},
]


@bp.route('/health')
def health():
    return jsonify({'status': 'ok'}), 200


@bp.route('/')
def index():
    return jsonify({'redirect': landing_path(get_current_user())})


@bp.route('/nav')
@auth_required
def navigation():
    """Sidebar items for the admin or the user shell."""
    user = get_current_user()
    if not user.profile_exists:
        items = []
        shell = 'onboarding'
    elif user.is_admin():
        items = ADMIN_NAV
        shell = 'admin'
    else:
        items = USER_NAV
        shell = 'user'
    return jsonify({
        'shell': shell,
        'items': items,
        'user': user.to_api(),
        'logout': url_for('auth.logout'),
    })
