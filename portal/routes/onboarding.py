from flask import Blueprint, g, jsonify, request

from portal import firestore_dao as dao
from portal.decorators import CurrentUser, auth_required
from portal.models import CATEGORIES, Profile

bp = Blueprint('onboarding', __name__, url_prefix='/onboarding')

INTERESTS = [
    'Bhagavad Gita Study', 'Kirtan', 'Prasadam Cooking', 'Temple Service',
    'Book Distribution', 'Meditation', 'Philosophy', 'Festivals',
    'Youth Preaching', 'Community Service', 'Music', 'Arts',
]


@bp.route('/options')
@auth_required
def options():
    return jsonify({'categories': list(CATEGORIES), 'interests': INTERESTS})


@bp.route('', methods=['POST'])
@auth_required
def complete():
    """Create the signed-in user's own profile as a student."""
    user = g.current_user
    if user.profile_exists:
        return jsonify({'error': 'Profile already exists', 'redirect': '/app'}), 409

    profile = Profile.from_api(request.get_json(silent=True) or {})
    profile.email = user.email
    profile.role = 'student'
    profile.photo_url = profile.photo_url or user.picture
    profile.created_at = None

    dao.create_profile(profile, uid=user.uid)

    g._current_user = CurrentUser(user.claims, profile, profile.role, True)
    return jsonify({'success': True, 'profile': profile.to_api(), 'redirect': '/app'}), 201
