from functools import wraps

from flask import current_app, g, jsonify, session

from portal import firestore_dao as dao
from portal.firebase_init import get_auth

SESSION_KEY = 'firebase_session'


def _verify_session():
    """Verify the Firebase session cookie. Returns the decoded claims or None."""
    session_cookie = session.get(SESSION_KEY)
    if not session_cookie:
        return None

    auth = get_auth()
    try:
        return auth.verify_session_cookie(session_cookie, check_revoked=True)
    except Exception:
        # Expired, revoked or malformed cookies all mean "signed out".
        session.pop(SESSION_KEY, None)
        return None


def resolve_role(email):
    """Resolve (profile, role, profile_exists) for an authenticated email.

    Any lookup failure falls back to the lowest privilege: a student
    without a profile.
    """
    try:
        profile = dao.get_profile_by_email(email)
    except Exception:
        current_app.logger.exception('Profile lookup failed for %s', email)
        return None, 'student', False
    if profile is None:
        return None, 'student', False
    return profile, profile.role, True


def landing_path(user):
    """Role-appropriate root for the SPA router."""
    if not user.is_authenticated:
        return '/login'
    if not user.profile_exists:
        return '/onboarding'
    if user.is_admin():
        return '/admin'
    return '/app'


class CurrentUser:
    """The signed-in auth user plus the profile resolved from their email."""

    def __init__(self, claims=None, profile=None, role='student', profile_exists=False):
        self._claims = claims or {}
        self.profile = profile
        self.role = role
        self.profile_exists = profile_exists

    @property
    def claims(self):
        return dict(self._claims)

    @property
    def is_authenticated(self):
        return bool(self._claims)

    @property
    def uid(self):
        return self._claims.get('uid', '')

    @property
    def email(self):
        return self._claims.get('email', '')

    @property
    def profile_id(self):
        return self.profile.id if self.profile else None

    @property
    def display_name(self):
        if self.profile:
            return self.profile.display_name
        return self._claims.get('name') or self.email

    @property
    def picture(self):
        return self._claims.get('picture')

    def is_student(self):
        return self.role == 'student'

    def is_mentor(self):
        return self.role == 'mentor'

    def is_admin(self):
        return self.role == 'admin'

    def to_api(self):
        return {
            'authenticated': self.is_authenticated,
            'uid': self.uid or None,
            'email': self.email or None,
            'role': self.role,
            'profileExists': self.profile_exists,
            'profileId': self.profile_id,
            'displayName': self.display_name if self.is_authenticated else None,
            'landing': landing_path(self),
        }


def load_current_user():
    """Resolve the current user into g before each request."""
    if hasattr(g, '_current_user'):
        return
    claims = _verify_session()
    if not claims:
        g._current_user = CurrentUser()
        return
    profile, role, exists = resolve_role(claims.get('email'))
    g._current_user = CurrentUser(claims, profile, role, exists)


def get_current_user():
    if not hasattr(g, '_current_user'):
        load_current_user()
    return g._current_user


def _unauthenticated():
    return jsonify({'error': 'Authentication required', 'redirect': '/login'}), 401


def _needs_onboarding():
    return jsonify({'error': 'Profile not found', 'redirect': '/onboarding'}), 409


def auth_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        user = get_current_user()
        if not user.is_authenticated:
            return _unauthenticated()
        g.current_user = user
        return f(*args, **kwargs)
    return decorated


def profile_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        user = get_current_user()
        if not user.is_authenticated:
            return _unauthenticated()
        if not user.profile_exists:
            return _needs_onboarding()
        g.current_user = user
        return f(*args, **kwargs)
    return decorated


def role_required(*roles):
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            user = get_current_user()
            if not user.is_authenticated:
                return _unauthenticated()
            if not user.profile_exists:
                return _needs_onboarding()
            if user.role not in roles:
                return jsonify({'error': 'Access denied', 'redirect': landing_path(user)}), 403
            g.current_user = user
            return f(*args, **kwargs)
        return decorated
    return decorator


admin_required = role_required('admin')
