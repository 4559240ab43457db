from datetime import timedelta

import requests as http_requests
from flask import Blueprint, current_app, g, jsonify, session
from flask_wtf.csrf import generate_csrf

from portal.decorators import SESSION_KEY, CurrentUser, get_current_user, resolve_role
from portal.firebase_init import get_auth
from portal.forms import LoginForm, RegistrationForm, TokenForm, form_error

bp = Blueprint('auth', __name__, url_prefix='/auth')

FIREBASE_SIGN_IN_URL = (
    'https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword'
)


def _firebase_sign_in(email, password):
    """Verify email/password via the Firebase Auth REST API.

    Returns the ID token on success, or None on failure.
    """
    api_key = current_app.config.get('FIREBASE_WEB_API_KEY')
    if not api_key:
        current_app.logger.error('FIREBASE_WEB_API_KEY is not configured, password sign-in disabled')
        return None

    resp = http_requests.post(
        f'{FIREBASE_SIGN_IN_URL}?key={api_key}',
        json={
            'email': email,
            'password': password,
            'returnSecureToken': True,
        },
        timeout=10,
    )
    if resp.status_code == 200:
        return resp.json().get('idToken')
    return None


def _start_session(id_token):
    """Exchange an ID token for a session cookie and resolve the user's role."""
    auth = get_auth()
    claims = auth.verify_id_token(id_token)
    expires_in = timedelta(days=current_app.config.get('SESSION_COOKIE_DAYS', 5))
    session[SESSION_KEY] = auth.create_session_cookie(id_token, expires_in=expires_in)

    profile, role, exists = resolve_role(claims.get('email'))
    user = CurrentUser(claims, profile, role, exists)
    g._current_user = user
    return user


@bp.route('/csrf')
def csrf_token():
    return jsonify({'csrfToken': generate_csrf()})


@bp.route('/register', methods=['POST'])
def register():
    form = RegistrationForm()
    if not form.validate_on_submit():
        return form_error(form)

    auth = get_auth()
    try:
        firebase_user = auth.create_user(
            email=form.email.data,
            password=form.password.data,
        )
    except auth.EmailAlreadyExistsError:
        return jsonify({'error': 'An account with this email already exists'}), 409
    except Exception as e:
        current_app.logger.warning('Sign-up failed for %s: %s', form.email.data, e)
        return jsonify({'error': f'Sign-up failed: {e}'}), 400

    return jsonify({
        'success': True,
        'uid': firebase_user.uid,
        'email': form.email.data,
        'redirect': '/login',
    }), 201


@bp.route('/login', methods=['POST'])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return form_error(form)

    id_token = _firebase_sign_in(form.email.data, form.password.data)
    if not id_token:
        return jsonify({'error': 'Invalid email or password'}), 401

    try:
        user = _start_session(id_token)
    except Exception:
        current_app.logger.exception('Could not create a session for %s', form.email.data)
        return jsonify({'error': 'Sign-in could not be completed'}), 401

    return jsonify({'success': True, **user.to_api()})


@bp.route('/session', methods=['GET'])
def current_session():
    return jsonify(get_current_user().to_api())


@bp.route('/session', methods=['POST'])
def oauth_session():
    """Finish an OAuth (Google) sign-in done with the Firebase client SDK."""
    form = TokenForm()
    if not form.validate_on_submit():
        return form_error(form)

    try:
        user = _start_session(form.token.data)
    except Exception as e:
        current_app.logger.warning('Rejected ID token: %s', e)
        return jsonify({'error': 'Sign-in could not be completed'}), 401

    return jsonify({'success': True, **user.to_api()})


@bp.route('/logout', methods=['POST'])
def logout():
    session.pop(SESSION_KEY, None)
    g._current_user = CurrentUser()
    return jsonify({'success': True, 'redirect': '/login'})
