from flask import Blueprint, g, jsonify, redirect, request, url_for

from portal import firestore_dao as dao
from portal.decorators import profile_required
from portal.forms import PhotoForm, form_error
from portal.models import Profile
from portal.services.storage import MAX_PHOTO_BYTES, file_extension, get_signed_url, upload_profile_photo

bp = Blueprint('profile', __name__, url_prefix='/app/profile')


@bp.route('')
@profile_required
def my_profile():
    return jsonify({'profile': g.current_user.profile.to_api()})


@bp.route('', methods=['PUT'])
@profile_required
def update_my_profile():
    """Replace the caller's profile. Identity fields cannot be changed here."""
    current = g.current_user.profile
    profile = Profile.from_api(request.get_json(silent=True) or {})
    profile.id = current.id
    profile.email = current.email
    profile.role = current.role
    profile.photo_path = current.photo_path
    if current.photo_path:
        profile.photo_url = current.photo_url
    profile.created_at = current.created_at

    dao.update_profile(profile)
    g.current_user.profile = profile
    return jsonify({'success': True, 'profile': profile.to_api()})


@bp.route('/photo', methods=['POST'])
@profile_required
def upload_photo():
    form = PhotoForm()
    if not form.validate_on_submit():
        return form_error(form)

    file = form.photo.data
    file_data = file.read()
    if len(file_data) > MAX_PHOTO_BYTES:
        return jsonify({'error': 'File is too large! Please upload under 2MB.'}), 400

    profile = g.current_user.profile
    profile.photo_path = upload_profile_photo(profile.id, file_data, file_extension(file.filename))
    profile.photo_url = url_for('profile.photo', profile_id=profile.id)
    dao.update_profile(profile)
    return jsonify({'success': True, 'photoUrl': profile.photo_url})


@bp.route('/<profile_id>/photo')
@profile_required
def photo(profile_id):
    """Redirect to a freshly signed URL for an uploaded profile photo."""
    profile = dao.get_profile(profile_id)
    signed_url = get_signed_url(profile.photo_path) if profile else None
    if not signed_url:
        return jsonify({'error': 'Photo not found'}), 404
    return redirect(signed_url)
