from flask import Blueprint, g, jsonify, request

from portal import firestore_dao as dao
from portal.decorators import admin_required, profile_required, role_required
from portal.forms import MentorshipDecisionForm, form_error, json_object
from portal.models import Profile

bp = Blueprint('mentorship', __name__)


def _with_names(requests):
    """Attach student and mentor display names to each request."""
    names = {}

    def name_of(profile_id):
        if profile_id not in names:
            profile = dao.get_profile(profile_id)
            names[profile_id] = profile.display_name if profile else None
        return names[profile_id]

    items = []
    for req in requests:
        data = req.to_api()
        data['studentName'] = name_of(req.student_id)
        data['mentorName'] = name_of(req.mentor_id)
        items.append(data)
    return items


@bp.route('/mentors')
@profile_required
def list_mentors():
    return jsonify({'mentors': [m.to_api() for m in dao.get_mentors()]})


@bp.route('/mentors', methods=['POST'])
@admin_required
def create_mentor():
    profile = Profile.from_api(request.get_json(silent=True) or {})
    profile.id = None
    profile.created_at = None
    if profile.email and dao.get_profile_by_email(profile.email):
        return jsonify({'error': 'A devotee with this email already exists'}), 409
    dao.create_mentor(profile)
    return jsonify({'success': True, 'mentor': profile.to_api()}), 201


@bp.route('/mentorship/requests', methods=['POST'])
@role_required('student')
def request_mentor():
    payload = json_object()
    mentor_id = payload.get('mentorId')
    if not isinstance(mentor_id, str) or not mentor_id:
        return jsonify({'error': 'Choose a mentor'}), 400
    mentor = dao.get_profile(mentor_id)
    if not mentor or mentor.role != 'mentor':
        return jsonify({'error': 'Mentor not found'}), 404

    user = g.current_user
    existing = dao.get_mentorship_requests(student_id=user.profile_id, mentor_id=mentor.id, status='Pending')
    if existing:
        return jsonify({'error': 'You already have a pending request with this mentor'}), 409

    req = dao.create_mentorship_request(user.profile_id, mentor.id, payload.get('message'))
    return jsonify({'success': True, 'request': req.to_api()}), 201


@bp.route('/mentorship/requests')
@profile_required
def list_requests():
    """Students see their own requests, mentors the ones addressed to them, admins all."""
    user = g.current_user
    status = request.args.get('status') or None
    if user.is_admin():
        requests = dao.get_mentorship_requests(status=status)
    elif user.is_mentor():
        requests = dao.get_mentorship_requests(mentor_id=user.profile_id, status=status)
    else:
        requests = dao.get_mentorship_requests(student_id=user.profile_id, status=status)
    return jsonify({'requests': _with_names(requests)})


@bp.route('/mentorship/requests/<request_id>', methods=['PUT', 'POST'])
@role_required('mentor', 'admin')
def decide_request(request_id):
    form = MentorshipDecisionForm()
    if not form.validate_on_submit():
        return form_error(form)

    req = dao.get_mentorship_request(request_id)
    if not req:
        return jsonify({'error': 'Request not found'}), 404
    user = g.current_user
    if not user.is_admin() and req.mentor_id != user.profile_id:
        return jsonify({'error': 'Access denied'}), 403

    req = dao.update_mentorship_status(request_id, form.status.data)
    return jsonify({'success': True, 'request': req.to_api()})
