from flask import Blueprint, g, jsonify, request

from portal import firestore_dao as dao
from portal.decorators import admin_required, profile_required, role_required
from portal.models import Session
from portal.routes.notifications import notify
from portal.services.attendance import is_attending, toggle_attendee
from portal.services.storage import file_api

bp = Blueprint('sessions', __name__)


@bp.route('/sessions')
@profile_required
def list_sessions():
    status = request.args.get('status')
    sessions = [s for s in dao.get_sessions() if not status or s.status == status]
    return jsonify({'sessions': [s.to_api() for s in sessions]})


@bp.route('/sessions', methods=['POST'])
@admin_required
def create_session():
    session = Session.from_api(request.get_json(silent=True) or {})
    session.id = None
    session.created_at = None
    session.attendee_ids = []
    session.location = session.location or 'Temple Hall'
    session.facilitator = session.facilitator or 'Unknown'

    dao.create_session(session)
    notify('New Session Created', f'Session "{session.title}" has been scheduled.')
    return jsonify({'success': True, 'session': session.to_api()}), 201


@bp.route('/sessions/<session_id>')
@admin_required
def view_session(session_id):
    session = dao.get_session(session_id)
    if not session:
        return jsonify({'error': 'Session not found'}), 404
    attendees = dao.get_profiles_by_ids(session.attendee_ids)
    return jsonify({
        'session': session.to_api(),
        'attendees': [p.to_api() for p in attendees],
        'homework': [file_api(h) for h in dao.get_homework_by_session(session_id)],
    })


@bp.route('/sessions/<session_id>', methods=['PUT'])
@admin_required
def update_session(session_id):
    existing = dao.get_session(session_id)
    if not existing:
        return jsonify({'error': 'Session not found'}), 404

    payload = request.get_json(silent=True) or {}
    session = Session.from_api(payload)
    session.id = session_id
    session.created_at = existing.created_at
    if 'attendeeIds' not in payload:
        session.attendee_ids = existing.attendee_ids

    dao.update_session(session)
    return jsonify({'success': True, 'session': session.to_api()})


@bp.route('/sessions/<session_id>', methods=['DELETE'])
@admin_required
def delete_session(session_id):
    if not dao.get_session(session_id):
        return jsonify({'error': 'Session not found'}), 404
    dao.delete_session(session_id)
    return jsonify({'success': True})


@bp.route('/sessions/<session_id>/attendance/<profile_id>', methods=['POST'])
@admin_required
def toggle_attendance(session_id, profile_id):
    """Mark a devotee present, or clear the mark if already present."""
    session = dao.get_session(session_id)
    if not session:
        return jsonify({'error': 'Session not found'}), 404

    was_attending = is_attending(session.attendee_ids, profile_id)
    devotee = dao.get_profile(profile_id)
    if devotee is None and not was_attending:
        return jsonify({'error': 'Devotee not found'}), 404

    session.attendee_ids = toggle_attendee(session.attendee_ids, profile_id)
    dao.update_session(session)

    if not was_attending:
        notify('Attendance Marked', f'{devotee.display_name} marked present for {session.title}')

    return jsonify({
        'success': True,
        'present': not was_attending,
        'attendeeIds': session.attendee_ids,
    })


@bp.route('/app/sessions')
@role_required('student', 'mentor')
def my_sessions():
    attended = dao.get_sessions_attended_by(g.current_user.profile_id)
    upcoming = [s for s in dao.get_sessions() if s.status == 'Upcoming']
    return jsonify({
        'attended': [s.to_api() for s in attended],
        'upcoming': [s.to_api() for s in upcoming],
    })
