import io

from flask import Blueprint, Response, jsonify, request
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from portal import firestore_dao as dao
from portal.decorators import admin_required
from portal.models import Profile

bp = Blueprint('devotees', __name__, url_prefix='/admin/devotees')

EXPORT_COLUMNS = [
    ('Name', 'name', 24),
    ('Spiritual name', 'spiritual_name', 24),
    ('Email', 'email', 30),
    ('Phone', 'phone', 16),
    ('Role', 'role', 10),
    ('Category', 'category', 16),
    ('Branch', 'branch', 16),
    ('Year of study', 'year_of_study', 12),
    ('Native place', 'native_place', 18),
    ('Interests', 'interests', 40),
]


def matches_search(profile, term):
    term = (term or '').strip().lower()
    if not term:
        return True
    return term in (profile.name or '').lower() or term in (profile.spiritual_name or '').lower()


def chanting_stats(history):
    total = sum(log.rounds for log in history)
    return {
        'totalRounds': total,
        'averageRounds': round(total / len(history)) if history else 0,
        'daysLogged': len(history),
    }


def _email_taken(email, profile_id=None):
    if not email:
        return False
    existing = dao.get_profile_by_email(email)
    return existing is not None and existing.id != profile_id


@bp.route('')
@admin_required
def list_devotees():
    term = request.args.get('q', '')
    role = request.args.get('role')
    profiles = [
        p for p in dao.get_all_profiles()
        if matches_search(p, term) and (not role or p.role == role)
    ]
    return jsonify({'devotees': [p.to_api() for p in profiles], 'count': len(profiles)})


@bp.route('', methods=['POST'])
@admin_required
def create_devotee():
    profile = Profile.from_api(request.get_json(silent=True) or {})
    profile.id = None
    profile.created_at = None
    if not profile.email or not profile.phone:
        return jsonify({'error': 'Please fill in all mandatory fields (Name, Email, Phone)'}), 400
    if _email_taken(profile.email):
        return jsonify({'error': 'A devotee with this email already exists'}), 409

    dao.create_profile(profile)
    return jsonify({'success': True, 'devotee': profile.to_api()}), 201


@bp.route('/<profile_id>')
@admin_required
def view_devotee(profile_id):
    """Profile with attended sessions and chanting history."""
    profile = dao.get_profile(profile_id)
    if not profile:
        return jsonify({'error': 'Devotee not found'}), 404

    attendance = dao.get_sessions_attended_by(profile.id)
    history = dao.get_chanting_history(profile.email) if profile.email else []
    return jsonify({
        'devotee': profile.to_api(),
        'attendance': [s.to_api() for s in attendance],
        'sessionsAttended': len(attendance),
        'chantingHistory': [log.to_api() for log in history],
        'chantingStats': chanting_stats(history),
    })


@bp.route('/<profile_id>', methods=['PUT'])
@admin_required
def update_devotee(profile_id):
    existing = dao.get_profile(profile_id)
    if not existing:
        return jsonify({'error': 'Devotee not found'}), 404

    profile = Profile.from_api(request.get_json(silent=True) or {})
    profile.id = profile_id
    profile.photo_path = existing.photo_path
    if existing.photo_path:
        profile.photo_url = existing.photo_url
    profile.created_at = existing.created_at
    if _email_taken(profile.email, profile_id):
        return jsonify({'error': 'A devotee with this email already exists'}), 409

    dao.update_profile(profile)
    return jsonify({'success': True, 'devotee': profile.to_api()})


@bp.route('/<profile_id>', methods=['DELETE'])
@admin_required
def delete_devotee(profile_id):
    if not dao.get_profile(profile_id):
        return jsonify({'error': 'Devotee not found'}), 404
    dao.delete_profile(profile_id)
    return jsonify({'success': True})


@bp.route('/export')
@admin_required
def export_devotees():
    """Download the roster as an Excel workbook."""
    wb = Workbook()
    ws = wb.active
    ws.title = 'Devotees'

    header_font = Font(bold=True)
    header_fill = PatternFill(start_color='FFE0B2', end_color='FFE0B2', fill_type='solid')
    for col, (label, _, width) in enumerate(EXPORT_COLUMNS, start=1):
        cell = ws.cell(row=1, column=col, value=label)
        cell.font = header_font
        cell.fill = header_fill
        ws.column_dimensions[cell.column_letter].width = width

    for row, profile in enumerate(dao.get_all_profiles(), start=2):
        for col, (_, attr, _) in enumerate(EXPORT_COLUMNS, start=1):
            value = getattr(profile, attr)
            if isinstance(value, list):
                value = ', '.join(value)
            ws.cell(row=row, column=col, value=value)

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)

    return Response(
        output.getvalue(),
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        headers={'Content-Disposition': 'attachment;filename=devotees.xlsx'}
    )
