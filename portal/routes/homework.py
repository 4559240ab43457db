from flask import Blueprint, g, jsonify, request

from portal import firestore_dao as dao
from portal.decorators import admin_required, profile_required, role_required
from portal.models import Homework, Submission
from portal.services.storage import file_api, upload_homework_attachment, upload_submission

bp = Blueprint('homework', __name__)


def _payload():
    """JSON body, or the form fields of a multipart upload."""
    if request.is_json:
        payload = request.get_json(silent=True)
        return payload if isinstance(payload, dict) else {}
    return request.form.to_dict()


def _uploaded_file():
    file = request.files.get('file')
    if file and file.filename:
        return file
    return None


@bp.route('/sessions/<session_id>/homework')
@profile_required
def list_homework(session_id):
    if not dao.get_session(session_id):
        return jsonify({'error': 'Session not found'}), 404
    homework = dao.get_homework_by_session(session_id)
    return jsonify({'homework': [file_api(h) for h in homework]})


@bp.route('/homework', methods=['POST'])
@admin_required
def create_homework():
    homework = Homework.from_api(_payload())
    homework.id = None
    homework.created_at = None
    homework.validate()
    if not dao.get_session(homework.session_id):
        return jsonify({'error': 'Session not found'}), 404

    file = _uploaded_file()
    if file:
        homework.file_path = upload_homework_attachment(homework.session_id, file)

    dao.create_homework(homework)
    return jsonify({'success': True, 'homework': file_api(homework)}), 201


@bp.route('/homework/<homework_id>/submissions', methods=['POST'])
@role_required('student', 'mentor')
def submit(homework_id):
    homework = dao.get_homework(homework_id)
    if not homework:
        return jsonify({'error': 'Homework not found'}), 404

    student_id = g.current_user.profile_id
    submission = Submission(
        homework_id=homework_id,
        student_id=student_id,
        file_url=_payload().get('fileUrl') or None,
    )
    file = _uploaded_file()
    if file:
        submission.file_path = upload_submission(homework_id, student_id, file)

    dao.submit_homework(submission)
    return jsonify({'success': True, 'submission': file_api(submission)}), 201


@bp.route('/homework/<homework_id>/submissions')
@admin_required
def list_submissions(homework_id):
    if not dao.get_homework(homework_id):
        return jsonify({'error': 'Homework not found'}), 404
    submissions = dao.get_submissions_by_homework(homework_id)
    students = {p.id: p for p in dao.get_profiles_by_ids({s.student_id for s in submissions})}
    items = []
    for submission in submissions:
        data = file_api(submission)
        student = students.get(submission.student_id)
        data['studentName'] = student.display_name if student else None
        items.append(data)
    return jsonify({'submissions': items})


@bp.route('/app/homework')
@role_required('student', 'mentor')
def my_homework():
    """Homework from attended sessions with the caller's submission status."""
    profile_id = g.current_user.profile_id
    submitted = {}
    for submission in dao.get_submissions_by_student(profile_id):
        submitted.setdefault(submission.homework_id, submission)

    items = []
    for session in dao.get_sessions_attended_by(profile_id):
        for homework in dao.get_homework_by_session(session.id):
            data = file_api(homework)
            data['sessionTitle'] = session.title
            submission = submitted.get(homework.id)
            data['submission'] = file_api(submission) if submission else None
            data['status'] = submission.status if submission else 'Pending'
            items.append(data)
    return jsonify({'homework': items})
