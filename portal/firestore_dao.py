"""
Firestore Data Access Object (DAO) layer.

Every read and write of the portal goes through this module. Functions take
and return the dataclass models from `portal.models`; single-document
lookups return None when nothing matches and every other backend error
propagates to the caller. There is no caching, retry or pagination: each
call is a fresh round trip.
"""

from datetime import datetime, timezone

from google.cloud.firestore_v1 import FieldFilter

from portal.firebase_init import get_db
from portal.models import (
    ChantingLog, Homework, MentorshipRequest, Notification, Profile, Quiz,
    QuizResult, Resource, Session, Submission,
)
from portal.services.quiz import pending_quizzes

PROFILES = 'profiles'
SESSIONS = 'sessions'
HOMEWORK = 'homework'
SUBMISSIONS = 'submissions'
QUIZZES = 'quizzes'
QUIZ_RESULTS = 'quiz_results'
RESOURCES = 'resources'
NOTIFICATIONS = 'notifications'
CHANTING_LOGS = 'chanting_logs'
MENTORSHIP_REQUESTS = 'mentorship_requests'

# Firestore 'in' filters accept at most 30 values.
IN_QUERY_LIMIT = 30
# Firestore batches accept at most 500 writes.
BATCH_WRITE_LIMIT = 500


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _now():
    return datetime.now(timezone.utc)


def _load(model, doc_snapshot):
    """Convert a DocumentSnapshot to `model`, or None if it does not exist."""
    if not doc_snapshot.exists:
        return None
    return model.from_dict(doc_snapshot.to_dict(), doc_snapshot.id)


def _query_to_list(model, query_ref):
    return [_load(model, doc) for doc in query_ref.stream()]


def _first(model, query_ref):
    for doc in query_ref.limit(1).stream():
        return _load(model, doc)
    return None


def _get(model, collection, doc_id):
    if not doc_id:
        return None
    return _load(model, get_db().collection(collection).document(doc_id).get())


def _add(collection, obj, timestamp_field='created_at'):
    """Insert `obj` under a generated id and return it with the id set."""
    if timestamp_field and getattr(obj, timestamp_field, None) is None:
        setattr(obj, timestamp_field, _now())
    _, doc_ref = get_db().collection(collection).add(obj.to_dict())
    obj.id = doc_ref.id
    return obj


def _replace(collection, obj):
    """Whole-object update. Last write wins."""
    get_db().collection(collection).document(obj.id).set(obj.to_dict())
    return obj


def _delete(collection, doc_id):
    get_db().collection(collection).document(doc_id).delete()


# ========================================================================
# Profiles  (collection: profiles)
# ========================================================================

def create_profile(profile, uid=None):
    """Create a profile. With `uid` the auth user id becomes the document id."""
    profile.validate()
    if profile.created_at is None:
        profile.created_at = _now()
    if uid:
        get_db().collection(PROFILES).document(uid).set(profile.to_dict())
        profile.id = uid
        return profile
    return _add(PROFILES, profile)


def get_profile(profile_id):
    """Get a profile by id. Returns Profile or None."""
    return _get(Profile, PROFILES, profile_id)


def get_profile_by_email(email):
    """Get a profile by email address. Returns Profile or None."""
    if not email:
        return None
    return _first(
        Profile,
        get_db().collection(PROFILES).where(filter=FieldFilter('email', '==', email))
    )


def get_all_profiles():
    """Get every profile ordered by name."""
    return _query_to_list(Profile, get_db().collection(PROFILES).order_by('name'))


def get_profiles_by_role(role):
    return _query_to_list(
        Profile,
        get_db().collection(PROFILES)
        .where(filter=FieldFilter('role', '==', role))
        .order_by('name')
    )


def get_profiles_by_ids(profile_ids):
    """Fetch profiles for the given ids, skipping ids that no longer exist."""
    results = []
    for profile_id in profile_ids:
        profile = get_profile(profile_id)
        if profile:
            results.append(profile)
    return results


def update_profile(profile):
    """Replace a profile document with `profile`."""
    profile.validate()
    return _replace(PROFILES, profile)


def delete_profile(profile_id):
    """Delete a profile. Attendance references to it are left in place."""
    _delete(PROFILES, profile_id)


def count_profiles(role=None):
    query = get_db().collection(PROFILES)
    if role is not None:
        query = query.where(filter=FieldFilter('role', '==', role))
    return sum(1 for _ in query.stream())


# ========================================================================
# Mentors  (profiles with role == 'mentor')
# ========================================================================

def get_mentors():
    """Get all mentor profiles ordered by name."""
    return get_profiles_by_role('mentor')


def create_mentor(profile):
    """Create a mentor profile."""
    profile.role = 'mentor'
    if not profile.category:
        profile.category = 'Regular'
    return create_profile(profile)


# ========================================================================
# Sessions  (collection: sessions)
# ========================================================================

def get_sessions():
    """Get all sessions, most recent date first."""
    return _query_to_list(
        Session,
        get_db().collection(SESSIONS).order_by('date', direction='DESCENDING')
    )


def get_session(session_id):
    """Get a session by id. Returns Session or None."""
    return _get(Session, SESSIONS, session_id)


def create_session(session):
    """Create a session. Returns it with the generated id."""
    session.validate()
    return _add(SESSIONS, session)


def update_session(session):
    """Replace a session document, attendee list included."""
    session.validate()
    return _replace(SESSIONS, session)


def delete_session(session_id):
    _delete(SESSIONS, session_id)


def get_sessions_attended_by(profile_id):
    """Sessions whose attendee list contains `profile_id`, most recent first."""
    return _query_to_list(
        Session,
        get_db().collection(SESSIONS)
        .where(filter=FieldFilter('attendee_ids', 'array_contains', profile_id))
        .order_by('date', direction='DESCENDING')
    )


# ========================================================================
# Homework  (collections: homework, submissions)
# ========================================================================

def get_homework_by_session(session_id):
    """Get homework for a session, newest first."""
    return _query_to_list(
        Homework,
        get_db().collection(HOMEWORK)
        .where(filter=FieldFilter('session_id', '==', session_id))
        .order_by('created_at', direction='DESCENDING')
    )


def get_homework(homework_id):
    return _get(Homework, HOMEWORK, homework_id)


def create_homework(homework):
    homework.validate()
    return _add(HOMEWORK, homework)


def submit_homework(submission):
    """Record a submission as Submitted at the current time."""
    submission.status = 'Submitted'
    submission.submitted_at = _now()
    submission.validate()
    return _add(SUBMISSIONS, submission, timestamp_field=None)


def get_submissions_by_homework(homework_id):
    return _query_to_list(
        Submission,
        get_db().collection(SUBMISSIONS)
        .where(filter=FieldFilter('homework_id', '==', homework_id))
        .order_by('submitted_at', direction='DESCENDING')
    )


def get_submissions_by_student(student_id):
    return _query_to_list(
        Submission,
        get_db().collection(SUBMISSIONS)
        .where(filter=FieldFilter('student_id', '==', student_id))
        .order_by('submitted_at', direction='DESCENDING')
    )


# ========================================================================
# Quizzes  (collections: quizzes, quiz_results)
# ========================================================================

def get_quizzes():
    """Get all quizzes, newest first."""
    return _query_to_list(
        Quiz,
        get_db().collection(QUIZZES).order_by('created_at', direction='DESCENDING')
    )


def get_quiz(quiz_id):
    return _get(Quiz, QUIZZES, quiz_id)


def create_quiz(quiz):
    """Validate and store a quiz. Questions without an id get one."""
    quiz.ensure_question_ids().validate()
    return _add(QUIZZES, quiz)


def delete_quiz(quiz_id):
    _delete(QUIZZES, quiz_id)


def get_quizzes_for_sessions(session_ids):
    """Get quizzes attached to any of `session_ids`."""
    session_ids = list(session_ids)
    results = []
    for i in range(0, len(session_ids), IN_QUERY_LIMIT):
        batch = session_ids[i:i + IN_QUERY_LIMIT]
        results.extend(_query_to_list(
            Quiz,
            get_db().collection(QUIZZES)
            .where(filter=FieldFilter('session_id', 'in', batch))
        ))
    return results


def save_quiz_result(result):
    """Store a quiz result, stamping completed_at."""
    result.validate()
    return _add(QUIZ_RESULTS, result, timestamp_field='completed_at')


def get_results_by_student(student_id):
    """Get a student's quiz results, most recent first."""
    return _query_to_list(
        QuizResult,
        get_db().collection(QUIZ_RESULTS)
        .where(filter=FieldFilter('student_id', '==', student_id))
        .order_by('completed_at', direction='DESCENDING')
    )


def get_pending_quizzes(student_id):
    """Quizzes from sessions the student attended that they have not taken.

    Computed client-side: attended sessions, their quizzes, minus the
    quizzes that already have a result for this student.
    """
    attended_ids = [s.id for s in get_sessions_attended_by(student_id)]
    if not attended_ids:
        return []
    quizzes = get_quizzes_for_sessions(attended_ids)
    completed_ids = {r.quiz_id for r in get_results_by_student(student_id)}
    return pending_quizzes(quizzes, attended_ids, completed_ids)


# ========================================================================
# Resources  (collection: resources)
# ========================================================================

def get_resources(category=None, resource_type=None):
    """Get resources, newest first, optionally filtered by category and type."""
    query = get_db().collection(RESOURCES)
    if category:
        query = query.where(filter=FieldFilter('category', '==', category))
    if resource_type:
        query = query.where(filter=FieldFilter('type', '==', resource_type))
    return _query_to_list(Resource, query.order_by('created_at', direction='DESCENDING'))


def get_resource(resource_id):
    return _get(Resource, RESOURCES, resource_id)


def create_resource(resource):
    resource.validate()
    return _add(RESOURCES, resource)


def delete_resource(resource_id):
    _delete(RESOURCES, resource_id)


def count_resources():
    return sum(1 for _ in get_db().collection(RESOURCES).stream())


# ========================================================================
# Mentorship requests  (collection: mentorship_requests)
# ========================================================================

def create_mentorship_request(student_id, mentor_id, message):
    """Create a Pending request from a student to a mentor."""
    request = MentorshipRequest(
        student_id=student_id,
        mentor_id=mentor_id,
        message=message or '',
        status='Pending',
    )
    request.validate()
    return _add(MENTORSHIP_REQUESTS, request)


def get_mentorship_request(request_id):
    return _get(MentorshipRequest, MENTORSHIP_REQUESTS, request_id)


def get_mentorship_requests(student_id=None, mentor_id=None, status=None):
    """Get requests, newest first, filtered by any of student, mentor and status."""
    query = get_db().collection(MENTORSHIP_REQUESTS)
    if student_id:
        query = query.where(filter=FieldFilter('student_id', '==', student_id))
    if mentor_id:
        query = query.where(filter=FieldFilter('mentor_id', '==', mentor_id))
    if status:
        query = query.where(filter=FieldFilter('status', '==', status))
    return _query_to_list(
        MentorshipRequest,
        query.order_by('created_at', direction='DESCENDING')
    )


def update_mentorship_status(request_id, status):
    request = get_mentorship_request(request_id)
    if request is None:
        return None
    request.status = status
    request.validate()
    return _replace(MENTORSHIP_REQUESTS, request)


def count_mentorship_requests(status=None):
    query = get_db().collection(MENTORSHIP_REQUESTS)
    if status:
        query = query.where(filter=FieldFilter('status', '==', status))
    return sum(1 for _ in query.stream())


# ========================================================================
# Notifications  (collection: notifications)
# ========================================================================

def get_notifications(limit=50):
    """Get the most recent notifications."""
    return _query_to_list(
        Notification,
        get_db().collection(NOTIFICATIONS)
        .order_by('timestamp', direction='DESCENDING')
        .limit(limit)
    )


def create_notification(title, message, notification_type='system'):
    notification = Notification(
        title=title,
        message=message,
        is_read=False,
        type=notification_type,
    )
    notification.validate()
    return _add(NOTIFICATIONS, notification, timestamp_field='timestamp')


def mark_all_notifications_read():
    """Flag every unread notification as read. Returns how many changed."""
    db = get_db()
    unread = (
        db.collection(NOTIFICATIONS)
        .where(filter=FieldFilter('is_read', '==', False))
        .stream()
    )
    batch = db.batch()
    count = 0
    for doc in unread:
        batch.update(doc.reference, {'is_read': True})
        count += 1
        if count % BATCH_WRITE_LIMIT == 0:
            batch.commit()
            batch = db.batch()
    if count % BATCH_WRITE_LIMIT:
        batch.commit()
    return count


# ========================================================================
# Chanting logs  (collection: chanting_logs, one document per email + date)
# ========================================================================

def _chanting_log_id(email, date):
    return f"{email}_{date}"


def get_chanting_log(email, date):
    """Get the log for `email` on `date` (YYYY-MM-DD). Returns ChantingLog or None."""
    return _get(ChantingLog, CHANTING_LOGS, _chanting_log_id(email, date))


def upsert_chanting_log(email, date, rounds):
    """Insert or overwrite the rounds for (email, date)."""
    log = ChantingLog(
        user_email=email,
        date=date,
        rounds=max(0, int(rounds)),
        updated_at=_now(),
    )
    doc_id = _chanting_log_id(email, date)
    get_db().collection(CHANTING_LOGS).document(doc_id).set(log.to_dict(), merge=True)
    log.id = doc_id
    return log


def get_chanting_history(email, limit=30):
    """Get a user's daily logs, most recent date first."""
    return _query_to_list(
        ChantingLog,
        get_db().collection(CHANTING_LOGS)
        .where(filter=FieldFilter('user_email', '==', email))
        .order_by('date', direction='DESCENDING')
        .limit(limit)
    )
