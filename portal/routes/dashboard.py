from flask import Blueprint, current_app, g, jsonify

from portal import firestore_dao as dao
from portal.decorators import admin_required, role_required
from portal.routes.chanting import todays_rounds
from portal.services.attendance import attendance_by_weekday

bp = Blueprint('dashboard', __name__)

RECENT_SESSIONS = 5


@bp.route('/admin/dashboard')
@admin_required
def admin_dashboard():
    sessions = dao.get_sessions()
    return jsonify({
        'stats': {
            'totalStudents': dao.count_profiles('student'),
            'activeSessions': sum(1 for s in sessions if s.status == 'Ongoing'),
            'resources': dao.count_resources(),
            'pendingMentorships': dao.count_mentorship_requests('Pending'),
        },
        'attendanceByWeekday': attendance_by_weekday(sessions),
        'recentSessions': [s.to_api() for s in sessions[:RECENT_SESSIONS]],
    })


@bp.route('/app/dashboard')
@role_required('student', 'mentor')
def user_dashboard():
    user = g.current_user
    goal = current_app.config.get('DAILY_ROUND_GOAL', 16)
    attended = dao.get_sessions_attended_by(user.profile_id)
    upcoming = [s for s in dao.get_sessions() if s.status == 'Upcoming']
    return jsonify({
        'greeting': user.display_name,
        'sessionsAttended': len(attended),
        'roundsToday': todays_rounds(user.email),
        'roundGoal': goal,
        'pendingQuizzes': len(dao.get_pending_quizzes(user.profile_id)),
        'upcomingSessions': [s.to_api() for s in upcoming[:RECENT_SESSIONS]],
        'quote': current_app.extensions['devotional_content'].daily_quote(),
    })
