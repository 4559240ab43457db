from flask import Blueprint, current_app, g, jsonify, request

from portal import firestore_dao as dao
from portal.decorators import admin_required, role_required
from portal.forms import QuizTopicForm, form_error, json_object
from portal.models import Quiz, QuizResult
from portal.routes.notifications import notify
from portal.services.quiz import score_quiz

bp = Blueprint('quizzes', __name__)


@bp.route('/quizzes')
@admin_required
def list_quizzes():
    return jsonify({'quizzes': [q.to_api() for q in dao.get_quizzes()]})


@bp.route('/quizzes', methods=['POST'])
@admin_required
def create_quiz():
    quiz = Quiz.from_api(request.get_json(silent=True) or {})
    quiz.id = None
    quiz.created_at = None
    if quiz.session_id and not dao.get_session(quiz.session_id):
        return jsonify({'error': 'Session not found'}), 404

    dao.create_quiz(quiz)
    notify('New Quiz', f'A quiz on "{quiz.topic}" is now available.')
    return jsonify({'success': True, 'quiz': quiz.to_api()}), 201


@bp.route('/quizzes/<quiz_id>', methods=['DELETE'])
@admin_required
def delete_quiz(quiz_id):
    if not dao.get_quiz(quiz_id):
        return jsonify({'error': 'Quiz not found'}), 404
    dao.delete_quiz(quiz_id)
    return jsonify({'success': True})


@bp.route('/quizzes/generate', methods=['POST'])
@admin_required
def generate_quiz():
    """Draft questions with Gemini. Nothing is saved until the admin posts the quiz."""
    form = QuizTopicForm()
    if not form.validate_on_submit():
        return form_error(form)

    questions = current_app.extensions['devotional_content'].generate_quiz(form.topic.data)
    if not questions:
        return jsonify({'error': 'Could not generate questions right now. Please try again later.'}), 503
    return jsonify({'topic': form.topic.data, 'questions': [q.to_api() for q in questions]})


@bp.route('/app/quizzes')
@role_required('student', 'mentor')
def my_quizzes():
    profile_id = g.current_user.profile_id
    results = dao.get_results_by_student(profile_id)
    completed = []
    for result in results:
        quiz = dao.get_quiz(result.quiz_id)
        completed.append({
            'quizId': result.quiz_id,
            'topic': quiz.topic if quiz else None,
            'score': result.score,
            'totalQuestions': result.total_questions,
            'completedAt': result.to_api()['completedAt'],
        })
    pending = dao.get_pending_quizzes(profile_id)
    return jsonify({
        'pending': [{'id': q.id, 'topic': q.topic, 'sessionId': q.session_id,
                     'questionCount': len(q.questions)} for q in pending],
        'completed': completed,
    })


@bp.route('/app/quizzes/<quiz_id>')
@role_required('student', 'mentor')
def take_quiz(quiz_id):
    quiz = dao.get_quiz(quiz_id)
    if not quiz:
        return jsonify({'error': 'Quiz not found'}), 404
    return jsonify({
        'id': quiz.id,
        'topic': quiz.topic,
        'sessionId': quiz.session_id,
        'questions': [q.without_answer() for q in quiz.questions],
    })


@bp.route('/app/quizzes/<quiz_id>/submit', methods=['POST'])
@role_required('student', 'mentor')
def submit_quiz(quiz_id):
    quiz = dao.get_quiz(quiz_id)
    if not quiz:
        return jsonify({'error': 'Quiz not found'}), 404

    profile_id = g.current_user.profile_id
    if any(r.quiz_id == quiz_id for r in dao.get_results_by_student(profile_id)):
        return jsonify({'error': 'You have already completed this quiz'}), 409

    answers = json_object().get('answers') or {}
    if not isinstance(answers, dict):
        return jsonify({'error': 'answers must be an object'}), 400

    outcome = score_quiz(quiz.questions, answers)
    result = dao.save_quiz_result(QuizResult(
        quiz_id=quiz_id,
        student_id=profile_id,
        score=outcome['score'],
        total_questions=outcome['totalQuestions'],
    ))
    return jsonify({'success': True, 'result': result.to_api(), **outcome})
