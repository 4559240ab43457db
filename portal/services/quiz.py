from typing import Dict, Iterable, List, Mapping


def score_quiz(questions, answers: Mapping) -> Dict:
    """Score a quiz submission.

    `answers` maps the zero-based question position (int or numeric string,
    as JSON object keys arrive) to the chosen option index. Unanswered
    questions count as wrong.

    Returns a dict with the integer percentage, the correct count and a
    per-question review.
    """
    normalised = {}
    for key, value in (answers or {}).items():
        try:
            normalised[int(key)] = int(value)
        except (TypeError, ValueError):
            continue

    review = []
    correct_count = 0
    for position, question in enumerate(questions):
        chosen = normalised.get(position)
        is_correct = chosen is not None and chosen == question.correct_answer
        if is_correct:
            correct_count += 1
        review.append({
            'questionId': question.id,
            'chosen': chosen,
            'correctAnswer': question.correct_answer,
            'isCorrect': is_correct,
            'explanation': question.explanation,
        })

    total = len(questions)
    score = round(100 * correct_count / total) if total else 0
    return {
        'score': score,
        'correctCount': correct_count,
        'totalQuestions': total,
        'review': review,
    }


def pending_quizzes(quizzes: Iterable, attended_session_ids: Iterable[str],
                    completed_quiz_ids: Iterable[str]) -> List:
    """Quizzes tied to an attended session that have no result yet."""
    attended = set(attended_session_ids)
    completed = set(completed_quiz_ids)
    return [
        quiz for quiz in quizzes
        if quiz.session_id in attended and quiz.id not in completed
    ]
