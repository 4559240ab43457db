from flask import Blueprint, current_app, jsonify

from portal.decorators import profile_required
from portal.forms import AskForm, form_error

bp = Blueprint('gita', __name__, url_prefix='/gita')


def devotional_content():
    return current_app.extensions['devotional_content']


@bp.route('/quote')
@profile_required
def daily_quote():
    return jsonify({'quote': devotional_content().daily_quote()})


@bp.route('/ask', methods=['POST'])
@profile_required
def ask():
    """Answer a question in the voice of the Bhagavad Gita."""
    form = AskForm()
    if not form.validate_on_submit():
        return form_error(form)
    content = devotional_content()
    return jsonify({
        'question': form.question.data,
        'answer': content.answer(form.question.data),
        'online': content.enabled,
    })
