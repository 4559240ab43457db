import json
from datetime import date
from types import SimpleNamespace

from portal.services.gemini import (
    ERROR_ANSWER, FALLBACK_QUOTES, OFFLINE_ANSWER, DevotionalContent, fallback_quote, is_rate_limit_error,
)


class StubModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, model, contents, config=None):
        self.calls.append((model, contents, config))
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


def _content(**kwargs):
    models = StubModels(**kwargs)
    return DevotionalContent(client=SimpleNamespace(models=models)), models


def test_fallback_quote_is_deterministic_per_day():
    day = date(2024, 6, 1)
    assert fallback_quote(day) == fallback_quote(day)
    assert fallback_quote(day) in FALLBACK_QUOTES
    assert fallback_quote(day) != fallback_quote(date(2024, 6, 2))


def test_disabled_without_key():
    content = DevotionalContent(api_key=None)
    assert content.enabled is False
    assert content.answer('Who am I?') == OFFLINE_ANSWER
    assert content.generate_quiz('Karma') == []
    assert content.daily_quote()['translation']


def test_placeholder_key_is_disabled():
    assert DevotionalContent(api_key='YOUR_GEMINI_API_KEY').enabled is False


def test_daily_quote_from_model():
    quote = {'verse': 'v', 'translation': 't', 'purport': 'p', 'chapter': 2, 'text': 47}
    content, _ = _content(text='```json\n' + json.dumps(quote) + '\n```')
    assert content.daily_quote() == quote


def test_daily_quote_falls_back_on_bad_json():
    content, _ = _content(text='not json at all')
    assert content.daily_quote() in FALLBACK_QUOTES


def test_answer_uses_system_instruction():
    content, models = _content(text='See BG 2.47.')
    assert content.answer('How should I work?') == 'See BG 2.47.'
    _, contents, config = models.calls[0]
    assert contents == 'How should I work?'
    assert 'Bhagavad Gita' in config.system_instruction


def test_answer_on_error_or_empty():
    content, _ = _content(error=RuntimeError('boom'))
    assert content.answer('?') == ERROR_ANSWER
    content, _ = _content(text='')
    assert content.answer('?') == ERROR_ANSWER


def test_generate_quiz_drops_malformed_items():
    items = [
        {'id': 1, 'question': 'Good', 'options': ['a', 'b', 'c', 'd'], 'correctAnswer': 2},
        {'question': 'Three options', 'options': ['a', 'b', 'c'], 'correctAnswer': 0},
        {'question': 'Out of range', 'options': ['a', 'b', 'c', 'd'], 'correctAnswer': 7},
        'just a string',
        {'question': 'No id', 'options': ['a', 'b', 'c', 'd'], 'correctAnswer': 0},
    ]
    content, _ = _content(text=json.dumps(items))
    questions = content.generate_quiz('Karma')
    assert [q.question for q in questions] == ['Good', 'No id']
    assert questions[0].id == '1'
    assert questions[1].id == 'q5'


def test_generate_quiz_on_error():
    content, _ = _content(error=RuntimeError('429 RESOURCE_EXHAUSTED'))
    assert content.generate_quiz('Karma') == []


def test_rate_limit_detection():
    assert is_rate_limit_error(Exception('429 Too Many Requests'))
    assert is_rate_limit_error(Exception('Quota exceeded'))
    assert not is_rate_limit_error(Exception('Bad request'))


def test_rate_limit_retry_when_enabled(monkeypatch):
    monkeypatch.setattr('time.sleep', lambda seconds: None)
    attempts = []

    class FlakyModels:
        def generate_content(self, model, contents, config=None):
            attempts.append(1)
            if len(attempts) < 3:
                raise RuntimeError('429 RESOURCE_EXHAUSTED')
            return SimpleNamespace(text='Hare Krishna')

    content = DevotionalContent(client=SimpleNamespace(models=FlakyModels()), max_attempts=3)
    assert content.answer('?') == 'Hare Krishna'
    assert len(attempts) == 3


def test_no_retry_by_default():
    content, models = _content(error=RuntimeError('429 RESOURCE_EXHAUSTED'))
    assert content.answer('?') == ERROR_ANSWER
    assert len(models.calls) == 1
