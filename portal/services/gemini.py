import json
import logging
import re
from datetime import date
from typing import List, Optional

from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

from google import genai
from google.genai import types

from portal.errors import ValidationFailed
from portal.models import Question

logger = logging.getLogger(__name__)

QUIZ_QUESTION_COUNT = 5

FALLBACK_QUOTES = [
    {
        "verse": "karmany evadhikaras te ma phalesu kadacana\nma karma-phala-hetur bhur ma te sango 'stv akarmani",
        "translation": "You have a right to perform your prescribed duty, but you are not entitled to the fruits of action. Never consider yourself the cause of the results of your activities, and never be attached to not doing your duty.",
        "purport": "Krishna explains the art of working without attachment. Do your best in your service, but leave the outcome to Him. This frees you from anxiety and pride.",
        "chapter": 2,
        "text": 47,
    },
    {
        "verse": "man-mana bhava mad-bhakto mad-yaji mam namaskuru\nmam evaisyasi satyam te pratijane priyo 'si me",
        "translation": "Always think of Me, become My devotee, worship Me and offer your homage unto Me. Thus you will come to Me without fail. I promise you this because you are My very dear friend.",
        "purport": "This is the essence of the Gita. Constant remembrance of Krishna through service and chanting is the surest way to reach Him.",
        "chapter": 18,
        "text": 65,
    },
    {
        "verse": "patram puspam phalam toyam yo me bhaktya prayacchati\ntad aham bhakty-upahrtam asnami prayatatmanah",
        "translation": "If one offers Me with love and devotion a leaf, a flower, a fruit or water, I will accept it.",
        "purport": "Krishna accepts the love (bhakti) behind the offering, not the material value. Even the simplest offering made with a pure heart pleases Him.",
        "chapter": 9,
        "text": 26,
    },
    {
        "verse": "sarva-dharman parityajya mam ekam saranam vraja\naham tvam sarva-papebhyo moksayisyami ma sucah",
        "translation": "Abandon all varieties of religion and just surrender unto Me. I shall deliver you from all sinful reactions. Do not fear.",
        "purport": "The ultimate conclusion of the Gita: Surrender to Krishna. He takes full responsibility for his devotee.",
        "chapter": 18,
        "text": 66,
    },
]

OFFLINE_ANSWER = (
    "I apologize, but I am currently in offline mode. Please ask the portal "
    "administrator to configure a Gemini API key to unlock answers to specific "
    "questions from the Bhagavad Gita."
)
ERROR_ANSWER = (
    "I am having trouble connecting to the divine knowledge right now. "
    "Please try again later."
)


def is_rate_limit_error(exception: BaseException) -> bool:
    error_msg = str(exception)
    return (
        "429" in error_msg
        or "RESOURCE_EXHAUSTED" in error_msg
        or "quota" in error_msg.lower()
        or "rate limit" in error_msg.lower()
        or getattr(exception, 'code', None) == 429
    )


def fallback_quote(today: Optional[date] = None) -> dict:
    """Static quote for the day, rotating through FALLBACK_QUOTES."""
    today = today or date.today()
    return dict(FALLBACK_QUOTES[today.toordinal() % len(FALLBACK_QUOTES)])


def _parse_json(text: str, opener: str, closer: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        match = re.search(re.escape(opener) + r'.*' + re.escape(closer), text, re.DOTALL)
        if match:
            return json.loads(match.group())
        raise


class DevotionalContent:
    """Gemini-backed devotional content with offline fallbacks.

    None of the public methods raise: a missing key or any client error
    yields the canned response instead.
    """

    QUOTE_PROMPT = (
        "Generate a powerful and inspiring quote from the Bhagavad Gita for "
        "ISKCON devotees today. Return JSON with fields: verse, translation, "
        "purport, chapter (number), text (number)."
    )

    ANSWER_INSTRUCTION = (
        "You are an expert spiritual guide grounded strictly in the teachings of "
        "the Bhagavad Gita As It Is. Answer the user's question using ONLY the "
        "Bhagavad Gita. Cite specific chapters and verses (e.g., BG 2.47) for "
        "every main point you make. Keep answers concise, spiritual, uplifting, "
        "and relevant to modern life. If the question is unrelated to "
        "spirituality or the Gita, politely guide the user back to spiritual topics."
    )

    QUIZ_PROMPT = """Generate a {count}-question multiple choice quiz about "{topic}" based on Bhagavad Gita teachings.
Return a JSON array of objects with fields:
- id (string)
- question (string)
- options (string array of 4 choices)
- correctAnswer (number index 0-3)
- explanation (short string)"""

    def __init__(self, api_key=None, model='gemini-2.5-flash', base_url=None,
                 max_attempts=1, client=None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_attempts = max(1, int(max_attempts or 1))
        self._client = client

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get('GEMINI_API_KEY'),
            model=config.get('GEMINI_MODEL', 'gemini-2.5-flash'),
            base_url=config.get('GEMINI_BASE_URL'),
            max_attempts=config.get('GEMINI_MAX_ATTEMPTS', 1),
        )

    @property
    def enabled(self) -> bool:
        if self._client is not None:
            return True
        return bool(self.api_key) and 'YOUR_GEMINI' not in self.api_key

    @property
    def client(self):
        if self._client is None:
            http_options = {'base_url': self.base_url} if self.base_url else None
            self._client = genai.Client(api_key=self.api_key, http_options=http_options)
        return self._client

    def _generate(self, contents, config=None) -> str:
        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=60),
            retry=retry_if_exception(is_rate_limit_error),
            reraise=True
        )
        def call():
            response = self.client.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
            return response.text or ""

        return call()

    def daily_quote(self) -> dict:
        if not self.enabled:
            logger.warning("No Gemini API key configured, using offline quote")
            return fallback_quote()
        try:
            text = self._generate(
                self.QUOTE_PROMPT,
                types.GenerateContentConfig(response_mime_type="application/json"),
            )
            if not text:
                raise ValueError("Empty response")
            quote = _parse_json(text, '{', '}')
            if not isinstance(quote, dict) or not quote.get('translation'):
                raise ValueError("Quote response is missing a translation")
            return quote
        except Exception as e:
            logger.warning("Gita quote generation failed, using fallback: %s", e)
            return fallback_quote()

    def answer(self, question: str) -> str:
        if not self.enabled:
            return OFFLINE_ANSWER
        try:
            text = self._generate(
                question,
                types.GenerateContentConfig(system_instruction=self.ANSWER_INSTRUCTION),
            )
            return text or ERROR_ANSWER
        except Exception as e:
            logger.warning("Gita answer generation failed: %s", e)
            return ERROR_ANSWER

    def generate_quiz(self, topic: str) -> List[Question]:
        """Draft quiz questions for `topic`. Malformed items are dropped."""
        if not self.enabled:
            logger.warning("No Gemini API key configured, quiz generation unavailable")
            return []
        try:
            text = self._generate(
                self.QUIZ_PROMPT.format(count=QUIZ_QUESTION_COUNT, topic=topic),
                types.GenerateContentConfig(response_mime_type="application/json"),
            )
            items = _parse_json(text or "[]", '[', ']')
        except Exception as e:
            logger.warning("Quiz generation failed for %r: %s", topic, e)
            return []
        if not isinstance(items, list):
            return []

        questions = []
        for position, item in enumerate(items, start=1):
            try:
                question = Question.from_api(item).validate(position)
            except ValidationFailed as e:
                logger.info("Dropping generated question %d: %s", position, e.message)
                continue
            question.id = str(question.id) if question.id else f"q{position}"
            questions.append(question)
        return questions[:QUIZ_QUESTION_COUNT]
