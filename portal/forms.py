from flask import jsonify, request
from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField, FileRequired
from wtforms import IntegerField, PasswordField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Email, EqualTo, Length, NumberRange, Optional

from portal.errors import ValidationFailed
from portal.services.storage import IMAGE_EXTENSIONS


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='Enter your email'), Email(message='Enter a valid email address')])
    password = PasswordField('Password', validators=[DataRequired(message='Enter your password')])


class RegistrationForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='Enter your email'), Email(message='Enter a valid email address')])
    password = PasswordField('Password', validators=[DataRequired(message='Enter a password'), Length(min=6, message='Use at least 6 characters')])
    confirm_password = PasswordField('Confirm password', validators=[Optional(), EqualTo('password', message='Passwords do not match')])


class TokenForm(FlaskForm):
    token = StringField('ID token', validators=[DataRequired(message='ID token is required')])


class AskForm(FlaskForm):
    question = TextAreaField('Question', validators=[DataRequired(message='Ask a question'), Length(max=2000)])


class QuizTopicForm(FlaskForm):
    topic = StringField('Topic', validators=[DataRequired(message='Enter a topic'), Length(max=200)])


class RoundsAdjustForm(FlaskForm):
    delta = IntegerField('Rounds', validators=[DataRequired(message='Enter a non-zero adjustment'), NumberRange(min=-64, max=64)])


class MentorshipDecisionForm(FlaskForm):
    status = SelectField('Status', choices=[('Accepted', 'Accept'), ('Rejected', 'Reject')])


class PhotoForm(FlaskForm):
    photo = FileField('Photo', validators=[
        FileRequired(message='Choose a photo'),
        FileAllowed(sorted(IMAGE_EXTENSIONS), message='Only PNG, JPG, JPEG or WEBP images'),
    ])


def form_error(form):
    """400 response carrying the first error message and all field errors."""
    first = next((errors[0] for errors in form.errors.values() if errors), 'Invalid data')
    return jsonify({'error': first, 'fields': form.errors}), 400


def json_object():
    """The JSON request body as a dict. An absent body reads as empty."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationFailed('Expected a JSON object')
    return payload
