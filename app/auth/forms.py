from flask_wtf import FlaskForm
from wtforms import BooleanField, PasswordField, StringField, SubmitField
from wtforms.validators import Email, EqualTo, InputRequired, Length, ValidationError

from ..models import User


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


class RegistrationForm(FlaskForm):
    display_name = StringField(
        "Pen name",
        filters=[_strip],
        validators=[
            InputRequired(message="Choose the name Artemis should call you."),
            Length(min=2, max=120, message="Pen names must be 2 to 120 characters."),
        ],
    )
    email = StringField(
        "Email",
        filters=[_normalize_email],
        validators=[InputRequired(), Email(), Length(max=255)],
    )
    password = PasswordField("Password", validators=[InputRequired(), Length(min=8, max=128)])
    confirm_password = PasswordField(
        "Confirm password",
        validators=[InputRequired(), EqualTo("password", message="Passwords must match.")],
    )
    submit = SubmitField("Start writing")

    def validate_email(self, field: StringField) -> None:
        if User.query.filter_by(email=field.data).first():
            raise ValidationError("An account with that email already exists.")


class LoginForm(FlaskForm):
    email = StringField(
        "Email",
        filters=[_normalize_email],
        validators=[InputRequired(), Email(), Length(max=255)],
    )
    password = PasswordField("Password", validators=[InputRequired()])
    remember = BooleanField("Keep my writing session open")
    submit = SubmitField("Back to my drafts")
