# bloodlagbe/forms/auth.py

from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Length

from .base import ApiForm


class RegisterForm(ApiForm):
    name = StringField(
        "Name",
        validators=[DataRequired(message="Name is required."), Length(max=200)],
    )
    email = StringField(
        "Email",
        validators=[DataRequired(message="Email is required."), Length(max=255)],
    )
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(message="Password is required."),
            Length(min=6, message="Password must be at least 6 characters."),
        ],
    )


class LoginForm(ApiForm):
    email = StringField("Email", validators=[DataRequired(message="Email is required.")])
    password = PasswordField("Password", validators=[DataRequired(message="Password is required.")])
