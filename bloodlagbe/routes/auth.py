# bloodlagbe/routes/auth.py

from http import HTTPStatus

from flask import current_app, jsonify
from flask_login import current_user, login_user, logout_user
from sqlalchemy.exc import SQLAlchemyError

from bloodlagbe.forms import LoginForm, RegisterForm
from bloodlagbe.models import User, UserRole, db
from bloodlagbe.utils.permissions import login_required_json

from .responses import json_error


def register_auth_routes(app):
    """Register account routes"""

    @app.route("/api/register", methods=["POST"])
    def register():
        form = RegisterForm()
        if not form.validate():
            return json_error(form.error_message(), HTTPStatus.BAD_REQUEST)

        email = form.email.data.strip().lower()
        if User.find_by_email(email):
            return json_error("An account with this email already exists.", HTTPStatus.CONFLICT)

        try:
            user = User(name=form.name.data.strip(), email=email, role=UserRole.USER)
            user.set_password(form.password.data)
            db.session.add(user)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error registering user {email}: {str(e)}")
            return json_error("Could not create account.", HTTPStatus.INTERNAL_SERVER_ERROR)

        current_app.logger.info(f"Registered user {user.id} ({email})")
        return jsonify({"message": "Account created.", "user": user.to_dict()}), HTTPStatus.CREATED

    @app.route("/api/login", methods=["POST"])
    def login():
        form = LoginForm()
        if not form.validate():
            return json_error(form.error_message(), HTTPStatus.BAD_REQUEST)

        user = User.find_by_email(form.email.data)
        if user is None or not user.check_password(form.password.data):
            current_app.logger.warning(f"Failed login attempt for {form.email.data}")
            return json_error("Invalid email or password.", HTTPStatus.UNAUTHORIZED)
        if not user.is_active:
            return json_error("This account is disabled.", HTTPStatus.FORBIDDEN)

        login_user(user)
        current_app.logger.info(f"User {user.id} logged in")
        return jsonify({"message": "Logged in.", "user": user.to_dict()})

    @app.route("/api/logout", methods=["POST"])
    @login_required_json
    def logout():
        current_app.logger.info(f"User {current_user.id} logged out")
        logout_user()
        return jsonify({"message": "Logged out."})

    @app.route("/api/me", methods=["GET"])
    @login_required_json
    def me():
        return jsonify({"user": current_user.to_dict()})
