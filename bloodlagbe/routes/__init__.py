# bloodlagbe/routes/__init__.py
"""
Application routes package
"""

from .admin import admin_blueprint
from .api import register_api_routes
from .auth import register_auth_routes
from .profile import register_profile_routes
from .responses import register_error_handlers
from .submissions import submissions_blueprint


def init_routes(app):
    """Initialize all application routes"""
    register_error_handlers(app)
    register_auth_routes(app)
    register_api_routes(app)
    register_profile_routes(app)
    app.register_blueprint(submissions_blueprint)
    app.register_blueprint(admin_blueprint)
