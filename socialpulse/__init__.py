from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix
from marshmallow import ValidationError
from flask_smorest import Api

from .extensions import db, redis_connection, cors
from .config import load_config
from .models.social.social_account import SocialAccount
from .models.social.user_preferences import UserPreferences
from .services.social.errors import SocialAccountError
from .services.social.wiring import build_services
from .resources.social.oauth_resource import blp_social_oauth
from .resources.social.social_account_resource import blp_social_accounts
from .resources.social.preferences_resource import blp_preferences
from .utils.error_handlers import (
    handle_social_account_error, handle_validation_error, handle_unexpected_error,
)


def create_app(config_overrides=None, repository=None, preferences=None, verifier_store=None):
    """
    Build the API. Tests pass in-memory collaborators; production gets the
    Mongo-backed repository and the store selected by PKCE_STORE.
    """
    app = Flask(__name__)

    #get actual client IP
    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_for=1,      # Trust X-Forwarded-For
        x_proto=1,    # Trust X-Forwarded-Proto
        x_host=1,     # Trust X-Forwarded-Host
        x_port=1,     # Trust X-Forwarded-Port
        x_prefix=1    # Trust X-Forwarded-Prefix
    )

    # Load configuration (ensure it does NOT override Flask-Smorest keys)
    load_config(app, config_overrides)

    app.config["API_TITLE"] = "SocialPulse API"
    app.config["API_VERSION"] = "v1"
    app.config["OPENAPI_VERSION"] = "3.0.3"
    app.config["OPENAPI_URL_PREFIX"] = "/api"
    app.config["OPENAPI_JSON_PATH"] = "openapi.json"
    app.config["OPENAPI_SWAGGER_UI_PATH"] = "/docs"
    app.config["OPENAPI_SWAGGER_UI_URL"] = "https://cdn.jsdelivr.net/npm/swagger-ui-dist/"

    api = Api(app)

    # Initialize all extensions
    if repository is None or preferences is None:
        db.init_app(app)
    if (app.config.get("PKCE_STORE") or "memory").lower() == "redis" and verifier_store is None:
        redis_connection.init_app(app)
    cors.init_app(app, origins=app.config.get("CORS_ORIGINS") or "*")

    app.extensions["socialpulse"] = build_services(
        app.config,
        repository=repository or SocialAccount(),
        preferences=preferences or UserPreferences(),
        verifier_store=verifier_store,
        redis_client=redis_connection.connection,
    )

    # Register custom error handlers
    app.errorhandler(SocialAccountError)(handle_social_account_error)
    app.errorhandler(ValidationError)(handle_validation_error)
    app.errorhandler(Exception)(handle_unexpected_error)

    api.register_blueprint(blp_social_oauth)
    api.register_blueprint(blp_social_accounts)
    api.register_blueprint(blp_preferences)

    return app
