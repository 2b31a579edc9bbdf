# socialpulse/resources/social/oauth_resource.py

from flask.views import MethodView
from flask import current_app, redirect, request
from flask_smorest import Blueprint

from ...utils.logger import Log
from ...utils.helpers import make_log_tag
from ...constants.service_code import HTTP_STATUS_CODES
from ...security.auth import InvalidSessionToken, validate_token
from ...schemas.social.social_schema import ConnectQuerySchema, OAuthCallbackQuerySchema
from ...services.social.errors import SocialAccountError
from ...models.social.platform import Platform


blp_social_oauth = Blueprint(
    "social_oauth",
    __name__,
    url_prefix="/api/social-accounts",
    description="Connect third-party social accounts via OAuth",
)


def _services():
    return current_app.extensions["socialpulse"]


# -------------------------------------------------------------------
# CONNECT: redirect the browser to the provider
# -------------------------------------------------------------------
@blp_social_oauth.route("/<string:platform>/connect")
class SocialConnectResource(MethodView):

    @blp_social_oauth.arguments(ConnectQuerySchema, location="query")
    def get(self, args, platform):
        """
        Start the OAuth flow. The session token rides along as `state` so the
        callback can tell whose account this is without a cookie.
        """
        client_ip = request.remote_addr
        log_tag = make_log_tag("oauth_resource.py", "SocialConnectResource", "get", client_ip, platform)
        services = _services()

        try:
            platform = Platform.parse(platform).value
        except SocialAccountError as e:
            return {"success": False, "error": e.code, "message": e.message}, e.status_code

        state = args["token"]
        try:
            validate_token(state)
        except InvalidSessionToken as e:
            Log.info(f"{log_tag} rejected connect: {e}")
            return redirect(services.connection.error_redirect(platform, str(e)), code=HTTP_STATUS_CODES["FOUND"])

        url = services.connection.start(platform, state)
        return redirect(url, code=HTTP_STATUS_CODES["FOUND"])


# -------------------------------------------------------------------
# CALLBACK: provider redirects back with code + state
# -------------------------------------------------------------------
@blp_social_oauth.route("/<string:platform>/callback")
class SocialCallbackResource(MethodView):

    @blp_social_oauth.arguments(OAuthCallbackQuerySchema, location="query")
    def get(self, args, platform):
        client_ip = request.remote_addr
        log_tag = make_log_tag("oauth_resource.py", "SocialCallbackResource", "get", client_ip, platform)
        services = _services()
        connection = services.connection

        def _fail(message):
            return redirect(connection.error_redirect(platform, message), code=HTTP_STATUS_CODES["FOUND"])

        try:
            platform = Platform.parse(platform).value
        except SocialAccountError as e:
            return _fail(e.message)

        if args.get("error"):
            Log.info(f"{log_tag} provider returned error={args.get('error')}")
            return _fail(args.get("error_description") or args.get("error"))

        code = args.get("code")
        state = args.get("state")
        if not code or not state:
            return _fail("Missing code or state")

        try:
            user_id = validate_token(state)
        except InvalidSessionToken as e:
            Log.info(f"{log_tag} session token in state rejected: {e}")
            return _fail(str(e))

        try:
            account = connection.complete(platform, code, state, user_id)
        except SocialAccountError as e:
            Log.error(f"{log_tag} connect failed code={e.code}: {e.message}")
            return _fail(e.message)

        services.insights_cache.invalidate(user_id, account.id)
        Log.info(f"{log_tag} connected account {account.id} for user {user_id}")
        return redirect(connection.success_redirect(platform), code=HTTP_STATUS_CODES["FOUND"])
