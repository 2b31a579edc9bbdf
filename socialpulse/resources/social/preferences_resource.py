# socialpulse/resources/social/preferences_resource.py

from flask.views import MethodView
from flask import current_app, g, request
from flask_smorest import Blueprint

from ...utils.logger import Log
from ...utils.helpers import make_log_tag
from ...utils.json_response import prepared_response
from ...security.auth import token_required
from ...constants.service_code import GOAL_OPTIONS
from ...models.social.platform import Platform
from ...schemas.social.preferences_schema import (
    AllPlatformGoalsSchema, GoalOptionSchema, PlatformGoalsSchema,
)


blp_preferences = Blueprint(
    "preferences",
    __name__,
    url_prefix="/api/preferences",
    description="Per-platform goals that steer insights",
)

goal_options_schema = GoalOptionSchema(many=True)


def _services():
    return current_app.extensions["socialpulse"]


@blp_preferences.route("/available-goals")
class AvailableGoalsResource(MethodView):

    def get(self):
        return prepared_response(True, "OK", "Available goals", data={
            "goals": goal_options_schema.dump(GOAL_OPTIONS),
        })


@blp_preferences.route("")
class PreferencesResource(MethodView):

    @token_required
    def get(self):
        user_id = g.current_user_id
        goals = _services().preferences.get_all_platform_goals(user_id)
        return prepared_response(True, "OK", "Preferences retrieved", data={"platform_goals": goals})

    @token_required
    @blp_preferences.arguments(AllPlatformGoalsSchema)
    def put(self, payload):
        user_id = g.current_user_id
        log_tag = make_log_tag("preferences_resource.py", "PreferencesResource", "put", request.remote_addr, user_id)
        services = _services()

        # unknown platform names are a 400 before anything is written
        platform_goals = {
            Platform.parse(platform).value: goals
            for platform, goals in payload["platform_goals"].items()
        }
        saved = services.preferences.set_all_platform_goals(user_id, platform_goals)
        # insights were written for the old goals
        services.insights_cache.invalidate_all(user_id)

        Log.info(f"{log_tag} goals updated for {sorted(saved.keys())}")
        return prepared_response(True, "OK", "Preferences updated successfully", data={"platform_goals": saved})


@blp_preferences.route("/<string:platform>")
class PlatformPreferencesResource(MethodView):

    @token_required
    def get(self, platform):
        user_id = g.current_user_id
        platform = Platform.parse(platform).value
        goals = _services().preferences.get_platform_goals(user_id, platform)
        return prepared_response(True, "OK", "Preferences retrieved", data={"platform": platform, "goals": goals})

    @token_required
    @blp_preferences.arguments(PlatformGoalsSchema)
    def put(self, payload, platform):
        user_id = g.current_user_id
        log_tag = make_log_tag("preferences_resource.py", "PlatformPreferencesResource", "put",
                               request.remote_addr, user_id, platform)
        services = _services()

        platform = Platform.parse(platform).value
        goals = services.preferences.set_platform_goals(user_id, platform, payload["goals"])
        services.insights_cache.invalidate_all(user_id)

        Log.info(f"{log_tag} goals={goals}")
        return prepared_response(True, "OK", f"Goals updated for {platform}", data={"platform": platform, "goals": goals})
