# socialpulse/resources/social/social_account_resource.py

from flask.views import MethodView
from flask import current_app, g, request
from flask_smorest import Blueprint

from ...utils.logger import Log
from ...utils.helpers import make_log_tag
from ...utils.json_response import prepared_response
from ...security.auth import token_required
from ...schemas.social.social_schema import (
    InsightSchema, InsightsQuerySchema, ManualMetricsSchema, SocialAccountSchema,
)
from ...services.social.score_calculator import (
    calculate_engagement_score, calculate_overall_score, score_label, score_color,
)


blp_social_accounts = Blueprint(
    "social_accounts",
    __name__,
    url_prefix="/api/social-accounts",
    description="Linked social accounts, metrics and insights",
)

account_schema = SocialAccountSchema()
accounts_schema = SocialAccountSchema(many=True)
insight_schema = InsightSchema()


def _services():
    return current_app.extensions["socialpulse"]


@blp_social_accounts.route("")
class SocialAccountListResource(MethodView):

    @token_required
    def get(self):
        user_id = g.current_user_id
        accounts = _services().accounts.list_by_user(user_id)

        overall = calculate_overall_score(calculate_engagement_score(a.metrics) for a in accounts)
        return prepared_response(True, "OK", "Accounts retrieved", data={
            "accounts": accounts_schema.dump(accounts),
            "overall_score": overall,
            "overall_label": score_label(overall),
            "overall_color": score_color(overall),
        })


@blp_social_accounts.route("/<string:account_id>")
class SocialAccountResource(MethodView):

    @token_required
    def delete(self, account_id):
        user_id = g.current_user_id
        log_tag = make_log_tag("social_account_resource.py", "SocialAccountResource", "delete",
                               request.remote_addr, user_id, account_id)
        services = _services()

        services.accounts.disconnect(account_id, user_id)
        services.insights_cache.invalidate(user_id, account_id)

        Log.info(f"{log_tag} account disconnected")
        return prepared_response(True, "OK", "Account disconnected")


@blp_social_accounts.route("/<string:account_id>/sync")
class SocialAccountSyncResource(MethodView):

    @token_required
    def post(self, account_id):
        user_id = g.current_user_id
        services = _services()

        account = services.dispatcher.sync_one(account_id, user_id)
        # fresh numbers, stale advice
        services.insights_cache.invalidate(user_id, account_id)

        return prepared_response(True, "OK", "Account synced", data=account_schema.dump(account))


@blp_social_accounts.route("/<string:account_id>/manual-metrics")
class SocialAccountManualMetricsResource(MethodView):

    @token_required
    @blp_social_accounts.arguments(ManualMetricsSchema)
    def put(self, payload, account_id):
        user_id = g.current_user_id
        services = _services()

        account = services.dispatcher.update_manual_metrics(account_id, user_id, payload)
        services.insights_cache.invalidate(user_id, account_id)

        return prepared_response(True, "OK", "Manual metrics updated", data=account_schema.dump(account))


@blp_social_accounts.route("/<string:account_id>/insights")
class SocialAccountInsightsResource(MethodView):

    @token_required
    @blp_social_accounts.arguments(InsightsQuerySchema, location="query")
    def get(self, args, account_id):
        user_id = g.current_user_id
        services = _services()

        account = services.accounts.get_owned(account_id, user_id)
        result = services.insights.generate(user_id, account, refresh=args.get("refresh", False))

        return prepared_response(True, "OK", "Insight generated", data=insight_schema.dump({
            "account_id": account.id,
            "insight": result["insight"],
            "source": result["source"],
        }))
