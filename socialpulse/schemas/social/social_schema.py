# socialpulse/schemas/social/social_schema.py
from marshmallow import Schema, fields, validate, ValidationError, validates_schema, EXCLUDE

from ...constants.service_code import MANUAL_METRIC_FIELDS
from ...services.social.score_calculator import (
    calculate_engagement_score, score_label, score_color,
)


class ConnectQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    token = fields.Str(
        required=True,
        error_messages={"required": "Session token is required"},
    )


class OAuthCallbackQuerySchema(Schema):
    """Providers send either code+state or error(+error_description)."""
    class Meta:
        unknown = EXCLUDE

    code = fields.Str(required=False, allow_none=True)
    state = fields.Str(required=False, allow_none=True)
    error = fields.Str(required=False, allow_none=True)
    error_description = fields.Str(required=False, allow_none=True)


class ManualMetricsSchema(Schema):
    connections = fields.Int(required=False, validate=validate.Range(min=0))
    posts = fields.Int(required=False, validate=validate.Range(min=0))
    pending_responses = fields.Int(required=False, validate=validate.Range(min=0))
    new_messages = fields.Int(required=False, validate=validate.Range(min=0))

    @validates_schema
    def validate_not_empty(self, data, **kwargs):
        if not any(name in data for name in MANUAL_METRIC_FIELDS):
            raise ValidationError({"_schema": [f"Provide at least one of: {', '.join(MANUAL_METRIC_FIELDS)}"]})


class InsightsQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh = fields.Bool(required=False, load_default=False)


class AccountMetricsSchema(Schema):
    engagement_score = fields.Int()
    connections = fields.Int()
    posts = fields.Int()
    pending_responses = fields.Int()
    new_messages = fields.Int()
    likes = fields.Int(allow_none=True)
    comments = fields.Int(allow_none=True)
    shares = fields.Int(allow_none=True)
    views = fields.Int(allow_none=True)
    engagement_rate = fields.Float(allow_none=True)
    source = fields.Str()


class SocialAccountSchema(Schema):
    """Outbound view of a linked account. Tokens never leave the service."""

    id = fields.Str(dump_only=True)
    user_id = fields.Str(dump_only=True)
    platform = fields.Str(dump_only=True)
    platform_user_id = fields.Str(dump_only=True, allow_none=True)
    username = fields.Str(dump_only=True, allow_none=True)
    account_name = fields.Str(dump_only=True, allow_none=True)
    account_type = fields.Str(dump_only=True, allow_none=True)
    manual_metrics = fields.Dict(keys=fields.Str(), values=fields.Int(), dump_only=True)
    metrics = fields.Nested(AccountMetricsSchema, dump_only=True)
    connected_at = fields.DateTime(dump_only=True, allow_none=True)
    last_synced = fields.DateTime(dump_only=True, allow_none=True)
    token_expires_at = fields.DateTime(dump_only=True, allow_none=True)

    engagement_score = fields.Method("get_engagement_score", dump_only=True)
    score_label = fields.Method("get_score_label", dump_only=True)
    score_color = fields.Method("get_score_color", dump_only=True)
    needs_reconnection = fields.Bool(dump_only=True)
    is_active = fields.Constant(True, dump_only=True)

    def get_engagement_score(self, account):
        return calculate_engagement_score(account.metrics)

    def get_score_label(self, account):
        return score_label(calculate_engagement_score(account.metrics))

    def get_score_color(self, account):
        return score_color(calculate_engagement_score(account.metrics))


class InsightSchema(Schema):
    account_id = fields.Str(dump_only=True)
    insight = fields.Str(dump_only=True)
    source = fields.Str(dump_only=True)
