# socialpulse/schemas/social/preferences_schema.py
from marshmallow import Schema, fields, validate, pre_load

from ...constants.service_code import AVAILABLE_GOALS


def _lowercase_goals(goals):
    if isinstance(goals, list):
        return [g.strip().lower() if isinstance(g, str) else g for g in goals]
    return goals


def _goal_field():
    return fields.Str(validate=validate.OneOf(AVAILABLE_GOALS, error="Invalid goal: {input}"))


class PlatformGoalsSchema(Schema):
    """Body of PUT /api/preferences/<platform>."""

    goals = fields.List(
        _goal_field(),
        required=True,
        validate=validate.Length(min=1, error="Goals list cannot be empty"),
        error_messages={"required": "Goals are required"},
    )

    @pre_load
    def lowercase(self, data, **kwargs):
        if isinstance(data, dict) and "goals" in data:
            data = dict(data, goals=_lowercase_goals(data["goals"]))
        return data


class AllPlatformGoalsSchema(Schema):
    """Body of PUT /api/preferences: {"platform_goals": {"facebook": ["growth"], ...}}."""

    platform_goals = fields.Dict(
        keys=fields.Str(),
        values=fields.List(_goal_field()),
        required=True,
        error_messages={"required": "platform_goals is required"},
    )

    @pre_load
    def lowercase(self, data, **kwargs):
        goals = data.get("platform_goals") if isinstance(data, dict) else None
        if isinstance(goals, dict):
            data = dict(data, platform_goals={k: _lowercase_goals(v) for k, v in goals.items()})
        return data


class GoalOptionSchema(Schema):
    id = fields.Str(dump_only=True)
    label = fields.Str(dump_only=True)
    description = fields.Str(dump_only=True)
