HTTP_STATUS_CODES = {
    "OK": 200,
    "CREATED": 201,
    "NO_CONTENT": 204,
    "FOUND": 302,
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "VALIDATION_ERROR": 422,
    "INTERNAL_SERVER_ERROR": 500,
    "BAD_GATEWAY": 502,
    "SERVICE_UNAVAILABLE": 503,
}

ERROR_MESSAGES = {
    "VALIDATION_FAILED": "Validation failed. Please check your inputs.",
    "UNAUTHORIZED_ACCESS": "You are not authorized to access this resource.",
    "RESOURCE_NOT_FOUND": "The requested resource could not be found.",
    "SERVER_ERROR": "An unexpected error occurred. Please try again later.",
    "ACCOUNT_NOT_FOUND": "Account not found",
    "ACCOUNT_NOT_OWNED": "Unauthorized",
    "INVALID_STATE": "OAuth state expired or already used. Retry connect.",
}

AUTHENTICATION_MESSAGES = {
    "AUTHENTICATION_REQUIRED": "Authentication Required",
    "TOKEN_EXPIRED": "Token expired",
    "INVALID_TOKEN": "Invalid token",
}

# Counters a user may type in for providers whose APIs do not expose them
MANUAL_METRIC_FIELDS = ("connections", "posts", "pending_responses", "new_messages")

# Engagement score bands, highest first: (minimum score, label, colour)
SCORE_BANDS = (
    (80, "Crushing It", "green"),
    (60, "Doing Well", "blue"),
    (40, "Needs Attention", "yellow"),
    (0, "Falling Behind", "red"),
)

# Goals a user can pick per platform; they steer which metrics insights talk about
AVAILABLE_GOALS = ("growth", "engagement", "traffic", "response", "content", "comprehensive")
DEFAULT_GOALS = ("comprehensive",)

# Shown by GET /api/preferences/available-goals, in AVAILABLE_GOALS order
GOAL_OPTIONS = (
    {"id": "growth", "label": "Grow My Audience",
     "description": "Focus on increasing followers, reach, and impressions"},
    {"id": "engagement", "label": "Increase Engagement",
     "description": "Boost likes, comments, shares, and interaction rates"},
    {"id": "traffic", "label": "Drive Traffic",
     "description": "Maximize clicks, website visits, and conversions"},
    {"id": "response", "label": "Improve Response Time",
     "description": "Track and respond to messages and comments quickly"},
    {"id": "content", "label": "Track Content Performance",
     "description": "Analyze which posts perform best and when to post"},
    {"id": "comprehensive", "label": "All of the Above",
     "description": "Show me everything - comprehensive dashboard view"},
)
