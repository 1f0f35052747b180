"""
Core Constants

Centralized configuration values for the application.
"""

# Pagination defaults
PAGINATION = {
    "default_limit": 50,
    "max_limit": 200,
}

# Property statuses that mandate a closed_date
CLOSED_STATUS_CODES = ("sold", "rented", "closed")

PROPERTY_TYPES = ("sale", "rent")

# Referral types
REFERRAL_TYPE_EMPLOYEE = "employee"
REFERRAL_TYPE_CUSTOM = "custom"
REFERRAL_TYPES = (REFERRAL_TYPE_EMPLOYEE, REFERRAL_TYPE_CUSTOM)

# Placeholder for owner details the viewer may not see
REDACTED_VALUE = "Hidden"

# Calendar event defaults
EVENT_DEFAULTS = {
    "color": "blue",
    "type": "other",
    "all_day": False,
}

EVENT_TYPES = [
    {"value": "meeting", "label": "Meeting"},
    {"value": "showing", "label": "Showing"},
    {"value": "inspection", "label": "Inspection"},
    {"value": "closing", "label": "Closing"},
    {"value": "appointment", "label": "Appointment"},
    {"value": "property_assignment", "label": "Property Assignment"},
    {"value": "other", "label": "Other"},
]

# Reminder kinds, in send order
REMINDER_ONE_DAY = "1_day"
REMINDER_SAME_DAY = "same_day"
REMINDER_ONE_HOUR = "1_hour"

# Notification kinds emitted after successful mutations
NOTIFICATION_KINDS = {
    "event_created": "Event Created",
    "event_updated": "Event Updated",
    "event_deleted": "Event Cancelled",
    "property_created": "Property Created",
    "property_updated": "Property Updated",
    "property_deleted": "Property Deleted",
    "property_assigned": "Property Assigned",
    "property_referral": "Property Referral",
    "lead_assigned": "Lead Assigned",
    "lead_deleted": "Lead Deleted",
    "lead_referral": "Lead Referral",
    "viewing_created": "New Viewing Scheduled",
    "viewing_assigned": "Viewing Assigned",
}

# Commission settings keys and default percentages
COMMISSION_SETTING_KEYS = {
    "agent": "commission_agent_percentage",
    "finders": "commission_finders_percentage",
    "referral": "commission_referral_percentage",
    "team_leader": "commission_team_leader_percentage",
    "administration": "commission_administration_percentage",
}

# Viewing statuses and the calendar colour each one maps to
VIEWING_STATUS_SCHEDULED = "scheduled"
VIEWING_STATUS_COMPLETED = "completed"
VIEWING_STATUS_CANCELLED = "cancelled"
VIEWING_STATUS_NO_SHOW = "no_show"
VIEWING_STATUS_RESCHEDULED = "rescheduled"
VIEWING_STATUSES = (
    VIEWING_STATUS_SCHEDULED,
    VIEWING_STATUS_COMPLETED,
    VIEWING_STATUS_CANCELLED,
    VIEWING_STATUS_NO_SHOW,
    VIEWING_STATUS_RESCHEDULED,
)
VIEWING_STATUS_COLORS = {
    VIEWING_STATUS_SCHEDULED: "blue",
    VIEWING_STATUS_COMPLETED: "green",
    VIEWING_STATUS_CANCELLED: "red",
    VIEWING_STATUS_NO_SHOW: "red",
    VIEWING_STATUS_RESCHEDULED: "yellow",
}
