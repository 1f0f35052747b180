"""
Factory Boy Factories for EstateHub Models

Import all factories here for easy access in tests.
"""
from tests.factories.core import (
    CommissionSettingFactory,
    LeadStatusFactory,
    PropertyStatusFactory,
    TeamMembershipFactory,
    UserFactory,
)
from tests.factories.crm import (
    AgentReportFactory,
    CalendarEventFactory,
    EventAttendeeFactory,
    LeadFactory,
    LeadReferralFactory,
    PropertyFactory,
    ReferralFactory,
    ViewingFactory,
)

__all__ = [
    # Core
    'UserFactory',
    'TeamMembershipFactory',
    'PropertyStatusFactory',
    'LeadStatusFactory',
    'CommissionSettingFactory',
    # CRM
    'LeadFactory',
    'LeadReferralFactory',
    'PropertyFactory',
    'ReferralFactory',
    'CalendarEventFactory',
    'EventAttendeeFactory',
    'ViewingFactory',
    'AgentReportFactory',
]
