"""
Django Service Layer

Business logic shared across apps:

- HierarchyService: team leader / agent relationships
- referral_classifier: internal vs external referral rules
- CommissionService: per-agent commission aggregation
- notification_service: fire-and-forget notifications and reminders
"""

from .commission_service import CommissionService
from .hierarchy_service import HierarchyService

__all__ = [
    'CommissionService',
    'HierarchyService',
]
