"""
Core QuerySet mixins for visibility filtering.
"""
from .visibility import VisibilityQuerySetMixin

__all__ = ['VisibilityQuerySetMixin']
