"""
Model Unit Tests

Tests for model helpers that do not need the database.
"""
import uuid
from datetime import date

from django.test import TestCase

from apps.core.models import CommissionSetting, Property, PropertyStatus, Referral, User


class UserModelTests(TestCase):
    """Tests for the User model."""

    def test_user_str_is_name(self):
        user = User(id=uuid.uuid4(), name='Jane Doe', email='jane@example.com')
        self.assertEqual(str(user), 'Jane Doe')


class PropertyStatusModelTests(TestCase):
    """Tests for PropertyStatus.is_closed."""

    def test_sold_rented_closed_codes_are_closed(self):
        for code in ('sold', 'rented', 'closed'):
            with self.subTest(code=code):
                self.assertTrue(PropertyStatus(code=code, name=code.title()).is_closed)

    def test_closed_kind_matched_by_name_case_insensitively(self):
        status = PropertyStatus(code='st-9', name='SOLD')
        self.assertTrue(status.is_closed)

    def test_active_status_is_not_closed(self):
        self.assertFalse(PropertyStatus(code='active', name='Active').is_closed)


class StrRepresentationTests(TestCase):
    """String representations used in the admin."""

    def test_property_str_is_reference_number(self):
        self.assertEqual(str(Property(reference_number='PR-2025-ABC123')), 'PR-2025-ABC123')

    def test_referral_str_includes_date(self):
        referral = Referral(name='Sam', date=date(2025, 3, 1))
        self.assertEqual(str(referral), 'Sam (2025-03-01)')

    def test_commission_setting_str(self):
        setting = CommissionSetting(setting_key='commission_agent_percentage', setting_value='2')
        self.assertEqual(str(setting), 'commission_agent_percentage=2')
