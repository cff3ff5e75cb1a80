from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase

from accounts.permissions import IsQuoteApprover


class RoleTests(TestCase):
    def setUp(self):
        self.User = get_user_model()

    def _allowed(self, user):
        request = RequestFactory().post("/")
        request.user = user
        return IsQuoteApprover().has_permission(request, None)

    def test_only_managers_approve(self):
        sales = self.User.objects.create_user(username="sara", password="x", role="sales")
        finance = self.User.objects.create_user(username="nadia", password="x", role="finance")
        manager = self.User.objects.create_user(username="omar", password="x", role="manager")
        self.assertFalse(self._allowed(sales))
        self.assertFalse(self._allowed(finance))
        self.assertTrue(self._allowed(manager))

    def test_superuser_can_approve(self):
        admin = self.User.objects.create_superuser(username="root", password="x", email="r@example.com")
        self.assertTrue(admin.can_approve_quotes)

    def test_audit_name(self):
        user = self.User.objects.create_user(username="omar", password="x", role="manager",
                                             first_name="Omar", last_name="Idrissi")
        self.assertEqual(user.audit_name, "Omar Idrissi (Manager)")
