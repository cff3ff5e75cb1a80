from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from quotes.models import Quote, QuoteActivity


@override_settings(QUOTE_BASE_CURRENCY="MAD", QUOTE_DEFAULT_TARGET_CURRENCY="MAD",
                   QUOTE_DEFAULT_RATES={"MAD": 1, "USD": "10", "EUR": "10.75"})
class QuoteApiTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.sales = User.objects.create_user(username="sara", password="x", role="sales")
        self.manager = User.objects.create_user(username="omar", password="x", role="manager")
        self.client = APIClient()
        self.client.force_authenticate(user=self.sales)

    def _create(self, reference="Q-900", **extra):
        resp = self.client.post("/api/quotes", {"reference": reference, "client_name": "Atlas Textiles", **extra},
                                format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        return resp.data

    def _add_freight(self, quote_id, markup="20"):
        resp = self.client.post(
            f"/api/quotes/{quote_id}/lines",
            {"section": "FREIGHT", "buy_price": "100", "buy_currency": "USD",
             "markup": {"kind": "PERCENT", "value": markup}},
            format="json",
        )
        self.assertEqual(resp.status_code, 201, resp.data)
        return resp.data

    def test_requires_authentication(self):
        resp = APIClient().get("/api/quotes")
        self.assertIn(resp.status_code, (401, 403))

    def test_create_and_price(self):
        quote = self._create()
        self.assertEqual(quote["status"], "DRAFT")
        self.assertTrue(quote["is_editable"])

        data = self._add_freight(quote["id"])
        self.assertEqual(data["totals"]["total_cost_base"], "1000.00")
        self.assertEqual(data["totals"]["total_sell_base"], "1200.00")
        self.assertEqual(data["totals"]["total_tax_base"], "240.00")
        self.assertEqual(data["totals"]["margin_percent"], "16.67")
        self.assertFalse(data["approval"]["requires_approval"])

        detail = self.client.get(f"/api/quotes/{quote['id']}")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(detail.data["totals"], data["totals"])

    def test_create_with_template_and_list(self):
        self._create(template="IMPORT_STD")
        listing = self.client.get("/api/quotes", {"status": "draft"})
        self.assertEqual(listing.status_code, 200)
        self.assertEqual([q["reference"] for q in listing.data], ["Q-900"])

    def test_duplicate_reference(self):
        self._create()
        resp = self.client.post("/api/quotes", {"reference": "Q-900", "client_name": "Other"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "invalid_quote")

    def test_edit_and_remove_line(self):
        quote = self._create()
        line_id = self._add_freight(quote["id"])["lines"][0]["id"]

        resp = self.client.patch(f"/api/quotes/{quote['id']}/lines/{line_id}",
                                 {"markup_value": "10"}, format="json")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertTrue(resp.data["approval"]["requires_approval"])
        self.assertIn("9.1%", resp.data["approval"]["reason"])

        resp = self.client.delete(f"/api/quotes/{quote['id']}/lines/{line_id}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["lines"], [])

        resp = self.client.delete(f"/api/quotes/{quote['id']}/lines/{line_id}")
        self.assertEqual(resp.status_code, 400)

    def test_rates_and_currency(self):
        quote = self._create()
        self._add_freight(quote["id"])

        resp = self.client.put(f"/api/quotes/{quote['id']}/rates/USD", {"rate": "11"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["totals"]["total_cost_base"], "1100.00")

        resp = self.client.put(f"/api/quotes/{quote['id']}/rates/USD", {"rate": "-1"}, format="json")
        self.assertEqual(resp.status_code, 400)

        resp = self.client.put(f"/api/quotes/{quote['id']}/currency", {"currency": "USD"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["totals"]["total_sell_target"], "120.00")

    def test_send_then_locked(self):
        quote = self._create()
        self._add_freight(quote["id"])

        resp = self.client.post(f"/api/quotes/{quote['id']}/transitions/submit", {}, format="json")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data["status"], "SENT")
        self.assertFalse(resp.data["is_editable"])

        resp = self.client.post(f"/api/quotes/{quote['id']}/lines", {"section": "ORIGIN"}, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "quote_locked")

    def test_low_margin_approval_flow(self):
        quote = self._create()
        self._add_freight(quote["id"], markup="10")
        base = f"/api/quotes/{quote['id']}/transitions"

        resp = self.client.post(f"{base}/submit", {}, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "approval_required")

        resp = self.client.post(f"{base}/submit-for-approval", {}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], "VALIDATION")
        self.assertEqual(resp.data["approval"]["requested_by"], "sara (Sales)")

        resp = self.client.post(f"{base}/approve", {}, format="json")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(Quote.objects.get(pk=quote["id"]).status, "VALIDATION")

        self.client.force_authenticate(user=self.manager)
        resp = self.client.post(f"{base}/approve", {"comment": "key account"}, format="json")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data["status"], "SENT")
        self.assertEqual(resp.data["approval"]["approved_by"], "omar (Manager)")

        activity = self.client.get(f"/api/quotes/{quote['id']}/activity")
        texts = [a["text"] for a in activity.data]
        self.assertEqual(texts[0], "Manager approved quote. Note: key account")
        self.assertIn("Requested approval: Margin 9.1% is below 15% threshold", texts)

    def test_reject_needs_reason(self):
        quote = self._create()
        self._add_freight(quote["id"], markup="10")
        base = f"/api/quotes/{quote['id']}/transitions"
        self.client.post(f"{base}/submit-for-approval", {}, format="json")

        self.client.force_authenticate(user=self.manager)
        resp = self.client.post(f"{base}/reject", {}, format="json")
        self.assertEqual(resp.status_code, 409)

        resp = self.client.post(f"{base}/reject", {"reason": "margin too thin"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], "DRAFT")
        self.assertEqual(resp.data["approval"]["rejection_reason"], "margin too thin")
        self.assertTrue(
            QuoteActivity.objects.filter(quote_id=quote["id"], text="Approval rejected: margin too thin").exists()
        )

    def test_accept_lost_and_override(self):
        quote = self._create()
        self._add_freight(quote["id"])
        base = f"/api/quotes/{quote['id']}/transitions"
        self.client.post(f"{base}/submit", {}, format="json")

        resp = self.client.post(f"{base}/accept", {}, format="json")
        self.assertEqual(resp.data["status"], "ACCEPTED")

        resp = self.client.post(f"{base}/lost", {"reason": "late"}, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "illegal_transition")

        resp = self.client.post(f"{base}/override", {"status": "DRAFT"}, format="json")
        self.assertEqual(resp.data["status"], "DRAFT")
        self.assertTrue(resp.data["is_editable"])

    def test_unknown_event_and_quote(self):
        quote = self._create()
        resp = self.client.post(f"/api/quotes/{quote['id']}/transitions/archive", {}, format="json")
        self.assertEqual(resp.status_code, 404)

        resp = self.client.get("/api/quotes/424242")
        self.assertEqual(resp.status_code, 404)
        resp = self.client.post("/api/quotes/424242/transitions/submit", {}, format="json")
        self.assertEqual(resp.status_code, 404)

    def test_price_above_maximum_is_rejected(self):
        quote = self._create()
        self._add_freight(quote["id"])

        resp = self.client.post(f"/api/quotes/{quote['id']}/lines",
                                {"section": "ORIGIN", "buy_price": "1e30"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "invalid_line_item")

        detail = self.client.get(f"/api/quotes/{quote['id']}")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(len(detail.data["lines"]), 1)

    def test_unstorable_total_is_rejected_and_quote_stays_readable(self):
        quote = self._create()
        self._add_freight(quote["id"])
        self.client.put(f"/api/quotes/{quote['id']}/rates/USD", {"rate": "1000000"}, format="json")

        resp = self.client.post(f"/api/quotes/{quote['id']}/lines",
                                {"section": "ORIGIN", "buy_price": "100000000000", "buy_currency": "USD"},
                                format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "invalid_quote")

        detail = self.client.get(f"/api/quotes/{quote['id']}")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(len(detail.data["lines"]), 1)
        self.assertEqual(detail.data["totals"]["total_sell_base"], "120000000.00")

    def test_non_numeric_price_is_flagged(self):
        quote = self._create()
        resp = self.client.post(f"/api/quotes/{quote['id']}/lines",
                                {"section": "ORIGIN", "buy_price": "call supplier"}, format="json")
        self.assertEqual(resp.status_code, 201)
        line = resp.data["lines"][0]
        self.assertTrue(line["price_coerced"])
        self.assertEqual(resp.data["totals"]["warnings"],
                         [f"Line {line['id']}: buy price is not a number; treated as 0"])
