from decimal import Decimal

from django.test import SimpleTestCase

from imistore.exceptions import ValidationError
from payments.amounts import split_amount
from payments.models import PaymentMethod


class SplitAmountTests(SimpleTestCase):
    def test_online_charges_everything(self):
        split = split_amount(Decimal("999.00"), PaymentMethod.ONLINE)
        self.assertEqual(split.charge_amount, Decimal("999.00"))
        self.assertEqual(split.advance_amount, Decimal("999.00"))
        self.assertEqual(split.remaining_amount, Decimal("0.00"))
        self.assertFalse(split.delivery_payment_pending)

    def test_cod_charges_nothing(self):
        split = split_amount(Decimal("999.00"), "COD")
        self.assertEqual(split.charge_amount, Decimal("0.00"))
        self.assertEqual(split.advance_amount, Decimal("0.00"))
        self.assertEqual(split.remaining_amount, Decimal("999.00"))
        self.assertTrue(split.delivery_payment_pending)

    def test_partial_rounds_half_up_and_reconciles(self):
        split = split_amount(Decimal("199.99"), PaymentMethod.PARTIAL)
        self.assertEqual(split.charge_amount, Decimal("100.00"))
        self.assertEqual(split.advance_amount, Decimal("100.00"))
        self.assertEqual(split.remaining_amount, Decimal("99.99"))
        self.assertTrue(split.delivery_payment_pending)

    def test_advance_plus_remaining_equals_total(self):
        totals = ["0.01", "0.03", "1.00", "10.05", "199.99", "333.33", "1234.57", "99999.99"]
        for total in totals:
            for method in PaymentMethod:
                with self.subTest(total=total, method=method):
                    split = split_amount(total, method)
                    self.assertEqual(split.advance_amount + split.remaining_amount, Decimal(total))

    def test_unknown_method_rejected(self):
        with self.assertRaises(ValidationError):
            split_amount(Decimal("10.00"), "CRYPTO")

    def test_negative_total_rejected(self):
        with self.assertRaises(ValidationError):
            split_amount(Decimal("-1.00"), PaymentMethod.ONLINE)
