from decimal import Decimal

from django.test import TestCase

from imistore.exceptions import InsufficientStockError, NotFoundError
from .models import Product
from .services import find_product, release_stock, take_stock


class StockTests(TestCase):
    def setUp(self):
        self.product = Product.objects.create(name="Smart Band", price=Decimal("1499.00"), stock=3)

    def test_take_stock_decrements(self):
        take_stock(self.product.pk, 2)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 1)

    def test_take_stock_never_goes_negative(self):
        with self.assertRaises(InsufficientStockError) as cm:
            take_stock(self.product.pk, 4)
        self.assertIn("Available: 3", cm.exception.message)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)

    def test_release_stock_increments(self):
        release_stock(self.product.pk, 5)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 8)


class FindProductTests(TestCase):
    def test_malformed_ref_is_not_found(self):
        with self.assertRaises(NotFoundError):
            find_product("64f1c0ffee")

    def test_unknown_ref_is_not_found(self):
        with self.assertRaises(NotFoundError):
            find_product(999)

    def test_finds_by_string_pk(self):
        product = Product.objects.create(name="Ring", price=Decimal("10.00"), stock=1)
        self.assertEqual(find_product(str(product.pk)), product)
