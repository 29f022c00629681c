import os
import sys
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db.models import ApiCart, CartItem, Category, ProductPage, User  # noqa: E402
from utils.pure import (  # noqa: E402
    format_price,
    generate_markdown_table,
    page_window,
    summarize_cart,
    total_pages,
)


class PaginationTestCase(unittest.TestCase):
    def test_total_pages(self):
        self.assertEqual(total_pages(45, 20), 3)
        self.assertEqual(total_pages(40, 20), 2)
        self.assertEqual(total_pages(0, 20), 1)
        self.assertEqual(total_pages(10, 0), 1)

    def test_page_window(self):
        self.assertEqual(page_window(1, 3), [1, 2, 3])
        self.assertEqual(page_window(1, 10), [1, 2, 3, 4, 5])
        self.assertEqual(page_window(6, 10), [4, 5, 6, 7, 8])
        self.assertEqual(page_window(10, 10), [6, 7, 8, 9, 10])
        self.assertEqual(page_window(1, 1), [1])


class CartSummaryTestCase(unittest.TestCase):
    def test_shipping_charged_at_or_below_threshold(self):
        summary = summarize_cart(50.0)
        self.assertEqual(summary.shipping, 9.99)
        self.assertAlmostEqual(summary.tax, 4.0)
        self.assertAlmostEqual(summary.total, 63.99)
        self.assertEqual(summary.free_shipping_remaining, 0.0)

    def test_free_shipping_above_threshold(self):
        summary = summarize_cart(80.0)
        self.assertEqual(summary.shipping, 0.0)
        self.assertAlmostEqual(summary.total, 86.4)

    def test_remaining_for_free_shipping(self):
        self.assertAlmostEqual(summarize_cart(20.0).free_shipping_remaining, 30.0)


class MarkdownTableTestCase(unittest.TestCase):
    def test_first_row_as_header(self):
        table = generate_markdown_table(None, [["User", "emilys"], ["Items", 3]], ["l", "r"])
        self.assertEqual(
            table.splitlines(), ["| User | emilys |", "| :--- | ---: |", "| Items | 3 |"]
        )

    def test_mismatched_aligns(self):
        with self.assertRaises(ValueError):
            generate_markdown_table(["a", "b"], [["1", "2"]], ["l"])

    def test_empty_rows(self):
        self.assertEqual(generate_markdown_table(["a"], []), "")

    def test_format_price(self):
        self.assertEqual(format_price(1234.5), "$1,234.50")


class ModelParsingTestCase(unittest.TestCase):
    def test_category_accepts_bare_slug(self):
        self.assertEqual(Category.from_api("home-decoration").name, "Home Decoration")

    def test_product_page_defaults(self):
        page = ProductPage.from_api({"products": [{"id": 1, "title": "A", "price": "3"}]})
        self.assertEqual(page.total, 1)
        self.assertEqual(page.products[0].price, 3.0)

    def test_cart_item_derives_totals(self):
        item = CartItem(id=1, title="A", price=20.0, quantity=3, discount_percentage=25)
        self.assertAlmostEqual(item.discounted_price, 15.0)
        self.assertAlmostEqual(item.total, 45.0)
        item.quantity = 1
        self.assertAlmostEqual(item.total, 15.0)
        self.assertEqual(CartItem.from_api(item.to_api()), item)

    def test_api_cart_and_user(self):
        cart = ApiCart.from_api({"id": 3, "userId": 9, "products": [{"id": 2, "quantity": 0}]})
        self.assertEqual(cart.products[0].quantity, 1)
        user = User.from_api({"id": 5, "username": "u", "token": "t"})
        self.assertEqual(User.from_api(user.to_api()), user)


if __name__ == "__main__":
    unittest.main()
