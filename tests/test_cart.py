import os
import tempfile
import unittest
from unittest import mock

from db import database
from db.cart import CheckoutError
from db.database import CART, ORDERS
from db.models import CardPayment, TransferPayment
from utils.state import GlobalState


class CartTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self.state = GlobalState.create(self.db_path, checkout_delay=0)
        self.cart = self.state.cart

    def tearDown(self):
        self.temp_dir.cleanup()

    async def asyncSetUp(self):
        await self.state.identity.register("admin@example.com", "pw", "Admin", "admin")
        self.widget = await self.state.catalog.add_product(
            "Widget", "A widget", 9.99, "Gadgets", 3, "", self.state.user.id
        )
        self.gizmo = await self.state.catalog.add_product(
            "Gizmo", "A gizmo", 2.5, "Gadgets", 10, "", self.state.user.id
        )
        await self.state.identity.logout()

    # ---------- Cart management ----------

    async def test_adding_same_product_twice_gives_one_line(self):
        await self.cart.add_to_cart(self.widget)
        line = await self.cart.add_to_cart(self.widget)
        self.assertEqual(line.quantity, 2)

        lines = await self.cart.list_lines()
        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0].product_id, self.widget.id)
        self.assertEqual(lines[0].quantity, 2)

    async def test_add_keeps_insertion_order(self):
        await self.cart.add_to_cart(self.gizmo)
        await self.cart.add_to_cart(self.widget)
        await self.cart.add_to_cart(self.gizmo)
        self.assertEqual(
            [(l.product.name, l.quantity) for l in await self.cart.list_lines()],
            [("Gizmo", 2), ("Widget", 1)],
        )

    async def test_update_quantity_sets_exact_value(self):
        await self.cart.add_to_cart(self.widget)
        await self.cart.update_quantity(self.widget.id, 5)
        self.assertEqual((await self.cart.list_lines())[0].quantity, 5)

    async def test_non_positive_quantity_removes_line(self):
        for qty in (0, -5):
            await self.cart.add_to_cart(self.widget)
            await self.cart.add_to_cart(self.gizmo)
            await self.cart.update_quantity(self.widget.id, qty)
            lines = await self.cart.list_lines()
            self.assertEqual([l.product_id for l in lines], [self.gizmo.id])
            self.assertTrue(all(l.quantity > 0 for l in lines))
            await self.cart.clear()

    async def test_update_and_remove_missing_id_are_noops(self):
        await self.cart.add_to_cart(self.widget)
        before = await self.state.kv.get(CART)
        await self.cart.update_quantity("missing", 4)
        self.assertFalse(await self.cart.remove_item("missing"))
        self.assertEqual(await self.state.kv.get(CART), before)

    async def test_remove_and_clear(self):
        await self.cart.add_to_cart(self.widget)
        await self.cart.add_to_cart(self.gizmo)
        self.assertTrue(await self.cart.remove_item(self.widget.id))
        self.assertEqual([l.product_id for l in await self.cart.list_lines()], [self.gizmo.id])

        await self.cart.clear()
        self.assertEqual(await self.cart.list_lines(), [])
        await self.cart.clear()

    async def test_totals(self):
        self.assertEqual(await self.cart.total_price(), 0)
        self.assertEqual(await self.cart.total_items(), 0)

        await self.cart.add_to_cart(self.widget)
        await self.cart.add_to_cart(self.widget)
        await self.cart.add_to_cart(self.gizmo)
        self.assertAlmostEqual(await self.cart.total_price(), 22.48)
        self.assertEqual(await self.cart.total_items(), 3)

    # ---------- Checkout ----------

    async def test_checkout_without_session_changes_nothing(self):
        await self.cart.add_to_cart(self.widget)
        before = await self.state.kv.get(CART)

        with self.assertRaises(CheckoutError):
            await self.cart.checkout(TransferPayment("REF-1"))

        self.assertEqual(await self.state.kv.get(CART), before)
        self.assertEqual(await self.state.kv.get(ORDERS, []), [])

    async def test_checkout_with_empty_cart_creates_no_order(self):
        await self.state.identity.register("alice@example.com", "pw123", "Alice")
        with self.assertRaises(CheckoutError) as ctx:
            await self.cart.checkout(TransferPayment("REF-1"))
        self.assertIn("empty", str(ctx.exception))
        self.assertEqual(await self.state.kv.get(ORDERS, []), [])

    async def test_checkout_requires_payment_details(self):
        await self.state.identity.register("alice@example.com", "pw123", "Alice")
        await self.cart.add_to_cart(self.widget)

        for payment in (None, TransferPayment("  "), CardPayment("Alice", "", "12/30")):
            with self.assertRaises(CheckoutError):
                await self.cart.checkout(payment)

        self.assertEqual(len(await self.cart.list_lines()), 1)
        self.assertEqual(await self.state.kv.get(ORDERS, []), [])

    async def test_manual_checkout_records_pending_order_and_empties_cart(self):
        alice = await self.state.identity.register("alice@example.com", "pw123", "Alice")
        await self.cart.add_to_cart(self.widget)
        await self.cart.add_to_cart(self.widget)
        await self.cart.add_to_cart(self.gizmo)
        expected_total = await self.cart.total_price()

        order = await self.cart.checkout(TransferPayment("REF-42"))

        self.assertEqual(order.user_id, alice.id)
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.payment_method, "manual")
        self.assertEqual(order.payment, TransferPayment("REF-42"))
        self.assertEqual(order.total, expected_total)
        self.assertEqual(order.item_count, 3)
        self.assertEqual(await self.cart.list_lines(), [])
        self.assertEqual(await self.state.orders.get_order(order.id), order)

    async def test_card_checkout_starts_processing_and_drops_cvv(self):
        await self.state.identity.register("alice@example.com", "pw123", "Alice")
        await self.cart.add_to_cart(self.gizmo)
        card = CardPayment.from_form("Alice", "4242 4242 4242 4242", "12/30", "123")

        order = await self.cart.checkout(card)

        self.assertEqual(order.status, "processing")
        self.assertEqual(order.payment_method, "card")
        stored = (await self.state.kv.get(ORDERS))[0]
        self.assertEqual(
            stored["paymentDetails"], {"holder": "Alice", "last4": "4242", "expiry": "12/30"}
        )
        self.assertNotIn("123", str(stored["paymentDetails"]))

    async def test_order_lines_are_snapshots(self):
        await self.state.identity.register("alice@example.com", "pw123", "Alice")
        await self.cart.add_to_cart(self.widget)
        order = await self.cart.checkout(TransferPayment("REF-1"))

        await self.state.catalog.update_product(self.widget.id, price=100.0)
        await self.state.catalog.delete_product(self.widget.id)

        stored = await self.state.orders.get_order(order.id)
        self.assertEqual(stored.items[0].product.price, 9.99)
        self.assertEqual(stored.total, 9.99)

    async def test_checkout_is_all_or_nothing(self):
        await self.state.identity.register("alice@example.com", "pw123", "Alice")
        await self.cart.add_to_cart(self.widget)
        cart_before = await self.state.kv.get(CART)

        original_delete = database.Transaction.delete

        async def failing_delete(tx, key):
            if key == CART:
                raise RuntimeError("crash while clearing cart")
            await original_delete(tx, key)

        with mock.patch.object(database.Transaction, "delete", failing_delete):
            with self.assertRaises(RuntimeError):
                await self.cart.checkout(TransferPayment("REF-1"))

        # the order write was rolled back together with the cart write
        self.assertEqual(await self.state.kv.get(ORDERS, []), [])
        self.assertEqual(await self.state.kv.get(CART), cart_before)

    async def test_checkout_waits_for_payment_delay(self):
        await self.state.identity.register("alice@example.com", "pw123", "Alice")
        await self.cart.add_to_cart(self.widget)
        self.cart.checkout_delay = 1.5

        with mock.patch("db.cart.asyncio.sleep") as fake_sleep:
            await self.cart.checkout(TransferPayment("REF-1"))
        fake_sleep.assert_awaited_once_with(1.5)


class CardPaymentFormTestCase(unittest.TestCase):
    def test_from_form_requires_every_field(self):
        self.assertIsNone(CardPayment.from_form("", "4242", "12/30", "123"))
        self.assertIsNone(CardPayment.from_form("A", "4242", "12/30", " "))

    def test_from_form_keeps_last_four_digits(self):
        card = CardPayment.from_form(" Alice ", "4000-0000-0000-0002", "01/29", "999")
        self.assertEqual(card, CardPayment("Alice", "0002", "01/29"))
        self.assertEqual(card.method, "card")


if __name__ == "__main__":
    unittest.main()
