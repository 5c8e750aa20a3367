import os
import tempfile
import unittest

from db.database import USERS
from utils.state import GlobalState


class IdentityTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self.state = GlobalState.create(self.db_path, checkout_delay=0)
        self.identity = self.state.identity

    def tearDown(self):
        self.temp_dir.cleanup()

    # ---------- Registration ----------

    async def test_register_creates_account_and_session(self):
        alice = await self.identity.register("alice@example.com", "pw123", "Alice")
        self.assertIsNotNone(alice)
        self.assertEqual(alice.email, "alice@example.com")
        self.assertEqual(alice.role, "user")
        self.assertTrue(alice.id)
        self.assertEqual(self.identity.current_user, alice)
        self.assertTrue(self.identity.is_authenticated)
        self.assertFalse(self.identity.is_admin)

    async def test_register_duplicate_email_fails_and_leaves_store_unchanged(self):
        first = await self.identity.register("bob@example.com", "pw", "Bob")
        before = await self.state.kv.get(USERS)

        again = await self.identity.register("bob@example.com", "other", "Bobby", "admin")
        self.assertIsNone(again)
        self.assertEqual(await self.state.kv.get(USERS), before)
        # session stays with the account that registered first
        self.assertEqual(self.identity.current_user, first)

        emails = [a.email for a in await self.identity.list_accounts()]
        self.assertEqual(emails, ["bob@example.com"])

    async def test_many_registrations_keep_emails_and_ids_unique(self):
        for i in range(5):
            self.assertIsNotNone(
                await self.identity.register(f"u{i}@example.com", "pw", f"U{i}")
            )
            self.assertIsNone(await self.identity.register(f"u{i}@example.com", "x", "X"))

        accounts = await self.identity.list_accounts()
        self.assertEqual(len(accounts), 5)
        self.assertEqual(len({a.email for a in accounts}), 5)
        self.assertEqual(len({a.id for a in accounts}), 5)

    async def test_register_admin_and_unknown_role(self):
        admin = await self.identity.register("root@example.com", "pw", "Root", "admin")
        self.assertTrue(admin.is_admin)
        self.assertTrue(self.identity.is_admin)

        with self.assertRaises(ValueError):
            await self.identity.register("x@example.com", "pw", "X", "superuser")

    # ---------- Login / logout ----------

    async def test_login_requires_exact_email_and_password(self):
        alice = await self.identity.register("alice@example.com", "pw123", "Alice")
        await self.identity.logout()

        self.assertIsNone(await self.identity.login("alice@example.com", "PW123"))
        self.assertIsNone(await self.identity.login("Alice@example.com", "pw123"))
        self.assertIsNone(await self.identity.login("nobody@example.com", "pw123"))
        self.assertIsNone(self.identity.current_user)

        user = await self.identity.login("alice@example.com", "pw123")
        self.assertEqual(user, alice)
        self.assertEqual(self.identity.current_user, alice)

    async def test_logout_clears_session_and_is_idempotent(self):
        await self.identity.register("alice@example.com", "pw123", "Alice")
        await self.identity.logout()
        self.assertIsNone(self.identity.current_user)
        self.assertIsNone(await self.state.kv.get("currentUser"))

        await self.identity.logout()
        self.assertFalse(self.identity.is_authenticated)

    # ---------- Session restoration ----------

    async def test_session_survives_reload(self):
        alice = await self.identity.register("alice@example.com", "pw123", "Alice")

        reloaded = GlobalState.create(self.db_path, checkout_delay=0)
        self.assertIsNone(reloaded.user)
        self.assertEqual(await reloaded.start(), alice)
        self.assertEqual(reloaded.user, alice)

        await reloaded.end_session()
        again = GlobalState.create(self.db_path, checkout_delay=0)
        self.assertIsNone(await again.start())

    async def test_get_account(self):
        alice = await self.identity.register("alice@example.com", "pw123", "Alice")
        self.assertEqual(await self.identity.get_account(alice.id), alice)
        self.assertIsNone(await self.identity.get_account("missing"))


if __name__ == "__main__":
    unittest.main()
