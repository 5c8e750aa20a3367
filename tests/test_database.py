import os
import tempfile
import unittest

from db.database import CART, ORDERS, KeyValueStore


class KeyValueStoreTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        # nested directory is created on first use
        self.db_path = os.path.join(self.temp_dir.name, "data", "test.sqlite")
        self.kv = KeyValueStore(self.db_path)

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_absent_key_returns_default(self):
        self.assertEqual(await self.kv.get(ORDERS, []), [])
        self.assertIsNone(await self.kv.get("currentUser"))
        self.assertTrue(os.path.exists(self.db_path))

    async def test_set_get_delete(self):
        async with self.kv.transaction() as tx:
            await tx.set(CART, [{"id": "a", "quantity": 2}])
            # own writes are visible inside the transaction
            self.assertEqual(await tx.get(CART), [{"id": "a", "quantity": 2}])

        self.assertEqual(await self.kv.get(CART), [{"id": "a", "quantity": 2}])

        async with self.kv.transaction() as tx:
            await tx.set(CART, [])
        self.assertEqual(await self.kv.get(CART, None), [])

        async with self.kv.transaction() as tx:
            await tx.delete(CART)
        self.assertEqual(await self.kv.get(CART, "gone"), "gone")

    async def test_exception_rolls_back_every_write(self):
        async with self.kv.transaction() as tx:
            await tx.set(CART, ["kept"])

        with self.assertRaises(RuntimeError):
            async with self.kv.transaction() as tx:
                await tx.set(ORDERS, ["order"])
                await tx.delete(CART)
                raise RuntimeError("crash between writes")

        self.assertEqual(await self.kv.get(ORDERS, []), [])
        self.assertEqual(await self.kv.get(CART), ["kept"])

    async def test_second_handle_sees_committed_data(self):
        async with self.kv.transaction() as tx:
            await tx.set(ORDERS, [{"id": "1"}])

        other = KeyValueStore(self.db_path)
        self.assertEqual(await other.get(ORDERS), [{"id": "1"}])


if __name__ == "__main__":
    unittest.main()
