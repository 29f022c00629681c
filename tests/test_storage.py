import os
import sys
import tempfile
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db import database as db_database  # noqa: E402
from db.storage import DurableStore, SessionStore, load_json, save_json  # noqa: E402


class DurableStoreTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # Point the DB to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "nested", "test.sqlite")
        db_database.configure(self.db_path)

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_set_get_overwrite_remove(self):
        store = DurableStore()
        self.assertIsNone(await store.get("cart"))

        await store.set("cart", "one")
        await store.set("cart", "two")
        self.assertEqual(await store.get("cart"), "two")

        await store.remove("cart")
        self.assertIsNone(await store.get("cart"))
        # removing a missing key is fine
        await store.remove("cart")

    async def test_values_survive_new_store_instances(self):
        await DurableStore().set("user", "alice")
        self.assertTrue(os.path.exists(self.db_path))
        self.assertEqual(await DurableStore().get("user"), "alice")

    async def test_table_created_on_first_use(self):
        async with db_database.connect() as conn:
            cur = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='kv_store';"
            )
            row = await cur.fetchone()
            await cur.close()
        self.assertIsNotNone(row)

    async def test_json_helpers(self):
        store = DurableStore()
        await save_json(store, "cart", {"items": [], "cartId": None})
        self.assertEqual(await load_json(store, "cart"), {"items": [], "cartId": None})

        await store.set("cart", "{broken")
        self.assertIsNone(await load_json(store, "cart"))
        self.assertIsNone(await load_json(store, "missing"))


class SessionStoreTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_scoped_to_instance(self):
        store = SessionStore()
        await store.set("user", "bob")
        self.assertEqual(await store.get("user"), "bob")
        self.assertIsNone(await SessionStore().get("user"))

        await store.remove("user")
        self.assertIsNone(await store.get("user"))


if __name__ == "__main__":
    unittest.main()
