import os
import sys
import random
import threading
import unittest
from decimal import Decimal
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from catalog import ProductCatalog, ReserveOutcome
from exceptions import InvalidInput, NotFound


class CatalogTests(unittest.TestCase):
    def setUp(self):
        self.catalog = ProductCatalog()
        self.apples = self.catalog.add_product("Apples", 2.99, 50, "Fruits")
        self.milk = self.catalog.add_product("Milk", "3.99", 0, "Dairy")

    def test_add_product_assigns_increasing_ids(self):
        bread = self.catalog.add_product("Bread", 2.49, 25, "Bakery")
        self.assertEqual([self.apples.id, self.milk.id, bread.id], [1, 2, 3])
        self.assertEqual(bread.price, Decimal("2.49"))

    def test_add_product_rejects_bad_input(self):
        with self.assertRaises(InvalidInput):
            self.catalog.add_product("Cheese", -1, 5, "Dairy")
        with self.assertRaises(InvalidInput):
            self.catalog.add_product("Cheese", 5.99, -5, "Dairy")
        with self.assertRaises(InvalidInput):
            self.catalog.add_product("", 5.99, 5, "Dairy")
        with self.assertRaises(InvalidInput):
            self.catalog.add_product("Cheese", 5.99, 5, "  ")
        with self.assertRaises(InvalidInput):
            self.catalog.add_product("Cheese", "abc", 5, "Dairy")
        self.assertEqual(len(self.catalog), 2)

    def test_ids_are_not_reused_after_delete(self):
        self.catalog.delete_product(self.milk.id)
        eggs = self.catalog.add_product("Eggs", 2.99, 22, "Dairy")
        self.assertEqual(eggs.id, 3)
        with self.assertRaises(NotFound):
            self.catalog.get_product(self.milk.id)
        with self.assertRaises(NotFound):
            self.catalog.delete_product(self.milk.id)

    def test_list_products_is_a_snapshot(self):
        products = self.catalog.list_products()
        products[0].stock = 0
        products.clear()
        self.assertEqual(self.catalog.get_product(self.apples.id).stock, 50)
        self.assertEqual(len(self.catalog.list_products()), 2)

    def test_list_products_twice_is_equal(self):
        self.assertEqual(self.catalog.list_products(), self.catalog.list_products())

    def test_available_and_low_stock(self):
        self.assertEqual([p.name for p in self.catalog.list_available()], ["Apples"])
        self.assertEqual([p.name for p in self.catalog.list_low_stock(10)], ["Milk"])
        self.assertEqual([p.name for p in self.catalog.list_low_stock(50)], ["Milk", "Apples"])

    def test_search_and_categories(self):
        self.assertEqual([p.name for p in self.catalog.search_products("app")], ["Apples"])
        self.assertEqual([p.name for p in self.catalog.search_products("DAIRY")], ["Milk"])
        self.assertEqual(self.catalog.categories(), ["Dairy", "Fruits"])

    def test_update_product(self):
        updated = self.catalog.update_product(self.apples.id, price="3.49", stock=40, category="Produce")
        self.assertEqual(updated.price, Decimal("3.49"))
        self.assertEqual(updated.stock, 40)
        self.assertEqual(self.catalog.get_product(self.apples.id).category, "Produce")

    def test_update_product_validates_everything_first(self):
        with self.assertRaises(InvalidInput):
            self.catalog.update_product(self.apples.id, name="Green Apples", stock=-1)
        self.assertEqual(self.catalog.get_product(self.apples.id).name, "Apples")
        with self.assertRaises(InvalidInput):
            self.catalog.update_product(self.apples.id, id=99)
        with self.assertRaises(NotFound):
            self.catalog.update_product(999, name="Ghost")

    def test_non_finite_prices_rejected(self):
        for bad in (float("nan"), "NaN", "Infinity", float("inf")):
            with self.assertRaises(InvalidInput):
                self.catalog.add_product("Apples", bad, 5, "Fruits")
            with self.assertRaises(InvalidInput):
                self.catalog.update_product(self.apples.id, price=bad)
        self.assertEqual(len(self.catalog), 2)
        self.assertEqual(self.catalog.get_product(self.apples.id).price, Decimal("2.99"))

    def test_reserve_and_decrement(self):
        self.assertIs(self.catalog.try_reserve_and_decrement(self.apples.id, 20), ReserveOutcome.OK)
        self.assertEqual(self.catalog.get_product(self.apples.id).stock, 30)
        self.assertIs(self.catalog.try_reserve_and_decrement(self.apples.id, 31),
                      ReserveOutcome.INSUFFICIENT_STOCK)
        self.assertEqual(self.catalog.get_product(self.apples.id).stock, 30)
        self.assertIs(self.catalog.try_reserve_and_decrement(999, 1), ReserveOutcome.NOT_FOUND)

    def test_reserve_rejects_non_positive_quantity(self):
        with self.assertRaises(ValueError):
            self.catalog.try_reserve_and_decrement(self.apples.id, 0)
        with self.assertRaises(ValueError):
            self.catalog.try_reserve_and_decrement(self.apples.id, -3)

    def test_restock_and_increase_stock(self):
        self.catalog.restock(self.milk.id, 12)
        self.assertEqual(self.catalog.increase_stock(self.milk.id, 3), 15)
        with self.assertRaises(InvalidInput):
            self.catalog.restock(self.milk.id, -1)
        with self.assertRaises(NotFound):
            self.catalog.increase_stock(999, 1)

    def test_stock_never_negative_under_concurrent_reservations(self):
        pid = self.catalog.add_product("Rice", 4.99, 100, "Grains").id
        taken = []
        taken_lock = threading.Lock()

        def worker(seed):
            rng = random.Random(seed)
            for _ in range(200):
                qty = rng.randint(1, 5)
                if self.catalog.try_reserve_and_decrement(pid, qty) is ReserveOutcome.OK:
                    with taken_lock:
                        taken.append(qty)
                stock = self.catalog.get_product(pid).stock
                self.assertGreaterEqual(stock, 0)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        final = self.catalog.get_product(pid).stock
        self.assertGreaterEqual(final, 0)
        self.assertEqual(final, 100 - sum(taken))

    def test_concurrent_admin_updates_and_reservations_do_not_lose_stock(self):
        pid = self.catalog.add_product("Eggs", 2.99, 0, "Dairy").id

        def restocker():
            for _ in range(500):
                self.catalog.increase_stock(pid, 1)

        def buyer():
            done = 0
            while done < 250:
                if self.catalog.try_reserve_and_decrement(pid, 1) is ReserveOutcome.OK:
                    done += 1

        threads = [threading.Thread(target=restocker), threading.Thread(target=buyer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(self.catalog.get_product(pid).stock, 250)


if __name__ == '__main__':
    unittest.main()
