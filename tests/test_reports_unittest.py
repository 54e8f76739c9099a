import os
import sys
import tempfile
import unittest
from datetime import datetime
from decimal import Decimal
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pandas as pd

import reports
from catalog import ProductCatalog
from ledger import TransactionLedger
from models import Transaction, TransactionLine

NOW = datetime(2024, 5, 1, 12, 0, 0)


class ReportTestCase(unittest.TestCase):
    def setUp(self):
        self.catalog = ProductCatalog()
        self.catalog.add_product("Apples", 2.99, 50, "Fruits")
        self.catalog.add_product("Orange Juice", 4.49, 4, "Beverages")
        self.ledger = TransactionLedger()
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def path(self, name):
        return os.path.join(self.tmp.name, name)

    def record_sales(self):
        self.ledger.record(Transaction("TXN1", "alice", (
            TransactionLine(1, "Apples", 3, Decimal("2.99")),), datetime(2024, 5, 1, 9, 15)))
        self.ledger.record(Transaction("TXN2", "bob", (
            TransactionLine(1, "Apples", 1, Decimal("2.99")),
            TransactionLine(2, "Orange Juice", 2, Decimal("4.49"))), datetime(2024, 5, 2, 17, 40)))


class TextReportTests(ReportTestCase):
    def test_inventory_report(self):
        report = reports.generate_inventory_report(self.catalog, 10, now=NOW)
        self.assertTrue(report.startswith("=== INVENTORY REPORT ===\nGenerated: 2024-05-01 12:00:00"))
        self.assertIn("Total Products: 2", report)
        self.assertIn("1     Apples               $2.99      50         Fruits", report)
        self.assertIn("=== LOW STOCK ALERT ===", report)
        self.assertIn("Orange Juice: 4 remaining", report)
        self.assertNotIn("Apples: 50 remaining", report)

    def test_inventory_report_without_low_stock(self):
        report = reports.generate_inventory_report(self.catalog, 3, now=NOW)
        self.assertNotIn("LOW STOCK", report)

    def test_report_is_free_of_side_effects(self):
        before = self.catalog.list_products()
        reports.generate_inventory_report(self.catalog)
        self.assertEqual(self.catalog.list_products(), before)

    def test_sales_report(self):
        empty = reports.generate_sales_report(self.ledger, now=NOW)
        self.assertIn("No transactions recorded.", empty)
        self.record_sales()
        report = reports.generate_sales_report(self.ledger, now=NOW)
        self.assertIn("Transaction TXN1 - Customer: alice - Amount: $8.97 - Date: 2024-05-01 09:15", report)
        self.assertLess(report.index("TXN1"), report.index("TXN2"))


class TabularReportTests(ReportTestCase):
    def test_inventory_summary(self):
        df, summary = reports.summarize_inventory(self.catalog, low_stock_threshold=10)
        self.assertEqual(list(df.columns), reports.INVENTORY_COLUMNS)
        self.assertEqual(summary['total_items'], 2)
        self.assertEqual(summary['total_units'], 54)
        self.assertAlmostEqual(summary['total_value'], 50 * 2.99 + 4 * 4.49, places=2)
        self.assertEqual(summary['low_stock_count'], 1)
        self.assertEqual(summary['low_stock_items'][0]['name'], "Orange Juice")

    def test_empty_inventory_summary(self):
        df, message = reports.summarize_inventory(ProductCatalog())
        self.assertIsNone(df)
        self.assertIn("No inventory", message)

    def test_sales_summary_and_daily_sales(self):
        df, message = reports.summarize_sales(self.ledger)
        self.assertIsNone(df)
        self.record_sales()
        df, summary = reports.summarize_sales(self.ledger)
        self.assertEqual(summary['num_transactions'], 2)
        self.assertAlmostEqual(summary['total_sales'], 8.97 + 11.97, places=2)
        self.assertAlmostEqual(summary['average_sale'], (8.97 + 11.97) / 2, places=2)

        daily = reports.daily_sales(self.ledger)
        self.assertEqual(len(daily), 2)
        self.assertEqual(str(daily.loc[0, 'sale_date']), "2024-05-02")
        self.assertEqual(int(daily.loc[0, 'num_transactions']), 1)

    def test_csv_export(self):
        path = reports.export_inventory_csv(self.catalog, self.path("inventory.csv"))
        df = pd.read_csv(path)
        self.assertEqual(df['name'].tolist(), ["Apples", "Orange Juice"])
        self.assertEqual(df['quantity_in_stock'].tolist(), [50, 4])

    def test_excel_export(self):
        path = self.path("inventory.xlsx")
        reports.summarize_inventory(self.catalog, path, format='excel')
        df = pd.read_excel(path, sheet_name='Inventory')
        self.assertEqual(len(df), 2)

    def test_pdf_report(self):
        self.record_sales()
        df, summary = reports.summarize_sales(self.ledger)
        path = reports.generate_pdf_report("Sales Report", df, summary, self.path("sales.pdf"))
        with open(path, 'rb') as f:
            self.assertEqual(f.read(4), b"%PDF")

    def test_txt_receipt(self):
        self.record_sales()
        tx = self.ledger.get("TXN2")
        path = reports.generate_txt_receipt(tx, self.path("receipt.txt"), store_name="Corner Grocer")
        with open(path, encoding='utf-8') as f:
            text = f.read()
        self.assertIn("Corner Grocer", text)
        self.assertIn("Transaction: TXN2", text)
        self.assertIn("Total:        $   11.97", text)


if __name__ == '__main__':
    unittest.main()
