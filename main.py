# main.py
import os
import sys
import json
import logging
import argparse
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from logger import setup_logger
from payment import PaymentDetails
from reports import (generate_inventory_report, generate_sales_report, summarize_inventory,
                     summarize_sales, generate_pdf_report, generate_txt_receipt)
from store import StoreContext

logger = logging.getLogger("grocery_store.main")

# Default configuration
DEFAULT_CONFIG = {
    "store_name": "Grocery Store",
    "currency": "$",
    "low_stock_threshold": 10,
    "seed_defaults": True,
    "payment": {"processing_delay": 1.0},
    "logging": {"level": "INFO", "file": "logs/grocery_store.log"},
    "export": {"default_dir": "exports"},
    "receipt": {"receipt_dir": "receipts"},
}

DEMO_CARD = PaymentDetails("4111111111111111", "12/30", "123")


def _merge(base, override):
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path="config.json"):
    """Load configuration from JSON file or create default if not exists"""
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
            logger.info(f"Configuration loaded from {config_path}")
            return _merge(DEFAULT_CONFIG, config)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading config: {e}")
            return _merge(DEFAULT_CONFIG, {})

    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(DEFAULT_CONFIG, f, indent=4)
    logger.info(f"Created default configuration at {config_path}")
    return _merge(DEFAULT_CONFIG, {})


def setup_directories(config):
    """Create required directories if they don't exist."""
    dir_mappings = {
        'receipt_dir': config.get('receipt', {}).get('receipt_dir', 'receipts'),
        'export_dir': config.get('export', {}).get('default_dir', 'exports'),
    }
    for dir_key, dir_path in dir_mappings.items():
        path = Path(dir_path)
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created directory: {path}")


def simulate_customers(store: StoreContext, customers: int, product_id: int = 1, quantity: int = 1,
                       receipt_dir=None):
    """Run concurrent checkouts of one product, one new customer each.

    When ``receipt_dir`` is given a text receipt is written there for
    every completed sale.
    """
    sessions = []
    for n in range(customers):
        username = f"shopper{n + 1}"
        store.users.register("CUSTOMER", username, "password")
        session = store.users.login(username, "password")
        session.cart.add_item(product_id, quantity)
        sessions.append(session)

    with ThreadPoolExecutor(max_workers=max(customers, 1)) as pool:
        results = list(pool.map(lambda s: store.checkout(s, DEMO_CARD), sessions))

    for session, result in zip(sessions, results):
        logger.info(f"{session.username}: {result!r}")
        if receipt_dir and result.success:
            write_receipt(store, result.transaction, receipt_dir)
    return results


def write_receipt(store: StoreContext, transaction, receipt_dir):
    path = os.path.join(receipt_dir, f"{transaction.transaction_id}.txt")
    return generate_txt_receipt(transaction, path,
                                currency=store.config.get("currency", "$"),
                                store_name=store.config.get("store_name", "Grocery Store"))


def export_report(store: StoreContext, kind, file_path, format):
    if kind == 'inventory':
        threshold = store.low_stock_threshold
        if format == 'pdf':
            df, summary = summarize_inventory(store.catalog, low_stock_threshold=threshold)
            return generate_pdf_report("Inventory Report", df, summary, file_path) if df is not None else None
        df, _ = summarize_inventory(store.catalog, file_path, format, threshold)
    else:
        if format == 'pdf':
            df, summary = summarize_sales(store.ledger)
            return generate_pdf_report("Sales Report", df, summary, file_path) if df is not None else None
        df, _ = summarize_sales(store.ledger, file_path=file_path, format=format)
    return file_path if df is not None else None


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="Grocery store inventory and checkout")
    parser.add_argument("--config", help="Path to configuration file", default="config.json")
    parser.add_argument("--debug", help="Enable debug mode", action="store_true")
    parser.add_argument("--report", choices=["inventory", "sales"], default="inventory",
                        help="Report to print")
    parser.add_argument("--export", metavar="PATH", help="Also write the report to PATH")
    parser.add_argument("--format", choices=["csv", "excel", "pdf"], default="csv",
                        help="Export file format")
    parser.add_argument("--simulate", type=int, default=0, metavar="N",
                        help="Run N concurrent customer checkouts before reporting")
    return parser.parse_args(argv)


def main(argv=None):
    try:
        args = parse_arguments(argv)
        config = load_config(args.config)
        app_logger = setup_logger(config)
        if args.debug:
            app_logger.setLevel(logging.DEBUG)
            logger.debug("Debug mode enabled")

        setup_directories(config)

        store = StoreContext(config)
        if config.get("seed_defaults", True):
            store.seed_defaults()

        if args.simulate:
            receipt_dir = config.get("receipt", {}).get("receipt_dir", "receipts")
            simulate_customers(store, args.simulate, receipt_dir=receipt_dir)

        if args.report == "sales":
            print(generate_sales_report(store.ledger))
        else:
            print(generate_inventory_report(store.catalog, store.low_stock_threshold))

        if args.export:
            written = export_report(store, args.report, args.export, args.format)
            if written:
                logger.info(f"Report exported to {written}")
            else:
                logger.warning("Nothing to export")
        return 0

    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
