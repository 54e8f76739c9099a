# reports.py
import datetime

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from catalog import ProductCatalog
from ledger import TransactionLedger
from models import Transaction

INVENTORY_COLUMNS = ['id', 'name', 'category', 'price', 'quantity_in_stock']
SALES_COLUMNS = ['transaction_id', 'customer_id', 'timestamp', 'items', 'total_amount']


def _stamp(now=None):
    return (now or datetime.datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


def generate_inventory_report(catalog: ProductCatalog, low_stock_threshold=10, now=None) -> str:
    """Plain-text product listing with a low stock alert section."""
    products = catalog.list_products()
    lines = [
        "=== INVENTORY REPORT ===",
        f"Generated: {_stamp(now)}",
        "",
        f"Total Products: {len(products)}",
        "",
        f"{'ID':<5} {'Name':<20} {'Price':<10} {'Quantity':<10} {'Category':<15}",
        "=" * 65,
    ]
    for p in products:
        lines.append(f"{p.id:<5d} {p.name:<20} ${p.price:<9.2f} {p.stock:<10d} {p.category:<15}")

    low = [p for p in products if p.stock <= low_stock_threshold]
    if low:
        lines += ["", "=== LOW STOCK ALERT ==="]
        lines += [f"⚠️  {p.name}: {p.stock} remaining" for p in low]
    return "\n".join(lines) + "\n"


def generate_sales_report(ledger: TransactionLedger, now=None) -> str:
    """Plain-text listing of recorded transactions, oldest first."""
    lines = ["=== SALES REPORT ===", f"Generated: {_stamp(now)}", ""]
    transactions = ledger.all_transactions()
    if not transactions:
        lines.append("No transactions recorded.")
    else:
        lines.append("Recent Transactions:")
        lines += [t.describe() for t in transactions]
    return "\n".join(lines) + "\n"


def inventory_dataframe(catalog: ProductCatalog) -> pd.DataFrame:
    rows = [{
        'id': p.id,
        'name': p.name,
        'category': p.category,
        'price': float(p.price),
        'quantity_in_stock': p.stock,
    } for p in catalog.list_products()]
    return pd.DataFrame(rows, columns=INVENTORY_COLUMNS)


def sales_dataframe(ledger: TransactionLedger, start_date=None, end_date=None) -> pd.DataFrame:
    rows = [{
        'transaction_id': t.transaction_id,
        'customer_id': t.customer_id,
        'timestamp': t.timestamp,
        'items': sum(tl.quantity for tl in t.lines),
        'total_amount': float(t.total_amount),
    } for t in ledger.transactions_between(start_date, end_date)]
    return pd.DataFrame(rows, columns=SALES_COLUMNS)


def export_dataframe(df: pd.DataFrame, file_path: str, format='csv', sheet_name='Sheet1'):
    if format.lower() == 'excel':
        df.to_excel(file_path, index=False, sheet_name=sheet_name)
    else:  # Default to CSV
        df.to_csv(file_path, index=False)
    return file_path


def export_inventory_csv(catalog: ProductCatalog, file_path: str):
    """Dump inventory to CSV."""
    return export_dataframe(inventory_dataframe(catalog), file_path)


def summarize_inventory(catalog: ProductCatalog, file_path=None, format='csv', low_stock_threshold=10):
    """Inventory table plus totals, optionally exported to a file."""
    df = inventory_dataframe(catalog)
    if df.empty:
        return None, "No inventory data found."

    low_stock_items = df[df['quantity_in_stock'] <= low_stock_threshold]
    summary = {
        'total_items': len(df),
        'total_units': int(df['quantity_in_stock'].sum()),
        'total_value': round(float((df['price'] * df['quantity_in_stock']).sum()), 2),
        'low_stock_count': len(low_stock_items),
        'low_stock_items': low_stock_items.to_dict('records') if not low_stock_items.empty else [],
    }

    if file_path:
        export_dataframe(df, file_path, format, sheet_name='Inventory')
    return df, summary


def summarize_sales(ledger: TransactionLedger, start_date=None, end_date=None, file_path=None, format='csv'):
    """Sales for a date range with summary statistics."""
    df = sales_dataframe(ledger, start_date, end_date)
    if df.empty:
        return None, "No sales data found for the specified period."

    df['timestamp'] = pd.to_datetime(df['timestamp'])
    df['date'] = df['timestamp'].dt.date
    summary = {
        'total_sales': round(float(df['total_amount'].sum()), 2),
        'average_sale': round(float(df['total_amount'].mean()), 2),
        'num_transactions': len(df),
        'start_date': start_date or df['date'].min(),
        'end_date': end_date or df['date'].max(),
    }

    if file_path:
        export_dataframe(df, file_path, format, sheet_name='Sales')
    return df, summary


def daily_sales(ledger: TransactionLedger) -> pd.DataFrame:
    """Number of transactions and revenue per day, most recent first."""
    df = sales_dataframe(ledger)
    if df.empty:
        return pd.DataFrame(columns=['sale_date', 'num_transactions', 'total_sales'])
    df['sale_date'] = pd.to_datetime(df['timestamp']).dt.date
    grouped = df.groupby('sale_date').agg(
        num_transactions=('transaction_id', 'count'),
        total_sales=('total_amount', 'sum'),
    ).reset_index()
    return grouped.sort_values('sale_date', ascending=False).reset_index(drop=True)


def generate_txt_receipt(transaction: Transaction, file_path: str, currency="$", store_name="Grocery Store"):
    """Write a simple text receipt."""
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(f"{store_name}\n")
        f.write(f"Transaction: {transaction.transaction_id}\n")
        f.write(f"Customer: {transaction.customer_id}\n")
        f.write(f"Date: {transaction.timestamp:%Y-%m-%d %H:%M:%S}\n")
        f.write("-" * 40 + "\n")
        f.write("Item               QTY   Price   Total\n")
        for tl in transaction.lines:
            f.write(f"{tl.name[:15]:15} {tl.quantity:5}  {currency}{tl.unit_price:6.2f} "
                    f"{currency}{tl.line_total:7.2f}\n")
        f.write("-" * 40 + "\n")
        f.write(f"Total:        {currency}{transaction.total_amount:8.2f}\n")
        f.write("-" * 40 + "\n")
        f.write("Thank you for your purchase!\n")
    return file_path


def _grid_style(last_col=-1, font_size=12):
    return TableStyle([
        ('BACKGROUND', (0, 0), (last_col, 0), colors.grey),
        ('TEXTCOLOR', (0, 0), (last_col, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (last_col, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (last_col, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (last_col, 0), font_size),
        ('BOTTOMPADDING', (0, 0), (last_col, 0), 12),
        ('BACKGROUND', (0, 1), (last_col, -1), colors.white),
        ('GRID', (0, 0), (last_col, -1), 1, colors.black),
    ])


def generate_pdf_report(title, data, summary, file_path, max_rows=50):
    """Generate a PDF report with a summary table and the first rows of ``data``."""
    doc = SimpleDocTemplate(file_path, pagesize=letter)
    styles = getSampleStyleSheet()
    elements = [
        Paragraph(title, styles['Heading1']),
        Spacer(1, 0.2 * inch),
        Paragraph(f"Generated: {_stamp()}", styles['Normal']),
        Spacer(1, 0.2 * inch),
        Paragraph("Summary", styles['Heading2']),
    ]

    summary_data = [["Metric", "Value"]]
    for key, value in summary.items():
        if key == 'low_stock_items':
            continue
        # amounts are floats, counts are ints
        if isinstance(value, float):
            formatted_value = f"${value:,.2f}"
        elif isinstance(value, int):
            formatted_value = f"{value:,}"
        else:
            formatted_value = str(value)
        summary_data.append([key.replace('_', ' ').title(), formatted_value])

    summary_table = Table(summary_data, colWidths=[2.5 * inch, 3 * inch])
    summary_table.setStyle(_grid_style(last_col=1))
    elements += [summary_table, Spacer(1, 0.3 * inch)]

    if isinstance(data, pd.DataFrame) and not data.empty:
        elements.append(Paragraph("Detailed Data", styles['Heading2']))
        table_data = [data.columns.tolist()]
        for _, row in data.head(max_rows).iterrows():
            table_data.append([str(x) for x in row.tolist()])
        data_table = Table(table_data)
        style = _grid_style(font_size=10)
        style.add('FONTSIZE', (0, 1), (-1, -1), 8)
        data_table.setStyle(style)
        elements.append(data_table)

        if len(data) > max_rows:
            elements.append(Spacer(1, 0.2 * inch))
            elements.append(Paragraph(f"Note: Showing {max_rows} of {len(data)} rows", styles['Italic']))

    doc.build(elements)
    return file_path
