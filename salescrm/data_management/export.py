# salescrm/data_management/export.py
"""
Data Export for the CRM

- Flat export rows for users, attendance, sales and a combined
  per-employee-per-day report
- CSV text for st.download_button
- Formatted Excel workbook (openpyxl), one sheet per export
"""

import csv
import logging
from collections import OrderedDict
from datetime import date, datetime
from io import BytesIO
from typing import Dict, List, Optional

import pandas as pd

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter

from .constants import EXCEL_STYLES
from .date_utils import format_date_time, format_time
from .models import get_discount, get_user_target, is_user_active

logger = logging.getLogger(__name__)

EXPORT_TYPES = ['comprehensive', 'sales', 'attendance', 'users']


# =============================================================================
# CSV
# =============================================================================

def export_to_csv(records: List[Dict]) -> str:
    """
    Serialize flat records to CSV text.

    The header row is the keys of the first record, unquoted; every body
    value is quoted. Missing values become empty strings. Empty input
    gives an empty string.
    """
    if not records:
        return ''

    headers = list(records[0].keys())
    df = pd.DataFrame(records, columns=headers).astype(object)
    df = df.where(pd.notna(df), '')

    body = df.to_csv(header=False, index=False, quoting=csv.QUOTE_ALL, lineterminator='\n')
    return ','.join(headers) + '\n' + body.rstrip('\n')


# =============================================================================
# EXPORT ROWS
# =============================================================================

def _in_range(record: Dict, start_date: Optional[str], end_date: Optional[str]) -> bool:
    day = record.get('date') or ''
    if start_date and day < start_date:
        return False
    if end_date and day > end_date:
        return False
    return True


def _display_time(value) -> str:
    try:
        return format_time(value) if value else ''
    except (TypeError, ValueError):
        return ''


def _display_date_time(value) -> str:
    try:
        return format_date_time(value) if value else ''
    except (TypeError, ValueError):
        return ''


def build_user_rows(users: List[Dict]) -> List[Dict]:
    return [
        OrderedDict([
            ('ID', u.get('id')),
            ('Employee ID', u.get('employeeId')),
            ('Name', u.get('name')),
            ('Username', u.get('username')),
            ('Role', u.get('role')),
            ('Department', u.get('department') or ''),
            ('Designation', u.get('designation') or ''),
            ('Phone', u.get('phone') or ''),
            ('Territory', u.get('territory') or ''),
            ('Target', get_user_target(u)),
            ('Manager', u.get('manager') or ''),
            ('Join Date', u.get('joinDate') or ''),
            ('Last Login', _display_date_time(u.get('lastLogin')) or 'Never'),
            ('Status', 'Active' if is_user_active(u) else 'Inactive'),
        ])
        for u in users
    ]


def build_attendance_rows(
    attendance: List[Dict],
    users: List[Dict],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> List[Dict]:
    by_id = {u.get('id'): u for u in users}
    rows = []
    for record in attendance:
        if not _in_range(record, start_date, end_date):
            continue
        user = by_id.get(record.get('userId'), {})
        rows.append(OrderedDict([
            ('Date', record.get('date')),
            ('Employee Name', user.get('name', 'Unknown')),
            ('Employee Username', user.get('username', 'Unknown')),
            ('Department', user.get('department', 'Unknown')),
            ('Status', record.get('status')),
            ('Check In', _display_time(record.get('checkIn'))),
            ('Check Out', _display_time(record.get('checkOut'))),
            ('Total Hours', record.get('totalHours') or ''),
        ]))
    return rows


def build_sales_rows(
    sales: List[Dict],
    users: List[Dict],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> List[Dict]:
    by_id = {u.get('id'): u for u in users}
    rows = []
    for sale in sales:
        if not _in_range(sale, start_date, end_date):
            continue
        user = by_id.get(sale.get('userId'), {})
        rows.append(OrderedDict([
            ('Date', sale.get('date')),
            ('Sales Person', user.get('name', 'Unknown')),
            ('Sales Person Username', user.get('username', 'Unknown')),
            ('Product Name', sale.get('productName')),
            ('Product Code', sale.get('productCode') or ''),
            ('Category', sale.get('category') or ''),
            ('Quantity', sale.get('quantity')),
            ('Unit Price', sale.get('unitPrice')),
            ('Discount', get_discount(sale)),
            ('Total Amount', sale.get('totalAmount')),
            ('Customer Name', sale.get('customer')),
            ('Customer Email', sale.get('customerEmail') or ''),
            ('Customer Phone', sale.get('customerPhone') or ''),
            ('Customer Company', sale.get('customerCompany') or ''),
            ('Payment Status', sale.get('paymentStatus') or ''),
            ('Lead Source', sale.get('leadSource') or ''),
            ('Priority', sale.get('priority') or ''),
            ('Follow-up Required', 'Yes' if sale.get('followUpRequired') else 'No'),
            ('Notes', sale.get('notes') or ''),
            ('Submitted At', _display_date_time(sale.get('submittedAt'))),
        ]))
    return rows


def build_comprehensive_rows(
    sales: List[Dict],
    attendance: List[Dict],
    users: List[Dict],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> List[Dict]:
    """One row per (employee, date) combining sales totals and attendance."""
    combined: Dict[tuple, Dict] = OrderedDict()

    def _entry(name: str, day: str) -> Dict:
        key = (name, day)
        if key not in combined:
            combined[key] = OrderedDict([
                ('Date', day),
                ('Employee Name', name),
                ('Total Sales', 0.0),
                ('Sales Count', 0),
                ('Attendance Status', 'Unknown'),
                ('Check In', ''),
                ('Check Out', ''),
                ('Sales Details', []),
            ])
        return combined[key]

    for row in build_sales_rows(sales, users, start_date, end_date):
        entry = _entry(row['Sales Person'], row['Date'])
        entry['Total Sales'] += float(row['Total Amount'] or 0)
        entry['Sales Count'] += 1
        entry['Sales Details'].append(f"{row['Product Name']} ({row['Quantity']}x{row['Unit Price']})")

    for row in build_attendance_rows(attendance, users, start_date, end_date):
        entry = _entry(row['Employee Name'], row['Date'])
        entry['Attendance Status'] = row['Status']
        entry['Check In'] = row['Check In']
        entry['Check Out'] = row['Check Out']

    for entry in combined.values():
        entry['Sales Details'] = '; '.join(entry['Sales Details'])

    return list(combined.values())


# =============================================================================
# EXCEL
# =============================================================================

class CRMExport:
    """
    Excel workbook generator for CRM exports.

    Usage:
        exporter = CRMExport()
        excel_bytes = exporter.create_workbook({
            'Sales': build_sales_rows(sales, users),
            'Attendance': build_attendance_rows(attendance, users),
        })

        st.download_button(
            label="Download Excel",
            data=excel_bytes,
            file_name="crm_export.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    """

    def __init__(self):
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.title_font = Font(bold=True, size=14)

        thin_border = Side(style='thin', color='000000')
        self.cell_border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)
        self.center_align = Alignment(horizontal='center', vertical='center')

        self.currency_format = EXCEL_STYLES['currency_format']

    def create_workbook(self, sheets: Dict[str, List[Dict]], title: Optional[str] = None) -> BytesIO:
        """
        Args:
            sheets: sheet name -> export rows (sheet skipped when empty)
            title: optional title written above each table

        Returns:
            BytesIO containing the xlsx file
        """
        self.wb = Workbook()

        for name, rows in sheets.items():
            if rows:
                self._write_sheet(name[:31], rows, title)

        if len(self.wb.sheetnames) > 1 and 'Sheet' in self.wb.sheetnames:
            del self.wb['Sheet']

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        logger.info(f"Excel export created: {', '.join(self.wb.sheetnames)}")
        return output

    def _write_sheet(self, name: str, rows: List[Dict], title: Optional[str]):
        ws = self.wb.create_sheet(title=name)
        row_idx = 1

        if title:
            ws.cell(row=row_idx, column=1, value=title).font = self.title_font
            ws.cell(row=row_idx + 1, column=1, value=f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
            row_idx += 3

        headers = list(rows[0].keys())
        for col_idx, header in enumerate(headers, 1):
            cell = ws.cell(row=row_idx, column=col_idx, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.border = self.cell_border
            cell.alignment = self.center_align
        header_row = row_idx

        for record in rows:
            row_idx += 1
            for col_idx, header in enumerate(headers, 1):
                cell = ws.cell(row=row_idx, column=col_idx, value=record.get(header))
                cell.border = self.cell_border
                if header in ('Unit Price', 'Total Amount', 'Total Sales', 'Target'):
                    cell.number_format = self.currency_format

        for col_idx, header in enumerate(headers, 1):
            longest = max([len(str(header))] + [len(str(r.get(header) or '')) for r in rows])
            ws.column_dimensions[get_column_letter(col_idx)].width = min(longest + 2, 50)

        ws.freeze_panes = ws.cell(row=header_row + 1, column=1)


def default_date_range(today: Optional[date] = None) -> tuple:
    """First day of the current month through today, as 'YYYY-MM-DD'."""
    today = today or date.today()
    return today.replace(day=1).strftime('%Y-%m-%d'), today.strftime('%Y-%m-%d')


__all__ = [
    'EXPORT_TYPES',
    'export_to_csv',
    'build_user_rows',
    'build_attendance_rows',
    'build_sales_rows',
    'build_comprehensive_rows',
    'default_date_range',
    'CRMExport',
]
