"""Excel export of analyzed receipts and the review queue."""

import logging
from typing import List, Dict, Any, Optional
from pathlib import Path
import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter

from .review import ReviewItem

logger = logging.getLogger(__name__)

EXPENSE_HEADERS = ["File Name", "Store", "Date", "Total", "Category",
                   "Confidence", "Items", "Fallback"]
REVIEW_HEADERS = ["File", "Reason", "Store", "Total", "Date", "Category",
                  "Confidence", "Suggestions", "Snippet"]


class ExcelExporter:
    """Export expense records and review items to Excel."""

    def __init__(self, output_path: Path):
        """
        Initialize Excel exporter.

        Args:
            output_path: Path for the output Excel file
        """
        self.output_path = Path(output_path)
        self.workbook = Workbook()

    def export(self,
               expenses: List[Dict[str, Any]],
               review_items: List[ReviewItem],
               include_summary: bool = True):
        """
        Write the "Expenses" and "Review" sheets.

        Args:
            expenses: Records from create_expense_record
            review_items: Receipts queued for manual correction
            include_summary: Add the category breakdown above the expense table
        """
        try:
            if "Sheet" in self.workbook.sheetnames:
                self.workbook.remove(self.workbook["Sheet"])

            self._create_expense_sheet(expenses, include_summary)
            self._create_review_sheet(review_items)

            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.workbook.save(str(self.output_path))
            logger.info(f"Excel file exported to: {self.output_path}")

        except Exception as e:
            logger.error(f"Failed to export Excel file: {e}")
            raise

    def _write_header(self, ws, row: int, headers: List[str]):
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.font = Font(bold=True)
            cell.fill = PatternFill(start_color="E6E6E6", end_color="E6E6E6", fill_type="solid")
            cell.alignment = Alignment(horizontal="center")

    def _create_expense_sheet(self, expenses: List[Dict[str, Any]], include_summary: bool):
        ws = self.workbook.create_sheet("Expenses")
        current_row = 1

        if include_summary:
            current_row = self._add_summary_section(ws, expenses, current_row) + 2

        self._write_header(ws, current_row, EXPENSE_HEADERS)
        current_row += 1

        for expense in expenses:
            values = [
                expense.get('file_name', ''),
                expense.get('store_name', ''),
                expense.get('date') or '',
                expense.get('total', 0),
                expense.get('category', 'その他'),
                expense.get('confidence', 0),
                expense.get('item_count', 0),
                'YES' if expense.get('used_fallback') else '',
            ]
            for col, value in enumerate(values, 1):
                ws.cell(row=current_row, column=col, value=value)
            current_row += 1

        for i, width in enumerate([25, 20, 12, 12, 14, 12, 8, 10], 1):
            ws.column_dimensions[get_column_letter(i)].width = width

        logger.info(f"Created expense sheet with {len(expenses)} receipts")

    def _create_review_sheet(self, review_items: List[ReviewItem]):
        ws = self.workbook.create_sheet("Review")
        self._write_header(ws, 1, REVIEW_HEADERS)

        for row, item in enumerate(review_items, 2):
            values = [
                Path(item.file_path).name,
                item.reason,
                item.suggested_store or '',
                item.suggested_total if item.suggested_total is not None else '',
                item.suggested_date or '',
                item.suggested_category or '',
                item.confidence if item.confidence is not None else '',
                ' / '.join(item.suggestions),
                item.raw_snippet,
            ]
            for col, value in enumerate(values, 1):
                ws.cell(row=row, column=col, value=value)

        for i, width in enumerate([25, 50, 20, 12, 12, 14, 12, 50, 60], 1):
            ws.column_dimensions[get_column_letter(i)].width = width

    def _add_summary_section(self, ws, expenses: List[Dict[str, Any]], start_row: int) -> int:
        """Totals and per-category breakdown."""
        if not expenses:
            ws.cell(row=start_row, column=1, value="No expenses to summarize")
            return start_row + 1

        df = pd.DataFrame(expenses)

        ws.cell(row=start_row, column=1, value="EXPENSE SUMMARY").font = Font(bold=True, size=14)
        current_row = start_row + 2

        ws.cell(row=current_row, column=1, value="Receipts:").font = Font(bold=True)
        ws.cell(row=current_row, column=2, value=len(expenses))

        total_amount = int(df['total'].sum())
        ws.cell(row=current_row, column=4, value="Total Amount:").font = Font(bold=True)
        ws.cell(row=current_row, column=5, value=f"¥{total_amount:,}")
        current_row += 2

        ws.cell(row=current_row, column=1, value="Category").font = Font(bold=True)
        ws.cell(row=current_row, column=2, value="Count").font = Font(bold=True)
        ws.cell(row=current_row, column=3, value="Amount").font = Font(bold=True)
        current_row += 1

        breakdown = df.groupby('category')['total'].agg(['count', 'sum']).sort_values('sum', ascending=False)
        for category, data in breakdown.iterrows():
            ws.cell(row=current_row, column=1, value=category)
            ws.cell(row=current_row, column=2, value=int(data['count']))
            ws.cell(row=current_row, column=3, value=f"¥{int(data['sum']):,}")
            current_row += 1

        return current_row

    @staticmethod
    def create_expense_record(file_path: str,
                              store_name: str,
                              total: int,
                              category: str,
                              date: Optional[str] = None,
                              confidence: int = 0,
                              item_count: int = 0,
                              used_fallback: bool = False) -> Dict[str, Any]:
        """
        Create a properly formatted expense record.

        Args:
            file_path: Source OCR text file
            store_name: Store name of the final receipt
            total: Total in JPY
            category: Receipt-level category
            date: ISO date string (YYYY-MM-DD)
            confidence: OCR confidence score (0-100)
            item_count: Number of extracted items
            used_fallback: Whether the legacy parse was used

        Returns:
            Expense record dictionary
        """
        return {
            'file_name': Path(file_path).name if file_path else '',
            'store_name': store_name,
            'date': date,
            'total': total,
            'category': category,
            'confidence': confidence,
            'item_count': item_count,
            'used_fallback': used_fallback,
        }
