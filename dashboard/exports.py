"""
Sales report downloads: an openpyxl workbook or a reportlab PDF built from
the dict returned by reports.build_sales_report().
"""
import io

import openpyxl
from django.http import HttpResponse
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from brewpos.utils import format_currency

REPORT_TITLE = "Sales Report"
EXCEL_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def report_filename(report, extension):
    return f"sales_report_{report['start_date']}_{report['end_date']}.{extension}"


def summary_rows(report):
    return [
        ['Total Sales', format_currency(report['total_sales'])],
        ['Total Orders', str(report['total_orders'])],
        ['Average Order Value', format_currency(report['average_order_value'])],
    ]


def top_item_rows(report):
    return [
        [item['name'], str(item['quantity']), format_currency(item['revenue'])]
        for item in report['top_items']
    ]


def daily_rows(report):
    return [
        [
            day['date'].strftime('%Y-%m-%d'),
            str(day['total_orders']),
            format_currency(day['total_sales']),
            format_currency(day['total_tax']),
        ]
        for day in report['daily_breakdown']
    ]


def build_sales_report_workbook(report):
    """Generate the Excel sales report"""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Sales Report"

    header_font = Font(bold=True, size=12)
    title_font = Font(bold=True, size=16)

    ws['A1'] = REPORT_TITLE
    ws['A1'].font = title_font
    ws['A2'] = f"Period: {report['start_date']:%Y-%m-%d} to {report['end_date']:%Y-%m-%d}"
    ws.merge_cells('A1:D1')
    ws.merge_cells('A2:D2')

    row = 4
    for label, value in summary_rows(report):
        ws.cell(row=row, column=1, value=label).font = header_font
        ws.cell(row=row, column=2, value=value)
        row += 1

    row += 1
    ws.cell(row=row, column=1, value="Top Items").font = title_font
    row += 1
    for col, header in enumerate(['Item', 'Quantity', 'Revenue'], 1):
        ws.cell(row=row, column=col, value=header).font = header_font
    for values in top_item_rows(report):
        row += 1
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

    row += 2
    ws.cell(row=row, column=1, value="Daily Breakdown").font = title_font
    row += 1
    for col, header in enumerate(['Date', 'Orders', 'Sales', 'Tax'], 1):
        ws.cell(row=row, column=col, value=header).font = header_font
    for values in daily_rows(report):
        row += 1
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

    # Auto-adjust columns
    for column in ws.iter_cols(min_row=3):
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 40)

    return wb


def sales_report_excel_response(report):
    wb = build_sales_report_workbook(report)
    response = HttpResponse(content_type=EXCEL_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{report_filename(report, "xlsx")}"'
    wb.save(response)
    return response


def table_with_style(data):
    table = Table(data)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 10),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('BACKGROUND', (0, 1), (-1, -1), colors.beige),
        ('GRID', (0, 0), (-1, -1), 1, colors.black)
    ]))
    return table


def build_sales_report_pdf(report):
    """Generate the PDF sales report and return its bytes"""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4)
    story = []

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ReportTitle',
        parent=styles['Heading1'],
        fontSize=18,
        spaceAfter=30,
        alignment=1
    )

    story.append(Paragraph(REPORT_TITLE, title_style))
    story.append(Paragraph(
        f"Period: {report['start_date']:%Y-%m-%d} to {report['end_date']:%Y-%m-%d}", styles['Heading2']
    ))
    story.append(Spacer(1, 20))

    story.append(table_with_style([['Summary', '']] + summary_rows(report)))
    story.append(Spacer(1, 20))

    story.append(Paragraph("Top Items", styles['Heading2']))
    story.append(table_with_style([['Item', 'Quantity', 'Revenue']] + top_item_rows(report)))
    story.append(Spacer(1, 20))

    story.append(Paragraph("Daily Breakdown", styles['Heading2']))
    story.append(table_with_style([['Date', 'Orders', 'Sales', 'Tax']] + daily_rows(report)))

    doc.build(story)
    return buffer.getvalue()


def sales_report_pdf_response(report):
    response = HttpResponse(build_sales_report_pdf(report), content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{report_filename(report, "pdf")}"'
    return response
