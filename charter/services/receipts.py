"""
Receipt Service
Renders PDF receipts for completed payments
"""

import logging
import os

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)


class ReceiptService:

    def __init__(self, receipts_dir: str, base_url: str = '/receipts'):
        self.receipts_dir = receipts_dir
        self.base_url = base_url.rstrip('/')

    @staticmethod
    def filename_for(intent) -> str:
        safe_id = ''.join(c if c.isalnum() or c in '-_' else '_' for c in intent.id)
        return f"receipt_{safe_id}.pdf"

    def generate(self, intent) -> str:
        """Write the receipt PDF and return its public URL"""
        os.makedirs(self.receipts_dir, exist_ok=True)
        filename = self.filename_for(intent)
        path = os.path.join(self.receipts_dir, filename)

        doc = SimpleDocTemplate(path, pagesize=A4, title=f"Receipt {intent.id}")
        styles = getSampleStyleSheet()
        elements = [
            Paragraph("PAYMENT RECEIPT", styles['Title']),
            Spacer(1, 12),
        ]

        booking = intent.booking
        paid_at = intent.completed_at or intent.created_at
        data = [
            ["Transaction", intent.id],
            ["Date", paid_at.strftime('%Y-%m-%d %H:%M') if paid_at else '-'],
            ["Amount", f"{intent.currency} {intent.amount}"],
            ["Status", intent.status.value],
            ["Gateway", intent.gateway_id],
        ]
        if intent.payment_method:
            data.append(["Payment Method", intent.payment_method])
        if booking is not None:
            data.extend([
                ["Booking", f"#{booking.id}"],
                ["Experience", booking.resource.name if booking.resource else '-'],
                ["Schedule", f"{booking.date.isoformat()} {booking.start_time}-{booking.end_time}"],
                ["Guests", str(booking.party_size)],
                ["Customer", booking.recipient_name],
            ])

        table = Table(data, colWidths=[150, 300])
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (0, -1), colors.grey),
            ('TEXTCOLOR', (0, 0), (0, -1), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
            ('BACKGROUND', (1, 0), (-1, -1), colors.beige),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
        ]))
        elements.append(table)
        elements.append(Spacer(1, 24))
        elements.append(Paragraph("Thank you for booking with us.", styles['Normal']))

        doc.build(elements)
        logger.info(f"Generated receipt for payment {intent.id}")
        return f"{self.base_url}/{filename}"
