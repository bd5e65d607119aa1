"""
Credential Service
Issues the day's signed credential for a ticket holder and renders it as a QR image.
"""

import base64
from io import BytesIO

import qrcode

QR_BOX_SIZE = 10
QR_BORDER = 2


def credential_date_for(entitlements, today, requested=None):
    """
    Day the holder's QR should be issued for:
    the requested day if entitled, else today, else the next entitled day,
    else the first one. None when nothing matches.
    """
    days = sorted(e.date for e in entitlements)
    if requested is not None:
        return requested if requested in days else None
    if not days:
        return None
    if today in days:
        return today
    return next((day for day in days if day >= today), days[0])


def issue_credential(codec, ticket, on):
    if ticket.status != "ACTIVE":
        return None
    return codec.encode(ticket.ticket_id, ticket.event_id, ticket.user_id, ticket.ticket_code, on)


def render_qr_data_url(credential):
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(credential.to_json())
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffered.getvalue()).decode("utf-8")
