import logging
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Any, List, Optional

import config

logger = logging.getLogger(__name__)


# =======================================
# SECTION: GENERIC HTML EMAIL SENDER
# =======================================

def send_html_email(to_email: str, subject: str, html_body: str, text_body: str) -> None:
    """Raises on any SMTP problem. Callers on the booking path must not use this directly."""
    if not config.smtp_configured():
        raise RuntimeError("SMTP settings are not fully configured on the server")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f"{config.NOTIFY_FROM_NAME} <{config.NOTIFY_FROM_EMAIL}>"
    msg["To"] = to_email
    msg.set_content(text_body)
    msg.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT) as server:
        server.starttls()
        server.login(config.SMTP_USERNAME, config.SMTP_PASSWORD)
        server.send_message(msg)


# =======================================
# SECTION: HELPERS
# =======================================

def _e(value: Any) -> str:
    return escape(str(value)) if value is not None else ""


def _first(items: Any) -> Optional[dict]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def _row(label: str, value: str) -> str:
    return (
        f'<tr><td style="padding:8px"><b>{label}</b></td>'
        f'<td style="padding:8px">{value}</td></tr>'
    )


def _first_segment(offer: Optional[dict]) -> Optional[dict]:
    if not offer:
        return None
    itinerary = _first(offer.get("itineraries"))
    if not itinerary:
        return None
    return _first(itinerary.get("segments"))


def _endpoint_label(point: Any) -> Optional[str]:
    if not isinstance(point, dict) or not point.get("iataCode"):
        return None
    label = _e(point.get("iataCode"))
    if point.get("at"):
        label += f" ({_e(point.get('at'))})"
    return label


# =======================================
# SECTION: HELD TICKET (PNR) EMAIL
# =======================================

def build_flight_details_rows(booking: Optional[dict]) -> str:
    data = (booking or {}).get("data") if isinstance(booking, dict) else None
    offer = _first(data.get("flightOffers")) if isinstance(data, dict) else None
    if not offer:
        return ""

    rows: List[str] = []
    seg = _first_segment(offer)
    if seg:
        if seg.get("carrierCode") or seg.get("number"):
            rows.append(_row("Flight", f"{_e(seg.get('carrierCode'))} {_e(seg.get('number'))}".strip()))
        dep = _endpoint_label(seg.get("departure"))
        if dep:
            rows.append(_row("From", dep))
        arr = _endpoint_label(seg.get("arrival"))
        if arr:
            rows.append(_row("To", arr))
        aircraft = seg.get("aircraft")
        if isinstance(aircraft, dict) and aircraft.get("code"):
            rows.append(_row("Aircraft", _e(aircraft.get("code"))))

    price = offer.get("price")
    if isinstance(price, dict) and price.get("total"):
        rows.append(_row("Total Price", f"{_e(price.get('total'))} {_e(price.get('currency'))}".strip()))

    return "".join(rows)


def build_travelers_html(booking: Optional[dict]) -> str:
    data = (booking or {}).get("data") if isinstance(booking, dict) else None
    travelers = data.get("travelers") if isinstance(data, dict) else None
    if not isinstance(travelers, list) or not travelers:
        return ""

    blocks: List[str] = []
    for idx, trav in enumerate(travelers):
        if not isinstance(trav, dict):
            continue
        name = trav.get("name") if isinstance(trav.get("name"), dict) else {}
        full_name = f"{_e(name.get('firstName'))} {_e(name.get('lastName'))}".strip()
        blocks.append(
            "<div>"
            f"<b>Traveler #{idx + 1}:</b>"
            "<ul>"
            f"<li>Name: {full_name}</li>"
            f"<li>Date of Birth: {_e(trav.get('dateOfBirth'))}</li>"
            f"<li>Gender: {_e(trav.get('gender'))}</li>"
            "</ul>"
            "</div>"
        )
    return "".join(blocks)


def build_pnr_email_html(pnr: str, booking: Optional[dict] = None) -> str:
    details = build_flight_details_rows(booking)
    travelers = build_travelers_html(booking)

    parts: List[str] = [
        '<div style="font-family: Arial, sans-serif; line-height: 1.7;">',
        '<h1 style="color:#3751a0">Your Ticket is Now Held!</h1>',
        '<p style="font-size:1.1em">',
        "Congratulations, your requested flight has been held successfully.<br/>",
        f'<b>Your PNR (Passenger Name Record): <span style="color:#126e3b;font-size:1.25em">{_e(pnr)}</span></b>',
        "</p>",
    ]
    if details:
        parts.append('<h2 style="margin-bottom:0">Flight Details</h2>')
        parts.append(f'<table style="border-collapse:collapse;width:100%;margin-bottom:16px">{details}</table>')
    if travelers:
        parts.append('<h2 style="margin-bottom:0">Traveler(s) Info</h2>')
        parts.append(travelers)
    parts.extend([
        "<p>",
        "<b>Please note:</b> This is a held reservation. To confirm and issue your ticket, "
        "proceed with payment as per your agent's instructions or airline policy.<br>",
        "If you need help or wish to modify your booking, reply to this email.",
        "</p>",
        '<div style="margin-top:32px; font-size:0.95em; color:#888">',
        "<b>This email was generated automatically. Please do not share your PNR with anyone you do not trust.</b>",
        "</div>",
        "</div>",
    ])
    return "\n".join(parts)


def send_pnr_email(to_email: str, pnr: str, booking: Optional[dict] = None) -> bool:
    """
    Held ticket confirmation.
    Never raises: the request row is already stored by the time this runs.
    Returns True when the message was handed to the SMTP server.
    """
    subject = f"Ticket Held! Your PNR: {pnr}"
    text_body = (
        f"Your requested flight has been held. PNR: {pnr}\n\n"
        "This is a held reservation. Proceed with payment as per your agent's "
        "instructions to issue the ticket."
    )
    try:
        send_html_email(to_email, subject, build_pnr_email_html(pnr, booking), text_body)
    except Exception as e:
        logger.error("[pnr_email] Failed to send PNR email to %s: %s", to_email, e)
        return False
    logger.info("[pnr_email] PNR notification email sent to %s", to_email)
    return True


# =======================================
# SECTION: FLIGHT FOUND EMAIL (no booking step)
# =======================================

def build_flight_found_html(offer: Optional[dict]) -> str:
    seg = _first_segment(offer)
    rows: List[str] = []
    if seg:
        rows.append(f"<li><strong>Flight:</strong> {_e(seg.get('carrierCode'))} {_e(seg.get('number'))}</li>")
        dep = seg.get("departure") if isinstance(seg.get("departure"), dict) else {}
        arr = seg.get("arrival") if isinstance(seg.get("arrival"), dict) else {}
        if dep.get("iataCode"):
            rows.append(f"<li><strong>From:</strong> {_e(dep.get('iataCode'))}</li>")
        if arr.get("iataCode"):
            rows.append(f"<li><strong>To:</strong> {_e(arr.get('iataCode'))}</li>")

    html = "<h1>Matching Flight Found!</h1><p>A flight matching your search was found immediately.</p>"
    if rows:
        html += f"<h3>Flight Details:</h3><ul>{''.join(rows)}</ul>"
    return html


def send_flight_found_email(to_email: str, offer: Optional[dict]) -> bool:
    seg = _first_segment(offer) or {}
    flight_label = f"{seg.get('carrierCode') or ''}{seg.get('number') or ''}"
    subject = f"Flight Found Immediately: {flight_label}!" if flight_label else "Flight Found Immediately!"
    text_body = f"A flight matching your search was found: {flight_label or 'see details'}."
    try:
        send_html_email(to_email, subject, build_flight_found_html(offer), text_body)
    except Exception as e:
        logger.error("[pnr_email] Failed to send flight found email to %s: %s", to_email, e)
        return False
    logger.info("[pnr_email] Flight found email sent to %s", to_email)
    return True
