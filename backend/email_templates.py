"""
HTML bodies for event notification emails.
"""

from html import escape
from typing import Optional

from .date_utils import format_date_long, format_time
from .event_model import Event, OwnerType


_BASE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>CLAS Planning</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f5f5f5;">
    <table width="100%" cellpadding="0" cellspacing="0" style="background-color: #f5f5f5; padding: 20px;">
        <tr><td align="center">
            <table width="600" cellpadding="0" cellspacing="0" style="background-color: #ffffff; border-radius: 8px;">
                <tr><td style="background-color: #3b82f6; padding: 30px; text-align: center;">
                    <h1 style="margin: 0; color: #ffffff; font-size: 24px;">CLAS Planning</h1>
                </td></tr>
                <tr><td style="padding: 40px 30px;">{content}</td></tr>
                <tr><td style="background-color: #f9fafb; padding: 20px 30px; text-align: center;">
                    <p style="margin: 0; color: #6b7280; font-size: 12px;">This email was sent automatically by the planning service.</p>
                </td></tr>
            </table>
        </td></tr>
    </table>
</body>
</html>"""

_PARAGRAPH = '<p style="margin: 0 0 20px 0; color: #374151; font-size: 16px; line-height: 1.6;">{}</p>'
_DETAIL = ('<div style="margin-bottom: 12px;"><strong style="color: #374151;">{}:</strong> '
           '<span style="color: #6b7280;">{}</span></div>')


def _page(*paragraphs: str) -> str:
    return _BASE.replace("{content}", "\n".join(paragraphs))


def format_event_when(event: Event) -> str:
    """Date line of an event, with the start time unless it lasts all day."""
    day = format_date_long(event.start_time)
    if event.all_day:
        return day
    return f"{day} at {format_time(event.start_time)}"


def event_details(event: Event, clas_name: Optional[str] = None) -> str:
    rows = [_DETAIL.format("Date", escape(format_date_long(event.start_time)))]
    if not event.all_day:
        hours = f"{format_time(event.start_time)} - {format_time(event.end_time)}"
        rows.append(_DETAIL.format("Time", hours))
    if event.location:
        rows.append(_DETAIL.format("Location", escape(event.location)))
    if event.owner_type == OwnerType.CLAS and clas_name:
        rows.append(_DETAIL.format("CLAS", escape(clas_name)))
    if event.description:
        rows.append(_DETAIL.format("Description", escape(event.description)))

    return (
        '<div style="background-color: #f9fafb; border-left: 4px solid #3b82f6; padding: 20px; margin: 20px 0;">'
        f'<h2 style="margin: 0 0 16px 0; color: #111827; font-size: 20px;">{escape(event.title)}</h2>'
        + "".join(rows)
        + '</div>'
    )


def event_created_template(recipient_name: str, event: Event, creator_name: str,
                           clas_name: Optional[str] = None) -> str:
    return _page(
        _PARAGRAPH.format(f"Hello {escape(recipient_name)},"),
        _PARAGRAPH.format(
            f"You have been added as a participant to a new event by <strong>{escape(creator_name)}</strong>."
        ),
        event_details(event, clas_name),
        _PARAGRAPH.format("Sign in to the planning to see every detail of this event."),
    )


def event_updated_template(recipient_name: str, event: Event, updater_name: str,
                           clas_name: Optional[str] = None) -> str:
    return _page(
        _PARAGRAPH.format(f"Hello {escape(recipient_name)},"),
        _PARAGRAPH.format(
            f"An event you take part in was modified by <strong>{escape(updater_name)}</strong>."
        ),
        event_details(event, clas_name),
        _PARAGRAPH.format("Please review these changes in the planning."),
    )


def event_deleted_template(recipient_name: str, event_title: str, event_when: str,
                           deleter_name: str) -> str:
    cancelled = (
        '<div style="background-color: #fef2f2; border-left: 4px solid #ef4444; padding: 20px; margin: 20px 0;">'
        f'<h2 style="margin: 0 0 12px 0; color: #991b1b; font-size: 20px;">{escape(event_title)}</h2>'
        f'<div style="color: #7f1d1d;"><strong>Planned for:</strong> {escape(event_when)}</div>'
        '</div>'
    )
    return _page(
        _PARAGRAPH.format(f"Hello {escape(recipient_name)},"),
        _PARAGRAPH.format(
            f"The following event you took part in was cancelled by <strong>{escape(deleter_name)}</strong>:"
        ),
        cancelled,
        _PARAGRAPH.format("It has been removed from your calendar."),
    )
