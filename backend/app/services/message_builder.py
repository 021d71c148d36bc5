"""
Compose the outbound email for a validated submission.
"""

import html
import re
from typing import Any, Mapping, Optional, Sequence

from app.models.submission import DeliveryMessage, ImageAttachment, NormalizedLocation
from app.services.location import as_text

# Labels for the fields the deployed forms actually send. Anything else
# gets a label derived from its key.
FIELD_LABELS = {
    "name": "Name",
    "contactNumber": "Contact Number",
    "phone": "Phone",
    "email": "Email",
    "area": "Area",
    "locality": "Locality",
    "wasteType": "Type of Waste",
    "wasteAmount": "Amount of Waste",
    "location": "Location",
    "message": "Message",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def field_label(key: str) -> str:
    """'pickupDate' -> 'Pickup Date', 'pickup_date' -> 'Pickup Date'."""
    if key in FIELD_LABELS:
        return FIELD_LABELS[key]
    words = _CAMEL_BOUNDARY.sub(" ", key).replace("_", " ").replace("-", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words) or key


def _ordered_fields(
    fields: Mapping[str, Any],
    required: Sequence[str],
    location: Optional[NormalizedLocation],
) -> dict[str, str]:
    """
    Required fields first (in configured order), then any extras as sent.

    Blank optional values are dropped; location uses its display string.
    """
    keys = list(required) + [k for k in fields if k not in required]

    rendered: dict[str, str] = {}
    for key in keys:
        if key == "location" and location is not None:
            text = location.display_string.strip()
        else:
            value = fields.get(key)
            if value is None:
                continue
            text = as_text(value).strip()
        if text:
            rendered[key] = text
    return rendered


def build_delivery_message(
    fields: Mapping[str, Any],
    location: Optional[NormalizedLocation],
    attachments: Sequence[ImageAttachment],
    subject: str,
    required: Sequence[str] = (),
) -> DeliveryMessage:
    """
    Render plain-text and HTML bodies from the submitted fields.

    Output is deterministic for the same input. HTML values are escaped;
    a "View on Google Maps" link is added when the location has a map URL.
    """
    rendered = _ordered_fields(fields, required, location)
    map_url = location.map_url if location is not None else None

    text_lines = [subject, ""]
    text_lines += [f"{field_label(key)}: {value}" for key, value in rendered.items()]
    if map_url:
        text_lines.append(f"Map: {map_url}")
    if attachments:
        text_lines.append(f"Attachments: {len(attachments)} image(s)")

    items = [
        f"    <li><b>{html.escape(field_label(key))}:</b> {html.escape(value)}</li>"
        for key, value in rendered.items()
    ]
    if map_url:
        items.append(
            f'    <li><b>Map:</b> <a href="{html.escape(map_url)}" '
            f'target="_blank">View on Google Maps</a></li>'
        )

    html_body = "\n".join(
        [f"<h2>{html.escape(subject)}</h2>", "<ul>", *items, "</ul>"]
    )

    return DeliveryMessage(
        subject=subject,
        text_body="\n".join(text_lines),
        html_body=html_body,
        attachments=list(attachments),
        fields=rendered,
        map_url=map_url,
    )
