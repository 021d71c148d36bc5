"""
Unit tests for outbound message composition.
"""

from app.models.submission import ImageAttachment, NormalizedLocation
from app.services.location import normalize_location
from app.services.message_builder import build_delivery_message, field_label

SUBJECT = "New Waste Collection Request"
REQUIRED = ["name", "contactNumber", "wasteType", "location"]


def _fields() -> dict:
    return {
        "name": "Asha",
        "contactNumber": "98450 00000",
        "wasteType": "Plastic",
        "location": {"lat": 12.9716, "lng": 77.5946},
    }


class TestFieldLabel:

    def test_known_labels(self):
        assert field_label("contactNumber") == "Contact Number"
        assert field_label("wasteType") == "Type of Waste"
        assert field_label("wasteAmount") == "Amount of Waste"

    def test_camel_case_key(self):
        assert field_label("pickupDate") == "Pickup Date"

    def test_snake_case_key(self):
        assert field_label("preferred_time") == "Preferred Time"


class TestBuildDeliveryMessage:

    def test_text_body_lists_fields_in_required_order(self):
        fields = _fields()
        message = build_delivery_message(
            fields, normalize_location(fields["location"]), [], SUBJECT, REQUIRED
        )

        assert message.subject == SUBJECT
        assert message.text_body.splitlines() == [
            SUBJECT,
            "",
            "Name: Asha",
            "Contact Number: 98450 00000",
            "Type of Waste: Plastic",
            "Location: 12.9716, 77.5946",
            "Map: https://www.google.com/maps/search/?api=1&query=12.9716,77.5946",
        ]

    def test_html_body_contains_map_link(self):
        fields = _fields()
        message = build_delivery_message(
            fields, normalize_location(fields["location"]), [], SUBJECT, REQUIRED
        )

        assert "<li><b>Type of Waste:</b> Plastic</li>" in message.html_body
        assert 'href="https://www.google.com/maps/search/?api=1&amp;query=12.9716,77.5946"' in message.html_body
        assert "View on Google Maps" in message.html_body

    def test_no_map_line_without_map_url(self):
        fields = {"name": "Asha", "location": {"address": "MG Road"}}
        message = build_delivery_message(
            fields, normalize_location(fields["location"]), [], SUBJECT, ["name", "location"]
        )

        assert "Map:" not in message.text_body
        assert "View on Google Maps" not in message.html_body
        assert message.map_url is None

    def test_values_are_html_escaped(self):
        fields = {"name": "<script>alert(1)</script>", "location": "A & B"}
        message = build_delivery_message(
            fields, normalize_location(fields["location"]), [], SUBJECT, ["name", "location"]
        )

        assert "<script>" not in message.html_body
        assert "&lt;script&gt;" in message.html_body
        assert "A &amp; B" in message.html_body
        # Plain text keeps the raw value
        assert "Name: <script>alert(1)</script>" in message.text_body

    def test_optional_and_extra_fields_are_appended(self):
        fields = {"name": "Asha", "location": "MG Road", "email": "asha@example.com", "notes": ""}
        message = build_delivery_message(
            fields, NormalizedLocation(display_string="MG Road"), [], SUBJECT, ["name", "location"]
        )

        assert list(message.fields) == ["name", "location", "email"]
        assert message.text_body.splitlines()[-1] == "Email: asha@example.com"

    def test_blank_optional_location_is_omitted(self):
        fields = {"name": "Asha", "location": "   "}
        message = build_delivery_message(
            fields, normalize_location(fields["location"]), [], SUBJECT, ["name"]
        )

        assert message.fields == {"name": "Asha"}
        assert message.map_url is None
        assert "Location:" not in message.text_body
        assert "Location" not in message.html_body
        assert "Map:" not in message.text_body

    def test_fields_keep_form_keys(self):
        fields = _fields()
        message = build_delivery_message(
            fields, normalize_location(fields["location"]), [], SUBJECT, REQUIRED
        )

        assert message.fields == {
            "name": "Asha",
            "contactNumber": "98450 00000",
            "wasteType": "Plastic",
            "location": "12.9716, 77.5946",
        }

    def test_attachments_are_carried(self):
        image = ImageAttachment(filename="bin.jpg", content=b"jpeg", content_type="image/jpeg")
        message = build_delivery_message(
            {"name": "Asha"}, None, [image], SUBJECT, ["name"]
        )

        assert message.attachments == [image]
        assert "Attachments: 1 image(s)" in message.text_body

    def test_deterministic(self):
        fields = _fields()
        location = normalize_location(fields["location"])

        first = build_delivery_message(fields, location, [], SUBJECT, REQUIRED)
        second = build_delivery_message(fields, location, [], SUBJECT, REQUIRED)

        assert first == second
