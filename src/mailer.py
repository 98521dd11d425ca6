"""
Client email for a rigging specification.

Renders the survey and pick list into an HTML report with a plain-text
fallback, embeds component photos as inline attachments referenced by
content-id, and dispatches through the Mailgun HTTP API.
"""

import base64
import binascii
import logging
import re
from collections.abc import Sequence
from html import escape
from typing import Any, TypedDict

import requests

from src import config
from src.exceptions import ConfigurationError, DispatchError, PhotoDecodeError
from src.rig_lib import (
    MiscHardware,
    PickList,
    RiggingComponent,
    sort_pick_list,
)

logger = logging.getLogger(__name__)

_DATA_URI_MIME = re.compile(r"data:(.*?);")


class EmailPhoto(TypedDict, total=False):
    """A photo to embed; `cid` and `filename` are filled in by the renderer."""

    data_uri: str
    component_name: str
    cid: str
    filename: str


class RiggingEmail(TypedDict):
    subject: str
    html: str
    text: str
    photos: list[EmailPhoto]


def collect_project_photos(components: Sequence[RiggingComponent]) -> list[EmailPhoto]:
    """Flattens every component's photos, labelled with the component type."""
    photos: list[EmailPhoto] = []
    for c in components:
        for data_uri in c.get("photos", []) or []:
            photos.append({"data_uri": data_uri, "component_name": c.get("type", "Component")})
    return photos


def assign_photo_cids(photos: Sequence[EmailPhoto]) -> list[EmailPhoto]:
    """
    Gives each photo a content-id unique within the message.

    The id is the owning component's name with non-alphanumerics replaced by
    '_', plus the photo's index in the list: "Cap Shroud" -> "Cap_Shroud_0.jpg".
    The same value is used as the attachment filename.
    """
    labelled: list[EmailPhoto] = []
    for index, photo in enumerate(photos):
        safe_name = re.sub(r"[^a-zA-Z0-9]", "_", photo.get("component_name", ""))
        cid = f"{safe_name}_{index}.jpg"
        labelled.append({**photo, "cid": cid, "filename": cid})
    return labelled


def decode_photo(photo: EmailPhoto) -> tuple[str, bytes, str]:
    """
    Decodes a data-URI photo for attachment.

    Returns:
        (filename, raw bytes, MIME type). MIME defaults to image/jpeg when the
        header does not name one.

    Raises:
        PhotoDecodeError: If the URI has no payload or the base64 is invalid.
    """
    parts = photo.get("data_uri", "").split(",", 1)
    if len(parts) < 2 or not parts[1]:
        raise PhotoDecodeError(f"Photo for {photo.get('component_name')} has no data.")

    header, payload = parts
    mime_match = _DATA_URI_MIME.match(header)
    mime_type = mime_match.group(1) if mime_match and mime_match.group(1) else "image/jpeg"

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PhotoDecodeError(
            f"Photo for {photo.get('component_name')} is not valid base64: {e}"
        ) from e

    return photo.get("filename", "photo.jpg"), data, mime_type


def build_inline_attachments(photos: Sequence[EmailPhoto]) -> list[tuple[str, bytes, str]]:
    """Decodes every photo, dropping (and logging) any that are malformed."""
    attachments = []
    for photo in photos:
        try:
            attachments.append(decode_photo(photo))
        except PhotoDecodeError as e:
            logger.warning(f"Dropping photo attachment: {e}")
    return attachments


# --- Rendering ---


def _table(headers: list[str], rows: list[list[Any]]) -> str:
    head = "".join(f"<th align=\"left\">{escape(h)}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{escape(str(v))}</td>" for v in row) + "</tr>"
        for row in rows
    )
    return (
        '<table border="1" cellpadding="6" cellspacing="0" '
        'style="border-collapse:collapse;font-size:13px">'
        f"<thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"
    )


def _render_html(
    project_name: str,
    vessel_name: str,
    boat_type: str | None,
    components: Sequence[RiggingComponent],
    misc: Sequence[MiscHardware],
    pick_list: PickList,
    photos: Sequence[EmailPhoto],
) -> str:
    parts = [
        '<div style="font-family:Arial,Helvetica,sans-serif;color:#1b2a3a">',
        f"<h1>Rigging Specification: {escape(vessel_name)}</h1>",
        f"<p><strong>Project:</strong> {escape(project_name)}</p>",
    ]
    if boat_type:
        parts.append(f"<p><strong>Boat Type:</strong> {escape(boat_type)}</p>")

    if pick_list["wire"]:
        parts.append("<h2>Wire &amp; Standing Rigging</h2>")
        parts.append(
            _table(
                ["Material", "Diameter", "Length (m)"],
                [[w["material"], w["diameter"], f"{w['length']:.2f}"] for w in pick_list["wire"]],
            )
        )
    if pick_list["fittings"]:
        parts.append("<h2>Fittings &amp; Terminals</h2>")
        parts.append(
            _table(
                ["Type", "Pin Size", "Wire Dia", "Qty"],
                [[f["type"], f["pin_size"], f["diameter"], f["quantity"]] for f in pick_list["fittings"]],
            )
        )
    if pick_list["pins"]:
        parts.append("<h2>Clevis Pins</h2>")
        parts.append(
            _table(["Size", "Qty"], [[p["size"], p["quantity"]] for p in pick_list["pins"]])
        )
    if misc:
        parts.append("<h2>Miscellaneous Hardware</h2>")
        parts.append(
            _table(
                ["Item", "Qty", "Notes"],
                [[m.get("item", ""), m.get("quantity", ""), m.get("notes", "")] for m in misc],
            )
        )

    if components:
        parts.append("<h2>Surveyed Components</h2>")
        parts.append(
            _table(
                ["Type", "Qty", "Length", "Diameter", "Material", "Upper", "Upper Pin", "Lower", "Lower Pin", "Notes"],
                [
                    [
                        c.get("type", ""),
                        c.get("quantity", ""),
                        c.get("length", ""),
                        c.get("diameter", ""),
                        c.get("material", ""),
                        c.get("upper_termination", ""),
                        c.get("pin_size_upper", ""),
                        c.get("lower_termination", ""),
                        c.get("pin_size_lower", ""),
                        c.get("notes", ""),
                    ]
                    for c in components
                ],
            )
        )

    if photos:
        parts.append("<h2>Photos</h2>")
        for photo in photos:
            parts.append(
                '<figure style="display:inline-block;margin:8px">'
                f'<img src="cid:{escape(photo["cid"])}" width="280" '
                f'alt="{escape(photo.get("component_name", ""))}">'
                f"<figcaption>{escape(photo.get('component_name', ''))}</figcaption></figure>"
            )

    parts.append(
        "<p style=\"font-size:12px;color:#5b6b7b\">Unit prices are quoted separately. "
        "Please confirm pin diameters before ordering terminals.</p></div>"
    )
    return "".join(parts)


def _render_text(
    project_name: str,
    vessel_name: str,
    boat_type: str | None,
    misc: Sequence[MiscHardware],
    pick_list: PickList,
) -> str:
    lines = [f"Rigging Specification: {vessel_name}", f"Project: {project_name}"]
    if boat_type:
        lines.append(f"Boat Type: {boat_type}")

    if pick_list["wire"]:
        lines += ["", "WIRE & STANDING RIGGING"]
        lines += [f"  {w['material']} {w['diameter']}: {w['length']:.2f} m" for w in pick_list["wire"]]
    if pick_list["fittings"]:
        lines += ["", "FITTINGS & TERMINALS"]
        lines += [
            f"  {f['quantity']} x {f['type']} (pin {f['pin_size']}, wire {f['diameter']})"
            for f in pick_list["fittings"]
        ]
    if pick_list["pins"]:
        lines += ["", "CLEVIS PINS"]
        lines += [f"  {p['quantity']} x {p['size']}" for p in pick_list["pins"]]
    if misc:
        lines += ["", "MISCELLANEOUS HARDWARE"]
        lines += [f"  {m.get('quantity', '')} x {m.get('item', '')}" for m in misc]

    lines += ["", "The full report with photos is in the HTML version of this email."]
    return "\n".join(lines)


def generate_rigging_email(
    project_name: str,
    vessel_name: str,
    boat_type: str | None,
    recipient_email: str,
    components: Sequence[RiggingComponent],
    misc: Sequence[MiscHardware],
    pick_list: PickList,
    photos: Sequence[EmailPhoto] | None = None,
) -> RiggingEmail:
    """
    Renders the rigging specification email.

    Rendering is deterministic; fittings and pins are sorted for display.

    Args:
        project_name: Survey reference.
        vessel_name: The vessel's name.
        boat_type: Optional production boat model.
        recipient_email: Destination address (checked at send time).
        components: Raw rigging components.
        misc: Miscellaneous hardware lines.
        pick_list: Aggregated totals for the components.
        photos: Photos to embed (see collect_project_photos).

    Returns:
        A RiggingEmail with subject, html, text, and the photos with their
        content-ids assigned.
    """
    labelled = assign_photo_cids(photos or [])
    ordered = sort_pick_list(pick_list)
    logger.debug(f"Rendering rigging email for {vessel_name} to {recipient_email}")

    return {
        "subject": f"Rigging Specification: {vessel_name} - {project_name}",
        "html": _render_html(project_name, vessel_name, boat_type, components, misc, ordered, labelled),
        "text": _render_text(project_name, vessel_name, boat_type, misc, ordered),
        "photos": labelled,
    }


def email_from_draft(draft: dict[str, str]) -> RiggingEmail:
    """Wraps a plain-text {subject, body} draft as a sendable email."""
    body = draft.get("body", "")
    return {
        "subject": draft.get("subject", ""),
        "html": f'<pre style="font-family:inherit;white-space:pre-wrap">{escape(body)}</pre>',
        "text": body,
        "photos": [],
    }


# --- Dispatch ---


def send_rigging_email(
    email: RiggingEmail,
    recipient_email: str,
    session: requests.Session | None = None,
) -> dict[str, Any]:
    """
    Sends the email through Mailgun with photos as inline attachments.

    Args:
        email: A rendered email (see generate_rigging_email).
        recipient_email: The single recipient.
        session: Optional requests session (reused connections, testing).

    Returns:
        Mailgun's JSON response (contains the message id).

    Raises:
        ConfigurationError: If MAILGUN_DOMAIN / MAILGUN_API_KEY or the
            recipient are missing. Raised before any network call.
        DispatchError: If the HTTP call fails or Mailgun rejects the message.
    """
    domain = config.get_mailgun_domain()
    api_key = config.get_mailgun_api_key()
    if not domain or not api_key:
        raise ConfigurationError(
            "MAILGUN_DOMAIN and MAILGUN_API_KEY environment variables must be set."
        )
    if not recipient_email or not recipient_email.strip():
        raise ConfigurationError("A recipient email address is required.")

    attachments = build_inline_attachments(email["photos"])

    data = {
        "from": f"{config.get_email_brand()} <postmaster@{domain}>",
        "to": [recipient_email.strip()],
        "subject": email["subject"],
        "text": email["text"],
        "html": email["html"],
    }
    files = [("inline", attachment) for attachment in attachments]

    http = session or requests
    url = f"{config.get_mailgun_api_base()}/{domain}/messages"

    try:
        response = http.post(url, auth=("api", api_key), data=data, files=files, timeout=30)
    except requests.RequestException as e:
        logger.error(f"Mailgun sending failed: {e}")
        raise DispatchError(f"Failed to dispatch email via Mailgun: {e}") from e

    if not response.ok:
        try:
            message = response.json().get("message") or response.text
        except ValueError:
            message = response.text
        logger.error(f"Mailgun rejected message ({response.status_code}): {message}")
        raise DispatchError(message or f"Mailgun returned HTTP {response.status_code}")

    logger.info(
        f"Sent rigging email to {recipient_email} with {len(attachments)} inline photo(s)"
    )
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}
