from html import escape

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from estate_watch.models import Listing, Salutation


def rooms_label(count: int | None) -> str | None:
    if count is None:
        return None
    return f"{count} room" if count == 1 else f"{count} rooms"


def contact_line(salutation: Salutation | None) -> str | None:
    if salutation is None:
        return None
    title = "Herr" if salutation.gender == "male" else "Frau"
    return f"👤 Contact: {title} {escape(salutation.last_name)}"


def format_caption(li: Listing, service_name: str | None = None) -> str:
    # Bold price/size/rooms header, blank line, then location block
    facts = [v for v in (li.price, li.size, rooms_label(li.room_count)) if v]
    header = f'<b>{escape(" · ".join(facts))}</b>' if facts else "<b>New listing</b>"
    if service_name:
        header = f"{header} — {escape(service_name)}"

    location = escape(li.address)
    if li.suburb:
        location = f"{location} ({escape(li.suburb)})"

    lines = [header, "", escape(li.title), "", f"📍 {location}"]
    contact = contact_line(li.salutation)
    if contact:
        lines.append(contact)
    return "\n".join(lines)


def build_keyboard(li: Listing, source_name: str | None = None) -> InlineKeyboardMarkup:
    label = f"🏢 Open on {source_name}" if source_name else "🏢 Open listing"
    return InlineKeyboardMarkup([[InlineKeyboardButton(label, url=li.link)]])
