"""Block Kit formatters for bid notifications."""

from __future__ import annotations

from datetime import date, datetime

from ..models import Bid


STATUS_EMOJI = {
    "New": "🆕",
    "Reviewing": "🔎",
    "Submitted": "📨",
    "Won": "🏆",
    "Lost": "❌",
    "Archived": "🗄️",
}


def _header(text: str) -> dict:
    return {"type": "header", "text": {"type": "plain_text", "text": text[:150], "emoji": True}}


def _divider() -> dict:
    return {"type": "divider"}


def _section(mrkdwn: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": mrkdwn}}


def _context(text: str) -> dict:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def _fmt_date(value: date | datetime | None) -> str:
    if value is None:
        return "TBD"
    if isinstance(value, datetime):
        return value.strftime("%b %d, %Y %I:%M %p")
    return value.strftime("%b %d, %Y")


def _link(url: str | None, label: str) -> str:
    return f"<{url}|{label}>" if url else ""


def _bid_details(bid: Bid) -> list[dict]:
    emoji = STATUS_EMOJI.get(bid.status.value, "❓")
    owner = bid.owner_name or "Unassigned"
    blocks = [
        _section(
            f"*Client:* {bid.client or 'N/A'}  •  *Owner:* {owner}\n"
            f"*Due:* {_fmt_date(bid.due_date)}  •  *Status:* {emoji} {bid.status.value}"
        ),
    ]
    if bid.walk_datetime:
        where = f" @ {bid.walk_location}" if bid.walk_location else ""
        blocks.append(_section(f"*Walkthrough:* {_fmt_date(bid.walk_datetime)}{where}"))
    links = " | ".join(
        part
        for part in (
            _link(bid.posting_url, "Posting"),
            _link(bid.drive_folder_ref, "Folder"),
            _link(bid.draft_doc_ref, "Draft"),
        )
        if part
    )
    if links:
        blocks.append(_context(links))
    return blocks


def format_new_bid(bid: Bid) -> tuple[str, list[dict]]:
    """Return (fallback text, blocks) for a newly synced bid."""
    text = f"New bid {bid.id}: {bid.name}"
    blocks = [_header(f"🆕 New bid — {bid.name or bid.id}"), *_bid_details(bid), _divider()]
    return text, blocks


def format_bid_update(bid: Bid) -> tuple[str, list[dict]]:
    """Return (fallback text, blocks) for an updated bid."""
    text = f"Bid updated {bid.id}: {bid.name}"
    blocks = [_header(f"✏️ Updated — {bid.name or bid.id}"), *_bid_details(bid), _divider()]
    return text, blocks


def format_digest(new_bids: list[Bid], updated_bids: list[Bid], date_str: str | None = None) -> tuple[str, list[dict]]:
    """Build a single run summary of new and updated bids."""
    if date_str is None:
        date_str = datetime.now().strftime("%b %d, %Y %I:%M %p")

    text = f"Bid sync: {len(new_bids)} new, {len(updated_bids)} updated"
    blocks: list[dict] = [
        _header(f"📊 Bid sync summary — {date_str}"),
        _section(f"*🆕 New:* {len(new_bids)}  |  *✏️ Updated:* {len(updated_bids)}"),
        _divider(),
    ]
    for bid in new_bids[:10]:
        blocks.append(_section(f"🆕 *{bid.id}* {bid.name[:80]} — due {_fmt_date(bid.due_date)}"))
    for bid in updated_bids[:10]:
        blocks.append(_section(f"✏️ *{bid.id}* {bid.name[:80]} — {bid.status.value}"))
    blocks.append(_context(f"Generated: {date_str}"))
    return text, blocks
