"""Plain-text email bodies for course reserve requests.

Registers the non-video and video reserve templates with the template
engine. Both list the requester details once, then one numbered block per
item with its loan period, notes and current holdings.
"""

from typing import Any, Dict

from core.engine.template_engine import fmt_field, fmt_list, fmt_text, register_template

RULE = "-" * 60


def _header(context: Dict[str, Any], kind: str) -> list[str]:
    req = context["request"]
    lms = req.other_lms if req.lms.lower() == "other" and req.other_lms else req.lms
    lines = [
        f"{kind} course reserve request",
        RULE,
        fmt_field("Requested by", f"{req.name} ({req.email})" if req.email else req.name),
        fmt_field("User ID", context.get("user_id")),
    ]
    if req.on_behalf_of.lower() == "yes" or req.instructor_email:
        lines.append(
            fmt_field(
                "Instructor",
                f"{req.instructor_name} ({req.instructor_email})" if req.instructor_email else req.instructor_name,
            )
        )
    lines += [
        fmt_field("Course", req.course),
        fmt_field("Semester", req.semester),
        fmt_field("Reserve library", req.library),
        fmt_field("Loan period", req.period),
        fmt_field("Learning management system", lms),
        RULE,
    ]
    return lines


def _holdings(prepared) -> list[str]:
    if not prepared.availability:
        return ["   Availability: no holdings information"]
    lines = ["   Availability:"]
    for avail in prepared.availability:
        lines.append(
            f"     - {fmt_text(avail.library)} / {fmt_text(avail.location)} / "
            f"{fmt_text(avail.call_number)} / {fmt_text(avail.availability)}"
        )
    return lines


def render_reserves(context: Dict[str, Any]) -> str:
    lines = _header(context, "Non-video")
    for idx, prepared in enumerate(context["items"], start=1):
        item = prepared.item
        lines += [
            f"{idx}. {fmt_text(item.title)}",
            f"   {fmt_field('Author', item.author)}",
            f"   {fmt_field('Call number', fmt_list(item.call_number))}",
            f"   {fmt_field('Loan period', item.period)}",
            f"   {fmt_field('Notes', item.notes, default='')}",
            f"   Virgo: {prepared.virgo_url}",
        ]
        lines += _holdings(prepared)
        lines.append("")
    return "\n".join(lines)


def render_reserves_video(context: Dict[str, Any]) -> str:
    lines = _header(context, "Video")
    for idx, prepared in enumerate(context["items"], start=1):
        item = prepared.item
        subtitles = item.subtitles
        if subtitles.lower() == "yes" and item.subtitle_language:
            subtitles = f"{subtitles} ({item.subtitle_language})"
        lines += [
            f"{idx}. {fmt_text(item.title)}",
            f"   {fmt_field('Author', item.author)}",
            f"   {fmt_field('Call number', fmt_list(item.call_number))}",
            f"   {fmt_field('Audio language', item.audio_language)}",
            f"   {fmt_field('Subtitles', subtitles)}",
            f"   {fmt_field('Notes', item.notes, default='')}",
            f"   Virgo: {prepared.virgo_url}",
        ]
        lines += _holdings(prepared)
        lines.append("")
    return "\n".join(lines)


# Auto-register on import
register_template("reserves.txt", render_reserves)
register_template("reserves_video.txt", render_reserves_video)
