"""
Email templates for GameLearn.

All templates use inline CSS for maximum email client compatibility.

Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

from html import escape

# Color constants
BG_PAGE = "#F4F6FB"
BG_CARD = "#FFFFFF"
ACCENT = "#4F46E5"
TEXT_PRIMARY = "#111827"
TEXT_SECONDARY = "#4B5563"
BORDER = "#E5E7EB"

APP_NAME = "GameLearn"

_MILESTONE_HEADLINES = {
    25: "You're a quarter of the way there",
    50: "Halfway through",
    75: "Three quarters done",
    100: "Course complete",
}


def _base_layout(content: str, app_name: str = APP_NAME) -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{app_name}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BG_PAGE}; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: {BG_PAGE};">
        <tr>
            <td align="center" style="padding: 40px 20px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%;">
                    <tr>
                        <td align="center" style="padding-bottom: 32px;">
                            <span style="font-size: 22px; font-weight: 700; color: {ACCENT};">{app_name}</span>
                        </td>
                    </tr>
                    <tr>
                        <td style="background-color: {BG_CARD}; border: 1px solid {BORDER}; border-radius: 12px; padding: 40px 32px;">
                            {content}
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding-top: 32px;">
                            <p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
                                You are receiving this because you are enrolled in a course on {app_name}.
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""


def _button(url: str, label: str) -> str:
    """Render a CTA button."""
    return f"""\
<table role="presentation" cellspacing="0" cellpadding="0" border="0" style="margin: 28px auto;">
    <tr>
        <td align="center" style="background-color: {ACCENT}; border-radius: 8px;">
            <a href="{url}" target="_blank" style="display: inline-block; padding: 14px 32px; color: #FFFFFF; font-size: 16px; font-weight: 600; text-decoration: none; border-radius: 8px;">
                {label}
            </a>
        </td>
    </tr>
</table>"""


def progress_milestone(
    user_name: str | None,
    course_title: str,
    milestone: int,
    completed_lessons: int,
    total_lessons: int,
    course_url: str,
) -> tuple[str, str, str]:
    """
    Course progress milestone (25/50/75/100%).

    Returns:
        (subject, html_body, text_body)
    """
    name = escape(user_name or "there")
    title = escape(course_title)
    headline = _MILESTONE_HEADLINES.get(milestone, f"{milestone}% complete")
    if milestone >= 100:
        subject = f"You completed {course_title}!"
        cta = "Review the course"
    else:
        subject = f"{milestone}% of {course_title} done"
        cta = "Continue learning"

    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 24px; font-weight: 700; margin: 0 0 16px 0;">{headline}!</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 8px 0;">Hi {name},</p>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 24px 0;">
    You have completed <strong style="color: {TEXT_PRIMARY};">{completed_lessons} of {total_lessons}</strong>
    lessons in <strong style="color: {TEXT_PRIMARY};">{title}</strong> ({milestone}%).
</p>
{_button(course_url, cta)}
<hr style="border: none; border-top: 1px solid {BORDER}; margin: 24px 0;">
<p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
    If the button doesn't work, copy and paste this URL:<br>
    <a href="{course_url}" style="color: {ACCENT}; word-break: break-all;">{course_url}</a>
</p>"""
    html_body = _base_layout(content)
    text_body = (
        f"Hi {user_name or 'there'},\n\n"
        f"{headline}! You have completed {completed_lessons} of {total_lessons} "
        f"lessons in {course_title} ({milestone}%).\n\n"
        f"{cta}: {course_url}\n\n"
        f"-- The {APP_NAME} Team"
    )
    return subject, html_body, text_body
