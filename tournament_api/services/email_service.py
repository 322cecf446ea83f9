"""
Email service using SendGrid for sending match reminders.
"""

import os
import asyncio
import logging
from html import escape
from typing import Dict, List
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, Content
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def get_bool_env(key: str, default: bool = True) -> bool:
    """
    Parse a boolean environment variable from a string value.

    .env files store all values as strings, so this function converts string
    values like "true", "True", "TRUE", "1", "yes" to True, and everything
    else (including "false", "False", "0", "no", empty string) to False.

    Args:
        key: Environment variable name
        default: Default value if the variable is not set

    Returns:
        bool: Parsed boolean value
    """
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


# SendGrid Configuration
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
SENDGRID_FROM_EMAIL = os.getenv("SENDGRID_FROM_EMAIL", "noreply@tournament.local")
ENABLE_EMAIL = get_bool_env("ENABLE_EMAIL", default=True)

APP_NAME = os.getenv("APP_NAME", "Tournament Manager")


def is_enabled() -> bool:
    """Check if email sending is enabled and configured."""
    return ENABLE_EMAIL and bool(SENDGRID_API_KEY)


def build_match_reminder(match: Dict, team_name: str) -> Dict[str, str]:
    """
    Render the reminder subject and HTML body for one team.

    Args:
        match: Match dict with tournament_name, home_team_name, away_team_name,
            play_date and venue_name
        team_name: Team the reminder is addressed to

    Returns:
        Dict with subject and html
    """
    subject = f"Match Reminder: {team_name} - {match.get('tournament_name') or APP_NAME}"
    location = match.get("venue_name") or "To be announced"
    html = f"""
<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;padding:20px;border:1px solid #e0e0e0;border-radius:5px;">
  <h2 style="color:#10b981;text-align:center;">Upcoming Match Reminder</h2>
  <p>Dear <strong>{escape(team_name)}</strong> team member,</p>
  <p>This is a friendly reminder of your upcoming match:</p>
  <div style="background:#f9fafb;padding:15px;border-radius:5px;margin:15px 0;">
    <p><strong>Tournament:</strong> {escape(str(match.get('tournament_name') or ''))}</p>
    <p><strong>Match:</strong> {escape(str(match.get('home_team_name')))} vs {escape(str(match.get('away_team_name')))}</p>
    <p><strong>Date &amp; Time:</strong> {escape(str(match.get('play_date')))} (UTC)</p>
    <p><strong>Location:</strong> {escape(str(location))}</p>
  </div>
  <p>Please arrive at least <strong>30 minutes</strong> before kick-off.</p>
  <p>Good luck!</p>
  <div style="text-align:center;margin-top:20px;padding-top:15px;border-top:1px solid #e0e0e0;font-size:12px;color:#6b7280;">
    This is an automated message from {escape(APP_NAME)}. Please do not reply.
  </div>
</div>
""".strip()
    return {"subject": subject, "html": html}


async def send_match_reminder(match: Dict, team_name: str, recipients: List[str]) -> bool:
    """
    Send the match reminder for one team to its players via SendGrid.

    Args:
        match: Match dict (see build_match_reminder)
        team_name: Team the reminder is addressed to
        recipients: Player email addresses, must not be empty

    Returns:
        bool: True if the email was sent (or sending is disabled), False otherwise
    """
    if not ENABLE_EMAIL:
        logger.info("Email sending is disabled. Match reminder skipped.")
        return True

    # If SendGrid is not configured, log warning and return True (don't fail the request)
    if not SENDGRID_API_KEY:
        logger.warning("SENDGRID_API_KEY not configured. Match reminder skipped.")
        return True

    try:
        content = build_match_reminder(match, team_name)
        message = Mail(
            from_email=Email(SENDGRID_FROM_EMAIL),
            to_emails=recipients,
            subject=content["subject"],
            html_content=Content("text/html", content["html"]),
        )

        sg = SendGridAPIClient(SENDGRID_API_KEY)
        # The SendGrid client is blocking
        response = await asyncio.to_thread(sg.send, message)

        if 200 <= response.status_code < 300:
            logger.info(f"Match reminder for {team_name} sent to {len(recipients)} recipients")
            return True
        logger.error(f"SendGrid returned status {response.status_code}: {response.body}")
        return False

    except Exception as e:
        logger.error(f"Failed to send match reminder for {team_name}: {str(e)}")
        return False
