# notifications/emails.py
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import escape


def default_credentials_subject() -> str:
    return getattr(settings, "CREDENTIALS_DEFAULT_SUBJECT", "Tournament Room Credentials")


def default_credentials_message() -> str:
    return getattr(settings, "CREDENTIALS_DEFAULT_MESSAGE", "Your credentials will be shared shortly.")


def render_html(body: str) -> str:
    """
    Plain text body as a single HTML paragraph, newlines kept as <br/>.
    """
    return f"<p>{escape(body).replace(chr(10), '<br/>')}</p>"


def build_message(to, subject, body, html_body=None, from_email=None, connection=None, headers=None):
    """
    A multipart (text + HTML) message for one recipient.
    """
    message = EmailMultiAlternatives(
        subject=subject,
        body=body,
        from_email=from_email or getattr(settings, "DEFAULT_FROM_EMAIL", None),
        to=[to],
        connection=connection,
        headers=headers or {},
    )
    message.attach_alternative(html_body or render_html(body), "text/html")
    return message


def registration_confirmed_content(registration):
    """
    Subject and body for the "you're in" mail sent once a registration is
    confirmed.
    """
    tournament = registration.tournament
    subject = f"Registration confirmed: {tournament.name}"

    lines = [
        f"Hi {registration.captain.get('name') or registration.user.username},",
        "",
        f"Your team {registration.team_name} is confirmed for:",
        f"  {tournament.name} ({tournament.game})",
    ]
    if tournament.start_date:
        lines.append(f"  Starts: {tournament.start_date:%Y-%m-%d %H:%M %Z}")
    if registration.transaction_id:
        lines.append(f"  Payment reference: {registration.transaction_id}")
    lines += [
        "",
        "Room credentials will be sent to this address before the match.",
        "",
        "Good luck,",
        "Tournament Team",
    ]
    return subject, "\n".join(lines)
