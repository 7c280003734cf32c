# tournaments/validators.py
"""
Input sanitization and validation for tournament registrations.

All user-provided registration payloads pass through
``clean_registration_payload`` before a row is created.
"""
import re
from typing import Optional

from core.exceptions import RegistrationValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[0-9]{10,15}$")

TEAM_NAME_MIN = 3
TEAM_NAME_MAX = 50
MAX_TEAM_MEMBERS = 10


def sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Sanitize plain text input.

    - Strips leading/trailing whitespace
    - Removes control characters
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    text = str(text).strip()

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def is_valid_email(value: str) -> bool:
    return bool(value) and bool(EMAIL_RE.match(value))


def normalize_phone(value: Optional[str]) -> str:
    return re.sub(r"\s+", "", str(value or ""))


def validate_team_name(name) -> str:
    name = sanitize_text(name)
    if not name:
        raise RegistrationValidationError("Team name is required")
    if len(name) < TEAM_NAME_MIN:
        raise RegistrationValidationError(f"Team name must be at least {TEAM_NAME_MIN} characters")
    if len(name) > TEAM_NAME_MAX:
        raise RegistrationValidationError(f"Team name cannot exceed {TEAM_NAME_MAX} characters")
    return name


def validate_team_members(members) -> list:
    if not isinstance(members, list):
        raise RegistrationValidationError("Team members must be an array")
    if not members:
        raise RegistrationValidationError("At least one team member is required")
    if len(members) > MAX_TEAM_MEMBERS:
        raise RegistrationValidationError(f"A team cannot have more than {MAX_TEAM_MEMBERS} members")

    cleaned = []
    for i, member in enumerate(members, start=1):
        if not isinstance(member, dict):
            raise RegistrationValidationError(f"Team member {i} is invalid")

        name = sanitize_text(member.get("name"), 100)
        email = sanitize_text(member.get("email"), 254).lower()
        game_id = sanitize_text(member.get("game_id") or member.get("gameId"), 100)

        if not name:
            raise RegistrationValidationError(f"Team member {i} name is required")
        if not email:
            raise RegistrationValidationError(f"Team member {i} email is required")
        if not is_valid_email(email):
            raise RegistrationValidationError(f"Team member {i} email is invalid")
        if not game_id:
            raise RegistrationValidationError(f"Team member {i} game ID is required")

        cleaned.append({"name": name, "email": email, "game_id": game_id})
    return cleaned


def validate_captain(captain) -> dict:
    if not isinstance(captain, dict) or not captain:
        raise RegistrationValidationError("Captain information is required")

    name = sanitize_text(captain.get("name"), 100)
    email = sanitize_text(captain.get("email"), 254).lower()
    phone = normalize_phone(captain.get("phone"))

    if not name:
        raise RegistrationValidationError("Captain name is required")
    if not email:
        raise RegistrationValidationError("Captain email is required")
    if not is_valid_email(email):
        raise RegistrationValidationError("Invalid captain email format")
    if phone and not PHONE_RE.match(phone):
        raise RegistrationValidationError("Invalid captain phone number format")

    return {"name": name, "email": email, "phone": phone}


def validate_contact(contact) -> dict:
    if not isinstance(contact, dict) or not contact:
        raise RegistrationValidationError("Contact information is required")

    email = sanitize_text(contact.get("email"), 254).lower()
    phone = normalize_phone(contact.get("phone"))

    if not email:
        raise RegistrationValidationError("Contact email is required")
    if not is_valid_email(email):
        raise RegistrationValidationError("Invalid contact email format")
    if phone and not PHONE_RE.match(phone):
        raise RegistrationValidationError("Invalid phone number format")

    return {"email": email, "phone": phone}


def clean_registration_payload(data: dict) -> dict:
    """
    Validate a raw registration body and return model-ready fields.

    Accepts both snake_case and the camelCase keys older clients send
    (teamName, teamMembers, contactInfo, agreedToTerms).
    """
    if not isinstance(data, dict):
        raise RegistrationValidationError("Registration body must be an object")

    team_name = validate_team_name(data.get("team_name") or data.get("teamName"))
    team_members = validate_team_members(data.get("team_members", data.get("teamMembers")))
    captain = validate_captain(data.get("captain"))
    contact = validate_contact(data.get("contact_info") or data.get("contactInfo"))

    agreed = data.get("agreed_to_terms", data.get("agreedToTerms", False))
    if agreed is not True:
        raise RegistrationValidationError("You must accept the terms and conditions")

    return {
        "team_name": team_name,
        "team_members": team_members,
        "captain": captain,
        "contact_email": contact["email"],
        "contact_phone": contact["phone"],
        "agreed_to_terms": True,
    }
