# users/services.py
import logging

from .models import PlayerProfile

logger = logging.getLogger("cos")


def unique_profile_username(base: str) -> str:
    """
    Return ``base`` or ``base_<n>`` such that no profile uses it yet.

    Uniqueness is still enforced by the column constraint; this only picks a
    free candidate.
    """
    base = (base or "player")[:40]
    username = base
    counter = 1
    while PlayerProfile.objects.filter(username=username).exists():
        username = f"{base}_{counter}"
        counter += 1
    return username


def ensure_player_profile(user) -> PlayerProfile:
    """
    Get the user's profile, creating a minimal one on first use.
    """
    try:
        return user.player_profile
    except PlayerProfile.DoesNotExist:
        pass

    profile, created = PlayerProfile.objects.get_or_create(
        user=user,
        defaults={
            "username": unique_profile_username(user.username),
            "display_name": user.get_full_name() or user.username,
        },
    )
    if created:
        logger.info(f"Created player profile for user={user.id} username={profile.username}")
    return profile
