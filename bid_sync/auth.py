"""Email-domain allow list applied after the identity provider signs a user in."""

from typing import Iterable, Optional


def is_authorized_email(email: Optional[str], allowed_domains: Iterable[str]) -> bool:
    """True when `email` belongs to one of `allowed_domains`.

    An empty allow list denies everyone.
    """
    if not email or "@" not in email:
        return False
    domain = email.rsplit("@", 1)[1].strip().lower()
    return domain in {d.strip().lower() for d in allowed_domains if d.strip()}
