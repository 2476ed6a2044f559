"""
Validation rules for phones and social network handles.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional

TJ_PHONE_PATTERN = re.compile(r"^\+992\d{9}$")
INTERNATIONAL_PHONE_PATTERN = re.compile(r"^\+\d{10,15}$")

_PHONE_LIKE = re.compile(r"^\+?[1-9]\d{1,14}$")


def validate_phone(number: str, phone_type: str) -> bool:
    """
    Validate a phone number for its type.

    Args:
        number: Phone number as typed, e.g. ``+992912345678``
        phone_type: ``tj`` or ``international``

    Returns:
        True when the number matches the pattern for the type
    """
    number = (number or "").strip()
    if not number:
        return False
    if phone_type == "tj":
        return bool(TJ_PHONE_PATTERN.match(number))
    return bool(INTERNATIONAL_PHONE_PATTERN.match(number))


def _strip_at(value: str) -> str:
    return value[1:] if value.startswith("@") else value


def _no_spaces(value: str) -> str:
    return re.sub(r"\s", "", value)


def _with_plus(value: str) -> str:
    cleaned = _no_spaces(value)
    return cleaned if cleaned.startswith("+") else f"+{cleaned}"


def _with_scheme(value: str) -> str:
    return value if value.startswith("http") else f"https://{value}"


@dataclass(frozen=True)
class SocialNetworkRule:
    """How one network's handle is validated, stored and linked."""
    label: str
    pattern: Callable[[str], bool]
    format: Callable[[str], str]
    url: Callable[[str], str]
    placeholder: str


def _matches(pattern: str, prepare: Callable[[str], str] = lambda v: v) -> Callable[[str], bool]:
    compiled = re.compile(pattern)
    return lambda value: bool(compiled.match(prepare(value)))


SOCIAL_NETWORK_RULES: Dict[str, SocialNetworkRule] = {
    "instagram": SocialNetworkRule(
        label="Instagram",
        pattern=_matches(r"^[a-zA-Z0-9._]{1,30}$", lambda v: v.replace("@", "", 1)),
        format=_strip_at,
        url=lambda h: f"https://instagram.com/{h}",
        placeholder="username",
    ),
    "telegram": SocialNetworkRule(
        label="Telegram",
        pattern=_matches(r"^[a-zA-Z0-9_]{5,32}$", lambda v: v.replace("@", "", 1)),
        format=_strip_at,
        url=lambda h: f"https://t.me/{h}",
        placeholder="username",
    ),
    "whatsapp": SocialNetworkRule(
        label="WhatsApp",
        pattern=lambda v: bool(_PHONE_LIKE.match(_no_spaces(v))),
        format=_with_plus,
        url=lambda h: f"https://wa.me/{h.replace('+', '', 1)}",
        placeholder="+992123456789",
    ),
    "facebook": SocialNetworkRule(
        label="Facebook",
        pattern=_matches(r"^[a-zA-Z0-9.]{5,50}$"),
        format=lambda v: v,
        url=lambda h: f"https://facebook.com/{h}",
        placeholder="username",
    ),
    "vk": SocialNetworkRule(
        label="VKontakte",
        pattern=lambda v: bool(re.match(r"^[a-zA-Z0-9_]{1,50}$", v) or re.match(r"^id\d+$", v)),
        format=lambda v: v,
        url=lambda h: f"https://vk.com/{h}",
        placeholder="username or id123456789",
    ),
    "youtube": SocialNetworkRule(
        label="YouTube",
        pattern=_matches(r"^[a-zA-Z0-9_-]{1,100}$"),
        format=lambda v: v,
        url=lambda h: f"https://youtube.com/@{h}",
        placeholder="channel_name",
    ),
    "site": SocialNetworkRule(
        label="Website",
        pattern=_matches(r"^(https?://)?([\da-z.-]+)\.([a-z.]{2,6})([/\w .-]*)*/?$"),
        format=_with_scheme,
        url=_with_scheme,
        placeholder="example.com",
    ),
    "viber": SocialNetworkRule(
        label="Viber",
        pattern=lambda v: bool(_PHONE_LIKE.match(_no_spaces(v))),
        format=_no_spaces,
        url=lambda h: f"viber://chat?number={h.replace('+', '', 1)}",
        placeholder="+992123456789",
    ),
    "imo": SocialNetworkRule(
        label="IMO",
        pattern=lambda v: bool(_PHONE_LIKE.match(_no_spaces(v))),
        format=_no_spaces,
        url=lambda h: f"https://imo.im/profile/{h.replace('+', '', 1)}",
        placeholder="+992123456789",
    ),
    "twitter": SocialNetworkRule(
        label="Twitter (X)",
        pattern=_matches(r"^[a-zA-Z0-9_]{1,15}$", lambda v: v.replace("@", "", 1)),
        format=_strip_at,
        url=lambda h: f"https://x.com/{h}",
        placeholder="username",
    ),
    "linkedin": SocialNetworkRule(
        label="LinkedIn",
        pattern=_matches(r"^[a-zA-Z0-9-]{3,100}$"),
        format=lambda v: v,
        url=lambda h: f"https://linkedin.com/in/{h}",
        placeholder="profile-name",
    ),
    "google": SocialNetworkRule(
        label="Google",
        pattern=_matches(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"),
        format=lambda v: v,
        url=lambda h: f"mailto:{h}",
        placeholder="email@gmail.com",
    ),
    "wechat": SocialNetworkRule(
        label="WeChat",
        pattern=_matches(r"^[a-zA-Z0-9_-]{6,20}$"),
        format=lambda v: v,
        url=lambda h: f"weixin://dl/chat?{h}",
        placeholder="wechat_id",
    ),
}


def get_network_rule(network: str) -> Optional[SocialNetworkRule]:
    """Rule for a network key, case-insensitive."""
    return SOCIAL_NETWORK_RULES.get((network or "").lower())


def validate_handle(network: str, handle: str) -> bool:
    """
    Validate a raw handle for a network.

    An empty handle is valid: it means the network is present but unset.
    """
    handle = (handle or "").strip()
    if not handle:
        return True
    rule = get_network_rule(network)
    if rule is None:
        return False
    return rule.pattern(handle)


def format_handle(network: str, handle: str) -> str:
    """Canonical stored form of a handle."""
    handle = (handle or "").strip()
    rule = get_network_rule(network)
    if not handle or rule is None:
        return handle
    return rule.format(handle)


def network_url(network: str, handle: str) -> Optional[str]:
    """Link for a stored handle, or None if there is nothing to link."""
    rule = get_network_rule(network)
    if not handle or rule is None:
        return None
    return rule.url(handle)
