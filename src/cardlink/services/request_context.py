"""Visitor context extraction: client IP, user agent, referrer, location."""

import ipaddress
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from fastapi import Request
from user_agents import parse as parse_user_agent_string

from ..core.enums import DeviceClass
from ..utils.logging_config import get_logger
from .geo import GeoResolver, UNKNOWN_LOCATION

logger = get_logger("tracking")

MAX_REFERRER_LENGTH = 500


@dataclass(frozen=True)
class RequestContext:
    """Raw request facts captured at the HTTP boundary."""

    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None


@dataclass(frozen=True)
class VisitorDetails:
    """Derived, storable facts about a visitor."""

    ip: Optional[str]
    country: Optional[str]
    city: Optional[str]
    user_agent: Optional[str]
    device: str
    browser: Optional[str]
    referrer: Optional[str]


def resolve_client_ip(
    headers: Mapping[str, str], socket_host: Optional[str], trust_proxy_headers: bool = True
) -> Optional[str]:
    """First X-Forwarded-For entry, then X-Real-IP, then the socket peer."""
    if trust_proxy_headers:
        forwarded = headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        real_ip = (headers.get("x-real-ip") or "").strip()
        if real_ip:
            return real_ip
    return socket_host


def public_ip(value: Optional[str]) -> Optional[str]:
    """Return the normalized address if it is a valid public IP, else None."""
    if not value:
        return None
    try:
        address = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    if getattr(address, "ipv4_mapped", None):
        address = address.ipv4_mapped
    if (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_multicast
        or address.is_reserved
        or address.is_unspecified
    ):
        return None
    return str(address)


def parse_user_agent(user_agent: Optional[str]) -> Tuple[str, Optional[str]]:
    """Return (device class, "Family Major" browser) for a user-agent string."""
    if not user_agent or not user_agent.strip():
        return DeviceClass.UNKNOWN.value, None

    try:
        ua = parse_user_agent_string(user_agent)
    except (TypeError, ValueError, IndexError):
        return DeviceClass.UNKNOWN.value, None

    if ua.is_bot:
        device = DeviceClass.BOT
    elif ua.is_tablet:
        device = DeviceClass.TABLET
    elif ua.is_mobile:
        device = DeviceClass.MOBILE
    elif ua.is_pc:
        device = DeviceClass.DESKTOP
    else:
        device = DeviceClass.UNKNOWN

    family = ua.browser.family
    if not family or family == "Other":
        return device.value, None
    major = ua.browser.version[0] if ua.browser.version else None
    browser = f"{family} {major}" if major is not None else family
    return device.value, browser[:100]


def build_request_context(request: Request, trust_proxy_headers: bool = True) -> RequestContext:
    """Capture visitor facts from an incoming request."""
    socket_host = request.client.host if request.client else None
    referrer = request.headers.get("referer") or request.headers.get("referrer")
    return RequestContext(
        client_ip=resolve_client_ip(request.headers, socket_host, trust_proxy_headers),
        user_agent=request.headers.get("user-agent"),
        referrer=referrer[:MAX_REFERRER_LENGTH] if referrer else None,
    )


def describe_visitor(context: RequestContext, geo: GeoResolver) -> VisitorDetails:
    """Derive storable visitor details; parsing and lookup failures degrade to None."""
    ip = public_ip(context.client_ip)
    location = UNKNOWN_LOCATION
    if ip:
        try:
            location = geo.lookup(ip)
        except Exception as e:
            logger.warning(f"Geo lookup failed for {ip}: {type(e).__name__}: {e}")
    device, browser = parse_user_agent(context.user_agent)
    return VisitorDetails(
        ip=ip,
        country=location.country,
        city=location.city,
        user_agent=context.user_agent,
        device=device,
        browser=browser,
        referrer=context.referrer,
    )
