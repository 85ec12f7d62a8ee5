"""Enums for the CardLink application."""

from enum import Enum


class UserRole(str, Enum):
    """Role claim carried by an authenticated identity."""

    USER = "user"
    ADMIN = "admin"


class ProfileType(str, Enum):
    """Profile kinds; a user holds at most one of each."""

    PERSONAL = "personal"
    BUSINESS = "business"


class DesignMode(str, Enum):
    """How the card face is designed."""

    MANUAL = "manual"
    AI = "ai"
    CUSTOM = "custom"
    TEMPLATE = "template"


class Platform(str, Enum):
    """Social link platforms."""

    WEBSITE = "website"
    LINKEDIN = "linkedin"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    GITHUB = "github"
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    PHONE = "phone"


class ViewSource(str, Enum):
    """Channel through which a public profile was opened."""

    NFC = "nfc"
    QR = "qr"
    LINK = "link"
    DIRECT = "direct"


class DeviceClass(str, Enum):
    """Coarse device class parsed from the user agent."""

    MOBILE = "Mobile"
    TABLET = "Tablet"
    DESKTOP = "Desktop"
    BOT = "Bot"
    UNKNOWN = "Unknown"


class OrderStatus(str, Enum):
    """Status of a card order."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    CASH_ON_DELIVERY = "cash_on_delivery"
    ONLINE = "online"
