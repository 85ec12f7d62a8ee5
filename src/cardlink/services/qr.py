"""QR code rendering for profile URLs."""

import io
from uuid import uuid4

import qrcode

from .assets import AssetStore, store_asset


def render_qr_png(payload: str) -> bytes:
    """Render ``payload`` as a high error-correction PNG."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=2,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


async def publish_profile_qr(store: AssetStore, slug: str, profile_url: str) -> str:
    """Render and upload the QR code for a profile URL; returns the asset URL."""
    key = f"qr-codes/{slug}-{uuid4().hex[:12]}.png"
    return await store_asset(store, key, render_qr_png(profile_url), "image/png")
