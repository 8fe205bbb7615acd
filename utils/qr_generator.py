# =============================================================================
# 🧠 QR-Code Generator (Thermal Club)
# -----------------------------------------------------------------------------
# Erstellt den persönlichen Check-in-QR-Code eines Mitglieds als PNG.
# =============================================================================

from __future__ import annotations
from typing import Optional
from io import BytesIO
import logging
import qrcode
import qrcode.image.styledpil
import qrcode.image.styles.moduledrawers as mod
import qrcode.image.styles.colormasks as mask
from qrcode.constants import ERROR_CORRECT_H
from PIL import Image, ImageDraw, ImageFont, ImageOps, ImageColor

# ---------------------------------------------------------------------------
# ⚙️ Logging konfigurieren
# ---------------------------------------------------------------------------
logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


# ---------------------------------------------------------------------------
# 🧩 Hauptfunktion: generate_qr_png
# ---------------------------------------------------------------------------
def generate_qr_png(
    payload: str,
    size: int = 400,
    fg: str = "#0D2A78",
    bg: str = "#FFFFFF",
    module_style: str = "square",
    frame_text: Optional[str] = None,
    frame_color: str = "#0D2A78",
) -> bytes:
    """
    Generiert einen QR-Code als PNG und gibt die Bilddaten zurück.
    """

    # === 1️⃣ QR-Code Basis ===
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_H,
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    # === 2️⃣ Modul-Stil ===
    module_drawer = {
        "square": mod.SquareModuleDrawer(),
        "rounded": mod.RoundedModuleDrawer(),
        "dots": mod.CircleModuleDrawer(),
    }.get(module_style, mod.SquareModuleDrawer())

    # === 3️⃣ Farbmaske ===
    color_mask = mask.SolidFillColorMask(
        front_color=ImageColor.getrgb(fg),
        back_color=ImageColor.getrgb(bg),
    )

    # === 4️⃣ QR-Code-Bild erzeugen ===
    img = qr.make_image(
        image_factory=qrcode.image.styledpil.StyledPilImage,
        module_drawer=module_drawer,
        color_mask=color_mask,
    ).convert("RGBA")
    img = img.resize((size, size), Image.Resampling.LANCZOS)

    # === 5️⃣ Rahmen / Text unten ===
    if frame_text:
        padding = 60
        framed_img = Image.new("RGBA", (img.width, img.height + padding), bg)
        framed_img.paste(img, (0, 0))

        draw = ImageDraw.Draw(framed_img)
        try:
            font = ImageFont.truetype("arial.ttf", 24)
        except OSError:
            font = ImageFont.load_default()

        text_w = draw.textlength(frame_text, font=font)
        draw.text(
            ((img.width - text_w) // 2, img.height + 15),
            frame_text,
            fill=frame_color,
            font=font,
        )
        img = framed_img

    img = ImageOps.expand(img, border=8, fill=bg)

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    logger.info("QR-Code erzeugt (%s Bytes)", buffer.getbuffer().nbytes)
    return buffer.getvalue()
