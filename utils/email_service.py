"""
📧 Thermal Club E-Mail-Service
--------------------------------
✅ STARTTLS (Port 587)
✅ Passwort-Reset-Mail (DE/EN)
✅ Kompatibel mit FastAPI BackgroundTasks
"""

import os
import smtplib
import ssl
import logging
from datetime import datetime, timezone
from email.message import EmailMessage
from dotenv import load_dotenv

load_dotenv()

# ===============================================================
# ⚙️ SMTP-Konfiguration
# ===============================================================
SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASS = os.getenv("SMTP_PASS", "")

APP_DOMAIN = os.getenv("APP_DOMAIN", "http://127.0.0.1:8000")
COMPANY_NAME = os.getenv("COMPANY_NAME", "Thermal Club")

logger = logging.getLogger(__name__)


def smtp_configured() -> bool:
    return bool(SMTP_USER)


# ===============================================================
# 📬 Versand
# ===============================================================
def _send_mail(msg: EmailMessage) -> bool:
    """
    Versand über STARTTLS (Background-Task).
    SMTP-Fehler werden geloggt, der Request ist zu diesem Zeitpunkt beantwortet.
    """
    if not smtp_configured():
        logger.info("SMTP nicht konfiguriert, Mail an %s wird nicht versendet", msg["To"])
        return False

    context = ssl.create_default_context()
    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=60) as server:
            server.ehlo_or_helo_if_needed()
            server.starttls(context=context)
            server.ehlo_or_helo_if_needed()
            server.login(SMTP_USER, SMTP_PASS)
            refused = server.send_message(msg)
    except smtplib.SMTPAuthenticationError:
        logger.exception("SMTP Login fehlgeschlagen (%s)", SMTP_USER)
        return False
    except (smtplib.SMTPException, OSError):
        logger.exception("Fehler beim Versand an %s", msg["To"])
        return False

    if refused:
        logger.warning("Teilweise Versandfehler: %s", refused)
        return False
    logger.info("Mail gesendet an %s", msg["To"])
    return True


# ===============================================================
# 🔐 Passwort-Reset
# ===============================================================
def build_reset_link(token: str) -> str:
    return f"{APP_DOMAIN.rstrip('/')}/reset-password?token={token}"


def send_reset_mail(name: str, email: str, reset_link: str) -> bool:
    year = datetime.now(timezone.utc).year

    msg = EmailMessage()
    msg["Subject"] = f"Passwort zurücksetzen / Reset your password | {COMPANY_NAME}"
    msg["From"] = f"{COMPANY_NAME} <{SMTP_USER}>"
    msg["To"] = email

    msg.set_content(
        f"Hallo {name},\n\n"
        f"über folgenden Link kannst du ein neues Passwort festlegen:\n{reset_link}\n\n"
        "Der Link ist eine Stunde gültig.\n\n"
        f"Dear {name},\n\nuse the link above to choose a new password. "
        "It expires after one hour.\n"
    )
    msg.add_alternative(f"""
    <html>
      <body style="font-family:Arial,Helvetica,sans-serif;background:#f5f6fa;padding:30px;">
        <div style="max-width:640px;margin:auto;background:white;border-radius:12px;padding:30px;">
          <h2 style="color:#0D2A78;text-align:center;">Passwort zurücksetzen / Reset your password</h2>
          <p style="font-size:15px;color:#333;">
            Hallo {name},<br><br>
            klicke auf den Button, um ein neues Passwort für <strong>{COMPANY_NAME}</strong> festzulegen.
          </p>
          <div style="text-align:center;margin:25px;">
            <a href="{reset_link}"
               style="background:#0D2A78;color:#fff;padding:14px 28px;
                      border-radius:8px;text-decoration:none;font-weight:600;display:inline-block;">
               Reset Password
            </a>
          </div>
          <p style="font-size:14px;color:#555;">
            If you did <strong>not</strong> request this, please ignore this email.
            The link expires after one hour.
          </p>
          <hr style="margin:30px 0;border:none;border-top:1px solid #eee;">
          <p style="font-size:12px;color:#888;text-align:center;">
            &copy; {year} {COMPANY_NAME}
          </p>
        </div>
      </body>
    </html>
    """, subtype="html")

    return _send_mail(msg)
