
import os
from email.message import EmailMessage
from typing import Optional
import aiosmtplib
import logging

from app.core.config import settings

SMTP_HOST = os.environ.get("SMTP_HOST")
SMTP_PORT = int(os.environ.get("SMTP_PORT", "465"))
SMTP_USER = os.environ.get("SMTP_USER")
SMTP_PASS = os.environ.get("SMTP_PASS")
SMTP_FROM = os.environ.get("SMTP_FROM") or SMTP_USER
SMTP_SSL = os.environ.get("SMTP_SSL", "true").lower() in ("1", "true", "yes")
logger = logging.getLogger("email")


def smtp_configured() -> bool:
    return bool(SMTP_HOST and SMTP_USER and SMTP_PASS)


async def _send_message(message: EmailMessage):
    use_tls = SMTP_SSL or SMTP_PORT == 465
    start_tls = not use_tls and SMTP_PORT in (587, 25)
    logger.info("Enviando e-mail para %s via %s:%s TLS=%s STARTTLS=%s", message['To'], SMTP_HOST, SMTP_PORT, use_tls, start_tls)
    await aiosmtplib.send(
        message,
        hostname=SMTP_HOST,
        port=SMTP_PORT,
        username=SMTP_USER,
        password=SMTP_PASS,
        start_tls=start_tls,
        use_tls=use_tls,
    )
    logger.info("E-mail enviado para %s com sucesso.", message['To'])


def build_reset_url(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}"


def build_reset_email(to_email: str, reset_url: str, subject: Optional[str] = None) -> EmailMessage:
    subject = subject or "Redefinir senha - Cantina"
    msg = EmailMessage()
    msg["From"] = SMTP_FROM or "no-reply@cantina.local"
    msg["To"] = to_email
    msg["Subject"] = subject
    plain = (
        f"Olá,\n\nRecebemos uma solicitação para redefinir sua senha. Acesse o link abaixo para definir uma nova senha:\n\n{reset_url}\n\n"
        f"O link expira em {settings.RESET_TOKEN_EXPIRE_MINUTES} minutos. "
        "Se você não solicitou esta alteração, ignore este e-mail.\n\nAtenciosamente,\nCantina"
    )
    html = f"""
    <html>
        <body style='font-family: Arial, sans-serif; color: #111827;'>
            <div style='max-width:600px;margin:0 auto;padding:24px;background:#fff;border-radius:8px;'>
                <h2 style='color:#0f172a;'>Redefinir senha</h2>
                <p>Olá,</p>
                <p>Recebemos uma solicitação para redefinir a senha da sua conta. Clique no botão abaixo para escolher uma nova senha. Este link expira em {settings.RESET_TOKEN_EXPIRE_MINUTES} minutos.</p>
                <div style='text-align:center;margin:20px 0;'>
                    <a href='{reset_url}' style='display:inline-block;padding:12px 20px;background:#ef4444;color:#fff;border-radius:6px;text-decoration:none;font-weight:600;'>Redefinir senha</a>
                </div>
                <p style='color:#6b7280;font-size:13px;'>Se você não solicitou esta alteração, ignore este e-mail.</p>
            </div>
        </body>
    </html>
    """
    msg.set_content(plain)
    msg.add_alternative(html, subtype="html", charset="utf-8")
    return msg


async def send_reset_email(to_email: str, token: str) -> bool:
    """Send the password reset link. Returns False when the e-mail was not sent.

    Runs as a background task after the response, so failures are logged
    instead of raised.
    """
    if not smtp_configured():
        logger.warning("Reset email skipped for %s: SMTP not configured (SMTP_HOST/SMTP_USER/SMTP_PASS)", to_email)
        return False
    msg = build_reset_email(to_email, build_reset_url(token))
    try:
        await _send_message(msg)
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error("Erro ao enviar e-mail para %s: %s", to_email, e)
        return False
    return True
