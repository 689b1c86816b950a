# ABOUTME: Sends plain-text mail over SMTP for password resets and the contact form.
# ABOUTME: Without SMTP_HOST configured, messages are logged instead of sent (local dev).

import logging
import smtplib
from email.message import EmailMessage
from flask import current_app

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

def send_mail(to: str, subject: str, body: str, reply_to: str | None = None) -> bool:
    config = current_app.config
    message = EmailMessage()
    message['From'] = config['MAIL_FROM']
    message['To'] = to
    message['Subject'] = subject
    if reply_to:
        message['Reply-To'] = reply_to
    message.set_content(body)

    if not config.get('SMTP_HOST'):
        logging.info(f"SMTP_HOST not set; not sending mail to {to}: {subject}\n{body}")
        return True

    try:
        with smtplib.SMTP(config['SMTP_HOST'], config['SMTP_PORT'], timeout=15) as smtp:
            if config.get('SMTP_USE_TLS'):
                smtp.starttls()
            if config.get('SMTP_USER'):
                smtp.login(config['SMTP_USER'], config.get('SMTP_PASSWORD') or '')
            smtp.send_message(message)
        logging.info(f"Sent mail to {to}: {subject}")
        return True
    except (smtplib.SMTPException, OSError) as e:
        logging.error(f"Failed to send mail to {to}: {e}")
        return False
