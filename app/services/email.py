"""
Error reporting by email for the academy backend.
Unhandled exceptions are logged and, when SMTP is configured, mailed to the
addresses in ERROR_TO.
"""

import os
import html
import smtplib
import logging
import traceback
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from datetime import datetime

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending error emails via SMTP"""

    def __init__(self):
        self.smtp_host = os.getenv("SMTP_HOST")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER")
        self.smtp_pass = os.getenv("SMTP_PASS")
        self.smtp_use_tls = os.getenv("SMTP_USE_TLS", "true").lower() in {
            "1",
            "true",
            "yes",
        }
        self.from_addr = os.getenv("ERROR_FROM", "errors@airdroptennis.local")
        self.to_addrs = [
            addr.strip()
            for addr in os.getenv("ERROR_TO", "").split(",")
            if addr.strip()
        ]
        self.environment = os.getenv("ENV", "development")

    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(
            self.smtp_host and self.smtp_user and self.smtp_pass and self.to_addrs
        )

    def build_error_message(self, error_data: dict) -> MIMEMultipart:
        """
        Build the error notification email

        Args:
            error_data: Dictionary containing error information
                - path: Request path
                - method: HTTP method
                - client: Client IP
                - user: User email (optional)
                - exception: Exception object
                - timestamp: Error timestamp
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = f"[Academy Backend][{self.environment}] ERROR"
        msg["From"] = self.from_addr
        msg["To"] = ", ".join(self.to_addrs)
        msg.attach(MIMEText(self._generate_error_html(error_data), "html", "utf-8"))
        return msg

    def send_error_email(self, error_data: dict) -> bool:
        if not self.is_configured():
            logger.warning("Email service not configured, skipping error email")
            return False

        try:
            msg = self.build_error_message(error_data)
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.smtp_use_tls:
                    server.starttls()
                server.login(self.smtp_user, self.smtp_pass)
                server.send_message(msg)

            logger.info(f"Error email sent successfully to {', '.join(self.to_addrs)}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send error email: {e}")
            return False

    def _generate_error_html(self, error_data: dict) -> str:
        """Generate HTML content for error email"""
        path = error_data.get("path", "Unknown")
        method = error_data.get("method", "Unknown")
        client = error_data.get("client", "Unknown")
        user = error_data.get("user", "Anonymous")
        exception = error_data.get("exception")
        timestamp = error_data.get(
            "timestamp", datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S")
        )

        if exception:
            tb_lines = traceback.format_exception(
                type(exception), exception, exception.__traceback__
            )
            traceback_html = "".join(
                f'<div class="line">{html.escape(line.rstrip())}</div>'
                for line in tb_lines
                if line.strip()
            )
        else:
            traceback_html = '<div class="line">No traceback available</div>'

        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <style>
                body {{ font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; padding: 20px; }}
                .header {{ background: #dc3545; color: white; padding: 16px; }}
                .traceback {{ background: #1e1e1e; color: #d4d4d4; padding: 16px; font-family: monospace; font-size: 12px; }}
            </style>
        </head>
        <body>
            <div class="header">
                <h2>Error Report</h2>
                <div>Academy Backend • {html.escape(self.environment.upper())}</div>
            </div>
            <p>{html.escape(timestamp)} UTC</p>
            <ul>
                <li><b>Endpoint:</b> {html.escape(method)} {html.escape(path)}</li>
                <li><b>User:</b> {html.escape(str(user))}</li>
                <li><b>Client IP:</b> {html.escape(client)}</li>
            </ul>
            <h3>Stack Trace</h3>
            <div class="traceback">{traceback_html}</div>
        </body>
        </html>
        """


# Global email service instance
email_service = EmailService()
