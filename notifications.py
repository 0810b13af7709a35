import logging
import smtplib
from datetime import date
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import Settings, get_settings
from scheduler import SchedulerManager

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

templates = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


class ReportMailer:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def build_message(
        self, to: str, pdf_bytes: bytes, today: Optional[date] = None
    ) -> EmailMessage:
        today = today or date.today()
        sender = self.settings.report_sender_name
        html = templates.get_template("report_email.html").render(
            recipient_name=to.split("@")[0],
            sender_name=sender,
            month_label=today.strftime("%B %Y"),
        )

        msg = EmailMessage()
        msg["Subject"] = "📊 Your Monthly Finance Report"
        msg["From"] = formataddr((sender, self.settings.smtp_user or "no-reply@localhost"))
        msg["To"] = to
        msg.set_content("Your monthly finance report is attached.")
        msg.add_alternative(html, subtype="html")
        msg.add_attachment(
            pdf_bytes,
            maintype="application",
            subtype="pdf",
            filename=f"Finance_Report_{today.strftime('%Y-%m')}.pdf",
        )
        return msg

    def send(self, to: str, pdf_bytes: bytes) -> None:
        msg = self.build_message(to, pdf_bytes)
        settings = self.settings
        if settings.smtp_use_ssl:
            client = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=30)
        else:
            client = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30)
        with client as smtp:
            if not settings.smtp_use_ssl:
                smtp.ehlo()
                # Plain relays such as local dev sinks do not offer STARTTLS.
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(msg)
        logger.info(
            f"report_sent: recipient_domain={to.split('@')[-1]} size_bytes={len(pdf_bytes)}"
        )


class ReportDispatcher:
    """Queues report emails so delivery never blocks or fails a request."""

    def __init__(self, scheduler: SchedulerManager, mailer: ReportMailer) -> None:
        self.scheduler = scheduler
        self.mailer = mailer

    def dispatch(self, to: str, pdf_bytes: bytes) -> str:
        return self.scheduler.submit(self.mailer.send, to, pdf_bytes, name="report")
