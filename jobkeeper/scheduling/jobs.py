"""
Fire-time job handlers.

execute_job() is the callable the engine runs when a trigger fires. It
dispatches on the job type tag to a handler:
- email: send a message over SMTP
- webhook: send an HTTP request

Handler failures are logged and re-raised so the engine records the
failed run.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Callable, Optional

import httpx

from jobkeeper.infra.settings import get_settings


logger = logging.getLogger(__name__)

JobHandler = Callable[[str, str, dict], None]


def send_email(group: str, name: str, data: dict) -> None:
    """Send the email described by an email job's data map."""
    settings = get_settings()

    message = EmailMessage()
    message["Subject"] = data.get("subject", "")
    message["From"] = settings.mail_from
    message["To"] = ", ".join(data.get("to", []))
    if data.get("cc"):
        message["Cc"] = ", ".join(data["cc"])
    message.set_content(data.get("message_body", ""))

    recipients = list(data.get("to", [])) + list(data.get("cc", [])) + list(data.get("bcc", []))

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls()
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password or "")
        smtp.send_message(message, to_addrs=recipients)

    logger.info(f"Sent email for job {group}.{name} to {len(recipients)} recipient(s)")


def call_webhook(group: str, name: str, data: dict) -> None:
    """Send the HTTP request described by a webhook job's data map."""
    settings = get_settings()
    timeout = data.get("timeout") or settings.webhook_timeout_seconds

    with httpx.Client(timeout=timeout) as client:
        response = client.request(
            data.get("method", "POST"),
            data["url"],
            json=data.get("body"),
            headers={
                "User-Agent": "jobkeeper",
                "X-Job-Key": f"{group}.{name}",
                **data.get("headers", {}),
            },
        )
        response.raise_for_status()

    logger.info(f"Webhook for job {group}.{name} returned {response.status_code}")


JOB_HANDLERS: dict[str, JobHandler] = {
    "email": send_email,
    "webhook": call_webhook,
}


def execute_job(
    group: str,
    name: str,
    job_type: str,
    data: dict,
    meta: Optional[dict] = None,
) -> None:
    """
    Run the handler registered for `job_type`.

    Raises:
        KeyError: If no handler is registered for the job type
    """
    handler = JOB_HANDLERS.get(job_type)
    if handler is None:
        logger.error(f"No handler for job type '{job_type}' (job {group}.{name})")
        raise KeyError(f"No handler for job type: {job_type}")

    logger.info(f"Executing {job_type} job {group}.{name}")
    try:
        handler(group, name, data)
    except Exception:
        logger.exception(f"Job {group}.{name} failed")
        raise
