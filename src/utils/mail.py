"""
Outgoing mail through Amazon SES.
"""

from typing import Any, Dict

import boto3

from .config import load_settings


def _get_ses_client() -> Any:
    """Get SES client with optional endpoint override for LocalStack."""
    return boto3.client("ses", endpoint_url=load_settings().ses_endpoint)


def make_a_nice_email(text: str) -> str:
    """Wrap a message body in the storefront's HTML mail template."""
    return f"""
  <div className="email" style="
    border: 1px solid black;
    padding: 20px;
    font-family: sans-serif;
    line-height: 2;
    font-size: 20px;
  ">
    <h2>Hello There!</h2>
    <p>{text}</p>
    <p>The Storefront Team</p>
  </div>
"""


def send_mail(to: str, subject: str, html_body: str) -> Dict[str, Any]:
    """
    Send an HTML email.

    Args:
        to: Recipient address
        subject: Subject line
        html_body: HTML body

    Returns:
        SES response (contains MessageId)

    Raises:
        botocore.exceptions.ClientError: If SES rejects the message
    """
    settings = load_settings()
    response: Dict[str, Any] = _get_ses_client().send_email(
        Source=settings.mail_from,
        Destination={"ToAddresses": [to]},
        Message={
            "Subject": {"Data": subject, "Charset": "UTF-8"},
            "Body": {"Html": {"Data": html_body, "Charset": "UTF-8"}},
        },
    )
    return response
