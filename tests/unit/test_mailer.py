import smtplib
from unittest.mock import MagicMock

from utils.errors import MailError
from utils.mailer import MailSender
from utils.schemas import MailMessage

MESSAGE = MailMessage(
    to="ops@acme-newsletters.org",
    sender="backup@acme-newsletters.org",
    subject="Listmonk Backup Report",
    html_body="LISTS:<br />\n  - count: 3<br />\n",
    text_body="LISTS:\n  - count: 3\n",
)


def make_sender(factory: MagicMock) -> MailSender:
    return MailSender("smtp.acme-newsletters.org", 465, "backup", "smtp-secret", smtp_factory=factory)


def test_send_logs_in_and_sends_multipart_message():
    factory = MagicMock()
    smtp = factory.return_value.__enter__.return_value

    result = make_sender(factory).send(MESSAGE)

    assert result.ok
    assert result.error is None
    assert factory.call_args.args == ("smtp.acme-newsletters.org", 465)
    assert "context" in factory.call_args.kwargs
    smtp.login.assert_called_once_with("backup", "smtp-secret")

    email = smtp.send_message.call_args.args[0]
    assert email["Subject"] == "Listmonk Backup Report"
    assert email["To"] == "ops@acme-newsletters.org"
    assert email.get_body(preferencelist=("plain",)).get_content() == "LISTS:\n  - count: 3\n"
    assert "<br />" in email.get_body(preferencelist=("html",)).get_content()


def test_authentication_failure_is_returned():
    factory = MagicMock()
    factory.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(
        535, b"authentication failed"
    )

    result = make_sender(factory).send(MESSAGE)

    assert not result.ok
    assert isinstance(result.error, MailError)
    assert "authentication failed" in str(result.error)


def test_connection_failure_is_returned():
    factory = MagicMock(side_effect=ConnectionRefusedError("connection refused"))

    result = make_sender(factory).send(MESSAGE)

    assert not result.ok
    assert isinstance(result.error, MailError)
