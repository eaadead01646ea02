import smtplib

import pytest
from cryptography.fernet import Fernet

from pydantic_models.config.delivery_config import DeliveryConfig
from pydantic_models.data.timecard_request import DeliveryRequest
from timecards.modules.errors import DeliveryError
from timecards.modules.mail_delivery import SmtpMailer, smtp_password


class FakeSMTP:
    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.sent = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg, from_addr=None, to_addrs=None):
        self.sent.append((msg, from_addr, to_addrs))


@pytest.fixture
def smtp_servers():
    servers = []

    def factory(host, port, timeout=None):
        server = FakeSMTP(host, port, timeout)
        servers.append(server)
        return server

    factory.servers = servers
    return factory


@pytest.fixture
def delivery_request(request_payload):
    return DeliveryRequest.model_validate(
        {**request_payload, "to": "chef@example.com, lohn@example.com", "cc": ["ich@example.com"], "subject": "Timecard PP01", "body": "Anbei."}
    )


def test_send_with_attachments(tmp_path, delivery_request, smtp_servers):
    workbook = tmp_path / "Timecard.xlsx"
    workbook.write_bytes(b"xlsx")
    pdf = tmp_path / "Timecard.pdf"
    pdf.write_bytes(b"%PDF")
    settings = DeliveryConfig(smtp_host="mail.example.com", smtp_user="bot@example.com")
    mailer = SmtpMailer(settings, password="geheim", smtp_factory=smtp_servers)

    receipt = mailer.send(delivery_request, [workbook, pdf])

    server = smtp_servers.servers[0]
    assert (server.host, server.port) == ("mail.example.com", 587)
    assert server.calls == ["starttls", ("login", "bot@example.com", "geheim")]
    msg, from_addr, to_addrs = server.sent[0]
    assert from_addr == "bot@example.com"
    assert to_addrs == ["chef@example.com", "lohn@example.com", "ich@example.com"]
    assert msg["Subject"] == "Timecard PP01"
    assert msg["Cc"] == "ich@example.com"
    attachments = {part.get_filename(): part.get_content_type() for part in msg.iter_attachments()}
    assert attachments == {
        "Timecard.xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "Timecard.pdf": "application/pdf",
    }
    assert receipt.attachments == ["Timecard.xlsx", "Timecard.pdf"]
    assert "chef@example.com" in receipt.message


def test_missing_host_is_delivery_error(delivery_request, smtp_servers):
    with pytest.raises(DeliveryError):
        SmtpMailer(DeliveryConfig(), smtp_factory=smtp_servers).send(delivery_request, [])
    assert smtp_servers.servers == []


def test_missing_password_is_delivery_error(delivery_request, smtp_servers):
    settings = DeliveryConfig(smtp_host="mail.example.com", smtp_user="bot@example.com")
    with pytest.raises(DeliveryError):
        SmtpMailer(settings, password=None, smtp_factory=smtp_servers).send(delivery_request, [])


def test_smtp_failure_is_delivery_error(delivery_request):
    def refusing(host, port, timeout=None):
        raise smtplib.SMTPConnectError(421, "nicht erreichbar")

    settings = DeliveryConfig(smtp_host="mail.example.com", sender="bot@example.com", use_tls=False)
    with pytest.raises(DeliveryError):
        SmtpMailer(settings, smtp_factory=refusing).send(delivery_request, [])


def test_recipient_parsing(request_payload):
    req = DeliveryRequest.model_validate({**request_payload, "to": " a@x.ch ,, b@x.ch ", "subject": "s"})
    assert req.to == ["a@x.ch", "b@x.ch"]
    assert req.cc == []
    with pytest.raises(ValueError):
        DeliveryRequest.model_validate({**request_payload, "to": " , ", "subject": "s"})


def test_password_from_encrypted_env(monkeypatch, config):
    key = Fernet.generate_key()
    monkeypatch.setenv("FERNET_KEY", key.decode())
    monkeypatch.setenv("SMTP_PASSWORD_ENC", Fernet(key).encrypt(b"geheim").decode())
    assert smtp_password(config) == "geheim"


def test_password_plain_fallback(monkeypatch, config):
    monkeypatch.delenv("SMTP_PASSWORD_ENC", raising=False)
    monkeypatch.setenv("SMTP_PASSWORD", "klartext")
    assert smtp_password(config) == "klartext"


def test_undecryptable_password(monkeypatch, config):
    monkeypatch.setenv("FERNET_KEY", Fernet.generate_key().decode())
    monkeypatch.setenv("SMTP_PASSWORD_ENC", "unsinn")
    with pytest.raises(DeliveryError):
        smtp_password(config)
