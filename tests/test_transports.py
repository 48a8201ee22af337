import requests

from enquiry_api.core.config import Settings
from enquiry_api.utils.mailer import SmtpMailer, smtp_missing_fields
from enquiry_api.utils.sms import TwilioSmsSender, otp_message, twilio_missing_fields


TWILIO = {
    "twilio_account_sid": "AC123",
    "twilio_auth_token": "secret",
    "twilio_phone_number": "+15005550006",
}


class FakeResponse:
    def __init__(self, status_code: int, payload: dict | None = None):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = str(self._payload)

    def json(self):
        return self._payload


class FakePost:
    def __init__(self, response=None, exc: Exception | None = None):
        self.response = response
        self.exc = exc
        self.calls: list[dict] = []

    def __call__(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.exc:
            raise self.exc
        return self.response


def test_twilio_sender_posts_message_with_timeout(monkeypatch):
    post = FakePost(FakeResponse(201, {"sid": "SM1"}))
    monkeypatch.setattr("requests.post", post)
    sender = TwilioSmsSender(Settings(env="prod", delivery_timeout_seconds=4, **TWILIO))

    assert sender.send_code("+919876543210", "123456") is True
    call = post.calls[0]
    assert call["url"].endswith("/Accounts/AC123/Messages.json")
    assert call["data"]["To"] == "+919876543210"
    assert "123456" in call["data"]["Body"]
    assert call["auth"] == ("AC123", "secret")
    assert call["timeout"] == 4


def test_twilio_sender_reports_rejected_message(monkeypatch):
    monkeypatch.setattr("requests.post", FakePost(FakeResponse(400, {"message": "bad number"})))
    assert TwilioSmsSender(Settings(env="prod", **TWILIO)).send_code("+910", "123456") is False


def test_twilio_sender_reports_timeout(monkeypatch):
    monkeypatch.setattr("requests.post", FakePost(exc=requests.exceptions.Timeout()))
    assert TwilioSmsSender(Settings(env="prod", **TWILIO)).send_code("+919876543210", "123456") is False


def test_twilio_sender_sends_each_code_in_its_own_request(monkeypatch):
    post = FakePost(FakeResponse(201, {"sid": "SM1"}))
    monkeypatch.setattr("requests.post", post)
    sender = TwilioSmsSender(Settings(env="prod", **TWILIO))

    assert sender.send_code("+919876543210", "111111") is True
    assert sender.send_code("+14155550100", "222222") is True
    assert [c["data"]["To"] for c in post.calls] == ["+919876543210", "+14155550100"]
    assert not hasattr(sender, "session")


def test_unconfigured_twilio_only_succeeds_in_dev(monkeypatch):
    post = FakePost()
    monkeypatch.setattr("requests.post", post)
    assert TwilioSmsSender(Settings(env="dev")).send_code("+919876543210", "123456") is True
    assert TwilioSmsSender(Settings(env="prod")).send_code("+919876543210", "123456") is False
    assert post.calls == []


def test_missing_fields_reporting():
    assert twilio_missing_fields(Settings()) == ["TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER"]
    assert smtp_missing_fields(Settings(smtp_user="u", smtp_pass="p", sender_email="s@example.com")) == []


def test_otp_message_mentions_ttl():
    settings = Settings(otp_expiry_minutes=10, brand_name="Acme")
    assert otp_message(settings, "654321") == "Your Acme verification code is: 654321. Valid for 10 minutes."


def test_unconfigured_smtp_mailer_does_not_send(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("SMTP must not be contacted")

    monkeypatch.setattr("smtplib.SMTP", fail)
    mailer = SmtpMailer(Settings())
    assert mailer.send_mail(to="a@example.com", subject="s", html="<p>x</p>") is False


def test_smtp_mailer_sends_with_timeout(monkeypatch):
    sent = {}

    class FakeSMTP:
        def __init__(self, host, port, timeout):
            sent.update(host=host, port=port, timeout=timeout)

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            sent["tls"] = True

        def login(self, user, password):
            sent["login"] = (user, password)

        def sendmail(self, sender, recipients, body):
            sent.update(sender=sender, recipients=recipients, body=body)

    monkeypatch.setattr("smtplib.SMTP", FakeSMTP)
    settings = Settings(smtp_user="u", smtp_pass="p", sender_email="noreply@example.com", delivery_timeout_seconds=3)

    assert SmtpMailer(settings).send_mail(to="a@example.com", subject="Hi", html="<p>x</p>") is True
    assert sent["timeout"] == 3
    assert sent["tls"] is True
    assert sent["login"] == ("u", "p")
    assert sent["recipients"] == ["a@example.com"]


def test_smtp_mailer_swallows_connection_errors(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("no smtp")

    monkeypatch.setattr("smtplib.SMTP", refuse)
    settings = Settings(smtp_user="u", smtp_pass="p", sender_email="noreply@example.com")
    assert SmtpMailer(settings).send_mail(to="a@example.com", subject="Hi", html="<p>x</p>") is False
