import charles_bot.mail as mail


class FakeSes:
    def __init__(self):
        self.calls = []

    def send_email(self, **kwargs):
        self.calls.append(kwargs)
        return {"MessageId": "m-1"}


def test_send_plain_text(monkeypatch):
    ses = FakeSes()
    regions = []

    class BotoModule:
        def client(self, name: str, region_name=None):
            assert name == "ses"
            regions.append(region_name)
            return ses

    monkeypatch.setitem(mail.__dict__, "boto3", BotoModule())
    mailer = mail.SesMailer("charles@example.com", region="us-east-1")
    assert mailer.send("alice@example.com", "Repo x successfully indexed", "body") == "m-1"
    call = ses.calls[0]
    assert call["Source"] == "charles@example.com"
    assert call["Destination"] == {"ToAddresses": ["alice@example.com"]}
    assert call["Message"]["Subject"]["Data"] == "Repo x successfully indexed"
    assert call["Message"]["Body"]["Text"]["Data"] == "body"
    assert regions == ["us-east-1"]
