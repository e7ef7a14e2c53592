import json
import logging

import pytest
import responses
from markupsafe import escape
from werkzeug.test import Client

from buster.constants import ERROR_MISSING_VERIFICATION_TOKEN
from buster.l10n import StringAsset, localized, markdown
from buster.mailer import MailgunError, MockSendEmailer, SendEmailer
from buster.resources import Resources
from buster.web import OSCAR_API_BASE, create_app, log_internal_error

GENERIC = "{{ title }}|{{ activeHeader }}|{{ cssPath }}"

TEMPLATES = {
    "home.html": GENERIC + "|{{ companyDescription }}|{{ googlePlayURL }}",
    "about.html": GENERIC + "|{{ ItsAboutPrivacy }}|{{ LotsofServicesAnswer }}",
    "contact.html": GENERIC + "|{{ GetInTouchWithUs }}",
    "privacy.html": GENERIC,
    "privacy-mobile-apps.html": GENERIC + "|{{ StuffWeKnowAboutYouMsg }}",
    "blog-home.html": GENERIC + "|{% for p in posts %}{{ p.id }},{% endfor %}",
    "blog-archive.html": GENERIC,
    "post-single.html": GENERIC + "|{{ humanDate }}|{{ body }}",
    "verify-email.html": "{{ title }}|{{ line1 }}|{{ line2 }}",
    "disavow-email.html": "{{ title }}|{{ line1 }}|{{ line2 }}",
    "server-error.html": "{{ title }}",
}


def _make_site(root, post_ids):
    (root / "templates").mkdir()
    for name, text in TEMPLATES.items():
        (root / "templates" / name).write_text(text, encoding="utf-8")
    posts_dir = root / "posts"
    posts_dir.mkdir()
    manifest = []
    for post_id in post_ids:
        manifest.append(
            {
                "id": post_id,
                "slug": f"post-{post_id}",
                "title": f"Post {post_id}",
                "intro": "intro",
                "date": 1600000000 + post_id,
            }
        )
        (posts_dir / str(post_id)).mkdir()
        (posts_dir / str(post_id) / "index.html").write_text(
            f"<p>body {post_id}</p>", encoding="utf-8"
        )
    (posts_dir / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")
    (root / "css").mkdir()
    (root / "css" / "site.css").write_text("body{}", encoding="utf-8")


@pytest.fixture
def emailer():
    return MockSendEmailer()


@pytest.fixture
def client(tmp_path, emailer):
    _make_site(tmp_path, [1, 2, 3])
    return Client(create_app(Resources(tmp_path), emailer))


def _text(response):
    return response.get_data(as_text=True)


def test_home_page(client):
    response = client.get("/")
    assert response.status_code == 200
    body = _text(response)
    assert body.startswith("Zood|home|/css/home.css|")
    assert str(escape(localized("en", StringAsset.CompanyDescriptionMsg))) in body


def test_about_page_keeps_trusted_html(client):
    body = _text(client.get("/about", headers={"Accept-Language": "fr, en;q=0.5"}))
    assert body.startswith("About | Zood|about|/css/about.css|")
    assert str(escape(localized("en", StringAsset.ItsAboutPrivacy))) in body
    assert str(localized("en", StringAsset.LotsOfServicesSecureAnswerMsg)) in body


def test_contact_page(client):
    body = _text(client.get("/contact"))
    assert body.startswith("Contact | Zood|contact|/css/contact.css|")
    assert str(escape(localized("en", StringAsset.GetInTouchWithUs))) in body


def test_privacy_pages(client):
    assert _text(client.get("/privacy")) == "Privacy Policy | Zood|privacy|/css/privacy.css"
    body = _text(client.get("/privacy/mobile-apps"))
    assert body.startswith("Mobile Apps Privacy Policy | Zood|privacymobile|")
    assert str(markdown("en", StringAsset.StuffWeKnowAboutYouMsg)) in body


def test_unknown_path_is_not_found(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.get_data() == b"page not found"


def test_wrong_method_is_not_found(client):
    response = client.post("/about")
    assert response.status_code == 404
    assert response.get_data() == b"page not found"


def test_trailing_slash_redirects(client):
    response = client.get("/blog/")
    assert response.status_code == 301
    assert response.headers["Location"].endswith("/blog")


def test_cors_headers_and_preflight(client):
    response = client.get("/privacy", headers={"Access-Control-Request-Headers": "X-A"})
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Access-Control-Allow-Headers"] == "X-A"
    preflight = client.options("/privacy")
    assert preflight.status_code == 200
    assert preflight.get_data() == b""


def test_static_css_served(client):
    response = client.get("/css/site.css")
    assert response.status_code == 200
    assert response.get_data() == b"body{}"


def test_blog_home_lists_newest_first(client):
    body = _text(client.get("/blog"))
    assert body == "Blog | Zood|news|/css/blog.css|3,2,1,"


def test_blog_home_limits_to_five(tmp_path, emailer):
    _make_site(tmp_path, [1, 2, 3, 4, 5, 6, 7])
    client = Client(create_app(Resources(tmp_path), emailer))
    body = _text(client.get("/blog"))
    assert body.endswith("|7,6,5,4,3,")


def test_blog_archive(client):
    assert _text(client.get("/blog/archive")) == "Blog Archive | Zood|news|/css/blog.css"


def test_blog_post_without_slug_redirects(client):
    response = client.get("/blog/2")
    assert response.status_code == 301
    assert response.headers["Location"].endswith("/blog/2/post-2")


def test_blog_post_with_slug(client):
    response = client.get("/blog/2/post-2")
    assert response.status_code == 200
    body = _text(response)
    assert body.startswith("Post 2 | Zood Blog|news|/css/blog.css|")
    assert body.endswith("|<p>body 2</p>")


def test_blog_post_unknown_id(client):
    assert client.get("/blog/99").status_code == 404
    assert client.get("/blog/99/post-99").status_code == 404


def test_blog_post_asset(tmp_path, client):
    (tmp_path / "posts" / "1" / "pic.txt").write_bytes(b"asset data")
    response = client.get("/blog/1/pic.txt")
    assert response.status_code == 200
    assert response.get_data() == b"asset data"
    assert client.get("/blog/1/missing.png").status_code == 404


@pytest.mark.parametrize("path", ["/verify-email", "/verify-email?t=%20%20"])
def test_verify_email_missing_token(client, path):
    body = _text(client.get(path))
    assert body == (
        "Verify Email | Zood|The email token is missing.|"
        "Double check the URL then try again."
    )


def test_verify_email_success(client):
    with responses.RequestsMock() as mock:
        mock.add(responses.POST, f"{OSCAR_API_BASE}/email-verifications", json={})
        body = _text(client.get("/verify-email?t=token"))
        sent = json.loads(mock.calls[0].request.body)
    assert sent == {"token": "token"}
    assert "Your email has been verified!" in body


def test_verify_email_invalid_token(client, emailer):
    with responses.RequestsMock() as mock:
        mock.add(
            responses.POST,
            f"{OSCAR_API_BASE}/email-verifications",
            json={"error_message": "missing", "error_code": ERROR_MISSING_VERIFICATION_TOKEN},
            status=404,
        )
        response = client.get("/verify-email?t=token")
    assert response.status_code == 200
    assert "doesn&#39;t seem to be valid" in _text(response)
    assert emailer.sent == []


def test_verify_email_unexpected_error_reports(client, emailer):
    with responses.RequestsMock() as mock:
        mock.add(
            responses.POST,
            f"{OSCAR_API_BASE}/email-verifications",
            json={"error_message": "boom", "error_code": 1},
            status=500,
        )
        response = client.get("/verify-email?t=token")
    assert response.status_code == 500
    assert _text(response) == "Server Error | Zood"
    assert len(emailer.sent) == 1
    assert emailer.sent[0].subject.startswith("Buster Error: ")
    assert "token 'token': 1 - boom" in emailer.sent[0].text


def test_disavow_email_success(client):
    with responses.RequestsMock() as mock:
        mock.add(responses.DELETE, f"{OSCAR_API_BASE}/email-verifications/token")
        body = _text(client.get("/disavow-email?t=token"))
    assert body == (
        "Disavow Email | Zood|We&#39;ve removed your email address from our system.|"
        "Sorry for the inconvenience."
    )


def test_disavow_email_failure_reports(client, emailer):
    with responses.RequestsMock() as mock:
        mock.add(
            responses.DELETE,
            f"{OSCAR_API_BASE}/email-verifications/token",
            body="nope",
            status=400,
        )
        response = client.get("/disavow-email?t=token")
    assert response.status_code == 500
    assert len(emailer.sent) == 1
    assert "oscar responded with 400: nope" in emailer.sent[0].text


def test_log_internal_error_ignores_none(emailer):
    log_internal_error(None, emailer)
    assert emailer.sent == []


def test_log_internal_error_emails(emailer):
    log_internal_error(ValueError("broken thing"), emailer)
    assert len(emailer.sent) == 1
    message = emailer.sent[0]
    assert message.text.startswith("Buster Error\ntest_web.py:")
    assert message.text.endswith("\nbroken thing")
    assert message.subject.startswith("Buster Error: test_web.py:")


class _FailingEmailer(SendEmailer):
    def send_email(self, sender, to, subject, text, html=None):
        raise MailgunError("down")


def test_log_internal_error_survives_failing_emailer(caplog):
    with caplog.at_level(logging.ERROR, logger="buster.web"):
        log_internal_error(ValueError("broken"), _FailingEmailer())
    assert any("Failed to email internal error" in r.getMessage() for r in caplog.records)