"""The site's WSGI application: page handlers, blog and e-mail verification."""

from __future__ import annotations

import inspect
import json
import logging
import os
from collections.abc import Callable, Iterable
from datetime import datetime
from types import FrameType
from typing import Any
from urllib.parse import quote

import requests
from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.middleware.shared_data import SharedDataMiddleware
from werkzeug.routing import Map, RequestRedirect, Rule
from werkzeug.utils import redirect, send_file
from werkzeug.wrappers import Request, Response

from .constants import APP_STORE_URL, ERROR_MISSING_VERIFICATION_TOKEN, GOOGLE_PLAY_URL
from .cors import CorsMiddleware
from .l10n import StringAsset, localized, markdown, match_language
from .mailer import SendEmailer
from .resources import Post, Resources

logger = logging.getLogger(__name__)

OSCAR_API_BASE = "https://api.zood.xyz/1"
ERROR_EMAIL_FROM = "[email]"
ERROR_EMAIL_TO = "[email]"
STATIC_DIRECTORIES = ("css", "images", "fonts", "static")
API_TIMEOUT = 30

_A = StringAsset

_HOME_STRINGS = {
    "companyDescription": _A.CompanyDescriptionMsg,
    "ThePrivacyCompany": _A.ThePrivacyCompany,
    "ShareYourLocation": _A.ShareYourLocation,
    "LocationDescriptionMsg": _A.LocationDescriptionMsg,
    "SafeAndSecure": _A.SafeAndSecure,
    "SafeDescriptionMsg": _A.SafeDescriptionMsg,
    "OnlyAddTrustedFriends": _A.OnlyAddTrustedFriends,
    "TrustedDescriptionMsg": _A.TrustedDescriptionMsg,
    "ZoodLocationBlurbMsg": _A.ZoodLocationBlurbMsg,
    "ogDescription": _A.CompanyDescriptionMsg,
}

_ABOUT_STRINGS = {
    "ItsAboutPrivacy": _A.ItsAboutPrivacy,
    "Really": _A.Really,
    "ZoodIsDifferent": _A.ZoodIsDifferent,
    "DidWeMentionEncryption": _A.DidWeMentionTheEncryptionInterrogative,
    "AboutPrivacyMsg": _A.AboutPrivacyMsg,
    "AboutDifferentMsg": _A.AboutDifferentMsg,
    "AboutEncryptionMsg": _A.AboutEncryptionMsg,
    "LotsofServicesQuestion": _A.LotsOfServicesSecureQuestionMsg,
    "LotsofServicesAnswer": _A.LotsOfServicesSecureAnswerMsg,
    "WhenZoodLocationIosQuestionMsg": _A.WhenZoodLocationIosQuestionMsg,
    "WhenZoodLocationIosAnswerMsg": _A.WhenZoodLocationIosAnswerMsg,
    "IfYouDontSurveilQuestion": _A.IfYouDontSurveilQuestionMsg,
    "IfYouDontSurveilAnswer": _A.IfYouDontSurveilAnswerMsg,
    "HowDoISubmitQuestion": _A.HowDoISubmitQuestionMsg,
    "HowDoISubmitAnswer": _A.HowDoISubmitAnswerMsg,
    "WhosBehindZoodInterrogative": _A.WhosBehindZoodInterrogative,
}

_CONTACT_STRINGS = {
    "GetInTouchWithUs": _A.GetInTouchWithUs,
    "GetInTouchWithUsMsg": _A.GetInTouchWithUsMsg,
}

_MOBILE_PRIVACY_STRINGS = {
    "MobileAppsPrivacyPolicy": _A.MobileAppsPrivacyPolicy,
    "MobileAppsPrivacyPolicyMsg": _A.MobileAppsPrivacyPolicyMsg,
    "StuffWeKnowAboutYou": _A.StuffWeKnowAboutYou,
    "StuffWeBackupForYou": _A.StuffWeBackupForYou,
}

_MOBILE_PRIVACY_MARKDOWN = {
    "StuffWeKnowAboutYouMsg": _A.StuffWeKnowAboutYouMsg,
    "StuffWeBackupForYouMsg": _A.StuffWeBackupForYouMsg,
}


def _error_location(error: BaseException, caller: FrameType | None) -> tuple[str, int]:
    tb = error.__traceback__
    if tb is not None:
        while tb.tb_next is not None:
            tb = tb.tb_next
        return os.path.basename(tb.tb_frame.f_code.co_filename), tb.tb_lineno
    if caller is None:
        return "???", 0
    return os.path.basename(caller.f_code.co_filename), caller.f_lineno


def _report_error(
    error: BaseException, emailer: SendEmailer, caller: FrameType | None
) -> None:
    file, line = _error_location(error, caller)
    logger.error("%s:%d %s", file, line, error)
    text = f"Buster Error\n{file}:{line}\n{error}"
    try:
        emailer.send_email(
            ERROR_EMAIL_FROM,
            ERROR_EMAIL_TO,
            f"Buster Error: {file}:{line}",
            text,
            None,
        )
    except Exception as exc:  # noqa: BLE001 - reporting must never fail
        logger.error("Failed to email internal error: %s", exc)


def log_internal_error(error: BaseException | None, emailer: SendEmailer) -> None:
    """Log ``error`` and e-mail it to the site's maintainers."""
    if error is None:
        return
    frame = inspect.currentframe()
    _report_error(error, emailer, frame.f_back if frame is not None else None)


def _localized_data(tag: str, keys: dict[str, StringAsset]) -> dict[str, Any]:
    return {name: localized(tag, asset) for name, asset in keys.items()}


class BusterApp:
    """The WSGI application serving the site's pages."""

    def __init__(self, resources: Resources, emailer: SendEmailer) -> None:
        self.resources = resources
        self.emailer = emailer
        self._url_map = Map(
            [
                Rule("/", endpoint="home", methods=["GET"]),
                Rule("/privacy", endpoint="privacy", methods=["GET"]),
                Rule(
                    "/privacy/mobile-apps",
                    endpoint="mobile_apps_privacy",
                    methods=["GET"],
                ),
                Rule("/about", endpoint="about", methods=["GET"]),
                Rule("/contact", endpoint="contact", methods=["GET"]),
                Rule("/blog", endpoint="blog_home", methods=["GET"]),
                Rule("/blog/archive", endpoint="blog_archive", methods=["GET"]),
                Rule(
                    "/blog/<int:id>",
                    endpoint="blog_post_bare",
                    defaults={"slug": ""},
                    methods=["GET"],
                ),
                Rule("/blog/<int:id>/<slug>", endpoint="blog_post", methods=["GET"]),
                Rule("/verify-email", endpoint="verify_email", methods=["GET"]),
                Rule("/disavow-email", endpoint="disavow_email", methods=["GET"]),
            ],
            redirect_defaults=False,
        )
        self._handlers: dict[str, Callable[..., Response]] = {
            "home": self.home,
            "privacy": self.privacy,
            "mobile_apps_privacy": self.mobile_apps_privacy,
            "about": self.about,
            "contact": self.contact,
            "blog_home": self.blog_home,
            "blog_archive": self.blog_archive,
            "blog_post_bare": self.blog_post,
            "blog_post": self.blog_post,
            "verify_email": self.verify_email,
            "disavow_email": self.disavow_email,
        }
        exports = {
            f"/{name}": os.path.join(resources.path, name) for name in STATIC_DIRECTORIES
        }
        self._wsgi = SharedDataMiddleware(self._dispatch, exports)

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        return self._wsgi(environ, start_response)

    def _dispatch(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        request = Request(environ)
        response = self._handle(request)
        return response(environ, start_response)

    def _handle(self, request: Request) -> Response:
        adapter = self._url_map.bind_to_environ(request.environ)
        try:
            endpoint, values = adapter.match()
        except RequestRedirect as exc:
            return redirect(exc.new_url, 301)
        except MethodNotAllowed:
            return self.not_found(request)
        except NotFound:
            return self._strict_slash_redirect(request, adapter)

        try:
            return self._handlers[endpoint](request, **values)
        except Exception as exc:  # noqa: BLE001 - shown as a server error page
            return self.internal_error(request, exc)

    def _strict_slash_redirect(self, request: Request, adapter: Any) -> Response:
        path = request.path
        if path != "/" and path.endswith("/"):
            stripped = path.rstrip("/") or "/"
            try:
                adapter.match(stripped, method="GET")
            except (NotFound, MethodNotAllowed, RequestRedirect):
                return self.not_found(request)
            query = request.query_string.decode("latin-1")
            return redirect(f"{stripped}?{query}" if query else stripped, 301)
        return self.not_found(request)

    def _page(self, template: str, data: dict[str, Any], status: int = 200) -> Response:
        html = self.resources.render(template, data)
        return Response(html, status=status, mimetype="text/html")

    @staticmethod
    def _language(request: Request) -> str:
        return match_language(request.headers.get("Accept-Language"))

    def home(self, request: Request) -> Response:
        tag = self._language(request)
        data = {
            "title": "Zood",
            "cssPath": "/css/home.css",
            "activeHeader": "home",
            "googlePlayURL": GOOGLE_PLAY_URL,
            "appStoreURL": APP_STORE_URL,
        }
        data.update(_localized_data(tag, _HOME_STRINGS))
        return self._page("home.html", data)

    def about(self, request: Request) -> Response:
        tag = self._language(request)
        data = {
            "title": "About | Zood",
            "activeHeader": "about",
            "cssPath": "/css/about.css",
        }
        data.update(_localized_data(tag, _ABOUT_STRINGS))
        return self._page("about.html", data)

    def contact(self, request: Request) -> Response:
        tag = self._language(request)
        data = {
            "title": "Contact | Zood",
            "activeHeader": "contact",
            "cssPath": "/css/contact.css",
        }
        data.update(_localized_data(tag, _CONTACT_STRINGS))
        return self._page("contact.html", data)

    def privacy(self, request: Request) -> Response:
        return self._page(
            "privacy.html",
            {
                "title": "Privacy Policy | Zood",
                "activeHeader": "privacy",
                "cssPath": "/css/privacy.css",
            },
        )

    def mobile_apps_privacy(self, request: Request) -> Response:
        tag = self._language(request)
        data = {
            "title": "Mobile Apps Privacy Policy | Zood",
            "activeHeader": "privacymobile",
            "cssPath": "/css/privacy-mobile-apps.css",
        }
        data.update(_localized_data(tag, _MOBILE_PRIVACY_STRINGS))
        data.update(
            {name: markdown(tag, asset) for name, asset in _MOBILE_PRIVACY_MARKDOWN.items()}
        )
        return self._page("privacy-mobile-apps.html", data)

    def blog_home(self, request: Request) -> Response:
        return self._page(
            "blog-home.html",
            {
                "posts": self.resources.posts(5, 0),
                "title": "Blog | Zood",
                "activeHeader": "news",
                "cssPath": "/css/blog.css",
            },
        )

    def blog_archive(self, request: Request) -> Response:
        return self._page(
            "blog-archive.html",
            {
                "title": "Blog Archive | Zood",
                "activeHeader": "news",
                "cssPath": "/css/blog.css",
            },
        )

    def blog_post(self, request: Request, id: int, slug: str = "") -> Response:
        """Serve a post, redirect to its canonical URL, or serve one of its assets."""
        post: Post | None = self.resources.post_by_id(id)
        if post is None:
            return self.not_found(request)

        if not slug:
            return redirect(f"/blog/{post.id}/{post.slug}", 301)

        if slug != post.slug:
            asset_path = self.resources.post_asset_path(post.id, slug)
            if not os.path.isfile(asset_path):
                return self.not_found(request)
            return send_file(asset_path, request.environ)

        date = datetime.fromtimestamp(post.date)
        return self._page(
            "post-single.html",
            {
                "body": self.resources.post_body(post.id),
                "title": f"{post.title} | Zood Blog",
                "activeHeader": "news",
                "cssPath": "/css/blog.css",
                "humanDate": f"{date:%B} {date.day}",
            },
        )

    @staticmethod
    def _verification_data(title: str) -> dict[str, Any]:
        return {
            "title": title,
            "cssPath": "/css/email-verification.css",
            "activeHeader": "",
        }

    def verify_email(self, request: Request) -> Response:
        template = "verify-email.html"
        data = self._verification_data("Verify Email | Zood")
        token = request.args.get("t", "").strip()
        if not token:
            data["line1"] = "The email token is missing."
            data["line2"] = "Double check the URL then try again."
            return self._page(template, data)

        try:
            response = requests.post(
                f"{OSCAR_API_BASE}/email-verifications",
                data=json.dumps({"token": token}).encode("utf-8"),
                timeout=API_TIMEOUT,
            )
        except requests.RequestException as exc:
            return self.internal_error(request, exc)

        if response.status_code != 200:
            try:
                body = response.json()
            except ValueError as exc:
                return self.internal_error(request, exc)
            if not isinstance(body, dict):
                body = {}
            code = body.get("error_code", 0)
            message = body.get("error_message", "")

            if code == ERROR_MISSING_VERIFICATION_TOKEN:
                data["line1"] = "Hmm\u2026 that token doesn't seem to be valid."
                data["line2"] = (
                    "Did you already verify your email? If not, double check "
                    "the URL then try again."
                )
                return self._page(template, data)

            error = RuntimeError(
                "unexpected response from oscar while attempting to verify "
                f"token '{token}': {code} - {message}"
            )
            return self.internal_error(request, error)

        data["line1"] = "Your email has been verified!"
        data["line2"] = "It's safe to close this window."
        return self._page(template, data)

    def disavow_email(self, request: Request) -> Response:
        template = "disavow-email.html"
        data = self._verification_data("Disavow Email | Zood")
        token = request.args.get("t", "").strip()
        if not token:
            data["line1"] = "The email token is missing."
            data["line2"] = "Double check the URL then try again."
            return self._page(template, data)

        endpoint = f"{OSCAR_API_BASE}/email-verifications/{quote(token, safe='')}"
        try:
            response = requests.delete(endpoint, timeout=API_TIMEOUT)
        except requests.RequestException as exc:
            return self.internal_error(request, exc)

        if response.status_code != 200:
            error = RuntimeError(
                f"problem disavowing token '{token}':\n"
                f"oscar responded with {response.status_code}: {response.text}"
            )
            return self.internal_error(request, error)

        data["line1"] = "We've removed your email address from our system."
        data["line2"] = "Sorry for the inconvenience."
        return self._page(template, data)

    def not_found(self, request: Request) -> Response:
        return Response("page not found", status=404, mimetype="text/plain")

    def internal_error(self, request: Request, error: BaseException | None) -> Response:
        """Show the server error page and report ``error`` if there is one."""
        response = self._page(
            "server-error.html",
            {"title": "Server Error | Zood", "cssPath": "/css/server-error.css"},
            status=500,
        )
        if error is not None:
            frame = inspect.currentframe()
            _report_error(error, self.emailer, frame.f_back if frame is not None else None)
        return response


def create_app(resources: Resources, emailer: SendEmailer) -> CorsMiddleware:
    """Build the site's WSGI application with CORS headers applied."""
    return CorsMiddleware(BusterApp(resources, emailer))