# buster

A WSGI application for a small company website. It serves localized home,
about, contact and privacy pages, a blog built from a directory of posts,
and the pages users land on when they verify or disavow an e-mail address.

## Installation

    pip install .

## Resources directory

Everything the site shows is read from one resources directory:

    resources/
      templates/          Jinja2 templates (home.html, about.html, blog-home.html, ...)
      posts/
        manifest.json     list of posts: id, slug, title, intro, date (Unix seconds)
        <id>/index.html   body of each post, plus any assets it links to
      css/  images/  fonts/  static/

Posts are listed newest first, ordered by id. Templates are rendered with
autoescaping and always receive a `currentYear` value.

## Usage

    from wsgiref.simple_server import make_server

    from buster.mailer import MockSendEmailer
    from buster.resources import Resources
    from buster.web import create_app

    app = create_app(Resources("./resources", False), MockSendEmailer())
    make_server("127.0.0.1", 1313, app).serve_forever()

`create_app` wraps a `BusterApp` in `CorsMiddleware`, so every response
carries permissive CORS headers and `OPTIONS` requests are answered
directly with 200. Files under `/css/`, `/images/`, `/fonts/` and
`/static/` are served from the matching directories.

Routes (GET only; anything else gets a plain 404 "page not found"):

- `/`, `/about`, `/contact`, `/privacy`, `/privacy/mobile-apps`
- `/blog`, `/blog/archive`
- `/blog/<id>` redirects to `/blog/<id>/<slug>`; any other name after the id
  is served as a file from that post's directory
- `/verify-email?t=...` and `/disavow-email?t=...` call the account API

A trailing slash is redirected to the path without it.

## Modules

- `buster.resources` – `Resources(path, dev_mode)` loads templates and posts
  and raises `ResourceError` if they cannot be read. With `dev_mode` set,
  everything is reloaded from disk on each use. Its methods are `reload`,
  `render`, `post_asset_path`, `post_body`, `post_by_id` and `posts`.
  `Post.month_day_year()` formats a post's date in Pacific time.
- `buster.mailer` – `SendEmailer`, the interface for sending mail;
  `MockSendEmailer`, which only records messages in `sent`; and
  `Mailgun(api_key, domain, test_mode)`, which posts to the Mailgun API and
  raises `MailgunError` on failure.
- `buster.web` – `BusterApp`, `create_app` and `log_internal_error`. Errors
  raised while handling a request show the server error page and are
  logged and e-mailed through the given sender.
- `buster.l10n` – `StringAsset`, `match_language`, `localized` and
  `markdown` for the site's English strings.
- `buster.cors` – `CorsMiddleware`.

For example, a real sender:

    from buster.mailer import Mailgun

    emailer = Mailgun(api_key="placeholder", domain="example.com", test_mode=True)

## What this package does not do

It provides no command-line program and no server of its own. Build the
application with `create_app` and run it under any WSGI server.