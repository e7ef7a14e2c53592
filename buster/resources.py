"""Site resources: HTML templates and blog posts loaded from a directory."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import jinja2
from markupsafe import Markup

try:
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
except ImportError:  # pragma: no cover
    ZoneInfo = None  # type: ignore[assignment,misc]
    ZoneInfoNotFoundError = Exception  # type: ignore[assignment,misc]

logger = logging.getLogger(__name__)

SITE_TIME_ZONE = "America/Los_Angeles"


class ResourceError(Exception):
    """Raised when templates or posts cannot be loaded."""


def _month_day_year(moment: datetime) -> str:
    return f"{moment:%B} {moment.day}, {moment.year}"


@dataclass(frozen=True)
class Post:
    """A blog post's metadata, without its body."""

    id: int = 0
    slug: str = ""
    title: str = ""
    intro: str = ""
    date: int = 0

    @classmethod
    def from_json(cls, entry: Any) -> Post:
        if not isinstance(entry, dict):
            raise ValueError(f"post entry is not an object: {entry!r}")
        try:
            return cls(
                id=int(entry.get("id", 0)),
                slug=str(entry.get("slug", "")),
                title=str(entry.get("title", "")),
                intro=str(entry.get("intro", "")),
                date=int(entry.get("date", 0)),
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid post entry {entry!r}: {exc}") from exc

    def month_day_year(self) -> str:
        """Return the post date in the site's Pacific time zone."""
        moment = datetime.fromtimestamp(self.date, tz=timezone.utc)
        try:
            if ZoneInfo is None:
                raise ZoneInfoNotFoundError(SITE_TIME_ZONE)
            zone = ZoneInfo(SITE_TIME_ZONE)
        except ZoneInfoNotFoundError as exc:
            logger.warning("Failed to find %s time zone: %s", SITE_TIME_ZONE, exc)
            local = moment.astimezone()
            return f"{_month_day_year(local)} {local.tzname()}"
        return _month_day_year(moment.astimezone(zone))


@dataclass(frozen=True)
class _Loaded:
    env: jinja2.Environment
    posts: list[Post]
    posts_by_id: dict[int, Post]
    post_html: dict[int, str]


class Resources:
    """Templates and posts read from a resources directory."""

    def __init__(self, path: str | os.PathLike[str], dev_mode: bool = False) -> None:
        self.path = os.fspath(path)
        self.dev_mode = dev_mode
        self._state = self._load_all()

    def reload(self) -> None:
        """Load templates and posts again from disk."""
        self._state = self._load_all()

    def _reload_if_dev(self) -> None:
        if self.dev_mode:
            self.reload()

    def _load_all(self) -> _Loaded:
        try:
            env = self._load_templates()
        except ResourceError as exc:
            raise ResourceError(f"loading templates: {exc}") from exc
        try:
            posts, html = self._load_posts()
        except ResourceError as exc:
            raise ResourceError(f"loading posts: {exc}") from exc
        return _Loaded(
            env=env,
            posts=posts,
            posts_by_id={post.id: post for post in posts},
            post_html=html,
        )

    def _load_templates(self) -> jinja2.Environment:
        templates_dir = os.path.join(self.path, "templates")
        try:
            entries = sorted(os.scandir(templates_dir), key=lambda e: e.name)
        except OSError as exc:
            raise ResourceError(f"reading templates directory: {exc}") from exc

        sources = {}
        for entry in entries:
            if entry.is_dir():
                continue
            try:
                with open(entry.path, encoding="utf-8") as handle:
                    sources[entry.name] = handle.read()
            except OSError as exc:
                raise ResourceError(f"parsing template: {exc}") from exc

        env = jinja2.Environment(
            loader=jinja2.DictLoader(sources),
            autoescape=True,
        )
        for name in sources:
            try:
                env.get_template(name)
            except jinja2.TemplateSyntaxError as exc:
                raise ResourceError(f"parsing template: {name}: {exc}") from exc
        return env

    def _parse_manifest(self) -> list[Post]:
        manifest_path = os.path.join(self.path, "posts", "manifest.json")
        try:
            with open(manifest_path, encoding="utf-8") as handle:
                raw = json.load(handle)
        except OSError as exc:
            raise ResourceError(f"opening posts manifest: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ResourceError(f"parsing posts manifest: {exc}") from exc

        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ResourceError("parsing posts manifest: manifest is not a list")
        try:
            return [Post.from_json(entry) for entry in raw]
        except ValueError as exc:
            raise ResourceError(f"parsing posts manifest: {exc}") from exc

    def _load_posts(self) -> tuple[list[Post], dict[int, str]]:
        try:
            posts = self._parse_manifest()
        except ResourceError as exc:
            raise ResourceError(f"parsing posts manifest: {exc}") from exc
        posts.sort(key=lambda post: post.id, reverse=True)

        html = {}
        for post in posts:
            html_path = os.path.join(self.path, "posts", str(post.id), "index.html")
            try:
                with open(html_path, encoding="utf-8") as handle:
                    html[post.id] = handle.read()
            except OSError as exc:
                raise ResourceError(f"loading html for post {post.id}: {exc}") from exc
        return posts, html

    def render(self, template_name: str, data: dict[str, Any] | None = None) -> str:
        """Render a template with ``data`` plus the current year.

        Failures are logged and produce an empty page.
        """
        if self.dev_mode:
            try:
                self.reload()
            except ResourceError as exc:
                logger.error("Error reloading templates: %s", exc)
                return ""

        context = dict(data or {})
        context["currentYear"] = str(datetime.now().year)
        try:
            template = self._state.env.get_template(template_name)
            return template.render(context)
        except jinja2.TemplateError as exc:
            logger.error("Error rendering template '%s': %s", template_name, exc)
            return ""

    def post_asset_path(self, post_id: int, asset: str) -> str:
        """Return the file path of an asset that belongs to a post."""
        return os.path.normpath(os.path.join(self.path, "posts", str(post_id), asset))

    def post_body(self, post_id: int) -> Markup:
        """Return a post's HTML body, or a placeholder if it is unknown."""
        if self.dev_mode:
            try:
                self.reload()
            except ResourceError as exc:
                logger.error("Unable to reload posts: %s", exc)
                return Markup(f"<error reloading posts: {exc}>")

        body = self._state.post_html.get(post_id)
        if body is None:
            logger.error("body for post %d requested and not found", post_id)
            return Markup("<not found>")
        return Markup(body)

    def post_by_id(self, post_id: int) -> Post | None:
        """Return the post with ``post_id``, or None if there is none."""
        if self.dev_mode:
            try:
                self.reload()
            except ResourceError as exc:
                logger.error("Unable to reload resources: %s", exc)
                return None
        return self._state.posts_by_id.get(post_id)

    def posts(self, limit: int, offset: int = 0) -> list[Post]:
        """Return up to ``limit`` posts, newest first, skipping ``offset``."""
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must not be negative")
        if self.dev_mode:
            try:
                self.reload()
            except ResourceError as exc:
                logger.error("Unable to reload posts: %s", exc)
                return []
        return list(self._state.posts[offset : offset + limit])