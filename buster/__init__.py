"""WSGI application for a company website: localized pages, a blog and e-mail verification."""

__version__ = "1.0.0"