[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "buster"
version = "1.0.0"
description = "WSGI application for a small company website: pages, blog posts and e-mail verification."
requires-python = ">=3.10"
keywords = ["website", "blog", "wsgi", "werkzeug", "jinja2"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]
dependencies = [
    "werkzeug",
    "jinja2",
    "markupsafe",
    "markdown",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["buster"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
