[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "streamwatch"
version = "0.1.0"
description = "Fetch live stream listings from Twitch, Kick and YouTube, store viewer snapshots in PostgreSQL, and serve a dashboard with statistics."
requires-python = ">=3.10"
keywords = ["twitch", "kick", "youtube", "livestream", "scraper", "dashboard", "statistics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Front-Ends",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
]
dependencies = [
    "requests",
    "flask",
    "sqlalchemy",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
streamwatch = "streamwatch.web:main"

[tool.hatch.build.targets.wheel]
packages = ["streamwatch"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]
