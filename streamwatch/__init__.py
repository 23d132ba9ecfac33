"""Live stream fetchers, a PostgreSQL snapshot store and a Flask statistics dashboard."""

__version__ = "0.1.0"