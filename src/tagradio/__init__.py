"""Tag-rule radio station service."""

__version__ = "1.0.0"
