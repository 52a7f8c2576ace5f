"""JobFlow: job application tracker with an AI career coach."""

__version__ = "1.0.0"
