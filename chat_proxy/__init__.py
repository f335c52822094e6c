"""Azure OpenAI chat completion proxy."""

__version__ = "0.1.0"
