"""Daily Brief: RSS headlines condensed by a language model and posted to Discord."""

__version__ = "1.0.0"
