"""Static site publishing for refbook."""

from .generator import PageData, PublishConfig, PublishResult, SiteGenerator

__all__ = ["PageData", "PublishConfig", "PublishResult", "SiteGenerator"]
