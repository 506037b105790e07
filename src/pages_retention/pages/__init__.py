"""Cloudflare Pages API access."""

from .base import DeploymentsAPI
from .client import DEFAULT_BASE_URL, PagesClient
from .fetcher import DeploymentFetcher

__all__ = [
    "DeploymentsAPI",
    "DEFAULT_BASE_URL",
    "PagesClient",
    "DeploymentFetcher",
]
