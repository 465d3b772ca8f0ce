"""
Verification provider gateways.
Supports one-time codes (sms, email), OAuth2 redirects and silent network checks.
"""

from .base import ProviderGateway
from .credentials import ProviderCredentials
from .http_gateway import HttpProviderGateway

__all__ = ["ProviderGateway", "ProviderCredentials", "HttpProviderGateway"]
