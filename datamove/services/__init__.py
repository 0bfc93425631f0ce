"""Service layer for the plan compiler."""

from .base import BaseCredentialProvider, BaseQueryClient
from .credentials import SfdxCredentialProvider, parse_org_display
from .salesforce_api import SalesforceApi
from .compiler import MigrationPlanCompiler

__all__ = [
    "BaseCredentialProvider",
    "BaseQueryClient",
    "SfdxCredentialProvider",
    "parse_org_display",
    "SalesforceApi",
    "MigrationPlanCompiler",
]
