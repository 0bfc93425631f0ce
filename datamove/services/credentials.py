"""Credential lookup through the Salesforce CLI."""

import logging
import os
import subprocess
from typing import List, Optional

from ..models.endpoint import OrgInfo
from .base import BaseCredentialProvider

logger = logging.getLogger(__name__)

# Line prefix -> OrgInfo attribute
ORG_DISPLAY_KEYS = [
    ("Access Token", "access_token"),
    ("Client Id", "client_id"),
    ("Connected Status", "connected_status"),
    ("Status", "status"),
    ("Id", "org_id"),
    ("Instance Url", "instance_url"),
    ("Username", "username"),
]


def parse_org_display(output: Optional[str]) -> Optional[OrgInfo]:
    """
    Parse the output of `force:org:display`.

    Each recognized line carries its value as the last whitespace-delimited
    token.

    Args:
        output: Command output

    Returns:
        OrgInfo, or None when there is no output
    """
    if not output:
        return None

    info = OrgInfo()
    for line in output.splitlines():
        tokens = line.split()
        if not tokens:
            continue
        for prefix, attribute in ORG_DISPLAY_KEYS:
            if line.startswith(prefix):
                setattr(info, attribute, tokens[-1])
    return info


class SfdxCredentialProvider(BaseCredentialProvider):
    """Looks up org sessions stored by the Salesforce CLI."""

    def __init__(self, executable: Optional[str] = None):
        """
        Initialize the provider.

        Args:
            executable: CLI executable (defaults to SFDX_EXECUTABLE or "sfdx")
        """
        self.executable = executable or os.environ.get("SFDX_EXECUTABLE", "sfdx")

    def _build_command(self, endpoint_name: str) -> List[str]:
        return [self.executable, "force:org:display", "-u", endpoint_name]

    def display_connection(self, endpoint_name: str) -> OrgInfo:
        """Run `force:org:display` for the endpoint and parse the result."""
        command = self._build_command(endpoint_name)
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as e:
            logger.error(f"Failed to run {self.executable}: {e}")
            return OrgInfo()

        if result.returncode != 0:
            logger.warning(f"{' '.join(command)} exited with {result.returncode}: {result.stderr.strip()}")

        return parse_org_display(result.stdout) or OrgInfo()
