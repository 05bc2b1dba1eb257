"""Configuration for the Azure DevOps test run reporter."""

import base64
import logging

from pydantic import BaseModel, SecretStr

log = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://dev.azure.com"


class ReporterConfig(BaseModel):
    """Configuration for the test run reporter."""

    token: SecretStr
    organization: str
    project: str
    owner: str | None = None
    api_base_url: str = DEFAULT_API_BASE_URL

    @property
    def authorization(self) -> str:
        """Authorization header value."""
        # Azure DevOps uses Basic Auth with empty username and PAT as password
        auth_string = f":{self.token.get_secret_value()}"
        auth_bytes = base64.b64encode(auth_string.encode("utf-8")).decode("ascii")
        return f"Basic {auth_bytes}"

    @property
    def api_root(self) -> str:
        """Test Management API root, relative to ``api_base_url``."""
        return f"/{self.organization}/{self.project}/_apis/test/"


def initialize(
    subscription: str | None,
    project: str | None,
    token: str | None,
    owner: str | None = None,
    *,
    api_base_url: str = DEFAULT_API_BASE_URL,
) -> ReporterConfig | None:
    """Build reporter configuration, or None if a required value is missing.

    Args:
        subscription: Azure DevOps organization name
        project: Project name within the organization
        token: Personal access token
        owner: Display name used for run and result attribution
        api_base_url: Service host, overridable for tests

    Returns:
        The configuration, or None when subscription, project or token is empty

    """
    if not (subscription and project and token):
        log.warning(
            "Cannot initialise the reporter. <subscription:%s>, <project:%s>, <pat:%s>",
            subscription,
            project,
            "***" if token else token,
        )
        return None

    return ReporterConfig(
        token=SecretStr(token),
        organization=subscription,
        project=project,
        owner=owner,
        api_base_url=api_base_url,
    )
