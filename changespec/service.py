"""GraphQL client for the connected batch changes service."""

import logging

import httpx

from changespec.settings import ChangespecSettings

logger = logging.getLogger(__name__)

GRAPHQL_PATH = "/.api/graphql"

_PRODUCT_VERSION = """
query SourcegraphVersion {
  site {
    productVersion
  }
}
"""


class ServiceClient:
    def __init__(self, settings: ChangespecSettings) -> None:
        if not settings.access_token:
            raise RuntimeError("access_token is required. Set CHANGESPEC_ACCESS_TOKEN or run: changespec init")
        self._endpoint = settings.endpoint.rstrip("/") + GRAPHQL_PATH
        self._headers = {
            "Authorization": f"token {settings.access_token.get_secret_value()}",
            "Content-Type": "application/json",
        }

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _gql(self, query: str, variables: dict | None = None) -> dict:
        response = httpx.post(
            self._endpoint,
            json={"query": query, "variables": variables or {}},
            headers=self._headers,
            timeout=30,
        )
        if response.status_code == 401:
            raise RuntimeError(
                f"{self._endpoint} returned 401. Run changespec init to update the access token for the active profile."
            )
        response.raise_for_status()
        data = response.json()
        if data.get("errors"):
            raise RuntimeError(f"GraphQL API error: {data['errors']}")
        return data["data"]

    def product_version(self) -> str:
        data = self._gql(_PRODUCT_VERSION)
        version = data["site"]["productVersion"]
        logger.debug("%s reports version %s", self._endpoint, version)
        return version
