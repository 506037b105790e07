"""Cloudflare Pages API client."""

from typing import Any, Dict, Iterator, Optional

import requests

from pages_retention.history.models import DeploymentRecord
from pages_retention.pages.base import DeploymentsAPI
from pages_retention.utils.errors import ErrorContext, PagesAPIError, error_handler
from pages_retention.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"
DEFAULT_TIMEOUT = 30


class PagesClient(DeploymentsAPI):
    """Lists and deletes Pages deployments through the Cloudflare REST API."""

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        """Initialize Pages client.

        Args:
            api_token: Cloudflare API token with Pages permissions
            base_url: API base URL
            timeout: Per-request timeout in seconds
            session: Optional requests session (a new one is created if omitted)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_token}",
            "Accept": "application/json",
        })

    def _deployments_url(self, account_id: str, project_name: str) -> str:
        return f"{self.base_url}/accounts/{account_id}/pages/projects/{project_name}/deployments"

    def _request(
        self,
        method: str,
        url: str,
        context: ErrorContext,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Send a request and unwrap the Cloudflare response envelope.

        Raises:
            PagesAPIError: On transport failure, HTTP error or ``success: false``
        """
        logger.debug(f"{method} {url} params={params}")

        try:
            response = self.session.request(method, url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise error_handler.handle_exception(e, context) from e

        if not response.ok:
            raise error_handler.handle_response(response, context)

        try:
            body = response.json()
        except ValueError as e:
            raise PagesAPIError(
                f"Invalid JSON in response from {url}", context=context, cause=e
            ) from e

        if not isinstance(body, dict) or not body.get("success", False):
            errors = body.get("errors") if isinstance(body, dict) else None
            context.status_code = response.status_code
            context.api_errors = errors or []
            raise PagesAPIError(
                f"Cloudflare reported failure for {method} {url}: {errors}", context=context
            )

        return body

    def list_deployments(
        self, project_name: str, account_id: str, environment: str
    ) -> Iterator[DeploymentRecord]:
        """Lazily list every deployment of a project in one environment.

        Pages are requested one at a time until ``result_info.total_pages`` is
        reached or an empty page comes back.
        """
        url = self._deployments_url(account_id, project_name)
        page = 1

        while True:
            context = ErrorContext(
                operation="list_deployments",
                project_name=project_name,
                environment=environment,
                additional_info={"page": page},
            )
            body = self._request("GET", url, context, params={"env": environment, "page": page})

            results = body.get("result") or []
            logger.debug(f"Fetched page {page} with {len(results)} deployments")

            for payload in results:
                try:
                    yield DeploymentRecord.from_api(payload)
                except ValueError as e:
                    raise PagesAPIError(
                        f"Unexpected deployment payload on page {page}", context=context, cause=e
                    ) from e

            result_info = body.get("result_info") or {}
            total_pages = result_info.get("total_pages")
            if not results or not total_pages or page >= total_pages:
                break

            page += 1

    def delete_deployment(self, project_name: str, account_id: str, deployment_id: str) -> None:
        """Delete one deployment."""
        url = f"{self._deployments_url(account_id, project_name)}/{deployment_id}"
        context = ErrorContext(
            deployment_id=deployment_id,
            operation="delete_deployment",
            project_name=project_name,
        )
        self._request("DELETE", url, context)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
