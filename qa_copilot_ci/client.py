"""Test Collab API client."""

import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp
import pydantic
from pydantic import TypeAdapter

from qa_copilot_ci.config import CIConfig
from qa_copilot_ci.errors import PermanentError, ProtocolError, TransientError
from qa_copilot_ci.models.testcollab import (
    BulkAddResponse,
    CountResponse,
    CreatedResource,
    CustomField,
    ProjectSettings,
    ProjectUser,
    Tag,
    TestPlan,
    TestPlanCase,
)

log = logging.getLogger(__name__)

REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=30)
DEFAULT_PAGE_SIZE = 100


def _validate[M](adapter: TypeAdapter[M], data: Any, what: str) -> M:
    try:
        return adapter.validate_python(data)
    except pydantic.ValidationError as exc:
        raise ProtocolError(f"Malformed {what} payload: {exc}") from exc


@dataclass(frozen=True, kw_only=True)
class TestCollabClient:
    """Thin async wrapper over the Test Collab REST API.

    Every call either returns a validated model or raises one of
    ``TransientError`` (network, timeout, 5xx), ``PermanentError`` (4xx) or
    ``ProtocolError`` (undecodable or unexpected payload).
    """

    __test__ = False

    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: CIConfig
    ) -> AsyncGenerator["TestCollabClient", None]:
        """Create client with managed session lifecycle."""
        headers = {
            "Authorization": f"Bearer {config.api_key.get_secret_value()}",
            "Accept": "application/json",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        ) as session:
            yield cls(session=session)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body."""
        try:
            async with self.session.request(
                method, path, params=params, json=json
            ) as response:
                if response.status >= 400:
                    text = await response.text()
                    message = f"{method} {path} failed: {response.status} {text}"
                    if response.status >= 500:
                        raise TransientError(message, status=response.status)
                    raise PermanentError(message, status=response.status)
                try:
                    return await response.json(content_type=None)
                except ValueError as exc:
                    raise ProtocolError(
                        f"{method} {path} returned invalid JSON: {exc}"
                    ) from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise TransientError(
                f"{method} {path} failed: {exc.__class__.__name__} {exc}"
            ) from exc

    async def get_project_settings(self, project_id: str) -> ProjectSettings:
        """Get feature toggles of a project."""
        data = await self._request("GET", f"projects/{project_id}/settings")
        return _validate(TypeAdapter(ProjectSettings), data, "project settings")

    async def get_custom_fields(self, project_id: str) -> Sequence[CustomField]:
        """List custom fields defined on a project."""
        data = await self._request(
            "GET", "customfields", params={"project": project_id}
        )
        return _validate(TypeAdapter(list[CustomField]), data, "custom fields")

    async def get_test_case_tags(self, project_id: str) -> Sequence[Tag]:
        """List test case tags of a project."""
        data = await self._request("GET", "tags", params={"project": project_id})
        return _validate(TypeAdapter(list[Tag]), data, "tags")

    async def count_test_cases_by_tag(self, project_id: str, tag_id: int) -> int:
        """Count test cases carrying a tag."""
        data = await self._request(
            "GET",
            "testcases/count",
            params={"project": project_id, "tag": str(tag_id)},
        )
        return _validate(TypeAdapter(CountResponse), data, "count").count

    async def create_plan(
        self,
        project_id: str,
        title: str,
        description: str,
        custom_fields: Mapping[int, str],
    ) -> int:
        """Create a test plan and return its id."""
        payload = {
            "project": int(project_id),
            "title": title,
            "description": description,
            "custom_fields": [
                {"id": field_id, "value": value}
                for field_id, value in custom_fields.items()
            ],
        }
        data = await self._request("POST", "testplans", json=payload)
        return _validate(TypeAdapter(CreatedResource), data, "test plan").id

    async def bulk_add_cases_by_tag(
        self, project_id: str, plan_id: int, tag_id: int
    ) -> int:
        """Attach every case carrying a tag to a plan, return how many."""
        payload = {
            "project": int(project_id),
            "testplan": plan_id,
            "selector": {"tags": [tag_id]},
        }
        data = await self._request("POST", "testplantestcases/bulkAdd", json=payload)
        return _validate(TypeAdapter(BulkAddResponse), data, "bulk add").added

    async def get_project_users(self, project_id: str) -> Sequence[ProjectUser]:
        """List members of a project."""
        data = await self._request(
            "GET", "projectusers", params={"project": project_id}
        )
        return _validate(TypeAdapter(list[ProjectUser]), data, "project users")

    async def assign_plan(self, project_id: str, plan_id: int, user_id: int) -> None:
        """Assign all cases of a plan to one user."""
        payload = {
            "project": int(project_id),
            "testplan": plan_id,
            "assignment_method": "automatic",
            "assignment_criteria": "all",
            "user_ids": [user_id],
        }
        await self._request("POST", "testplans/assign", json=payload)

    async def get_plan(self, plan_id: int) -> TestPlan:
        """Get a plan with its status and aggregate results."""
        data = await self._request("GET", f"testplans/{plan_id}")
        return _validate(TypeAdapter(TestPlan), data, "test plan")

    async def list_plan_cases(
        self, plan_id: int, page: int, page_size: int = DEFAULT_PAGE_SIZE
    ) -> Sequence[TestPlanCase]:
        """Get one page (1-based) of cases attached to a plan."""
        params = {
            "testplan": str(plan_id),
            "page": str(page),
            "per_page": str(page_size),
        }
        data = await self._request("GET", "testplantestcases", params=params)
        return _validate(TypeAdapter(list[TestPlanCase]), data, "plan cases")

    async def get_all_plan_cases(
        self, plan_id: int, page_size: int = DEFAULT_PAGE_SIZE
    ) -> Sequence[TestPlanCase]:
        """Get every case attached to a plan.

        Pages are requested until one comes back shorter than ``page_size``.
        """
        cases: list[TestPlanCase] = []
        page = 1

        while True:
            batch = await self.list_plan_cases(plan_id, page, page_size)
            cases.extend(batch)
            log.debug(
                "Fetched page %d of plan %d: %d case(s)", page, plan_id, len(batch)
            )

            if len(batch) < page_size:
                break

            page += 1

        return cases
