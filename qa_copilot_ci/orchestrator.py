"""Creation of the test plan for a CI build."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from qa_copilot_ci.client import TestCollabClient
from qa_copilot_ci.config import CIConfig
from qa_copilot_ci.errors import ValidationError
from qa_copilot_ci.formatting import plan_description, plan_title
from qa_copilot_ci.models.testcollab import CustomField, ProjectUser, Tag

log = logging.getLogger(__name__)

URL_FIELD_TYPE = "url"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def find_app_url_field(fields: Sequence[CustomField], name: str) -> CustomField | None:
    """Find the URL-typed custom field that records the application URL."""
    for custom_field in fields:
        if custom_field.name == name and custom_field.field_type == URL_FIELD_TYPE:
            return custom_field
    return None


def find_tag(tags: Sequence[Tag], name: str) -> Tag | None:
    """Find a tag by case-insensitive name."""
    wanted = name.lower()
    return next((tag for tag in tags if tag.name.lower() == wanted), None)


def find_bot_user(users: Sequence[ProjectUser], prefix: str) -> ProjectUser | None:
    """Find the project member whose username carries the automation prefix."""
    return next((u for u in users if u.user.username.startswith(prefix)), None)


@dataclass(frozen=True, kw_only=True)
class PlanCreationOrchestrator:
    """Creates and staffs the test plan for one CI build.

    Every step is fatal on failure. A plan that was created before a later
    step failed is left in place.
    """

    client: TestCollabClient
    config: CIConfig
    now: Callable[[], datetime] = field(default=_utcnow, repr=False)

    async def create_plan(self, build_id: str, app_url: str) -> int:
        """Create a plan for the build and return its id.

        Raises:
            ValidationError: If the project is not set up for QA Copilot
            PermanentError: If the API rejects a request
            TransientError: If the API cannot be reached

        """
        project_id = self.config.project_id

        settings = await self.client.get_project_settings(project_id)
        if not settings.automation_enabled:
            raise ValidationError(
                f"QA Copilot automation is not enabled for project {project_id}. "
                "Enable it in the project settings."
            )

        fields = await self.client.get_custom_fields(project_id)
        app_url_field = find_app_url_field(fields, self.config.app_url_field)
        if app_url_field is None:
            raise ValidationError(
                f"Custom field '{self.config.app_url_field}' of type URL not found "
                f"in project {project_id}. Recreate the field, or turn the QA "
                "Copilot feature off and on again to restore it."
            )

        tags = await self.client.get_test_case_tags(project_id)
        tag = find_tag(tags, self.config.ci_tag)
        if tag is None:
            raise ValidationError(
                f"No '{self.config.ci_tag}' tag found in project {project_id}. "
                "Tag the test cases that should run in CI."
            )

        eligible = await self.client.count_test_cases_by_tag(project_id, tag.id)
        if eligible == 0:
            raise ValidationError(
                f"No test cases tagged '{self.config.ci_tag}' in project "
                f"{project_id}. Tag the test cases that should run in CI."
            )
        log.info("Found %d test case(s) tagged '%s'", eligible, tag.name)

        plan_id = await self.client.create_plan(
            project_id,
            title=plan_title(build_id),
            description=plan_description(build_id, app_url, self.now()),
            custom_fields={app_url_field.id: app_url},
        )
        log.info("Created test plan %d", plan_id)

        added = await self.client.bulk_add_cases_by_tag(project_id, plan_id, tag.id)
        log.info("Added %d test case(s) to plan %d", added, plan_id)

        users = await self.client.get_project_users(project_id)
        bot = find_bot_user(users, self.config.bot_prefix)
        if bot is None:
            raise ValidationError(
                f"No automation user with username prefix '{self.config.bot_prefix}' "
                f"in project {project_id}. Add the QA Copilot bot to the project."
            )

        await self.client.assign_plan(project_id, plan_id, bot.user.id)
        log.info("Assigned plan %d to %s", plan_id, bot.user.username)

        return plan_id
