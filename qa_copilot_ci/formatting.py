"""String helpers for durations, plan titles and frontend links."""

from datetime import datetime
from urllib.parse import urlsplit, urlunsplit

# API host -> frontend origin for hosted Test Collab instances
KNOWN_FRONTENDS = {
    "api.testcollab.io": "https://app.testcollab.io",
    "api.testcollab.com": "https://app.testcollab.com",
    "api-eu.testcollab.io": "https://app-eu.testcollab.io",
}

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def humanize_duration(milliseconds: float) -> str:
    """Render a duration as e.g. ``"1 minute 30 seconds"``.

    Durations below one second are rendered in milliseconds, except zero
    which reads ``"0 seconds"``.
    """
    total = int(milliseconds)
    if total <= 0:
        return "0 seconds"
    if total < MS_PER_SECOND:
        return _plural(total, "millisecond")

    hours, rest = divmod(total, MS_PER_HOUR)
    minutes, rest = divmod(rest, MS_PER_MINUTE)
    seconds = rest // MS_PER_SECOND

    parts = []
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes:
        parts.append(_plural(minutes, "minute"))
    if seconds or not parts:
        parts.append(_plural(seconds, "second"))
    return " ".join(parts)


def frontend_base_url(api_url: str) -> str:
    """Derive the web frontend origin from the API URL.

    Hosted instances are looked up by host. Self-hosted instances serve the
    API under ``/api``, so that trailing segment is dropped.
    """
    parts = urlsplit(api_url)
    if known := KNOWN_FRONTENDS.get(parts.netloc.lower()):
        return known

    path = parts.path.rstrip("/")
    if path.endswith("/api"):
        path = path[: -len("/api")]
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def plan_url(api_url: str, project_id: str | int, plan_id: int) -> str:
    """Deep link to a plan in the web frontend."""
    base = frontend_base_url(api_url)
    return f"{base}/project/{project_id}/test_plans/{plan_id}/view"


def plan_title(build_id: str) -> str:
    """Title of the plan created for a build."""
    return f"CI Test for build #{build_id}"


def plan_description(build_id: str, app_url: str, now: datetime) -> str:
    """Description of the plan created for a build."""
    return (
        f"Automated QA Copilot run for build #{build_id} "
        f"triggered at {now.isoformat(timespec='seconds')} against {app_url}"
    )
