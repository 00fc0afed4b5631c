"""Response headers for entity alerts, errors and pagination."""

from __future__ import annotations

from starlette.datastructures import URL

from indexsync.models.page import Page


def entity_alert(app_name: str, action: str, entity_name: str, param: str) -> dict[str, str]:
    """Alert headers for a successful create / update / delete."""
    return {
        f"X-{app_name}-alert": f"{app_name}.{entity_name}.{action}",
        f"X-{app_name}-params": param,
    }


def failure_alert(app_name: str, entity_name: str, error_key: str) -> dict[str, str]:
    return {
        f"X-{app_name}-error": f"error.{error_key}",
        f"X-{app_name}-params": entity_name,
    }


def pagination(url: URL, page: Page) -> dict[str, str]:
    """``X-Total-Count`` plus an RFC 5988 ``Link`` header for page navigation."""

    def link(number: int, rel: str) -> str:
        return f'<{url.include_query_params(page=number, size=page.size)}>; rel="{rel}"'

    links: list[str] = []
    if page.has_next:
        links.append(link(page.page + 1, "next"))
    if page.page > 0:
        links.append(link(page.page - 1, "prev"))
    links.append(link(max(page.total_pages - 1, 0), "last"))
    links.append(link(0, "first"))

    return {"X-Total-Count": str(page.total), "Link": ",".join(links)}
