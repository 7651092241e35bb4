"""List source health checks.

Issues a HEAD request (redirects followed) per configured source URL and
reports which categories are healthy, empty or have unreachable lists.
Nothing is downloaded or cached.
"""

import logging
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

import httpx
from rich.console import Console
from rich.table import Table

from site_categorizer.collectors.base import LocalListSource
from site_categorizer.constants import DEFAULT_REQUEST_TIMEOUT
from site_categorizer.graph import CategoryGraphBuilder
from site_categorizer.schema import ListHealthReport

logger = logging.getLogger(__name__)

INVALID_URL = "Invalid URL format"


def describe_status(status_code: int) -> str:
    """
    Human-readable label for an HTTP error status.

    Examples:
        >>> describe_status(404)
        '404 Not Found'
        >>> describe_status(502)
        'Server Error (502)'
    """
    if status_code == 404:
        return "404 Not Found"
    if status_code == 403:
        return "403 Forbidden"
    if status_code >= 500:
        return f"Server Error ({status_code})"
    return f"HTTP {status_code}"


class ListHealthChecker:
    """
    Checks reachability of every source in a category map.

    Args:
        client: httpx client used for HEAD requests
        timeout: Per-request timeout in seconds
        console: Rich console for the printed report
    """

    def __init__(
        self,
        client: httpx.Client,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        console: Optional[Console] = None,
    ):
        self.client = client
        self.timeout = timeout
        self.console = console or Console()

    def check_url(self, url: Any) -> tuple[bool, dict[str, Any]]:
        """
        Check one source URL.

        Returns:
            (reachable, detail) where detail has ``url`` plus ``status`` or ``error``
        """
        if not isinstance(url, str):
            return False, {"url": str(url), "error": INVALID_URL}

        try:
            scheme = urlsplit(url).scheme.lower()
        except ValueError:
            return False, {"url": url, "error": INVALID_URL}

        if scheme == "file":
            if LocalListSource.path_for(url).is_file():
                return True, {"url": url, "status": "file"}
            return False, {"url": url, "error": "File not found"}
        if scheme not in ("http", "https"):
            return False, {"url": url, "error": INVALID_URL}

        try:
            response = self.client.head(url, timeout=self.timeout, follow_redirects=True)
        except httpx.TimeoutException:
            return False, {"url": url, "error": "Request timeout"}
        except httpx.ConnectError as e:
            return False, {"url": url, "error": f"DNS/Network Error: {e}"}
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return False, {"url": url, "error": f"HTTP Error: {e}"}

        if response.is_error:
            return False, {"url": url, "error": describe_status(response.status_code)}
        return True, {"url": url, "status": response.status_code}

    def check(self, host_urls: Mapping[str, list]) -> ListHealthReport:
        """
        Check every source and print a report.

        Categories with no entries are missing; categories made only of
        references to other categories count as healthy.

        Args:
            host_urls: Category -> source URLs and/or category names

        Returns:
            ListHealthReport
        """
        sources, references = CategoryGraphBuilder.partition(host_urls)

        report = ListHealthReport(summary={})
        reference_rows: list[tuple[str, str]] = []
        healthy = 0
        total_urls = 0

        self.console.print(f"Checking all lists in constants... ({len(host_urls)} categories)")

        for category, entries in host_urls.items():
            if not entries:
                report.missing_categories.append(category)
                continue

            for ref in references[category]:
                reference_rows.append((category, ref))

            failures = []
            successes = []
            for url in sources[category]:
                total_urls += 1
                ok, detail = self.check_url(url)
                (successes if ok else failures).append(detail)
                if not ok:
                    logger.debug("List %s for %s unreachable: %s", url, category, detail["error"])

            if failures:
                report.unreachable_lists[category] = failures
            else:
                healthy += 1
            if successes:
                report.successful_lists[category] = successes

        unreachable_urls = sum(len(v) for v in report.unreachable_lists.values())
        report.summary = {
            "total_categories": len(host_urls),
            "healthy_categories": healthy,
            "categories_with_issues": len(report.unreachable_lists) + len(report.missing_categories),
            "total_urls": total_urls,
            "reachable_urls": total_urls - unreachable_urls,
            "unreachable_urls": unreachable_urls,
        }

        self._print_report(report, reference_rows)
        return report

    def _print_report(self, report: ListHealthReport, reference_rows: list[tuple[str, str]]) -> None:
        console = self.console

        summary = Table(title="LIST HEALTH REPORT")
        summary.add_column("Metric", style="cyan")
        summary.add_column("Value", style="yellow")
        for key, value in report.summary.items():
            summary.add_row(key.replace("_", " ").title(), str(value))
        console.print(summary)

        if report.missing_categories:
            console.print("\n[yellow]MISSING CATEGORIES (no lists configured):[/yellow]")
            for category in report.missing_categories:
                console.print(f"  - {category}")

        if report.unreachable_lists:
            table = Table(title="UNREACHABLE LISTS")
            table.add_column("Category", style="cyan")
            table.add_column("URL")
            table.add_column("Error", style="red")
            for category, failures in report.unreachable_lists.items():
                for failure in failures:
                    table.add_row(category, failure["url"], failure["error"])
            console.print(table)

        if report.successful_lists or reference_rows:
            table = Table(title="WORKING LISTS")
            table.add_column("Category", style="cyan")
            table.add_column("Source")
            table.add_column("Status", style="green")
            for category, successes in report.successful_lists.items():
                for success in successes:
                    table.add_row(category, success["url"], str(success["status"]))
            for category, ref in reference_rows:
                table.add_row(category, ref, "References other category")
            console.print(table)
