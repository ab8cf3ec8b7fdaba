"""
Jira Cloud API Client

Provides the issue tracker integration used by the portal:
- Ticket lookup and JQL search (with per-customer attribution)
- Workflow transitions (optionally setting a resolution)
- Comment thread read/append
- Attachment download
"""
import httpx
from typing import Dict, Any, Optional, List
from dateutil import parser as date_parser

from helpdesk.config import Settings, get_settings
from helpdesk.exceptions import TrackerError, TransitionUnavailable
from helpdesk.models.schemas import (
    AttachmentContent,
    AttachmentInfo,
    Comment,
    Ticket,
    Transition,
)
from helpdesk.utils.logger import get_logger
from helpdesk.utils.validators import normalize_email
import asyncio

logger = get_logger(__name__)

TICKET_FIELDS = "summary,status,created,updated,assignee,reporter,description,priority,issuetype,attachment"
RETRYABLE_STATUS = [429, 500, 502, 503, 504]


def extract_text_from_adf(node: Any) -> str:
    """
    Flatten an Atlassian Document Format tree to plain text.

    Paragraphs and headings end with a newline; other containers just
    concatenate their children. Plain strings pass through unchanged.
    """
    if node is None:
        return ""
    if isinstance(node, str):
        return node

    def walk(current: Dict[str, Any]) -> str:
        if not isinstance(current, dict):
            return ""
        if current.get("type") == "text":
            return current.get("text", "")
        if current.get("type") == "hardBreak":
            return "\n"

        text = "".join(walk(child) for child in current.get("content") or [])
        if current.get("type") in ("paragraph", "heading"):
            text += "\n"
        return text

    return walk(node).strip()


def _parse_datetime(value: Optional[str]):
    if not value:
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, TypeError):
        logger.warning(f"Unparseable Jira timestamp: {value}")
        return None


class JiraClient:
    """
    Jira REST v3 integration with retry logic and error handling
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.base_url = f"{self.settings.JIRA_URL}/rest/api/3"
        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json"
        }
        self.timeout = self.settings.jira_timeout
        self.max_retries = self.settings.jira_max_retries

    async def _send(
        self,
        method: str,
        url: str,
        **kwargs
    ) -> httpx.Response:
        """
        Send HTTP request with retry logic

        Args:
            method: HTTP method (GET, POST, PUT, etc.)
            url: Absolute URL
            **kwargs: Additional arguments for httpx

        Returns:
            Successful response

        Raises:
            ConfigurationError: When Jira credentials are missing
            TrackerError: On HTTP or transport errors after retries
        """
        self.settings.require_jira()

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(
                        method=method,
                        url=url,
                        auth=(self.settings.jira_email, self.settings.jira_api_token),
                        headers=self.headers,
                        **kwargs
                    )
                    response.raise_for_status()
                    return response

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code in RETRYABLE_STATUS and attempt < self.max_retries - 1:
                    # Exponential backoff
                    wait_time = 2 ** attempt
                    logger.warning(
                        f"Jira request failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {wait_time}s: {e}"
                    )
                    await asyncio.sleep(wait_time)
                    continue
                raise TrackerError(f"Jira {method} {url} failed: {e}", status_code=status_code) from e
            except httpx.RequestError as e:
                if attempt < self.max_retries - 1:
                    wait_time = 2 ** attempt
                    logger.warning(
                        f"Jira transport error (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {wait_time}s: {e}"
                    )
                    await asyncio.sleep(wait_time)
                    continue
                raise TrackerError(f"Jira {method} {url} unreachable: {e}") from e

        raise TrackerError(f"Jira {method} {url} failed after {self.max_retries} attempts")

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """Request a REST endpoint and decode the JSON body ({} when empty)"""
        response = await self._send(method, f"{self.base_url}/{endpoint}", **kwargs)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    # ------------------------------------------------------------------
    # Tickets
    # ------------------------------------------------------------------
    def _transform_issue(self, issue: Dict[str, Any]) -> Ticket:
        """Convert a raw Jira issue into a Ticket"""
        fields = issue.get("fields") or {}
        status = fields.get("status") or {}
        reporter = fields.get("reporter") or {}
        assignee = fields.get("assignee") or {}

        attachments = [
            AttachmentInfo(
                id=str(att.get("id")),
                filename=att.get("filename", ""),
                size=att.get("size") or 0,
                mime_type=att.get("mimeType"),
                content_url=att.get("content"),
            )
            for att in fields.get("attachment") or []
        ]

        return Ticket(
            id=str(issue.get("id", "")),
            key=issue["key"],
            summary=fields.get("summary") or "",
            status=status.get("name") or "",
            status_category=(status.get("statusCategory") or {}).get("name"),
            created=_parse_datetime(fields.get("created")),
            updated=_parse_datetime(fields.get("updated")),
            reporter_email=reporter.get("emailAddress"),
            assignee_email=assignee.get("emailAddress"),
            description=extract_text_from_adf(fields.get("description")),
            priority=(fields.get("priority") or {}).get("name"),
            issue_type=(fields.get("issuetype") or {}).get("name"),
            attachments=attachments,
        )

    async def get_ticket(self, ticket_key: str) -> Optional[Ticket]:
        """
        Get ticket details by key

        Args:
            ticket_key: Jira issue key

        Returns:
            Ticket, or None when Jira reports 404
        """
        logger.info(f"Fetching ticket {ticket_key}")
        try:
            data = await self._make_request(
                "GET",
                f"issue/{ticket_key}",
                params={"fields": TICKET_FIELDS}
            )
        except TrackerError as e:
            if e.status_code == 404:
                logger.info(f"Ticket {ticket_key} not found")
                return None
            raise
        return self._transform_issue(data)

    async def search(self, jql: str, max_results: int = 100) -> List[Ticket]:
        """
        Run a JQL search, following nextPageToken pagination

        Args:
            jql: JQL query
            max_results: Maximum number of tickets to return

        Returns:
            List of tickets in Jira's order
        """
        tickets: List[Ticket] = []
        next_page_token: Optional[str] = None

        while len(tickets) < max_results:
            params = {
                "jql": jql,
                "maxResults": min(max_results - len(tickets), 100),
                "fields": TICKET_FIELDS,
            }
            if next_page_token:
                params["nextPageToken"] = next_page_token

            data = await self._make_request("GET", "search/jql", params=params)
            issues = data.get("issues") or []
            tickets.extend(self._transform_issue(issue) for issue in issues)

            next_page_token = data.get("nextPageToken")
            if not issues or not next_page_token or data.get("isLast"):
                break

        logger.info(f"JQL search returned {len(tickets)} tickets")
        return tickets[:max_results]

    async def get_all_tickets(self, max_results: int = 1000) -> List[Ticket]:
        """All tickets in the configured project, most recently updated first"""
        jql = f'project = "{self.settings.jira_project_key}" ORDER BY updated DESC'
        return await self.search(jql, max_results=max_results)

    async def get_tickets_by_user(self, user_email: str, limit: int = 100) -> List[Ticket]:
        """
        Tickets attributed to a customer

        The master account sees every ticket. Everyone else is matched on the
        "From:" marker in the description, then on the reporter address, and
        finally on the address appearing anywhere in the description.

        Args:
            user_email: Customer address
            limit: Maximum number of tickets scanned

        Returns:
            Matching tickets, most recently updated first
        """
        all_tickets = await self.get_all_tickets(max_results=limit)

        if self.settings.is_master(user_email):
            logger.info(f"Master account - returning all {len(all_tickets)} tickets")
            return all_tickets

        wanted = normalize_email(user_email)
        matched = []
        for ticket in all_tickets:
            owner = ticket.customer_email
            if owner is None and wanted and wanted in ticket.description.lower():
                owner = wanted
            if owner == wanted:
                matched.append(ticket)

        if not matched and all_tickets:
            logger.warning(
                f"No tickets attributed to {user_email} among {len(all_tickets)} scanned"
            )

        logger.info(f"Filtered {len(matched)} tickets for {user_email}")
        return matched

    async def get_latest_ticket_by_user(self, user_email: str) -> Optional[Ticket]:
        """
        Most recently created ticket attributed to the customer, or None

        Looks the customer up as reporter/assignee with JQL first. Customers
        without a Jira account make Jira reject that query with 400, and
        mail-created tickets are reported by the service account, so an
        empty or rejected lookup falls back to the marker-filtered list.
        """
        wanted = normalize_email(user_email).replace('"', "")
        if wanted:
            jql = f'reporter = "{wanted}" OR assignee = "{wanted}" ORDER BY created DESC'
            try:
                found = await self.search(jql, max_results=1)
            except TrackerError as e:
                if e.status_code != 400:
                    raise
                logger.info(f"JQL lookup rejected for {user_email}, using description markers")
                found = []
            if found:
                return found[0]

        tickets = await self.get_tickets_by_user(user_email)
        dated = [ticket for ticket in tickets if ticket.created is not None]
        if not dated:
            return None
        return max(dated, key=lambda ticket: ticket.created)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    async def get_available_transitions(self, ticket_key: str) -> List[Transition]:
        """Transitions reachable from the ticket's current state"""
        data = await self._make_request("GET", f"issue/{ticket_key}/transitions")
        return [
            Transition(
                id=str(item.get("id")),
                name=item.get("name") or "",
                to_name=(item.get("to") or {}).get("name") or "",
            )
            for item in data.get("transitions") or []
        ]

    async def transition(
        self,
        ticket_key: str,
        target: str,
        resolution: Optional[str] = None
    ) -> bool:
        """
        Move a ticket through the workflow

        Args:
            ticket_key: Jira issue key
            target: Transition id, transition name or destination status name
            resolution: Optional resolution name to set with the transition

        Returns:
            True once Jira accepted the transition

        Raises:
            TransitionUnavailable: No matching transition from the current state
            TrackerError: Jira rejected the request
        """
        transitions = await self.get_available_transitions(ticket_key)
        chosen = next(
            (t for t in transitions if t.id == target or t.matches(target)),
            None
        )
        if chosen is None:
            raise TransitionUnavailable(ticket_key, target, [t.name for t in transitions])

        payload: Dict[str, Any] = {"transition": {"id": chosen.id}}
        if resolution:
            payload["fields"] = {"resolution": {"name": resolution}}

        try:
            await self._make_request("POST", f"issue/{ticket_key}/transitions", json=payload)
        except TrackerError as e:
            # Workflows without a resolution screen reject the field
            if not resolution or e.status_code != 400:
                raise
            logger.warning(
                f"Jira rejected resolution '{resolution}' for {ticket_key}, retrying without it"
            )
            await self._make_request(
                "POST",
                f"issue/{ticket_key}/transitions",
                json={"transition": {"id": chosen.id}}
            )

        logger.info(f"Transitioned {ticket_key} via '{chosen.name}' to '{chosen.to_name or target}'")
        return True

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------
    @staticmethod
    def _transform_comment(item: Dict[str, Any]) -> Comment:
        author = item.get("author") or {}
        return Comment(
            id=str(item.get("id")),
            author_email=author.get("emailAddress"),
            author_name=author.get("displayName"),
            body=extract_text_from_adf(item.get("body")),
            created=_parse_datetime(item.get("created")),
        )

    async def get_comments(self, ticket_key: str) -> List[Comment]:
        """All comments on a ticket, oldest first"""
        data = await self._make_request("GET", f"issue/{ticket_key}/comment")
        return [self._transform_comment(item) for item in data.get("comments") or []]

    async def add_comment(self, ticket_key: str, text: str) -> Comment:
        """Append a single-paragraph ADF comment"""
        logger.info(f"Adding comment to ticket {ticket_key}")
        body = {
            "body": {
                "type": "doc",
                "version": 1,
                "content": [
                    {
                        "type": "paragraph",
                        "content": [{"type": "text", "text": text}],
                    }
                ],
            }
        }
        data = await self._make_request("POST", f"issue/{ticket_key}/comment", json=body)
        return self._transform_comment(data)

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------
    async def fetch_attachment(self, attachment_id: str) -> AttachmentContent:
        """
        Download an attachment

        Reads the attachment metadata first to get the content URL, filename
        and MIME type, then downloads the bytes.
        """
        metadata = await self._make_request("GET", f"attachment/{attachment_id}")
        download_url = metadata.get("content")
        if not download_url:
            raise TrackerError(f"Attachment {attachment_id} has no content URL", status_code=404)

        response = await self._send("GET", download_url, follow_redirects=True)
        logger.info(
            f"Downloaded attachment {attachment_id} ({len(response.content)} bytes)"
        )
        return AttachmentContent(
            filename=metadata.get("filename") or f"attachment-{attachment_id}",
            content_type=metadata.get("mimeType") or "application/octet-stream",
            data=response.content,
        )
