"""
Workflow Service Client

Client for the external workflow-execution service (GraphQL). Content
generation, product search, KPI fetches and notification emails all run
as workflows invoked through the same `executeWorkflow` query.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import httpx

from core.config import WorkflowConfig, get_settings
from ..protocols import WorkflowError, WorkflowNotConfiguredError

logger = logging.getLogger(__name__)


def _graphql_value(value: Any) -> Any:
    """Workflow inputs are strings (or lists of strings)"""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_graphql_value(v) for v in value]
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def _flatten_payload(
    payload: Dict[str, Any],
    prefix: str = "",
) -> Tuple[List[str], Dict[str, Any], str]:
    """
    Walk a payload dict into GraphQL pieces.

    Nested dicts keep their shape in the payload literal; each leaf becomes
    a variable named by its key path joined with underscores
    ({"channels": {"blog": ...}} -> $channels_blog).

    Returns:
        (variable declarations, variable values, payload literal)
    """
    declarations: List[str] = []
    variables: Dict[str, Any] = {}
    fields: List[str] = []

    for key, value in payload.items():
        name = f"{prefix}_{key}" if prefix else key
        if isinstance(value, dict):
            nested_decls, nested_vars, literal = _flatten_payload(value, name)
            declarations.extend(nested_decls)
            variables.update(nested_vars)
            fields.append(f"{key}: {literal}")
            continue

        gql_type = "[String]" if isinstance(value, (list, tuple)) else "String"
        declarations.append(f"${name}: {gql_type}")
        variables[name] = _graphql_value(value)
        fields.append(f"{key}: ${name}")

    return declarations, variables, "{ " + ", ".join(fields) + " }"


def build_execute_workflow_query(
    workflow_id: str,
    payload: Dict[str, Any],
) -> Tuple[str, Dict[str, Any]]:
    """Build the executeWorkflow query and its variables for a payload"""
    declarations, variables, literal = _flatten_payload(payload)
    query = (
        "query ExecuteWorkflow($workflowId: String!"
        + "".join(f", {d}" for d in declarations)
        + ") {\n"
        + f"  executeWorkflow(workflowId: $workflowId, payload: {literal}) {{\n"
        + "    status\n"
        + "    result\n"
        + "  }\n"
        + "}"
    )
    return query, {"workflowId": workflow_id, **variables}


class WorkflowClient:
    """Client for the workflow-execution GraphQL endpoint"""

    def __init__(self, config: Optional[WorkflowConfig] = None):
        if config is None:
            config = get_settings().workflow

        self.config = config
        self.api_url = config.api_url
        self.api_token = config.api_token
        self.project_id = config.project_id
        self.timeout = config.timeout_seconds

    def is_configured(self, require_project: bool = False) -> bool:
        """Endpoint and token present (and project id when required)"""
        if not self.api_url or not self.api_token:
            return False
        return bool(self.project_id) or not require_project

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }
        if self.project_id:
            headers["x-project-id"] = self.project_id
        return headers

    async def execute_workflow(
        self,
        workflow_id: Optional[str],
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Execute a workflow.

        Args:
            workflow_id: Workflow identifier
            payload: Workflow inputs; nested dicts allowed, leaves are sent
                as strings or lists of strings

        Returns:
            The executeWorkflow block: {"status": ..., "result": ...}

        Raises:
            WorkflowNotConfiguredError: missing URL, token or workflow id
            WorkflowError: transport failure, HTTP error, or GraphQL errors
        """
        if not self.is_configured():
            raise WorkflowNotConfiguredError("Missing workflow API URL or token")
        if not workflow_id:
            raise WorkflowNotConfiguredError("Missing workflow id")

        query, variables = build_execute_workflow_query(workflow_id, payload)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    json={"query": query, "variables": variables},
                    headers=self._headers(),
                )
                response.raise_for_status()
                body = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Workflow {workflow_id} HTTP error: {e.response.text}")
            raise WorkflowError(
                f"Workflow request failed with HTTP {e.response.status_code}: {e.response.text}"
            ) from e

        except httpx.HTTPError as e:
            logger.error(f"Workflow {workflow_id} request failed: {e}")
            raise WorkflowError(str(e) or type(e).__name__) from e

        errors = body.get("errors")
        if errors:
            logger.error(f"Workflow {workflow_id} GraphQL errors: {errors}")
            message = errors[0].get("message") if isinstance(errors[0], dict) else None
            raise WorkflowError(message or "GraphQL Error")

        return (body.get("data") or {}).get("executeWorkflow") or {}


__all__ = ["WorkflowClient", "build_execute_workflow_query"]
