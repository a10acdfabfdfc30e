"""
Campaign Service Clients

Clients for calling external services.
"""

from .workflow_client import WorkflowClient, build_execute_workflow_query

__all__ = [
    "WorkflowClient",
    "build_execute_workflow_query",
]
