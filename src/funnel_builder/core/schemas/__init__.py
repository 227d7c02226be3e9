"""Pydantic schemas for request/response validation.

Sub-modules:
    workspace_clone - CloneWorkspaceRequest, CloneWorkspaceResponse, ClonedWorkspaceSummary
"""

from __future__ import annotations
