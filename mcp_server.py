"""MCP Server for Reminders MCP Service.

This module provides MCP tools for AI agents to manage macOS reminders,
including smart lists (Smart: Today, Smart: Overdue, ...) and tags/location
stored in the reminder notes.

Every tool returns a single JSON text block. Failures come back as
{"error": ..., "details": ...} with isError set, never as protocol faults,
so the caller always receives parseable JSON.

Transport Support:
- stdio: Standard input/output (local process communication, default)
- sse: Server-Sent Events over HTTP (network access)
"""

import json
import os
from typing import Annotated, List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent
from pydantic import Field

import crud
from config import settings
from logger_config import setup_logger
from schemas import LocationArgument, ReminderAttributesUpdate, ReminderLocation
from store import get_store

logger = setup_logger(__name__, 'mcp.log')
logger.info("MCP Server initialized")

mcp = FastMCP(
    "apple-reminders",
    host=settings.MCP_HOST,
    port=settings.MCP_PORT
)

ListName = Annotated[str, Field(min_length=1, description="Reminder list name, e.g. 'Work' or 'Smart: Today'")]
ReminderName = Annotated[str, Field(min_length=1, description="Exact reminder title")]
Priority = Annotated[int, Field(ge=0, le=9, description="0 (none) to 9")]


def success_response(payload: dict) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(payload))]
    )


def failure_response(message: str, error: Exception) -> CallToolResult:
    logger.error(f"✗ {message}: {error}")
    return CallToolResult(
        content=[TextContent(
            type="text",
            text=json.dumps({"error": message, "details": str(error)})
        )],
        isError=True
    )


def result_message(success: bool, done: str, not_done: str = "Reminder not found") -> dict:
    return {"success": success, "message": done if success else not_done}


@mcp.tool()
async def get_lists() -> CallToolResult:
    """Get all reminder lists, followed by the smart lists (e.g. "Smart: Today").

    Returns:
        {"lists": [...]} with real list names first
    """
    try:
        lists = await crud.get_list_names(get_store())
        return success_response({"lists": lists})
    except Exception as e:
        return failure_response("Failed to get reminder lists", e)


@mcp.tool()
async def get_reminders(list_name: ListName) -> CallToolResult:
    """Get reminders from a list or a smart list.

    Args:
        list_name: List name; smart lists accept "Smart: Today", "today", ...

    Returns:
        {"reminders": [...]} with name, completed, dueDate, flagged, priority,
        notes, tags and location for each reminder
    """
    try:
        records = await crud.list_reminders(get_store(), list_name)
        return success_response({"reminders": [r.to_payload() for r in records]})
    except Exception as e:
        return failure_response(f"Failed to get reminders from list: {list_name}", e)


@mcp.tool()
async def create_reminder(
    list_name: ListName,
    title: Annotated[str, Field(min_length=1, description="Reminder title")],
    due_date: Optional[str] = None,
    notes: Optional[str] = None,
    flagged: Optional[bool] = None,
    priority: Optional[Priority] = None,
    tags: Optional[List[str]] = None,
    location: Optional[ReminderLocation] = None
) -> CallToolResult:
    """Create a new reminder in a regular (non-smart) list.

    Args:
        list_name: Target list name
        title: Reminder title
        due_date: Optional due date - ISO format (e.g., "2025-10-26T15:00:00Z")
        notes: Optional notes
        flagged: Optional flag
        priority: Optional priority 0-9
        tags: Optional tags (e.g., ["work", "#urgent"])
        location: Optional location {title, latitude, longitude, radiusMeters,
            proximity: "arriving" | "leaving"}

    Returns:
        {"success": bool, "message": str}
    """
    try:
        success = await crud.create_reminder(
            get_store(),
            list_name,
            title,
            due_date=due_date,
            notes=notes,
            flagged=flagged,
            priority=priority,
            tags=tags,
            location=location
        )
        return success_response(result_message(success, "Reminder created", "Failed to create reminder"))
    except Exception as e:
        return failure_response("Failed to create reminder", e)


@mcp.tool()
async def get_tags(list_name: Optional[ListName] = None) -> CallToolResult:
    """Get all tags used by reminders, optionally limited to one list.

    Returns:
        {"tags": [...]} sorted alphabetically
    """
    try:
        tags = await crud.get_tags(get_store(), list_name)
        return success_response({"tags": tags})
    except Exception as e:
        return failure_response("Failed to get tags", e)


@mcp.tool()
async def set_reminder_attributes(
    list_name: ListName,
    reminder_name: ReminderName,
    flagged: Optional[bool] = None,
    priority: Optional[Priority] = None,
    tags: Optional[List[str]] = None,
    location: LocationArgument = "unchanged"
) -> CallToolResult:
    """Set flag, priority, tags or location on a reminder found by name.

    Args:
        list_name: List (or smart list) containing the reminder
        reminder_name: Exact reminder title
        flagged: Optional new flag
        priority: Optional new priority 0-9
        tags: Optional replacement tags; [] removes all tags
        location: New location object, null to remove it, or omit to keep it

    Returns:
        {"success": bool, "message": str}
    """
    fields = {}
    if flagged is not None:
        fields["flagged"] = flagged
    if priority is not None:
        fields["priority"] = priority
    if tags is not None:
        fields["tags"] = tags
    if location != "unchanged":
        fields["location"] = location

    try:
        success = await crud.set_reminder_attributes(
            get_store(),
            list_name,
            reminder_name,
            ReminderAttributesUpdate(**fields)
        )
        return success_response(result_message(success, "Reminder attributes updated"))
    except Exception as e:
        return failure_response("Failed to set reminder attributes", e)


@mcp.tool()
async def complete_reminder(list_name: ListName, reminder_name: ReminderName) -> CallToolResult:
    """Mark a reminder as completed.

    Returns:
        {"success": bool, "message": str}
    """
    try:
        success = await crud.complete_reminder(get_store(), list_name, reminder_name)
        return success_response(result_message(success, "Reminder marked as completed"))
    except Exception as e:
        return failure_response("Failed to complete reminder", e)


@mcp.tool()
async def delete_reminder(list_name: ListName, reminder_name: ReminderName) -> CallToolResult:
    """Delete a reminder.

    Returns:
        {"success": bool, "message": str}
    """
    try:
        success = await crud.delete_reminder(get_store(), list_name, reminder_name)
        return success_response(result_message(success, "Reminder deleted"))
    except Exception as e:
        return failure_response("Failed to delete reminder", e)


if __name__ == "__main__":
    # Get transport from environment or config
    transport = os.getenv("MCP_TRANSPORT", settings.MCP_TRANSPORT).lower()

    if transport == "sse":
        logger.info(f"Starting MCP server with SSE transport on {settings.MCP_HOST}:{settings.MCP_PORT}")
        mcp.run(transport="sse")
    else:
        # Nothing but protocol traffic may go to stdout here
        logger.info("Starting MCP server with stdio transport")
        mcp.run(transport="stdio")
