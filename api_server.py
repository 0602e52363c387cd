"""FastAPI REST API server for Reminders MCP Service.

This module provides HTTP endpoints mirroring the MCP tools, for
frontend/external application access. List and reminder names travel in
the path (URL-encoded), e.g. GET /lists/Smart%3A%20Today/reminders.
"""

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional

import crud
import schemas
from config import settings
from exceptions import ErrorKind, RemindersError
from logger_config import setup_logger
from store import ReminderStore, get_store

logger = setup_logger(__name__, 'api.log')

app = FastAPI(
    title="Reminders API",
    description="macOS Reminders with smart lists, tags and locations",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.UPSTREAM: 502,
}


@app.exception_handler(RemindersError)
async def reminders_error_handler(request: Request, exc: RemindersError):
    """Render service errors as {"error", "details"} with a status per kind."""
    summary = f"Failed to {exc.operation}" if exc.operation else "Request failed"
    return JSONResponse(
        status_code=STATUS_BY_KIND[exc.kind],
        content={"error": summary, "details": str(exc)}
    )


@app.get("/")
def root():
    """Root endpoint - service information"""
    return {
        "service": "Reminders API",
        "version": "1.0.0",
        "status": "healthy",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "lists": "/lists",
            "tags": "/tags"
        }
    }


@app.get("/health")
def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "service": "reminders",
        "backend": settings.REMINDERS_BACKEND
    }


@app.get("/lists")
async def get_lists(store: ReminderStore = Depends(get_store)):
    """All real list names followed by the smart lists."""
    return {"lists": await crud.get_list_names(store)}


@app.get("/lists/{list_name}/reminders")
async def get_reminders(list_name: str, store: ReminderStore = Depends(get_store)):
    """Reminders of a real or smart list, with tags and location decoded."""
    records = await crud.list_reminders(store, list_name)
    return {"reminders": [r.to_payload() for r in records]}


@app.post("/lists/{list_name}/reminders", status_code=201)
async def create_reminder(
    list_name: str,
    reminder: schemas.ReminderCreate,
    store: ReminderStore = Depends(get_store)
):
    """Create a reminder in a regular list.

    Request body example:
    ```json
    {
        "title": "Pick up parcel",
        "due_date": "2025-10-26T15:00:00Z",
        "tags": ["errands"],
        "location": {"title": "Post office", "latitude": 52.52, "longitude": 13.40,
                     "radiusMeters": 150, "proximity": "arriving"}
    }
    ```
    """
    success = await crud.create_reminder(
        store,
        list_name,
        reminder.title,
        due_date=reminder.due_date,
        notes=reminder.notes,
        flagged=reminder.flagged,
        priority=reminder.priority,
        tags=reminder.tags,
        location=reminder.location
    )
    return {"success": success, "message": "Reminder created" if success else "Failed to create reminder"}


@app.get("/tags")
async def get_tags(
    list_name: Optional[str] = Query(None, min_length=1, description="Limit to one list"),
    store: ReminderStore = Depends(get_store)
):
    """All tags in use, sorted alphabetically."""
    return {"tags": await crud.get_tags(store, list_name)}


@app.patch("/lists/{list_name}/reminders/{reminder_name}")
async def set_reminder_attributes(
    list_name: str,
    reminder_name: str,
    attributes: schemas.ReminderAttributesUpdate,
    store: ReminderStore = Depends(get_store)
):
    """Update flag, priority, tags or location.

    Only fields present in the body are applied: `"tags": []` removes all
    tags, `"location": null` removes the location.
    """
    success = await crud.set_reminder_attributes(store, list_name, reminder_name, attributes)
    if not success:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return {"success": True, "message": "Reminder attributes updated"}


@app.post("/lists/{list_name}/reminders/{reminder_name}/complete")
async def complete_reminder(
    list_name: str,
    reminder_name: str,
    store: ReminderStore = Depends(get_store)
):
    """Mark a reminder as completed."""
    success = await crud.complete_reminder(store, list_name, reminder_name)
    if not success:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return {"success": True, "message": "Reminder marked as completed"}


@app.delete("/lists/{list_name}/reminders/{reminder_name}")
async def delete_reminder(
    list_name: str,
    reminder_name: str,
    store: ReminderStore = Depends(get_store)
):
    """Delete a reminder."""
    success = await crud.delete_reminder(store, list_name, reminder_name)
    if not success:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return {"success": True, "message": "Reminder deleted"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="info"
    )
