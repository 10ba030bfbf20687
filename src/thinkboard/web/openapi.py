from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

API_TAGS = [
    {"name": "profile", "description": "The authenticated user and the user directory"},
    {"name": "notes", "description": "Notes, version history and collaborators"},
    {"name": "attachments", "description": "Files attached to notes"},
    {"name": "sharing", "description": "Share links, including anonymous access to public links"},
    {"name": "reminders", "description": "Reminders on notes and the upcoming/today views"},
]

# Operations that accept requests without a bearer token
PUBLIC_OPERATIONS = frozenset(
    {
        ("get", "/health"),
        ("get", "/api/v1/shared/{token}"),
        ("get", "/api/v1/notes/{note_id}/attachments/{attachment_id}"),
    }
)


def build_openapi_schema(app: FastAPI) -> dict[str, Any]:
    schema = get_openapi(
        title="ThinkBoard API",
        version="0.1.0",
        summary="Collaborative notes with version history, share links and email reminders",
        routes=app.routes,
        tags=API_TAGS,
    )
    schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Token issued by the identity provider",
        },
    }
    schema["security"] = [{"BearerAuth": []}]

    for path, path_item in schema["paths"].items():
        for method, operation in path_item.items():
            if (method, path) in PUBLIC_OPERATIONS:
                # Token optional: anonymous or bearer
                operation["security"] = [{}, {"BearerAuth": []}]
    return schema


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema is None:
            app.openapi_schema = build_openapi_schema(app)
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Error body returned for every non-2xx response."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")
    field: str | None = Field(None, description="Offending input field, for validation errors")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Title is required", "type": "validation_error", "field": "title"},
                {"message": "Note not found or access denied", "type": "not_found"},
                {"message": "Share link has expired", "type": "expired"},
            ]
        }
    }
