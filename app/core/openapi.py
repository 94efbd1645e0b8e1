"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata
- A bearer session security scheme required only by private procedures

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

PRIVATE_OPERATIONS = {"posts.create"}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security.

    - Injects components.securitySchemes for bearer session tokens
    - Marks private procedures as requiring it and every other
      operation as public (``security: []``)
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "SessionAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Session token issued by the identity provider.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Posts",
                "description": "List and create posts.",
            },
            {
                "name": "Health",
                "description": "Liveness and readiness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                if method_obj.get("operationId") in PRIVATE_OPERATIONS:
                    method_obj["security"] = [{"SessionAuth": []}]
                else:
                    method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
