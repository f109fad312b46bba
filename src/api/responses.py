"""
Success envelope helpers shared by the route modules.

    {"success": true, "message": <optional>, "data": ...}
    {"success": true, "data": [...], "total", "page", "limit", "total_pages"}
"""
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    return body


def dump(schema: Type[BaseModel], obj: Any) -> Dict[str, Any]:
    """Serialize an ORM object through a from_attributes schema."""
    return schema.model_validate(obj).model_dump(mode="json")


def paginated(schema: Type[BaseModel], result: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap a pagination result, serializing each row."""
    return {
        "success": True,
        "data": [dump(schema, row) for row in result["data"]],
        "total": result["total"],
        "page": result["page"],
        "limit": result["limit"],
        "total_pages": result["total_pages"],
    }
