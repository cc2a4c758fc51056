"""Tool registry: visibility-filtered reads and Admin-only creation."""

from typing import Any

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.rbac import can_view_tool, require_permission, visible_tools
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import Role, Tool
from ops_portal.errors import EntityNotFound, ValidationFailure
from ops_portal.observability.logging import get_logger
from ops_portal.services.audit import record_audit

logger = get_logger(__name__)

ALL_CATEGORIES = "All"


class ToolService:
    def __init__(self, adapter: DataAdapter):
        self.adapter = adapter

    async def list_tools(
        self,
        session: SessionContext,
        search: str = "",
        category: str = ALL_CATEGORIES,
    ) -> list[Tool]:
        """
        Tools the principal may see, optionally narrowed by a case-insensitive
        search over name and vendor and by exact category.
        """
        principal = session.require_principal()
        require_permission(principal.role, "tools", "view")

        term = search.strip().lower()
        tools = visible_tools(principal.role, await self.adapter.list_tools())
        return [
            tool
            for tool in tools
            if (not term or term in tool.name.lower() or term in tool.vendor.lower())
            and (category in ("", ALL_CATEGORIES) or tool.category == category)
        ]

    async def categories(self, session: SessionContext) -> list[str]:
        tools = await self.list_tools(session)
        return [ALL_CATEGORIES, *sorted({tool.category for tool in tools})]

    async def get_tool(self, session: SessionContext, tool_id: str) -> Tool:
        principal = session.require_principal()
        tool = await self.adapter.get_tool_by_id(tool_id)
        # A hidden tool is reported exactly like a missing one
        if tool is None or not can_view_tool(principal.role, tool):
            raise EntityNotFound(f"No tool with id {tool_id}.")
        return tool

    async def create_tool(self, session: SessionContext, data: dict[str, Any]) -> Tool:
        principal = session.require_principal()
        require_permission(principal.role, "tools", "create")

        if not str(data.get("name", "")).strip():
            raise ValidationFailure("Tool name is required.")
        if float(data.get("cost") or 0) < 0:
            raise ValidationFailure("Cost cannot be negative.")

        tool = await self.adapter.create_tool({**data, "owner_role": Role.ADMIN})
        logger.info("tool_created", tool_id=tool.tool_id, name=tool.name, user_id=principal.user_id)
        await record_audit(self.adapter, "tool_created", principal.user_id, "Tool", tool.tool_id,
                           {"name": tool.name, "visibility": tool.visibility_level.value})
        return tool
