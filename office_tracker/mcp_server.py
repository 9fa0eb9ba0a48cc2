"""MCP server exposing the attendance tracker as tools."""

from __future__ import annotations

import os
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .service import TrackerService
from .store import AttendanceStore


def build_server(service: TrackerService) -> FastMCP:
    mcp = FastMCP("office-tracker")

    @mcp.tool()
    async def get_pace(date: Optional[str] = None) -> dict:
        """Return ahead/behind pacing for the quarter containing the date (default today)."""

        return service.get_pace(service.resolve_day(date))

    @mcp.tool()
    async def set_day_status(date: str, status: Optional[str] = None) -> dict:
        """Mark a day as "in" or "out" of office; omit the status to clear it."""

        return service.set_status(date, status)

    @mcp.tool()
    async def add_day_note(date: str, note: str) -> dict:
        """Attach a free-text note to a day, replacing any previous note."""

        return service.add_note(date, note)

    @mcp.tool()
    async def set_quarter_target(target: int) -> dict:
        """Set how many in-office days are expected per quarter (at least 1)."""

        return service.set_target(target)

    @mcp.tool()
    async def get_month_calendar(month: Optional[str] = None) -> dict:
        """Return the Sunday-first calendar of a month given as YYYY-MM (default current)."""

        view_day = service.resolve_day(f"{month}-01" if month else None)
        return service.get_month_calendar(view_day)

    @mcp.tool()
    async def export_quarter_csv(date: Optional[str] = None) -> dict:
        """Return the CSV export of the quarter containing the date (default today)."""

        return service.export_quarter(service.resolve_day(date))

    return mcp


def run() -> None:
    settings = load_settings(os.getenv("OFFICE_TRACKER_ENV"))
    database = Database(settings.database_path)
    store = AttendanceStore(database, default_target=settings.target_per_quarter)
    build_server(TrackerService(store)).run()


if __name__ == "__main__":  # pragma: no cover
    run()


__all__ = ["build_server", "run"]
