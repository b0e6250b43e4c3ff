"""Session status command."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import ViewerContext
from ..output import emit_result


class StatusCommand(Command):
    def __init__(self) -> None:
        super().__init__("status", "Show connection status")

    def run(self, ctx: ViewerContext, argv: List[str]) -> int:
        session = ctx.session
        if not session:
            emit_result(ctx, message=f"Not connected (target {ctx.url})", data={"status": "idle", "url": ctx.url})
            return 0
        pending = session.aggregator.pending
        data = {
            "status": session.status_text,
            "state": session.state,
            "url": ctx.url,
            "entries": len(session.log),
            "steps": session.aggregator.steps,
            "dropped_frames": session.dropped_frames,
            "reconnects": session.connection.reconnects_scheduled,
            "finished": session.finished,
        }
        if pending is not None:
            data["pending"] = {"pc": pending.pc, "opcode_name": pending.opcode_name}
        emit_result(ctx, message=f"{session.status_text} ({ctx.url})", data=data)
        if not ctx.json_output:
            print(f"  entries: {data['entries']}  steps: {data['steps']}  dropped frames: {data['dropped_frames']}")
            if pending is not None:
                print(f"  awaiting post-state for [{pending.pc}] {pending.opcode_name}")
        return 0
