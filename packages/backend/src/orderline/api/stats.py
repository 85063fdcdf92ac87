"""Live connection stats.

Learn: Reads the hub's registry, so the numbers are whatever is
connected to this process right now. Unknown-role connections aren't
in any partition and don't show up.
"""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/ws/stats")
async def ws_stats(request: Request):
    counts = request.app.state.hub.registry.counts()
    return {"waiters": counts["waiter"], "chefs": counts["chef"]}
