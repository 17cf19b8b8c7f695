from __future__ import annotations
import io
from datetime import datetime, timezone
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.models.event import Event
from partysnap.security import make_access_token
from partysnap.services.challenges import add_challenges
from partysnap.services.events import create_event, generate_access_code

HOST_SUB = "host-1"
T0 = datetime(2026, 6, 20, 18, 0, 0, tzinfo=timezone.utc)


def jpeg_bytes(width: int = 64, height: int = 48, color=(200, 30, 30), fmt: str = "JPEG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


def auth(sub: str = "host-1", role: str = "host") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(sub, role=role)}"}


async def make_event(
    session: AsyncSession, host_id: str = "host-1", timer_mode: str = "individual", **kw
) -> Event:
    ac = await generate_access_code(session, "TEST")
    return await create_event(
        session,
        host_id,
        title=kw.pop("title", "Garden Party"),
        access_code=ac.code,
        timer_mode=timer_mode,
        **kw,
    )


async def make_challenges(session: AsyncSession, event_id, *specs: tuple[str, int, int]):
    """specs are (title, points, time_limit_seconds)."""
    return await add_challenges(
        session, event_id, [{"title": t, "points": p, "time_limit": tl} for t, p, tl in specs]
    )
