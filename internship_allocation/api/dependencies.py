from typing import Optional
from uuid import UUID

from fastapi import Header


async def get_actor_id(x_actor_id: Optional[UUID] = Header(None, alias="X-Actor-Id")) -> Optional[UUID]:
    """Acting user recorded in the plan change log. Issued by the surrounding application, not verified here."""
    return x_actor_id
