"""Resolve the calling actor from a Supabase JWT."""

from fastapi import Header, HTTPException
from supabase import create_client
from audio_cleaner.config import settings
from audio_cleaner.db.supabase_client import get_supabase


def _bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid token")
    return authorization.replace("Bearer ", "")


async def get_caller_id(authorization: str = Header(None)) -> str:
    """Return the actor id of the authenticated caller.

    Recordings are owned by actor profiles, not auth users, so the user
    from the token is looked up in the actors table. With the in-memory
    store there is no Supabase project and the bearer token is used as the
    actor id directly.
    """
    token = _bearer_token(authorization)
    if settings.store_backend == "memory":
        return token

    try:
        client = create_client(settings.supabase_url, settings.supabase_anon_key)
        user = client.auth.get_user(token).user
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    if user is None:
        raise HTTPException(status_code=401, detail="User not authenticated")

    actor = (
        get_supabase()
        .table(settings.actors_table)
        .select("id")
        .eq("user_id", user.id)
        .limit(1)
        .execute()
    )
    if not actor.data:
        raise HTTPException(status_code=403, detail="Actor profile not found")
    return str(actor.data[0]["id"])
