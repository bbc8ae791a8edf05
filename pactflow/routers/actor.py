from dataclasses import dataclass

from fastapi import Header, HTTPException

from pactflow.models import ActorRole


@dataclass(frozen=True)
class Actor:
    role: ActorRole
    id: str | None = None


def get_actor(
    x_actor_role: str | None = Header(None),
    x_actor_id: str | None = Header(None),
) -> Actor:
    """Identity asserted by the authenticating proxy in front of the service."""
    if not x_actor_role:
        raise HTTPException(status_code=401, detail="Missing X-Actor-Role header.")
    try:
        role = ActorRole.parse(x_actor_role)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown actor role {x_actor_role!r}.")
    if role is ActorRole.SYSTEM:
        raise HTTPException(status_code=403, detail="The system role is reserved for background jobs.")
    return Actor(role=role, id=x_actor_id)
