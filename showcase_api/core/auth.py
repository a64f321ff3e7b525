from dataclasses import dataclass


@dataclass(slots=True)
class AdminPrincipal:
    user_id: str
    email: str


def parse_bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", maxsplit=1)[1].strip()
    return token or None


def parse_admin_emails(raw: str | None) -> set[str]:
    if not raw:
        return set()
    return {chunk.strip().lower() for chunk in raw.split(",") if chunk.strip()}
