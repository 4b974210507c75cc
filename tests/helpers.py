from app.services.auth import issue_token

PASSWORD = "secret123"


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {issue_token(user)}"}
