#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlparse

# token -> user, shared by the password grant and the user lookup.
USERS_BY_TOKEN: dict[str, dict[str, object]] = {
    "admin-token": {
        "id": "11111111-1111-1111-1111-111111111111",
        "email": "admin@example.edu",
        "app_metadata": {},
        "user_metadata": {},
    },
    "student-token": {
        "id": "33333333-3333-3333-3333-333333333333",
        "email": "student@example.edu",
        "app_metadata": {},
        "user_metadata": {},
    },
}
PASSWORDS: dict[str, tuple[str, str]] = {
    "admin@example.edu": ("admin-password", "admin-token"),
    "student@example.edu": ("student-password", "student-token"),
}


def user_payload_for_token(token: str) -> dict[str, object] | None:
    return USERS_BY_TOKEN.get(token)


def session_for_credentials(email: str, password: str) -> dict[str, object] | None:
    entry = PASSWORDS.get(email.strip().lower())
    if entry is None or entry[0] != password:
        return None
    token = entry[1]
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": 3600,
        "user": USERS_BY_TOKEN[token],
    }


class MockSupabaseHandler(BaseHTTPRequestHandler):
    server_version = "MockSupabase/1.0"

    def do_GET(self) -> None:  # noqa: N802 - stdlib handler signature
        if self.path == "/healthz":
            self._write_json(HTTPStatus.OK, {"status": "ok"})
            return

        if self.path != "/auth/v1/user":
            self._write_json(HTTPStatus.NOT_FOUND, {"detail": "not found"})
            return

        authorization = self.headers.get("Authorization", "")
        if not authorization.lower().startswith("bearer "):
            self._write_json(HTTPStatus.UNAUTHORIZED, {"detail": "missing bearer token"})
            return

        token = authorization.split(" ", maxsplit=1)[1].strip()
        user = user_payload_for_token(token)
        if user is None:
            self._write_json(HTTPStatus.UNAUTHORIZED, {"detail": "invalid token"})
            return

        self._write_json(HTTPStatus.OK, user)

    def do_POST(self) -> None:  # noqa: N802 - stdlib handler signature
        parsed = urlparse(self.path)
        grant_type = parse_qs(parsed.query).get("grant_type", [""])[0]
        if parsed.path != "/auth/v1/token" or grant_type != "password":
            self._write_json(HTTPStatus.NOT_FOUND, {"detail": "not found"})
            return

        length = int(self.headers.get("Content-Length") or 0)
        try:
            body = json.loads(self.rfile.read(length) or b"{}")
        except json.JSONDecodeError:
            self._write_json(HTTPStatus.BAD_REQUEST, {"error": "invalid_request"})
            return

        session = session_for_credentials(str(body.get("email", "")), str(body.get("password", "")))
        if session is None:
            self._write_json(HTTPStatus.BAD_REQUEST, {"error": "invalid_grant"})
            return

        self._write_json(HTTPStatus.OK, session)

    def log_message(self, _: str, *args: object) -> None:
        # Keep logs terse for test runs.
        if args:
            print("mock-supabase:", *args)

    def _write_json(self, status: HTTPStatus, payload: dict[str, object]) -> None:
        raw = json.dumps(payload).encode("utf-8")
        self.send_response(status.value)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(raw)))
        self.end_headers()
        self.wfile.write(raw)


def main() -> None:
    parser = argparse.ArgumentParser(description="Mock Supabase auth user lookup and password grant.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=54321)
    args = parser.parse_args()

    server = ThreadingHTTPServer((args.host, args.port), MockSupabaseHandler)
    print(f"mock-supabase listening on http://{args.host}:{args.port}", flush=True)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
