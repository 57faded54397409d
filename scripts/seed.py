from __future__ import annotations

import os
import sys
from datetime import date
from pathlib import Path

from sqlmodel import Session, select

# --- make project root importable even if CWD is different ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Now we can import our app packages
from users_api.core.db import engine, init_db  # type: ignore
from users_api.models.user import User  # type: ignore
from users_api.repositories.user_repository import UserRepository  # type: ignore
from users_api.services.user_service import utcnow  # type: ignore
from users_api.services.validation import validate_user  # type: ignore

DEMO_USERS: list[dict[str, object]] = [
    {
        "email": "ann@example.com",
        "name": "Ann",
        "age": 30,
        "sex": "female",
        "birthday": date(1994, 1, 1),
        "phone": "+79161234567",
    },
    {
        "email": "ivan@example.com",
        "name": "Ivan",
        "age": 42,
        "sex": "male",
        "birthday": date(1982, 6, 15),
        "phone": "8 (495) 123-45-67",
    },
]


def run() -> None:
    env_file = os.environ.get("ENV_FILE", "users_api/.env")
    print(f"[seed] ENV_FILE={env_file}  (set ENV_FILE to pick another settings file)")

    init_db()
    created_users = 0

    with Session(engine) as session:
        repository = UserRepository(session)
        for fields in DEMO_USERS:
            email = fields["email"]
            existing = session.exec(select(User).where(User.email == email)).first()
            if existing:
                print(f"[seed] user already exists: {email}")
                continue

            now = utcnow()
            user = User(**fields, created_at=now, updated_at=now)
            errors = validate_user(user)
            if errors:
                print(f"[seed] skipped {email}: {errors}")
                continue
            repository.add(user)
            created_users += 1
            print(f"[seed] created user: {email} (id={user.id})")

    print(f"[seed] done. users_created={created_users}")


if __name__ == "__main__":
    run()
