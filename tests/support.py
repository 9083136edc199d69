"""Shared test scaffolding: a fresh seeded SQLite database per test and a recording mailer."""

import unittest

from sqlalchemy.orm import Session, sessionmaker

from app.core.database import create_db_engine
from app.core.security import hash_password
from app.models import Base, User
from app.services import rbac
from app.services.catalog import seed_catalog
from app.services.mailer import Recipient

PASSWORD = "correct-horse-battery"


class RecordingMailer:
    """Mailer double that records what would have been sent."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.welcome: list[Recipient] = []
        self.resets: list[tuple[Recipient, str]] = []

    def send_welcome(self, recipient: Recipient) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.welcome.append(recipient)

    def send_password_reset(self, recipient: Recipient, token: str) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.resets.append((recipient, token))


class DatabaseTestCase(unittest.TestCase):
    """Each test gets its own in-memory database with the permission catalog seeded."""

    seed = True

    def setUp(self) -> None:
        self.engine = create_db_engine("sqlite://")
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.db: Session = self.Session()
        if self.seed:
            seed_catalog(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def make_user(
        self,
        email: str = "ana@example.com",
        name: str = "Ana Lima",
        password: str | None = PASSWORD,
        roles: tuple[str, ...] = (),
        permissions: tuple[str, ...] = (),
        locale: str = "en",
        account_type: str = "user",
    ) -> User:
        user = User(
            email=email,
            name=name,
            locale=locale,
            account_type=account_type,
            password_hash=hash_password(password) if password is not None else None,
        )
        self.db.add(user)
        self.db.commit()
        for role in roles:
            rbac.assign_role(self.db, user.id, role)
        for code in permissions:
            rbac.assign_permission(self.db, user.id, code)
        return user
