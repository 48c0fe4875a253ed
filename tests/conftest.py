import os
from io import BytesIO

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from minicrm.auth.service import create_user, issue_token
from minicrm.companies.models import Company
from minicrm.database import enable_sqlite_pragmas, get_db
from minicrm.main import create_app
from minicrm.models.base import Base
from minicrm.notifications.mail import MailMessage, MailTransport

TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
enable_sqlite_pragmas(engine)
test_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class RecordingMailTransport(MailTransport):
    def __init__(self):
        self.sent: list[MailMessage] = []
        self.fail = False
        self.fail_for: set[str] = set()

    async def send(self, message: MailMessage) -> None:
        if self.fail or message.to in self.fail_for:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append(message)


def make_image(width: int = 200, height: int = 200, image_format: str = "PNG", noise: bool = False) -> bytes:
    if noise:
        image = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    else:
        image = Image.new("RGB", (width, height), color=(37, 99, 235))
    buffer = BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def db():
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def mail_transport():
    return RecordingMailTransport()


@pytest.fixture
def storage_root(tmp_path):
    return tmp_path / "public"


@pytest.fixture
def app(mail_transport, storage_root):
    app = create_app(
        session_factory=test_session_factory,
        mail_transport=mail_transport,
        storage_root=storage_root,
    )
    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def user(db: AsyncSession):
    return await create_user(db, "Admin User", "admin@minicrm.com", "password123")


@pytest_asyncio.fixture
async def auth_headers(db: AsyncSession, user):
    token = await issue_token(db, user)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def company(db: AsyncSession):
    company = Company(name="Acme Corp", email="info@acme.com", website="https://acme.test")
    db.add(company)
    await db.commit()
    await db.refresh(company)
    return company


@pytest.fixture
def png_logo():
    return make_image()


@pytest.fixture
def decompression_bomb():
    # Tiny on disk, but its header declares more pixels than Pillow will open
    buffer = BytesIO()
    Image.new("1", (15000, 15000)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def jpeg_logo():
    return make_image(image_format="JPEG")


@pytest.fixture
def oversized_logo():
    # Noise does not compress, so this PNG is well over 2MB
    return make_image(1000, 1000, noise=True)
