import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tripsplit.database import Base
from tripsplit.main import app
from tripsplit.schemas import Bill, Group, Member
from tripsplit.store import SqlGroupStore, get_store

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store():
    return SqlGroupStore(TestingSessionLocal)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_bill(bill_id, amount, paid_by, split_ratio, category="Other"):
    return Bill(
        id=bill_id, description=f"Bill {bill_id}", amount=amount,
        category=category, paid_by=paid_by, split_ratio=split_ratio,
    )


def make_group(member_ids, bills=(), paid_settlements=()):
    return Group(
        id="g1",
        name="Trip",
        members=[Member(id=mid, name=mid.upper()) for mid in member_ids],
        bills=list(bills),
        paid_settlements=list(paid_settlements),
    )


@pytest.fixture
def group_with_members(client):
    res = client.post("/api/groups", json={"name": "Goa"})
    gid = res.json()["id"]
    for name in ("Asha", "Ben", "Chitra"):
        res = client.post(f"/api/groups/{gid}/members", json={"name": name})
    ids = [m["id"] for m in res.json()["members"]]
    return gid, ids
