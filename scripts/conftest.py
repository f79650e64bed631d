"""
Shared fixtures: in-memory SQLite database, seed data and an API client.

Seed data (level "Uzmanlık" everywhere):

    code  institution         city   branch      periods
    100   City Hospital       Ankara Cardiology  2024/1 (78.5), 2023/1
    200   Ankara University   Ankara Cardiology  2024/2, 2024/1
    200   Ankara University   Ankara Neurology   2024/2 (no score)
    300   Bay Hospital        İzmir  Pediatrics  2022/1 only (outside window)
    300   Bay Hospital        İzmir  Cardiology  2022/2
    999   -- orphan --               Cardiology  2024/2

Window: 2024/2, 2024/1, 2023/1, 2022/2
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tus_guide.db.database import get_db, register_sqlite_functions
from tus_guide.db.schema import init_schema
from tus_guide.main import app

LEVEL = "Uzmanlık"

INSTITUTIONS = [
    (100, "City Hospital", "DEVLET", "Hastane", "Ankara"),
    (200, "Ankara University", "DEVLET", "Tıp Fakültesi", "Ankara"),
    (300, "Bay Hospital", "ÖZEL", "Hastane", "İzmir"),
]

# (code, branch, period, quota, filled, min_score, rank)
PLACEMENTS = [
    (100, "Cardiology", "2024/1", 4, 4, 78.5, 1200),
    (100, "Cardiology", "2023/1", 3, 3, 70.0, 2500),
    (200, "Cardiology", "2024/2", 10, None, 80.0, 900),
    (200, "Cardiology", "2024/1", 8, 8, 75.0, 1500),
    (200, "Neurology", "2024/2", 2, None, None, None),
    (300, "Pediatrics", "2022/1", 3, 3, 60.0, 4000),
    (300, "Cardiology", "2022/2", 2, 1, 65.0, 3500),
    (999, "Cardiology", "2024/2", 20, None, 50.0, 6000),
]


def add_institution(db, code, name, ownership_type="DEVLET", kind="Hastane", city="Ankara"):
    db.execute(
        text("""
            INSERT INTO hastaneler (kurum_kodu, hastane_adi, tip, kurum_tipi, sehir)
            VALUES (:code, :name, :tip, :kind, :city)
        """),
        {"code": code, "name": name, "tip": ownership_type, "kind": kind, "city": city},
    )


def add_placement(db, code, branch, period, quota=5, filled=None, min_score=None,
                  rank=None, level=LEVEL):
    db.execute(
        text("""
            INSERT INTO tus_puanlar (
                kurum_kodu, kademe_kisa_adi, kademe, brans, donem, donem_tarihi,
                kontenjan, yerlesen, karsilanamayan_kontenjan,
                taban_puan, tavan_puan, taban_siralamasi
            )
            VALUES (
                :code, 'UZM', :level, :branch, :period, '01.01.2024',
                :quota, :filled, NULL, :min_score, NULL, :rank
            )
        """),
        {
            "code": code, "level": level, "branch": branch, "period": period,
            "quota": quota, "filled": filled, "min_score": min_score, "rank": rank,
        },
    )


def seed(db):
    for row in INSTITUTIONS:
        add_institution(db, *row)
    for code, branch, period, quota, filled, score, rank in PLACEMENTS:
        add_placement(db, code, branch, period, quota, filled, score, rank)
    db.commit()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    register_sqlite_functions(engine)
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded_db(db):
    seed(db)
    return db


@pytest.fixture
def client(session_factory):
    """API client on the test database with rate limiting switched off."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    previous_limiter = getattr(app.state, "rate_limiter", None)
    previous_trust = getattr(app.state, "trust_forwarded_for", False)
    app.state.rate_limiter = None
    app.state.trust_forwarded_for = False
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.rate_limiter = previous_limiter
        app.state.trust_forwarded_for = previous_trust


@pytest.fixture
def seeded_client(client, session_factory):
    with session_factory() as session:
        seed(session)
    return client
