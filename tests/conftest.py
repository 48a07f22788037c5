import pytest
from fastapi.testclient import TestClient

from clinicshift.core.config import Settings
from clinicshift.core.state import MissionStore, set_store
from clinicshift.data.catalog import initial_state
from clinicshift.main import create_app
from clinicshift.schemas.mission import MissionState
from tests.helpers import make_participant


# ── Fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def state() -> MissionState:
    """Defaults plus five plain participants p1..p5."""
    s = initial_state()
    s.participants = [*s.participants, *(make_participant(n) for n in range(1, 6))]
    return s


@pytest.fixture
def store(state) -> MissionStore:
    return MissionStore(state=state)


@pytest.fixture
def client():
    set_store(MissionStore())
    app = create_app(Settings(persist_snapshot=False, remote_backend="none"))
    return TestClient(app)
