"""
Tests for the JSON file project store.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import pytest

from drainsketch.core.errors import ProjectNotFoundError, StorageError
from drainsketch.core.storage import JsonFileProjectStore
from drainsketch.models.feature import DesignFeature, ElementType, FeatureCollection
from drainsketch.models.project import ProjectRecord, ProjectStatus

LINE = {"type": "LineString", "coordinates": [[-80.927, 29.0258], [-80.927, 29.0268]]}


def make_record(**overrides) -> ProjectRecord:
    data = {
        "name": "Smith Residence",
        "address": "123 Main St, New Smyrna Beach, FL",
        "lat": 29.0258,
        "lng": -80.927,
        "design": FeatureCollection(
            features=[DesignFeature(id="r1", geometry=LINE, element_type=ElementType.HYDROBLOX_RUN)]
        ),
        "total_lf": 365,
        "total_cost": 16425,
    }
    data.update(overrides)
    return ProjectRecord(**data)


@pytest.fixture
def store(tmp_path: Path) -> JsonFileProjectStore:
    return JsonFileProjectStore(base_dir=tmp_path / "projects")


@pytest.mark.asyncio
class TestJsonFileProjectStore:
    """Tests for JsonFileProjectStore."""

    async def test_init_creates_directory(self, tmp_path: Path) -> None:
        base = tmp_path / "nested" / "projects"
        JsonFileProjectStore(base_dir=base)
        assert base.is_dir()

    async def test_save_assigns_id_and_timestamps(self, store: JsonFileProjectStore) -> None:
        saved = await store.save(make_record())

        assert saved.id is not None
        assert saved.created_at is not None
        assert saved.updated_at is not None
        assert (store.base_dir / f"{saved.id}.json").exists()
        assert not list(store.base_dir.glob("*.tmp"))

    async def test_load_round_trip(self, store: JsonFileProjectStore) -> None:
        saved = await store.save(make_record())
        loaded = await store.load(saved.id)

        assert loaded is not None
        assert loaded.name == "Smith Residence"
        assert loaded.total_lf == 365
        assert loaded.design.features[0].element_type is ElementType.HYDROBLOX_RUN
        assert loaded.design.features[0].length_ft == 365

    async def test_load_missing_returns_none(self, store: JsonFileProjectStore) -> None:
        assert await store.load(str(uuid4())) is None

    async def test_load_malformed_id_returns_none(self, store: JsonFileProjectStore) -> None:
        assert await store.load("../../etc/passwd") is None

    async def test_update_keeps_created_at(self, store: JsonFileProjectStore) -> None:
        first = await store.save(make_record())
        second = await store.save(
            first.model_copy(update={"name": "Renamed", "edited_at": first.edited_at + timedelta(seconds=1)})
        )

        assert second.id == first.id
        assert second.name == "Renamed"
        assert second.created_at == first.created_at

    async def test_stale_save_is_ignored(self, store: JsonFileProjectStore) -> None:
        now = datetime.now(timezone.utc)
        newest = await store.save(make_record(name="Newest", edited_at=now))

        stale = newest.model_copy(update={"name": "Stale", "edited_at": now - timedelta(seconds=5)})
        result = await store.save(stale)

        assert result.name == "Newest"
        assert (await store.load(newest.id)).name == "Newest"

    async def test_naive_edit_time_is_treated_as_utc(self, store: JsonFileProjectStore) -> None:
        saved = await store.save(make_record())

        renamed = await store.save(make_record(id=saved.id, name="Renamed", edited_at=datetime(2030, 1, 1)))
        assert renamed.name == "Renamed"
        assert renamed.edited_at == datetime(2030, 1, 1, tzinfo=timezone.utc)

        unvalidated = renamed.model_copy(update={"name": "Stale", "edited_at": datetime(2029, 1, 1)})
        result = await store.save(unvalidated)

        assert result.name == "Renamed"
        assert (await store.load(saved.id)).name == "Renamed"

    async def test_save_with_unknown_id_creates(self, store: JsonFileProjectStore) -> None:
        project_id = str(uuid4())
        saved = await store.save(make_record(id=project_id))
        assert saved.id == project_id

    async def test_save_rejects_malformed_id(self, store: JsonFileProjectStore) -> None:
        with pytest.raises(StorageError):
            await store.save(make_record(id="not-a-uuid"))

    async def test_list_newest_first(self, store: JsonFileProjectStore) -> None:
        older = await store.save(make_record(name="Older"))
        await asyncio.sleep(0.01)
        newer = await store.save(make_record(name="Newer"))

        summaries = await store.list()

        assert [s.id for s in summaries] == [newer.id, older.id]
        assert summaries[0].name == "Newer"
        assert summaries[0].total_cost == 16425
        assert summaries[0].status is ProjectStatus.DRAFT

    async def test_list_skips_unreadable_files(self, store: JsonFileProjectStore) -> None:
        saved = await store.save(make_record())
        (store.base_dir / f"{uuid4()}.json").write_text("{not json")

        summaries = await store.list()
        assert [s.id for s in summaries] == [saved.id]

    async def test_corrupt_file_raises_storage_error(self, store: JsonFileProjectStore) -> None:
        project_id = str(uuid4())
        (store.base_dir / f"{project_id}.json").write_text("{not json")

        with pytest.raises(StorageError):
            await store.load(project_id)

    async def test_delete(self, store: JsonFileProjectStore) -> None:
        saved = await store.save(make_record())

        assert await store.delete(saved.id) is True
        assert await store.load(saved.id) is None
        assert await store.delete(saved.id) is False

    async def test_update_status(self, store: JsonFileProjectStore) -> None:
        saved = await store.save(make_record())
        updated = await store.update_status(saved.id, ProjectStatus.QUOTED)

        assert updated.status is ProjectStatus.QUOTED
        assert updated.name == saved.name
        assert (await store.load(saved.id)).status is ProjectStatus.QUOTED

    async def test_update_status_missing_project(self, store: JsonFileProjectStore) -> None:
        with pytest.raises(ProjectNotFoundError):
            await store.update_status(str(uuid4()), ProjectStatus.APPROVED)
