import pytest

from docreel.core import NotFoundError
from docreel.models import ExportJob, VideoJob
from docreel.services.storage import ExportJobRegistry, VideoJobRegistry


def test_add_get_and_require():
    registry = VideoJobRegistry()
    job = registry.add(VideoJob(chunk_id="c1"))

    assert registry.get(job.id) is job
    assert registry.require(job.id) is job
    assert registry.get("missing") is None
    assert len(registry) == 1


def test_require_missing_names_the_kind():
    registry = ExportJobRegistry()
    with pytest.raises(NotFoundError, match="Export job not found"):
        registry.require("missing")


def test_update_applies_mutation():
    registry = ExportJobRegistry()
    job = registry.add(ExportJob(session_id="s1"))

    updated = registry.update(job.id, lambda j: j.advance(40))

    assert updated.progress == 40
    assert registry.get(job.id).progress == 40


def test_delete_and_list():
    registry = VideoJobRegistry()
    first = registry.add(VideoJob(chunk_id="a"))
    registry.add(VideoJob(chunk_id="b"))

    assert registry.delete(first.id) is True
    assert registry.delete(first.id) is False
    assert [j.chunk_id for j in registry.list_all()] == ["b"]
