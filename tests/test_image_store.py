import asyncio
import json
from types import SimpleNamespace

from conftest import make_image
from models.enums import Blade, BladeSide
from services.image_store import TurbineImageStore, get_image_store, sort_images, summarize


def test_missing_file_loads_empty(tmp_path):
    store = TurbineImageStore(tmp_path / "missing.json")
    assert asyncio.run(store.load()) == []


def test_add_persists_sorted_by_altitude(tmp_path):
    path = tmp_path / "data" / "turbine-images.json"
    store = TurbineImageStore(path)
    images = [make_image("high", altitude=60.0), make_image("low", altitude=12.0)]

    saved = asyncio.run(store.add(images))
    assert [img.id for img in saved] == ["low", "high"]

    raw = json.loads(path.read_text())
    assert [entry["id"] for entry in raw] == ["low", "high"]
    assert raw[0]["gsd"]["distance_confidence"] == "high"

    asyncio.run(store.add([make_image("mid", blade=Blade.B, altitude=30.0)]))
    loaded = asyncio.run(store.load())
    assert [img.id for img in loaded] == ["low", "mid", "high"]
    assert loaded[0] == images[1]


def test_concurrent_adds_keep_both_images(tmp_path):
    store = TurbineImageStore(tmp_path / "turbine-images.json")

    async def add_both():
        await asyncio.gather(
            store.add([make_image("first", altitude=20.0)]),
            store.add([make_image("second", altitude=40.0)]),
        )

    asyncio.run(add_both())

    loaded = asyncio.run(store.load())
    assert [img.id for img in loaded] == ["first", "second"]
    assert list(tmp_path.glob("*.tmp")) == []


def test_image_store_is_shared_per_application():
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace()))
    assert get_image_store(request) is get_image_store(request)
    assert request.app.state.image_store is get_image_store(request)


def test_get_and_filter(tmp_path):
    store = TurbineImageStore(tmp_path / "images.json")
    asyncio.run(store.save([
        make_image("a1", altitude=20.0),
        make_image("b1", blade=Blade.B, side=BladeSide.LE, altitude=10.0),
    ]))

    assert asyncio.run(store.get("b1")).blade == Blade.B
    assert asyncio.run(store.get("nope")) is None
    assert [img.id for img in asyncio.run(store.filter(Blade.A, BladeSide.TE))] == ["a1"]


def test_malformed_records_are_skipped(tmp_path):
    path = tmp_path / "images.json"
    good = make_image("good").model_dump(mode="json")
    path.write_text(json.dumps([good, {"id": "broken"}]))

    loaded = asyncio.run(TurbineImageStore(path).load())
    assert [img.id for img in loaded] == ["good"]


def test_corrupt_file_loads_empty(tmp_path):
    path = tmp_path / "images.json"
    path.write_text("{not json")
    assert asyncio.run(TurbineImageStore(path).load()) == []

    path.write_text(json.dumps({"images": []}))
    assert asyncio.run(TurbineImageStore(path).load()) == []


def test_sort_images():
    images = [
        make_image("a", altitude=30.0, gsd_cm=0.5, date="2024:05:01 10:00:00"),
        make_image("b", altitude=10.0, gsd_cm=0.9, date="2024:05:01 09:00:00"),
        make_image("c", altitude=20.0, gsd_cm=0.7, date=None),
    ]
    assert [img.id for img in sort_images(images)] == ["b", "c", "a"]
    assert [img.id for img in sort_images(images, "gsd", "desc")] == ["b", "c", "a"]
    assert [img.id for img in sort_images(images, "timestamp")] == ["c", "b", "a"]
    assert [img.id for img in sort_images(images, "unknown", "desc")] == ["a", "c", "b"]


def test_summarize():
    images = [
        make_image("a", altitude=10.0, gsd_cm=0.5),
        make_image("b", blade=Blade.C, side=BladeSide.SS, altitude=40.0, gsd_cm=1.5),
        make_image("c", with_gsd=False),
    ]
    summary = summarize(images)
    assert summary.total == 3
    assert summary.by_blade == {"A": 2, "B": 0, "C": 1}
    assert summary.by_side == {"TE": 2, "PS": 0, "LE": 0, "SS": 1}
    assert summary.measurement_ready == 2
    assert summary.altitude_range.span == 30.0
    assert summary.gsd_range.average == 1.0

    empty = summarize([])
    assert empty.total == 0
    assert empty.altitude_range is None
