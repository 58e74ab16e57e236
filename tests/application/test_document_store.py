"""Tests for the Document Store."""

import os
import threading
from datetime import UTC, datetime, timedelta

from survival_assistant.application.ports.clock_port import ClockPort
from survival_assistant.application.ports.document_loader_port import DocumentPayload
from survival_assistant.application.services.document_store import (
    EXCERPT_CHARS,
    DocumentStore,
)
from survival_assistant.domain.errors import DocumentError, NotFoundError


class FakeClock(ClockPort):
    def __init__(self) -> None:
        self.t = datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += timedelta(seconds=seconds)


class DictLoader:
    """Fake loader serving files from a dict keyed by base name."""

    def __init__(self, files: dict[str, str]) -> None:
        self.files = files
        self.reads: list[str] = []

    def load(self, path: str) -> DocumentPayload:
        name = os.path.basename(path)
        self.reads.append(name)
        if name not in self.files:
            raise DocumentError(f"missing {path}")
        return DocumentPayload(text=self.files[name], source_path=path)


FILES = {
    "slang.md": "# Slang\n\n## Greetings\nNamaskara means hello.\n\n## Praise\nSakkath!",
    "food.md": "## Breakfast\nMasala dosa and filter coffee.\n\n## Lunch\nBisi bele bath.",
    "city.md": "## Areas\nKoramangala: cafes",
}


def make_store(files: dict[str, str] | None = None) -> tuple[DocumentStore, DictLoader, FakeClock]:
    loader = DictLoader(dict(FILES if files is None else files))
    clock = FakeClock()
    return DocumentStore(loader=loader, clock=clock, context_dir="/ctx"), loader, clock


class TestLifecycle:
    def test_load_parses_sections(self) -> None:
        store, _, clock = make_store()
        res = store.load("slang")
        assert res.ok and res.value is not None
        assert res.value.sections["greetings"] == "Namaskara means hello."
        assert res.value.loaded_at == clock.now()

    def test_load_uses_cache(self) -> None:
        store, loader, _ = make_store()
        store.load("food")
        store.load("food")
        assert loader.reads == ["food.md"]

    def test_refresh_reflects_new_content(self) -> None:
        store, loader, clock = make_store()
        first = store.load("food").value
        loader.files["food.md"] = "## Dinner\nRagi mudde."
        clock.advance(5)
        second = store.refresh("food").value
        assert second is not None and first is not None
        assert second.sections == {"dinner": "Ragi mudde."}
        assert second.loaded_at > first.loaded_at
        # The earlier version is untouched.
        assert "breakfast" in first.sections

    def test_missing_file_loads_empty(self) -> None:
        store, _, _ = make_store()
        res = store.load("traffic")
        assert res.ok and res.value is not None
        assert res.value.is_empty
        assert res.value.sections == {}

    def test_unknown_id(self) -> None:
        store, _, _ = make_store()
        assert isinstance(store.load("weather").error, NotFoundError)
        assert isinstance(store.toggle("weather").error, NotFoundError)

    def test_toggle_flips_loaded_state(self) -> None:
        store, _, _ = make_store()
        on = store.toggle("food")
        assert on.value is not None and on.value.is_loaded
        off = store.toggle("food")
        assert off.value is not None and not off.value.is_loaded
        assert store.loaded("food") is None


class TestCatalogue:
    def test_catalogue_lists_every_entry(self) -> None:
        store, _, _ = make_store()
        store.load("slang")
        infos = {i.id: i for i in store.catalogue()}
        assert set(infos) == {"city", "slang", "food", "traffic", "etiquette"}
        assert infos["slang"].is_loaded
        assert not infos["food"].is_loaded
        assert infos["food"].name == "food.md"

    def test_catalogue_is_idempotent(self) -> None:
        store, _, _ = make_store()
        store.load_all()
        assert store.catalogue() == store.catalogue()


class TestRetrieval:
    def test_get_section(self) -> None:
        store, _, _ = make_store()
        assert store.get_section("food", "lunch") == "Bisi bele bath."
        assert store.get_section("food", "dessert") is None
        assert store.get_section("weather", "lunch") is None

    def test_search_case_insensitive_in_active_order(self) -> None:
        store, _, _ = make_store()
        store.load_all()
        matches = store.search("KORAMANGALA", ["food", "city"])
        assert [(m.document_id, m.section_name) for m in matches] == [("city", "areas")]

    def test_search_only_active_loaded_documents(self) -> None:
        store, _, _ = make_store()
        store.load_all()
        assert store.search("dosa", ["slang"]) == []
        store.unload("food")
        assert store.search("dosa", ["food"]) == []

    def test_search_deduplicates_ids_and_keeps_section_order(self) -> None:
        store, _, _ = make_store({"food.md": "## A\ncoffee one\n## B\ncoffee two"})
        store.load("food")
        matches = store.search("coffee", ["food", "food"])
        assert [m.section_name for m in matches] == ["a", "b"]

    def test_excerpt_is_truncated(self) -> None:
        store, _, _ = make_store({"food.md": "## Long\n" + "dosa " * 300})
        store.load("food")
        (match,) = store.search("dosa", ["food"])
        assert len(match.excerpt) == EXCERPT_CHARS

    def test_empty_query(self) -> None:
        store, _, _ = make_store()
        store.load_all()
        assert store.search("   ", ["food"]) == []


def test_concurrent_refresh_and_search_see_whole_versions():
    """Readers racing a refresh only ever see a complete old or new document."""
    store, loader, _ = make_store({"food.md": "## Old\nold dosa\n## Old2\nold dosa"})
    store.load("food")
    seen: set[tuple[str, ...]] = set()
    stop = threading.Event()

    def reader() -> None:
        while not stop.is_set():
            seen.add(tuple(m.section_name for m in store.search("dosa", ["food"])))

    t = threading.Thread(target=reader)
    t.start()
    for i in range(200):
        name = "new" if i % 2 else "old"
        loader.files["food.md"] = f"## {name}\n{name} dosa\n## {name}2\n{name} dosa"
        store.refresh("food")
    stop.set()
    t.join()
    assert seen <= {("old", "old2"), ("new", "new2")}


def test_concurrent_toggles_are_serialized():
    store, _, _ = make_store()
    results: list[bool] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(25):
            res = store.toggle("food")
            assert res.value is not None
            with lock:
                results.append(res.value.is_loaded)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # every toggle flipped the state: half turned it on, half turned it off
    assert results.count(True) == results.count(False) == 50
    assert store.loaded("food") is None
