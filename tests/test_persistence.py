"""
Tests for the document codec, storage backends and the storage manager.
"""

import json
from datetime import date

import pytest

from moneyflow.graph import FlowGraph
from moneyflow.graph.seed import seed_default_graph
from moneyflow.models.graph import AssetNode, IncomeNode, NodeType, NodeUpdate
from moneyflow.persistence import (
    DOCUMENT_VERSION,
    DocumentParseError,
    StorageManager,
    deserialize,
    dumps,
    loads,
    serialize,
)
from moneyflow.services.storage import (
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    StorageError,
)


def _dump(models):
    return [model.model_dump() for model in models]


@pytest.fixture
def rich_graph() -> FlowGraph:
    """Sample graph with a second profile, settings and asset payload."""
    graph = seed_default_graph(FlowGraph())
    graph.add_owner("배우자")
    graph.add_node(
        NodeType.ASSET, "연금", 5_000_000, owner="배우자",
        target_weight=20, sub_items=[{"name": "TDF", "ratio": 100}],
    )
    graph.update_node(3, NodeUpdate(x=120.5, y=-40))
    graph.update_simulation(months=36, is_real_value=True)
    graph.update_strategy("Keep 6 months of expenses in cash")
    graph.switch_profile("배우자")
    return graph


class TestCodec:
    """Tests for serialize / deserialize."""

    def test_document_layout(self, rich_graph):
        """Test the top-level keys and camelCase payload."""
        document = serialize(rich_graph)
        assert document["version"] == DOCUMENT_VERSION
        assert document["nextId"] == 10
        assert document["owners"] == ["나", "배우자"]
        assert document["currentProfile"] == "배우자"
        assert document["simulation"]["isRealValue"] is True

        asset = next(n for n in document["nodes"] if n["id"] == 9)
        assert asset["targetWeight"] == 20
        assert asset["subItems"] == [{"name": "TDF", "ratio": 100.0}]
        income = next(n for n in document["nodes"] if n["type"] == "income")
        assert "interestRate" not in income
        assert document["links"][0]["id"] == "link_1_2"

    def test_round_trip(self, rich_graph):
        """Test that a snapshot reloads to an equal graph."""
        restored = loads(dumps(rich_graph))
        assert _dump(restored.nodes) == _dump(rich_graph.nodes)
        assert _dump(restored.links) == _dump(rich_graph.links)
        assert restored.owners == rich_graph.owners
        assert restored.current_profile == rich_graph.current_profile
        assert restored.simulation.model_dump() == rich_graph.simulation.model_dump()
        assert restored.strategy.model_dump() == rich_graph.strategy.model_dump()
        assert restored.next_id == rich_graph.next_id

    def test_deserialize_builds_new_graph(self, rich_graph):
        """Test that decoding never shares objects with the source graph."""
        restored = deserialize(serialize(rich_graph))
        assert restored is not rich_graph
        assert restored.nodes[0] is not rich_graph.nodes[0]

    def test_korean_text_kept_readable(self, rich_graph):
        """Test that non-ASCII names are written as-is."""
        assert "급여통장" in dumps(rich_graph)

    def test_next_id_never_below_max_id(self):
        """Test that serialize repairs a stale counter."""
        graph = FlowGraph()
        graph.add_node(NodeType.INCOME, "A")
        graph.add_node(NodeType.INCOME, "B")
        graph.next_id = 1
        assert serialize(graph)["nextId"] == 3


class TestMigration:
    """Tests for loading older or hand-edited documents."""

    def test_minimal_legacy_document(self):
        """Test a document with no owners, profile, or settings."""
        graph = deserialize({
            "nodes": [
                {"id": 1, "type": "income", "name": "월급", "value": 3000000},
                {"id": 4, "type": "asset", "name": "ISA", "value": 1000},
            ],
            "links": [{"id": "link_1_4", "source": 1, "target": 4, "amount": 500}],
        })
        assert graph.owners == ["나"]
        assert graph.current_profile == "나"
        assert all(node.owner == "나" for node in graph.nodes)
        assert graph.get_node(4).interest_rate == 0.025
        assert graph.next_id == 5
        assert graph.simulation.months == 0

    def test_explicit_empty_owner_stays_shared(self):
        """Test that an explicitly shared node is not reassigned."""
        graph = deserialize({
            "nodes": [{"id": 1, "type": "bucket", "name": "Joint", "owner": ""}],
            "owners": ["A"],
        })
        assert graph.get_node(1).owner == ""

    def test_blank_name_gets_placeholder(self):
        """Test that an unnamed node loads under a placeholder name."""
        graph = deserialize({
            "nodes": [
                {"id": 1, "type": "bucket", "name": "   ", "value": 10},
                {"id": 2, "type": "asset", "name": "", "value": 20},
                {"id": 3, "type": "income", "name": "Pay", "value": 30},
            ],
        })
        assert [node.name for node in graph.nodes] == ["(이름 없음)", "(이름 없음)", "Pay"]
        assert [node.value for node in graph.nodes] == [10, 20, 30]

    def test_unknown_current_profile(self):
        """Test that an unknown current profile falls back to the first owner."""
        graph = deserialize({"nodes": [], "owners": ["A", "B"], "currentProfile": "Z"})
        assert graph.current_profile == "A"

    def test_legacy_target_percent(self):
        """Test that the old targetPercent key becomes targetWeight."""
        graph = deserialize({
            "nodes": [{"id": 1, "type": "asset", "name": "ISA", "targetPercent": 35}],
        })
        assert graph.get_node(1).target_weight == 35

    def test_flow_node_rate_dropped(self):
        """Test that a stored rate on an income node is ignored."""
        graph = deserialize({
            "nodes": [{"id": 1, "type": "income", "name": "Pay", "interestRate": 0.025}],
        })
        assert isinstance(graph.get_node(1), IncomeNode)
        assert "interestRate" not in serialize(graph)["nodes"][0]

    def test_stored_rate_kept(self):
        """Test that an explicit asset rate (even zero) is not overwritten."""
        graph = deserialize({
            "nodes": [{"id": 1, "type": "asset", "name": "Cash", "interestRate": 0}],
        })
        assert graph.get_node(1).interest_rate == 0

    def test_bad_links_dropped(self):
        """Test that self-loop, dangling and duplicate links are pruned."""
        graph = deserialize({
            "nodes": [
                {"id": 1, "type": "income", "name": "A"},
                {"id": 2, "type": "bucket", "name": "B"},
            ],
            "links": [
                {"source": 1, "target": 2, "amount": 10},
                {"source": 1, "target": 2, "amount": 99},
                {"source": 2, "target": 2, "amount": 5},
                {"source": 1, "target": 7, "amount": 5},
            ],
        })
        assert [(l.key, l.amount) for l in graph.links] == [((1, 2), 10)]

    def test_sub_items_loaded_sorted(self):
        """Test that stored sub-items come back largest first."""
        graph = deserialize({
            "nodes": [{
                "id": 1, "type": "asset", "name": "ISA",
                "subItems": [{"name": "a", "ratio": 10}, {"name": "b", "ratio": 60}],
            }],
        })
        node = graph.get_node(1)
        assert isinstance(node, AssetNode)
        assert [item.name for item in node.sub_items] == ["b", "a"]


class TestMalformedDocuments:
    """Tests for documents that cannot be loaded."""

    @pytest.mark.parametrize("document", [
        [],
        "nodes",
        None,
        {"nodes": "not a list"},
        {"nodes": [{"id": 1, "type": "loan", "name": "Car"}]},
        {"nodes": [{"id": 1, "type": "income"}]},
        {"nodes": [42]},
        {"nodes": [], "links": [{"target": 2}]},
        {"nodes": [], "nextId": 0},
    ])
    def test_invalid_document(self, document):
        """Test that malformed documents raise DocumentParseError."""
        with pytest.raises(DocumentParseError):
            deserialize(document)

    def test_duplicate_node_ids(self):
        """Test that two nodes with one id are rejected."""
        with pytest.raises(DocumentParseError, match="Duplicate node id"):
            deserialize({"nodes": [
                {"id": 1, "type": "income", "name": "A"},
                {"id": 1, "type": "expense", "name": "B"},
            ]})

    def test_invalid_json(self):
        """Test that broken JSON raises DocumentParseError."""
        with pytest.raises(DocumentParseError):
            loads("{not json")


class TestJsonFileStorage:
    """Tests for the file-per-key backend."""

    def test_set_get_delete(self, tmp_path):
        """Test basic blob operations."""
        storage = JsonFileKeyValueStorage(tmp_path)
        assert storage.get("graph") is None

        storage.set("graph", '{"a": 1}')
        assert storage.get("graph") == '{"a": 1}'
        assert (tmp_path / "graph.json").exists()

        assert storage.delete("graph") is True
        assert storage.delete("graph") is False

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test that atomic writes clean up after themselves."""
        storage = JsonFileKeyValueStorage(tmp_path)
        storage.set("graph", "one")
        storage.set("graph", "two")
        assert storage.get("graph") == "two"
        assert [p.name for p in tmp_path.iterdir()] == ["graph.json"]

    def test_creates_data_dir(self, tmp_path):
        """Test that the data directory is created on first write."""
        storage = JsonFileKeyValueStorage(tmp_path / "nested" / "data")
        storage.set("graph", "x")
        assert storage.get("graph") == "x"

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
    def test_invalid_keys(self, tmp_path, key):
        """Test that keys cannot escape the data directory."""
        with pytest.raises(StorageError):
            JsonFileKeyValueStorage(tmp_path).set(key, "x")


class TestStorageManager:
    """Tests for snapshot save/load and backups."""

    def test_load_empty(self):
        """Test that nothing stored loads as None."""
        assert StorageManager(InMemoryKeyValueStorage()).load() is None

    def test_save_and_load(self, rich_graph):
        """Test a full save/load cycle."""
        storage = InMemoryKeyValueStorage()
        manager = StorageManager(storage)
        manager.save(rich_graph)

        assert storage.keys() == ["money_flow_v2"]
        loaded = manager.load()
        assert _dump(loaded.nodes) == _dump(rich_graph.nodes)
        assert loaded.current_profile == "배우자"

    def test_custom_key(self, rich_graph):
        """Test saving under another key."""
        storage = InMemoryKeyValueStorage()
        StorageManager(storage, key="other").save(rich_graph)
        assert storage.keys() == ["other"]

    def test_load_malformed(self):
        """Test that a corrupt stored document raises DocumentParseError."""
        storage = InMemoryKeyValueStorage({"money_flow_v2": "garbage"})
        with pytest.raises(DocumentParseError):
            StorageManager(storage).load()

    def test_preserve_unreadable(self):
        """Test that the raw stored text is copied aside unchanged."""
        storage = InMemoryKeyValueStorage({"money_flow_v2": "garbage"})
        manager = StorageManager(storage)

        assert manager.preserve_unreadable() == "money_flow_v2.corrupt"
        assert storage.get("money_flow_v2.corrupt") == "garbage"
        assert storage.get("money_flow_v2") == "garbage"

    def test_preserve_unreadable_nothing_stored(self):
        """Test that there is nothing to copy when no document exists."""
        storage = InMemoryKeyValueStorage()
        assert StorageManager(storage).preserve_unreadable() is None
        assert storage.keys() == []

    def test_save_to_json_files(self, tmp_path, rich_graph):
        """Test the manager on the file backend."""
        manager = StorageManager(JsonFileKeyValueStorage(tmp_path))
        manager.save(rich_graph)
        stored = json.loads((tmp_path / "money_flow_v2.json").read_text(encoding="utf-8"))
        assert stored["version"] == DOCUMENT_VERSION
        assert _dump(manager.load().links) == _dump(rich_graph.links)

    def test_backup_filename(self):
        """Test the dated backup file name."""
        manager = StorageManager(InMemoryKeyValueStorage())
        assert manager.backup_filename(date(2024, 3, 9)) == "money_flow_backup_2024-03-09.json"

    def test_export_and_import(self, tmp_path, rich_graph):
        """Test that an exported backup imports to the same graph."""
        manager = StorageManager(InMemoryKeyValueStorage())
        path = manager.export_to_file(rich_graph, tmp_path / "backups", on=date(2024, 1, 2))

        assert path.name == "money_flow_backup_2024-01-02.json"
        imported = manager.import_from_file(path)
        assert _dump(imported.nodes) == _dump(rich_graph.nodes)
        assert imported.strategy.model_dump() == rich_graph.strategy.model_dump()

    def test_import_malformed_file(self, tmp_path):
        """Test importing a file that is not a graph document."""
        path = tmp_path / "bad.json"
        path.write_text('{"nodes": 5}', encoding="utf-8")
        with pytest.raises(DocumentParseError):
            StorageManager(InMemoryKeyValueStorage()).import_from_file(path)

    def test_import_missing_file(self, tmp_path):
        """Test importing a file that does not exist."""
        with pytest.raises(StorageError):
            StorageManager(InMemoryKeyValueStorage()).import_from_file(tmp_path / "none.json")
