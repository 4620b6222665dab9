import pytest

from src.conceptmap.errors import FragmentValidationError
from src.conceptmap.identity import IdentityResolver
from src.conceptmap.merge import MergeEngine, validate_fragment
from src.conceptmap.models.graph import GraphLink, GraphNode, GraphSettings, KnowledgeGraph


def _engine(*ids):
    it = iter(ids)
    return MergeEngine(IdentityResolver(id_factory=lambda: next(it)), default_palette_id="plasma")


def _graph_with_a():
    return KnowledgeGraph(
        nodes=[GraphNode(id="id1", name="A", info="about A")],
        links=[],
        settings=GraphSettings(colorPaletteId="viridis", showNodeRelationships={"id1": True}),
    )


def test_merge_into_null_graph():
    graph = _engine("n1").merge(None, {"nodes": [{"name": "Recursion", "info": "..."}], "links": []})
    assert [n.id for n in graph.nodes] == ["n1"]
    assert graph.links == []
    assert graph.settings.colorPaletteId == "plasma"
    assert graph.settings.showNodeRelationships == {"n1": False}


def test_link_to_existing_node_resolves_by_name():
    fragment = {
        "nodes": [{"name": "B", "info": "about B"}],
        "links": [{"source": "A", "target": "B", "label": "leads to"}],
    }
    graph = _engine("n1").merge(_graph_with_a(), fragment)
    assert len(graph.nodes) == 2
    assert graph.links == [GraphLink(source="id1", target="n1", label="leads to")]
    # existing settings survive
    assert graph.settings.colorPaletteId == "viridis"
    assert graph.settings.showNodeRelationships == {"id1": True, "n1": False}


def test_unresolved_link_is_dropped():
    fragment = {
        "nodes": [{"name": "B", "info": "about B"}],
        "links": [{"source": "B", "target": "C", "label": "x"}],
    }
    result = _engine("n1").merge_with_report(_graph_with_a(), fragment)
    assert len(result.graph.nodes) == 2
    assert result.graph.links == []
    assert [(d.source, d.target) for d in result.report.dropped_links] == [("B", "C")]


def test_existing_name_is_not_duplicated():
    fragment = {
        "nodes": [{"name": "A", "info": "other text"}, {"name": "B", "info": "about B"}],
        "links": [{"source": "B", "target": "A", "label": "refines"}],
    }
    result = _engine("n1").merge_with_report(_graph_with_a(), fragment)
    graph = result.graph
    assert [n.name for n in graph.nodes] == ["A", "B"]
    assert graph.find_node("id1").info == "about A"
    assert graph.links[0].target == "id1"
    assert result.report.duplicate_names == ["A"]


def test_duplicate_names_within_one_fragment():
    fragment = {"nodes": [{"name": "X", "info": "1"}, {"name": "X", "info": "2"}], "links": []}
    graph = _engine("n1", "n2").merge(None, fragment)
    assert len(graph.nodes) == 1
    assert graph.nodes[0].info == "1"


def test_remerging_same_fragment_adds_nothing():
    fragment = {
        "nodes": [{"name": "B", "info": "about B"}],
        "links": [{"source": "A", "target": "B", "label": "leads to"}],
    }
    engine = _engine("n1", "n2")
    once = engine.merge(_graph_with_a(), fragment)
    twice = engine.merge(once, fragment)
    assert twice.nodes == once.nodes
    assert twice.links == once.links


def test_links_are_deduplicated_by_direction():
    fragment = {
        "nodes": [{"name": "B", "info": ""}],
        "links": [
            {"source": "A", "target": "B", "label": "one"},
            {"source": "A", "target": "B", "label": "two"},
            {"source": "B", "target": "A", "label": "back"},
        ],
    }
    result = _engine("n1").merge_with_report(_graph_with_a(), fragment)
    assert [(l.source, l.target, l.label) for l in result.graph.links] == [
        ("id1", "n1", "one"),
        ("n1", "id1", "back"),
    ]
    assert result.report.duplicate_links == 1


def test_merge_does_not_mutate_inputs():
    existing = _graph_with_a()
    before = existing.model_dump()
    _engine("n1").merge(existing, {"nodes": [{"name": "B", "info": ""}], "links": []})
    assert existing.model_dump() == before


def test_empty_existing_graph_gets_default_settings():
    existing = KnowledgeGraph(nodes=[], links=[], settings=GraphSettings(colorPaletteId="viridis"))
    graph = _engine("n1").merge(existing, {"nodes": [{"name": "A", "info": ""}]})
    assert graph.settings.colorPaletteId == "plasma"


def test_missing_link_label_defaults_to_empty():
    fragment = {"nodes": [{"name": "B", "info": ""}], "links": [{"source": "A", "target": "B"}]}
    graph = _engine("n1").merge(_graph_with_a(), fragment)
    assert graph.links[0].label == ""


@pytest.mark.parametrize("raw", [
    {"nodes": [{"name": "A"}]},
    {"nodes": [{"info": "no name"}]},
    {"nodes": "not a list"},
    ["nodes"],
    None,
])
def test_malformed_fragment_is_rejected(raw):
    with pytest.raises(FragmentValidationError):
        validate_fragment(raw)


def test_malformed_fragment_leaves_graph_untouched():
    existing = _graph_with_a()
    with pytest.raises(FragmentValidationError) as exc:
        _engine("n1").merge(existing, {"nodes": [{"name": "B"}], "links": []})
    assert exc.value.errors
    assert [n.id for n in existing.nodes] == ["id1"]
