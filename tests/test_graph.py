"""Tests for protodoc.graph."""

from __future__ import annotations

from protodoc.errors import DanglingReference
from protodoc.graph import EdgeKind, ReferenceEdge
from protodoc.pipeline import ProtoModel, build_model
from tests._fixtures.descriptor_builder import (
    TYPE_ENUM,
    TYPE_MESSAGE,
    DescriptorSetBuilder,
    add_enum,
    add_field,
    add_message,
)


def _names(symbols) -> set:
    return {symbol.full_name for symbol in symbols}


def test_method_types_become_backlinks(helloworld_model: ProtoModel) -> None:
    graph = helloworld_model.graph
    request = helloworld_model.lookup("helloworld.HelloRequest")
    say_hello = helloworld_model.lookup("helloworld.Greeter.SayHello")

    assert _names(graph.referenced_by(request)) == {
        "helloworld.Greeter.SayHello",
        "helloworld.Greeter.StreamHello",
    }
    assert _names(graph.references_of(say_hello)) == {
        "helloworld.HelloRequest",
        "helloworld.HelloReply",
    }
    assert graph.referenced_by(say_hello) == set()
    assert graph.resolved_type(say_hello, EdgeKind.METHOD_OUTPUT).full_name == (
        "helloworld.HelloReply"
    )
    assert helloworld_model.diagnostics == ()


def test_field_reference_is_not_symmetric(descriptor_builder: DescriptorSetBuilder) -> None:
    proto = descriptor_builder.file("refs.proto", "refs")
    add_message(proto, "B")
    holder = add_message(proto, "A")
    add_field(holder, "b", 1, TYPE_MESSAGE, type_name=".refs.B")

    model = build_model(descriptor_builder.serialize())
    a, b = model.lookup("refs.A"), model.lookup("refs.B")
    field = model.lookup("refs.A.b")

    assert _names(model.graph.referenced_by(b)) == {"refs.A"}
    assert model.graph.referenced_by(a) == set()
    assert _names(model.graph.references_of(a)) == {"refs.B"}
    assert _names(model.graph.references_of(field)) == {"refs.B"}
    assert model.graph.edges == (ReferenceEdge("refs.A", "refs.B", EdgeKind.FIELD_TYPE, "refs.A.b"),)


def test_self_references_and_cycles_are_kept(
    descriptor_builder: DescriptorSetBuilder,
) -> None:
    proto = descriptor_builder.file("cycles.proto", "cycles")
    node = add_message(proto, "Node")
    add_field(node, "next", 1, TYPE_MESSAGE, type_name=".cycles.Node")
    ping = add_message(proto, "Ping")
    add_field(ping, "pong", 1, TYPE_MESSAGE, type_name=".cycles.Pong")
    pong = add_message(proto, "Pong")
    add_field(pong, "ping", 1, TYPE_MESSAGE, type_name=".cycles.Ping")

    model = build_model(descriptor_builder.serialize())
    graph = model.graph

    node_symbol = model.lookup("cycles.Node")
    assert node_symbol in graph.referenced_by(node_symbol)
    assert node_symbol in graph.references_of(node_symbol)
    assert _names(graph.referenced_by(model.lookup("cycles.Ping"))) == {"cycles.Pong"}
    assert _names(graph.referenced_by(model.lookup("cycles.Pong"))) == {"cycles.Ping"}
    assert len(graph.edges) == 3


def test_dangling_reference_is_collected_not_raised(
    descriptor_builder: DescriptorSetBuilder,
) -> None:
    proto = descriptor_builder.file("user.proto", "app", dependencies=["common.proto"])
    user = add_message(proto, "User")
    add_field(user, "created", 1, TYPE_MESSAGE, type_name=".common.Timestamp")

    model = build_model(descriptor_builder.serialize())

    assert len(model.diagnostics) == 1
    diagnostic = model.diagnostics[0]
    assert isinstance(diagnostic, DanglingReference)
    assert diagnostic.source == "app.User.created"
    assert diagnostic.type_name == "common.Timestamp"
    assert diagnostic.file == "user.proto"
    assert model.graph.edges == ()
    assert model.lookup("app.User") is not None


def test_included_import_resolves_reference(descriptor_builder: DescriptorSetBuilder) -> None:
    add_message(descriptor_builder.file("common.proto", "common"), "Timestamp")
    proto = descriptor_builder.file("user.proto", "app", dependencies=["common.proto"])
    add_field(add_message(proto, "User"), "created", 1, TYPE_MESSAGE, type_name=".common.Timestamp")

    model = build_model(descriptor_builder.serialize())

    assert model.diagnostics == ()
    assert _names(model.graph.referenced_by(model.lookup("common.Timestamp"))) == {"app.User"}


def test_reference_to_non_type_symbol_is_dangling(
    descriptor_builder: DescriptorSetBuilder,
) -> None:
    proto = descriptor_builder.file("odd.proto", "odd")
    holder = add_message(proto, "Holder")
    add_field(holder, "value", 1)
    add_field(holder, "self_field", 2, TYPE_MESSAGE, type_name=".odd.Holder.value")

    model = build_model(descriptor_builder.serialize())

    assert [diagnostic.source for diagnostic in model.diagnostics] == ["odd.Holder.self_field"]


def test_nested_declarations_link_to_their_parent(
    descriptor_builder: DescriptorSetBuilder,
) -> None:
    proto = descriptor_builder.file("nested.proto", "nested")
    outer = add_message(proto, "Outer")
    inner = add_message(outer, "Inner")
    add_enum(outer, "State", ["UNKNOWN"])
    # relative names resolve from the declaring message outwards
    add_field(outer, "inner", 1, TYPE_MESSAGE, type_name="Inner")
    add_field(inner, "state", 1, TYPE_ENUM, type_name="State")

    model = build_model(descriptor_builder.serialize())
    graph = model.graph
    outer_symbol = model.lookup("nested.Outer")

    assert model.diagnostics == ()
    assert _names(graph.referenced_by(outer_symbol, kinds=[EdgeKind.NESTED_IN])) == {
        "nested.Outer.Inner",
        "nested.Outer.State",
    }
    assert _names(graph.references_of(outer_symbol, kinds=[EdgeKind.FIELD_TYPE])) == {
        "nested.Outer.Inner"
    }
    state = model.lookup("nested.Outer.State")
    assert _names(graph.referenced_by(state)) == {"nested.Outer.Inner"}
    assert graph.resolved_type(model.lookup("nested.Outer.Inner.state")) == state
