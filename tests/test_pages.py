"""Tests for protodoc.pages."""

from __future__ import annotations

from protodoc.graph import EdgeKind
from protodoc.links import ContentLink
from protodoc.pipeline import ProtoModel, build_model
from tests._fixtures.descriptor_builder import (
    LABEL_REPEATED,
    TYPE_ENUM,
    TYPE_MESSAGE,
    DescriptorSetBuilder,
    add_enum,
    add_field,
    add_message,
)


def test_message_page_carries_comments_children_and_backlinks(
    helloworld_model: ProtoModel,
) -> None:
    pages = helloworld_model.pages()
    request = helloworld_model.lookup("helloworld.HelloRequest")

    page = pages.build_page(request)

    assert page.kind == "message"
    assert page.href == "/proto/helloworld.md#HelloRequest"
    assert page.comments.leading == "The request message containing the user's name."
    assert [child.full_name for child in page.children] == ["helloworld.HelloRequest.name"]
    assert [(link.source.full_name, link.kind) for link in page.backlinks] == [
        ("helloworld.Greeter.SayHello", EdgeKind.METHOD_INPUT),
        ("helloworld.Greeter.StreamHello", EdgeKind.METHOD_INPUT),
    ]
    assert all(link.via is None for link in page.backlinks)
    assert page.source_url is None


def test_field_page_describes_scalar_type(helloworld_model: ProtoModel) -> None:
    page = helloworld_model.pages().build_page(
        helloworld_model.lookup("helloworld.HelloRequest.name")
    )

    assert page.anchor == "HelloRequest::name"
    assert page.field is not None
    assert page.field.number == 1
    assert page.field.cardinality == "singular"
    assert page.field.scalar.proto == "string"
    assert page.field.scalar.python == "str"
    assert page.field.type is None
    assert page.method is None


def test_method_page_links_request_and_response(helloworld_model: ProtoModel) -> None:
    page = helloworld_model.pages().build_page(
        helloworld_model.lookup("helloworld.Greeter.StreamHello")
    )

    assert page.method is not None
    assert page.method.input_type == "helloworld.HelloRequest"
    assert page.method.output.href == "/proto/helloworld.md#HelloReply"
    assert page.method.server_streaming is True
    assert page.method.client_streaming is False


def test_field_backlinks_name_the_carrying_field(
    descriptor_builder: DescriptorSetBuilder,
) -> None:
    proto = descriptor_builder.file("shop.proto", "shop")
    add_enum(proto, "Status", ["UNKNOWN", "PAID"])
    order = add_message(proto, "Order")
    add_field(order, "status", 1, TYPE_ENUM, type_name=".shop.Status")
    add_field(order, "history", 2, TYPE_ENUM, type_name=".shop.Status", label=LABEL_REPEATED)
    cart = add_message(proto, "Cart")
    add_field(cart, "orders", 1, TYPE_MESSAGE, type_name=".shop.Order", label=LABEL_REPEATED)

    model = build_model(descriptor_builder.serialize())
    pages = model.pages()

    status_page = pages.build_page(model.lookup("shop.Status"))
    assert [(link.source.full_name, link.via.full_name) for link in status_page.backlinks] == [
        ("shop.Order", "shop.Order.history"),
        ("shop.Order", "shop.Order.status"),
    ]

    orders_field = pages.build_page(model.lookup("shop.Cart.orders")).field
    assert orders_field.cardinality == "repeated"
    assert orders_field.type.full_name == "shop.Order"
    assert orders_field.type_name == "shop.Order"
    assert orders_field.scalar is None

    value_page = pages.build_page(model.lookup("shop.Status.PAID"))
    assert value_page.enum_number == 1
    assert value_page.anchor == "Status::PAID"


def test_build_package_lists_pages_in_declaration_order(helloworld_model: ProtoModel) -> None:
    package = helloworld_model.pages().build_package("helloworld")

    assert package.path == "/proto/helloworld.md"
    assert package.files == ["helloworld.proto"]
    assert [page.full_name for page in package.pages] == [
        symbol.full_name for symbol in helloworld_model.table
    ]


def test_source_url_points_at_declaration_lines(helloworld_bytes: bytes) -> None:
    model = build_model(helloworld_bytes, source_url="https://x/")

    request = model.pages().build_page(model.lookup("helloworld.HelloRequest"))
    say_hello = model.pages().build_page(model.lookup("helloworld.Greeter.SayHello"))

    assert request.source_url == "https://x/helloworld.proto#L16-L19"
    assert say_hello.source_url == "https://x/helloworld.proto#L8"


def test_content_backlinks_come_from_linked_prose(helloworld_model: ProtoModel) -> None:
    report = helloworld_model.link(
        "Start with [the greeter](proto!(helloworld.Greeter)).", document="guide.md"
    )

    page = helloworld_model.pages(report.content_links).build_page(
        helloworld_model.lookup("helloworld.Greeter")
    )

    assert [link.model_dump() for link in page.content_backlinks] == [
        {
            "document": "guide.md",
            "label": "the greeter",
            "href": "/guide.md#ref-1-helloworld.Greeter",
        }
    ]


def test_build_all_covers_every_package(descriptor_builder: DescriptorSetBuilder) -> None:
    add_message(descriptor_builder.file("b.proto", "beta"), "B")
    add_message(descriptor_builder.file("a.proto", "alpha"), "A")
    add_message(descriptor_builder.file("root.proto"), "Root")

    model = build_model(descriptor_builder.serialize())
    packages = model.pages([ContentLink("doc.md", "ref-1-A", "A", "alpha.A")]).build_all()

    assert [(package.package, package.path) for package in packages] == [
        ("", "/proto/index.md"),
        ("alpha", "/proto/alpha.md"),
        ("beta", "/proto/beta.md"),
    ]
    assert packages[1].pages[0].content_backlinks[0].href == "/doc.md#ref-1-A"
    dumped = packages[1].model_dump(mode="json")
    assert dumped["pages"][0]["full_name"] == "alpha.A"
