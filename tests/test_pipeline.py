"""Tests for protodoc.pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

from protodoc import MalformedDescriptor, ProtodocError, build_model, load_model
from protodoc.pipeline import ModelCache, ProtoModel, fingerprint, merge_content_links


def test_build_model_wires_every_stage(helloworld_model: ProtoModel) -> None:
    assert [proto_file.name for proto_file in helloworld_model.files] == ["helloworld.proto"]
    assert len(helloworld_model.table) == 7
    assert len(helloworld_model.graph.edges) == 4
    assert helloworld_model.diagnostics == ()
    assert helloworld_model.lookup("helloworld.Greeter").comments.leading == (
        "The greeting service definition."
    )


def test_fingerprint_tracks_descriptor_content(helloworld_bytes: bytes) -> None:
    model = build_model(helloworld_bytes)

    assert model.fingerprint == fingerprint(helloworld_bytes)
    assert model.fingerprint != fingerprint(helloworld_bytes + b"\x98\x06\x01")


def test_load_model_reads_descriptor_file(tmp_path: Path, helloworld_bytes: bytes) -> None:
    descriptor = tmp_path / "helloworld.pb"
    descriptor.write_bytes(helloworld_bytes)

    model = load_model(descriptor, page_root="api", source_url="https://example.test/protos")

    assert model.page_root == "api"
    assert model.resolver.resolve("helloworld.HelloReply").href == "/api/helloworld.md#HelloReply"


def test_load_model_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ProtodocError) as excinfo:
        load_model(tmp_path / "missing.pb")

    assert "missing.pb" in str(excinfo.value)


def test_load_model_rejects_garbage(tmp_path: Path) -> None:
    descriptor = tmp_path / "broken.pb"
    descriptor.write_bytes(b"\x0f")

    with pytest.raises(MalformedDescriptor):
        load_model(descriptor)


def test_model_cache_reuses_models_per_content(helloworld_bytes: bytes) -> None:
    cache = ModelCache()

    first = cache.get(helloworld_bytes)
    second = cache.get(bytes(helloworld_bytes))
    rooted = cache.get(helloworld_bytes, page_root="api")

    assert first is second
    assert rooted is not first
    assert len(cache) == 2

    cache.clear()
    assert len(cache) == 0
    assert cache.get(helloworld_bytes) is not first


def test_merge_content_links_flattens_reports(helloworld_model: ProtoModel) -> None:
    reports = [
        helloworld_model.link("proto!(helloworld.Greeter)", document="a.md"),
        helloworld_model.link("proto!(helloworld.HelloReply) proto!(nope)", document="b.md"),
    ]

    links = merge_content_links(reports)

    assert [(link.document, link.target) for link in links] == [
        ("a.md", "helloworld.Greeter"),
        ("b.md", "helloworld.HelloReply"),
    ]
