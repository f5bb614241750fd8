"""CLI entrypoints for protodoc commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config import ProtodocConfig, load_config
from .errors import ProtodocError
from .links import LinkReport
from .logging import configure_logging, get_logger
from .models import SymbolKind
from .pipeline import ProtoModel, load_model, merge_content_links


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Documentation root holding .protodoc.yml (defaults to current directory).",
    )
    parser.add_argument(
        "--descriptor",
        default=None,
        help="Descriptor set to load instead of the configured `proto_descriptor`.",
    )


def _add_scope_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--scope",
        default=None,
        help=(
            "Package or symbol that short macro references resolve from "
            "(overrides the configured `default_scope`)."
        ),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protodoc",
        description="Build cross-referenced documentation data from protobuf descriptor sets.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Summarise the symbols and diagnostics of a descriptor set.",
    )
    _add_common_options(inspect_parser)
    inspect_parser.add_argument(
        "--json",
        action="store_true",
        help="Print every package page as JSON instead of a summary.",
    )

    link_parser = subparsers.add_parser(
        "link",
        help="Resolve proto!(...) macros in markdown documents.",
    )
    _add_common_options(link_parser)
    _add_scope_option(link_parser)
    link_parser.add_argument(
        "documents",
        nargs="*",
        help="Markdown files to process (defaults to the configured `documents`).",
    )
    link_parser.add_argument(
        "--in-place",
        action="store_true",
        help="Rewrite documents on disk instead of printing them.",
    )
    link_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any macro cannot be resolved.",
    )

    pages_parser = subparsers.add_parser(
        "pages",
        help="Write one JSON page file per protobuf package.",
    )
    _add_common_options(pages_parser)
    _add_scope_option(pages_parser)
    pages_parser.add_argument(
        "--output",
        required=True,
        help="Directory receiving the JSON page files.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for protodoc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file).expanduser() if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)
    logger = get_logger("cli")

    try:
        config = load_config(Path(args.path))
        descriptor = (
            Path(args.descriptor).expanduser().resolve()
            if args.descriptor
            else config.descriptor_path()
        )
        model = load_model(
            descriptor, page_root=config.page_root, source_url=config.source_url
        )
        scope = getattr(args, "scope", None) or config.default_scope

        if args.command == "inspect":
            if args.json:
                pages = model.pages().build_all()
                print(json.dumps([page.model_dump(mode="json") for page in pages], indent=2))
            else:
                print(_summarise(model))
        elif args.command == "link":
            documents = [Path(item) for item in args.documents] or config.document_paths()
            if not documents:
                parser.exit(1, "No documents given and none configured under `documents`.\n")
            reports = _link_documents(
                model, config, documents, scope=scope, in_place=bool(args.in_place)
            )
            failures = [failure for report in reports for failure in report.diagnostics]
            for failure in failures:
                print(str(failure), file=sys.stderr)
            if failures and (args.strict or config.fail_on_unresolved):
                parser.exit(1, f"{len(failures)} unresolved protobuf reference(s)\n")
        elif args.command == "pages":
            reports = _link_documents(
                model, config, config.document_paths(), scope=scope, write=False
            )
            page_model = model.pages(merge_content_links(reports))
            output = Path(args.output)
            output.mkdir(parents=True, exist_ok=True)
            for package_page in page_model.build_all():
                target = output / f"{package_page.package or 'index'}.json"
                target.write_text(package_page.model_dump_json(indent=2), encoding="utf-8")
                logger.info("Wrote %s", target)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except ProtodocError as exc:
        parser.exit(1, f"protodoc {args.command} failed: {exc}\n")


def _link_documents(
    model: ProtoModel,
    config: ProtodocConfig,
    documents: List[Path],
    *,
    scope: Optional[str] = None,
    in_place: bool = False,
    write: bool = True,
) -> List[LinkReport]:
    reports: List[LinkReport] = []
    for path in documents:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ProtodocError(f"Cannot read document {path}: {exc}") from exc
        report = model.link(text, document=_relativize(path, config.root), scope=scope)
        reports.append(report)
        if not write:
            continue
        if in_place:
            if report.text != text:
                path.write_text(report.text, encoding="utf-8")
        else:
            print(report.text)
    return reports


def _summarise(model: ProtoModel) -> str:
    lines = [f"{len(model.files)} file(s), {len(model.table)} symbol(s)"]
    for proto_file in model.files:
        lines.append(f"  {proto_file.name} (package {proto_file.package or '<none>'})")
    counts = {kind: 0 for kind in SymbolKind}
    for symbol in model.table:
        counts[symbol.kind] += 1
    lines.append(
        "  " + ", ".join(f"{kind.value}: {count}" for kind, count in counts.items() if count)
    )
    lines.append(f"{len(model.graph.edges)} reference edge(s)")
    if model.diagnostics:
        lines.append(f"{len(model.diagnostics)} diagnostic(s):")
        lines.extend(f"  {diagnostic}" for diagnostic in model.diagnostics)
    return "\n".join(lines)


def _relativize(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


if __name__ == "__main__":
    main(sys.argv[1:])
