"""candle command line — docs reports plus the sentinel logging surface."""

from __future__ import annotations

import argparse
import json
import logging
import os
import pathlib

from doctools.reports import (
    HealthReport,
    IndexReport,
    StructureReport,
    health_report,
    index_report,
    structure_report,
)
from doctools.scan import suggest_destination
from sentinel.config import default_project_root, load_sentinel_config
from sentinel.sentinel import Sentinel

log = logging.getLogger("candle.cli")

_PREVIEW = 10


def _bullets(items, limit: int | None = None) -> list[str]:
    shown = items if limit is None else items[:limit]
    lines = [f"  • {item}" for item in shown]
    if limit is not None and len(items) > limit:
        lines.append(f"  ... 共 {len(items)} 个")
    return lines


def render_index(report: IndexReport) -> str:
    lines = [
        "📊 统计信息:",
        f"  - 总文件数: {report.total}",
        f"  - 已索引文件: {len(report.indexed)}",
        f"  - 未索引文件: {len(report.unindexed)}",
        "",
    ]
    if report.unindexed:
        lines.append("🚨 未索引文件 (需要检查是否应该索引):")
        for item in report.unindexed:
            fm = item.frontmatter
            if not fm.has_frontmatter:
                tag = "❌ 无 frontmatter"
            elif fm.high_priority:
                tag = "🔒 core/rule/skill"
            else:
                tag = "⚠️ fragment/log"
            lines.append(f"  • {item.path} {tag}")
        lines.append("")
    if report.weak:
        lines.append("⚠️  在 router 中存在但未在 sidebar 中配置:")
        lines.extend(_bullets(report.weak))
        lines.append("")
    lines.extend(["📂 目录分析:", ""])
    for category, counts in report.directories.items():
        lines.append(f"  📁 {category}/ ({counts.files} 个文件)")
        if counts.core:
            lines.append(f"    🔒 核心协议层: {counts.core} 个")
        if counts.fragment:
            lines.append(f"    📄 片段/日志层: {counts.fragment} 个")
        lines.append("")
    if report.unindexed:
        lines.append("建议操作:")
        lines.extend(f"  - {i.path} → {suggest_destination(i.path)}" for i in report.unindexed)
    return "\n".join(lines)


def render_health(report: HealthReport) -> str:
    lines = [f"📊 扫描到 {report.total} 个 Markdown 文件", ""]
    if report.missing_frontmatter:
        lines.append(f"⚠️  发现 {len(report.missing_frontmatter)} 个文档没有 frontmatter:")
        lines.extend(_bullets(report.missing_frontmatter, _PREVIEW))
    else:
        lines.append("✅ 所有文档都有 frontmatter")

    if report.router_last_updated is None:
        lines.append("⚠️  router.md 缺少 Last Updated 标记")
    elif report.router_is_current:
        lines.append(f"✅ router.md 今天已更新 ({report.router_last_updated})")
    else:
        lines.append(f"⚠️  router.md 未更新 (最后: {report.router_last_updated})")

    if report.journal_files:
        lines.append(f"✅ memory/journal/ 包含 {len(report.journal_files)} 个文件")
    else:
        lines.append("⚠️  memory/journal/ 为空或不存在")

    if report.unreferenced:
        lines.append(f"⚠️  发现 {len(report.unreferenced)} 个可能未被引用的文件:")
        lines.extend(_bullets(report.unreferenced, _PREVIEW))
    else:
        lines.append("✅ 所有重要文件都已正确引用")

    lines.append("📁 文档分类统计:")
    lines.extend(f"  • {name}: {count} 个" for name, count in report.categories.items())
    lines.append(f"  • 总计: {report.total} 个")
    return "\n".join(lines)


def render_structure(report: StructureReport) -> str:
    lines = [f"  - Markdown 文件: {report.total} 个", f"  - 目录分类: {len(report.categories)} 个", ""]
    for category, info in report.categories.items():
        lines.append(f"  📁 {category}/ ({len(info.files)} 个文件) → 类型: {info.kind}")
        lines.extend("    " + b for b in _bullets(info.files, 5 if len(info.files) <= 5 else 3))
    for kind, advice in (("log", "→ archive/logs/"), ("temp", "→ archive/temp/"), ("security", "(确认 srcExclude 配置)")):
        for rel in report.files_of_kind(kind):
            lines.append(f"  → {rel} {advice}")
    if report.missing_index_files:
        lines.append("⚠️  部分索引文件缺失: " + ", ".join(report.missing_index_files))
    else:
        lines.append("🎉 索引文件完整")
    return "\n".join(lines)


def _summary(name: str, report) -> str:
    if isinstance(report, IndexReport):
        return f"{name}: {report.total} files, {len(report.unindexed)} unindexed, {len(report.weak)} weak"
    if isinstance(report, HealthReport):
        return (
            f"{name}: {report.total} files, {len(report.missing_frontmatter)} without frontmatter, "
            f"{len(report.unreferenced)} unreferenced"
        )
    return f"{name}: {report.total} files, {len(report.missing_index_files)} index files missing"


def _parse_pairs(pairs: list[str]) -> dict:
    data = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {pair!r}")
        try:
            data[key] = json.loads(value)
        except ValueError:
            data[key] = value
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="candle", description=__doc__)
    parser.add_argument("--root", type=pathlib.Path, default=None, help="project root (default: $CANDLE_ROOT or cwd)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("check-index", "report markdown files missing from router/index/sidebar"),
        ("verify-health", "frontmatter, router freshness, journal and reference checks"),
        ("analyze", "directory structure overview and archive suggestions"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--record", action="store_true", help="write a journal entry for this run")
        p.add_argument("--strict", action="store_true", help="exit 1 when problems are found")

    p = sub.add_parser("log", help="append a narrative journal entry")
    p.add_argument("--title", default=None)
    p.add_argument("--body", required=True)
    p.add_argument("--source", action="append", default=[], dest="sources")
    p.add_argument("--notify", action="store_true")

    p = sub.add_parser("action", help="record a physical action")
    p.add_argument("--command", required=True, dest="action_command")
    p.add_argument("--task", default=None)
    p.add_argument("--cite", action="append", default=[], dest="citations")
    p.add_argument("--failed", action="store_true")

    p = sub.add_parser("push-context", help="push KEY=VALUE pairs to the handoff buffer")
    p.add_argument("pairs", nargs="+")

    sub.add_parser("consume", help="drain the handoff buffer and print it as JSON")
    return parser


def run(args: argparse.Namespace) -> int:
    config = load_sentinel_config(args.root or default_project_root())
    sentinel = Sentinel(config)

    reports = {
        "check-index": (lambda: index_report(config.docs_dir), render_index),
        "verify-health": (lambda: health_report(config.docs_dir, sentinel.clock.today()), render_health),
        "analyze": (lambda: structure_report(config.docs_dir), render_structure),
    }
    if args.command in reports:
        build, render = reports[args.command]
        report = build()
        print(render(report))
        if args.record:
            sentinel.write_log({
                "title": args.command,
                "body": _summary(args.command, report),
                "sources": [os.path.relpath(config.docs_dir, config.project_root)],
            })
        return 1 if args.strict and not report.ok else 0

    if args.command == "log":
        thread = sentinel.write_log(
            {"title": args.title, "body": args.body, "sources": args.sources},
            notify=args.notify,
        )
        if thread is not None:
            thread.join()
        return 0

    if args.command == "action":
        path = sentinel.record_action({
            "task": args.task,
            "citations": args.citations,
            "command": args.action_command,
            "success": not args.failed,
        })
        log.info("Action recorded in %s", path)
        return 0

    if args.command == "push-context":
        size = sentinel.push_semantic_context(_parse_pairs(args.pairs))
        log.info("Context buffer now holds %d entries", size)
        return 0

    entries = sentinel.consume_buffer()
    print(json.dumps(entries, ensure_ascii=False, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        return run(args)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
