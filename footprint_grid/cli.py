"""Command-line interface for footprint_grid.

Run:
    python -m footprint_grid import-csv --csv Path.csv --store sessions.json
    python -m footprint_grid grid --store sessions.json --out grid.csv
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict

from footprint_grid.aggregate import compute_grid_counts, session_cells, summarize
from footprint_grid.csv_io import ImportParams, load_track_points, split_sessions, write_grid_csv
from footprint_grid.errors import FootprintError
from footprint_grid.geo import path_length_m
from footprint_grid.models import DEFAULT_TZ
from footprint_grid.recorder import SessionRecorder
from footprint_grid.render import grid_feature_collection, write_geojson
from footprint_grid.replay import ReplayLocationSource
from footprint_grid.storage import JsonSessionStore, load_sessions_best_effort
from footprint_grid.tiers import Tier
from footprint_grid.timeutils import dt_from_epoch_ms, format_hhmmss

logger = logging.getLogger(__name__)


def _cmd_import_csv(args: argparse.Namespace) -> int:
    points, summary = load_track_points(args.csv)
    params = ImportParams(max_gap_seconds=args.max_gap_seconds, min_points=args.min_points)
    sessions = split_sessions(points, params)

    store = JsonSessionStore(args.store)
    existing = {s.id for s in store.load()}
    added = 0
    for s in sessions:
        if s.id in existing:
            continue
        store.append(s)
        added += 1

    print(f"total_rows={summary.rows_total}, parsed={summary.rows_parsed}, skipped={summary.rows_skipped}")
    print(f"切分出 sessions={len(sessions)} 段，新增={added}，已存在跳过={len(sessions) - added}")
    print(f"已写入：{args.store}")
    return 0


def _cmd_record(args: argparse.Namespace) -> int:
    points, _ = load_track_points(args.csv)
    points.sort(key=lambda p: p.geo_time_ms)
    if not points:
        print("CSV中没有可用的轨迹点", file=sys.stderr)
        return 1

    source = ReplayLocationSource([p.coordinate for p in points])
    # 回放时使用轨迹自身的时间戳作为时钟
    recorder = SessionRecorder(
        source,
        JsonSessionStore(args.store),
        clock=lambda: points[max(0, source.delivered - 1)].geo_time_ms,
    )
    recorder.load()
    recorder.start()
    source.pump()
    session = recorder.stop()
    if session is None:
        print("没有生成会话", file=sys.stderr)
        return 1

    print(f"已记录：{session.id}（{len(session.coordinates)} 个点，{format_hhmmss(session.duration_seconds)}）")
    if recorder.last_error is not None:
        print(f"注意：会话未能保存：{recorder.last_error}", file=sys.stderr)
        return 1
    return 0


def _cmd_sessions(args: argparse.Namespace) -> int:
    sessions = JsonSessionStore(args.store).load()
    print(f"### 会话数：{len(sessions)}")
    for s in sessions:
        start = dt_from_epoch_ms(s.start_ms, args.tz).isoformat(sep=" ")
        end = dt_from_epoch_ms(s.end_ms, args.tz).isoformat(sep=" ")
        print(
            f"{s.id}  {start} ~ {end}  duration={format_hhmmss(s.duration_seconds)}  "
            f"points={len(s.coordinates)}  length_m={path_length_m(s.coordinates):.1f}  "
            f"cells={len(session_cells(s.coordinates))}"
        )
    return 0


def _cmd_grid(args: argparse.Namespace) -> int:
    sessions = load_sessions_best_effort(JsonSessionStore(args.store))
    counts = compute_grid_counts(sessions)
    summary = summarize(counts)

    print(f"### 网格（100m）：sessions={len(sessions)}")
    print(f"cells={summary.cells}, total_visits={summary.total_visits}, max_count={summary.max_count}")
    for tier in Tier:
        print(f"  {tier.value:<7} {summary.cells_per_tier.get(tier, 0)}")

    if args.out:
        write_grid_csv(counts, args.out)
        print(f"已导出：{args.out}")
    if args.geojson:
        write_geojson(grid_feature_collection(counts), args.geojson)
        print(f"已导出：{args.geojson}")
    if args.json:
        payload = asdict(summary) | {"cells_per_tier": {t.value: n for t, n in summary.cells_per_tier.items()}}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="footprint_grid")
    p.add_argument("-v", "--verbose", action="store_true", help="输出INFO级别日志")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_imp = sub.add_parser("import-csv", help="把导出的轨迹CSV按时间间隔切分为会话并保存")
    p_imp.add_argument("--csv", type=str, default="Path.csv", help="输入CSV路径")
    p_imp.add_argument("--store", type=str, default="sessions.json", help="会话文件路径")
    p_imp.add_argument(
        "--max-gap-seconds",
        type=float,
        default=30 * 60.0,
        help="相邻两点间隔超过该秒数则切分为新会话（默认30分钟）",
    )
    p_imp.add_argument("--min-points", type=int, default=1, help="点数少于该值的会话将被丢弃")
    p_imp.set_defaults(func=_cmd_import_csv)

    p_rec = sub.add_parser("record", help="把CSV当作实时位置流回放一次，记录为一个会话")
    p_rec.add_argument("--csv", type=str, default="Path.csv", help="输入CSV路径")
    p_rec.add_argument("--store", type=str, default="sessions.json", help="会话文件路径")
    p_rec.set_defaults(func=_cmd_record)

    p_ses = sub.add_parser("sessions", help="列出已保存的会话")
    p_ses.add_argument("--store", type=str, default="sessions.json", help="会话文件路径")
    p_ses.add_argument("--tz", type=str, default=DEFAULT_TZ, help="时区（IANA）")
    p_ses.set_defaults(func=_cmd_sessions)

    p_grid = sub.add_parser("grid", help="统计每个100m网格被多少个会话访问过")
    p_grid.add_argument("--store", type=str, default="sessions.json", help="会话文件路径")
    p_grid.add_argument("--out", type=str, default=None, help="输出网格CSV路径")
    p_grid.add_argument("--geojson", type=str, default=None, help="输出GeoJSON路径（用于地图渲染）")
    p_grid.add_argument("--json", action="store_true", help="额外输出JSON（便于后处理）")
    p_grid.set_defaults(func=_cmd_grid)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except FootprintError as exc:
        logger.debug("command failed", exc_info=True)
        print(f"错误：{exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
