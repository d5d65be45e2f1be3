from __future__ import annotations

from pathlib import Path

import folium
import streamlit as st
from streamlit_folium import st_folium

from footprint_grid.aggregate import compute_grid_counts, summarize
from footprint_grid.csv_io import ImportParams, load_track_points, split_sessions
from footprint_grid.errors import PersistenceFailure
from footprint_grid.grid import cell_center
from footprint_grid.models import DEFAULT_TZ, GridCounts, Session
from footprint_grid.render import grid_feature_collection, session_lines
from footprint_grid.storage import JsonSessionStore
from footprint_grid.tiers import TIER_COLORS, Tier, tier_of
from footprint_grid.timeutils import dt_from_epoch_ms, format_hhmmss

DEFAULT_CENTER = (35.6812, 139.7671)


@st.cache_data(show_spinner=False)
def _load_sessions(store_path: str, mtime: float) -> list[Session]:
    _ = mtime  # part of cache key so updated files reload automatically
    return JsonSessionStore(store_path).load()


def _build_map(counts: GridCounts, sessions: list[Session], show_paths: bool) -> folium.Map:
    if counts:
        busiest = max(counts.items(), key=lambda kv: kv[1])[0]
        c = cell_center(busiest)
        center = (c.latitude, c.longitude)
    else:
        center = DEFAULT_CENTER

    m = folium.Map(location=list(center), zoom_start=15, control_scale=True)
    # folium 需要至少一个 feature 才能校验 style_function / tooltip
    if counts:
        folium.GeoJson(
            grid_feature_collection(counts),
            name="grid",
            style_function=lambda f: {
                "fillColor": f["properties"]["color"],
                "color": f["properties"]["color"],
                "weight": 1,
                "fillOpacity": 0.45,
            },
            tooltip=folium.GeoJsonTooltip(fields=["cell", "count", "tier"]),
        ).add_to(m)
    lines = session_lines(sessions)
    if show_paths and lines["features"]:
        folium.GeoJson(
            lines,
            name="paths",
            style_function=lambda _: {"color": "#FF0000", "weight": 3},
        ).add_to(m)
    folium.LayerControl().add_to(m)
    return m


def main() -> None:
    st.set_page_config(page_title="足迹网格：100m 访问统计", layout="wide")
    st.title("足迹网格：哪些 100m 网格去过、去过几次")

    with st.sidebar:
        st.subheader("数据")
        tz_name = st.text_input("时区（IANA）", value=DEFAULT_TZ)
        store_path = st.text_input("sessions.json 路径", value="sessions.json")
        path_csv = st.text_input("Path.csv 路径（导入用）", value="Path.csv")
        max_gap_seconds = st.number_input("切分会话的最大间隔（秒）", value=30 * 60.0, step=60.0)

        if st.button("从 Path.csv 导入会话", type="primary", use_container_width=True):
            if not Path(path_csv).exists():
                st.error(f"找不到文件：{path_csv!r}")
            else:
                with st.spinner("正在读取 Path.csv 并切分会话 ..."):
                    points, _ = load_track_points(path_csv)
                    sessions_new = split_sessions(points, ImportParams(max_gap_seconds=float(max_gap_seconds)))
                    store = JsonSessionStore(store_path)
                    try:
                        known = {s.id for s in store.load()}
                        added = 0
                        for s in sessions_new:
                            if s.id not in known:
                                store.append(s)
                                added += 1
                    except PersistenceFailure as exc:
                        st.error(str(exc))
                    else:
                        st.success(f"已导入：新增 {added} 段会话")

        show_paths = st.checkbox("显示原始轨迹", value=False)

    p = Path(store_path)
    if not p.exists():
        st.info(f"找不到文件：{store_path!r}。可以先在左侧导入 Path.csv。")
        return

    try:
        sessions = _load_sessions(store_path, p.stat().st_mtime)
    except PersistenceFailure as exc:
        st.warning(f"会话文件读取失败，按空数据显示：{exc}")
        sessions = []

    counts = compute_grid_counts(sessions)
    summary = summarize(counts)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("会话数", str(len(sessions)))
    c2.metric("去过的网格", str(summary.cells))
    c3.metric("最多访问次数", str(summary.max_count))
    c4.metric("常去网格（≥5次）", str(summary.cells_per_tier[Tier.HIGH] + summary.cells_per_tier[Tier.SEVERE]))

    st_folium(_build_map(counts, sessions, show_paths), width=None, height=600, key="grid_map")
    st.caption(" / ".join(f"{t.value}: {TIER_COLORS[t]}" for t in Tier))

    with st.expander("网格明细", expanded=False):
        rows = [
            {"row": cell.row, "col": cell.col, "count": n, "tier": tier_of(n).value}
            for cell, n in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]
        st.dataframe(rows, use_container_width=True, height=360)

    with st.expander("会话列表", expanded=False):
        rows = [
            {
                "id": s.id,
                "start": dt_from_epoch_ms(s.start_ms, tz_name).isoformat(sep=" "),
                "duration": format_hhmmss(s.duration_seconds),
                "points": len(s.coordinates),
            }
            for s in sessions
        ]
        st.dataframe(rows, use_container_width=True, height=360)


if __name__ == "__main__":
    main()
