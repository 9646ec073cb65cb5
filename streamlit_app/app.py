from __future__ import annotations

import pandas as pd
import streamlit as st
import altair as alt

from daily_kpi.aggregate.kpis import compute_kpis
from daily_kpi.aggregate.monthly import monthly_rows, rows_mean, rows_to_frame, tail_rows
from daily_kpi.config import get_settings
from daily_kpi.db import get_client, get_db, load_store
from daily_kpi.export import format_ddmmyyyy, format_pct, format_value, sample_csv, series_to_csv
from daily_kpi.ingest.parse_csv import parse_input_date, parse_value
from daily_kpi.ingest.upload import merge_upload_once
from daily_kpi.store import RecordStore

# =====================================================
# Page config
# =====================================================
st.set_page_config(page_title="Daily Series Analytics", layout="wide")
st.title("📊 Daily Series Analytics")

try:
    s = get_settings()
except RuntimeError as exc:
    st.error(str(exc))
    st.stop()

mode = st.sidebar.radio("Calculation mode", ["sum", "avg"], index=0 if s.calc_mode == "sum" else 1)
months_shown = st.sidebar.slider("Months shown", min_value=6, max_value=60, value=24, step=6)


# =====================================================
# Store (JSON file, or MongoDB when MONGO_URI is set)
# =====================================================
def open_store() -> RecordStore:
    """Load the current series from the configured backend."""
    if s.mongo_uri:
        try:
            collection = get_db(get_client(s.mongo_uri), s.mongo_db)[s.mongo_collection]
            return load_store(collection)
        except Exception as exc:  # pragma: no cover - runtime failure handling
            st.error(f"Unable to load from MongoDB: {exc}")
            st.stop()
    return RecordStore.load_json(s.store_path)


def kpi(label: str, value: str, delta: float | None = None) -> None:
    """Display a KPI metric with an optional YoY delta."""
    st.metric(label, value, delta=None if delta is None else format_pct(delta))


store = open_store()

# =====================================================
# SECTION 0 — INPUT
# =====================================================
with st.sidebar.expander("Add / update a day", expanded=False):
    d_text = st.text_input("Date (DD-MM-YYYY)")
    v_text = st.text_input(f"Value ({s.value_column})")
    if st.button("Save day"):
        d = parse_input_date(d_text)
        v = parse_value(v_text)
        if d is None:
            st.error("Please enter a valid date (DD-MM-YYYY).")
        elif v is None:
            st.error("Please enter a valid number.")
        elif s.mongo_uri:
            st.warning("Editing is only available with the JSON store; use the CLI for MongoDB.")
        else:
            store.upsert(d, v)
            store.save_json(s.store_path)
            st.success(f"Saved {format_ddmmyyyy(d)}: {format_value(v)}")

    upload = st.file_uploader("Import CSV", type=["csv"])
    if upload is not None and s.mongo_uri:
        st.warning("Importing is only available with the JSON store; use `daily-kpi import` for MongoDB.")
    elif upload is not None:
        merged_ids = st.session_state.setdefault("merged_uploads", set())
        res = merge_upload_once(store, upload.getvalue().decode("utf-8-sig"), upload.file_id, merged_ids)
        if res is not None:
            for e in res.errors[:12]:
                st.warning(e)
            if res.records:
                store.save_json(s.store_path)
                st.success(f"Imported {len(res.records)} rows.")

    st.download_button("Download sample CSV", sample_csv(s.value_column), file_name="sample.csv")

series = store.sorted_series()
if not series:
    st.info("Add datapoints or import a CSV.")
    st.stop()

st.sidebar.download_button(
    "Export CSV",
    series_to_csv(series, s.value_column),
    file_name=f"series_{series[-1].date.isoformat()}.csv",
)

# =====================================================
# SECTION 1 — QUICK STATS
# =====================================================
st.header("📌 Quick Stats")

k = compute_kpis(series, mode)
ytd_label = "YTD Avg (from 1 Apr)" if mode == "avg" else "YTD Total (from 1 Apr)"

c1, c2, c3 = st.columns(3)
with c1:
    kpi("Latest day", f"{format_ddmmyyyy(k.latest_date)} · {format_value(k.latest_value)}", k.latest_yoy)
    kpi(ytd_label, format_value(k.ytd_value), k.ytd_yoy)
with c2:
    kpi("Current 7-Day Average", format_value(k.avg7), k.avg7_yoy)
    kpi("MTD Average", format_value(k.mtd_avg), k.mtd_yoy)
with c3:
    kpi("Current 30-Day Average", format_value(k.avg30), k.avg30_yoy)
    st.caption(f"Records: {len(series)}")

st.divider()

# =====================================================
# SECTION 2 — MONTHLY VALUE + GROWTH
# =====================================================
period_label = "Avg" if mode == "avg" else "Total"
st.header(f"📈 Monthly {period_label} + growth")

rows = tail_rows(monthly_rows(series, mode), months_shown)
df_monthly = rows_to_frame(rows)
mean = rows_mean(rows)

bars = (
    alt.Chart(df_monthly)
    .mark_bar()
    .encode(
        x=alt.X("month:O", title="Month"),
        y=alt.Y("value:Q", title=period_label),
        tooltip=["month:O", "value:Q", "yoy_pct:Q", "mom_pct:Q"],
    )
)
layers = [bars]
if mean is not None:
    layers.append(
        alt.Chart(pd.DataFrame({"mean": [mean]}))
        .mark_rule(strokeDash=[4, 4])
        .encode(y="mean:Q")
    )
st.altair_chart(alt.layer(*layers).properties(height=320), width="stretch")

df_growth = df_monthly.melt(
    id_vars=["month"], value_vars=["yoy_pct", "mom_pct"], var_name="series", value_name="pct"
).dropna(subset=["pct"])
chart_growth = (
    alt.Chart(df_growth)
    .mark_line(point=True)
    .encode(
        x=alt.X("month:O", title="Month"),
        y=alt.Y("pct:Q", title="Growth %"),
        color=alt.Color("series:N", title=None),
        tooltip=["month:O", "series:N", "pct:Q"],
    )
    .properties(height=260)
)
st.altair_chart(chart_growth, width="stretch")

table = df_monthly.copy()
table["value"] = table["value"].map(format_value)
table["yoy_pct"] = table["yoy_pct"].map(format_pct)
table["mom_pct"] = table["mom_pct"].map(format_pct)
st.dataframe(table.iloc[::-1], width="stretch", hide_index=True)

st.divider()

# =====================================================
# SECTION 3 — RECENT ENTRIES
# =====================================================
st.header("🗓️ Recent entries")
recent = pd.DataFrame(
    [{"date": format_ddmmyyyy(r.date), s.value_column: format_value(r.value)} for r in reversed(series[-25:])]
)
st.dataframe(recent, width="stretch", hide_index=True)

st.caption("Daily series • comparable-period growth • fiscal year from 1 April")
