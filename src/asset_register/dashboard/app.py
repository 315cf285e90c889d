"""Streamlit dashboard for asset-register."""

from datetime import date, timedelta

import pandas as pd
import plotly.express as px
import streamlit as st

from asset_register.config.settings import get_settings
from asset_register.financial.movement import calculate_register
from asset_register.financial.valuation import TaxYearPolicy, fiscal_year
from asset_register.ingestion.repository import AssetRepository
from asset_register.models.database import get_engine, get_session_factory, init_db
from asset_register.reporting.journals import build_journals, trial_balance
from asset_register.reporting.movement_schedule import (
    ScheduleView,
    build_schedule,
    schedule_frame,
)


@st.cache_resource
def get_db_factory():
    engine = get_engine()
    init_db(engine)
    return get_session_factory(engine)


def get_session():
    factory = get_db_factory()
    return factory()


def fiscal_year_bounds(label: int, end_month: int, end_day: int) -> tuple[date, date]:
    start = date(label - 1, end_month, end_day) + timedelta(days=1)
    return start, date(label, end_month, end_day)


# ── Page config ──────────────────────────────────────────────────────
st.set_page_config(page_title="Asset Register", layout="wide")

settings = get_settings()
policy = TaxYearPolicy.from_settings(settings)

# ── Sidebar ──────────────────────────────────────────────────────────
st.sidebar.title("Asset Register")
page = st.sidebar.radio(
    "Navigation", ["Register Overview", "Movement Schedule", "Journals"]
)

session = get_session()
repo = AssetRepository(session)

branches = repo.list_locations("branch")
branch_names = {b.name: b.id for b in branches}
branch_filter = st.sidebar.selectbox("Branch", ["All"] + sorted(branch_names))
branch_id = None if branch_filter == "All" else branch_names[branch_filter]

today = date.today()
current_fy = fiscal_year(
    today, settings.fiscal_year_end_month, settings.fiscal_year_end_day
)
fy_label = st.sidebar.number_input(
    "Fiscal year", min_value=2000, max_value=2100, value=current_fy, step=1
)
period_start, period_end = fiscal_year_bounds(
    int(fy_label), settings.fiscal_year_end_month, settings.fiscal_year_end_day
)
st.sidebar.caption(f"{period_start} to {period_end}")

categories = repo.list_categories()
assets = repo.list_assets(branch_id=branch_id)

if not assets:
    st.warning(
        "The register is empty. Run `asset-register seed-data` or "
        "`asset-register import-assets <file>` first."
    )
    session.close()
    st.stop()

# ═══════════════════════════════════════════════════════════════════════
# PAGE 1: Register Overview
# ═══════════════════════════════════════════════════════════════════════
if page == "Register Overview":
    st.title("Register Overview")

    calcs = calculate_register(assets, period_start, period_end, categories, policy)
    total_cost = sum(float(c.closing_cost) for c in calcs)
    total_nbv = sum(float(c.nbv) for c in calcs)
    total_depr = sum(float(c.periodic_depr) for c in calcs)
    total_tax = sum(float(c.tax_value) for c in calcs)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Assets", f"{len(assets):,}")
    col2.metric("Closing Cost", f"{total_cost:,.0f}")
    col3.metric("Net Book Value", f"{total_nbv:,.0f}")
    col4.metric("Tax Value", f"{total_tax:,.0f}")
    st.caption(f"Depreciation charge for FY{int(fy_label)}: {total_depr:,.2f}")

    # ── NBV by category ──
    st.subheader("Net Book Value by Category")
    names = {c.id: c.name for c in categories}
    by_category = pd.DataFrame(
        {
            "category": [names.get(a.category_id, "Unresolved") for a in assets],
            "nbv": [float(c.nbv) for c in calcs],
            "tax_value": [float(c.tax_value) for c in calcs],
        }
    ).groupby("category", as_index=False).sum()
    fig_cat = px.bar(
        by_category.melt(id_vars="category", var_name="basis", value_name="value"),
        x="category",
        y="value",
        color="basis",
        barmode="group",
        labels={"category": "Category", "value": "Amount", "basis": "Basis"},
    )
    fig_cat.update_layout(height=380)
    st.plotly_chart(fig_cat, width="stretch")

    # ── Status breakdown ──
    st.subheader("Asset Status")
    status_counts = pd.Series([a.status.value for a in assets]).value_counts()
    fig_status = px.pie(
        names=status_counts.index, values=status_counts.values, hole=0.4
    )
    fig_status.update_layout(height=320)
    st.plotly_chart(fig_status, width="stretch")

# ═══════════════════════════════════════════════════════════════════════
# PAGE 2: Movement Schedule
# ═══════════════════════════════════════════════════════════════════════
elif page == "Movement Schedule":
    st.title("Movement Schedule")
    view = st.radio("Basis", ["IFRS", "Tax"], horizontal=True)
    schedule = build_schedule(
        assets,
        categories,
        period_start,
        period_end,
        ScheduleView.IFRS if view == "IFRS" else ScheduleView.TAX,
        branch_id,
        policy,
    )
    df = schedule_frame(schedule)
    if df.empty:
        st.info("No movement for this period.")
    else:
        st.dataframe(df, width="stretch", hide_index=True)
        st.download_button(
            "Download CSV",
            df.to_csv(index=False).encode("utf-8"),
            file_name=f"{schedule.view}_schedule_FY{int(fy_label)}.csv",
            mime="text/csv",
        )

        t = schedule.total
        st.subheader("Cost Roll-forward")
        waterfall = pd.DataFrame(
            {
                "step": ["Opening", "Additions", "Revaluations", "Impairments",
                         "Disposals", "Closing"],
                "amount": [
                    float(t.opening_cost),
                    float(t.additions),
                    float(t.revaluations),
                    -float(t.impairments),
                    -float(t.disposals),
                    float(t.closing_cost),
                ],
            }
        )
        fig_roll = px.bar(waterfall, x="step", y="amount", labels={"step": ""})
        fig_roll.update_layout(height=350)
        st.plotly_chart(fig_roll, width="stretch")

# ═══════════════════════════════════════════════════════════════════════
# PAGE 3: Journals
# ═══════════════════════════════════════════════════════════════════════
elif page == "Journals":
    st.title("Consolidated GL Journals")
    month = st.selectbox("Month", list(range(1, 13)), index=today.month - 1)
    year = st.number_input("Year", min_value=2000, max_value=2100, value=today.year)
    entries = build_journals(
        assets,
        categories,
        int(year),
        int(month),
        branch_id=branch_id,
        accounts_payable_code=settings.accounts_payable_code,
        policy=policy,
    )
    if not entries:
        st.info("No activity found for this month.")
    else:
        st.dataframe(
            pd.DataFrame([e.model_dump() for e in entries]),
            width="stretch",
            hide_index=True,
        )
        debit, credit = trial_balance(entries)
        col1, col2 = st.columns(2)
        col1.metric("Total Debit", f"{float(debit):,.2f}")
        col2.metric("Total Credit", f"{float(credit):,.2f}")

session.close()
