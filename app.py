"""
app.py — Strength Coach
Main Streamlit application with Google Sheets persistence, plan generator,
training log, progress analytics, goals/PRs, readiness check-in and tools.
"""

import streamlit as st
import pandas as pd
import gspread
import json
from datetime import datetime, date, timedelta
from google.oauth2.service_account import Credentials

from coach_catalog import load_catalog
from coach_goals import goal_pacing, goal_progress, infer_baseline_e1rm, recompute_prs
from coach_insights import (
    best_lift_for_trend, bottleneck_summary, cardio_interference, recommended_frequency,
    rep_intensity_defaults, weekly_report_text,
)
from coach_load import weekly_load_metrics
from coach_models import (
    EQUIPMENT, EXPERIENCE_TIERS, E1RM_METHODS, GOALS, PRIORITIES, Checkin, format_load,
)
from coach_plan import (
    PROGRAM_TEMPLATES, analyze_day_order, apply_day_order, find_swaps, generate_plan,
    program_template, swap_exercise,
)
from coach_state import (
    add_goal, delete_goal, delete_session, json_to_state, log_session, save_checkin,
    state_to_json,
)
from coach_strength import plateau_diagnosis, readiness_advice, readiness_score, strength_series
from coach_tools import plate_breakdown, pr_test_baseline, pr_test_plan, warmup_sets
from coach_volume import region_targets, volume_table

# ─────────────────────────────────────────────
# Page Config
# ─────────────────────────────────────────────

st.set_page_config(
    page_title="Strength Coach",
    page_icon="🏋️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ─────────────────────────────────────────────
# Custom Styling
# ─────────────────────────────────────────────

st.markdown("""
<style>
    .stApp {
        background: linear-gradient(135deg, #f4f6f8 0%, #e3e8ee 100%);
    }

    /* Plan item card */
    .item-card {
        background: white;
        border-radius: 10px;
        padding: 0.9rem 1.1rem;
        margin-bottom: 0.6rem;
        box-shadow: 0 2px 8px rgba(0,0,0,0.06);
        border-left: 4px solid #34495e;
    }
    .item-card h4 { margin: 0 0 0.3rem 0; color: #1f2a36; }
    .item-card .meta { color: #6b7b8c; font-size: 0.85rem; }
    .item-card.empty { border-left-color: #c0392b; }

    /* Readiness labels */
    .ready-Green { color: #27ae60; font-weight: 700; }
    .ready-Yellow { color: #d4ac0d; font-weight: 700; }
    .ready-Red { color: #c0392b; font-weight: 700; }

    section[data-testid="stSidebar"] {
        background: linear-gradient(180deg, #1f2a36 0%, #34495e 100%);
    }
    section[data-testid="stSidebar"] .stMarkdown { color: #e3e8ee; }
    section[data-testid="stSidebar"] label { color: #e3e8ee !important; }

    .coach-header { text-align: center; padding: 1rem 0 0.5rem 0; }
    .coach-header h1 { color: #1f2a36; font-weight: 300; font-size: 2.2rem; letter-spacing: 0.05em; }
    .coach-header p { color: #6b7b8c; font-style: italic; }
</style>
""", unsafe_allow_html=True)


# ─────────────────────────────────────────────
# Google Sheets Connection
# ─────────────────────────────────────────────

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]
STATE_SHEET = "coach_state"
STATE_HEADER = ["User", "Updated", "State_JSON"]


@st.cache_resource
def get_gspread_client():
    """Authenticate with Google using Streamlit secrets.

    Accepts either `gcp_service_account_json` (the whole key as one string)
    or a `[gcp_service_account]` section.
    """
    try:
        if "gcp_service_account_json" in st.secrets:
            creds_dict = json.loads(st.secrets["gcp_service_account_json"])
        elif "gcp_service_account" in st.secrets:
            creds_dict = dict(st.secrets["gcp_service_account"])
        else:
            return None
        creds = Credentials.from_service_account_info(creds_dict, scopes=SCOPES)
        return gspread.authorize(creds)
    except json.JSONDecodeError as e:
        st.error(f"Invalid JSON in gcp_service_account_json: {e}")
        return None
    except Exception as e:
        st.error(f"Could not connect to Google Sheets: {e}")
        return None


def get_sheet():
    client = get_gspread_client()
    if client is None:
        return None
    try:
        sheet_url = st.secrets.get("sheet_url", "")
        sheet_id = st.secrets.get("sheet_id", "")
        if sheet_url:
            return client.open_by_url(sheet_url)
        elif sheet_id:
            return client.open_by_key(sheet_id)
        else:
            return client.open("Strength Coach")
    except Exception as e:
        st.error(f"Could not open spreadsheet: {e}")
        return None


def state_worksheet(spreadsheet):
    """The snapshot tab, created with its header row when missing."""
    existing = [ws.title for ws in spreadsheet.worksheets()]
    if STATE_SHEET not in existing:
        ws = spreadsheet.add_worksheet(title=STATE_SHEET, rows=100, cols=len(STATE_HEADER))
        ws.append_row(STATE_HEADER)
        return ws
    return spreadsheet.worksheet(STATE_SHEET)


def load_state(user: str):
    """Load a user's snapshot; a fresh state when nothing is stored or reachable."""
    spreadsheet = get_sheet()
    if spreadsheet is None:
        return json_to_state("")
    try:
        ws = state_worksheet(spreadsheet)
        for row in ws.get_all_records():
            if row.get("User") == user:
                return json_to_state(row.get("State_JSON", ""))
    except (json.JSONDecodeError, ValueError) as e:
        st.warning(f"Stored data could not be read, starting fresh: {e}")
    except Exception as e:
        st.warning(f"Could not load saved data: {e}")
    return json_to_state("")


def save_state(user: str, state) -> bool:
    """Write the user's snapshot row, appending it the first time."""
    spreadsheet = get_sheet()
    if spreadsheet is None:
        st.warning("Could not save — Google Sheets not connected. Changes stay in this session.")
        return False
    try:
        ws = state_worksheet(spreadsheet)
        row = [user, datetime.now().strftime("%Y-%m-%d %H:%M"), state_to_json(state)]
        users = ws.col_values(1)
        if user in users:
            r = users.index(user) + 1
            ws.update(range_name=f"A{r}:C{r}", values=[row])
        else:
            ws.append_row(row)
        return True
    except Exception as e:
        st.warning(f"Save failed: {e}")
        return False


@st.cache_resource
def get_catalog():
    return load_catalog()


# ─────────────────────────────────────────────
# Session State Initialization
# ─────────────────────────────────────────────

catalog = get_catalog()
ex_ids = [ex.id for ex in catalog.exercises]


def ex_name(exercise_id):
    ex = catalog.get(exercise_id)
    return ex.name if ex else (exercise_id or "—")


with st.sidebar:
    st.markdown("## 🏋️ Strength Coach")
    st.markdown("---")
    user = st.text_input("User", value="default",
                         help="History and settings are saved separately per user.")
    st.markdown("---")
    nav = st.radio(
        "Navigate",
        ["📋 Plan", "✍️ Log", "📈 Progress", "🎯 Goals & PRs", "🌡 Check-in", "🧰 Tools", "⚙️ Profile"],
        label_visibility="collapsed",
    )
    st.markdown("---")
    st.caption(f"Logged in as: **{user}**")

if st.session_state.get("user") != user:
    st.session_state.user = user
    st.session_state.state = load_state(user)

state = st.session_state.state
profile, settings = state.profile, state.settings
today = date.today()


def persist(message: str = ""):
    if save_state(user, state) and message:
        st.toast(message)


# ─────────────────────────────────────────────
# Header
# ─────────────────────────────────────────────

st.markdown("""
<div class="coach-header">
    <h1>Strength Coach</h1>
    <p>Plan, log and diagnose your training from one place</p>
</div>
""", unsafe_allow_html=True)


# ─────────────────────────────────────────────
# View: Plan
# ─────────────────────────────────────────────

if nav == "📋 Plan":
    st.markdown("### Weekly Plan")
    template_ids = ["auto"] + list(PROGRAM_TEMPLATES)
    col1, col2 = st.columns([3, 1])
    with col1:
        choice = st.selectbox(
            "Program template", template_ids,
            format_func=lambda t: "Auto (by days/week)" if t == "auto" else PROGRAM_TEMPLATES[t]["name"],
        )
        if choice != "auto":
            st.caption(PROGRAM_TEMPLATES[choice]["note"])
    with col2:
        st.write("")
        if st.button("🎲 Generate Plan", type="primary", use_container_width=True):
            tpl = None if choice == "auto" else program_template(choice, profile.days_per_week)
            state.plan = generate_plan(profile, catalog, tpl, settings.prescription_overrides,
                                       today=today)
            persist("Plan generated ✅")

    plan = state.plan
    if plan is None:
        st.info("No plan yet. Set your profile and generate one. 🎲")
    else:
        st.markdown(f"**{plan.split_name}** · created {plan.created} · *{plan.progression.rule}*")
        st.caption(plan.progression.detail)
        for day in plan.days:
            with st.expander(f"📅 {day.name} ({len(day.items)} exercises)", expanded=True):
                for item in day.items:
                    c1, c2 = st.columns([8, 1])
                    with c1:
                        css = "item-card" if item.exercise_id else "item-card empty"
                        st.markdown(
                            f"""<div class="{css}">
                            <h4>{ex_name(item.exercise_id)}</h4>
                            <div class="meta">{item.pattern} · {item.sets} sets × {item.reps} @ RPE {item.rpe}</div>
                            <div class="meta">{item.notes}</div>
                            </div>""",
                            unsafe_allow_html=True,
                        )
                    with c2:
                        if st.button("🔄", key=f"swap_{item.id}", help="Swap this exercise"):
                            result = swap_exercise(plan, day.id, item.id, profile, catalog)
                            if result:
                                persist()
                                st.rerun()
                            else:
                                st.toast(result.reason)

                order = analyze_day_order(day, catalog)
                for w in order["warnings"]:
                    st.warning(w)
                if order["suggested"] != order["current"]:
                    if st.button("↕ Reorder compounds first", key=f"order_{day.id}"):
                        apply_day_order(day, catalog)
                        persist()
                        st.rerun()

        st.markdown("---")
        st.markdown("#### Find alternatives")
        cur = st.selectbox("Exercise", ex_ids, format_func=ex_name, key="alt_ex")
        for ex in find_swaps(cur, profile, catalog, limit=8):
            st.markdown(f"- **{ex.name}** ({', '.join(ex.equip)})")


# ─────────────────────────────────────────────
# View: Log
# ─────────────────────────────────────────────

elif nav == "✍️ Log":
    st.markdown("### Log a Session")
    with st.form("log_form", clear_on_submit=True):
        c1, c2, c3, c4, c5 = st.columns([3, 1, 1, 1, 1])
        with c1:
            exercise_id = st.selectbox("Exercise", ex_ids, format_func=ex_name)
        with c2:
            set_count = st.number_input("Sets", 1, 20, 3)
        with c3:
            reps = st.number_input("Reps", 1, 50, 5)
        with c4:
            weight = st.number_input(f"Weight ({settings.units})", 0.0, 2000.0, 0.0, step=settings.round_to)
        with c5:
            rpe = st.number_input("RPE", 0.0, 10.0, 0.0, step=0.5)
        d1, d2, d3 = st.columns(3)
        with d1:
            session_date = st.date_input("Date", today, max_value=today)
        with d2:
            duration = st.number_input("Duration (min)", 0, 300, 0)
        with d3:
            session_rpe = st.number_input("Session RPE", 0.0, 10.0, 0.0, step=0.5)

        if st.form_submit_button("💾 Log Session", type="primary"):
            result = log_session(state, catalog, exercise_id, set_count, reps, weight, rpe,
                                 duration, session_rpe, session_date, today)
            if result:
                persist(f"Session logged ✅ {result.reason}")
            else:
                st.warning(result.reason)

    st.markdown("---")
    st.markdown("#### History")
    if not state.sessions:
        st.info("No sessions logged yet.")
    else:
        rows = [
            {"Date": s.date, "Exercise": ex_name(e.exercise_id), "Sets": e.set_count,
             "Reps": e.reps, "Weight": e.weight, "RPE": e.rpe,
             "Duration": s.duration_min, "sRPE": s.session_rpe, "id": s.id}
            for s in state.sessions for e in s.exercises
        ]
        df = pd.DataFrame(rows).sort_values("Date", ascending=False)
        st.dataframe(df.drop(columns=["id"]), use_container_width=True, hide_index=True)
        to_delete = st.selectbox("Delete session", [""] + list(df["id"].unique()),
                                 format_func=lambda i: "" if not i else
                                 " · ".join(str(v) for v in df[df["id"] == i].iloc[0][["Date", "Exercise"]]))
        if to_delete and st.button("🗑 Delete"):
            if delete_session(state, to_delete):
                state.prs = recompute_prs(state.sessions, settings.e1rm_method,
                                          settings.units, settings.round_to)
                persist("Session deleted")
                st.rerun()


# ─────────────────────────────────────────────
# View: Progress
# ─────────────────────────────────────────────

elif nav == "📈 Progress":
    st.markdown("### Weekly Volume")
    targets = region_targets(profile.goal, profile.experience, profile.priority,
                             catalog.taxonomy.regions, settings.volume_mode, settings.volume_custom)
    vol = pd.DataFrame(volume_table(state.sessions, catalog, targets, today))
    if not vol.empty:
        vol = vol.round({"sets_7d": 1, "sets_14d": 1})
        st.dataframe(vol, use_container_width=True, hide_index=True)

    st.markdown("### Strength Trend")
    default_lift = best_lift_for_trend(state, catalog, today)
    lift = st.selectbox("Lift", ex_ids, format_func=ex_name,
                        index=ex_ids.index(default_lift) if default_lift in ex_ids else 0)
    points = strength_series(state.sessions, lift, 12, settings.e1rm_method, today)
    if points:
        trend = pd.DataFrame([{"Date": p.date, "e1RM": p.e1rm} for p in points]).set_index("Date")
        st.line_chart(trend)
    else:
        st.caption("No entries for this lift in the last 12 weeks.")

    diagnosis = plateau_diagnosis(state, catalog, lift, today)
    st.markdown(f"#### 🩺 {diagnosis.title}")
    st.markdown(diagnosis.detail)
    for action in diagnosis.actions:
        st.markdown(f"- {action}")

    st.markdown("### Training Load")
    load = pd.DataFrame([vars(w) for w in weekly_load_metrics(state.sessions, 8, today)])
    st.dataframe(load.round(2), use_container_width=True, hide_index=True)

    st.markdown("### Bottlenecks")
    for b in bottleneck_summary(state, catalog, today):
        st.markdown(f"**{b['key']}** — {b['detail']}")

    with st.expander("📄 Weekly report"):
        st.code(weekly_report_text(state, catalog, today), language=None)


# ─────────────────────────────────────────────
# View: Goals & PRs
# ─────────────────────────────────────────────

elif nav == "🎯 Goals & PRs":
    st.markdown("### New Goal")
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        g_ex = st.selectbox("Lift", ex_ids, format_func=ex_name, key="goal_ex")
    inferred = infer_baseline_e1rm(state.sessions, g_ex, settings.e1rm_method, today)
    with c2:
        baseline = st.number_input("Baseline e1RM", 0.0, 2000.0, float(round(inferred, 1)))
    with c3:
        target = st.number_input("Target e1RM", 0.0, 2000.0, float(round(inferred * 1.1, 1)))
    with c4:
        weeks = st.number_input("Weeks", 4, 104, 12)

    if baseline > 0 and target > baseline:
        pacing = goal_pacing(baseline, target, weeks, profile.experience)
        st.caption(f"{pacing.required_pct_per_week:.2f}%/week · **{pacing.classification}** · "
                   + " · ".join(f"wk {w}: {format_load(v, settings.round_to)}"
                                for w, v in pacing.milestones.items()))
    if st.button("➕ Add Goal", type="primary"):
        result = add_goal(state, catalog, g_ex, baseline, target, weeks, today)
        if result:
            persist("Goal added 🎯")
        else:
            st.warning(result.reason)

    st.markdown("### Goals")
    for g in state.goals:
        progress = goal_progress(g, state.sessions, settings.e1rm_method, today)
        c1, c2 = st.columns([8, 1])
        with c1:
            st.progress(min(1.0, progress["pct"] / 100),
                        text=f"{ex_name(g.exercise_id)}: {format_load(progress['best'], settings.round_to)}"
                             f" / {format_load(g.target_e1rm, settings.round_to)} {settings.units}"
                             f" · {progress['days_left']} days left")
        with c2:
            if st.button("🗑", key=f"del_goal_{g.id}"):
                delete_goal(state, g.id)
                persist()
                st.rerun()

    st.markdown("### Personal Records")
    if state.prs.by_exercise:
        prs = pd.DataFrame([
            {"Exercise": ex_name(ex_id), "Best e1RM": round(r.best_e1rm, 1), "Date": r.best_e1rm_date,
             "Heaviest": r.best_weight, "Date ": r.best_weight_date}
            for ex_id, r in state.prs.by_exercise.items()
        ])
        st.dataframe(prs, use_container_width=True, hide_index=True)
        for ev in reversed(state.prs.events[-10:]):
            st.caption(f"{ev.date} · {ex_name(ev.exercise_id)} · {ev.description}")
    else:
        st.info("PRs appear here once you log sessions.")


# ─────────────────────────────────────────────
# View: Check-in
# ─────────────────────────────────────────────

elif nav == "🌡 Check-in":
    st.markdown("### Daily Readiness")
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        sleep = st.slider("Sleep quality", 1, 10, 7)
    with c2:
        soreness = st.slider("Soreness", 1, 10, 3)
    with c3:
        stress = st.slider("Stress", 1, 10, 4)
    with c4:
        motivation = st.slider("Motivation", 1, 10, 7)

    checkin = Checkin(today, sleep, soreness, stress, motivation)
    score = readiness_score(checkin)
    advice = readiness_advice(score)
    st.markdown(f'Readiness: <span class="ready-{advice["label"]}">{score} ({advice["label"]})</span>',
                unsafe_allow_html=True)
    st.caption(advice["advice"])
    if st.button("💾 Save Check-in", type="primary"):
        save_checkin(state, checkin)
        persist("Check-in saved ✅")


# ─────────────────────────────────────────────
# View: Tools
# ─────────────────────────────────────────────

elif nav == "🧰 Tools":
    tab_warm, tab_plates, tab_pr = st.tabs(["Warm-up", "Plates", "PR Test"])

    with tab_warm:
        c1, c2, c3 = st.columns(3)
        with c1:
            work = st.number_input("Work weight", 0.0, 2000.0, 225.0, step=settings.round_to)
        with c2:
            work_reps = st.number_input("Work reps", 1, 20, 5)
        with c3:
            steps = st.selectbox("Steps", [3, 4, 5], index=1)
        if work > 0:
            ramp = warmup_sets(work, work_reps, steps, settings.round_to)
            st.dataframe(pd.DataFrame([vars(s) for s in ramp]), use_container_width=True, hide_index=True)

    with tab_plates:
        target_load = st.number_input("Target", 0.0, 2000.0, 225.0, step=settings.round_to, key="plate_t")
        result = plate_breakdown(target_load, settings.bar_weight, settings.plates)
        if not result:
            st.warning(result.reason)
        else:
            loadout = result.value
            st.markdown("Per side: " + (", ".join(f"{n} × {p:g}" for p, n in loadout.per_side) or "nothing"))
            st.caption(f"Achieved {loadout.achieved:g} {settings.units} (off by {loadout.diff:g})")

    with tab_pr:
        c1, c2, c3 = st.columns(3)
        with c1:
            pr_ex = st.selectbox("Lift", ex_ids, format_func=ex_name, key="pr_ex")
        with c2:
            test_day = st.date_input("Test date", today + timedelta(days=7))
        with c3:
            style = st.selectbox("Style", ["conservative", "standard", "aggressive"], index=1)
        plan = pr_test_plan(pr_test_baseline(state.prs, pr_ex), test_day, style,
                            settings.round_to, settings.bar_weight)
        if plan.placeholder:
            st.caption("No history for this lift; using a placeholder baseline of 100.")
        st.dataframe(pd.DataFrame(plan.taper), use_container_width=True, hide_index=True)
        st.dataframe(pd.DataFrame(plan.warmups), use_container_width=True, hide_index=True)
        st.markdown("Attempts: " + " → ".join(format_load(a, settings.round_to) for a in plan.attempts))


# ─────────────────────────────────────────────
# View: Profile & Settings
# ─────────────────────────────────────────────

elif nav == "⚙️ Profile":
    st.markdown("### Profile")
    c1, c2, c3 = st.columns(3)
    with c1:
        profile.goal = st.selectbox("Goal", GOALS, index=GOALS.index(profile.goal))
        profile.experience = st.selectbox("Experience", EXPERIENCE_TIERS,
                                          index=EXPERIENCE_TIERS.index(profile.experience))
    with c2:
        profile.days_per_week = st.slider("Days / week", 1, 7, int(profile.days_per_week))
        profile.minutes_per_session = st.slider("Minutes / session", 20, 120,
                                                int(profile.minutes_per_session), step=5)
    with c3:
        profile.priority = st.selectbox("Priority", PRIORITIES, index=PRIORITIES.index(profile.priority))

    lo, hi = recommended_frequency(profile.experience)
    defaults = rep_intensity_defaults(profile.goal)
    st.caption(f"Recommended: {lo}-{hi} days/week · reps {defaults['reps']} · RPE {defaults['rpe']}"
               f" · rest {defaults['rest']}")

    st.markdown("#### Equipment")
    cols = st.columns(len(EQUIPMENT))
    for col, (key, label) in zip(cols, EQUIPMENT.items()):
        with col:
            profile.equipment[key] = st.checkbox(label, value=profile.equipment.get(key, False))

    st.markdown("#### Cardio")
    c1, c2, c3, c4 = st.columns(4)
    cardio = profile.cardio
    modalities = ["none", "run", "bike", "row", "swim", "hiit"]
    with c1:
        cardio.modality = st.selectbox("Modality", modalities,
                                       index=modalities.index(cardio.modality) if cardio.modality in modalities else 0)
    with c2:
        cardio.days_per_week = st.number_input("Cardio days", 0, 7, int(cardio.days_per_week))
    with c3:
        cardio.minutes_per_session = st.number_input("Cardio minutes", 0, 180, int(cardio.minutes_per_session))
    with c4:
        cardio.intensity = st.selectbox("Intensity", ["easy", "moderate", "hard"],
                                        index=["easy", "moderate", "hard"].index(cardio.intensity))
    interference = cardio_interference(profile, state.plan, catalog)
    if interference["has_cardio"]:
        st.caption(f"Interference risk: **{interference['risk']}** (score {interference['score']})")
        for d in interference["days"]:
            st.caption(f"{d['name']}: {d['advice']}")

    st.markdown("### Settings")
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        settings.units = st.selectbox("Units", ["lb", "kg"], index=["lb", "kg"].index(settings.units))
    with c2:
        settings.round_to = st.number_input("Round to", 0.25, 10.0, float(settings.round_to), step=0.25)
    with c3:
        settings.e1rm_method = st.selectbox("e1RM method", E1RM_METHODS,
                                            index=E1RM_METHODS.index(settings.e1rm_method))
    with c4:
        settings.bar_weight = st.number_input("Bar weight", 0.0, 100.0, float(settings.bar_weight))

    if st.button("💾 Save Profile", type="primary"):
        state.prs = recompute_prs(state.sessions, settings.e1rm_method, settings.units, settings.round_to)
        persist("Profile saved ✅")
