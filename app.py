import streamlit as st

from btec_calc.backend_logic import (
    calculate_results,
    check_plan,
    cohort_statistics,
    missing_mandatory_units,
    next_boundary,
    orphaned_results,
    target_requirements,
)
from btec_calc.course_catalog import INITIAL_COURSES, course_label, sort_courses
from btec_calc.io_csv import (
    apply_results_edits,
    cohort_csv,
    cohort_frame,
    parse_results,
    read_csv_upload,
    results_frame,
    validate_results_csv,
)
from btec_calc.models import Grade
from btec_calc.records import (
    add_unit,
    new_student,
    remove_unit,
    set_unit_grade,
    toggle_lock,
    update_student,
)
from btec_calc.reference_tables import default_scheme
from btec_calc.settings import active_scheme, configure_logging, get_settings

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

st.set_page_config(
    page_title=settings.APP_TITLE,
    page_icon="🎓",
    layout="wide",
)

st.title("🎓 " + settings.APP_TITLE)
st.write(
    "Enter unit grades for each student to see their total points, predicted "
    "qualification grade and UCAS points. Tick **Locked** once a grade has been signed off."
)

try:
    scheme = active_scheme(settings)
except (OSError, ValueError) as e:
    st.error(f"Could not load grading scheme from {settings.SCHEME_PATH}: {e}")
    scheme = default_scheme()

# ------------------------
# Session state (nothing is stored between sessions)
# ------------------------
if "courses" not in st.session_state:
    st.session_state["courses"] = sort_courses(INITIAL_COURSES)
if "students" not in st.session_state:
    st.session_state["students"] = []
if "editor_versions" not in st.session_state:
    st.session_state["editor_versions"] = {}

if "flash" in st.session_state:
    st.warning(st.session_state.pop("flash"))

courses = st.session_state["courses"]
course = st.selectbox("Course", courses, format_func=course_label)

students = [s for s in st.session_state["students"] if s.course_id == course.id]

# ------------------------
# Roster
# ------------------------
col_roster, col_main = st.columns([1, 3])

with col_roster:
    st.subheader("Students")
    with st.form("add_student_form", clear_on_submit=True):
        new_name = st.text_input("Name")
        added = st.form_submit_button("+ New")
    if added:
        try:
            st.session_state["students"].append(new_student(new_name, course))
            st.rerun()
        except ValueError as e:
            st.error(str(e))

    if not students:
        st.info("No students yet.")
        st.stop()

    for s in students:
        r = calculate_results(s, course, scheme)
        st.caption(f"**{s.name}** · {r.total_points} pts · {r.grade}")

    active = st.radio("Active student", students, format_func=lambda s: s.name)

# ------------------------
# Calculator
# ------------------------
with col_main:
    summary = calculate_results(active, course, scheme)

    st.subheader(active.name)
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        st.metric("Total points", summary.total_points)
    with c2:
        st.metric("Grade", summary.grade)
    with c3:
        st.metric("UCAS points", summary.ucas_points)
    with c4:
        st.metric("GLH achieved", f"{summary.current_glh} / {course.total_glh}")

    if not summary.mandatory_passed:
        st.error("❌ At least one mandatory unit is graded U.")
    missing = missing_mandatory_units(active, course)
    if missing:
        st.warning("Mandatory units without a result: " + ", ".join(u.name for u in missing))
    orphans = orphaned_results(active, course)
    if orphans:
        st.warning("Results for units not on this course are ignored: "
                   + ", ".join(r.unit_id for r in orphans))

    nb = next_boundary(summary.total_points, scheme.boundaries)
    if nb is not None:
        boundary, needed = nb
        st.caption(f"{needed} more points for {boundary.grade} ({boundary.ucas_points} UCAS).")

    editor_version = st.session_state["editor_versions"].get(active.id, 0)
    before = results_frame(active, course, scheme)
    edited = st.data_editor(
        before,
        key=f"results_{active.id}_{editor_version}",
        hide_index=True,
        use_container_width=True,
        disabled=["Number", "Unit", "Type", "GLH", "Points"],
        column_config={
            "Grade": st.column_config.SelectboxColumn(
                "Grade", options=[g.value for g in Grade], required=True,
            ),
            "Locked": st.column_config.CheckboxColumn("Locked", help="Teacher sign-off"),
        },
    )

    updated, refused = apply_results_edits(active, course, before, edited)
    if refused:
        names = [course.find_unit(unit_id).name for unit_id in refused]
        st.session_state["flash"] = "Locked grades were not changed: " + ", ".join(names)
        # new key so the table redraws from the stored results
        st.session_state["editor_versions"][active.id] = editor_version + 1
    if updated != active or refused:
        st.session_state["students"] = update_student(st.session_state["students"], updated)
        st.rerun()

    # ------------------------------
    # Optional units
    # ------------------------------
    recorded = {r.unit_id for r in active.results}
    add_col, remove_col = st.columns(2)
    with add_col:
        addable = [u for u in course.optional_units if u.id not in recorded]
        to_add = st.selectbox("Add optional unit", [None] + addable,
                              format_func=lambda u: "-" if u is None else f"{u.number}. {u.name}")
        if to_add is not None and st.button("Add unit"):
            st.session_state["students"] = update_student(
                st.session_state["students"], add_unit(active, to_add.id))
            st.rerun()
    with remove_col:
        removable = [u for u in course.optional_units if u.id in recorded]
        to_remove = st.selectbox("Remove optional unit", [None] + removable,
                                 format_func=lambda u: "-" if u is None else f"{u.number}. {u.name}")
        if to_remove is not None and st.button("Remove unit"):
            st.session_state["students"] = update_student(
                st.session_state["students"], remove_unit(active, to_remove.id))
            st.rerun()

    uploaded = st.file_uploader("Import results CSV (Unit_ID, Grade, Locked)", type=["csv"])
    if uploaded is not None and st.button("Apply import"):
        try:
            imported = parse_results(validate_results_csv(read_csv_upload(uploaded)))
        except ValueError as e:
            st.error(f"Results CSV error: {e}")
        else:
            for res in imported:
                updated = set_unit_grade(updated, res.unit_id, res.grade)
                current = updated.find_result(res.unit_id)
                if res.locked and current is not None and not current.locked:
                    updated = toggle_lock(updated, res.unit_id)
            st.session_state["students"] = update_student(st.session_state["students"], updated)
            st.rerun()

    # ------------------------------
    # Target planner
    # ------------------------------
    st.markdown("---")
    st.subheader("Target planner")
    targets = [b.grade for b in scheme.boundaries if b.min_points > 0]
    target = st.selectbox("Target grade", targets, index=len(targets) - 1)
    req = target_requirements(active, course, target, scheme)

    p1, p2, p3 = st.columns(3)
    with p1:
        st.metric("Points needed", req["points_needed"])
    with p2:
        st.metric("Outstanding GLH", req["outstanding_glh"])
    with p3:
        st.metric("Max points still available", req["max_additional_points"])

    if req["points_needed"] == 0:
        st.success(f"✅ Already at or above {req['target_grade']}.")
    elif req["achievable"]:
        st.info(f"{req['target_grade']} is still achievable with the open units.")
    else:
        st.error(f"{req['target_grade']} is no longer reachable, even with D on every open unit.")

    # ------------------------------
    # Scenario planner
    # ------------------------------
    if req["open_units"]:
        st.markdown("### What if...")
        st.markdown("Pick the grades you expect on the open units. Locked results stay as recorded.")
        planned = {}
        for unit in req["open_units"]:
            planned[unit.id] = st.select_slider(
                f"{unit.number}. {unit.name} ({unit.glh} GLH)",
                options=[g.value for g in Grade],
                value=Grade.U.value,
                key=f"plan_{active.id}_{unit.id}",
            )
        plan = check_plan(active, course, planned, target_grade=target, scheme=scheme)
        planned_summary = plan["summary"]

        w1, w2, w3 = st.columns(3)
        with w1:
            st.metric("Planned points", planned_summary.total_points)
        with w2:
            st.metric("Planned grade", planned_summary.grade)
        with w3:
            st.metric("Planned UCAS points", planned_summary.ucas_points)

        if plan["meets_target"]:
            st.success(f"✅ This plan meets or exceeds {target}.")
        else:
            st.error(f"❌ This plan does not yet reach {target}.")

# ------------------------
# Cohort overview
# ------------------------
st.markdown("---")
st.subheader("Cohort overview")
stats = cohort_statistics(students, course, scheme)
st.write(
    f"{stats['count']} students · mean {stats['mean_points']:.1f} pts · "
    f"median {stats['median_points']:.1f} pts · {stats['mandatory_failures']} with a mandatory U"
)
st.dataframe(cohort_frame(students, course, scheme), use_container_width=True, hide_index=True)
st.download_button(
    "Download cohort CSV",
    cohort_csv(students, course, scheme),
    file_name=f"{course.id}_results.csv",
    mime="text/csv",
)
