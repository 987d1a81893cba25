import os
import streamlit as st
import requests
import pandas as pd
from dotenv import load_dotenv

load_dotenv()

# ── configurable via .env ──
API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")
API_TIMEOUT = int(os.getenv("API_TIMEOUT", "60"))

st.set_page_config(page_title="Compliance Assessment", page_icon="🛡️", layout="wide")

API = st.sidebar.text_input("API URL", API_BASE)


def call(method: str, path: str, **kwargs):
    """Request against the backend with the session cookie; stops the page on transport errors."""
    try:
        return st.session_state.http.request(method, f"{API}{path}", timeout=API_TIMEOUT, **kwargs)
    except requests.exceptions.Timeout:
        st.error("Request timed out. Try increasing API_TIMEOUT.")
        st.stop()
    except requests.exceptions.ConnectionError:
        st.error("Cannot connect to backend. Is the server running?")
        st.stop()


def start_assessment():
    resp = call("POST", "/session")
    if not resp.ok:
        st.error(f"Error: {resp.status_code} — {resp.text}")
        st.stop()
    data = resp.json()
    st.session_state.csrf = data["csrf_token"]
    st.session_state.options = data["options"]
    st.session_state.title = data["title"]
    st.session_state.step = "home"
    st.session_state.errors = {}
    for key in ("preview", "questions", "report"):
        st.session_state.pop(key, None)


def fail(resp):
    detail = resp.json().get("detail", resp.text) if resp.headers.get("content-type", "").startswith("application/json") else resp.text
    st.error(f"Error: {resp.status_code} — {detail}")


def progress_bar(label: str, pct: float):
    st.markdown(f"**{label}**: {pct:.2f}%")
    st.progress(min(1.0, max(0.0, pct / 100)))


if "http" not in st.session_state:
    st.session_state.http = requests.Session()
if "step" not in st.session_state:
    start_assessment()

st.title("🛡️ " + st.session_state.title)
st.caption("GDPR · NIS2 · DORA · ENS. Runs locally; nothing is stored.")
opts = st.session_state.options

# Step 1: company data
if st.session_state.step == "home":
    errors = st.session_state.errors
    if errors:
        st.error("Please fix the following errors:\n\n" + "\n".join(f"- {m}" for m in errors.values()))

    with st.form("home"):
        st.subheader("1) Company data")
        c1, c2 = st.columns(2)
        nif = c1.text_input("NIF/NIE/CIF (not sent to the AI)", placeholder="A12345678")
        name = c2.text_input("Company name (not sent to the AI)", max_chars=opts["max_company_name_len"])
        ctype = c1.selectbox("Company type", opts["company_types"])
        size = c2.number_input("Size (employees)", min_value=1, max_value=999999, value=50, step=1)

        st.subheader("2) Regulations to assess")
        normatives = [n for n in opts["normatives"] if st.checkbox(n, key=f"norm-{n}")]

        st.subheader("3) Optional: AI analysis (BYOK)")
        use_ai = st.checkbox("Use AI for the technical analysis", disabled=not opts["ai_enabled"])
        providers = {p["label"]: p["id"] for p in opts["providers"]}
        provider_label = st.selectbox("Provider", ["-- Select --", *providers])
        token = st.text_input("API token (not stored)", type="password")
        st.caption("The token belongs to you and is only sent to your AI provider.")

        submitted = st.form_submit_button("Continue")

    if submitted:
        resp = call("POST", "/consent", json={
            "csrf_token": st.session_state.csrf,
            "nif": nif, "name": name, "company_type": ctype, "company_size": int(size),
            "normatives": normatives, "use_ai": use_ai,
            "provider": providers.get(provider_label), "token": token or None,
        })
        if resp.status_code == 422:
            st.session_state.errors = resp.json().get("errors", {})
            st.rerun()
        elif resp.ok:
            st.session_state.errors = {}
            st.session_state.preview = resp.json()
            st.session_state.step = "consent"
            st.rerun()
        else:
            fail(resp)

# Step 2: consent
elif st.session_state.step == "consent":
    p = st.session_state.preview
    st.subheader("Data that will be sent to the AI (if enabled)")
    st.markdown(
        f"> **Company alias:** `{p['company_alias']}`  \n"
        f"> **Type:** {p['company_type']}  \n"
        f"> **Size:** {p['company_size']} employees  \n"
        f"> **Regulations:** {', '.join(p['normatives'])}  \n"
        "> **Answers:** closed options only (yes/no/scale). *No NIF/NIE/CIF or real name is sent.*"
    )
    st.caption("The token and the connection to the AI provider are the user's responsibility.")
    agreed = st.checkbox("I have read and accept sending the data above to my AI provider (if AI is enabled).")

    c1, c2 = st.columns(2)
    if c1.button("Start questionnaire", disabled=not agreed):
        resp = call("POST", "/questionnaire", json={"csrf_token": st.session_state.csrf, "consent": agreed})
        if resp.ok:
            st.session_state.questions = resp.json()["questions"]
            st.session_state.step = "questionnaire"
            st.rerun()
        else:
            fail(resp)
    if c2.button("Back"):
        st.session_state.step = "home"
        st.rerun()

# Step 3: questionnaire
elif st.session_state.step == "questionnaire":
    questions = st.session_state.questions
    if not questions:
        st.warning("No questions were found. The question bank is missing or empty; "
                   "the report will show 0% for every regulation.")

    with st.form("questionnaire"):
        answers = {}
        for q in questions:
            st.caption(f"{q['normative']} · {q['block']}")
            if q["answerType"] == "scale_0_5":
                answers[q["id"]] = st.select_slider(
                    q["text"], options=[0, 1, 2, 3, 4, 5], value=0, key=q["id"],
                    help="0 = not implemented, 5 = fully implemented",
                )
            else:
                choice = st.radio(q["text"], ["Yes", "No"], index=None, horizontal=True, key=q["id"])
                if choice is not None:
                    answers[q["id"]] = 1 if choice == "Yes" else 0
        submitted = st.form_submit_button("Generate report" if questions else "Continue without questions")

    if submitted:
        progress = st.progress(0, text="Sending answers...")
        progress.progress(30, text="Computing scores and running the AI analysis (if enabled)...")
        resp = call("POST", "/report", json={"csrf_token": st.session_state.csrf, "answers": answers})
        progress.progress(100, text="Done!")
        progress.empty()
        if resp.ok:
            st.session_state.report = resp.json()
            st.session_state.step = "report"
            st.rerun()
        else:
            fail(resp)

# Step 4: report
elif st.session_state.step == "report":
    r = st.session_state.report
    c = r["company"]

    st.subheader("1) Company data")
    st.markdown(
        f"**Identification:** {c['name']} ({c['nif']})  \n"
        f"**AI alias:** `{c['company_alias']}`  \n"
        f"**Type / size:** {c['company_type']} · {c['company_size']} employees"
    )

    st.subheader("2) Compliance by regulation and block")
    if r["scores"]["normatives"]:
        for normative, pct in r["scores"]["normatives"].items():
            progress_bar(normative, pct)
            blocks = r["scores"]["blocks"].get(normative, {})
            cols = st.columns(2)
            for i, (block, bpct) in enumerate(blocks.items()):
                with cols[i % 2]:
                    progress_bar(block, bpct)
            st.divider()
    else:
        st.info("No compliance data because no questions were answered.")

    st.subheader("3) Technical analysis")
    if r["analysis_status"] == "completed":
        st.markdown(r["analysis"])
    elif r["analysis_status"] in ("blocked", "failed"):
        st.warning(r["analysis"])
    else:
        st.info(r["analysis"])

    st.subheader("4) Prioritized TO-DO")
    if r["todo"]:
        df = pd.DataFrame([{
            "Priority": t["priority"],
            "Regulation": t["normative"],
            "Block": t["block"],
            "Question": t["question"],
            "Action": t["action"],
        } for t in r["todo"]])

        def color(val):
            colors = {5: "#FFB6C1", 4: "#FFD1A4", 3: "#FFD700"}
            return f"background-color: {colors.get(val, '#90EE90')}"

        st.dataframe(df.style.map(color, subset=["Priority"]), hide_index=True, use_container_width=True)
    else:
        st.info("No actions: no questions were loaded or no gaps were detected.")

    st.subheader("5) Questionnaire and answers")
    if r["answered"]:
        st.dataframe(pd.DataFrame([{
            "Regulation": a["normative"], "Block": a["block"], "Question": a["text"], "Answer": a["answer"],
        } for a in r["answered"]]), hide_index=True, use_container_width=True)
    else:
        st.info("No answers to show.")

    if st.button("New assessment"):
        call("DELETE", "/session")
        start_assessment()
        st.rerun()
