"""Game Details page: volume cards, bet form and the live bet feed."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime

import pandas as pd
import plotly.graph_objects as go
import streamlit as st
from dashboard.utils import (
    STATUS_BADGES,
    THEME_COLORS,
    api_get,
    api_post,
    sidebar_api_key,
)

st.set_page_config(page_title="Game Details | Betting Market", layout="wide")
sidebar_api_key()

game_id = st.query_params.get("id") or st.sidebar.text_input("Game ID", value="")
if not game_id:
    st.info("Enter a game id to open its market.")
    st.stop()

data = api_get(f"/api/games/{game_id}/market")
if not data:
    st.warning("⚠️ Game Not Found")
    st.stop()

game = data["game"]
volume = data["volume"]
cur = data["currency_symbol"]
colors = THEME_COLORS.get(data["theme"], THEME_COLORS["dark"])
is_win = game["type"] == "win"

# --- Volume cards ---
c1, c2, c3 = st.columns(3)
c1.metric("Total Volume", f"{cur}{float(volume['total']):,.2f}")
if is_win:
    c2.metric(f"{game['team_a']} Volume", f"{cur}{float(volume['side_a']):,.2f}")
    c3.metric(f"{game['team_b']} Volume", f"{cur}{float(volume['side_b']):,.2f}")

    if float(volume["total"]) > 0:
        fig = go.Figure(go.Bar(
            x=[float(volume["side_a"]), float(volume["side_b"])],
            y=[game["team_a"], game["team_b"]],
            orientation="h",
            marker_color=[colors["side_a"], colors["side_b"]],
        ))
        fig.update_layout(height=180, margin=dict(l=10, r=10, t=10, b=10))
        st.plotly_chart(fig, use_container_width=True)

# --- Game header ---
st.title("🏆 Match Winner Prediction" if is_win else "🎯 Score Prediction")
if game.get("date"):
    kickoff = datetime.fromisoformat(game["date"])
    st.caption(kickoff.strftime("%A, %B %d, %Y %I:%M %p"))
if game["status"] != "live":
    st.caption(f"Status: {game['status']}")

# --- Bet form ---
with st.form("place_bet", clear_on_submit=False):
    if is_win:
        team_a_col, team_b_col = st.columns(2)
        for col, name, logo in (
            (team_a_col, game["team_a"], game.get("team_a_logo_url")),
            (team_b_col, game["team_b"], game.get("team_b_logo_url")),
        ):
            with col:
                if logo:
                    st.image(logo, width=112)
                st.subheader(name)
        prediction = st.selectbox("Select Winning Team", ["", game["team_a"], game["team_b"]])
    else:
        if game.get("team_logo_url"):
            st.image(game["team_logo_url"], width=112)
        st.subheader(game.get("team") or "")
        labels = data["brackets"]
        choice = st.radio("Predicted score range", labels, index=None, horizontal=True)
        prediction = str(labels.index(choice) + 1) if choice else ""

    amount = st.text_input(f"Bet Amount ({cur})", value="")
    if data.get("balance") is not None:
        st.caption(f"Available: {cur}{float(data['balance']):.2f}")

    submitted = st.form_submit_button("Place Bet", disabled=data.get("submitting", False))

if submitted:
    with st.spinner("Placing Bet..."):
        ok, body = api_post(f"/api/games/{game_id}/bets", {"amount": amount, "prediction": prediction})
    if ok:
        st.success("Bet placed")
        st.rerun()
    else:
        st.error(body.get("detail", "Failed to place bet."))

# --- Match bets ---
wagers = data["wagers"]
st.subheader(f"👥 Match Bets ({len(wagers)})")

if not wagers:
    st.info("No Bets Yet — be the first!")
    st.stop()

df = pd.DataFrame(wagers)
df["prediction"] = df.apply(
    lambda r: f"Predicted Winner: {r['team']}" if r["type"] == "win"
    else f"Predicted Score: {r['predicted_range']}",
    axis=1,
)
df["amount"] = df["amount"].map(lambda a: f"{cur}{float(a or 0):,.2f}")
df["placed"] = pd.to_datetime(df["created_at"]).dt.strftime("%Y-%m-%d %H:%M")
df["status"] = df["status"].map(lambda s: f"{STATUS_BADGES.get(s, '⚪')} {s}")

st.dataframe(
    df[["bettor_name", "prediction", "amount", "placed", "status"]].rename(columns={
        "bettor_name": "Bettor", "prediction": "Prediction", "amount": "Amount",
        "placed": "Placed", "status": "Status",
    }),
    use_container_width=True,
    hide_index=True,
)
