"""Blackjack Lab — Streamlit Dashboard.

Five-tab interactive dashboard:
  Tab 1 — Play              (live table with the strategy advisor alongside)
  Tab 2 — Strategy Advisor  (Monte Carlo odds for any hand you type in)
  Tab 3 — Strategy Charts   (basic strategy + card-counting deviations)
  Tab 4 — Simulation Lab    (AI policies compared over many hands)
  Tab 5 — Bankroll Analysis (risk-of-ruin, horizon projections, drawdown)

Run:
    PYTHONPATH=. streamlit run app.py
"""

from __future__ import annotations

import contextlib
import io

import matplotlib

matplotlib.use("Agg")  # must be set before any other matplotlib imports

import pandas as pd
import streamlit as st

from blackjack_lab.analysis.bankroll import (
    compute_drawdown_stats,
    compute_horizon_projections,
    compute_variance_stats,
    max_drawdown,
    print_variance_report,
    required_bankroll,
    risk_of_ruin,
)
from blackjack_lab.analysis.heat_maps import plot_basic_strategy_heatmaps, plot_casino_heatmaps
from blackjack_lab.analysis.lab_report import print_lab_results, print_strategy_advice
from blackjack_lab.analysis.plotly_lookup import (
    build_advice_figure,
    build_casino_lookup_figure,
    build_lab_comparison_figure,
    build_strategy_lookup_figure,
)
from blackjack_lab.analysis.simulator import SimulationLab, run_batch_simulation
from blackjack_lab.engine.cards import hand_to_str, str_to_card
from blackjack_lab.engine.counting import count_snapshot
from blackjack_lab.engine.deck import build_shoe_without
from blackjack_lab.engine.game_state import (
    Phase,
    deal,
    double_down,
    hit,
    new_table,
    place_bet,
    play_dealer,
    stand,
)
from blackjack_lab.engine.hand import calculate_full_score, calculate_hand_state
from blackjack_lab.engine.rules import BET_STEP, MIN_BET, can_double_down, max_bet
from blackjack_lab.strategy.advisor import get_strategy_advice
from blackjack_lab.strategy.ai_player import DIFFICULTY_LABELS, AiDifficulty

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Blackjack Lab",
    page_icon="🃏",
    layout="wide",
)


def _capture(fn, *args) -> str:
    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        fn(*args)
    return buf.getvalue()


@st.cache_data
def _run_policy(difficulty_value: str, n_hands: int, base_bet: int, seed: int):
    """One long batch with history, cached per (policy, hands, bet, seed)."""
    return run_batch_simulation(
        difficulty_value,
        n_hands,
        base_bet,
        starting_chips=base_bet * n_hands * 2,
        seed=seed,
        return_history=True,
    )


# ─── Sidebar controls ─────────────────────────────────────────────────────────

with st.sidebar:
    st.title("🃏 Blackjack Lab")
    st.markdown("---")

    n_trials = st.slider("Advisor trials per action", 500, 10_000, 3000, step=500)
    seed = st.number_input("Random seed", min_value=0, value=42, step=1)

    st.markdown("---")
    st.caption("Single deck · dealer stands on all 17s · blackjack pays 3:2")

# ─── Tabs ─────────────────────────────────────────────────────────────────────

tab_play, tab_advice, tab_chart, tab_lab, tab_bankroll = st.tabs(
    [
        "Play",
        "Strategy Advisor",
        "Strategy Charts",
        "Simulation Lab",
        "Bankroll Analysis",
    ]
)

# ── Tab 1: Play ───────────────────────────────────────────────────────────────

with tab_play:
    st.header("Play a Hand")

    if "table" not in st.session_state:
        st.session_state["table"] = new_table(rng=int(seed))
    table = st.session_state["table"]

    col_bet, col_deal = st.columns([3, 1])
    betting = table.phase in (Phase.BETTING, Phase.RESULT)
    bet_cap = max(MIN_BET, min(max_bet(table.chips), table.chips))
    new_bet = col_bet.number_input(
        "Bet",
        min_value=MIN_BET,
        max_value=bet_cap,
        value=min(max(table.bet, MIN_BET), bet_cap),
        step=BET_STEP,
        disabled=not betting,
    )
    if col_deal.button("Deal", disabled=not betting or table.chips < MIN_BET):
        table = deal(place_bet(table, int(new_bet)))

    if table.phase == Phase.PLAYER_TURN:
        col_h, col_s, col_d = st.columns(3)
        pressed_hit = col_h.button("Hit")
        pressed_stand = col_s.button("Stand")
        pressed_double = col_d.button(
            "Double",
            disabled=not can_double_down(table.player_hand, table.chips, table.stake),
        )
        if pressed_hit:
            table = hit(table)
        elif pressed_stand:
            table = stand(table)
        elif pressed_double:
            table = double_down(table)

    if table.phase == Phase.DEALER_TURN:
        table = play_dealer(table)
    st.session_state["table"] = table

    col1, col2, col3 = st.columns(3)
    col1.metric("Chips", f"{table.chips:,}")
    col2.metric("Player", hand_to_str(table.player_hand) or "-")
    col3.metric("Dealer", hand_to_str(table.dealer_hand) or "-")
    if table.result is not None:
        st.subheader(f"Result: {table.result.value}")

    count = count_snapshot(table.dealt_cards, len(table.shoe))
    st.caption(
        f"Running count {count.running_count:+d} · true count {count.true_count:+.1f} · "
        f"{count.advantage.value} advantage · {len(table.shoe)} cards left"
    )

    if table.phase == Phase.PLAYER_TURN:
        live = get_strategy_advice(
            table.player_hand,
            table.dealer_hand,
            table.shoe,
            table.chips,
            table.stake,
            dealt_cards=table.dealt_cards,
            trials=n_trials,
            rng=int(seed),
        )
        st.info(
            f"Advisor: **{live.recommended.value.upper()}** "
            f"(basic strategy: {live.basic_strategy.value.upper()})"
        )

# ── Tab 2: Strategy Advisor ───────────────────────────────────────────────────

with tab_advice:
    st.header("Strategy Advisor")
    st.caption("Cards as rank + suit letter, space separated (e.g. '10S 6H').")

    col_p, col_d = st.columns(2)
    player_text = col_p.text_input("Player cards", value="10S 6H")
    dealer_text = col_d.text_input("Dealer upcard", value="10D")

    try:
        player_hand = tuple(str_to_card(s) for s in player_text.split())
        dealer_up = tuple(str_to_card(s) for s in dealer_text.split())
        if len(player_hand) < 2 or len(dealer_up) != 1:
            raise ValueError("Enter at least two player cards and exactly one dealer card.")
        all_keys = [c.key for c in player_hand + dealer_up]
        if len(set(all_keys)) != len(all_keys):
            raise ValueError("A single deck holds each card once.")
    except ValueError as exc:
        st.error(str(exc))
    else:
        shoe = build_shoe_without(player_hand, dealer_up, rng=int(seed))
        advice = get_strategy_advice(
            player_hand,
            dealer_up,
            shoe,
            chips=10_000,
            bet=MIN_BET,
            trials=n_trials,
            rng=int(seed),
        )
        player_state = calculate_full_score(player_hand)
        up_state = calculate_hand_state(dealer_up)

        col1, col2, col3 = st.columns(3)
        col1.metric("Recommended", advice.recommended.value.upper())
        col2.metric("Player total", f"{'soft ' if player_state.is_soft else ''}{player_state.score}")
        col3.metric("Dealer shows", up_state.score)

        st.plotly_chart(build_advice_figure(advice), use_container_width=True)
        st.code(_capture(print_strategy_advice, advice), language=None)

# ── Tab 3: Strategy Charts ────────────────────────────────────────────────────

with tab_chart:
    st.header("Strategy Charts")
    st.caption("Rows = player total | Cols = dealer upcard | S = stand, H = hit, D = double")

    st.subheader("Basic Strategy")
    st.pyplot(plot_basic_strategy_heatmaps(show=False))
    st.plotly_chart(build_strategy_lookup_figure(), use_container_width=True)

    st.markdown("---")
    st.subheader("Card-Counting Policy")
    tc = st.slider("True count", min_value=-6.0, max_value=6.0, value=0.0, step=0.5)
    st.pyplot(plot_casino_heatmaps(tc, show=False))
    st.plotly_chart(build_casino_lookup_figure(tc), use_container_width=True)

# ── Tab 4: Simulation Lab ─────────────────────────────────────────────────────

with tab_lab:
    st.header("Simulation Lab")

    chosen = st.multiselect(
        "AI policies",
        options=list(AiDifficulty),
        default=list(AiDifficulty),
        format_func=lambda d: DIFFICULTY_LABELS[d],
    )
    lab_hands = st.select_slider("Hands per policy", options=[100, 500, 1000, 5000, 10_000], value=1000)

    if st.button("Run Lab", type="primary", disabled=not chosen):
        lab = SimulationLab(
            difficulties=list(chosen),
            hand_count=int(lab_hands),
            seed=int(seed),
            return_history=True,
        )
        lab.start()
        progress = st.progress(0, text="Running …")
        while lab.step() is not None:
            progress.progress(lab.progress, text=f"{lab.progress}%")
        st.session_state["lab_results"] = list(lab.results)

    results = st.session_state.get("lab_results")
    if results:
        st.plotly_chart(build_lab_comparison_figure(results), use_container_width=True)
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Policy": s.label,
                        "Hands": s.hands_played,
                        "Win %": round(s.win_rate * 100, 1),
                        "EV %": round(s.ev, 2),
                        "Blackjacks": s.blackjacks,
                        "Peak": s.peak_chips,
                        "Final": s.final_chips,
                        "Max drawdown": max_drawdown(s.chips_history),
                    }
                    for s in results
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )
        st.code(_capture(print_lab_results, results), language=None)
    else:
        st.info("Pick policies and press **Run Lab**.")

# ── Tab 5: Bankroll Analysis ──────────────────────────────────────────────────

with tab_bankroll:
    st.header("Bankroll Analysis")
    st.caption(
        "One long flat-bet run per policy estimates per-hand variance (units = base bets). "
        "Risk-of-ruin and horizon projections use the CLT."
    )

    policy = st.selectbox(
        "Policy",
        options=list(AiDifficulty),
        index=1,
        format_func=lambda d: DIFFICULTY_LABELS[d],
    )
    n_bank_hands = st.slider("Hands", 2_000, 50_000, 5_000, step=1_000)

    with st.spinner(f"Simulating {n_bank_hands:,} hands …"):
        run = _run_policy(policy.value, n_bank_hands, MIN_BET, int(seed))

    vs = compute_variance_stats(run.net_results)

    st.subheader("Distribution Statistics")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Mean EV / hand", f"{vs.mean:+.4f}")
    col2.metric("Std dev", f"{vs.std:.4f}")
    col3.metric("Skewness", f"{vs.skewness:.3f}")
    col4.metric("Kurtosis", f"{vs.kurtosis:.3f}")

    st.markdown("---")
    st.subheader("Risk of Ruin")
    ror_rows = []
    for br in [20, 50, 100, 200]:
        ror = risk_of_ruin(br, vs.mean, vs.std)
        ror_rows.append({"Bankroll (bets)": br, "P(ruin)": f"{ror:.4f}"})
    st.dataframe(pd.DataFrame(ror_rows), use_container_width=True, hide_index=True)

    st.markdown("---")
    st.subheader("Horizon Projections (CLT)")
    proj = compute_horizon_projections(vs.mean, vs.std)
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "Hands": p.n_hands,
                    "Expected Profit": f"{p.expected_profit:+.2f}",
                    "CI Low": f"{p.ci_low:+.2f}",
                    "CI High": f"{p.ci_high:+.2f}",
                    "P(profit > 0)": f"{p.prob_positive:.3f}",
                }
                for p in proj
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )

    st.markdown("---")
    st.subheader("Full Variance Report")
    reqs = (
        [required_bankroll(vs.mean, vs.std, sp) for sp in [0.90, 0.95, 0.99]]
        if vs.mean > 0
        else []
    )
    drawdown = compute_drawdown_stats(run.net_results, n_trajectories=200, trajectory_length=500)
    report = _capture(print_variance_report, vs, reqs, proj, drawdown)
    st.code(report, language=None)
