"""Smoke test for the Streamlit dashboard (app.py).

Uses streamlit.testing.v1.AppTest to verify the app starts without exceptions.
The test does NOT press "Run Lab"; it verifies the initial render (table,
advisor, strategy charts, bankroll batch) completes within the timeout budget.
"""

import pytest

try:
    from streamlit.testing.v1 import AppTest

    _STREAMLIT_AVAILABLE = True
except ImportError:
    _STREAMLIT_AVAILABLE = False


@pytest.mark.skipif(not _STREAMLIT_AVAILABLE, reason="streamlit not installed")
def test_app_runs_without_exception():
    """App renders all tabs without raising an exception."""
    at = AppTest.from_file("../app.py")
    at.run(timeout=120)
    assert not at.exception, f"App raised an exception: {at.exception}"


@pytest.mark.skipif(not _STREAMLIT_AVAILABLE, reason="streamlit not installed")
def test_app_has_expected_tabs():
    """App exposes the expected tab labels."""
    at = AppTest.from_file("../app.py")
    at.run(timeout=120)
    tab_labels = [t.label for t in at.tabs]
    for label in ("Play", "Strategy Advisor", "Strategy Charts", "Simulation Lab", "Bankroll Analysis"):
        assert label in tab_labels


@pytest.mark.skipif(not _STREAMLIT_AVAILABLE, reason="streamlit not installed")
def test_deal_button_starts_hand():
    at = AppTest.from_file("../app.py")
    at.run(timeout=120)
    deal_button = next(b for b in at.button if b.label == "Deal")
    deal_button.click().run(timeout=120)
    assert not at.exception
    table = at.session_state["table"]
    assert len(table.player_hand) == 2
