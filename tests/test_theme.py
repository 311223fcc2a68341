from tasker import theme


def test_set_theme():
    # Outside a Streamlit run this only exercises the CSS lookup and injection.
    try:
        theme.set_theme(page_title="Team Tasker tests")
    except Exception as e:
        assert False, f"set_theme raised an exception: {e}"


def test_missing_css_is_logged(tmp_path, caplog):
    theme.set_theme(css_path=str(tmp_path / "missing.css"))
    assert "theme file not found" in caplog.text


def test_css_ships_card_styles():
    css = theme._load_css(theme.CSS_PATH)
    assert ".tt-card" in css
    assert ".tt-status-done" in css
