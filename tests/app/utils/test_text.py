"""Tests for platform text clipping."""

from app.utils.text import estimate_tokens, final_text, progress_text, thread_title


def test_thread_title_short_prompt_is_not_clipped():
    assert thread_title("explain X") == "Query: explain X"


def test_thread_title_clips_to_fifty_chars_with_ellipsis():
    prompt = "a" * 51
    assert thread_title(prompt) == "Query: " + "a" * 50 + "..."
    assert thread_title("b" * 50) == "Query: " + "b" * 50


def test_progress_text_marks_buffer_in_progress():
    assert progress_text("partial") == "partial ⏳"


def test_progress_text_clips_over_limit():
    text = progress_text("x" * 1950)
    assert text == "x" * 1900 + "... ⏳"
    assert len(text) <= 2000


def test_final_text_fits_platform_limit():
    assert final_text("y" * 2000) == "y" * 2000
    clipped = final_text("y" * 2001)
    assert len(clipped) == 2000
    assert clipped.endswith("...")
    assert clipped[:1997] == "y" * 1997


def test_estimate_tokens_rounds_up_over_total():
    assert estimate_tokens(0) == 0
    assert estimate_tokens(4) == 1
    assert estimate_tokens(10) == 3
