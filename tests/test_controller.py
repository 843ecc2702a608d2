"""Tests for the viewer state machine."""

import os
import random
from pathlib import Path
from unittest.mock import patch

import pytest
from marks.buffer import LineBuffer
from marks.constants import ViewerConstants
from marks.controller import Mode, ViewerController, ViewerSession
from marks.errors import MalformedSpec
from marks.keyboard import KeyEvent
from marks.store import SpecStore


def make_session(tmp_path, num_lines=30, spec_text=None, read_only=False):
    buffer = LineBuffer([f"line {i}" for i in range(1, num_lines + 1)])
    store = SpecStore(tmp_path / "spec")
    if spec_text is not None:
        store.path.write_text(spec_text, encoding="utf-8")
    return ViewerSession(tmp_path / "source.txt", buffer, store, read_only)


def make_controller(tmp_path, num_lines=30, height=10, **kwargs):
    return ViewerController(make_session(tmp_path, num_lines, **kwargs), height=height)


def press(controller, *keys):
    """Feed keys: plain strings are characters, 'C-x' is Ctrl-x, '<name>' is special."""
    for key in keys:
        if key.startswith('C-'):
            event = KeyEvent.ctrl(key[2:])
        elif key.startswith('<') and len(key) > 1:
            event = KeyEvent.special(key[1:-1])
        else:
            event = KeyEvent.char(key)
        controller.handle_key(event)


def type_query(controller, text):
    press(controller, '/', *text, '<enter>')


def test_initial_state(tmp_path):
    viewer = make_controller(tmp_path)
    assert viewer.mode is Mode.NORMAL
    assert viewer.cursor == 1
    assert viewer.marks == set()
    assert viewer.search_index.state.matches == []
    assert viewer.running


def test_marks_loaded_from_spec(tmp_path):
    viewer = make_controller(tmp_path, spec_text="10\n20 30\n")
    assert viewer.marks == {10} | set(range(20, 31))


def test_malformed_spec_refuses_to_start(tmp_path):
    with pytest.raises(MalformedSpec):
        make_controller(tmp_path, spec_text="10\noops\n")


def test_j_k_move_cursor(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'j', 'j', 'j')
    assert viewer.cursor == 4
    press(viewer, 'k')
    assert viewer.cursor == 3
    press(viewer, '<down>', '<up>', '<up>')
    assert viewer.cursor == 2


def test_page_keys(tmp_path):
    viewer = make_controller(tmp_path, num_lines=100)
    press(viewer, 'C-d')
    assert viewer.cursor == 11
    press(viewer, 'C-d', 'C-u')
    assert viewer.cursor == 11
    press(viewer, 'C-u', 'C-u')
    assert viewer.cursor == 1


def test_page_down_clamped_on_short_file(tmp_path):
    viewer = make_controller(tmp_path, num_lines=5)
    press(viewer, 'C-d')
    assert viewer.cursor == 5


def test_g_and_G(tmp_path):
    viewer = make_controller(tmp_path, num_lines=50, height=10)
    press(viewer, 'G')
    assert viewer.cursor == 50
    assert viewer.viewport.top_line == 41
    press(viewer, 'g')
    assert viewer.cursor == 1
    assert viewer.viewport.top_line == 1


def test_m_marks_and_moves_down(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'j', 'j', 'j', 'j', 'm')
    assert viewer.marks == {5}
    assert viewer.cursor == 6
    assert viewer.modified


def test_M_marks_and_moves_up(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'G', 'M')
    assert viewer.marks == {30}
    assert viewer.cursor == 29


def test_u_and_U_unmark(tmp_path):
    viewer = make_controller(tmp_path, spec_text="1 5\n")
    press(viewer, 'j', 'u')
    assert viewer.marks == {1, 3, 4, 5}
    assert viewer.cursor == 3
    press(viewer, 'U')
    assert viewer.marks == {1, 4, 5}
    assert viewer.cursor == 2


def test_mark_is_idempotent_but_still_moves(tmp_path):
    viewer = make_controller(tmp_path, spec_text="1\n")
    press(viewer, 'm')
    assert viewer.marks == {1}
    assert viewer.cursor == 2
    assert not viewer.modified
    press(viewer, 'u')
    assert viewer.marks == {1}
    assert viewer.cursor == 3


def test_mark_unmark_pairs_restore_set(tmp_path):
    viewer = make_controller(tmp_path, spec_text="3\n7 9\n")
    rng = random.Random(7)
    for _ in range(50):
        line = rng.randint(1, 30)
        before = set(viewer.marks)
        viewer.viewport.set_cursor(line, viewer.buffer)
        press(viewer, 'm')
        viewer.viewport.set_cursor(line, viewer.buffer)
        press(viewer, 'u')
        if line in before:
            before.discard(line)
        assert viewer.marks == before
        # Unmark then mark restores a marked line
        viewer.marks.add(line)
        before = set(viewer.marks)
        viewer.viewport.set_cursor(line, viewer.buffer)
        press(viewer, 'u')
        viewer.viewport.set_cursor(line, viewer.buffer)
        press(viewer, 'm')
        assert viewer.marks == before


def test_marking_on_empty_file_is_noop(tmp_path):
    viewer = make_controller(tmp_path, num_lines=0)
    press(viewer, 'm', 'M', 'j')
    assert viewer.marks == set()
    assert viewer.cursor == 1


def test_optimize_saves_ranges(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'j', 'j', 'j', 'j', 'm', 'm', 'm', 'o')
    assert viewer.marks == {5, 6, 7}
    assert viewer.session.store.path.read_text() == "5 7\n"
    assert not viewer.modified
    assert viewer.status_message.startswith("Saved 1 entries")


def test_quit_saves_changed_marks_unoptimized(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'm', 'm', 'q')
    assert not viewer.running
    assert viewer.session.store.path.read_text() == "1\n2\n"


def test_quit_without_changes_does_not_write(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'j', 'q')
    assert not viewer.running
    assert not viewer.session.store.path.exists()


def test_read_only_never_writes(tmp_path):
    viewer = make_controller(tmp_path, read_only=True)
    press(viewer, 'm', 'o')
    assert viewer.status_message.startswith("Read-only")
    press(viewer, 'q')
    assert not viewer.running
    assert not viewer.session.store.path.exists()


def test_failed_save_keeps_marks_and_allows_retry(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'm', 'm')
    with patch.object(viewer.session.store, 'save', side_effect=PermissionError(13, "Permission denied")):
        press(viewer, 'o')
        assert viewer.marks == {1, 2}
        assert viewer.status_message.startswith("Error: Permission denied")
        assert viewer.session.store.path.exists() is False
    # Retry with a working store succeeds
    press(viewer, 'o')
    assert viewer.session.store.path.read_text() == "1 2\n"
    press(viewer, 'q')
    assert not viewer.running


def test_quit_after_failed_optimize_still_saves(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'm')
    with patch.object(viewer.session.store, 'save', side_effect=OSError(13, "Permission denied")):
        press(viewer, 'o')
    assert viewer.status_message == "Error: Permission denied"
    press(viewer, 'q')
    assert not viewer.running
    assert viewer.session.store.path.read_text() == "1\n"


def test_quit_retries_save_after_marks_change(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'm')
    with patch.object(viewer.session.store, 'save', side_effect=OSError(28, "No space left on device")):
        press(viewer, 'q')
    assert viewer.running
    assert viewer.status_message.endswith("(q again quits without saving)")
    press(viewer, 'm', 'm', 'q')
    assert not viewer.running
    assert viewer.session.store.path.read_text() == "1\n2\n3\n"


def test_quit_after_other_key_retries_save(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'm')
    with patch.object(viewer.session.store, 'save', side_effect=OSError(13, "Permission denied")) as save:
        press(viewer, 'q', 'j', 'q')
        assert viewer.running
        assert save.call_count == 2
        press(viewer, 'q')
    assert not viewer.running
    assert not viewer.session.store.path.exists()


def test_second_quit_after_failed_save_exits(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'm')
    with patch.object(viewer.session.store, 'save', side_effect=OSError(13, "Permission denied")):
        press(viewer, 'q')
        assert viewer.running
        press(viewer, 'q')
    assert not viewer.running


def test_search_moves_to_first_match(tmp_path):
    viewer = make_controller(tmp_path, num_lines=40)
    type_query(viewer, "line 2")
    assert viewer.mode is Mode.NORMAL
    # "line 2" matches 2 and 20..29
    assert viewer.search_index.state.matches == [2] + list(range(20, 30))
    assert viewer.cursor == 2


def test_n_and_N_cycle_matches(tmp_path):
    viewer = make_controller(tmp_path, num_lines=40, height=5)
    type_query(viewer, "line 3")
    assert viewer.cursor == 3
    press(viewer, 'n')
    assert viewer.cursor == 30
    assert viewer.viewport.top_line <= 30 <= viewer.viewport.top_line + 4
    press(viewer, 'N', 'N')
    assert viewer.cursor == 39


def test_empty_query_then_n_reports_no_matches(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'j', 'j')
    type_query(viewer, "")
    assert viewer.search_index.state.matches == []
    press(viewer, 'n')
    assert viewer.cursor == 3
    assert viewer.status_message == ViewerConstants.NO_MATCHES_MESSAGE


def test_n_before_any_search(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'N')
    assert viewer.cursor == 1
    assert viewer.status_message == ViewerConstants.NO_MATCHES_MESSAGE


def test_search_without_matches_keeps_cursor(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'j')
    type_query(viewer, "nothing here")
    assert viewer.cursor == 2
    assert "nothing here" in viewer.status_message


def test_grep_input_treats_command_keys_as_text(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, '/', 'q', 'm', 'j')
    assert viewer.mode is Mode.GREP_INPUT
    assert viewer.pending_query == "qmj"
    assert viewer.running
    assert viewer.marks == set()
    assert viewer.cursor == 1


def test_grep_input_backspace(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, '/', 'a', 'b', '<backspace>')
    assert viewer.pending_query == "a"
    press(viewer, '<backspace>', '<backspace>')
    assert viewer.pending_query == ""


def test_cancel_keeps_previous_search(tmp_path):
    viewer = make_controller(tmp_path, num_lines=40)
    type_query(viewer, "line 1")
    previous = viewer.search_index.state
    press(viewer, '/', 'x', 'y', '<escape>')
    assert viewer.mode is Mode.NORMAL
    assert viewer.pending_query == ""
    assert viewer.search_index.state is previous
    press(viewer, '/', 'z', 'C-g')
    assert viewer.mode is Mode.NORMAL
    assert viewer.search_index.state is previous
    press(viewer, 'n')
    assert viewer.cursor == 10


def test_new_search_resets_match_index(tmp_path):
    viewer = make_controller(tmp_path, num_lines=40)
    type_query(viewer, "line 1")
    press(viewer, 'n', 'n')
    type_query(viewer, "line 1")
    assert viewer.search_index.state.index == 0
    assert viewer.cursor == 1


def test_unknown_keys_are_ignored(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'x', 'C-z', '<f1>')
    assert viewer.cursor == 1
    assert viewer.mode is Mode.NORMAL


def test_random_keys_keep_cursor_invariants(tmp_path):
    viewer = make_controller(tmp_path, num_lines=57, height=9)
    rng = random.Random(2024)
    keys = ['j', 'k', 'g', 'G', 'C-d', 'C-u', 'n', 'N', 'm', 'M', 'u', 'U']
    type_query(viewer, "line 4")
    for _ in range(1000):
        press(viewer, rng.choice(keys))
        top = viewer.viewport.top_line
        assert 1 <= viewer.cursor <= 57
        assert top <= viewer.cursor <= top + viewer.viewport.height - 1
    assert viewer.marks <= set(range(1, 58))


def test_frame_rows_and_status(tmp_path):
    viewer = make_controller(tmp_path, num_lines=30, height=4, spec_text="2\n")
    frame = viewer.frame()
    assert [row.line_no for row in frame.rows] == [1, 2, 3, 4]
    assert [row.marked for row in frame.rows] == [False, True, False, False]
    assert [row.is_cursor for row in frame.rows] == [True, False, False, False]
    assert frame.rows[0].text == "line 1"
    assert "marked 1/30" in frame.status
    assert not frame.prompt


def test_frame_in_grep_input_shows_prompt(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, '/', 'a', 'b')
    frame = viewer.frame()
    assert frame.prompt
    assert frame.status == "/ab"


def test_status_message_cleared_on_next_key(tmp_path):
    viewer = make_controller(tmp_path)
    press(viewer, 'n')
    assert viewer.status_message is not None
    press(viewer, 'j')
    assert viewer.status_message is None


def test_resize_reframes(tmp_path):
    viewer = make_controller(tmp_path, num_lines=30, height=20)
    press(viewer, 'G')
    viewer.resize(5)
    assert viewer.viewport.top_line == 26
    assert len(viewer.frame().rows) == 5


def test_session_open_reads_file(tmp_path):
    source = tmp_path / "main.py"
    source.write_text("a\nb\n", encoding="utf-8")
    with patch.dict(os.environ, {ViewerConstants.SPEC_DIR_ENV: str(tmp_path / "specs")}):
        session = ViewerSession.open(source)
    assert session.buffer.line_count() == 2
    assert session.store.path.parent == Path(tmp_path / "specs")
    assert not session.read_only
