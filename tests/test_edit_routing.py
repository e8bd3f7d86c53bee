from richrun.diff import compute_diff
from richrun.models import Diff, Run
from richrun.runs.store import apply_edit, insert_token

BOLD = {"bold": True}


def _pairs(runs):
    return [(r.text, dict(r.annotations)) for r in runs]


def _edit(runs, prev, next_text):
    return apply_edit(runs, compute_diff(prev, next_text))


class TestEndOfBuffer:
    def test_typing_into_empty_document(self):
        result = apply_edit([Run(text="")], Diff(start=0, added="Hello"))
        assert _pairs(result) == [("Hello", {})]

    def test_append_extends_last_run(self):
        runs = [Run(text="a"), Run(text="b", annotations=BOLD)]
        result = apply_edit(runs, Diff(start=2, added="c"))
        assert _pairs(result) == [("a", {}), ("bc", BOLD)]

    def test_truncate_from_end(self):
        runs = [Run(text="a"), Run(text="bc", annotations=BOLD)]
        result = apply_edit(runs, Diff(start=3, removed="c"))
        assert _pairs(result) == [("a", {}), ("b", BOLD)]

    def test_backspace_last_char_removes_run(self):
        runs = [Run(text="a"), Run(text="b", annotations=BOLD)]
        assert _pairs(_edit(runs, "ab", "a")) == [("a", {})]


class TestSameRun:
    def test_insertion_at_boundary_joins_previous_run(self):
        """
        Scenario: "ab" + [Bold]"cd", caret between b and c.
        Typed text continues the plain run, it does not turn bold.
        """
        runs = [Run(text="ab"), Run(text="cd", annotations=BOLD)]
        result = _edit(runs, "abcd", "abxcd")
        assert _pairs(result) == [("abx", {}), ("cd", BOLD)]

    def test_insertion_at_document_start_uses_first_run(self):
        runs = [Run(text="ab", annotations=BOLD), Run(text="cd")]
        result = _edit(runs, "abcd", "xabcd")
        assert _pairs(result) == [("xab", BOLD), ("cd", {})]

    def test_insertion_inside_run(self):
        runs = [Run(text="ab"), Run(text="cd", annotations=BOLD)]
        result = _edit(runs, "abcd", "abcxd")
        assert _pairs(result) == [("ab", {}), ("cxd", BOLD)]

    def test_paste_does_not_eat_following_run(self):
        """
        Regression: a multi-character insertion near a boundary must not
        be routed as a cross-run edit and trim the next run.
        """
        runs = [Run(text="ab"), Run(text="cd", annotations=BOLD)]
        result = apply_edit(runs, Diff(start=1, added="XYZ"))
        assert _pairs(result) == [("aXYZb", {}), ("cd", BOLD)]

    def test_replace_in_place(self):
        runs = [Run(text="Hello world")]
        result = apply_edit(runs, Diff(start=6, removed="world", added="there"))
        assert _pairs(result) == [("Hello there", {})]

    def test_delete_whole_middle_run(self):
        runs = [Run(text="ab"), Run(text="cd", annotations=BOLD), Run(text="ef")]
        result = apply_edit(runs, Diff(start=2, removed="cd"))
        assert _pairs(result) == [("abef", {})]


class TestCrossRun:
    def test_delete_across_two_runs(self):
        runs = [Run(text="ab"), Run(text="cd", annotations=BOLD)]
        result = apply_edit(runs, Diff(start=1, removed="bc"))
        assert _pairs(result) == [("a", {}), ("d", BOLD)]

    def test_delete_across_three_runs(self):
        runs = [Run(text="ab"), Run(text="cd", annotations=BOLD), Run(text="ef")]
        result = apply_edit(runs, Diff(start=1, removed="bcde"))
        assert _pairs(result) == [("af", {})]

    def test_replace_across_runs_keeps_first_run_style(self):
        runs = [Run(text="ab"), Run(text="cd", annotations=BOLD)]
        result = apply_edit(runs, Diff(start=1, removed="bc", added="X"))
        assert _pairs(result) == [("aX", {}), ("d", BOLD)]

    def test_select_all_delete(self):
        runs = [Run(text="ab"), Run(text="cd", annotations=BOLD)]
        result = _edit(runs, "abcd", "")
        assert result == [Run(text="")]


class TestInsertToken:
    def test_at_end_of_buffer(self):
        result = insert_token([Run(text="abc")], 3, {"italic": True}, "d")
        assert _pairs(result) == [("abc", {}), ("d", {"italic": True})]

    def test_inside_run(self):
        result = insert_token([Run(text="abc")], 1, BOLD, "X")
        assert _pairs(result) == [("a", {}), ("X", BOLD), ("bc", {})]

    def test_toggle_off_after_styled_run(self):
        runs = [Run(text="ab", annotations=BOLD), Run(text="cd")]
        result = insert_token(runs, 2, BOLD, "X")
        assert _pairs(result) == [("ab", BOLD), ("Xcd", {})]

    def test_into_empty_document(self):
        result = insert_token([Run(text="")], 0, BOLD, "H")
        assert _pairs(result) == [("H", BOLD)]
