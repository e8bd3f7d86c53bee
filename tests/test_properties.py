from hypothesis import given, settings, strategies as st

from richrun.diff import compute_diff
from richrun.editor import RichTextEditor
from richrun.markup import parse_markup, serialize_runs
from richrun.models import Run
from richrun.patterns import DEFAULT_PATTERNS, PatternTable
from richrun.runs.splitter import normalize_runs, split_and_annotate
from richrun.runs.store import apply_edit

STYLES = ["bold", "italic", "strikethrough", "code"]

# Single-character delimiters only: "__" would be ambiguous next to two italic runs
ROUND_TRIP_TABLE = PatternTable([p for p in DEFAULT_PATTERNS if p.style in STYLES])

plain_text = st.text(alphabet="abc xyz", max_size=20)

run_strategy = st.builds(
    lambda text, styles: Run(text=text, annotations={s: True for s in styles}),
    st.text(alphabet="abc xyz", min_size=1, max_size=6),
    st.sets(st.sampled_from(STYLES)),
)


def assert_invariants(runs):
    runs = list(runs)
    assert runs, "run list must never be empty"
    if len(runs) == 1:
        return
    for run in runs:
        assert run.text, f"empty run in {runs}"
    for left, right in zip(runs, runs[1:]):
        assert left.annotations != right.annotations, f"unmerged neighbours in {runs}"


@settings(max_examples=100)
@given(prev=plain_text, next_text=plain_text)
def test_diff_reconstructs_next_text(prev, next_text):
    diff = compute_diff(prev, next_text)
    assert prev[diff.start : diff.start + len(diff.removed)] == diff.removed
    assert prev[: diff.start] + diff.added + prev[diff.start + len(diff.removed) :] == next_text


@settings(max_examples=100)
@given(text=plain_text, data=st.data())
def test_diff_of_insertion_is_minimal(text, data):
    index = data.draw(st.integers(min_value=0, max_value=len(text)))
    inserted = data.draw(st.text(alphabet="abc xyz", min_size=1, max_size=5))
    diff = compute_diff(text, text[:index] + inserted + text[index:])
    assert diff.removed == ""
    assert len(diff.added) == len(inserted)


@settings(max_examples=100, deadline=None)
@given(runs=st.lists(run_strategy, min_size=1, max_size=6), next_text=plain_text)
def test_apply_edit_tracks_text(runs, next_text):
    runs = normalize_runs(runs)
    prev = "".join(r.text for r in runs)

    result = apply_edit(runs, compute_diff(prev, next_text))

    assert "".join(r.text for r in result) == next_text
    assert_invariants(result)


@settings(max_examples=100, deadline=None)
@given(
    runs=st.lists(run_strategy, min_size=1, max_size=6),
    start=st.integers(min_value=0, max_value=40),
    end=st.integers(min_value=0, max_value=40),
    style=st.sampled_from(STYLES),
)
def test_toggle_keeps_text_and_styles_range_uniformly(runs, start, end, style):
    runs = normalize_runs(runs)
    total = len("".join(r.text for r in runs))
    once = split_and_annotate(runs, start, end, {style: True})

    assert "".join(r.text for r in once) == "".join(r.text for r in runs)
    assert_invariants(once)

    twice = split_and_annotate(once, start, end, {style: True})
    assert_invariants(twice)
    # After two toggles the range is uniformly styled or unstyled, never mixed
    lo, hi = sorted((min(start, total), min(end, total)))
    pos = 0
    values = set()
    for run in twice:
        run_lo, run_hi = pos, pos + len(run.text)
        pos = run_hi
        if run_hi > lo and run_lo < hi:
            values.add(bool(run.annotations.get(style)))
    assert len(values) <= 1


@settings(max_examples=100, deadline=None)
@given(runs=st.lists(run_strategy, min_size=1, max_size=6))
def test_serialize_then_parse_round_trip(runs):
    runs = normalize_runs(runs)
    markup = serialize_runs(runs, ROUND_TRIP_TABLE)
    parsed = parse_markup(markup, ROUND_TRIP_TABLE)
    assert parsed.runs == runs


typing_action = st.tuples(st.just("type"), plain_text)
toggle_action = st.tuples(
    st.just("toggle"),
    st.integers(min_value=0, max_value=25),
    st.integers(min_value=0, max_value=25),
    st.sampled_from(STYLES),
)


@settings(max_examples=60, deadline=None)
@given(actions=st.lists(st.one_of(typing_action, toggle_action), max_size=15))
def test_editing_session_keeps_invariants(actions):
    editor = RichTextEditor(patterns=ROUND_TRIP_TABLE)
    expected = ""

    for action in actions:
        if action[0] == "type":
            expected = action[1]
            assert editor.on_change_text(expected) == expected
        else:
            _, start, end, style = action
            editor.set_selection(start, end)
            editor.toggle_style(style)

        assert editor.get_plain_text() == expected
        assert_invariants(editor.get_tokenized_string())


@settings(max_examples=60, deadline=None)
@given(snapshots=st.lists(st.text(alphabet="ab *_", max_size=12), max_size=10))
def test_typed_markup_never_breaks_runs(snapshots):
    editor = RichTextEditor()
    for snapshot in snapshots:
        shown = editor.on_change_text(snapshot)
        assert shown == editor.get_plain_text()
        assert_invariants(editor.get_tokenized_string())
