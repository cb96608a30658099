from output_parsing import extract_json, first_success, repair_json


def test_extract_prefers_fenced_block():
    text = 'Here you go:\n```json\n{"a": 1}\n```\nand {"b": 2}'
    assert extract_json(text) == {"a": 1}


def test_extract_outer_brace_span():
    assert extract_json('noise {"a": {"b": 2}} tail') == {"a": {"b": 2}}


def test_extract_balanced_scan_finds_first_valid_object():
    assert extract_json('x {"a": 1} y {bad}') == {"a": 1}


def test_extract_falls_through_broken_fence():
    text = '```json\n{bad}\n``` then {"ok": true}'
    assert extract_json(text) == {"ok": True}


def test_extract_returns_none_without_json():
    assert extract_json("no structured content here") is None
    assert extract_json("") is None
    assert extract_json(None) is None


def test_repair_trailing_commas():
    assert repair_json('{"a": 1, "b": [1, 2,],}') == {"a": 1, "b": [1, 2]}


def test_repair_closes_truncated_object():
    value = repair_json('{"scores": {"communication": 4, "technical": 3')
    assert value == {"scores": {"communication": 4, "technical": 3}}


def test_repair_closes_open_string():
    assert repair_json('{"summary": "Good answ') == {"summary": "Good answ"}


def test_repair_closes_array_before_object():
    assert repair_json('```json\n{"a": [1, 2') == {"a": [1, 2]}


def test_repair_drops_prose_prefix():
    assert repair_json('Sure! {"a": 1') == {"a": 1}


def test_repair_cuts_dangling_key():
    assert repair_json('{"a": 1, "b":') == {"a": 1}


def test_repair_gives_up_on_prose():
    assert repair_json("not json at all") is None
    assert repair_json("") is None


def test_first_success_stops_at_first_result():
    seen = []

    def attempt(value):
        def _run():
            seen.append(value)
            return value

        return _run

    assert first_success([attempt(None), attempt("hit"), attempt("late")]) == "hit"
    assert seen == [None, "hit"]
    assert first_success([attempt(None)]) is None
