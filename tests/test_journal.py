import json

import pytest

from escapepod.journal import (
    TRACE_FUNCTION,
    LogEntry,
    format_entry,
    incoming_text_entries,
    parse_entries,
    split_lines,
    strip_ctl_and_ext,
    trace_entries,
)


def _line(**fields):
    return (json.dumps(fields, ensure_ascii=False) + "\n").encode("utf-8")


def test_format_entry_appends_newline():
    assert format_entry({"MESSAGE": "hello"}) == "hello\n"


def test_format_entry_without_message_raises():
    with pytest.raises(ValueError, match="no MESSAGE field"):
        format_entry({"PRIORITY": "6"})


def test_strip_keeps_printable_ascii():
    assert strip_ctl_and_ext("a\tb\x7fc\u00e9d") == "abcd"


def test_strip_leaves_plain_text_alone():
    text = '{"msg": "hello world"}'
    assert strip_ctl_and_ext(text) == text


def test_split_lines_joins_chunks_and_drops_partial_line():
    lines = list(split_lines([b"ab", b"c\nde", b"\n", b"tail"]))
    assert lines == ["abc", "de"]


def test_split_lines_accepts_text():
    assert list(split_lines(["one\ntwo\n"])) == ["one", "two"]


def test_from_json_reads_fields():
    entry = LogEntry.from_json(
        json.dumps({"Function": TRACE_FUNCTION, "incoming_text": "hello", "result_intent": "intent_greeting"})
    )
    assert entry.function == TRACE_FUNCTION
    assert entry.incoming_text == "hello"
    assert entry.result_intent == "intent_greeting"


def test_from_json_on_garbage_is_empty():
    assert LogEntry.from_json("not json") == LogEntry()
    assert LogEntry.from_json("[1, 2]") == LogEntry()


def test_from_json_ignores_wrongly_typed_fields():
    entry = LogEntry.from_json(json.dumps({"level": 5, "msg": "kept"}))
    assert entry.level == ""
    assert entry.msg == "kept"


def test_dict_round_trip():
    entry = LogEntry("f", "s", "text", "info", "m", "intent", "now")
    assert LogEntry.from_json(json.dumps(entry.to_dict())) == entry


def test_parse_entries_one_per_line():
    chunks = [_line(msg="a"), b"garbage\n", _line(msg="b")]
    entries = list(parse_entries(chunks))
    assert [entry.msg for entry in entries] == ["a", "", "b"]


def test_trace_entries_filter_by_function():
    chunks = [
        _line(Function=TRACE_FUNCTION, incoming_text="hi", time="t1"),
        _line(Function="other", incoming_text="ignored"),
    ]
    entries = list(trace_entries(chunks))
    assert len(entries) == 1
    assert entries[0].time == "t1"


def test_incoming_text_entries_skip_empty_text():
    chunks = [_line(incoming_text="hello"), _line(msg="nothing heard")]
    assert [entry.incoming_text for entry in incoming_text_entries(chunks)] == ["hello"]


def test_non_ascii_text_is_stripped():
    entries = list(incoming_text_entries([_line(incoming_text="caf\u00e9")]))
    assert entries[0].incoming_text == "caf"