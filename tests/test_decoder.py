"""Tests for logassert/decoder.py"""

import json
import os
import tempfile
import unittest

from logassert.decoder import RecordDecoder, record_to_entry
from logassert.errors import MalformedLogError
from logassert.models import LogLevel


def _line(**overrides) -> str:
    record = {
        "timestamp": "1445956183.123456789",
        "source": "svc",
        "message": "svc.start",
        "log_level": 1,
        "data": {"env": "prod"},
    }
    record.update(overrides)
    return json.dumps(record)


class TestDecodeLine(unittest.TestCase):
    def setUp(self):
        self.decoder = RecordDecoder()

    def test_valid_info_line(self):
        entry = self.decoder.decode_line(_line())
        self.assertEqual(entry.level, LogLevel.INFO)
        self.assertEqual(entry.source, "svc")
        self.assertEqual(entry.message, "svc.start")
        self.assertEqual(entry.data, {"env": "prod"})
        self.assertIsNone(entry.error)
        self.assertEqual(entry.timestamp, "1445956183.123456789")

    def test_error_taken_from_data(self):
        entry = self.decoder.decode_line(_line(log_level=2, data={"error": "boom", "k": "v"}))
        self.assertEqual(entry.level, LogLevel.ERROR)
        self.assertEqual(entry.error, "boom")
        self.assertEqual(entry.data["k"], "v")

    def test_error_ignored_below_error_level(self):
        entry = self.decoder.decode_line(_line(log_level=1, data={"error": "boom"}))
        self.assertIsNone(entry.error)

    def test_level_name_field(self):
        line = _line(level="fatal")
        record = json.loads(line)
        del record["log_level"]
        entry = self.decoder.decode_line(json.dumps(record))
        self.assertEqual(entry.level, LogLevel.FATAL)

    def test_missing_data_is_empty(self):
        record = json.loads(_line())
        del record["data"]
        entry = self.decoder.decode_line(json.dumps(record))
        self.assertEqual(entry.data, {})

    def test_numeric_timestamp(self):
        entry = self.decoder.decode_line(_line(timestamp=12.5))
        self.assertEqual(entry.timestamp, "12.5")

    def test_blank_line(self):
        self.assertIsNone(self.decoder.decode_line("   \n"))

    def test_not_json(self):
        self.assertIsNone(self.decoder.decode_line("plain text"))

    def test_json_array(self):
        self.assertIsNone(self.decoder.decode_line("[1, 2]"))

    def test_out_of_range_level(self):
        self.assertIsNone(self.decoder.decode_line(_line(log_level=7)))

    def test_missing_level(self):
        record = json.loads(_line())
        del record["log_level"]
        self.assertIsNone(self.decoder.decode_line(json.dumps(record)))

    def test_missing_source(self):
        record = json.loads(_line())
        del record["source"]
        self.assertIsNone(self.decoder.decode_line(json.dumps(record)))

    def test_raw_is_kept(self):
        line = _line()
        self.assertEqual(self.decoder.decode_line(line + "\n").raw, line)


class TestIterEntries(unittest.TestCase):
    def setUp(self):
        self.decoder = RecordDecoder()

    def test_preserves_order(self):
        content = "\n".join([_line(message="svc.a"), _line(message="svc.b"), _line(message="svc.c")])
        messages = [e.message for e in self.decoder.iter_entries(content.encode())]
        self.assertEqual(messages, ["svc.a", "svc.b", "svc.c"])

    def test_skips_junk_between_records(self):
        content = "\n".join(["junk", _line(), "", "{broken", _line(log_level=0)])
        entries = list(self.decoder.iter_entries(content))
        self.assertEqual([e.level for e in entries], [LogLevel.INFO, LogLevel.DEBUG])

    def test_trailing_partial_record(self):
        content = _line() + "\n" + _line()[:20]
        self.assertEqual(len(list(self.decoder.iter_entries(content))), 1)

    def test_empty_content(self):
        self.assertEqual(list(self.decoder.iter_entries(b"")), [])

    def test_only_blank_lines(self):
        self.assertEqual(list(self.decoder.iter_entries("\n\n  \n")), [])

    def test_wholly_malformed_raises_when_strict(self):
        with self.assertRaises(MalformedLogError):
            list(self.decoder.iter_entries(b"not\nstructured\n"))

    def test_wholly_malformed_empty_when_lenient(self):
        self.assertEqual(list(self.decoder.iter_entries(b"not\nstructured\n", strict=False)), [])

    def test_unicode_line_separators_inside_values(self):
        for sep in ("\u0085", "\u2028", "\u2029"):
            content = json.dumps({"source": "svc", "message": "svc.a", "log_level": 1, "data": {"k": f"a{sep}b"}},
                                 ensure_ascii=False) + "\n" + _line() + "\n"
            entries = list(self.decoder.iter_entries(content.encode("utf-8")))
            self.assertEqual(len(entries), 2, f"{sep!r}")
            self.assertEqual(entries[0].data["k"], f"a{sep}b")

    def test_crlf_line_endings(self):
        content = _line() + "\r\n" + _line(log_level=0) + "\r\n"
        entries = list(self.decoder.iter_entries(content))
        self.assertEqual([e.level for e in entries], [LogLevel.INFO, LogLevel.DEBUG])
        self.assertFalse(entries[0].raw.endswith("\r"))

    def test_invalid_utf8_is_tolerated(self):
        content = b"\xff\xfe garbage\n" + _line().encode()
        self.assertEqual(len(list(self.decoder.iter_entries(content))), 1)

    def test_stats(self):
        list(self.decoder.iter_entries("\n".join([_line(), "junk", _line()])))
        stats = self.decoder.get_stats()
        self.assertEqual(stats, {"total": 3, "decoded": 2, "skipped": 1})


class TestCustomSchema(unittest.TestCase):
    def test_schema_from_file(self):
        schema = {
            "type": "object",
            "required": ["source", "message", "log_level", "data"],
            "properties": {"data": {"type": "object", "required": ["trace_id"]}},
        }
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as f:
            json.dump(schema, f)
            path = f.name
        try:
            decoder = RecordDecoder(path)
            self.assertIsNone(decoder.decode_line(_line()))
            self.assertIsNotNone(decoder.decode_line(_line(data={"trace_id": "t-1"})))
        finally:
            os.unlink(path)


class TestRecordToEntry(unittest.TestCase):
    def test_non_string_error_is_stringified(self):
        entry = record_to_entry({"source": "s", "message": "m", "log_level": 3, "data": {"error": 42}})
        self.assertEqual(entry.error, "42")

    def test_null_error(self):
        entry = record_to_entry({"source": "s", "message": "m", "log_level": 2, "data": {"error": None}})
        self.assertIsNone(entry.error)


if __name__ == "__main__":
    unittest.main()
